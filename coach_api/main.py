import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from coach_api.admin import router as admin_router
from coach_api.consultations import router as consultations_router
from coach_api.contracts import router as contracts_router
from coach_api.core import config, dependencies
from coach_api.core.errors import install_error_handlers
from coach_api.core.files import CONTRACTS, POSTS
from coach_api.core.normalize import utc_now_iso
from coach_api.messages import router as messages_router
from coach_api.products import router as products_router
from coach_api.profiles import router as profiles_router
from coach_api.social import router as social_router
from coach_api.users import router as users_router
from coach_api.workouts import router as workouts_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Build the store client once per process.
    await dependencies.init_store()
    try:
        yield
    finally:
        await dependencies.close_store()


def _mask(value: str, keep: int = 50) -> str:
    if not value:
        return "NOT CONFIGURED"
    return value[:keep] + ("..." if len(value) > keep else "")


def create_app() -> FastAPI:
    app = FastAPI(title="coach-api", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    uploads = Path(config.uploads_dir())
    for kind in (CONTRACTS, POSTS):
        (uploads / kind).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(uploads)), name="uploads")

    app.include_router(users_router.router, tags=["users"])
    app.include_router(profiles_router.router, tags=["profiles"])
    app.include_router(workouts_router.router, tags=["workouts"])
    app.include_router(consultations_router.router, tags=["consultations"])
    app.include_router(messages_router.router, tags=["messages"])
    app.include_router(contracts_router.router, tags=["contracts"])
    app.include_router(admin_router.router, tags=["admin"])
    app.include_router(social_router.router, tags=["social"])
    app.include_router(products_router.router, tags=["products"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "timestamp": utc_now_iso()}

    @app.get("/")
    def root() -> dict:
        return {
            "message": "coach-api is running",
            "endpoints": {"users": "/users", "treinos": "/treinos", "contracts": "/contracts"},
        }

    @app.get("/debug/config")
    def debug_config() -> dict:
        # Never expose the key itself.
        return {
            "timestamp": utc_now_iso(),
            "environment": {
                "SUPABASE_URL": _mask(config.supabase_url()),
                "SUPABASE_SERVICE_KEY_CONFIGURED": bool(config.supabase_service_key()),
                "DATABASE_URL_CONFIGURED": bool(config.database_url()),
                "COACH_STORE_BACKEND": config.store_backend(),
                "PORT": config.port(),
                "UPLOADS_DIR": config.uploads_dir(),
            },
        }

    return app


configure_logging()
app = create_app()
