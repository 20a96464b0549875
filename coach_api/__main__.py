import uvicorn

from coach_api.core import config


def main() -> None:
    uvicorn.run("coach_api.main:app", host="0.0.0.0", port=config.port())


if __name__ == "__main__":
    main()
