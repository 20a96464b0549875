"""
Admin flows: professor contract renewal and global feature settings.
"""

from __future__ import annotations

import logging
from typing import Any

from coach_api.core import config, notify
from coach_api.core.errors import bad_request, not_found, store_errors
from coach_api.core.normalize import date_part, normalize_date_only, normalize_email, utc_now_iso
from coach_api.core.store import Row, Store
from coach_api.users import repository as users_repository

from . import repository, schemas

logger = logging.getLogger(__name__)


async def renew_contract(store: Store, payload: schemas.RenewContractRequest) -> dict:
    """
    Extend a professor's admin contract, creating it when none exists.

    The professor's `users.contract_end` is kept in step for older clients.
    """
    professor_email = normalize_email(payload.professor_email)
    if not professor_email:
        raise bad_request("professor_email is required")
    contract_end = normalize_date_only(payload.contract_end)
    now = utc_now_iso()

    with store_errors("Failed to renew contract."):
        updated = await repository.update_admin_contract(
            store,
            professor_email,
            {"contract_end": contract_end, "updated_at": now},
        )
        created = False
        if not updated:
            updated = await repository.insert_admin_contract(
                store,
                {
                    "professor_email": professor_email,
                    "admin_email": config.admin_email(),
                    "contract_start": now,
                    "contract_end": contract_end,
                    "status": "active",
                },
            )
            created = True
    logger.info("admin_contract_renewed professor=%s contract_end=%s created=%s", professor_email, contract_end, created)

    await notify.run_best_effort(
        "admin_contract_mirror",
        lambda: users_repository.update_user_by_email(store, professor_email, {"contract_end": contract_end}),
    )
    message = "Contract created." if created else "Contract renewed."
    return {"message": message, "data": updated}


async def list_admin_contracts(store: Store) -> list[Row]:
    with store_errors("Failed to fetch admin contracts."):
        rows = await repository.list_admin_contracts(store)
    return [
        {
            **r,
            "contract_end": date_part(r.get("contract_end")),
            "contract_start": date_part(r.get("contract_start")),
        }
        for r in rows
    ]


async def get_setting(store: Store, chave: str) -> Row:
    with store_errors("Failed to fetch setting."):
        row = await repository.get_setting(store, chave)
    if row is None:
        raise not_found("Setting not found.")
    return row


async def save_setting(store: Store, chave: str, valor: Any) -> dict:
    if valor is None:
        raise bad_request("valor is required")
    with store_errors("Failed to update setting."):
        rows = await repository.upsert_setting(store, {"chave": chave, "valor": valor, "atualizado_em": utc_now_iso()})
    logger.info("setting_saved chave=%s", chave)
    return {"success": True, "data": rows[0] if rows else None}
