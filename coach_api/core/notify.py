"""
Best-effort side effects.

A side effect runs after the primary store operation has completed. Its
failure is logged and swallowed: it never changes the primary response and
is never retried.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from .normalize import utc_now_iso
from .store import Store

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "sistema"
MESSAGES_TABLE = "mensagens"


async def run_best_effort(label: str, effect: Callable[[], Awaitable[Any]]) -> bool:
    """
    Await `effect()`; return False (and log) on any failure.
    """
    try:
        await effect()
    except Exception:
        logger.exception("side_effect_failed effect=%s", label)
        return False
    return True


async def send_message_best_effort(
    store: Store,
    *,
    sender: str,
    recipient: str,
    body: str,
    label: str = "message",
) -> bool:
    row = {"de": sender, "para": recipient, "mensagem": body, "data": utc_now_iso()}

    async def _insert() -> None:
        await store.insert(MESSAGES_TABLE, row)
        logger.info("notification_sent effect=%s to=%s", label, recipient)

    return await run_best_effort(label, _insert)
