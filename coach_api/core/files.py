"""
Local attachment storage (contract PDFs, signatures, post images).

Only the relative path (e.g. `uploads/contracts/contract_1700000000000.pdf`)
is persisted in the store; raw bytes never go to the tabular store.
"""

from __future__ import annotations

import base64
import binascii
import logging
import mimetypes
import re
import time
from pathlib import Path

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

CONTRACTS = "contracts"
POSTS = "posts"
URL_PREFIX = "uploads"

_SAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")


class AttachmentError(ValueError):
    pass


def strip_data_uri(raw: str) -> str:
    """
    "data:application/pdf;base64,AAAA" -> "AAAA"; plain base64 passes through.
    """
    raw = (raw or "").strip()
    if "," in raw:
        return raw.split(",", 1)[1]
    return raw


def is_data_uri(value: object) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def data_uri_suffix(raw: str, default: str = "") -> str:
    """
    "data:image/jpeg;base64,..." -> ".jpg"
    """
    if not is_data_uri(raw):
        return default
    mime = raw[5:].split(";", 1)[0].split(",", 1)[0].strip().lower()
    return mimetypes.guess_extension(mime) or default


def decode_base64_payload(raw: str) -> bytes:
    payload = strip_data_uri(raw)
    if not payload:
        raise AttachmentError("Empty base64 payload.")
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise AttachmentError("Invalid base64 payload.") from exc


def _now_ms() -> int:
    return int(time.time() * 1000)


def _safe_filename(name: str) -> str:
    base = Path(name or "").name
    return _SAFE_NAME.sub("_", base).strip("._") or "file"


class AttachmentStore:
    def __init__(self, root: str | Path = "uploads") -> None:
        self.root = Path(root)

    @property
    def url_prefix(self) -> str:
        # Public prefix; the app serves UPLOADS_DIR at /uploads.
        return URL_PREFIX

    def _target(self, kind: str, filename: str) -> tuple[Path, str]:
        directory = self.root / kind
        relative = f"{self.url_prefix}/{kind}/{filename}"
        return directory / filename, relative

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def save_bytes(self, kind: str, prefix: str, data: bytes, *, suffix: str = "", original: str | None = None) -> str:
        """
        Write `data` under `<root>/<kind>/` and return the relative path.

        Filenames are `<prefix>_<epoch ms>[_<original>]<suffix>`.
        """
        name = f"{prefix}_{_now_ms()}"
        if original:
            name += f"_{_safe_filename(original)}"
        name += suffix
        path, relative = self._target(kind, name)
        await run_in_threadpool(self._write, path, data)
        logger.info("attachment_saved path=%s bytes=%s", relative, len(data))
        return relative

    async def save_base64(self, kind: str, prefix: str, raw: str, *, suffix: str) -> str:
        return await self.save_bytes(kind, prefix, decode_base64_payload(raw), suffix=suffix)

    async def save_upload(self, kind: str, prefix: str, upload: UploadFile) -> str:
        data = await upload.read()
        return await self.save_bytes(kind, prefix, data, original=upload.filename or "upload")

    def resolve(self, stored_path: str | None) -> Path | None:
        """
        Absolute path for a stored relative path, or None if missing/outside the root.
        """
        raw = (stored_path or "").strip().replace("\\", "/")
        if not raw:
            return None
        # Stored as "uploads/contracts/x.pdf", "/uploads/posts/x.png" or bare "contracts/x.pdf".
        raw = raw.lstrip("/")
        prefix = f"{self.url_prefix}/"
        if raw.startswith(prefix):
            raw = raw[len(prefix):]
        root = self.root.resolve()
        candidate = (root / raw).resolve()
        if root != candidate and root not in candidate.parents:
            return None
        if not candidate.is_file():
            return None
        return candidate
