"""
Request bodies that arrive either as multipart forms or as JSON.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import Request
from starlette.datastructures import UploadFile

from .errors import bad_request

# Form fields that carry JSON objects when sent as multipart.
_JSON_FIELDS = ("dados",)


async def read_form_or_json(request: Request, file_field: str) -> tuple[dict[str, Any], UploadFile | None]:
    """
    Return (fields, upload). Multipart text fields become the body; the file
    part named `file_field` becomes the upload.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get(file_field)
        body: dict[str, Any] = {k: v for k, v in form.items() if k != file_field and isinstance(v, str)}
        for name in _JSON_FIELDS:
            if isinstance(body.get(name), str):
                try:
                    body[name] = json.loads(body[name])
                except ValueError:
                    pass
        return body, upload if isinstance(upload, UploadFile) else None

    raw = await request.body()
    if not raw.strip():
        return {}, None
    try:
        body = json.loads(raw)
    except ValueError as exc:
        raise bad_request("body is invalid") from exc
    if not isinstance(body, dict):
        raise bad_request("body is invalid")
    return body, None
