# app/models/post.py
"""
Evento "post creado" que manda el webhook de la base:
    { "record": { "user_id": ..., "id" | "post_id": ..., "created_at": ... } }
Solo record.user_id es obligatorio; el resto es informativo.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from ..core.errors import InputError

log = logging.getLogger("app.post")

_created_at = TypeAdapter(Optional[datetime])


def _parse_created_at(value: Any) -> Optional[datetime]:
    try:
        return _created_at.validate_python(value)
    except ValidationError:
        # un timestamp raro no debe impedir notificar a los amigos
        log.warning(f"record.created_at ignorado (no es fecha): {value!r}")
        return None


class PostEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    author_id: str
    post_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "PostEvent":
        if not isinstance(payload, dict):
            raise InputError("El payload debe ser un objeto JSON")
        record = payload.get("record")
        if not isinstance(record, dict):
            raise InputError("Falta 'record' en el payload")

        user_id = record.get("user_id")
        if user_id is None or not str(user_id).strip():
            raise InputError("Falta 'record.user_id'")

        post_id = record.get("post_id", record.get("id"))
        return cls(
            author_id=str(user_id).strip(),
            post_id=None if post_id is None else str(post_id),
            created_at=_parse_created_at(record.get("created_at")),
        )
