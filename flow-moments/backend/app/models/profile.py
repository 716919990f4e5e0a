# app/models/profile.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from anyio import to_thread
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from ..core.errors import StoreLookupError


# ---------- Pydantic ----------
class DeviceToken(BaseModel):
    user_id: str
    token: str


# ---------- Repo ----------
class ProfileRepo:
    """
    Perfiles de usuario: _id = user id, username y fcm_token (un token vivo
    por usuario; la app sobreescribe el campo en cada registro).
    """

    def __init__(self, db):
        self.col = db["profiles"]

    async def get_display_name(self, user_id: str) -> Optional[str]:
        def _find() -> Optional[Dict[str, Any]]:
            return self.col.find_one({"_id": user_id}, {"username": 1})

        try:
            doc = await to_thread.run_sync(_find)
        except PyMongoError as e:
            raise StoreLookupError(f"No se pudo leer el perfil de {user_id}: {e}") from e
        if not doc:
            return None
        return doc.get("username") or None

    async def list_device_tokens(self, user_ids: Iterable[str]) -> List[DeviceToken]:
        ids = list(user_ids)
        query = {"_id": {"$in": ids}, "fcm_token": {"$nin": [None, ""]}}

        def _find() -> List[Dict[str, Any]]:
            return list(self.col.find(query, {"fcm_token": 1}))

        try:
            rows = await to_thread.run_sync(_find)
        except PyMongoError as e:
            raise StoreLookupError(f"No se pudieron leer tokens FCM: {e}") from e

        return [
            DeviceToken(user_id=str(r["_id"]), token=r["fcm_token"])
            for r in rows
            if isinstance(r.get("fcm_token"), str)
        ]

    async def clear_device_tokens(self, tokens: Iterable[str]) -> int:
        """Borra tokens que FCM reportó como no registrados. Devuelve perfiles tocados."""
        values = list(tokens)
        if not values:
            return 0

        def _update() -> int:
            res = self.col.update_many({"fcm_token": {"$in": values}}, {"$set": {"fcm_token": None}})
            return res.modified_count

        try:
            return await to_thread.run_sync(_update)
        except PyMongoError as e:
            raise StoreLookupError(f"No se pudieron limpiar tokens FCM: {e}") from e
