# app/models/friendship.py
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from anyio import to_thread
from pydantic import BaseModel
from pymongo.errors import PyMongoError

from ..core.errors import StoreLookupError

FriendshipStatus = Literal["pending", "accepted", "rejected"]


# ---------- Pydantic ----------
class Connection(BaseModel):
    from_user_id: Optional[str] = None
    to_user_id: Optional[str] = None
    status: FriendshipStatus = "pending"


# ---------- Repo ----------
class FriendshipRepo:
    def __init__(self, db):
        self.col = db["friendships"]

    async def list_accepted_for(self, user_id: str) -> List[Connection]:
        """
        Amistades 'accepted' donde el usuario aparece en from_user_id O to_user_id.
        """
        query = {
            "status": "accepted",
            "$or": [{"from_user_id": user_id}, {"to_user_id": user_id}],
        }
        projection = {"_id": 0, "from_user_id": 1, "to_user_id": 1, "status": 1}

        def _find() -> List[Dict[str, Any]]:
            return list(self.col.find(query, projection))

        try:
            rows = await to_thread.run_sync(_find)
        except PyMongoError as e:
            raise StoreLookupError(f"No se pudieron leer amistades de {user_id}: {e}") from e

        return [
            Connection(
                from_user_id=_as_id(r.get("from_user_id")),
                to_user_id=_as_id(r.get("to_user_id")),
                status=r.get("status", "accepted"),
            )
            for r in rows
        ]


def _as_id(value: Any) -> Optional[str]:
    # ids pueden venir como ObjectId/UUID según quién escribió la fila
    return None if value is None else str(value)
