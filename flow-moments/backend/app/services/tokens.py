# app/services/tokens.py
"""
Token Collector: tokens FCM de los destinatarios, sin vacíos y sin duplicados
(dos cuentas en el mismo teléfono => una sola notificación).
"""
from typing import Iterable, Protocol

from ..models.profile import DeviceToken


class TokenSource(Protocol):
    async def list_device_tokens(self, user_ids: Iterable[str]) -> list[DeviceToken]: ...


def dedupe_tokens(tokens: Iterable[DeviceToken]) -> list[DeviceToken]:
    seen: set[str] = set()
    out: list[DeviceToken] = []
    for t in tokens:
        value = (t.token or "").strip()
        if not value or value in seen:
            continue
        seen.add(value)
        out.append(DeviceToken(user_id=t.user_id, token=value))
    return out


class TokenCollector:
    def __init__(self, source: TokenSource) -> None:
        self.source = source

    async def collect(self, user_ids: Iterable[str]) -> list[DeviceToken]:
        # orden estable para que los logs/tests sean deterministas
        ids = sorted(set(user_ids))
        if not ids:
            return []
        rows = await self.source.list_device_tokens(ids)
        return dedupe_tokens(rows)
