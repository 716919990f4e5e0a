# app/services/recipients.py
"""
Recipient Resolver: amigos 'accepted' del autor, sin importar de qué lado
de la fila esté. Cada amistad se normaliza a un par (autor, otro) antes de filtrar.
"""
from typing import Iterable, Optional, Protocol

from ..models.friendship import Connection


class ConnectionSource(Protocol):
    async def list_accepted_for(self, user_id: str) -> list[Connection]: ...


def canonical_pair(conn: Connection, author_id: str) -> Optional[tuple[str, str]]:
    """
    (autor, otro) si la amistad toca al autor; None si no lo toca, si no está
    aceptada o si es una auto-amistad.
    """
    if conn.status != "accepted":
        return None
    if conn.from_user_id == author_id:
        other = conn.to_user_id
    elif conn.to_user_id == author_id:
        other = conn.from_user_id
    else:
        return None
    if not other or other == author_id:
        return None
    return author_id, other


def recipients_from(connections: Iterable[Connection], author_id: str) -> set[str]:
    out: set[str] = set()
    for conn in connections:
        pair = canonical_pair(conn, author_id)
        if pair:
            out.add(pair[1])
    return out


class RecipientResolver:
    def __init__(self, connections: ConnectionSource) -> None:
        self.connections = connections

    async def resolve(self, author_id: str) -> set[str]:
        rows = await self.connections.list_accepted_for(author_id)
        return recipients_from(rows, author_id)
