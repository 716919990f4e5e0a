# backend/app/tests/fakes.py
"""
Dobles en memoria para los repos de Mongo, el minter y el dispatcher.
Imitan el contrato de consulta (accepted + cualquier lado; tokens no nulos).
"""
import asyncio
from datetime import datetime, timedelta, timezone

from app.core.errors import AuthError
from app.models.friendship import Connection
from app.models.notification import AccessToken, DispatchOutcome
from app.models.profile import DeviceToken


def conn(a, b, status="accepted"):
    return Connection(from_user_id=a, to_user_id=b, status=status)


class FakeFriendships:
    def __init__(self, rows=(), error=None):
        self.rows = list(rows)
        self.error = error
        self.calls = []

    async def list_accepted_for(self, user_id):
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return [r for r in self.rows if r.status == "accepted" and user_id in (r.from_user_id, r.to_user_id)]


class FakeProfiles:
    def __init__(self, docs=None, error=None, name_error=None, clear_error=None):
        # {user_id: {"username": ..., "fcm_token": ...}}
        self.docs = dict(docs or {})
        self.error = error
        self.name_error = name_error
        self.clear_error = clear_error
        self.token_calls = []
        self.cleared = []

    async def get_display_name(self, user_id):
        if self.name_error:
            raise self.name_error
        return (self.docs.get(user_id) or {}).get("username")

    async def list_device_tokens(self, user_ids):
        ids = list(user_ids)
        self.token_calls.append(ids)
        if self.error:
            raise self.error
        return [
            DeviceToken(user_id=uid, token=self.docs[uid]["fcm_token"])
            for uid in ids
            if uid in self.docs and self.docs[uid].get("fcm_token") not in (None, "")
        ]

    async def clear_device_tokens(self, tokens):
        if self.clear_error:
            raise self.clear_error
        self.cleared.extend(tokens)
        return len(tokens)


class StubMinter:
    def __init__(self, value="ya29.test-token", error=None, delay=0.0):
        self.value = value
        self.error = error
        self.delay = delay
        self.calls = 0

    async def mint(self):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return AccessToken(value=self.value, expires_at=datetime.now(timezone.utc) + timedelta(hours=1))


class RecordingDispatcher:
    def __init__(self, fail_tokens=(), error_code=None):
        self.fail_tokens = set(fail_tokens)
        self.error_code = error_code
        self.calls = []

    async def dispatch(self, access_token, message, tokens):
        self.calls.append({"access_token": access_token, "message": message, "tokens": [t.token for t in tokens]})
        return [
            DispatchOutcome(token=t.token, success=False, status_code=404, error="gone", error_code=self.error_code)
            if t.token in self.fail_tokens
            else DispatchOutcome(token=t.token, success=True, status_code=200)
            for t in tokens
        ]


def failing_minter():
    return StubMinter(error=AuthError("Token endpoint respondió 401", status_code=401, body="denied"))
