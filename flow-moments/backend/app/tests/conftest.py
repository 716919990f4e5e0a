# backend/app/tests/conftest.py
"""
Fixtures para pruebas con FastAPI + pytest-asyncio.
Sin Mongo ni Google reales: el pipeline se arma con dobles en memoria y la
app se ejercita con ASGITransport (sin lifespan).
"""
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import AsyncClient, ASGITransport

# ---- asegurar imports absolutos 'app.*' ----
ROOT_DIR = Path(__file__).resolve().parents[1]   # .../backend/app
sys.path.insert(0, str(ROOT_DIR.parent))         # .../backend

from app.main import app  # noqa
from app.core.deps import current_pipeline  # noqa
from app.models.notification import MessageTemplate  # noqa
from app.services.notify_pipeline import NotifyNewPostPipeline  # noqa
from app.services.recipients import RecipientResolver  # noqa
from app.services.tokens import TokenCollector  # noqa

@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)

@pytest.fixture(scope="session")
def private_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()

@pytest.fixture(scope="session")
def public_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()

@pytest.fixture
def template():
    return MessageTemplate(title="FLOW Moments", body="{name} just shared a new moment!")

@pytest.fixture
def make_pipeline(template):
    def _make(friendships, profiles, minter, dispatcher, prune_unregistered=False):
        return NotifyNewPostPipeline(
            resolver=RecipientResolver(friendships),
            collector=TokenCollector(profiles),
            minter=minter,
            dispatcher=dispatcher,
            template=template,
            profiles=profiles,
            prune_unregistered=prune_unregistered,
        )
    return _make

@pytest_asyncio.fixture
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()

@pytest.fixture
def use_pipeline():
    """Inyecta un pipeline armado con dobles en lugar del de Mongo."""
    def _use(pipeline):
        app.dependency_overrides[current_pipeline] = lambda: pipeline
    return _use
