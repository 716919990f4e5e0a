"""
Dependencias comunes para FastAPI:
- current_db
- current_pipeline (piezas de larga vida en app.state)
- verify_webhook (Authorization: Bearer <WEBHOOK_SECRET>, si está configurado)
"""
import hmac

from fastapi import Depends, Header, Request
from ..db.mongo import get_db
from ..core.config import settings
from ..core.errors import WebhookAuthError
from ..services.factory import build_pipeline
from ..services.notify_pipeline import NotifyNewPostPipeline

def current_db():
    return get_db()

def current_pipeline(request: Request, db=Depends(current_db)) -> NotifyNewPostPipeline:
    state = request.app.state
    return build_pipeline(db, minter=state.minter, dispatcher=state.dispatcher, settings=settings)

async def verify_webhook(authorization: str | None = Header(default=None)) -> None:
    secret = settings.WEBHOOK_SECRET
    if not secret:
        return
    scheme, _, value = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(value.strip().encode(), secret.encode()):
        raise WebhookAuthError("Webhook no autorizado")
