"""
Webhook "post creado" (INSERT en posts) -> notificar a los amigos por FCM.
"""
import json

from fastapi import APIRouter, Depends, Request
from ..core.deps import current_pipeline, verify_webhook
from ..core.errors import InputError
from ..models.post import PostEvent
from ..services.notify_pipeline import NotifyNewPostPipeline

router = APIRouter()

@router.post("/new-post", summary="Notificar a amigos de un nuevo post", dependencies=[Depends(verify_webhook)])
async def notify_new_post(request: Request, pipeline: NotifyNewPostPipeline = Depends(current_pipeline)):
    """
    Devuelve {success, notified, ...}. Sin amigos o sin tokens => notified = 0.
    Errores fatales salen como {error} vía el handler de main.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InputError("Body no es JSON válido") from e

    event = PostEvent.from_payload(payload)
    result = await pipeline.run(event)
    return result.to_response()
