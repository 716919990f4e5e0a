# app/services/factory.py
"""
Arma las piezas del pipeline a partir de Settings.
Minter y dispatcher viven todo el proceso (llave decodificada una vez, un solo
httpx.AsyncClient); el pipeline se arma por request con los repos de Mongo.
"""
import httpx

from ..core.config import Settings
from ..models.friendship import FriendshipRepo
from ..models.notification import MessageTemplate
from ..models.profile import ProfileRepo
from .credential_minter import CredentialMinter
from .fcm import FcmDispatcher
from .notify_pipeline import NotifyNewPostPipeline
from .recipients import RecipientResolver
from .tokens import TokenCollector


def build_minter(settings: Settings, client: httpx.AsyncClient) -> CredentialMinter:
    return CredentialMinter(
        client=client,
        issuer=settings.FCM_CLIENT_EMAIL,
        private_key=settings.FCM_PRIVATE_KEY,
        audience=settings.FCM_TOKEN_URI,
        scope=settings.FCM_SCOPE,
        timeout=settings.FCM_TIMEOUT_SECONDS,
    )


def build_dispatcher(settings: Settings, client: httpx.AsyncClient) -> FcmDispatcher:
    return FcmDispatcher(
        client=client,
        project_id=settings.FCM_PROJECT_ID,
        send_url_template=settings.FCM_SEND_URL_TEMPLATE,
        max_concurrency=settings.FCM_MAX_CONCURRENCY,
        timeout=settings.FCM_TIMEOUT_SECONDS,
    )


def build_template(settings: Settings) -> MessageTemplate:
    return MessageTemplate(
        title=settings.NOTIFY_TITLE,
        body=settings.NOTIFY_BODY,
        fallback_name=settings.NOTIFY_FALLBACK_NAME,
        click_action=settings.NOTIFY_CLICK_ACTION,
        sound=settings.NOTIFY_SOUND,
    )


def build_pipeline(db, *, minter, dispatcher, settings: Settings) -> NotifyNewPostPipeline:
    profiles = ProfileRepo(db)
    return NotifyNewPostPipeline(
        resolver=RecipientResolver(FriendshipRepo(db)),
        collector=TokenCollector(profiles),
        minter=minter,
        dispatcher=dispatcher,
        template=build_template(settings),
        profiles=profiles,
        prune_unregistered=settings.FCM_PRUNE_UNREGISTERED,
    )
