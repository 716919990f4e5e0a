# app/services/notify_pipeline.py
"""
Orquestador "nuevo post -> notificar amigos".

    Resolving -> Collecting -> Authenticating -> Dispatching -> Done
        |             |
    NoRecipients   NoTokens        (terminales de éxito, notified = 0)

El mint del access token arranca en paralelo con Resolving. Si el pipeline
termina antes (sin amigos / sin tokens) el mint se cancela y su error nunca
se reporta. StoreLookupError y AuthError abortan la invocación; los errores
por token quedan dentro de cada DispatchOutcome.
"""
import asyncio
import logging
from typing import Optional, Protocol

from ..core.errors import StoreLookupError
from ..models.notification import (
    AccessToken,
    DispatchOutcome,
    MessageTemplate,
    PipelineResult,
    PipelineState,
    RenderedMessage,
)
from ..models.post import PostEvent
from ..models.profile import DeviceToken

log = logging.getLogger("app.notify")


class Minter(Protocol):
    async def mint(self) -> AccessToken: ...


class Resolver(Protocol):
    async def resolve(self, author_id: str) -> set[str]: ...


class Collector(Protocol):
    async def collect(self, user_ids: set[str]) -> list[DeviceToken]: ...


class Dispatcher(Protocol):
    async def dispatch(
        self, access_token: AccessToken, message: RenderedMessage, tokens: list[DeviceToken]
    ) -> list[DispatchOutcome]: ...


class ProfileStore(Protocol):
    async def get_display_name(self, user_id: str) -> Optional[str]: ...

    async def clear_device_tokens(self, tokens: list[str]) -> int: ...


def _discard_mint(task: asyncio.Task) -> None:
    task.cancel()
    task.add_done_callback(_consume_mint_result)


def _consume_mint_result(task: asyncio.Task) -> None:
    # evita "Task exception was never retrieved" cuando el mint ya no importa
    if not task.cancelled() and task.exception() is not None:
        log.debug(f"Mint descartado terminó con {type(task.exception()).__name__}")


class NotifyNewPostPipeline:
    def __init__(
        self,
        *,
        resolver: Resolver,
        collector: Collector,
        minter: Minter,
        dispatcher: Dispatcher,
        template: MessageTemplate,
        profiles: Optional[ProfileStore] = None,
        prune_unregistered: bool = False,
    ) -> None:
        self.resolver = resolver
        self.collector = collector
        self.minter = minter
        self.dispatcher = dispatcher
        self.template = template
        self.profiles = profiles
        self.prune_unregistered = prune_unregistered

    async def run(self, event: PostEvent) -> PipelineResult:
        author = event.author_id
        mint_task = asyncio.create_task(self.minter.mint())
        awaited_mint = False
        try:
            log.info(f"[{author}] resolving (post={event.post_id})")
            recipients = await self.resolver.resolve(author)
            if not recipients:
                log.info(f"[{author}] sin amigos aceptados: no_recipients")
                return PipelineResult(state=PipelineState.NO_RECIPIENTS)

            log.info(f"[{author}] collecting tokens de {len(recipients)} amigos")
            tokens = await self.collector.collect(recipients)
            if not tokens:
                log.info(f"[{author}] ningún amigo con token FCM: no_tokens")
                return PipelineResult(state=PipelineState.NO_TOKENS)

            message = self.template.render(await self._author_name(author))

            log.info(f"[{author}] authenticating")
            awaited_mint = True
            access_token = await mint_task
        finally:
            if not awaited_mint:
                _discard_mint(mint_task)

        log.info(f"[{author}] dispatching a {len(tokens)} tokens")
        outcomes = await self.dispatcher.dispatch(access_token, message, tokens)
        result = PipelineResult(state=PipelineState.DONE, outcomes=outcomes)
        log.info(f"[{author}] done: notified={result.notified} delivered={result.delivered} failed={result.failed}")

        if self.prune_unregistered:
            await self._prune(outcomes)
        return result

    async def _author_name(self, author_id: str) -> Optional[str]:
        if self.profiles is None:
            return None
        try:
            return await self.profiles.get_display_name(author_id)
        except StoreLookupError as e:
            # el nombre es cosmético: se usa el placeholder
            log.warning(f"[{author_id}] sin nombre para la notificación: {e}")
            return None

    async def _prune(self, outcomes: list[DispatchOutcome]) -> None:
        stale = [o.token for o in outcomes if o.unregistered]
        if not stale or self.profiles is None:
            return
        try:
            cleared = await self.profiles.clear_device_tokens(stale)
            log.info(f"Tokens FCM no registrados limpiados: {cleared}")
        except StoreLookupError as e:
            log.warning(f"No se pudieron limpiar tokens no registrados: {e}")
