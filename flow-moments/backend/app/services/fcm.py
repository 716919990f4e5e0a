# app/services/fcm.py
"""
Dispatcher FCM HTTP v1: un POST por token, en paralelo con tope (semáforo).
- Cada envío tiene su propio timeout total.
- Cualquier falla (red, timeout, no-2xx) queda en el DispatchOutcome de ESE token;
  nunca aborta ni retrasa a los demás.
- Sin reintentos por token: retryable solo informa.
"""
import asyncio
import logging
from typing import Any, Optional

import httpx

from ..core.errors import DeliveryError
from ..models.notification import AccessToken, DispatchOutcome, RenderedMessage
from ..models.profile import DeviceToken

log = logging.getLogger("app.fcm")

FCM_ERROR_TYPE = "type.googleapis.com/google.firebase.fcm.v1.FcmError"
RETRYABLE_CODES = {"UNAVAILABLE", "INTERNAL", "QUOTA_EXCEEDED"}


def mask_token(token: str) -> str:
    return f"{token[:8]}…" if len(token) > 8 else "…"


def parse_fcm_error(status_code: int, body: str, payload: Any) -> DeliveryError:
    """
    Clasifica la respuesta de error de FCM.
    404/UNREGISTERED e INVALID_ARGUMENT son terminales; 429 y 5xx se marcan retryable.
    """
    error_code: Optional[str] = None
    message = f"FCM respondió {status_code}"
    err = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(err, dict):
        message = err.get("message") or message
        error_code = err.get("status")
        for detail in err.get("details") or []:
            if isinstance(detail, dict) and detail.get("@type") == FCM_ERROR_TYPE and detail.get("errorCode"):
                error_code = detail["errorCode"]
                break
    if status_code == 404 and error_code in (None, "NOT_FOUND"):
        error_code = "UNREGISTERED"

    retryable = status_code == 429 or status_code >= 500 or error_code in RETRYABLE_CODES
    return DeliveryError(message, status_code=status_code, body=body, error_code=error_code, retryable=retryable)


class FcmDispatcher:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        project_id: str,
        send_url_template: str = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send",
        max_concurrency: int = 50,
        timeout: float = 10.0,
    ) -> None:
        self.client = client
        self.send_url = send_url_template.format(project_id=project_id)
        self.max_concurrency = max(1, max_concurrency)
        self.timeout = timeout

    async def dispatch(
        self,
        access_token: AccessToken,
        message: RenderedMessage,
        tokens: list[DeviceToken],
    ) -> list[DispatchOutcome]:
        if not tokens:
            return []

        sem = asyncio.Semaphore(self.max_concurrency)
        headers = {"Authorization": f"Bearer {access_token.value}"}

        async def _guarded(token: str) -> DispatchOutcome:
            async with sem:
                return await self._send_one(token, message, headers)

        # un intento por valor de token, aunque lleguen repetidos
        unique = list(dict.fromkeys(t.token for t in tokens))
        outcomes = await asyncio.gather(*(_guarded(t) for t in unique))
        failed = sum(1 for o in outcomes if not o.success)
        log.info(f"FCM batch: {len(outcomes)} envíos, {failed} fallidos")
        return list(outcomes)

    async def _send_one(self, token: str, message: RenderedMessage, headers: dict) -> DispatchOutcome:
        try:
            status_code = await asyncio.wait_for(self._post(token, message, headers), timeout=self.timeout)
        except DeliveryError as e:
            log.warning(f"FCM {mask_token(token)} falló: {e} ({e.error_code or 'sin código'})")
            return DispatchOutcome(
                token=token,
                success=False,
                status_code=e.status_code,
                error=str(e),
                error_code=e.error_code,
                retryable=e.retryable,
            )
        except asyncio.TimeoutError:
            log.warning(f"FCM {mask_token(token)} timeout tras {self.timeout}s")
            return DispatchOutcome(token=token, success=False, error="timeout", error_code="TIMEOUT", retryable=True)
        except httpx.HTTPError as e:
            log.warning(f"FCM {mask_token(token)} error de red: {type(e).__name__}")
            return DispatchOutcome(token=token, success=False, error=f"{type(e).__name__}: {e}", retryable=True)
        except Exception as e:  # noqa: BLE001
            log.exception(f"FCM {mask_token(token)} error inesperado")
            return DispatchOutcome(token=token, success=False, error=f"{type(e).__name__}: {e}")
        return DispatchOutcome(token=token, success=True, status_code=status_code)

    async def _post(self, token: str, message: RenderedMessage, headers: dict) -> int:
        res = await self.client.post(self.send_url, json=message.to_fcm(token), headers=headers, timeout=self.timeout)
        if res.is_success:
            return res.status_code
        try:
            payload = res.json()
        except ValueError:
            payload = None
        raise parse_fcm_error(res.status_code, res.text, payload)
