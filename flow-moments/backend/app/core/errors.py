# app/core/errors.py
"""
Taxonomía de errores del pipeline de notificaciones.
- InputError: payload del webhook inválido (la invocación no arranca).
- StoreLookupError: falla al consultar amistades/perfiles (fatal).
- AuthError: no se pudo obtener el access token de FCM (fatal).
- DeliveryError: falla de UN destino; se captura en su DispatchOutcome.
- ConfigError: configuración incompleta al arrancar la app.
- WebhookAuthError: el llamador no presentó WEBHOOK_SECRET.
"""
from __future__ import annotations


class NotifyError(Exception):
    """Base de todos los errores del servicio."""


class ConfigError(NotifyError):
    pass


class InputError(NotifyError):
    pass


class StoreLookupError(NotifyError, LookupError):
    """Consulta a la base falló; no se acepta un set parcial de destinatarios."""


class AuthError(NotifyError):
    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DeliveryError(NotifyError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        error_code: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.error_code = error_code
        self.retryable = retryable


class WebhookAuthError(NotifyError):
    """El webhook no trae el secreto compartido esperado."""
