"""
Configuración central de la app (fuente única de verdad).
Lee variables de entorno y expone un objeto Settings tipado.
"""
import os
from pydantic import BaseModel, Field

from .errors import ConfigError


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} debe ser numérico, llegó {raw!r}") from e


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings(BaseModel):
    MONGO_URI: str = Field(default_factory=lambda: os.getenv("MONGO_URI", "mongodb://localhost:27017"))
    MONGO_DB: str  = Field(default_factory=lambda: os.getenv("MONGO_DB", "flow_moments"))
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: _env_list("CORS_ORIGINS", "*"))
    WEBHOOK_SECRET: str = Field(default_factory=lambda: os.getenv("WEBHOOK_SECRET", ""))

    # ---- Cuenta de servicio FCM (obligatorias) ----
    FCM_PROJECT_ID: str = Field(default_factory=lambda: os.getenv("FCM_PROJECT_ID", ""))
    FCM_CLIENT_EMAIL: str = Field(default_factory=lambda: os.getenv("FCM_CLIENT_EMAIL", ""))
    FCM_PRIVATE_KEY: str = Field(default_factory=lambda: os.getenv("FCM_PRIVATE_KEY", ""))
    FCM_TOKEN_URI: str = Field(default_factory=lambda: os.getenv("FCM_TOKEN_URI", "https://oauth2.googleapis.com/token"))
    FCM_SCOPE: str = Field(default_factory=lambda: os.getenv("FCM_SCOPE", "https://www.googleapis.com/auth/cloud-platform"))

    # ---- Envío ----
    FCM_SEND_URL_TEMPLATE: str = Field(default_factory=lambda: os.getenv(
        "FCM_SEND_URL_TEMPLATE", "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"
    ))
    FCM_MAX_CONCURRENCY: int = Field(default_factory=lambda: _env_number("FCM_MAX_CONCURRENCY", "50", int))
    FCM_TIMEOUT_SECONDS: float = Field(default_factory=lambda: _env_number("FCM_TIMEOUT_SECONDS", "10", float))
    FCM_PRUNE_UNREGISTERED: bool = Field(default_factory=lambda: _env_bool("FCM_PRUNE_UNREGISTERED"))

    # ---- Plantilla del mensaje ----
    NOTIFY_TITLE: str = Field(default_factory=lambda: os.getenv("NOTIFY_TITLE", "FLOW Moments"))
    NOTIFY_BODY: str = Field(default_factory=lambda: os.getenv("NOTIFY_BODY", "{name} just shared a new moment! ✨"))
    NOTIFY_FALLBACK_NAME: str = Field(default_factory=lambda: os.getenv("NOTIFY_FALLBACK_NAME", "a friend"))
    NOTIFY_CLICK_ACTION: str = Field(default_factory=lambda: os.getenv("NOTIFY_CLICK_ACTION", "FLUTTER_NOTIFICATION_CLICK"))
    NOTIFY_SOUND: str = Field(default_factory=lambda: os.getenv("NOTIFY_SOUND", "default"))

    def require_push(self) -> None:
        """
        Valida la config de FCM al arranque. Falta de cualquiera => ConfigError
        (nunca un error por invocación).
        """
        required = ("FCM_PROJECT_ID", "FCM_CLIENT_EMAIL", "FCM_PRIVATE_KEY", "FCM_TOKEN_URI", "FCM_SCOPE")
        missing = [name for name in required if not getattr(self, name).strip()]
        if missing:
            raise ConfigError(f"Faltan variables de entorno: {', '.join(missing)}")
        if self.FCM_MAX_CONCURRENCY < 1:
            raise ConfigError("FCM_MAX_CONCURRENCY debe ser >= 1")
        if self.FCM_TIMEOUT_SECONDS <= 0:
            raise ConfigError("FCM_TIMEOUT_SECONDS debe ser > 0")

settings = Settings()
