# app/models/notification.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


# ---------- Credenciales ----------
@dataclass(frozen=True)
class AccessToken:
    # repr=False: el bearer nunca debe acabar en logs
    value: str = field(repr=False)
    expires_at: datetime


# ---------- Mensaje ----------
class RenderedMessage(BaseModel):
    title: str
    body: str
    android: Dict[str, Any] = {}

    def to_fcm(self, token: str) -> Dict[str, Any]:
        return {
            "message": {
                "token": token,
                "notification": {"title": self.title, "body": self.body},
                "android": {"notification": dict(self.android)},
            }
        }


class MessageTemplate(BaseModel):
    title: str
    body: str  # con placeholder {name}
    fallback_name: str = "a friend"
    click_action: str = "FLUTTER_NOTIFICATION_CLICK"
    sound: str = "default"

    def render(self, author_name: Optional[str]) -> RenderedMessage:
        name = (author_name or "").strip() or self.fallback_name
        return RenderedMessage(
            title=self.title,
            body=self.body.replace("{name}", name),
            android={"click_action": self.click_action, "sound": self.sound},
        )


# ---------- Resultados ----------
@dataclass(frozen=True)
class DispatchOutcome:
    token: str
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    retryable: bool = False

    @property
    def unregistered(self) -> bool:
        return self.error_code == "UNREGISTERED"


class PipelineState(str, Enum):
    RESOLVING = "resolving"
    COLLECTING = "collecting"
    AUTHENTICATING = "authenticating"
    DISPATCHING = "dispatching"
    DONE = "done"
    NO_RECIPIENTS = "no_recipients"
    NO_TOKENS = "no_tokens"


@dataclass
class PipelineResult:
    state: PipelineState
    outcomes: List[DispatchOutcome] = field(default_factory=list)

    @property
    def notified(self) -> int:
        return len(self.outcomes)

    @property
    def delivered(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return self.notified - self.delivered

    def to_response(self) -> Dict[str, Any]:
        return {
            "success": True,
            "notified": self.notified,
            "delivered": self.delivered,
            "failed": self.failed,
            "state": self.state.value,
        }
