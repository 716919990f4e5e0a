# app/services/credential_minter.py
"""
Credential Minter: aserción firmada de la cuenta de servicio -> access token OAuth2.
Única operación pública: mint(). Firma y decodificación de llave viven en core/security.
Sin reintentos aquí; sin caché entre invocaciones.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import httpx

from ..core.errors import AuthError
from ..core.security import build_assertion_claims, load_signing_key, sign_assertion
from ..models.notification import AccessToken

log = logging.getLogger("app.credentials")

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
DEFAULT_TOKEN_TTL = 3600
MAX_TOKEN_TTL = 86400


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialMinter:
    def __init__(
        self,
        *,
        client: httpx.AsyncClient,
        issuer: str,
        private_key: str,
        audience: str,
        scope: str,
        timeout: float = 10.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.issuer = issuer
        self.audience = audience
        self.scope = scope
        self.timeout = timeout
        self.clock = clock
        self._signing_key = load_signing_key(private_key)

    def build_assertion(self) -> str:
        claims = build_assertion_claims(
            issuer=self.issuer, scope=self.scope, audience=self.audience, now=self.clock()
        )
        return sign_assertion(claims, self._signing_key)

    async def mint(self) -> AccessToken:
        assertion = self.build_assertion()
        issued_at = self.clock()
        try:
            res = await self.client.post(
                self.audience,
                data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise AuthError(f"Intercambio de credencial falló: {type(e).__name__}: {e}") from e

        if not res.is_success:
            raise AuthError(
                f"Token endpoint respondió {res.status_code}",
                status_code=res.status_code,
                body=res.text,
            )

        try:
            data = res.json()
        except ValueError as e:
            raise AuthError("Respuesta del token endpoint no es JSON", status_code=res.status_code, body=res.text) from e

        value = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(value, str) or not value:
            raise AuthError("Respuesta sin access_token", status_code=res.status_code, body=res.text)

        try:
            ttl = int(data.get("expires_in", DEFAULT_TOKEN_TTL))
        except (TypeError, ValueError, OverflowError):
            ttl = DEFAULT_TOKEN_TTL
        if ttl <= 0:
            ttl = DEFAULT_TOKEN_TTL
        ttl = min(ttl, MAX_TOKEN_TTL)

        log.info(f"Access token FCM obtenido (expira en {ttl}s)")
        return AccessToken(value=value, expires_at=issued_at + timedelta(seconds=ttl))
