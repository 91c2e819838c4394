"""JWT implementation of the PrincipalResolver interface."""

from typing import Any

from jose import JWTError, jwt
from voice_common import setup_logging

from config import AuthConfig
from domain.models import Principal
from exceptions import UnauthorizedError
from infrastructure.interfaces import PrincipalResolver

logger = setup_logging()

TENANT_CLAIM = "tenant_id"


def _tenant_from_claims(claims: dict[str, Any]) -> str | None:
    """Looks for the tenant id at the top level, then in app and user metadata."""
    if claims.get(TENANT_CLAIM):
        return str(claims[TENANT_CLAIM])
    for section in ("app_metadata", "user_metadata"):
        metadata = claims.get(section) or {}
        if isinstance(metadata, dict) and metadata.get(TENANT_CLAIM):
            return str(metadata[TENANT_CLAIM])
    return None


class JwtPrincipalResolver(PrincipalResolver):
    """Validates HS256 bearer tokens signed with the shared secret."""

    def __init__(self, config: AuthConfig):
        self._config = config

    def resolve(self, token: str) -> Principal:
        if not self._config.jwt_secret:
            raise UnauthorizedError("Token verification is not configured")

        try:
            claims = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=[self._config.jwt_algorithm],
                audience=self._config.jwt_audience,
                options={"verify_aud": self._config.jwt_audience is not None},
            )
        except JWTError as e:
            logger.warning("Bearer token rejected", extra={"error": str(e)})
            raise UnauthorizedError("Invalid token", e) from e

        user_id = claims.get("sub")
        if not user_id:
            raise UnauthorizedError("Token has no subject")

        tenant_id = _tenant_from_claims(claims)
        if not tenant_id:
            raise UnauthorizedError("Token has no tenant")

        return Principal(user_id=str(user_id), tenant_id=tenant_id)
