import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from app.core.config import settings
from app.schemas.context import UserContext

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:

    @staticmethod
    def decode_token(token: str) -> UserContext:
        """Verifica il JWT e ne estrae (user_id, role)."""
        try:
            claims = jwt.decode(
                token,
                settings.jwt_public_key,
                algorithms=[settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise _unauthorized("Token expired")
        except jwt.InvalidTokenError as e:
            logger.info("Token non valido: %s", e)
            raise _unauthorized("Invalid token")

        user_id = claims.get("sub") or claims.get("user_id")
        if not user_id:
            raise _unauthorized("Invalid token")
        try:
            return UserContext(user_id=str(user_id), role=claims.get("role"))
        except ValidationError:
            raise _unauthorized("Unknown role")

    @staticmethod
    async def get_current_user(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    ) -> UserContext:
        if credentials is None or not credentials.credentials:
            raise _unauthorized("Not authenticated")
        return AuthService.decode_token(credentials.credentials)
