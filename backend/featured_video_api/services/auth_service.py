"""JWT authentication service"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

import jwt

logger = logging.getLogger(__name__)


class AuthService:
    """Handle JWT token creation and validation"""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_days: int = 30):
        if not secret_key:
            raise ValueError("JWT secret key cannot be empty")

        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_days = expire_days

    def create_access_token(self, user_id: str, capabilities: Iterable[str] = ()) -> str:
        """Create a JWT access token carrying the user's capabilities"""
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "capabilities": sorted(set(capabilities)),
            "exp": now + timedelta(days=self.expire_days),
            "iat": now,
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"JWT created for user: {user_id}")

        return token

    def verify_token(self, token: str) -> dict | None:
        """Verify a JWT token and return the payload if valid"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            if payload.get("sub") is None:
                logger.warning("Token missing sub")
                return None
            return payload

        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            return None

    @staticmethod
    def has_capability(payload: dict, capability: str) -> bool:
        capabilities = payload.get("capabilities") or []
        return isinstance(capabilities, list) and capability in capabilities
