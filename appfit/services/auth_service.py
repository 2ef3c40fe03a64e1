"""Authentication service for Supabase JWT verification."""

from dataclasses import dataclass
from typing import Optional
import jwt

from appfit.exceptions import InvalidTokenError, MissingTokenError
from appfit.utils.logger import get_logger

log = get_logger(__name__)


@dataclass
class AuthenticatedUser:
    """Represents an authenticated user from a Supabase access token."""

    user_id: str
    email: Optional[str] = None


class AuthService:
    """Service for verifying Supabase access tokens signed with the project JWT secret."""

    ALGORITHMS = ["HS256"]

    def __init__(self, jwt_secret: str, audience: str = "authenticated") -> None:
        self._jwt_secret = jwt_secret
        self._audience = audience

    async def verify_token(self, authorization_header: Optional[str]) -> AuthenticatedUser:
        """
        Verify a Supabase JWT and extract user information.

        Args:
            authorization_header: The Authorization header value (Bearer <token>)

        Returns:
            AuthenticatedUser with the account id from the ``sub`` claim

        Raises:
            MissingTokenError: If no token is provided
            InvalidTokenError: If token is invalid, expired or has no subject
        """
        if not authorization_header:
            raise MissingTokenError()

        # Extract token from Bearer scheme
        parts = authorization_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise InvalidTokenError("Invalid authorization header format")

        token = parts[1]

        if not self._jwt_secret:
            log.error("token verification unavailable", reason="jwt secret not configured")
            raise InvalidTokenError("Token verification is not configured")

        try:
            payload = jwt.decode(
                token,
                self._jwt_secret,
                algorithms=self.ALGORITHMS,
                audience=self._audience,
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_nbf": True,
                },
            )

            user_id = payload.get("sub")
            if not user_id or not str(user_id).strip():
                raise InvalidTokenError("Token missing user identifier")

            email = payload.get("email")

            log.debug("token verified", user_id=user_id, email=email)

            return AuthenticatedUser(user_id=str(user_id), email=email)

        except jwt.ExpiredSignatureError:
            log.warning("token expired")
            raise InvalidTokenError("Token has expired")
        except InvalidTokenError:
            raise
        except jwt.InvalidTokenError as e:
            log.warning("token invalid", error=str(e))
            raise InvalidTokenError(f"Token validation failed: {str(e)}")
        except Exception as e:
            log.error("token verification failed", error=str(e), error_type=type(e).__name__)
            raise InvalidTokenError("Token verification failed")


# Singleton instance
_auth_service: Optional[AuthService] = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        from appfit.config import get_settings

        settings = get_settings()
        _auth_service = AuthService(
            jwt_secret=settings.supabase_jwt_secret,
            audience=settings.supabase_jwt_audience,
        )
    return _auth_service
