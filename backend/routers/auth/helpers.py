from fastapi import HTTPException, status
from config import JWT_SECRET_KEY, JWT_ALGORITHM
from dependencies.caller import Caller
import jwt
import logging

logger = logging.getLogger(__name__)

class AuthHelpers:
    """Helper functions for turning identity-provider tokens into callers"""

    def __init__(self, secret_key: str = None, algorithm: str = None):
        self._secret_key = secret_key
        self._algorithm = algorithm

    @property
    def secret_key(self) -> str:
        return self._secret_key or JWT_SECRET_KEY

    @property
    def algorithm(self) -> str:
        return self._algorithm or JWT_ALGORITHM

    def verify_token(self, token: str) -> Caller:
        """
        Verify a Supabase JWT locally without calling the Supabase API
        Returns the authenticated caller named by the token's sub claim
        """
        if not self.secret_key:
            logger.error("JWT_SECRET_KEY is not configured")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Authentication is not configured"
            )

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": True,
                    "verify_iat": True,
                    "verify_signature": True,
                    "verify_aud": False
                }
            )
        except jwt.ExpiredSignatureError:
            logger.warning("JWT token expired")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired"
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid JWT token: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token"
            )

        # the anon key is itself a JWT with role "anon" and no subject
        if payload.get("role") == "anon" or payload.get("is_anonymous"):
            return Caller.anonymous()

        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: missing user ID"
            )

        try:
            return Caller.authenticated(user_id, email=payload.get("email"))
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token: malformed user ID"
            )

auth_helpers = AuthHelpers()
