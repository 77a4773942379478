"""
Caller identity handed to every data-access call

The identity provider (Supabase Auth) issues the account id; this module only
carries it. Nothing here reads ambient request state.
"""
from pydantic import BaseModel, ConfigDict, model_validator
from typing import Optional
import uuid

ANON = "anon"
AUTHENTICATED = "authenticated"
SERVICE_ROLE = "service_role"


class Caller(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: Optional[uuid.UUID] = None
    role: str = ANON
    email: Optional[str] = None

    @model_validator(mode="after")
    def check_identity(self):
        if self.role not in (ANON, AUTHENTICATED, SERVICE_ROLE):
            raise ValueError(f"Unknown caller role {self.role}")
        if self.role == AUTHENTICATED and self.user_id is None:
            raise ValueError("Authenticated callers need a user id")
        if self.role == ANON and self.user_id is not None:
            raise ValueError("Anonymous callers cannot carry a user id")
        return self

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls()

    @classmethod
    def authenticated(cls, user_id, email: Optional[str] = None) -> "Caller":
        if not isinstance(user_id, uuid.UUID):
            user_id = uuid.UUID(str(user_id))
        return cls(user_id=user_id, role=AUTHENTICATED, email=email)

    @classmethod
    def service(cls) -> "Caller":
        return cls(role=SERVICE_ROLE)

    @property
    def is_anonymous(self) -> bool:
        return self.role == ANON

    @property
    def is_service(self) -> bool:
        return self.role == SERVICE_ROLE

    def __str__(self) -> str:
        if self.user_id is not None:
            return f"{self.role}:{self.user_id}"
        return self.role
