"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from app.db.enums import Role


class TokenPayload(BaseModel):
    """Decoded JWT payload structure."""
    sub: UUID  # user_id
    role: str
    email: str = ""


class UserSession(BaseModel):
    """
    Session context for authenticated console requests.

    Sessions are issued by the auth service; this API only verifies them.
    """
    user_id: UUID
    role: Role  # Validated enum
    email: str
