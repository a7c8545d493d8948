"""Authentication Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserContext(BaseModel):
    """Authenticated user context extracted from JWT token.

    Populated by the auth dependency from the validated JWT.
    """

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID = Field(description="Unique identifier for the user (from JWT sub claim)")
    email: str | None = Field(default=None, description="User's email address if available")
    role: str | None = Field(default=None, description="User's role ('customer' or 'admin')")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenPayload(BaseModel):
    """JWT token payload structure for customer access tokens."""

    model_config = ConfigDict(from_attributes=True)

    sub: str = Field(description="Subject - the user's UUID")
    email: str | None = Field(default=None, description="User's email address")
    role: str | None = Field(default=None, description="User's role")
    exp: int = Field(description="Expiration timestamp (Unix epoch)")
    iat: int = Field(description="Issued at timestamp (Unix epoch)")

    def to_user_context(self) -> UserContext:
        """Convert token payload to user context."""
        return UserContext(
            user_id=UUID(self.sub),
            email=self.email,
            role=self.role,
        )
