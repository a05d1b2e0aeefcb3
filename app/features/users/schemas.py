"""
Pydantic schemas for user directory requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.features.hierarchy.roles import Role, UserStatus


class UserBase(BaseModel):
    """Profile fields shared by requests and responses."""
    phone_num: str | None = Field(None, max_length=30)
    department: str | None = Field(None, max_length=100)
    position: str | None = Field(None, max_length=100)


class UserCreate(UserBase):
    """
    Schema for creating a directory record.

    email and names fall back to the Appwrite account when omitted.
    """
    appwrite_id: str = Field(..., min_length=1, max_length=255, description="Appwrite user ID from authentication")
    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: Role = Role.USER
    manager_id: str | None = Field(None, description="Owning manager (required for user and tl)")
    tl_id: str | None = Field(None, description="Owning team leader (required for user)")


class UserUpdate(UserBase):
    """Schema for updating another user; only fields sent are applied."""
    email: EmailStr | None = None
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    role: Role | None = None
    status: UserStatus | None = None
    manager_id: str | None = None
    tl_id: str | None = None

    def changes(self) -> dict:
        """Fields explicitly sent; null clears links but is ignored elsewhere."""
        data = self.model_dump(exclude_unset=True)
        return {
            key: value for key, value in data.items()
            if value is not None or key in NULLABLE_FIELDS
        }


class ProfileUpdate(UserBase):
    """Schema for the current user's own profile."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)

    def changes(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        return {
            key: value for key, value in data.items()
            if value is not None or key in NULLABLE_FIELDS
        }


NULLABLE_FIELDS = frozenset({"manager_id", "tl_id", "phone_num", "department", "position"})


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    email: str
    first_name: str
    last_name: str
    role: Role
    status: UserStatus
    manager_id: str | None = None
    tl_id: str | None = None
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
