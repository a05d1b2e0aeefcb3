"""
Role ladder and the value types the access-control core works on.
"""
import enum
from pydantic import BaseModel, ConfigDict


class Role(str, enum.Enum):
    """The five organizational roles, lowest authority first."""
    USER = "user"
    TL = "tl"
    MANAGER = "manager"
    ADMIN = "admin"
    MASTER = "master"

    @property
    def rank(self) -> int:
        return ROLE_RANKS[self]

    def outranks(self, other: "Role") -> bool:
        return self.rank > other.rank


ROLE_RANKS: dict[Role, int] = {
    Role.USER: 0,
    Role.TL: 1,
    Role.MANAGER: 2,
    Role.ADMIN: 3,
    Role.MASTER: 4,
}


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Actor(BaseModel):
    """Authenticated principal for the current request."""
    id: str
    role: Role

    model_config = ConfigDict(frozen=True)


class UserRecord(BaseModel):
    """
    The slice of a directory entry that access control depends on.

    Built from ORM rows with UserRecord.model_validate(user).
    """
    id: str
    role: Role
    manager_id: str | None = None
    tl_id: str | None = None
    status: UserStatus = UserStatus.ACTIVE

    model_config = ConfigDict(frozen=True, from_attributes=True)

    def as_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)
