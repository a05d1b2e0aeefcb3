"""
User directory model with ULID primary keys.
"""
from datetime import datetime
from sqlalchemy import String, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from ulid import ULID

from app.core.database.base import Base, TimestampMixin
from app.features.hierarchy.roles import Role, UserStatus


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


def _enum_values(enum_cls) -> list[str]:
    """Store enum values ("tl") rather than member names ("TL")."""
    return [member.value for member in enum_cls]


class User(Base, TimestampMixin):
    """
    A member of the organization directory.

    manager_id and tl_id are the ownership edges of the management tree.
    Both reference users.id with ON DELETE RESTRICT so the database refuses
    to drop a record that still owns others, even if two writers race past
    the application-level dependent check.
    """
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    # Appwrite account backing this record (resolves the authenticated actor)
    appwrite_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone_num: Mapped[str | None] = mapped_column(String(30), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)

    role: Mapped[Role] = mapped_column(SQLEnum(Role, values_callable=_enum_values), default=Role.USER, nullable=False, index=True)
    status: Mapped[UserStatus] = mapped_column(SQLEnum(UserStatus, values_callable=_enum_values), default=UserStatus.ACTIVE, nullable=False)

    # Ownership edges
    manager_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )
    tl_id: Mapped[str | None] = mapped_column(
        String(26),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        index=True
    )

    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r}, role={self.role.value})>"
