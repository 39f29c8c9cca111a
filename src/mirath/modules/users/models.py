"""User database models."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mirath.core.constants import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH, MAX_USER_TYPE_LENGTH
from mirath.core.database.base import Base, IdMixin, TimestampMixin
from mirath.core.permissions.roles import UserType


if TYPE_CHECKING:
    from mirath.modules.firms.models import FirmMembership


class User(Base, IdMixin, TimestampMixin):
    """User model representing a client, lawyer or administrator.

    Users are created at sign-up by the auth provider and are never hard
    deleted. Joining a firm may promote ``user_type``.

    Attributes:
        email: Unique email address
        name: Display name
        user_type: Global account type (client, lawyer, admin, super_admin)
        preferred_language: UI language code
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    user_type: Mapped[str] = mapped_column(
        String(MAX_USER_TYPE_LENGTH),
        default=UserType.CLIENT.value,
        nullable=False,
    )
    preferred_language: Mapped[str] = mapped_column(
        String(8),
        default="en",
        nullable=False,
    )

    memberships: Mapped[list["FirmMembership"]] = relationship(
        "FirmMembership",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, user_type={self.user_type})>"
