"""Law firm and membership database models."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mirath.core.constants import (
    MAX_EMAIL_LENGTH,
    MAX_ID_LENGTH,
    MAX_LICENSE_NUMBER_LENGTH,
    MAX_NAME_LENGTH,
    MAX_PHONE_LENGTH,
    MAX_ROLE_NAME_LENGTH,
)
from mirath.core.database.base import Base, IdMixin, TimestampMixin
from mirath.core.permissions.roles import Role


if TYPE_CHECKING:
    from mirath.modules.users.models import User


def utcnow() -> datetime:
    return datetime.now(UTC)


class LawFirm(Base, IdMixin, TimestampMixin):
    """A law firm, the tenant boundary of the platform.

    Attributes:
        name: Firm name
        license_number: Unique trade license number
        email: Contact email
        phone: Contact phone number
        subscription_tier: starter, professional or enterprise
        is_verified: Whether the license has been verified
        is_active: Whether the firm can be used; firms are deactivated,
            never deleted
    """

    __tablename__ = "law_firms"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    license_number: Mapped[str] = mapped_column(
        String(MAX_LICENSE_NUMBER_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
    )
    phone: Mapped[str | None] = mapped_column(
        String(MAX_PHONE_LENGTH),
        nullable=True,
    )
    subscription_tier: Mapped[str] = mapped_column(
        String(20),
        default="starter",
        nullable=False,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    memberships: Mapped[list["FirmMembership"]] = relationship(
        "FirmMembership",
        back_populates="law_firm",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<LawFirm(id={self.id}, name={self.name})>"


class FirmMembership(Base, IdMixin):
    """A user's role in a law firm.

    There is at most one membership per (firm, user) pair. The service
    layer checks this before inserting and the unique constraint backs it.

    Attributes:
        law_firm_id: The firm
        user_id: The member
        role: Firm role
        permissions: Extra permission tags granted on top of the role
        joined_at: When the user joined; the earliest is the primary firm
    """

    __tablename__ = "law_firm_members"
    __table_args__ = (
        UniqueConstraint("law_firm_id", "user_id", name="uq_law_firm_member"),
        Index("ix_law_firm_members_user_joined", "user_id", "joined_at"),
    )

    law_firm_id: Mapped[str] = mapped_column(
        String(MAX_ID_LENGTH),
        ForeignKey("law_firms.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(MAX_ID_LENGTH),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[Role] = mapped_column(
        Enum(
            Role,
            native_enum=False,
            length=MAX_ROLE_NAME_LENGTH,
            values_callable=lambda roles: [role.value for role in roles],
            validate_strings=True,
        ),
        nullable=False,
    )
    permissions: Mapped[list[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    law_firm: Mapped["LawFirm"] = relationship(
        "LawFirm",
        back_populates="memberships",
    )
    user: Mapped["User"] = relationship(
        "User",
        back_populates="memberships",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<FirmMembership(law_firm_id={self.law_firm_id}, "
            f"user_id={self.user_id}, role={self.role})>"
        )
