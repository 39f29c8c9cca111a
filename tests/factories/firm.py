"""Factory for LawFirm model."""

from uuid import uuid4

from polyfactory import Ignore
from polyfactory.factories.sqlalchemy_factory import SQLAlchemyFactory

from mirath.core.database import generate_id
from mirath.modules.firms.models import LawFirm


class LawFirmFactory(SQLAlchemyFactory[LawFirm]):
    """Factory for generating LawFirm test data."""

    __model__ = LawFirm
    __set_relationships__ = False

    created_at = Ignore()
    updated_at = Ignore()

    @classmethod
    def id(cls) -> str:
        return generate_id()

    @classmethod
    def name(cls) -> str:
        """Generate a firm name."""
        return f"{cls.__faker__.last_name()} & Partners Advocates"

    @classmethod
    def license_number(cls) -> str:
        """Generate a unique trade license number."""
        return f"DXB-{uuid4().hex[:10].upper()}"

    @classmethod
    def email(cls) -> str:
        return f"office-{uuid4().hex[:8]}@example.ae"

    @classmethod
    def phone(cls) -> str:
        return "+971 4 000 0000"

    @classmethod
    def subscription_tier(cls) -> str:
        return "starter"

    @classmethod
    def is_verified(cls) -> bool:
        return True

    @classmethod
    def is_active(cls) -> bool:
        """Default to active."""
        return True
