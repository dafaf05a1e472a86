"""
Profile model for the ampet-core package.

This module contains the Profile SQLAlchemy model shared by the two
roles of the platform: tutors (pet owners) and veterinarians.
Authentication lives in an external identity provider; a profile only
keeps the provider's user id.
"""

import enum
import uuid
from typing import Any, Optional

from sqlalchemy import Enum, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel


class UserRole(enum.Enum):
    """Enumeration of user roles in the pet-health platform."""

    VET = "vet"
    TUTOR = "tutor"


class ProfileStatus(enum.Enum):
    """Enumeration of profile account statuses."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING_VERIFICATION = "pending_verification"


class Profile(BaseModel):
    """
    Profile of a tutor or veterinarian.

    Tutors created by the bulk importer start in PENDING_VERIFICATION and
    carry the id of the veterinarian who invited them.
    """

    __tablename__ = "profiles"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize Profile with default values."""
        if "role" not in kwargs:
            kwargs["role"] = UserRole.TUTOR
        if "status" not in kwargs:
            kwargs["status"] = ProfileStatus.PENDING_VERIFICATION

        super().__init__(**kwargs)

    auth_user_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Identifier of the user in the external identity provider",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Contact email, unique per profile",
    )

    full_name: Mapped[str] = mapped_column(
        String(200), nullable=False, comment="Display name"
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True, comment="Contact phone number"
    )

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole),
        nullable=False,
        default=UserRole.TUTOR,
        index=True,
        comment="Role in the platform",
    )

    status: Mapped[ProfileStatus] = mapped_column(
        Enum(ProfileStatus),
        nullable=False,
        default=ProfileStatus.PENDING_VERIFICATION,
        comment="Current status of the account",
    )

    clinic_name: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, comment="Clinic name for veterinarians"
    )

    invited_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        nullable=True,
        comment="Profile id of the veterinarian whose import created this tutor",
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_profiles_email"),
        UniqueConstraint("auth_user_id", name="uq_profiles_auth_user_id"),
        Index("idx_profiles_role_status", "role", "status"),
    )

    pets = relationship("Pet", back_populates="tutor")

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role.value}')>"

    @property
    def is_active(self) -> bool:
        """Check if the account is active."""
        return self.status == ProfileStatus.ACTIVE and not self.is_deleted

    def is_tutor(self) -> bool:
        return self.role == UserRole.TUTOR

    def is_vet(self) -> bool:
        return self.role == UserRole.VET

    def activate(self) -> None:
        """Activate the account, e.g. after the tutor accepts the invite."""
        self.status = ProfileStatus.ACTIVE
