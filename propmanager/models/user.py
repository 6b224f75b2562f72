"""
User model with authentication and role management.
Handles accounts for administrators, property managers, owners, tenants and technicians.
"""

from sqlalchemy import String, Boolean, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from propmanager.database import Base
from passlib.context import CryptContext
from email_validator import validate_email, EmailNotValidError
import enum
import uuid
from typing import Optional

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    ADMIN = "ADMIN"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    OWNER = "OWNER"
    TENANT = "TENANT"
    TECHNICIAN = "TECHNICIAN"


# Roles allowed to read organization property data
PROPERTY_READ_ROLES = (UserRole.ADMIN, UserRole.PROPERTY_MANAGER, UserRole.OWNER)

# Roles allowed to create, update and delete properties
PROPERTY_WRITE_ROLES = (UserRole.ADMIN, UserRole.PROPERTY_MANAGER)


class User(Base):
    """
    User model for authentication and authorization.
    The org_id column is a weak reference: it carries no foreign key, so it may
    point at an organization that no longer exists. OrganizationService
    recovers from that case.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="User's display name"
    )

    company: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Company name, used to name the user's organization"
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.PROPERTY_MANAGER,
        index=True,
        comment="User role for access control"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the user account is active"
    )

    org_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
        comment="Organization the user belongs to (weak reference)"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        """Hash a password using bcrypt."""
        if not password or len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")

        return pwd_context.hash(password)

    def verify_password(self, password: str) -> bool:
        return pwd_context.verify(password, self.hashed_password)

    @property
    def can_read_properties(self) -> bool:
        return self.role in PROPERTY_READ_ROLES

    @property
    def can_write_properties(self) -> bool:
        return self.role in PROPERTY_WRITE_ROLES

    def to_dict(self) -> dict:
        """Convert user to dictionary (excluding sensitive data)."""
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "company": self.company,
            "role": self.role.value,
            "is_active": self.is_active,
            "org_id": str(self.org_id) if self.org_id else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
