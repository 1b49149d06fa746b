"""
User model.

WHY: Users are supplied by the identity service. We keep a local row so
audit fields (changed_by, generated_by) and project assignments can point
at a real record, and so role checks use current data instead of token claims.
"""

import enum
from sqlalchemy import Column, String, Boolean

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin, enum_column_type


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    WHY: Markup rules and product pricing are restricted to ADMIN and
    MANAGER; everyone else can work proposals.
    """

    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"


class User(Base, PrimaryKeyMixin, TimestampMixin):
    """
    User model representing individuals who use the platform.
    """

    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # WHY: Default USER role ensures least-privilege access
    role = Column(enum_column_type(UserRole, "userrole"), nullable=False, default=UserRole.USER)

    # WHY: is_active allows disabling users without losing audit trail
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
