"""
Project and project assignment models.

WHAT: Delivery projects created when a proposal is accepted or won, and
the role-tagged team attached to them.

WHY: Winning a proposal hands the work from sales to delivery. The project
inherits its name and planned dates from the proposal, and its team from
the people who worked the deal.

HOW: ProjectAssignment is unique per (project, user); the conversion code
de-duplicates before inserting, the constraint backs that up.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped

from app.models.base import Base, enum_column_type


class ProjectStatus(str, Enum):
    """
    Project lifecycle status.

    - ACTIVE: Work in progress (projects from won proposals start here)
    - ON_HOLD: Temporarily paused
    - COMPLETED: All work finished
    - CANCELLED: Terminated before completion
    """

    ACTIVE = "active"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class AssignmentRole:
    """Role labels on project assignments."""

    PROJECT_MANAGER = "Project Manager"
    MEMBER = "Member"


class Project(Base):
    """
    Delivery project.

    Attributes:
        id: Primary key
        name: Project name
        description: Scope summary
        status: Lifecycle status
        lead_id: Lead the project was converted from
        contact_id: Customer contact
        start_date / end_date: Planned dates
    """

    __tablename__ = "projects"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    name: Mapped[str] = Column(String(255), nullable=False, comment="Project name")
    description: Mapped[Optional[str]] = Column(Text, nullable=True)
    status: Mapped[ProjectStatus] = Column(
        enum_column_type(ProjectStatus, "projectstatus"),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )

    lead_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("leads.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    contact_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("contacts.id", ondelete="SET NULL"),
        nullable=True,
    )

    start_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    end_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    created_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    # WHY: selectin so the team can be serialized without async lazy loads
    assignments: Mapped[List["ProjectAssignment"]] = relationship(
        "ProjectAssignment",
        back_populates="project",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProjectAssignment.id",
    )

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name}, status={self.status})>"


class ProjectAssignment(Base):
    """Role-tagged link between a project and a user."""

    __tablename__ = "project_assignments"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_assignments_project_user"),
    )

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)
    project_id: Mapped[int] = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = Column(String(50), nullable=False, default=AssignmentRole.MEMBER)
    created_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    project: Mapped["Project"] = relationship("Project", back_populates="assignments")

    def __repr__(self) -> str:
        return f"<ProjectAssignment(project_id={self.project_id}, user_id={self.user_id}, role={self.role})>"
