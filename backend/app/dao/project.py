"""
Project Data Access Objects.

WHAT: Database operations for projects and their team assignments.
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.project import Project, ProjectAssignment


class ProjectDAO(BaseDAO[Project]):
    """
    Data Access Object for Project model.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize ProjectDAO.

        Args:
            session: Async database session
        """
        super().__init__(Project, session)

    async def get_by_lead(self, lead_id: int) -> Optional[Project]:
        """
        Project converted from a lead.

        Args:
            lead_id: Lead ID

        Returns:
            Project or None
        """
        result = await self.session.execute(
            select(Project).where(Project.lead_id == lead_id).order_by(Project.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def reload_assignments(self, project: Project) -> Project:
        """
        Refresh the team collection after assignments were inserted.

        WHY: The selectin-loaded collection was populated (empty) when the
        project was created; rows added since are not in it yet.
        """
        await self.session.refresh(project, attribute_names=["assignments"])
        return project


class ProjectAssignmentDAO(BaseDAO[ProjectAssignment]):
    """
    Data Access Object for ProjectAssignment model.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(ProjectAssignment, session)

    async def get_for_project(self, project_id: int) -> List[ProjectAssignment]:
        """
        Team of a project, in insertion order.

        Args:
            project_id: Project ID

        Returns:
            Assignment rows
        """
        result = await self.session.execute(
            select(ProjectAssignment)
            .where(ProjectAssignment.project_id == project_id)
            .order_by(ProjectAssignment.id)
        )
        return list(result.scalars().all())
