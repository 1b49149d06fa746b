"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin
from app.models.user import User, UserRole
from app.models.catalog import Brand, Manufacturer, Category
from app.models.customer import Customer, Contact
from app.models.product import Product, ProductPricingHistory
from app.models.markup_rule import MarkupRule, MarkupRuleType
from app.models.lead import Lead, LeadStatus, LeadStatusChange, LEAD_STAGE_CLOSED_WON
from app.models.source_document import Rfp, SiteSurvey
from app.models.proposal import Proposal, ProposalStatus, ProposalStage, ErpSyncStatus
from app.models.project import Project, ProjectStatus, ProjectAssignment, AssignmentRole

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "User",
    "UserRole",
    "Brand",
    "Manufacturer",
    "Category",
    "Customer",
    "Contact",
    "Product",
    "ProductPricingHistory",
    "MarkupRule",
    "MarkupRuleType",
    "Lead",
    "LeadStatus",
    "LeadStatusChange",
    "LEAD_STAGE_CLOSED_WON",
    "Rfp",
    "SiteSurvey",
    "Proposal",
    "ProposalStatus",
    "ProposalStage",
    "ErpSyncStatus",
    "Project",
    "ProjectStatus",
    "ProjectAssignment",
    "AssignmentRole",
]
