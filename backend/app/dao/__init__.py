"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from app.dao.base import BaseDAO
from app.dao.user import UserDAO
from app.dao.catalog import BrandDAO, ManufacturerDAO, CategoryDAO, MarkupTargetDAO
from app.dao.crm import CustomerDAO, RfpDAO, SiteSurveyDAO
from app.dao.lead import LeadDAO
from app.dao.markup_rule import MarkupRuleDAO
from app.dao.product import ProductDAO, ProductPricingHistoryDAO
from app.dao.project import ProjectDAO, ProjectAssignmentDAO
from app.dao.proposal import ProposalDAO

__all__ = [
    "BaseDAO",
    "UserDAO",
    "BrandDAO",
    "ManufacturerDAO",
    "CategoryDAO",
    "MarkupTargetDAO",
    "CustomerDAO",
    "RfpDAO",
    "SiteSurveyDAO",
    "LeadDAO",
    "MarkupRuleDAO",
    "ProductDAO",
    "ProductPricingHistoryDAO",
    "ProjectDAO",
    "ProjectAssignmentDAO",
    "ProposalDAO",
]
