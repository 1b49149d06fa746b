"""
Test factories for creating test data.

WHY: Factories provide a consistent, reusable way to create test objects,
reducing duplication and making tests more maintainable. Using factories
instead of manual object creation ensures tests stay consistent when models change.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import create_access_token
from app.models.user import User, UserRole
from app.models.catalog import Brand, Manufacturer, Category
from app.models.customer import Customer, Contact
from app.models.product import Product
from app.models.markup_rule import MarkupRule, MarkupRuleType
from app.models.lead import Lead, LeadStatus
from app.models.source_document import Rfp, SiteSurvey
from app.models.proposal import Proposal, ProposalStatus


def auth_headers(user: User) -> Dict[str, str]:
    """
    Bearer header for a user.

    WHY: Endpoints only need a valid token carrying user_id; issuing it
    directly keeps API tests independent of any login flow.
    """
    token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


async def _persist(session: AsyncSession, obj: Any) -> Any:
    session.add(obj)
    await session.commit()
    await session.refresh(obj)
    return obj


class UserFactory:
    """
    Factory for creating User test instances.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        email: str = "test@example.com",
        name: str = "Test User",
        role: UserRole = UserRole.USER,
        is_active: bool = True,
    ) -> User:
        """
        Create a user for testing.

        Args:
            session: Database session
            email: User email (unique)
            name: Display name
            role: User role
            is_active: Whether the account is active

        Returns:
            Created User instance
        """
        return await _persist(
            session,
            User(email=email, name=name, role=role, is_active=is_active),
        )


class BrandFactory:
    """Factory for Brand."""

    @staticmethod
    async def create(session: AsyncSession, name: str = "Hikvision") -> Brand:
        return await _persist(session, Brand(name=name))


class ManufacturerFactory:
    """Factory for Manufacturer."""

    @staticmethod
    async def create(
        session: AsyncSession,
        name: str = "Acme Manufacturing",
        code: Optional[str] = None,
    ) -> Manufacturer:
        return await _persist(session, Manufacturer(name=name, code=code))


class CategoryFactory:
    """Factory for Category."""

    @staticmethod
    async def create(session: AsyncSession, name: str = "Cameras") -> Category:
        return await _persist(session, Category(name=name))


class CustomerFactory:
    """
    Factory for creating Customer test instances.

    WHY: trdr defaults to a value so ERP paths work unless a test
    explicitly clears it.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        name: str = "Test Customer SA",
        trdr: Optional[str] = "1234",
        email: Optional[str] = "customer@example.com",
    ) -> Customer:
        return await _persist(session, Customer(name=name, trdr=trdr, email=email))


class ContactFactory:
    """Factory for Contact."""

    @staticmethod
    async def create(
        session: AsyncSession,
        customer_id: Optional[int] = None,
        name: str = "Jane Contact",
        email: Optional[str] = "contact@example.com",
    ) -> Contact:
        return await _persist(
            session,
            Contact(name=name, email=email, customer_id=customer_id),
        )


class ProductFactory:
    """
    Factory for creating Product test instances.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        name: str = "IP Camera 4MP",
        cost: Optional[Decimal] = Decimal("100.00"),
        erp_code: Optional[str] = None,
        code: Optional[str] = None,
        brand_id: Optional[int] = None,
        manufacturer_id: Optional[int] = None,
        category_id: Optional[int] = None,
        manual_b2b_price: Optional[Decimal] = None,
        manual_retail_price: Optional[Decimal] = None,
    ) -> Product:
        """
        Create a product for testing.

        Args:
            session: Database session
            name: Product name
            cost: Purchase cost
            erp_code: ERP material id
            code: Internal product code
            brand_id: Brand FK
            manufacturer_id: Manufacturer FK
            category_id: Category FK
            manual_b2b_price: Manual B2B override
            manual_retail_price: Manual retail override

        Returns:
            Created Product instance
        """
        return await _persist(
            session,
            Product(
                name=name,
                cost=cost,
                erp_code=erp_code,
                code=code,
                brand_id=brand_id,
                manufacturer_id=manufacturer_id,
                category_id=category_id,
                manual_b2b_price=manual_b2b_price,
                manual_retail_price=manual_retail_price,
            ),
        )


class MarkupRuleFactory:
    """
    Factory for creating MarkupRule test instances.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        name: str = "Global markup",
        type: MarkupRuleType = MarkupRuleType.GLOBAL,
        target_id: Optional[int] = None,
        priority: int = 0,
        b2b_markup_percent: Decimal = Decimal("20"),
        retail_markup_percent: Decimal = Decimal("40"),
        min_b2b_price: Optional[Decimal] = None,
        max_b2b_price: Optional[Decimal] = None,
        min_retail_price: Optional[Decimal] = None,
        max_retail_price: Optional[Decimal] = None,
        is_active: bool = True,
    ) -> MarkupRule:
        return await _persist(
            session,
            MarkupRule(
                name=name,
                type=type,
                target_id=target_id,
                priority=priority,
                b2b_markup_percent=b2b_markup_percent,
                retail_markup_percent=retail_markup_percent,
                min_b2b_price=min_b2b_price,
                max_b2b_price=max_b2b_price,
                min_retail_price=min_retail_price,
                max_retail_price=max_retail_price,
                is_active=is_active,
            ),
        )


class LeadFactory:
    """Factory for Lead."""

    @staticmethod
    async def create(
        session: AsyncSession,
        title: str = "Warehouse CCTV upgrade",
        status: LeadStatus = LeadStatus.IN_PROGRESS,
        stage: Optional[str] = None,
        customer_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        assignee_id: Optional[int] = None,
    ) -> Lead:
        return await _persist(
            session,
            Lead(
                title=title,
                status=status,
                stage=stage,
                customer_id=customer_id,
                contact_id=contact_id,
                assignee_id=assignee_id,
            ),
        )


class RfpFactory:
    """
    Factory for creating Rfp test instances.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        title: str = "Warehouse security RFP",
        description: Optional[str] = "Cameras and recorders for the main warehouse",
        customer_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        lead_id: Optional[int] = None,
        equipment: Optional[List[Dict[str, Any]]] = None,
    ) -> Rfp:
        return await _persist(
            session,
            Rfp(
                title=title,
                description=description,
                customer_id=customer_id,
                contact_id=contact_id,
                lead_id=lead_id,
                requirements={"equipment": equipment or []},
            ),
        )


class SiteSurveyFactory:
    """Factory for SiteSurvey."""

    @staticmethod
    async def create(
        session: AsyncSession,
        title: str = "Warehouse survey",
        description: Optional[str] = "Two entrances and a loading dock",
        customer_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        lead_id: Optional[int] = None,
        equipment: Optional[List[Dict[str, Any]]] = None,
    ) -> SiteSurvey:
        return await _persist(
            session,
            SiteSurvey(
                title=title,
                description=description,
                customer_id=customer_id,
                contact_id=contact_id,
                lead_id=lead_id,
                equipment=equipment or [],
            ),
        )


class ProposalFactory:
    """
    Factory for creating Proposal test instances.
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        customer_id: int,
        status: ProposalStatus = ProposalStatus.DRAFT,
        lead_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        rfp_id: Optional[int] = None,
        site_survey_id: Optional[int] = None,
        project_title: Optional[str] = "Warehouse CCTV",
        equipment: Optional[List[Dict[str, Any]]] = None,
        erp_quote_number: Optional[str] = None,
        word_document_url: Optional[str] = None,
        pdf_document_url: Optional[str] = None,
        approved_date: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Proposal:
        """
        Create a proposal for testing.

        Args:
            session: Database session
            customer_id: Customer FK (required)
            status: Lifecycle status
            lead_id: Originating lead
            contact_id: Customer contact
            rfp_id: Source RFP
            site_survey_id: Source site survey
            project_title: Project title
            equipment: Equipment snapshot
            erp_quote_number: ERP quote code
            word_document_url: Generated Word document
            pdf_document_url: Generated PDF document
            approved_date: Approval stamp
            notes: Existing notes log

        Returns:
            Created Proposal instance
        """
        return await _persist(
            session,
            Proposal(
                customer_id=customer_id,
                status=status,
                lead_id=lead_id,
                contact_id=contact_id,
                rfp_id=rfp_id,
                site_survey_id=site_survey_id,
                project_title=project_title,
                equipment=equipment,
                erp_quote_number=erp_quote_number,
                word_document_url=word_document_url,
                pdf_document_url=pdf_document_url,
                approved_date=approved_date,
                notes=notes,
            ),
        )
