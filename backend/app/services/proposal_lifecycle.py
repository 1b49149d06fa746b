"""
Proposal lifecycle state machine.

WHAT: Applies status transitions to proposals, stamps dates, keeps the
notes log, and converts the originating lead into a delivery project when
a proposal is accepted or won.

WHY: Winning a proposal touches four tables (proposal, lead, lead status
audit, project + team). A half-applied conversion (lead closed but no
project, or a project with no team) is worse than none, so the status
update and the conversion commit or roll back as one unit.

HOW:
- Transition to the current status is a no-op (nothing written)
- ACCEPTED / WON stamp approved_date, REJECTED / LOST stamp rejected_date,
  WON stamps won_date; each stamp is set the first time only
- Every applied transition appends a timestamped note
- Every applied transition to ACCEPTED / WON with a lead runs the
  conversion inside atomic(), including a move from ACCEPTED to WON
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ProposalNotFoundError, ValidationError
from app.dao.lead import LeadDAO
from app.dao.project import ProjectAssignmentDAO, ProjectDAO
from app.dao.proposal import ProposalDAO
from app.db.session import atomic
from app.models.lead import LEAD_STAGE_CLOSED_WON, Lead, LeadStatus
from app.models.project import AssignmentRole, Project, ProjectStatus
from app.models.proposal import Proposal, ProposalStage, ProposalStatus


logger = logging.getLogger(__name__)

# Statuses that hand the deal over to delivery
CONVERSION_STATUSES = frozenset({ProposalStatus.ACCEPTED, ProposalStatus.WON})
APPROVAL_STATUSES = frozenset({ProposalStatus.ACCEPTED, ProposalStatus.WON})
REJECTION_STATUSES = frozenset({ProposalStatus.REJECTED, ProposalStatus.LOST})


@dataclass
class ConversionOptions:
    """
    Caller overrides for the project created on conversion.

    Every field falls back to the proposal (then the lead) when None.
    """

    project_manager_id: Optional[int] = None
    project_title: Optional[str] = None
    project_description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


@dataclass
class TransitionResult:
    """Outcome of a transition."""

    proposal: Proposal
    project: Optional[Project] = None
    lead_converted: bool = False
    changed: bool = True


def parse_status(value: Union[str, ProposalStatus]) -> ProposalStatus:
    """
    Parse a status from user input.

    Accepts the enum, its value ("won") or its name ("WON").

    Raises:
        ValidationError: Unknown status
    """
    if isinstance(value, ProposalStatus):
        return value
    try:
        return ProposalStatus(str(value).lower())
    except ValueError:
        raise ValidationError(
            message=f"Invalid proposal status: {value}",
            field="status",
            allowed=[status.value for status in ProposalStatus],
        )


def dedupe_recipients(emails: Iterable[str]) -> List[str]:
    """Strip blanks and drop case-insensitive duplicates, keeping first-seen order."""
    seen = set()
    result = []
    for email in emails or []:
        cleaned = (email or "").strip()
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            result.append(cleaned)
    return result


class ProposalLifecycleService:
    """
    Service for proposal status transitions and send tracking.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.proposal_dao = ProposalDAO(session)
        self.lead_dao = LeadDAO(session)
        self.project_dao = ProjectDAO(session)
        self.assignment_dao = ProjectAssignmentDAO(session)

    async def get_proposal(self, proposal_id: int) -> Proposal:
        """
        Load a proposal or raise 404.

        Raises:
            ProposalNotFoundError: If the proposal doesn't exist
        """
        proposal = await self.proposal_dao.get_by_id(proposal_id)
        if not proposal:
            raise ProposalNotFoundError(
                message=f"Proposal with id {proposal_id} not found",
                resource_type="Proposal",
                resource_id=proposal_id,
            )
        return proposal

    async def transition(
        self,
        proposal_id: int,
        target_status: Union[str, ProposalStatus],
        actor_id: Optional[int],
        note: Optional[str] = None,
        conversion: Optional[ConversionOptions] = None,
    ) -> TransitionResult:
        """
        Move a proposal to a new status.

        Args:
            proposal_id: Proposal to transition
            target_status: New status
            actor_id: Acting user id
            note: Optional free text appended to the status note
            conversion: Overrides for the project created on conversion

        Returns:
            TransitionResult (changed=False when the status was already set)

        Raises:
            ValidationError: Unknown status (raised before any mutation)
            ProposalNotFoundError: If the proposal doesn't exist
        """
        target = parse_status(target_status)
        proposal = await self.get_proposal(proposal_id)
        previous = proposal.status

        if previous == target:
            return TransitionResult(proposal=proposal, changed=False)

        now = datetime.utcnow()
        project = None

        async with atomic(self.session):
            proposal.status = target
            if target in APPROVAL_STATUSES and proposal.approved_date is None:
                proposal.approved_date = now
            if target in REJECTION_STATUSES and proposal.rejected_date is None:
                proposal.rejected_date = now
            if target == ProposalStatus.WON and proposal.won_date is None:
                proposal.won_date = now

            text = f"Status changed from {previous.name} to {target.name}"
            if note:
                text = f"{text}: {note}"
            proposal.append_note(text, at=now)
            proposal = await self.proposal_dao.save(proposal)

            if target in CONVERSION_STATUSES and proposal.lead_id is not None:
                project = await self._convert_lead(proposal, actor_id, conversion or ConversionOptions())

        logger.info(
            "Proposal %s: %s -> %s by user %s%s",
            proposal.id,
            previous.value,
            target.value,
            actor_id,
            f" (project {project.id} created)" if project else "",
        )
        return TransitionResult(
            proposal=proposal,
            project=project,
            lead_converted=project is not None,
        )

    async def _convert_lead(
        self,
        proposal: Proposal,
        actor_id: Optional[int],
        options: ConversionOptions,
    ) -> Optional[Project]:
        """
        Close the lead as won and create its delivery project.

        Runs inside the caller's atomic block; any exception here rolls back
        the status update too.

        Returns:
            The new project, or None when the lead is gone
        """
        lead = await self.lead_dao.get_by_id(proposal.lead_id)
        if lead is None:
            logger.warning("Proposal %s references missing lead %s", proposal.id, proposal.lead_id)
            return None
        label = proposal.erp_quote_number or f"#{proposal.id}"
        await self.lead_dao.change_status(
            lead,
            LeadStatus.CLOSED,
            LEAD_STAGE_CLOSED_WON,
            changed_by=actor_id,
            note=f"Lead won - Proposal {label} accepted by customer",
        )

        project = await self.project_dao.create(
            name=options.project_title or proposal.project_title or lead.title,
            description=options.project_description or proposal.project_description,
            status=ProjectStatus.ACTIVE,
            lead_id=lead.id,
            contact_id=proposal.contact_id or lead.contact_id,
            start_date=options.start_date or proposal.project_start_date,
            end_date=options.end_date or proposal.project_end_date,
        )

        for user_id, role in self._team(lead, actor_id, options.project_manager_id):
            await self.assignment_dao.create(project_id=project.id, user_id=user_id, role=role)

        return await self.project_dao.reload_assignments(project)

    @staticmethod
    def _team(
        lead: Lead,
        actor_id: Optional[int],
        project_manager_id: Optional[int],
    ) -> List[Tuple[int, str]]:
        """
        Project team as (user_id, role), first occurrence of a user wins.
        """
        candidates = [
            (project_manager_id, AssignmentRole.PROJECT_MANAGER),
            (lead.assignee_id, AssignmentRole.MEMBER),
            (actor_id, AssignmentRole.MEMBER),
        ]
        team = []
        seen = set()
        for user_id, role in candidates:
            if user_id is not None and user_id not in seen:
                seen.add(user_id)
                team.append((user_id, role))
        return team

    async def record_delivery(
        self,
        proposal_id: int,
        recipient_emails: List[str],
        actor_id: Optional[int],
    ) -> TransitionResult:
        """
        Record that the proposal document was sent to the customer.

        WHAT: Merges recipients, bumps sent_count, stamps last_sent_date
        (and submitted_date the first time), sets stage SENT_TO_CUSTOMER and
        transitions the proposal to SENT.

        Args:
            proposal_id: Proposal that was sent
            recipient_emails: Addresses the document went to
            actor_id: Acting user id

        Returns:
            TransitionResult of the SENT transition

        Raises:
            ValidationError: No recipients, or no document generated yet
            ProposalNotFoundError: If the proposal doesn't exist
        """
        recipients = dedupe_recipients(recipient_emails)
        if not recipients:
            raise ValidationError(
                message="At least one recipient email is required",
                field="recipient_emails",
            )

        proposal = await self.get_proposal(proposal_id)
        if not (proposal.word_document_url or proposal.pdf_document_url):
            raise ValidationError(
                message="Proposal document has not been generated yet",
                field="word_document_url",
            )

        now = datetime.utcnow()
        known = dedupe_recipients(proposal.sent_to_emails or [])
        known_lower = {email.lower() for email in known}
        # WHY: assign a new list so the JSON column is flagged dirty
        proposal.sent_to_emails = known + [e for e in recipients if e.lower() not in known_lower]
        proposal.sent_count = (proposal.sent_count or 0) + 1
        proposal.last_sent_date = now
        if proposal.submitted_date is None:
            proposal.submitted_date = now
        proposal.stage = ProposalStage.SENT_TO_CUSTOMER
        proposal.append_note(f"Sent to {', '.join(recipients)}", at=now)
        await self.proposal_dao.save(proposal)

        logger.info(
            "Proposal %s sent to %d recipient(s) (send #%d)",
            proposal.id,
            len(recipients),
            proposal.sent_count,
        )
        return await self.transition(proposal.id, ProposalStatus.SENT, actor_id)
