"""Case business logic manager - Repository Pattern."""

import logging
import re
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from rahat_service.config import Settings, settings as default_settings
from rahat_service.core import workflow
from rahat_service.core.case_id import allocate_case_id
from rahat_service.core.errors import (
    CaseAlreadyClosed,
    CaseNotFound,
    InvalidCaseStage,
    InvalidContactFormat,
    InvalidDateFormat,
    InvalidDateRange,
    InvalidPagination,
    InvalidRole,
    InvalidUrlFormat,
    InvalidWorkflowAction,
    MissingPaymentRemark,
    MissingRejectionRemark,
    MissingRequiredFields,
    MissingSdmAssignment,
    NoDocumentsProvided,
    PaymentAlreadyExists,
    Unauthorized,
    UnauthorizedForClosure,
)
from rahat_service.models import (
    Actor,
    Case,
    CaseDocument,
    CaseFilter,
    CaseStatus,
    DocumentType,
    PaginatedCases,
    Payment,
    PaymentStatus,
    PendingCases,
    Role,
    Victim,
    VictimInput,
    WorkflowAction,
)

if TYPE_CHECKING:
    from rahat_service.infrastructure.persistence import CaseRepository

logger = logging.getLogger(__name__)

# Indian mobile number (optionally +91) or a basic e-mail address
CONTACT_PATTERN = re.compile(r"^(\+91)?[6-9]\d{9}$|^[^\s@]+@[^\s@]+\.[^\s@]+$")

VICTIM_FIELDS = ("name", "dob", "dod", "address", "contact", "description")


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD date; full ISO timestamps are accepted too."""
    value = value.strip()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidDateFormat() from None


def validate_victim(data: VictimInput) -> Victim:
    """Turn submitted victim details into a Victim or raise a validation error."""
    missing = [field for field in VICTIM_FIELDS if not (getattr(data, field) or "").strip()]
    if missing:
        raise MissingRequiredFields(errors=[{"field": field} for field in missing])

    dob = parse_date(data.dob)
    dod = parse_date(data.dod)
    if dod <= dob:
        raise InvalidDateRange()

    contact = data.contact.strip()
    if not CONTACT_PATTERN.match(contact):
        raise InvalidContactFormat()

    return Victim(
        name=data.name.strip(),
        dob=dob,
        dod=dod,
        address=data.address.strip(),
        contact=contact,
        description=data.description.strip(),
    )


class CaseManager:
    """Business logic for case workflow operations.

    This class implements the service layer using the Repository pattern.
    Every mutating operation validates first and writes once, so a failed
    action never leaves a partially updated case behind.
    """

    def __init__(self, repository: "CaseRepository", settings: Optional[Settings] = None):
        """Initialize case manager with repository.

        Args:
            repository: CaseRepository implementation (InMemory or SQL)
            settings: Service settings; the global instance when omitted
        """
        self.repository = repository
        self.settings = settings or default_settings

    # =========================================================================
    # Creation and lookup
    # =========================================================================

    async def create_case(
        self,
        victim_input: VictimInput,
        case_sdm: Optional[str],
        actor: Actor,
    ) -> Case:
        """Create a new case at stage 1.

        Args:
            victim_input: Victim details as submitted
            case_sdm: SDM the case is assigned to
            actor: Tehsildar creating the case

        Returns:
            Created case with generated ID
        """
        victim = validate_victim(victim_input)

        if not (case_sdm or "").strip():
            raise MissingSdmAssignment()

        case_id = await allocate_case_id(
            self.repository, max_attempts=self.settings.case_id_max_attempts
        )

        case = Case(
            case_id=case_id,
            victim=victim,
            case_sdm=case_sdm.strip(),
            status=CaseStatus.CREATED,
            stage=1,
        )
        saved_case = await self.repository.add(case)

        logger.info(f"Created case {saved_case.case_id} by {actor.user_id} for SDM {saved_case.case_sdm}")

        return saved_case

    async def get_case(self, case_id: str) -> Case:
        """Get a case by ID or raise CaseNotFound."""
        case = await self.repository.get(case_id)
        if case is None:
            raise CaseNotFound(f"Case {case_id} not found")
        return case

    # =========================================================================
    # Stage 1: document intake
    # =========================================================================

    async def upload_documents(
        self,
        case_id: str,
        patwari_urls: Optional[List[str]],
        ti_urls: Optional[List[str]],
        actor: Actor,
    ) -> Case:
        """Attach the Patwari and Thana Inspector reports and send the case to the SDM.

        The document list is replaced wholesale; there are no partial uploads.
        """
        patwari_urls = list(patwari_urls or [])
        ti_urls = list(ti_urls or [])
        if not patwari_urls and not ti_urls:
            raise NoDocumentsProvided()

        case = await self.get_case(case_id)
        expected_version = case.version

        if case.stage != 1 or case.status is not CaseStatus.CREATED:
            raise InvalidCaseStage("Documents can only be uploaded for cases in Stage 1 (created)")

        self._check_file_urls(patwari_urls, "patwari")
        self._check_file_urls(ti_urls, "thana inspector")

        uploaded_at = datetime.now(timezone.utc)
        case.documents = [
            CaseDocument(url=url, type=DocumentType.PATWARI, uploaded_at=uploaded_at)
            for url in patwari_urls
        ] + [
            CaseDocument(url=url, type=DocumentType.THANA_INSPECTOR, uploaded_at=uploaded_at)
            for url in ti_urls
        ]
        case.add_remark(
            1,
            f"Documents uploaded - Patwari: {len(patwari_urls)}, TI: {len(ti_urls)}",
            actor.user_id,
        )
        case.status = CaseStatus.PENDING_SDM
        case.stage = 2

        saved_case = await self._persist(case, expected_version)
        logger.info(
            f"Case {case_id}: {len(case.documents)} documents attached by {actor.user_id}, "
            f"moved to stage 2"
        )
        return saved_case

    def _check_file_urls(self, urls: List[str], label: str) -> None:
        prefix = self.settings.file_url_prefix
        for url in urls:
            if not isinstance(url, str) or not url.startswith(prefix):
                raise InvalidUrlFormat(
                    f"Invalid URL format for {label} documents. URLs must be from the file service."
                )

    # =========================================================================
    # Stages 2-8: approve / reject
    # =========================================================================

    async def update_workflow(
        self,
        case_id: str,
        action: str,
        remark: Optional[str],
        actor: Actor,
    ) -> Case:
        """Approve or reject a case at its current stage.

        Args:
            case_id: Case identifier
            action: "approved" or "rejected"
            remark: Reviewer remark, required when rejecting
            actor: Reviewer performing the action

        Returns:
            Case after the transition
        """
        try:
            workflow_action = WorkflowAction(action)
        except ValueError:
            raise InvalidWorkflowAction() from None

        if workflow_action is WorkflowAction.REJECTED and not remark:
            raise MissingRejectionRemark()

        case = await self.get_case(case_id)
        expected_version = case.version
        from_stage = case.stage

        workflow.apply_action(case, workflow_action, actor, remark)

        saved_case = await self._persist(case, expected_version)
        logger.info(
            f"Case {case_id} {workflow_action.value} by {actor.user_id} ({actor.role}): "
            f"stage {from_stage} -> {saved_case.stage} ({saved_case.status.value})"
        )
        return saved_case

    # =========================================================================
    # Closure and payment
    # =========================================================================

    async def close_case(self, case_id: str, payment_remark: Optional[str], actor: Actor) -> Case:
        """Close a stage-8 case and record the compensation payment."""
        if not payment_remark:
            raise MissingPaymentRemark()

        case = await self.get_case(case_id)
        expected_version = case.version

        self._require_tehsildar(actor)

        if case.status is CaseStatus.CLOSED:
            raise CaseAlreadyClosed()
        if case.stage != 8 or case.status is not CaseStatus.PENDING_TEHSILDAR:
            raise InvalidCaseStage("Case must be in Stage 8 (pendingTehsildar) to be closed")

        case.status = CaseStatus.CLOSED
        case.payment = self._payment(payment_remark, actor)
        case.add_remark(8, f"Case closed - Payment processed: {payment_remark}", actor.user_id)

        saved_case = await self._persist(case, expected_version)
        logger.info(f"Case {case_id} closed by {actor.user_id}; payment of {case.payment.amount} recorded")
        return saved_case

    async def repair_payment(self, case_id: str, payment_remark: Optional[str], actor: Actor) -> Case:
        """Attach missing payment details to a case that was closed without them."""
        if not payment_remark:
            raise MissingPaymentRemark("Payment remark is required")

        case = await self.get_case(case_id)
        expected_version = case.version

        self._require_tehsildar(actor, "Only Tehsildar can fix payment details")

        if case.status is not CaseStatus.CLOSED or case.stage != 8:
            raise InvalidCaseStage("Case must be closed (Stage 8) to fix payment details")
        if case.payment is not None:
            raise PaymentAlreadyExists()

        case.payment = self._payment(payment_remark, actor)
        case.add_remark(8, f"Payment details added: {payment_remark}", actor.user_id)

        saved_case = await self._persist(case, expected_version)
        logger.info(f"Payment details added to closed case {case_id} by {actor.user_id}")
        return saved_case

    def _payment(self, remark: str, actor: Actor) -> Payment:
        return Payment(
            status=PaymentStatus.COMPLETED,
            amount=self.settings.compensation_amount,
            remark=remark,
            processed_by=actor.user_id or workflow.SYSTEM_USER,
        )

    @staticmethod
    def _require_tehsildar(actor: Actor, message: Optional[str] = None) -> None:
        if actor.role != Role.TEHSILDAR.value:
            logger.warning(f"User {actor.user_id} ({actor.role}) attempted a Tehsildar-only closure action")
            raise UnauthorizedForClosure(message)

    # =========================================================================
    # Listing
    # =========================================================================

    async def list_cases(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        case_filter: Optional[CaseFilter] = None,
        search: Optional[str] = None,
    ) -> PaginatedCases:
        """List cases newest first.

        Args:
            page: 1-based page number
            limit: Page size, 1 to max_page_size
            case_filter: Structured predicate
            search: Case-insensitive text over victim name, contact and case ID

        Returns:
            One page of cases with navigation metadata
        """
        limit = self.settings.default_page_size if limit is None else limit
        self._check_pagination(page, limit)

        cases, total = await self.repository.list(
            case_filter=case_filter,
            search=search,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return PaginatedCases.build(cases, total, page, limit)

    async def my_pending_cases(
        self,
        actor: Actor,
        page: int = 1,
        limit: Optional[int] = None,
        search: Optional[str] = None,
    ) -> PendingCases:
        """List the cases waiting on the actor's role."""
        if not actor.role:
            raise Unauthorized()

        queue = workflow.queue_for_role(actor.role)
        if not queue:
            raise InvalidRole()

        result = await self.list_cases(
            page=page,
            limit=limit,
            case_filter=CaseFilter(queue=[(state.status, state.stage) for state in queue]),
            search=search,
        )
        return PendingCases(
            **result.model_dump(exclude={"docs"}),
            docs=result.docs,
            user_role=actor.role,
            stage_filter=queue[0].stage if len(queue) == 1 else None,
        )

    def _check_pagination(self, page: int, limit: int) -> None:
        if page < 1 or limit < 1 or limit > self.settings.max_page_size:
            raise InvalidPagination(
                f"page must be >= 1 and limit between 1 and {self.settings.max_page_size}"
            )

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _persist(self, case: Case, expected_version: int) -> Case:
        workflow.ensure_valid_state(case)
        return await self.repository.update(case, expected_version)
