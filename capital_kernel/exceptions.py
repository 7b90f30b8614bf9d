"""
Typed Exception Hierarchy for the Capital Ledger Engine.

===============================================================================
CATEGORIES
===============================================================================

Every failure belongs to exactly one category.  The category is what crosses
the procedure boundary (``category`` attribute); the finer-grained ``code``
is kept for logs and for callers that want to branch on a specific reason.

    CapitalEngineError (base)
    |
    +-- NotFoundError                 category NOT_FOUND
    |   +-- AccountNotFoundError
    |   +-- ProjectNotFoundError
    |   +-- InvestorNotFoundError
    |   +-- InvestmentNotFoundError
    |   +-- DistributionNotFoundError
    |   +-- ShareClassNotFoundError
    |   +-- AllocationNotFoundError
    |   +-- CapitalCallNotFoundError
    |   +-- PaymentNotFoundError
    |   +-- MilestoneNotFoundError
    |   +-- FeeScheduleNotFoundError
    |   +-- FeeInvoiceNotFoundError
    |   +-- UnknownProcedureError
    |
    +-- InvalidStateError             category BAD_REQUEST
    |   +-- InvalidTransitionError
    |   +-- ProjectNotOpenError
    |   +-- AlreadyPaidError
    |   +-- FeeScheduleInactiveError
    |
    +-- ValidationFailureError        category BAD_REQUEST
    |   +-- InvalidAmountError
    |   +-- EmptyPostingError
    |   +-- KycNotApprovedError
    |   +-- InvestmentAmountOutOfRangeError
    |   +-- FundingTargetExceededError
    |   +-- AuthorizedSharesExceededError
    |   +-- NoActiveShareholdersError
    |   +-- NoActiveInvestmentsError
    |   +-- InvalidRequestError
    |
    +-- ConflictError                 category CONFLICT
        +-- DuplicateAccountCodeError
        +-- DuplicateInvestorEmailError
        +-- DuplicateShareClassCodeError
        +-- DuplicateCertificateNumberError

Every category aborts the enclosing transaction.  There are no partial
postings and no compensating transactions.

Example:
    try:
        service.invest(project_id, investor_id, amount, date)
    except FundingTargetExceededError as e:
        log.warning("over target", extra={"target": e.target})
"""

from decimal import Decimal
from typing import Any


class CapitalEngineError(Exception):
    """Base exception for all capital engine errors."""

    code: str = "CAPITAL_ENGINE_ERROR"
    category: str = "BAD_REQUEST"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(CapitalEngineError):
    """A referenced row does not exist."""

    code: str = "NOT_FOUND"
    category: str = "NOT_FOUND"
    entity: str = "Entity"

    def __init__(self, entity_id: Any):
        self.entity_id = str(entity_id)
        super().__init__(f"{self.entity} not found: {entity_id}")


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"
    entity: str = "Account"


class ProjectNotFoundError(NotFoundError):
    code: str = "PROJECT_NOT_FOUND"
    entity: str = "Investment project"


class InvestorNotFoundError(NotFoundError):
    code: str = "INVESTOR_NOT_FOUND"
    entity: str = "Investor"


class InvestmentNotFoundError(NotFoundError):
    code: str = "INVESTMENT_NOT_FOUND"
    entity: str = "Investment"


class DistributionNotFoundError(NotFoundError):
    code: str = "DISTRIBUTION_NOT_FOUND"
    entity: str = "Distribution"


class ShareClassNotFoundError(NotFoundError):
    code: str = "SHARE_CLASS_NOT_FOUND"
    entity: str = "Share class"


class AllocationNotFoundError(NotFoundError):
    code: str = "ALLOCATION_NOT_FOUND"
    entity: str = "Shareholder allocation"


class CapitalCallNotFoundError(NotFoundError):
    code: str = "CAPITAL_CALL_NOT_FOUND"
    entity: str = "Capital call"


class PaymentNotFoundError(NotFoundError):
    code: str = "PAYMENT_NOT_FOUND"
    entity: str = "Shareholder payment"


class MilestoneNotFoundError(NotFoundError):
    code: str = "MILESTONE_NOT_FOUND"
    entity: str = "Milestone"


class FeeScheduleNotFoundError(NotFoundError):
    code: str = "FEE_SCHEDULE_NOT_FOUND"
    entity: str = "Fee schedule"


class FeeInvoiceNotFoundError(NotFoundError):
    code: str = "FEE_INVOICE_NOT_FOUND"
    entity: str = "Fee invoice"


class UnknownProcedureError(NotFoundError):
    code: str = "UNKNOWN_PROCEDURE"
    entity: str = "Procedure"


# =============================================================================
# Invalid state
# =============================================================================


class InvalidStateError(CapitalEngineError):
    """Operation attempted against an entity in the wrong lifecycle state."""

    code: str = "INVALID_STATE"
    category: str = "BAD_REQUEST"


class InvalidTransitionError(InvalidStateError):
    """A workflow has no transition for this action from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, entity_id: Any, current_state: str, action: str):
        self.workflow = workflow
        self.entity_id = str(entity_id)
        self.current_state = current_state
        self.action = action
        super().__init__(
            f"Cannot {action} {workflow} {entity_id} in status '{current_state}'"
        )


class ProjectNotOpenError(InvalidStateError):
    code: str = "PROJECT_NOT_OPEN"

    def __init__(self, project_id: Any, status: str):
        self.project_id = str(project_id)
        self.status = status
        super().__init__(
            f"Project is not open for investment: {project_id} (status '{status}')"
        )


class AlreadyPaidError(InvalidStateError):
    code: str = "ALREADY_PAID"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = str(entity_id)
        super().__init__(f"{entity} already paid: {entity_id}")


class FeeScheduleInactiveError(InvalidStateError):
    code: str = "FEE_SCHEDULE_INACTIVE"

    def __init__(self, schedule_id: Any):
        self.schedule_id = str(schedule_id)
        super().__init__(f"Fee schedule is inactive: {schedule_id}")


# =============================================================================
# Validation failure
# =============================================================================


class ValidationFailureError(CapitalEngineError):
    """Input violates a business rule."""

    code: str = "VALIDATION_FAILED"
    category: str = "BAD_REQUEST"


class InvalidAmountError(ValidationFailureError):
    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = str(value)
        super().__init__(f"{field} must be greater than zero, got {value}")


class EmptyPostingError(ValidationFailureError):
    code: str = "EMPTY_POSTING"

    def __init__(self, source_type: str):
        self.source_type = source_type
        super().__init__(f"Journal entry for {source_type} has no lines")


class KycNotApprovedError(ValidationFailureError):
    code: str = "KYC_NOT_APPROVED"

    def __init__(self, investor_id: Any, kyc_status: str):
        self.investor_id = str(investor_id)
        self.kyc_status = kyc_status
        super().__init__(
            f"Investor KYC must be approved: {investor_id} (status '{kyc_status}')"
        )


class InvestmentAmountOutOfRangeError(ValidationFailureError):
    code: str = "INVESTMENT_AMOUNT_OUT_OF_RANGE"

    def __init__(
        self,
        amount: Decimal,
        minimum: Decimal | None,
        maximum: Decimal | None,
    ):
        self.amount = str(amount)
        self.minimum = str(minimum) if minimum is not None else None
        self.maximum = str(maximum) if maximum is not None else None
        if minimum is not None and amount < minimum:
            message = f"Minimum investment is {minimum}"
        else:
            message = f"Maximum investment is {maximum}"
        super().__init__(message)


class FundingTargetExceededError(ValidationFailureError):
    code: str = "FUNDING_TARGET_EXCEEDED"

    def __init__(self, project_id: Any, raised: Decimal, amount: Decimal, target: Decimal):
        self.project_id = str(project_id)
        self.raised = str(raised)
        self.amount = str(amount)
        self.target = str(target)
        super().__init__(
            f"Investment of {amount} exceeds remaining target "
            f"({raised} raised of {target})"
        )


class AuthorizedSharesExceededError(ValidationFailureError):
    code: str = "AUTHORIZED_SHARES_EXCEEDED"

    def __init__(self, share_class_id: Any, issued: int, requested: int, authorized: int):
        self.share_class_id = str(share_class_id)
        self.issued = issued
        self.requested = requested
        self.authorized = authorized
        super().__init__(
            f"Allotting {requested} shares exceeds authorized shares "
            f"({issued} issued of {authorized})"
        )


class NoActiveShareholdersError(ValidationFailureError):
    code: str = "NO_ACTIVE_SHAREHOLDERS"

    def __init__(self, share_class_id: Any):
        self.share_class_id = str(share_class_id)
        super().__init__(f"No active shareholders for share class {share_class_id}")


class NoActiveInvestmentsError(ValidationFailureError):
    code: str = "NO_ACTIVE_INVESTMENTS"

    def __init__(self, project_id: Any):
        self.project_id = str(project_id)
        super().__init__(f"No active investments for project {project_id}")


class InvalidRequestError(ValidationFailureError):
    """A procedure payload field is missing or malformed."""

    code: str = "INVALID_REQUEST"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid '{field}': {reason}")


# =============================================================================
# Conflict
# =============================================================================


class ConflictError(CapitalEngineError):
    """A uniqueness rule would be violated."""

    code: str = "CONFLICT"
    category: str = "CONFLICT"
    what: str = "Value"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"{self.what} already exists: {value}")


class DuplicateAccountCodeError(ConflictError):
    code: str = "DUPLICATE_ACCOUNT_CODE"
    what: str = "Account code"


class DuplicateInvestorEmailError(ConflictError):
    code: str = "DUPLICATE_INVESTOR_EMAIL"
    what: str = "Investor email"


class DuplicateShareClassCodeError(ConflictError):
    code: str = "DUPLICATE_SHARE_CLASS_CODE"
    what: str = "Share class code"


class DuplicateCertificateNumberError(ConflictError):
    code: str = "DUPLICATE_CERTIFICATE_NUMBER"
    what: str = "Certificate number"
