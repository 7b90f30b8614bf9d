"""
capital_modules.shareholders.service
====================================

Responsibility:
    Share classes and the share register: allotment, transfer and
    cancellation of holdings.

Architecture:
    Module layer.  Uses the kernel LedgerPostingService through a ledger
    sink for allotments paid in cash.

Invariants enforced:
    - ``share_class.issued_shares`` never exceeds ``authorized_shares``
      (when set); the share-class row is locked ``FOR UPDATE`` for the check.
    - Only KYC-approved investors receive allotments.
    - Transfers move a whole allocation: the source row becomes
      ``transferred`` and the recipient gets a new ``active`` row with the
      same share count.  ``issued_shares`` is unchanged by a transfer.
    - Transfers post nothing to the ledger.  A price different from the
      issue price is kept on the ShareTransfer audit row only.

Failure modes:
    - InvestorNotFoundError / ShareClassNotFoundError / AllocationNotFoundError.
    - KycNotApprovedError, InvalidAmountError, AuthorizedSharesExceededError.
    - DuplicateShareClassCodeError / DuplicateCertificateNumberError.
    - InvalidTransitionError for a non-active source allocation.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from capital_config import EngineConfig, get_active_config
from capital_kernel.db.types import round_money
from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    AllocationNotFoundError,
    AuthorizedSharesExceededError,
    DuplicateCertificateNumberError,
    DuplicateShareClassCodeError,
    InvalidAmountError,
    InvalidRequestError,
    InvestorNotFoundError,
    KycNotApprovedError,
    ShareClassNotFoundError,
)
from capital_kernel.logging_config import LogContext, get_logger
from capital_kernel.services.entry_numbering import EntryNumberGenerator
from capital_kernel.services.ledger_posting_service import LedgerPostingService
from capital_kernel.services.ledger_sink import ledger_sink_for
from capital_modules.investment.models import KycStatus
from capital_modules.investment.orm import InvestorModel
from capital_modules.shareholders.models import (
    AllocationStatus,
    RegisterEntry,
    ShareClassType,
)
from capital_modules.shareholders.orm import (
    ShareClassModel,
    ShareholderAllocationModel,
    ShareTransferModel,
)
from capital_modules.shareholders.workflows import ALLOCATION_WORKFLOW

logger = get_logger("modules.shareholders.service")


class ShareholderService:
    """
    Share register operations.

    Contract:
        Flushes inside the caller's session; never commits.  A failure
        leaves the caller's transaction to roll back every write.
    """

    def __init__(
        self,
        session: Session,
        actor_provider: ActorProvider | None = None,
        config: EngineConfig | None = None,
    ):
        self._session = session
        self._config = config or get_active_config()
        self._actors = actor_provider or ContextActorProvider(
            self._config.ledger.system_actor
        )
        self._poster = LedgerPostingService(
            session,
            actor_provider=self._actors,
            numbering=EntryNumberGenerator(session, self._config.ledger.entry_number_width),
        )

    # =========================================================================
    # Share classes
    # =========================================================================

    def create_share_class(
        self,
        code: str,
        name: str,
        share_class_type: ShareClassType | str = ShareClassType.ORDINARY,
        authorized_shares: int | None = None,
        par_value: Decimal | None = None,
        voting_rights: bool = True,
        dividend_priority: int = 0,
        notes: str | None = None,
    ) -> ShareClassModel:
        share_class_type = coerce_enum(ShareClassType, share_class_type, "type")
        code = (code or "").strip()
        if not code:
            raise InvalidRequestError("code", "must be non-empty")
        if authorized_shares is not None and authorized_shares < 0:
            raise InvalidRequestError("authorized_shares", "must not be negative")

        existing = self._session.execute(
            select(ShareClassModel.id).where(ShareClassModel.code == code)
        ).first()
        if existing is not None:
            raise DuplicateShareClassCodeError(code)

        share_class = ShareClassModel(
            code=code,
            name=name,
            share_class_type=share_class_type.value,
            authorized_shares=authorized_shares,
            issued_shares=0,
            par_value=par_value,
            voting_rights=voting_rights,
            dividend_priority=dividend_priority,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(share_class)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateShareClassCodeError(code) from exc

        logger.info(
            "share_class_created",
            extra={"share_class_id": str(share_class.id), "code": code},
        )
        return share_class

    def get_share_class(self, share_class_id: UUID) -> ShareClassModel:
        share_class = self._session.get(ShareClassModel, share_class_id)
        if share_class is None:
            raise ShareClassNotFoundError(share_class_id)
        return share_class

    def list_share_classes(self) -> list[ShareClassModel]:
        return list(
            self._session.execute(
                select(ShareClassModel).order_by(ShareClassModel.code)
            ).scalars().all()
        )

    def _lock_share_class(self, share_class_id: UUID) -> ShareClassModel:
        share_class = self._session.execute(
            select(ShareClassModel)
            .where(ShareClassModel.id == share_class_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if share_class is None:
            raise ShareClassNotFoundError(share_class_id)
        return share_class

    # =========================================================================
    # Allocations
    # =========================================================================

    def get_allocation(self, allocation_id: UUID) -> ShareholderAllocationModel:
        allocation = self._session.get(ShareholderAllocationModel, allocation_id)
        if allocation is None:
            raise AllocationNotFoundError(allocation_id)
        return allocation

    def list_allocations(
        self,
        share_class_id: UUID | None = None,
        investor_id: UUID | None = None,
        status: AllocationStatus | str | None = None,
    ) -> list[ShareholderAllocationModel]:
        query = select(ShareholderAllocationModel)
        if share_class_id is not None:
            query = query.where(ShareholderAllocationModel.share_class_id == share_class_id)
        if investor_id is not None:
            query = query.where(ShareholderAllocationModel.investor_id == investor_id)
        if status is not None:
            status = coerce_enum(AllocationStatus, status, "status")
            query = query.where(ShareholderAllocationModel.status == status.value)
        query = query.order_by(
            ShareholderAllocationModel.allocation_date,
            ShareholderAllocationModel.created_at,
        )
        return list(self._session.execute(query).scalars().all())

    def _check_certificate(self, certificate_number: str | None) -> None:
        if certificate_number is None:
            return
        taken = self._session.execute(
            select(ShareholderAllocationModel.id).where(
                ShareholderAllocationModel.certificate_number == certificate_number
            )
        ).first()
        if taken is not None:
            raise DuplicateCertificateNumberError(certificate_number)

    def _flush_allocation(self, certificate_number: str | None) -> None:
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateCertificateNumberError(certificate_number or "") from exc

    def allot(
        self,
        investor_id: UUID,
        share_class_id: UUID,
        number_of_shares: int,
        issue_price_per_share: Decimal,
        allocation_date: date,
        certificate_number: str | None = None,
        cash_account_id: UUID | None = None,
        share_capital_account_id: UUID | None = None,
        notes: str | None = None,
    ) -> ShareholderAllocationModel:
        """
        Issue ``number_of_shares`` of a class to an approved investor.

        When both ``cash_account_id`` and ``share_capital_account_id`` are
        given, posts Dr cash / Cr share capital for the total consideration.
        """
        investor = self._session.get(InvestorModel, investor_id)
        if investor is None:
            raise InvestorNotFoundError(investor_id)
        if investor.kyc_status != KycStatus.APPROVED.value:
            raise KycNotApprovedError(investor_id, investor.kyc_status)
        if number_of_shares <= 0:
            raise InvalidAmountError("number_of_shares", number_of_shares)
        if issue_price_per_share < 0:
            raise InvalidRequestError("issue_price_per_share", "must not be negative")

        share_class = self._lock_share_class(share_class_id)
        if (
            share_class.authorized_shares is not None
            and share_class.issued_shares + number_of_shares > share_class.authorized_shares
        ):
            raise AuthorizedSharesExceededError(
                share_class_id,
                share_class.issued_shares,
                number_of_shares,
                share_class.authorized_shares,
            )
        self._check_certificate(certificate_number)

        total_consideration = round_money(
            Decimal(number_of_shares) * issue_price_per_share,
            self._config.ledger.money_decimal_places,
        )
        allocation = ShareholderAllocationModel(
            investor_id=investor_id,
            share_class_id=share_class_id,
            number_of_shares=number_of_shares,
            issue_price_per_share=issue_price_per_share,
            total_consideration=total_consideration,
            status=ALLOCATION_WORKFLOW.initial_state,
            allocation_date=allocation_date,
            certificate_number=certificate_number,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(allocation)
        share_class.issued_shares = share_class.issued_shares + number_of_shares
        self._flush_allocation(certificate_number)

        if total_consideration > 0:
            sink = ledger_sink_for(self._poster, cash_account_id, share_capital_account_id)
            with LogContext.bind(investor_id=investor_id):
                allocation.journal_entry_id = sink.post(
                    total_consideration,
                    allocation_date,
                    f"Share allotment - {number_of_shares} shares @ {issue_price_per_share}",
                    "SHARE",
                    debit_memo="Cash received for shares",
                    credit_memo="Share capital issued",
                )
            self._session.flush()

        logger.info(
            "shares_allotted",
            extra={
                "allocation_id": str(allocation.id),
                "share_class_id": str(share_class_id),
                "number_of_shares": number_of_shares,
                "issued_shares": share_class.issued_shares,
                "total_consideration": str(total_consideration),
            },
        )
        return allocation

    def transfer(
        self,
        allocation_id: UUID,
        to_investor_id: UUID,
        transfer_date: date,
        price_per_share: Decimal | None = None,
        certificate_number: str | None = None,
        notes: str | None = None,
    ) -> ShareholderAllocationModel:
        """Move an active allocation to another investor.  Returns the new row."""
        source = self.get_allocation(allocation_id)
        transition = ALLOCATION_WORKFLOW.require(source.status, "transfer", allocation_id)

        recipient = self._session.get(InvestorModel, to_investor_id)
        if recipient is None:
            raise InvestorNotFoundError(to_investor_id)
        if price_per_share is not None and price_per_share < 0:
            raise InvalidRequestError("price_per_share", "must not be negative")
        self._check_certificate(certificate_number)

        price = price_per_share if price_per_share is not None else source.issue_price_per_share
        source.status = transition.to_state

        target = ShareholderAllocationModel(
            investor_id=to_investor_id,
            share_class_id=source.share_class_id,
            number_of_shares=source.number_of_shares,
            issue_price_per_share=price,
            total_consideration=round_money(
                Decimal(source.number_of_shares) * price,
                self._config.ledger.money_decimal_places,
            ),
            status=ALLOCATION_WORKFLOW.initial_state,
            allocation_date=transfer_date,
            certificate_number=certificate_number,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(target)
        self._flush_allocation(certificate_number)

        self._session.add(
            ShareTransferModel(
                share_class_id=source.share_class_id,
                from_investor_id=source.investor_id,
                to_investor_id=to_investor_id,
                from_allocation_id=source.id,
                to_allocation_id=target.id,
                number_of_shares=source.number_of_shares,
                price_per_share=price_per_share,
                transfer_date=transfer_date,
                old_certificate_number=source.certificate_number,
                new_certificate_number=certificate_number,
                notes=notes,
                created_by=self._actors.current_actor(),
            )
        )
        self._session.flush()

        logger.info(
            "shares_transferred",
            extra={
                "from_allocation_id": str(source.id),
                "to_allocation_id": str(target.id),
                "number_of_shares": source.number_of_shares,
                "price_differs": price != source.issue_price_per_share,
            },
        )
        return target

    def cancel(self, allocation_id: UUID) -> ShareholderAllocationModel:
        """Cancel an active allocation and release its shares."""
        allocation = self.get_allocation(allocation_id)
        transition = ALLOCATION_WORKFLOW.require(allocation.status, "cancel", allocation_id)
        share_class = self._lock_share_class(allocation.share_class_id)

        allocation.status = transition.to_state
        share_class.issued_shares = max(
            0, share_class.issued_shares - allocation.number_of_shares,
        )
        self._session.flush()

        logger.info(
            "allocation_cancelled",
            extra={
                "allocation_id": str(allocation_id),
                "number_of_shares": allocation.number_of_shares,
                "issued_shares": share_class.issued_shares,
            },
        )
        return allocation

    def suspend(self, allocation_id: UUID) -> ShareholderAllocationModel:
        """
        Take a holding out of the register and out of future capital calls
        without releasing its shares.
        """
        return self._move_allocation(allocation_id, "suspend", "allocation_suspended")

    def reinstate(self, allocation_id: UUID) -> ShareholderAllocationModel:
        return self._move_allocation(allocation_id, "reinstate", "allocation_reinstated")

    def _move_allocation(
        self, allocation_id: UUID, action: str, event: str,
    ) -> ShareholderAllocationModel:
        allocation = self.get_allocation(allocation_id)
        allocation.status = ALLOCATION_WORKFLOW.require(
            allocation.status, action, allocation_id,
        ).to_state
        self._session.flush()
        logger.info(
            event,
            extra={
                "allocation_id": str(allocation_id),
                "investor_id": str(allocation.investor_id),
                "number_of_shares": allocation.number_of_shares,
            },
        )
        return allocation

    def transfers(self, share_class_id: UUID | None = None) -> list[ShareTransferModel]:
        query = select(ShareTransferModel).order_by(
            ShareTransferModel.transfer_date, ShareTransferModel.created_at,
        )
        if share_class_id is not None:
            query = query.where(ShareTransferModel.share_class_id == share_class_id)
        return list(self._session.execute(query).scalars().all())

    # =========================================================================
    # Register
    # =========================================================================

    def register(self, share_class_id: UUID | None = None) -> list[RegisterEntry]:
        """Active holdings grouped by investor, in first-allotment order."""
        rows = self._session.execute(
            select(ShareholderAllocationModel, InvestorModel)
            .join(InvestorModel, ShareholderAllocationModel.investor_id == InvestorModel.id)
            .where(
                ShareholderAllocationModel.status == AllocationStatus.ACTIVE.value,
                *(
                    [ShareholderAllocationModel.share_class_id == share_class_id]
                    if share_class_id is not None
                    else []
                ),
            )
            .order_by(
                ShareholderAllocationModel.allocation_date,
                ShareholderAllocationModel.created_at,
            )
        ).all()

        grouped: OrderedDict[UUID, dict] = OrderedDict()
        for allocation, investor in rows:
            group = grouped.setdefault(
                investor.id,
                {"investor": investor, "holdings": [], "shares": 0, "consideration": Decimal("0")},
            )
            group["holdings"].append(allocation.to_dto())
            group["shares"] += allocation.number_of_shares
            group["consideration"] += allocation.total_consideration

        return [
            RegisterEntry(
                investor_id=investor_id,
                investor_name=group["investor"].name,
                email=group["investor"].email,
                total_shares=group["shares"],
                total_consideration=group["consideration"],
                holdings=tuple(group["holdings"]),
            )
            for investor_id, group in grouped.items()
        ]
