"""
capital_modules.membership.service
==================================

Responsibility:
    Membership fee schedules, the invoices a billing run produces from them,
    and settlement of those invoices into the ledger.

Invariants enforced:
    - A billing run writes at most one invoice per schedule, investor and
      period label; members already billed for the label are skipped.
    - Only investors with active allocations in the schedule's share class
      are billed.  A ``per_share`` fee is charged on the investor's total
      active shares in that class.
    - Paying an invoice posts ``MFI`` (Dr cash / Cr fee revenue) when the
      schedule names both accounts.

Failure modes:
    - FeeScheduleNotFoundError / FeeInvoiceNotFoundError / ShareClassNotFoundError.
    - FeeScheduleInactiveError: billing an inactive schedule.
    - AlreadyPaidError: paying a paid invoice.
    - InvalidTransitionError: paying or waiving a waived invoice.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_config import EngineConfig, get_active_config
from capital_kernel.db.types import round_money
from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.clock import Clock, SystemClock
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    AccountNotFoundError,
    AlreadyPaidError,
    FeeInvoiceNotFoundError,
    FeeScheduleInactiveError,
    FeeScheduleNotFoundError,
    InvalidAmountError,
    InvalidRequestError,
    ShareClassNotFoundError,
)
from capital_kernel.logging_config import LogContext, get_logger
from capital_kernel.models.account import Account
from capital_kernel.services.entry_numbering import EntryNumberGenerator
from capital_kernel.services.ledger_posting_service import LedgerPostingService
from capital_kernel.services.ledger_sink import ledger_sink_for
from capital_modules.investment.orm import InvestorModel
from capital_modules.membership.models import (
    OUTSTANDING_INVOICE_STATUSES,
    BillingCycle,
    DelinquentInvoice,
    FeeInvoiceStatus,
    FeeType,
    InvoiceRun,
)
from capital_modules.membership.orm import (
    MembershipFeeInvoiceModel,
    MembershipFeeScheduleModel,
)
from capital_modules.membership.workflows import FEE_INVOICE_WORKFLOW
from capital_modules.shareholders.models import AllocationStatus
from capital_modules.shareholders.orm import ShareClassModel, ShareholderAllocationModel

logger = get_logger("modules.membership")

INVOICE_PREFIX = "FEE"


class MembershipFeeService:
    """Fee schedules, billing runs and fee invoice settlement."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        actor_provider: ActorProvider | None = None,
        config: EngineConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._actors = actor_provider or ContextActorProvider(
            self._config.ledger.system_actor
        )
        self._numbering = EntryNumberGenerator(
            session, self._config.ledger.entry_number_width,
        )
        self._poster = LedgerPostingService(
            session, actor_provider=self._actors, numbering=self._numbering,
        )

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def get_schedule(self, schedule_id: UUID) -> MembershipFeeScheduleModel:
        schedule = self._session.get(MembershipFeeScheduleModel, schedule_id)
        if schedule is None:
            raise FeeScheduleNotFoundError(schedule_id)
        return schedule

    def list_schedules(
        self,
        share_class_id: UUID | None = None,
        active_only: bool = False,
    ) -> list[MembershipFeeScheduleModel]:
        query = select(MembershipFeeScheduleModel).order_by(
            MembershipFeeScheduleModel.name
        )
        if share_class_id is not None:
            query = query.where(MembershipFeeScheduleModel.share_class_id == share_class_id)
        if active_only:
            query = query.where(MembershipFeeScheduleModel.is_active.is_(True))
        return list(self._session.execute(query).scalars().all())

    def create_schedule(
        self,
        share_class_id: UUID,
        name: str,
        fee_type: FeeType | str,
        billing_cycle: BillingCycle | str,
        amount: Decimal,
        cash_account_id: UUID | None = None,
        revenue_account_id: UUID | None = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> MembershipFeeScheduleModel:
        fee_type = coerce_enum(FeeType, fee_type, "fee_type")
        billing_cycle = coerce_enum(BillingCycle, billing_cycle, "billing_cycle")
        if self._session.get(ShareClassModel, share_class_id) is None:
            raise ShareClassNotFoundError(share_class_id)
        if not name or not name.strip():
            raise InvalidRequestError("name", "must be non-empty")
        if amount <= 0:
            raise InvalidAmountError("amount", amount)
        for account_id in (cash_account_id, revenue_account_id):
            if account_id is not None and self._session.get(Account, account_id) is None:
                raise AccountNotFoundError(account_id)

        schedule = MembershipFeeScheduleModel(
            share_class_id=share_class_id,
            name=name.strip(),
            fee_type=fee_type.value,
            billing_cycle=billing_cycle.value,
            amount=amount,
            is_active=True,
            cash_account_id=cash_account_id,
            revenue_account_id=revenue_account_id,
            description=description,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(schedule)
        self._session.flush()
        logger.info(
            "fee_schedule_created",
            extra={
                "schedule_id": str(schedule.id),
                "fee_type": fee_type.value,
                "billing_cycle": billing_cycle.value,
                "amount": str(amount),
            },
        )
        return schedule

    def set_active(self, schedule_id: UUID, active: bool) -> MembershipFeeScheduleModel:
        schedule = self.get_schedule(schedule_id)
        schedule.is_active = active
        self._session.flush()
        logger.info(
            "fee_schedule_toggled",
            extra={"schedule_id": str(schedule_id), "is_active": active},
        )
        return schedule

    def toggle(self, schedule_id: UUID) -> MembershipFeeScheduleModel:
        return self.set_active(schedule_id, not self.get_schedule(schedule_id).is_active)

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def get_invoice(self, invoice_id: UUID) -> MembershipFeeInvoiceModel:
        invoice = self._session.get(MembershipFeeInvoiceModel, invoice_id)
        if invoice is None:
            raise FeeInvoiceNotFoundError(invoice_id)
        return invoice

    def _lock_invoice(self, invoice_id: UUID) -> MembershipFeeInvoiceModel:
        invoice = self._session.execute(
            select(MembershipFeeInvoiceModel)
            .where(MembershipFeeInvoiceModel.id == invoice_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if invoice is None:
            raise FeeInvoiceNotFoundError(invoice_id)
        return invoice

    def list_invoices(
        self,
        schedule_id: UUID | None = None,
        investor_id: UUID | None = None,
        status: FeeInvoiceStatus | str | None = None,
    ) -> list[MembershipFeeInvoiceModel]:
        query = select(MembershipFeeInvoiceModel).order_by(
            MembershipFeeInvoiceModel.due_date.desc(),
            MembershipFeeInvoiceModel.invoice_number,
        )
        if schedule_id is not None:
            query = query.where(MembershipFeeInvoiceModel.schedule_id == schedule_id)
        if investor_id is not None:
            query = query.where(MembershipFeeInvoiceModel.investor_id == investor_id)
        if status is not None:
            status = coerce_enum(FeeInvoiceStatus, status, "status")
            query = query.where(MembershipFeeInvoiceModel.status == status.value)
        return list(self._session.execute(query).scalars().all())

    def generate(
        self,
        schedule_id: UUID,
        period_label: str,
        period_start: date,
        period_end: date,
        due_date: date,
    ) -> InvoiceRun:
        """
        Bill every current holder of the schedule's share class for one
        period.  Running the same period again only bills members that
        were not billed the first time.
        """
        schedule = self.get_schedule(schedule_id)
        if not schedule.is_active:
            raise FeeScheduleInactiveError(schedule_id)
        if not period_label or not period_label.strip():
            raise InvalidRequestError("period_label", "must be non-empty")
        if period_end < period_start:
            raise InvalidRequestError("period_end", "must not precede period_start")
        period_label = period_label.strip()

        holdings: dict[UUID, int] = defaultdict(int)
        rows = self._session.execute(
            select(
                ShareholderAllocationModel.investor_id,
                ShareholderAllocationModel.number_of_shares,
            )
            .where(
                ShareholderAllocationModel.share_class_id == schedule.share_class_id,
                ShareholderAllocationModel.status == AllocationStatus.ACTIVE.value,
            )
            .order_by(
                ShareholderAllocationModel.allocation_date,
                ShareholderAllocationModel.created_at,
            )
        ).all()
        for investor_id, shares in rows:
            holdings[investor_id] += shares

        already_billed = set(
            self._session.execute(
                select(MembershipFeeInvoiceModel.investor_id).where(
                    MembershipFeeInvoiceModel.schedule_id == schedule_id,
                    MembershipFeeInvoiceModel.period_label == period_label,
                )
            ).scalars().all()
        )

        places = self._config.ledger.money_decimal_places
        actor = self._actors.current_actor()
        generated = skipped = 0
        for investor_id, shares in holdings.items():
            if investor_id in already_billed:
                skipped += 1
                continue
            if schedule.fee_type == FeeType.PER_SHARE.value:
                amount = round_money(Decimal(shares) * schedule.amount, places)
            else:
                amount = round_money(schedule.amount, places)
            self._session.add(
                MembershipFeeInvoiceModel(
                    schedule_id=schedule_id,
                    investor_id=investor_id,
                    invoice_number=self._numbering.generate(INVOICE_PREFIX),
                    period_label=period_label,
                    period_start=period_start,
                    period_end=period_end,
                    due_date=due_date,
                    share_count=shares,
                    amount=amount,
                    status=FEE_INVOICE_WORKFLOW.initial_state,
                    created_by=actor,
                )
            )
            generated += 1
        self._session.flush()

        logger.info(
            "fee_invoices_generated",
            extra={
                "schedule_id": str(schedule_id),
                "period_label": period_label,
                "generated": generated,
                "skipped": skipped,
            },
        )
        return InvoiceRun(
            schedule_id=schedule_id,
            period_label=period_label,
            generated=generated,
            skipped=skipped,
        )

    def mark_overdue(self, as_of: date | None = None) -> int:
        """Move pending invoices due before ``as_of`` to overdue; returns the count."""
        as_of = as_of or self._clock.today()
        invoices = self._session.execute(
            select(MembershipFeeInvoiceModel)
            .where(
                MembershipFeeInvoiceModel.status == FeeInvoiceStatus.PENDING.value,
                MembershipFeeInvoiceModel.due_date < as_of,
            )
            .with_for_update()
        ).scalars().all()
        for invoice in invoices:
            invoice.status = FEE_INVOICE_WORKFLOW.require(
                invoice.status, "mark_overdue", invoice.id,
            ).to_state
        self._session.flush()

        logger.info(
            "fee_invoices_overdue",
            extra={"as_of": as_of.isoformat(), "invoice_count": len(invoices)},
        )
        return len(invoices)

    def mark_paid(
        self,
        invoice_id: UUID,
        paid_date: date | None = None,
    ) -> MembershipFeeInvoiceModel:
        """
        Settle a pending or overdue invoice.

        Posts ``MFI`` when the schedule carries both a cash and a revenue
        account; otherwise the invoice is only marked paid.
        """
        invoice = self._lock_invoice(invoice_id)
        if invoice.status == FeeInvoiceStatus.PAID.value:
            raise AlreadyPaidError("FeeInvoice", invoice_id)
        transition = FEE_INVOICE_WORKFLOW.require(invoice.status, "pay", invoice_id)
        schedule = self.get_schedule(invoice.schedule_id)
        paid_date = paid_date or self._clock.today()

        sink = ledger_sink_for(
            self._poster, schedule.cash_account_id, schedule.revenue_account_id,
        )
        with LogContext.bind(investor_id=invoice.investor_id):
            invoice.journal_entry_id = sink.post(
                invoice.amount,
                paid_date,
                f"Membership fee payment - {invoice.invoice_number}",
                "MFI",
                debit_memo="Cash received for membership fee",
                credit_memo="Membership fee revenue",
            )

        invoice.status = transition.to_state
        invoice.paid_date = paid_date
        self._session.flush()

        logger.info(
            "fee_invoice_paid",
            extra={
                "invoice_number": invoice.invoice_number,
                "amount": str(invoice.amount),
                "journal_entry_id": str(invoice.journal_entry_id)
                if invoice.journal_entry_id else None,
            },
        )
        return invoice

    def waive(self, invoice_id: UUID, reason: str) -> MembershipFeeInvoiceModel:
        if not reason or not reason.strip():
            raise InvalidRequestError("reason", "must be non-empty")
        invoice = self._lock_invoice(invoice_id)
        invoice.status = FEE_INVOICE_WORKFLOW.require(
            invoice.status, "waive", invoice_id,
        ).to_state
        invoice.waived_reason = reason.strip()
        self._session.flush()

        logger.info(
            "fee_invoice_waived",
            extra={"invoice_number": invoice.invoice_number, "reason": invoice.waived_reason},
        )
        return invoice

    def delinquency(self, as_of: date | None = None) -> list[DelinquentInvoice]:
        """Unpaid invoices past their due date, oldest first."""
        as_of = as_of or self._clock.today()
        rows = self._session.execute(
            select(
                MembershipFeeInvoiceModel,
                InvestorModel.name,
                MembershipFeeScheduleModel.name,
            )
            .join(InvestorModel, InvestorModel.id == MembershipFeeInvoiceModel.investor_id)
            .join(
                MembershipFeeScheduleModel,
                MembershipFeeScheduleModel.id == MembershipFeeInvoiceModel.schedule_id,
            )
            .where(
                MembershipFeeInvoiceModel.status.in_(
                    [s.value for s in OUTSTANDING_INVOICE_STATUSES]
                ),
                MembershipFeeInvoiceModel.due_date < as_of,
            )
            .order_by(
                MembershipFeeInvoiceModel.due_date,
                MembershipFeeInvoiceModel.invoice_number,
            )
        ).all()
        return [
            DelinquentInvoice(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                investor_id=invoice.investor_id,
                investor_name=investor_name,
                schedule_name=schedule_name,
                amount=invoice.amount,
                due_date=invoice.due_date,
                status=invoice.status,
                days_overdue=(as_of - invoice.due_date).days,
            )
            for invoice, investor_name, schedule_name in rows
        ]
