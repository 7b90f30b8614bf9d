"""
capital_modules.shareholders.capital_calls
==========================================

Responsibility:
    Capital calls (per-share demands on the holders of a share class) and
    the shareholder payments they generate, including settlement of any
    shareholder payment into the ledger.

Invariants enforced:
    - ``issue`` creates exactly one pending ``capital_call`` payment per
      active allocation, and ``total_amount_called`` equals their sum.
    - A call with no active allocations cannot be issued; nothing is
      written in that case.
    - After a payment of a call is paid, the call is ``fully_paid`` when
      every payment is paid and ``partially_paid`` when only some are.
    - The call row is locked ``FOR UPDATE`` in issue and mark_paid so
      concurrent payments see a consistent sibling set.

Failure modes:
    - CapitalCallNotFoundError / PaymentNotFoundError / ShareClassNotFoundError.
    - InvalidTransitionError: issuing a non-draft call, cancelling a paid
      call, paying a waived payment.
    - AlreadyPaidError: paying a paid payment.
    - NoActiveShareholdersError: issuing against an empty share class.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_config import EngineConfig, get_active_config
from capital_engines.allocation import per_share_amounts
from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.clock import Clock, SystemClock
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    AlreadyPaidError,
    CapitalCallNotFoundError,
    InvalidAmountError,
    InvalidRequestError,
    InvestorNotFoundError,
    NoActiveShareholdersError,
    PaymentNotFoundError,
    ShareClassNotFoundError,
)
from capital_kernel.logging_config import LogContext, get_logger
from capital_kernel.services.entry_numbering import EntryNumberGenerator
from capital_kernel.services.ledger_posting_service import LedgerPostingService
from capital_kernel.services.ledger_sink import ledger_sink_for
from capital_modules.investment.orm import InvestorModel
from capital_modules.shareholders.models import (
    INCOMING_PAYMENT_TYPES,
    PAYMENT_DESCRIPTIONS,
    AllocationStatus,
    CapitalCallStatus,
    PaymentStatus,
    PaymentType,
)
from capital_modules.shareholders.orm import (
    CapitalCallModel,
    ShareClassModel,
    ShareholderAllocationModel,
    ShareholderPaymentModel,
)
from capital_modules.shareholders.workflows import (
    CAPITAL_CALL_WORKFLOW,
    PAYMENT_WORKFLOW,
)

logger = get_logger("modules.shareholders.capital_calls")


def _posting_service(
    session: Session, actors: ActorProvider, config: EngineConfig,
) -> LedgerPostingService:
    return LedgerPostingService(
        session,
        actor_provider=actors,
        numbering=EntryNumberGenerator(session, config.ledger.entry_number_width),
    )


class CapitalCallService:
    """Create, issue and cancel capital calls."""

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

    def get_call(self, call_id: UUID) -> CapitalCallModel:
        call = self._session.get(CapitalCallModel, call_id)
        if call is None:
            raise CapitalCallNotFoundError(call_id)
        return call

    def _lock_call(self, call_id: UUID) -> CapitalCallModel:
        call = self._session.execute(
            select(CapitalCallModel)
            .where(CapitalCallModel.id == call_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if call is None:
            raise CapitalCallNotFoundError(call_id)
        return call

    def list_calls(
        self,
        share_class_id: UUID | None = None,
        status: CapitalCallStatus | str | None = None,
    ) -> list[CapitalCallModel]:
        query = select(CapitalCallModel).order_by(CapitalCallModel.call_date.desc())
        if share_class_id is not None:
            query = query.where(CapitalCallModel.share_class_id == share_class_id)
        if status is not None:
            status = coerce_enum(CapitalCallStatus, status, "status")
            query = query.where(CapitalCallModel.status == status.value)
        return list(self._session.execute(query).scalars().all())

    def payments_for(self, call_id: UUID) -> list[ShareholderPaymentModel]:
        return list(
            self._session.execute(
                select(ShareholderPaymentModel)
                .where(ShareholderPaymentModel.capital_call_id == call_id)
                .order_by(ShareholderPaymentModel.created_at)
            ).scalars().all()
        )

    def create(
        self,
        share_class_id: UUID,
        description: str,
        amount_per_share: Decimal,
        call_date: date,
        due_date: date | None = None,
        notes: str | None = None,
    ) -> CapitalCallModel:
        if self._session.get(ShareClassModel, share_class_id) is None:
            raise ShareClassNotFoundError(share_class_id)
        if not description or not description.strip():
            raise InvalidRequestError("description", "must be non-empty")
        if amount_per_share <= 0:
            raise InvalidAmountError("amount_per_share", amount_per_share)
        if due_date is not None and due_date < call_date:
            raise InvalidRequestError("due_date", "must not precede call_date")

        call = CapitalCallModel(
            share_class_id=share_class_id,
            description=description.strip(),
            amount_per_share=amount_per_share,
            call_date=call_date,
            due_date=due_date,
            status=CAPITAL_CALL_WORKFLOW.initial_state,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(call)
        self._session.flush()
        logger.info(
            "capital_call_created",
            extra={"call_id": str(call.id), "amount_per_share": str(amount_per_share)},
        )
        return call

    def issue(self, call_id: UUID) -> CapitalCallModel:
        """
        Issue a draft call: one pending payment per active allocation of the
        share class, each worth ``shares * amount_per_share``.
        """
        call = self._lock_call(call_id)
        transition = CAPITAL_CALL_WORKFLOW.require(call.status, "issue", call_id)

        allocations = list(
            self._session.execute(
                select(ShareholderAllocationModel)
                .where(
                    ShareholderAllocationModel.share_class_id == call.share_class_id,
                    ShareholderAllocationModel.status == AllocationStatus.ACTIVE.value,
                )
                .order_by(
                    ShareholderAllocationModel.allocation_date,
                    ShareholderAllocationModel.created_at,
                )
            ).scalars().all()
        )
        if not allocations:
            raise NoActiveShareholdersError(call.share_class_id)

        amounts = per_share_amounts(
            {a.id: a.number_of_shares for a in allocations},
            call.amount_per_share,
            self._config.ledger.money_decimal_places,
        )
        actor = self._actors.current_actor()
        for allocation in allocations:
            self._session.add(
                ShareholderPaymentModel(
                    investor_id=allocation.investor_id,
                    capital_call_id=call.id,
                    payment_type=PaymentType.CAPITAL_CALL.value,
                    amount=amounts[allocation.id],
                    status=PAYMENT_WORKFLOW.initial_state,
                    due_date=call.due_date,
                    created_by=actor,
                )
            )

        call.total_amount_called = sum(amounts.values(), Decimal("0"))
        call.status = transition.to_state
        self._session.flush()

        logger.info(
            "capital_call_issued",
            extra={
                "call_id": str(call_id),
                "payment_count": len(allocations),
                "total_amount_called": str(call.total_amount_called),
            },
        )
        return call

    def cancel(self, call_id: UUID) -> CapitalCallModel:
        """Cancel a draft or issued call.  Its payments are waived."""
        call = self._lock_call(call_id)
        transition = CAPITAL_CALL_WORKFLOW.require(call.status, "cancel", call_id)

        waived = 0
        for payment in self.payments_for(call_id):
            if PAYMENT_WORKFLOW.find(payment.status, "waive") is not None:
                payment.status = PaymentStatus.WAIVED.value
                waived += 1
        call.status = transition.to_state
        self._session.flush()

        logger.info(
            "capital_call_cancelled",
            extra={"call_id": str(call_id), "waived_payments": waived},
        )
        return call


class PaymentService:
    """Shareholder payments and their settlement into the ledger."""

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
        self._poster = _posting_service(session, self._actors, self._config)

    def get_payment(self, payment_id: UUID) -> ShareholderPaymentModel:
        payment = self._session.get(ShareholderPaymentModel, payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)
        return payment

    def list_payments(
        self,
        investor_id: UUID | None = None,
        status: PaymentStatus | str | None = None,
        payment_type: PaymentType | str | None = None,
    ) -> list[ShareholderPaymentModel]:
        query = select(ShareholderPaymentModel).order_by(
            ShareholderPaymentModel.created_at.desc()
        )
        if investor_id is not None:
            query = query.where(ShareholderPaymentModel.investor_id == investor_id)
        if status is not None:
            status = coerce_enum(PaymentStatus, status, "status")
            query = query.where(ShareholderPaymentModel.status == status.value)
        if payment_type is not None:
            payment_type = coerce_enum(PaymentType, payment_type, "type")
            query = query.where(ShareholderPaymentModel.payment_type == payment_type.value)
        return list(self._session.execute(query).scalars().all())

    def create(
        self,
        investor_id: UUID,
        payment_type: PaymentType | str,
        amount: Decimal,
        due_date: date | None = None,
        capital_call_id: UUID | None = None,
        reference: str | None = None,
        notes: str | None = None,
    ) -> ShareholderPaymentModel:
        payment_type = coerce_enum(PaymentType, payment_type, "type")
        if self._session.get(InvestorModel, investor_id) is None:
            raise InvestorNotFoundError(investor_id)
        if capital_call_id is not None and self._session.get(CapitalCallModel, capital_call_id) is None:
            raise CapitalCallNotFoundError(capital_call_id)
        if amount <= 0:
            raise InvalidAmountError("amount", amount)

        payment = ShareholderPaymentModel(
            investor_id=investor_id,
            capital_call_id=capital_call_id,
            payment_type=payment_type.value,
            amount=amount,
            status=PAYMENT_WORKFLOW.initial_state,
            due_date=due_date,
            reference=reference,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(payment)
        self._session.flush()
        logger.info(
            "shareholder_payment_created",
            extra={
                "payment_id": str(payment.id),
                "payment_type": payment_type.value,
                "amount": str(amount),
            },
        )
        return payment

    def schedule(self, investor_id: UUID | None = None) -> list[ShareholderPaymentModel]:
        """Outstanding (pending or overdue) payments, earliest due first."""
        query = (
            select(ShareholderPaymentModel)
            .where(
                ShareholderPaymentModel.status.in_(
                    [PaymentStatus.PENDING.value, PaymentStatus.OVERDUE.value]
                )
            )
            .order_by(
                ShareholderPaymentModel.due_date.is_(None),
                ShareholderPaymentModel.due_date,
                ShareholderPaymentModel.created_at,
            )
        )
        if investor_id is not None:
            query = query.where(ShareholderPaymentModel.investor_id == investor_id)
        return list(self._session.execute(query).scalars().all())

    def mark_overdue(self, as_of: date | None = None) -> int:
        """
        Move pending payments due before ``as_of`` (default: today) to
        overdue.  Payments without a due date are never overdue.  Returns
        the number of payments moved.
        """
        as_of = as_of or self._clock.today()
        payments = self._session.execute(
            select(ShareholderPaymentModel)
            .where(
                ShareholderPaymentModel.status == PaymentStatus.PENDING.value,
                ShareholderPaymentModel.due_date < as_of,
            )
            .with_for_update()
        ).scalars().all()
        for payment in payments:
            payment.status = PAYMENT_WORKFLOW.require(
                payment.status, "mark_overdue", payment.id,
            ).to_state
        self._session.flush()

        logger.info(
            "shareholder_payments_overdue",
            extra={"as_of": as_of.isoformat(), "payment_count": len(payments)},
        )
        return len(payments)

    def mark_paid(
        self,
        payment_id: UUID,
        cash_account_id: UUID | None = None,
        contra_account_id: UUID | None = None,
        reference: str | None = None,
    ) -> ShareholderPaymentModel:
        """
        Settle a payment.

        With both account ids, posts ``PAY``: incoming types debit cash and
        credit the contra account, outgoing types the reverse.  A payment
        belonging to a capital call then moves the call's status along.
        """
        payment = self.get_payment(payment_id)
        if payment.status == PaymentStatus.PAID.value:
            raise AlreadyPaidError("Payment", payment_id)

        call = None
        if payment.capital_call_id is not None:
            call = self._session.execute(
                select(CapitalCallModel)
                .where(CapitalCallModel.id == payment.capital_call_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one()

        transition = PAYMENT_WORKFLOW.require(payment.status, "pay", payment_id)
        payment_type = PaymentType(payment.payment_type)
        today = self._clock.today()

        if payment_type in INCOMING_PAYMENT_TYPES:
            sink = ledger_sink_for(self._poster, cash_account_id, contra_account_id)
            debit_memo, credit_memo = "Cash received", "Liability/equity credited"
        else:
            sink = ledger_sink_for(self._poster, contra_account_id, cash_account_id)
            debit_memo, credit_memo = "Payment made", "Cash paid out"
        with LogContext.bind(investor_id=payment.investor_id):
            payment.journal_entry_id = sink.post(
                payment.amount,
                today,
                PAYMENT_DESCRIPTIONS.get(payment_type, "Shareholder payment"),
                "PAY",
                debit_memo=debit_memo,
                credit_memo=credit_memo,
            )

        payment.status = transition.to_state
        payment.paid_date = today
        if reference is not None:
            payment.reference = reference
        self._session.flush()

        if call is not None:
            self._refresh_call_status(call)

        logger.info(
            "shareholder_payment_paid",
            extra={
                "payment_id": str(payment_id),
                "payment_type": payment_type.value,
                "amount": str(payment.amount),
                "journal_entry_id": str(payment.journal_entry_id)
                if payment.journal_entry_id else None,
                "call_status": call.status if call is not None else None,
            },
        )
        return payment

    def _refresh_call_status(self, call: CapitalCallModel) -> None:
        statuses = list(
            self._session.execute(
                select(ShareholderPaymentModel.status).where(
                    ShareholderPaymentModel.capital_call_id == call.id
                )
            ).scalars().all()
        )
        paid = [s for s in statuses if s == PaymentStatus.PAID.value]
        if statuses and len(paid) == len(statuses):
            action = "receive_full"
        elif paid:
            action = "receive_partial"
        else:
            return

        transition = CAPITAL_CALL_WORKFLOW.find(call.status, action)
        if transition is not None:
            call.status = transition.to_state
            self._session.flush()
