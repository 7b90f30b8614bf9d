"""
capital_modules.procedures.router
=================================

Responsibility:
    The remote-procedure boundary of the engine.  Maps dotted procedure
    names (``invest``, ``distributions.mark_paid``, ...) to service calls,
    parses request payloads, runs each call in its own transaction and
    renders the result for the wire.

Architecture:
    Outermost module layer.  The transport (HTTP, queue, CLI) is out of
    scope; it hands ``ProcedureRouter.call`` a name, a payload dict and the
    authenticated user id, and sends back the returned dict.

Invariants enforced:
    - One ``session_scope()`` per call: commit on success, rollback on any
      error.  No partial writes ever escape a failed call.
    - Decimals are rendered as strings; floats are refused on input.
    - Errors are reported by category only: ``NOT_FOUND``, ``BAD_REQUEST``
      or ``CONFLICT``, each with a human-readable message.

Failure modes:
    - Engine errors are returned as ``{"ok": False, "error": ...}``.
    - Anything else (store outage, programming error) propagates to the
      transport after the transaction is rolled back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, ContextManager, Mapping
from uuid import uuid4

from sqlalchemy.orm import Session

from capital_config import EngineConfig, get_active_config
from capital_kernel.db.engine import session_scope
from capital_kernel.domain.actor import ContextActorProvider, acting_as
from capital_kernel.domain.clock import Clock, SystemClock
from capital_kernel.exceptions import (
    CapitalEngineError,
    InvalidRequestError,
    UnknownProcedureError,
)
from capital_kernel.logging_config import LogContext, get_logger
from capital_kernel.models.account import Account
from capital_modules.accounts import AccountService, account_to_dto
from capital_modules.investment import (
    InvestmentService,
    InvestorService,
    MilestoneService,
    ProjectService,
)
from capital_modules.membership import MembershipFeeService
from capital_modules.procedures.parsing import (
    parse_bool,
    parse_date,
    parse_int,
    parse_money,
    parse_money_list,
    parse_str,
    parse_uuid,
)
from capital_modules.reporting import ReportingService, render_to_dict
from capital_modules.shareholders import (
    CapitalCallService,
    PaymentService,
    ShareholderService,
)

logger = get_logger("modules.procedures.router")

Handler = Callable[[Session, Mapping[str, Any]], Any]


def _flow(payload: Mapping[str, Any], field: str) -> Decimal:
    amount = parse_money(payload, field, required=False)
    return Decimal("0") if amount is None else amount


def _render(result: Any) -> Any:
    if isinstance(result, list):
        return [_render(item) for item in result]
    if isinstance(result, Account):
        return render_to_dict(account_to_dto(result))
    to_dto = getattr(result, "to_dto", None)
    if to_dto is not None:
        return render_to_dict(to_dto())
    return render_to_dict(result)


class ProcedureRouter:
    """
    Dispatches named procedures to the engine services.

    Contract:
        ``call(name, payload, actor_id)`` never raises a CapitalEngineError;
        it returns ``{"ok": True, "data": ...}`` or
        ``{"ok": False, "error": {"code": ..., "message": ...}}``.

    Non-goals:
        - No authentication; the caller supplies the acting user id.
        - No HTTP status mapping.
    """

    def __init__(
        self,
        session_factory: Callable[[], ContextManager[Session]] = session_scope,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._actors = ContextActorProvider(self._config.ledger.system_actor)
        self._handlers: dict[str, Handler] = {
            # Chart of accounts
            "accounts.create": self._accounts_create,
            "accounts.list": self._accounts_list,
            "accounts.seed_defaults": self._accounts_seed_defaults,
            # Projects and investors
            "projects.create": self._projects_create,
            "projects.get": self._projects_get,
            "projects.publish": self._projects_publish,
            "projects.close": self._projects_close,
            "projects.add_cash_flow": self._projects_add_cash_flow,
            "investors.create": self._investors_create,
            "investors.approve_kyc": self._investors_approve_kyc,
            "investors.reject_kyc": self._investors_reject_kyc,
            "milestones.create": self._milestones_create,
            "milestones.list": self._milestones_list,
            "milestones.update": self._milestones_update,
            "milestones.complete": self._milestones_complete,
            # Investments and distributions
            "invest": self._invest,
            "exit": self._exit,
            "investments.list": self._investments_list,
            "investments.mark_defaulted": self._investments_mark_defaulted,
            "distributions.calculate": self._distributions_calculate,
            "distributions.create": self._distributions_create,
            "distributions.approve": self._distributions_approve,
            "distributions.cancel": self._distributions_cancel,
            "distributions.mark_paid": self._distributions_mark_paid,
            # Shareholders
            "share_classes.create": self._share_classes_create,
            "shareholders.allot": self._shareholders_allot,
            "shareholders.transfer": self._shareholders_transfer,
            "shareholders.cancel": self._shareholders_cancel,
            "shareholders.suspend": self._shareholders_suspend,
            "shareholders.reinstate": self._shareholders_reinstate,
            "shareholders.register": self._shareholders_register,
            "capital_calls.create": self._capital_calls_create,
            "capital_calls.issue": self._capital_calls_issue,
            "capital_calls.cancel": self._capital_calls_cancel,
            "payments.create": self._payments_create,
            "payments.mark_paid": self._payments_mark_paid,
            "payments.schedule": self._payments_schedule,
            "payments.mark_overdue": self._payments_mark_overdue,
            # Membership fees
            "fee_schedules.create": self._fee_schedules_create,
            "fee_schedules.list": self._fee_schedules_list,
            "fee_schedules.toggle": self._fee_schedules_toggle,
            "fee_invoices.generate": self._fee_invoices_generate,
            "fee_invoices.list": self._fee_invoices_list,
            "fee_invoices.mark_overdue": self._fee_invoices_mark_overdue,
            "fee_invoices.mark_paid": self._fee_invoices_mark_paid,
            "fee_invoices.waive": self._fee_invoices_waive,
            "fee_invoices.delinquency": self._fee_invoices_delinquency,
            # Reporting and analytics
            "reports.trial_balance": self._reports_trial_balance,
            "reports.profit_and_loss": self._reports_profit_and_loss,
            "reports.balance_sheet": self._reports_balance_sheet,
            "reports.project_summary": self._reports_project_summary,
            "reports.investor_portfolio": self._reports_investor_portfolio,
            "reports.cash_flow_statement": self._reports_cash_flow_statement,
            "analytics.irr": self._analytics_irr,
            "analytics.npv": self._analytics_npv,
            "analytics.roi": self._analytics_roi,
        }

    @property
    def procedures(self) -> tuple[str, ...]:
        return tuple(sorted(self._handlers))

    def call(
        self,
        procedure: str,
        payload: Mapping[str, Any] | None = None,
        actor_id: str | None = None,
        correlation_id: str | None = None,
    ) -> dict[str, Any]:
        payload = payload or {}
        correlation_id = correlation_id or str(uuid4())
        with LogContext.bind(
            procedure=procedure,
            correlation_id=correlation_id,
            actor_id=actor_id,
        ), acting_as(actor_id):
            try:
                handler = self._handlers.get(procedure)
                if handler is None:
                    raise UnknownProcedureError(procedure)
                with self._session_factory() as session:
                    data = _render(handler(session, payload))
            except CapitalEngineError as exc:
                logger.warning(
                    "procedure_failed",
                    extra={
                        "error_code": exc.code,
                        "category": exc.category,
                        "reason": exc.message,
                    },
                )
                return {"ok": False, "error": {"code": exc.category, "message": exc.message}}

            logger.info("procedure_completed")
            return {"ok": True, "data": data}

    # =========================================================================
    # Service factories
    # =========================================================================

    def _investments(self, session: Session) -> InvestmentService:
        return InvestmentService(session, self._clock, self._actors, self._config)

    def _shareholders(self, session: Session) -> ShareholderService:
        return ShareholderService(session, self._actors, self._config)

    def _capital_calls(self, session: Session) -> CapitalCallService:
        return CapitalCallService(session, self._actors, self._config)

    def _payments(self, session: Session) -> PaymentService:
        return PaymentService(session, self._clock, self._actors, self._config)

    def _milestones(self, session: Session) -> MilestoneService:
        return MilestoneService(session, self._actors)

    def _membership(self, session: Session) -> MembershipFeeService:
        return MembershipFeeService(session, self._clock, self._actors, self._config)

    def _reporting(self, session: Session) -> ReportingService:
        return ReportingService(session, self._clock, self._config)

    # =========================================================================
    # Chart of accounts
    # =========================================================================

    def _accounts_create(self, session: Session, p: Mapping[str, Any]):
        return AccountService(session, self._actors).create_account(
            code=parse_str(p, "code"),
            name=parse_str(p, "name"),
            account_type=parse_str(p, "type"),
            normal_balance=parse_str(p, "normal_balance", required=False),
            parent_id=parse_uuid(p, "parent_id", required=False),
            description=parse_str(p, "description", required=False),
        )

    def _accounts_list(self, session: Session, p: Mapping[str, Any]):
        return AccountService(session, self._actors).list_accounts(
            account_type=parse_str(p, "type", required=False),
            active_only=parse_bool(p, "active_only", default=False),
        )

    def _accounts_seed_defaults(self, session: Session, p: Mapping[str, Any]):
        return AccountService(session, self._actors).seed_default_chart(self._config)

    # =========================================================================
    # Projects and investors
    # =========================================================================

    def _projects_create(self, session: Session, p: Mapping[str, Any]):
        return ProjectService(session, self._actors).create_project(
            name=parse_str(p, "name"),
            project_type=parse_str(p, "type"),
            target_amount=parse_money(p, "target_amount"),
            minimum_investment=parse_money(p, "minimum_investment", required=False),
            maximum_investment=parse_money(p, "maximum_investment", required=False),
            expected_return_rate=parse_money(p, "expected_return_rate", required=False),
            discount_rate=parse_money(p, "discount_rate", required=False),
            hurdle_rate=parse_money(p, "hurdle_rate", required=False),
            start_date=parse_date(p, "start_date", required=False),
            end_date=parse_date(p, "end_date", required=False),
            description=parse_str(p, "description", required=False),
            asset_account_id=parse_uuid(p, "asset_account_id", required=False),
            equity_account_id=parse_uuid(p, "equity_account_id", required=False),
            revenue_account_id=parse_uuid(p, "revenue_account_id", required=False),
        )

    def _projects_get(self, session: Session, p: Mapping[str, Any]):
        return ProjectService(session, self._actors).get_project(parse_uuid(p, "id"))

    def _projects_publish(self, session: Session, p: Mapping[str, Any]):
        return ProjectService(session, self._actors).publish(parse_uuid(p, "id"))

    def _projects_close(self, session: Session, p: Mapping[str, Any]):
        return ProjectService(session, self._actors).close(
            parse_uuid(p, "id"), parse_str(p, "status"),
        )

    def _projects_add_cash_flow(self, session: Session, p: Mapping[str, Any]):
        return ProjectService(session, self._actors).add_cash_flow(
            project_id=parse_uuid(p, "project_id"),
            period_number=parse_int(p, "period_number"),
            period_date=parse_date(p, "period_date"),
            projected_inflow=_flow(p, "projected_inflow"),
            projected_outflow=_flow(p, "projected_outflow"),
            actual_inflow=_flow(p, "actual_inflow"),
            actual_outflow=_flow(p, "actual_outflow"),
            description=parse_str(p, "description", required=False),
        )

    def _investors_create(self, session: Session, p: Mapping[str, Any]):
        return InvestorService(session, self._clock, self._actors).create_investor(
            name=parse_str(p, "name"),
            email=parse_str(p, "email"),
            investor_type=parse_str(p, "type", required=False) or "individual",
            notes=parse_str(p, "notes", required=False),
        )

    def _investors_approve_kyc(self, session: Session, p: Mapping[str, Any]):
        return InvestorService(session, self._clock, self._actors).approve_kyc(
            parse_uuid(p, "id"),
        )

    def _investors_reject_kyc(self, session: Session, p: Mapping[str, Any]):
        return InvestorService(session, self._clock, self._actors).reject_kyc(
            parse_uuid(p, "id"),
        )

    def _milestones_create(self, session: Session, p: Mapping[str, Any]):
        return self._milestones(session).create(
            project_id=parse_uuid(p, "project_id"),
            name=parse_str(p, "name"),
            planned_date=parse_date(p, "planned_date", required=False),
            budget_allocated=parse_money(p, "budget_allocated", required=False),
            description=parse_str(p, "description", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _milestones_list(self, session: Session, p: Mapping[str, Any]):
        return self._milestones(session).list_milestones(
            project_id=parse_uuid(p, "project_id", required=False),
            status=parse_str(p, "status", required=False),
        )

    def _milestones_update(self, session: Session, p: Mapping[str, Any]):
        return self._milestones(session).update(
            parse_uuid(p, "id"),
            name=parse_str(p, "name", required=False),
            status=parse_str(p, "status", required=False),
            completion_percentage=parse_int(p, "completion_percentage", required=False),
            planned_date=parse_date(p, "planned_date", required=False),
            budget_allocated=parse_money(p, "budget_allocated", required=False),
            actual_cost=parse_money(p, "actual_cost", required=False),
            description=parse_str(p, "description", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _milestones_complete(self, session: Session, p: Mapping[str, Any]):
        return self._milestones(session).complete(
            parse_uuid(p, "id"),
            actual_date=parse_date(p, "actual_date", required=False) or self._clock.today(),
            actual_cost=parse_money(p, "actual_cost", required=False),
        )

    # =========================================================================
    # Investments and distributions
    # =========================================================================

    def _invest(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).invest(
            project_id=parse_uuid(p, "project_id"),
            investor_id=parse_uuid(p, "investor_id"),
            amount=parse_money(p, "amount"),
            investment_date=parse_date(p, "investment_date"),
            notes=parse_str(p, "notes", required=False),
        )

    def _exit(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).exit(
            investment_id=parse_uuid(p, "id"),
            actual_return_amount=parse_money(p, "actual_return_amount"),
            exit_date=parse_date(p, "exit_date"),
        )

    def _investments_list(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).list_investments(
            project_id=parse_uuid(p, "project_id", required=False),
            investor_id=parse_uuid(p, "investor_id", required=False),
            status=parse_str(p, "status", required=False),
        )

    def _investments_mark_defaulted(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).mark_defaulted(parse_uuid(p, "id"))

    def _distributions_calculate(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).calculate_distributions(
            project_id=parse_uuid(p, "project_id"),
            total_amount=parse_money(p, "total_amount"),
        )

    def _distributions_create(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).create_distributions(
            project_id=parse_uuid(p, "project_id"),
            total_amount=parse_money(p, "total_amount"),
            distribution_type=parse_str(p, "type"),
            distribution_date=parse_date(p, "distribution_date", required=False)
            or self._clock.today(),
            period_start=parse_date(p, "period_start", required=False),
            period_end=parse_date(p, "period_end", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _distributions_approve(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).approve_distribution(parse_uuid(p, "id"))

    def _distributions_cancel(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).cancel_distribution(parse_uuid(p, "id"))

    def _distributions_mark_paid(self, session: Session, p: Mapping[str, Any]):
        return self._investments(session).mark_distribution_paid(parse_uuid(p, "id"))

    # =========================================================================
    # Shareholders
    # =========================================================================

    def _share_classes_create(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).create_share_class(
            code=parse_str(p, "code"),
            name=parse_str(p, "name"),
            share_class_type=parse_str(p, "type", required=False) or "ordinary",
            authorized_shares=parse_int(p, "authorized_shares", required=False),
            par_value=parse_money(p, "par_value", required=False),
            voting_rights=parse_bool(p, "voting_rights", default=True),
            dividend_priority=parse_int(p, "dividend_priority", required=False) or 0,
            notes=parse_str(p, "notes", required=False),
        )

    def _shareholders_allot(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).allot(
            investor_id=parse_uuid(p, "investor_id"),
            share_class_id=parse_uuid(p, "share_class_id"),
            number_of_shares=parse_int(p, "number_of_shares"),
            issue_price_per_share=parse_money(p, "issue_price_per_share"),
            allocation_date=parse_date(p, "allocation_date"),
            certificate_number=parse_str(p, "certificate_number", required=False),
            cash_account_id=parse_uuid(p, "cash_account_id", required=False),
            share_capital_account_id=parse_uuid(p, "share_capital_account_id", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _shareholders_transfer(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).transfer(
            allocation_id=parse_uuid(p, "allocation_id"),
            to_investor_id=parse_uuid(p, "to_investor_id"),
            transfer_date=parse_date(p, "transfer_date"),
            price_per_share=parse_money(p, "price_per_share", required=False),
            certificate_number=parse_str(p, "certificate_number", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _shareholders_cancel(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).cancel(parse_uuid(p, "allocation_id"))

    def _shareholders_suspend(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).suspend(parse_uuid(p, "allocation_id"))

    def _shareholders_reinstate(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).reinstate(parse_uuid(p, "allocation_id"))

    def _shareholders_register(self, session: Session, p: Mapping[str, Any]):
        return self._shareholders(session).register(
            parse_uuid(p, "share_class_id", required=False),
        )

    def _capital_calls_create(self, session: Session, p: Mapping[str, Any]):
        return self._capital_calls(session).create(
            share_class_id=parse_uuid(p, "share_class_id"),
            description=parse_str(p, "description"),
            amount_per_share=parse_money(p, "amount_per_share"),
            call_date=parse_date(p, "call_date"),
            due_date=parse_date(p, "due_date", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _capital_calls_issue(self, session: Session, p: Mapping[str, Any]):
        return self._capital_calls(session).issue(parse_uuid(p, "id"))

    def _capital_calls_cancel(self, session: Session, p: Mapping[str, Any]):
        return self._capital_calls(session).cancel(parse_uuid(p, "id"))

    def _payments_create(self, session: Session, p: Mapping[str, Any]):
        return self._payments(session).create(
            investor_id=parse_uuid(p, "investor_id"),
            payment_type=parse_str(p, "type"),
            amount=parse_money(p, "amount"),
            due_date=parse_date(p, "due_date", required=False),
            capital_call_id=parse_uuid(p, "capital_call_id", required=False),
            reference=parse_str(p, "reference", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _payments_mark_paid(self, session: Session, p: Mapping[str, Any]):
        return self._payments(session).mark_paid(
            payment_id=parse_uuid(p, "id"),
            cash_account_id=parse_uuid(p, "cash_account_id", required=False),
            contra_account_id=parse_uuid(p, "contra_account_id", required=False),
            reference=parse_str(p, "reference", required=False),
        )

    def _payments_schedule(self, session: Session, p: Mapping[str, Any]):
        return self._payments(session).schedule(parse_uuid(p, "investor_id", required=False))

    def _payments_mark_overdue(self, session: Session, p: Mapping[str, Any]):
        return {
            "updated": self._payments(session).mark_overdue(
                parse_date(p, "as_of", required=False),
            ),
        }

    # =========================================================================
    # Membership fees
    # =========================================================================

    def _fee_schedules_create(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).create_schedule(
            share_class_id=parse_uuid(p, "share_class_id"),
            name=parse_str(p, "name"),
            fee_type=parse_str(p, "fee_type"),
            billing_cycle=parse_str(p, "billing_cycle"),
            amount=parse_money(p, "amount"),
            cash_account_id=parse_uuid(p, "cash_account_id", required=False),
            revenue_account_id=parse_uuid(p, "revenue_account_id", required=False),
            description=parse_str(p, "description", required=False),
            notes=parse_str(p, "notes", required=False),
        )

    def _fee_schedules_list(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).list_schedules(
            share_class_id=parse_uuid(p, "share_class_id", required=False),
            active_only=parse_bool(p, "active_only", default=False),
        )

    def _fee_schedules_toggle(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).toggle(parse_uuid(p, "id"))

    def _fee_invoices_generate(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).generate(
            schedule_id=parse_uuid(p, "schedule_id"),
            period_label=parse_str(p, "period_label"),
            period_start=parse_date(p, "period_start"),
            period_end=parse_date(p, "period_end"),
            due_date=parse_date(p, "due_date"),
        )

    def _fee_invoices_list(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).list_invoices(
            schedule_id=parse_uuid(p, "schedule_id", required=False),
            investor_id=parse_uuid(p, "investor_id", required=False),
            status=parse_str(p, "status", required=False),
        )

    def _fee_invoices_mark_overdue(self, session: Session, p: Mapping[str, Any]):
        return {
            "updated": self._membership(session).mark_overdue(
                parse_date(p, "as_of", required=False),
            ),
        }

    def _fee_invoices_mark_paid(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).mark_paid(
            parse_uuid(p, "id"),
            paid_date=parse_date(p, "paid_date", required=False),
        )

    def _fee_invoices_waive(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).waive(
            parse_uuid(p, "id"), parse_str(p, "reason"),
        )

    def _fee_invoices_delinquency(self, session: Session, p: Mapping[str, Any]):
        return self._membership(session).delinquency(parse_date(p, "as_of", required=False))

    # =========================================================================
    # Reporting and analytics
    # =========================================================================

    def _reports_trial_balance(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).trial_balance(
            from_date=parse_date(p, "from_date", required=False),
            to_date=parse_date(p, "to_date", required=False),
        )

    def _reports_profit_and_loss(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).profit_and_loss(
            from_date=parse_date(p, "from_date", required=False),
            to_date=parse_date(p, "to_date", required=False),
        )

    def _reports_balance_sheet(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).balance_sheet(parse_date(p, "as_of", required=False))

    def _reports_project_summary(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).project_summary(parse_uuid(p, "project_id"))

    def _reports_investor_portfolio(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).investor_portfolio(parse_uuid(p, "investor_id"))

    def _reports_cash_flow_statement(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).cash_flow_statement(parse_uuid(p, "project_id"))

    def _analytics_irr(self, session: Session, p: Mapping[str, Any]):
        flows = parse_money_list(p, "cash_flows")
        if not flows:
            raise InvalidRequestError("cash_flows", "must contain at least one value")
        return self._reporting(session).irr(flows, parse_money(p, "guess", required=False))

    def _analytics_npv(self, session: Session, p: Mapping[str, Any]):
        rate = parse_money(p, "rate", required=False)
        if rate is not None and rate == Decimal("-1"):
            raise InvalidRequestError("rate", "must not be -1")
        return self._reporting(session).npv(parse_money_list(p, "cash_flows"), rate)

    def _analytics_roi(self, session: Session, p: Mapping[str, Any]):
        return self._reporting(session).roi(
            parse_money(p, "returns"), parse_money(p, "invested"),
        )
