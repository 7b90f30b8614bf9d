"""
capital_modules.investment.equity
=================================

EquityRecalculationService recomputes ``equity_percentage`` for every active
investment in a project as ``amount / project.raised_amount``.

It is called by ``invest`` inside the same transaction as the investment
insert and the ``raised_amount`` update, so no reader ever sees a new total
next to stale percentages.  It is also independently callable (repair
scripts, tests).

After a completed invest, the active percentages of a project sum to one
within 1e-6.  Exits and defaults do not trigger a recompute, so afterwards
the remaining active percentages may sum to less than one.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_engines.equity import compute_equity_shares
from capital_kernel.exceptions import ProjectNotFoundError
from capital_kernel.logging_config import get_logger
from capital_modules.investment.models import InvestmentStatus
from capital_modules.investment.orm import InvestmentModel, InvestmentProjectModel

logger = get_logger("modules.investment.equity")


class EquityRecalculationService:
    """Full recompute of ownership over all active investments of a project."""

    def __init__(self, session: Session):
        self._session = session

    def recalculate(self, project_id: UUID) -> list[InvestmentModel]:
        project = self._session.get(InvestmentProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        active = list(
            self._session.execute(
                select(InvestmentModel)
                .where(
                    InvestmentModel.project_id == project_id,
                    InvestmentModel.status == InvestmentStatus.ACTIVE.value,
                )
                .order_by(InvestmentModel.investment_date, InvestmentModel.created_at)
            ).scalars().all()
        )

        shares = compute_equity_shares(
            {inv.id: inv.amount for inv in active},
            project.raised_amount,
        )
        for inv in active:
            inv.equity_percentage = shares[inv.id]

        self._session.flush()

        logger.info(
            "equity_recalculated",
            extra={
                "project_id": str(project_id),
                "raised_amount": str(project.raised_amount),
                "active_investments": len(active),
                "equity_total": str(sum(shares.values(), Decimal("0"))),
            },
        )
        return active
