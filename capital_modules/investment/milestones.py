"""
capital_modules.investment.milestones
=====================================

Delivery milestones of an investment project: what is planned, what it is
budgeted at, how far along it is.  Milestones carry no ledger effect; the
project summary reports their average completion.

Status changes go through ``MILESTONE_WORKFLOW``.  ``complete`` always
leaves a milestone at 100% with its actual date recorded.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    InvalidRequestError,
    MilestoneNotFoundError,
    ProjectNotFoundError,
)
from capital_kernel.logging_config import get_logger
from capital_modules.investment.models import MilestoneStatus
from capital_modules.investment.orm import InvestmentProjectModel, ProjectMilestoneModel
from capital_modules.investment.workflows import MILESTONE_WORKFLOW

logger = get_logger("modules.investment.milestones")

# Workflow action that moves a milestone into each status
_STATUS_ACTIONS = {
    MilestoneStatus.IN_PROGRESS: "start",
    MilestoneStatus.DELAYED: "delay",
    MilestoneStatus.COMPLETED: "complete",
}


def _check_completion(value: int) -> None:
    if isinstance(value, bool) or not 0 <= value <= 100:
        raise InvalidRequestError("completion_percentage", "must be between 0 and 100")


def _check_money(field: str, value: Decimal | None) -> None:
    if value is not None and value < 0:
        raise InvalidRequestError(field, "must not be negative")


class MilestoneService:
    """Create, track and complete project milestones."""

    def __init__(
        self,
        session: Session,
        actor_provider: ActorProvider | None = None,
    ):
        self._session = session
        self._actors = actor_provider or ContextActorProvider()

    def get_milestone(self, milestone_id: UUID) -> ProjectMilestoneModel:
        milestone = self._session.get(ProjectMilestoneModel, milestone_id)
        if milestone is None:
            raise MilestoneNotFoundError(milestone_id)
        return milestone

    def list_milestones(
        self,
        project_id: UUID | None = None,
        status: MilestoneStatus | str | None = None,
    ) -> list[ProjectMilestoneModel]:
        """Milestones by planned date; undated ones last."""
        query = select(ProjectMilestoneModel).order_by(
            ProjectMilestoneModel.planned_date.is_(None),
            ProjectMilestoneModel.planned_date,
            ProjectMilestoneModel.created_at,
        )
        if project_id is not None:
            query = query.where(ProjectMilestoneModel.project_id == project_id)
        if status is not None:
            status = coerce_enum(MilestoneStatus, status, "status")
            query = query.where(ProjectMilestoneModel.status == status.value)
        return list(self._session.execute(query).scalars().all())

    def create(
        self,
        project_id: UUID,
        name: str,
        planned_date: date | None = None,
        budget_allocated: Decimal | None = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> ProjectMilestoneModel:
        if self._session.get(InvestmentProjectModel, project_id) is None:
            raise ProjectNotFoundError(project_id)
        if not name or not name.strip():
            raise InvalidRequestError("name", "must be non-empty")
        _check_money("budget_allocated", budget_allocated)

        milestone = ProjectMilestoneModel(
            project_id=project_id,
            name=name.strip(),
            status=MILESTONE_WORKFLOW.initial_state,
            completion_percentage=0,
            planned_date=planned_date,
            budget_allocated=budget_allocated,
            description=description,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(milestone)
        self._session.flush()
        logger.info(
            "milestone_created",
            extra={"milestone_id": str(milestone.id), "project_id": str(project_id)},
        )
        return milestone

    def update(
        self,
        milestone_id: UUID,
        *,
        name: str | None = None,
        status: MilestoneStatus | str | None = None,
        completion_percentage: int | None = None,
        planned_date: date | None = None,
        budget_allocated: Decimal | None = None,
        actual_cost: Decimal | None = None,
        description: str | None = None,
        notes: str | None = None,
    ) -> ProjectMilestoneModel:
        """
        Change the given fields; ``None`` leaves a field as it is.

        A status change must be a workflow move from the current status
        (a completed milestone stays completed).  Moving to completed also
        sets the completion to 100.
        """
        milestone = self.get_milestone(milestone_id)
        if name is not None and not name.strip():
            raise InvalidRequestError("name", "must be non-empty")
        if completion_percentage is not None:
            _check_completion(completion_percentage)
        _check_money("budget_allocated", budget_allocated)
        _check_money("actual_cost", actual_cost)

        if status is not None:
            status = coerce_enum(MilestoneStatus, status, "status")
            if status.value != milestone.status:
                action = _STATUS_ACTIONS.get(status)
                if action is None:
                    raise InvalidRequestError("status", "a milestone cannot return to pending")
                milestone.status = MILESTONE_WORKFLOW.require(
                    milestone.status, action, milestone_id,
                ).to_state
                if status is MilestoneStatus.COMPLETED:
                    completion_percentage = 100

        for field, value in (
            ("name", name.strip() if name is not None else None),
            ("completion_percentage", completion_percentage),
            ("planned_date", planned_date),
            ("budget_allocated", budget_allocated),
            ("actual_cost", actual_cost),
            ("description", description),
            ("notes", notes),
        ):
            if value is not None:
                setattr(milestone, field, value)
        self._session.flush()

        logger.info(
            "milestone_updated",
            extra={
                "milestone_id": str(milestone_id),
                "status": milestone.status,
                "completion_percentage": milestone.completion_percentage,
            },
        )
        return milestone

    def complete(
        self,
        milestone_id: UUID,
        actual_date: date,
        actual_cost: Decimal | None = None,
    ) -> ProjectMilestoneModel:
        milestone = self.get_milestone(milestone_id)
        transition = MILESTONE_WORKFLOW.require(milestone.status, "complete", milestone_id)
        _check_money("actual_cost", actual_cost)

        milestone.status = transition.to_state
        milestone.completion_percentage = 100
        milestone.actual_date = actual_date
        if actual_cost is not None:
            milestone.actual_cost = actual_cost
        self._session.flush()

        logger.info(
            "milestone_completed",
            extra={
                "milestone_id": str(milestone_id),
                "project_id": str(milestone.project_id),
                "actual_date": actual_date.isoformat(),
            },
        )
        return milestone
