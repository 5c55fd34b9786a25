"""
Application-level cascade deletes.

The store does not cascade foreign keys for this schema, so dependents are
removed leaf-first by an ordered plan of delete steps before the parent row.
The default executor runs the steps one by one; any executor that keeps the
same order (e.g. one that wraps them in a single transaction) can replace it.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import structlog

from ..store.provider import FilterLike, StoreError, StoreResult, TableStore


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeleteStep:
    table: str
    filters: Tuple[FilterLike, ...]


@dataclass(frozen=True)
class CascadePlan:
    """Dependents first, parent last."""
    entity: str
    entity_id: str
    dependents: Tuple[DeleteStep, ...]
    parent: DeleteStep

    @property
    def steps(self) -> Tuple[DeleteStep, ...]:
        return self.dependents + (self.parent,)


@dataclass
class CascadeOutcome:
    plan: CascadePlan
    completed: List[DeleteStep] = field(default_factory=list)
    failed_step: Optional[DeleteStep] = None
    error: Optional[StoreError] = None
    fell_back: bool = False

    @property
    def tables(self) -> List[str]:
        return [step.table for step in self.completed]


class CascadeExecutor:
    async def run(self, store: TableStore, plan: CascadePlan) -> CascadeOutcome:
        raise NotImplementedError


class SequentialCascadeExecutor(CascadeExecutor):
    """Runs each step as its own statement; stops at the first failure without rolling back."""

    async def run(self, store: TableStore, plan: CascadePlan) -> CascadeOutcome:
        outcome = CascadeOutcome(plan=plan)
        for step in plan.steps:
            result = await store.delete(step.table, filters=step.filters)
            if result.error is not None:
                outcome.failed_step = step
                outcome.error = result.error
                return outcome
            outcome.completed.append(step)
        return outcome


default_executor = SequentialCascadeExecutor()


def plan_failure(plan: CascadePlan, error: StoreError) -> CascadeOutcome:
    """Outcome for a plan that could not even be assembled (e.g. the dependent lookup failed)."""
    return CascadeOutcome(plan=plan, failed_step=plan.dependents[0] if plan.dependents else plan.parent, error=error)


async def execute_cascade(
    store: TableStore,
    plan: CascadePlan,
    executor: Optional[CascadeExecutor] = None,
    prior_failure: Optional[CascadeOutcome] = None,
) -> StoreResult:
    """
    Run a cascade plan, degrading to a direct parent delete on failure.

    Args:
        store: Table store
        plan: Ordered delete plan
        executor: Step runner (defaults to sequential statements)
        prior_failure: Outcome of a failed planning phase; skips straight to the fallback

    Returns:
        StoreResult with the CascadeOutcome as data. The error is the last one
        encountered: the fallback's if it failed, otherwise the failed step's.
        Steps that already ran are not rolled back.
    """
    executor = executor or default_executor
    outcome = prior_failure
    if outcome is None:
        try:
            outcome = await executor.run(store, plan)
        except Exception as e:
            logger.exception("cascade_executor_crashed", entity=plan.entity, entity_id=plan.entity_id)
            outcome = CascadeOutcome(plan=plan, failed_step=plan.steps[0], error=StoreError(str(e) or e.__class__.__name__))

    if outcome.error is None:
        logger.info("cascade_delete_completed", entity=plan.entity, entity_id=plan.entity_id, tables=outcome.tables)
        return StoreResult(outcome, None)

    logger.warning(
        "cascade_step_failed",
        entity=plan.entity,
        entity_id=plan.entity_id,
        table=outcome.failed_step.table if outcome.failed_step else None,
        completed=outcome.tables,
        error=outcome.error.message,
    )
    if outcome.failed_step == plan.parent:
        # The parent delete itself failed; repeating it would change nothing
        return StoreResult(outcome, outcome.error)

    outcome.fell_back = True
    fallback = await store.delete(plan.parent.table, filters=plan.parent.filters)
    if fallback.error is not None:
        logger.warning("cascade_fallback_failed", entity=plan.entity, entity_id=plan.entity_id, error=fallback.error.message)
        return StoreResult(outcome, fallback.error)
    outcome.completed.append(plan.parent)
    return StoreResult(outcome, outcome.error)


def delete_step(table: str, *filters: FilterLike) -> DeleteStep:
    return DeleteStep(table, tuple(filters))
