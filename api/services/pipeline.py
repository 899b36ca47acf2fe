"""
Hiring pipeline stage management.

Every state change is a single UPDATE statement so the rejected fields
(status, pipeline_stage, rejection_reason) never disagree. Rejection sends
the candidate email first and then writes the state; the two steps are
reported separately because the email cannot be taken back.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
import logging

from sqlalchemy import case, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.services.applications import application_to_dict
from api.services.emails import StepResult, send_rejection_email
from core.cache import invalidate_dashboard
from core.middleware.error_handling import describe_persistence_error
from core.utils.datetime import now
from database.models.applications import (
    HIRED_STAGE,
    INITIAL_STAGE,
    REJECTED_STAGE,
    Application,
    ApplicationStatus,
)
from database.models.pipelines import DEFAULT_STAGES, HiringStage

logger = logging.getLogger(__name__)

Notifier = Callable[[AsyncSession, int, str], Awaitable[StepResult]]


class ApplicationNotFoundError(LookupError):
    """Raised when a pipeline operation targets a missing application."""

    def __init__(self, application_id: int):
        super().__init__(f"Application {application_id} not found")
        self.application_id = application_id


@dataclass
class PipelineOutcome:
    """Result of a pipeline mutation with each side effect reported on its own."""

    state: StepResult
    notification: Optional[StepResult] = None
    application: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.state.ok

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.state.ok,
            "state": asdict(self.state),
            "notification": asdict(self.notification) if self.notification else None,
            "application": self.application,
        }


@dataclass
class BulkOutcome:
    """Summary of a bulk pipeline operation."""

    affected: int = 0
    successful: int = 0
    failed: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)


async def _default_notifier(session: AsyncSession, application_id: int, reason: str) -> StepResult:
    return await send_rejection_email(session, application_id, reason)


def status_for_stage(stage: str, manual_rating: Optional[int]) -> ApplicationStatus:
    """
    Status implied by moving an application into a stage.

    hired means approved, applied means pending, any other stage is reviewed
    once a reviewer has rated the candidate and pending otherwise.
    """
    if stage == HIRED_STAGE:
        return ApplicationStatus.APPROVED
    if stage == INITIAL_STAGE:
        return ApplicationStatus.PENDING
    if manual_rating is not None and manual_rating > 0:
        return ApplicationStatus.REVIEWED
    return ApplicationStatus.PENDING


async def _load(session: AsyncSession, application_id: int) -> Application:
    application = await session.get(Application, application_id)
    if application is None:
        raise ApplicationNotFoundError(application_id)
    return application


async def _write_state(
    session: AsyncSession, application: Application, application_id: int, values: Dict[str, Any]
) -> StepResult:
    """Apply values to one application row in a single UPDATE, commit and reload it."""
    try:
        await session.execute(
            update(Application)
            .where(Application.id == application_id)
            .values(updated_at=now(), **values)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        info = describe_persistence_error(e)
        logger.error(f"Pipeline update failed for application {application_id}: {info.code}")
        return StepResult(ok=False, error=info.message)
    await session.refresh(application)
    return StepResult(ok=True)


async def reject(
    session: AsyncSession,
    application_id: int,
    reason: str,
    notifier: Optional[Notifier] = None,
) -> PipelineOutcome:
    """
    Reject an application: notify the candidate, then write the rejected state.

    The email is attempted exactly once and its failure does not stop the
    state write.

    Args:
        session: Database session
        application_id: Application to reject
        reason: Rejection reason (required)
        notifier: Sends the rejection email; defaults to the email service

    Returns:
        PipelineOutcome with separate notification and state results

    Raises:
        ValueError: If reason is empty
        ApplicationNotFoundError: If the application does not exist
    """
    if not reason or not reason.strip():
        raise ValueError("A rejection reason is required")
    reason = reason.strip()
    application = await _load(session, application_id)
    job_id = application.job_id
    previous = (
        application.previous_pipeline_stage
        if application.pipeline_stage == REJECTED_STAGE
        else application.pipeline_stage
    )

    notifier = notifier or _default_notifier
    try:
        notification = await notifier(session, application_id, reason)
    except Exception as e:
        logger.error(f"Rejection notifier raised for application {application_id}: {type(e).__name__}")
        notification = StepResult(ok=False, error=str(e) or type(e).__name__)

    state = await _write_state(
        session,
        application,
        application_id,
        {
            "status": ApplicationStatus.REJECTED,
            "pipeline_stage": REJECTED_STAGE,
            "previous_pipeline_stage": previous,
            "rejection_reason": reason,
        },
    )

    if state.ok:
        logger.info(f"Rejected application {application_id} ({reason})")
        await invalidate_dashboard(job_id)
    return PipelineOutcome(
        state=state,
        notification=notification,
        application=application_to_dict(application) if state.ok else None,
    )


async def unreject(session: AsyncSession, application_id: int) -> PipelineOutcome:
    """
    Undo a rejection: back to pending in the applied stage with no reason.

    Raises:
        ApplicationNotFoundError: If the application does not exist
    """
    application = await _load(session, application_id)
    job_id = application.job_id
    state = await _write_state(
        session,
        application,
        application_id,
        {
            "status": ApplicationStatus.PENDING,
            "pipeline_stage": INITIAL_STAGE,
            "previous_pipeline_stage": application.pipeline_stage,
            "rejection_reason": None,
        },
    )
    if state.ok:
        await invalidate_dashboard(job_id)
    return PipelineOutcome(
        state=state, application=application_to_dict(application) if state.ok else None
    )


async def move_stage(session: AsyncSession, application_id: int, new_stage: str) -> PipelineOutcome:
    """
    Move an application to another pipeline stage.

    Status follows the stage (see status_for_stage). Moving to the current
    stage rewrites the same values. Leaving the rejected stage clears the
    rejection reason.

    Raises:
        ValueError: If new_stage is empty, unknown for the job, or "rejected"
        ApplicationNotFoundError: If the application does not exist
    """
    new_stage = (new_stage or "").strip()
    if not new_stage:
        raise ValueError("A stage is required")
    if new_stage == REJECTED_STAGE:
        raise ValueError("Use reject to move an application to the rejected stage")

    application = await _load(session, application_id)
    job_id = application.job_id
    stage_names = {stage["name"] for stage in await list_stages(session, job_id)}
    if new_stage not in stage_names:
        raise ValueError(f"Unknown stage: {new_stage}")

    previous = (
        application.previous_pipeline_stage
        if application.pipeline_stage == new_stage
        else application.pipeline_stage
    )
    state = await _write_state(
        session,
        application,
        application_id,
        {
            "pipeline_stage": new_stage,
            "previous_pipeline_stage": previous,
            "status": status_for_stage(new_stage, application.manual_rating),
            "rejection_reason": None,
        },
    )
    if state.ok:
        logger.info(f"Moved application {application_id} to {new_stage}")
        await invalidate_dashboard(job_id)
    return PipelineOutcome(
        state=state, application=application_to_dict(application) if state.ok else None
    )


async def bulk_move_stage(
    session: AsyncSession, application_ids: Sequence[int], new_stage: str
) -> BulkOutcome:
    """
    Move many applications to one stage.

    Issues one UPDATE ... WHERE id IN (...) per derived status, so at most two
    statements regardless of how many applications are moved.

    Raises:
        ValueError: If new_stage is empty, "rejected", or unknown for any of
            the applications' jobs
    """
    new_stage = (new_stage or "").strip()
    if not new_stage:
        raise ValueError("A stage is required")
    if new_stage == REJECTED_STAGE:
        raise ValueError("Use bulk reject to move applications to the rejected stage")
    ids = list(dict.fromkeys(application_ids))
    if not ids:
        return BulkOutcome()

    job_ids = (
        await session.execute(select(Application.job_id).where(Application.id.in_(ids)).distinct())
    ).scalars().all()
    for job_id in job_ids:
        stage_names = {stage["name"] for stage in await list_stages(session, job_id)}
        if new_stage not in stage_names:
            raise ValueError(f"Unknown stage for job {job_id}: {new_stage}")

    base_values = {
        "pipeline_stage": new_stage,
        "previous_pipeline_stage": case(
            (Application.pipeline_stage == new_stage, Application.previous_pipeline_stage),
            else_=Application.pipeline_stage,
        ),
        "rejection_reason": None,
        "updated_at": now(),
    }
    if new_stage in (HIRED_STAGE, INITIAL_STAGE):
        groups = [(status_for_stage(new_stage, None), Application.id.in_(ids))]
    else:
        rated = Application.manual_rating > 0
        groups = [
            (ApplicationStatus.REVIEWED, Application.id.in_(ids) & rated),
            (
                ApplicationStatus.PENDING,
                Application.id.in_(ids)
                & or_(Application.manual_rating.is_(None), Application.manual_rating <= 0),
            ),
        ]

    affected = 0
    try:
        for status, condition in groups:
            result = await session.execute(
                update(Application)
                .where(condition)
                .values(status=status, **base_values)
                .execution_options(synchronize_session=False)
            )
            affected += result.rowcount or 0
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        info = describe_persistence_error(e)
        logger.error(f"Bulk stage move failed: {info.code}")
        return BulkOutcome(failed=len(ids), results=[{"error": info.message}])

    session.expire_all()
    logger.info(f"Bulk moved {affected} applications to {new_stage}")
    await invalidate_dashboard(*job_ids)
    return BulkOutcome(affected=affected, successful=affected, failed=len(ids) - affected)


async def bulk_reject(
    session: AsyncSession,
    application_ids: Sequence[int],
    reason: str,
    notifier: Optional[Notifier] = None,
) -> BulkOutcome:
    """
    Reject each application in turn, one email and one update per item.

    Raises:
        ValueError: If reason is empty
    """
    if not reason or not reason.strip():
        raise ValueError("A rejection reason is required")

    outcome = BulkOutcome()
    for application_id in dict.fromkeys(application_ids):
        try:
            result = await reject(session, application_id, reason, notifier=notifier)
        except ApplicationNotFoundError as e:
            outcome.failed += 1
            outcome.results.append(
                {"application_id": application_id, "success": False, "error": str(e)}
            )
            continue

        if result.ok:
            outcome.successful += 1
            outcome.affected += 1
        else:
            outcome.failed += 1
        outcome.results.append({
            "application_id": application_id,
            "success": result.ok,
            "state": asdict(result.state),
            "notification": asdict(result.notification) if result.notification else None,
        })
    return outcome


async def list_stages(session: AsyncSession, job_id: int) -> List[Dict[str, Any]]:
    """A job's pipeline stages in order, or the default stages when it defines none."""
    result = await session.execute(
        select(HiringStage)
        .where(HiringStage.job_id == job_id)
        .order_by(HiringStage.order_index, HiringStage.id)
    )
    stages = result.scalars().all()
    if stages:
        return [
            {
                "id": stage.id,
                "name": stage.name,
                "order_index": stage.order_index,
                "color": stage.color,
                "is_default": stage.is_default,
            }
            for stage in stages
        ]
    return [
        {"id": None, "name": name, "order_index": index, "color": color, "is_default": True}
        for index, (name, color) in enumerate(DEFAULT_STAGES)
    ]
