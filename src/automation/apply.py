"""Recommendation orchestration.

Applies every operation of a recommendation in document order:

    1. refuse anything that is not ACTIVE
    2. mark the recommendation CLAIMED
    3. dispatch each operation of each group
    4. mark SUCCEEDED, or FAILED on the first error

Execution is fail-fast and single-pass. Operations that ran before a
failure are not undone, and a retry re-runs them from the beginning.
"""

import logging
from typing import Optional

from automation.dispatch import dispatch, plan
from automation.errors import AutomationError, PreconditionError
from automation.operations import Recommendation
from automation.service import CloudService
from reporting import ApplyReport

logger = logging.getLogger(__name__)


def apply(service: CloudService, recommendation: Recommendation, report: Optional[ApplyReport] = None) -> None:
    """Apply recommendation through service.

    Args:
        service: Cloud backend used for resource and state calls
        recommendation: Recommendation to apply
        report: Optional report updated as operations run

    Raises:
        PreconditionError: If the recommendation is not active
        AutomationError: The claim error, the first operation error, or
            the error from marking the recommendation succeeded
    """
    name, etag = recommendation.name, recommendation.etag
    if report is not None:
        report.start()

    if not recommendation.is_active:
        error = PreconditionError(f"recommendation must be active, state is {recommendation.state!r}")
        _finish_report(report, False, str(error))
        raise error

    logger.info(f"Claiming recommendation {name}")
    try:
        service.mark_recommendation_claimed(name, etag)
    except Exception as e:
        logger.error(f"Failed to claim {name}: {e}")
        _finish_report(report, False, str(e))
        raise
    if report is not None:
        report.claimed()

    steps = [(gi, op) for gi, group in enumerate(recommendation.operation_groups, 1)
             for op in group.operations]
    for index, (group, operation) in enumerate(steps, 1):
        logger.info(f"[{index}/{len(steps)}] {operation.describe()}")
        if report is not None:
            report.start_step()
        try:
            dispatch(service, operation)
        except Exception as e:
            logger.error(f"Operation {index} failed: {e}")
            if report is not None:
                report.fail_step(index, group, operation.describe(), str(e))
                for skipped_index, (skipped_group, skipped) in enumerate(steps[index:], index + 1):
                    report.skip_step(skipped_index, skipped_group, skipped.describe())
            _mark_failed(service, name, etag)
            _finish_report(report, False, str(e))
            raise
        if report is not None:
            report.pass_step(index, group, operation.describe())

    try:
        service.mark_recommendation_succeeded(name, etag)
    except Exception as e:
        logger.error(f"Failed to mark {name} succeeded: {e}")
        _finish_report(report, False, str(e))
        raise

    logger.info(f"Recommendation {name} applied ({len(steps)} operations)")
    _finish_report(report, True)


def _mark_failed(service: CloudService, name: str, etag: str) -> None:
    """Mark the recommendation failed; errors here must not hide the operation error."""
    try:
        service.mark_recommendation_failed(name, etag)
    except Exception as e:  # pylint: disable=broad-except
        logger.warning(f"Could not mark {name} failed: {e}")


def _finish_report(report: Optional[ApplyReport], success: bool, error: str = '') -> None:
    """Finalize report; a report that cannot be written never changes the outcome."""
    if report is None:
        return
    try:
        report.finish(success, error)
    except OSError as e:
        logger.warning(f"Could not write report for {report.recommendation}: {e}")


def preview(recommendation: Recommendation) -> list[dict]:
    """Describe the calls apply would issue, without issuing any.

    Each entry has the operation description and either its planned
    capability calls or the error that would stop the apply there.
    """
    entries = []
    for gi, group in enumerate(recommendation.operation_groups, 1):
        for operation in group.operations:
            entry = {'group': gi, 'operation': operation.describe()}
            try:
                entry['calls'] = plan(operation)
            except AutomationError as e:
                entry['error'] = str(e)
            entries.append(entry)
    return entries
