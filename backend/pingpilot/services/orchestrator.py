"""Check orchestrator - one full check pass over every target.

A pass has three phases that stay structurally separate:
1. Concurrent: schedule gate, protocol check and history write per target.
2. Sequential: alert notifications, one target at a time, to bound outbound mail.
3. One batch commit of every status update, then the daily rollup near midnight.
Nothing in phase 1 writes target status, so a failure before phase 3 leaves
stored status untouched. Until that commit the targets a pass checked stay
claimed, and an overlapping pass skips them instead of checking and alerting
twice.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Set

from ..config import settings
from ..models import MonitoredTarget
from ..models.target import STATUS_DOWN, STATUS_UP
from ..schemas.check import CheckResultResponse, CheckRunSummary, ManualCheckResponse
from ..store import StatusPatch, TargetStore
from ..utils.time_utils import utc_now
from .alerter import AlertKind, decide, should_dispatch
from .checker import CheckerService, CheckResult, checker_service
from .history import HistoryRecorder
from .notifier import Notifier
from .retention import RetentionAggregator
from .schedule import is_too_soon, should_check_now

logger = logging.getLogger(__name__)

STATE_SKIPPED = "skipped"
STATE_CHECKED = "checked"
STATE_ERRORED = "errored"


@dataclass
class TargetOutcome:
    """Result of processing one target in a pass."""
    target_id: int
    state: str
    reason: Optional[str] = None
    result: Optional[CheckResult] = None
    patch: Optional[StatusPatch] = None
    alert_kind: Optional[AlertKind] = None
    claimed: bool = False


def build_status_patch(target: MonitoredTarget, result: CheckResult, checked_at: datetime) -> StatusPatch:
    """last_status_change_at moves only when the status differs from the stored one."""
    changed = result.status != target.status
    return StatusPatch(
        target_id=target.id,
        status=result.status,
        response_time_ms=result.response_time_ms,
        error_message=result.error_message,
        checked_at=checked_at,
        status_changed_at=checked_at if changed else None,
    )


class CheckOrchestrator:
    """Runs check passes and manual single-target checks."""

    def __init__(
        self,
        store: TargetStore,
        checker: Optional[CheckerService] = None,
        notifier: Optional[Notifier] = None,
        recorder: Optional[HistoryRecorder] = None,
        aggregator: Optional[RetentionAggregator] = None,
        clock: Callable[[], datetime] = utc_now,
        max_concurrent_checks: Optional[int] = None,
    ):
        self.store = store
        self.checker = checker or checker_service
        self.notifier = notifier or Notifier(store)
        self.aggregator = aggregator or RetentionAggregator(store)
        self.recorder = recorder or HistoryRecorder(store, self.aggregator)
        self.clock = clock
        self.max_concurrent_checks = max_concurrent_checks or settings.max_concurrent_checks
        # Targets checked by a pass whose status is not committed yet
        self._in_flight: Set[int] = set()

    async def run_pass(self) -> CheckRunSummary:
        """Check every due target. Only the bulk target read can fail the pass."""
        now = self.clock()
        targets = await self.store.list_targets()
        summary = CheckRunSummary(total=len(targets))

        semaphore = asyncio.Semaphore(self.max_concurrent_checks)

        async def process_with_limit(target: MonitoredTarget) -> TargetOutcome:
            async with semaphore:
                return await self._process_target(target, now)

        outcomes: List[TargetOutcome] = await asyncio.gather(
            *[process_with_limit(t) for t in targets]
        )
        claimed = [o.target_id for o in outcomes if o.claimed]
        try:
            await self._finish_pass(summary, outcomes)
        finally:
            self._in_flight.difference_update(claimed)

        await self.recorder.maybe_rollup(now)

        logger.info(
            f"Check pass: total={summary.total} checked={summary.checked} up={summary.up} "
            f"down={summary.down} error={summary.error} skipped={summary.skipped} "
            f"alerts={summary.alerts_sent}"
        )
        return summary

    async def _finish_pass(self, summary: CheckRunSummary, outcomes: List[TargetOutcome]) -> None:
        """Count outcomes, notify, then commit every status update at once."""
        for outcome in outcomes:
            if outcome.state == STATE_SKIPPED:
                summary.skipped += 1
            elif outcome.state == STATE_ERRORED:
                summary.error += 1
            else:
                summary.checked += 1
                if outcome.result.status == STATUS_UP:
                    summary.up += 1
                elif outcome.result.status == STATUS_DOWN:
                    summary.down += 1

        summary.alerts_sent = await self._send_alerts(
            [o for o in outcomes if o.alert_kind is not None]
        )

        patches = [o.patch for o in outcomes if o.patch is not None]
        if patches:
            await self.store.apply_status_updates(patches)

    async def _process_target(self, target: MonitoredTarget, now: datetime) -> TargetOutcome:
        claimed = False
        try:
            decision = await should_check_now(target, now, self.store)
            if not decision.run:
                logger.debug(f"Skipping target {target.id}: {decision.reason}")
                return TargetOutcome(target.id, STATE_SKIPPED, reason=decision.reason)

            if is_too_soon(target, now):
                logger.debug(f"Skipping target {target.id}: checked too recently")
                return TargetOutcome(target.id, STATE_SKIPPED, reason="too soon")

            # Another pass has checked it and not yet committed the status
            if target.id in self._in_flight:
                logger.debug(f"Skipping target {target.id}: check already in progress")
                return TargetOutcome(target.id, STATE_SKIPPED, reason="in progress")
            self._in_flight.add(target.id)
            claimed = True

            alert_config = target.effective_config.alerts
            result = await self.checker.check(target.type, target.address, alert_config.response_threshold_ms)
            checked_at = self.clock()

            await self.recorder.record(target.id, result, checked_at, rollup=False)

            kind = decide(target.status, result, alert_config)
            logger.debug(f"Target {target.id} ({target.name}): {result.status}")
            return TargetOutcome(
                target.id,
                STATE_CHECKED,
                reason=decision.reason,
                result=result,
                patch=build_status_patch(target, result, checked_at),
                alert_kind=kind,
                claimed=claimed,
            )
        except Exception as e:
            logger.error(f"Error processing target {target.id}: {type(e).__name__}: {e}")
            return TargetOutcome(target.id, STATE_ERRORED, reason=str(e), claimed=claimed)

    async def _send_alerts(self, outcomes: List[TargetOutcome]) -> int:
        """Notify sequentially, using freshly read targets for alert settings."""
        if not outcomes:
            return 0

        try:
            fresh = await self.store.get_targets([o.target_id for o in outcomes])
        except Exception as e:
            logger.error(f"Could not reload targets for alerting, no alerts sent: {e}")
            return 0

        sent = 0
        for outcome in outcomes:
            target = fresh.get(outcome.target_id)
            if target is None:
                logger.info(f"Target {outcome.target_id} was deleted during the pass, not alerting")
                continue
            try:
                if await self._dispatch(target, outcome.alert_kind, outcome.result):
                    sent += 1
            except Exception as e:
                logger.error(f"Error alerting for target {target.id}: {type(e).__name__}: {e}")
        return sent

    async def _dispatch(self, target: MonitoredTarget, kind: AlertKind, result: CheckResult) -> bool:
        alert_config = target.effective_config.alerts
        if not should_dispatch(alert_config, target.emails, target.phones, self.clock()):
            logger.debug(f"{kind.value} alert for target {target.id} suppressed by alert settings")
            return False
        try:
            return await self.notifier.notify(target, kind, result, self.clock())
        except Exception as e:
            logger.error(f"Error sending {kind.value} alert for target {target.id}: {e}")
            return False

    async def run_manual_check(self, target_id: int) -> Optional[ManualCheckResponse]:
        """Check one target now, ignoring schedule and interval. None if it does not exist."""
        target = await self.store.get_target(target_id)
        if target is None:
            return None

        alert_config = target.effective_config.alerts
        result = await self.checker.check(target.type, target.address, alert_config.response_threshold_ms)
        checked_at = self.clock()

        await self.recorder.record(target.id, result, checked_at)

        alert_sent = False
        kind = decide(target.status, result, alert_config)
        if kind is not None:
            alert_sent = await self._dispatch(target, kind, result)

        await self.store.update_target_status(build_status_patch(target, result, checked_at))

        hourly = await self.recorder.recent_hours(target.id, checked_at)
        return ManualCheckResponse(
            target_id=target.id,
            result=CheckResultResponse(
                status=result.status,
                response_time_ms=result.response_time_ms,
                error_message=result.error_message,
                checked_at=checked_at,
            ),
            alert_sent=alert_sent,
            hourly=hourly,
        )
