import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from payment_webhooks.config import CleanupSettings
from payment_webhooks.lifecycle.manager import PaymentManager
from payment_webhooks.lifecycle.repository import PaymentRepository
from payment_webhooks.models.payment import PaymentStatus

logger = logging.getLogger(__name__)

STEP_ORPHANS = "delete_orphans"
STEP_REVALIDATE = "revalidate"
STEP_STALE = "cancel_stale"


@dataclass
class CleanupReport:
    deleted_orphans: int = 0
    revalidated: int | None = None
    stale_updated: int = 0
    stale_cutoff: datetime | None = None
    completed_steps: list[str] = field(default_factory=list)
    cancelled: bool = False


class CleanupSweep:
    """Periodic reconciliation of payments that never got a final notification.

    Runs three steps in order: delete orphans, optionally revalidate recent
    pending payments against their provider, then move aged pending payments
    to the configured stale status. A set ``cancel_event`` stops the run
    between steps; a step that has started always finishes. Overlapping runs
    must be serialized by the caller.
    """

    def __init__(
        self,
        manager: PaymentManager,
        repository: PaymentRepository,
        settings: CleanupSettings | None = None,
        order_exists: Callable[[str], bool] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.manager = manager
        self.repository = repository
        self.settings = settings or CleanupSettings()
        self.order_exists = order_exists
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def run(self, revalidate: bool | None = None, cancel_event: threading.Event | None = None) -> CleanupReport:
        """Run the sweep.

        ``revalidate=True`` forces revalidation, ``False`` skips it and
        ``None`` follows ``settings.revalidate.enabled``.
        """
        report = CleanupReport()

        report.deleted_orphans = self.repository.delete_orphans(self.order_exists)
        report.completed_steps.append(STEP_ORPHANS)
        logger.info("Deleted %d orphan payments without an order reference", report.deleted_orphans)
        if self._cancelled(cancel_event, report):
            return report

        report.revalidated = self.revalidate_pending(revalidate)
        if report.revalidated is not None:
            report.completed_steps.append(STEP_REVALIDATE)
            logger.info("Revalidated %d recent pending payments", report.revalidated)
        if self._cancelled(cancel_event, report):
            return report

        report.stale_cutoff = self._clock() - timedelta(days=self.settings.stale_pending_days)
        status = PaymentStatus(self.settings.stale_status)
        report.stale_updated = self.repository.cancel_pending_before(report.stale_cutoff, status, self._clock())
        report.completed_steps.append(STEP_STALE)
        logger.info(
            "Marked %d pending payments older than %s as %s",
            report.stale_updated,
            report.stale_cutoff.isoformat(),
            status.value,
        )
        return report

    def revalidate_pending(self, revalidate: bool | None = None) -> int | None:
        """Re-run approval on recent pending payments; None when revalidation is off."""
        options = self.settings.revalidate
        if revalidate is False:
            return None
        if not options.enabled and not revalidate:
            return None
        if options.lookback_hours <= 0:
            return 0

        since = self._clock() - timedelta(hours=options.lookback_hours)
        count = 0
        for record in self.repository.pending_payments(since, None, options.methods):
            try:
                result = self.manager.wrap(record).approve_payment()
            except Exception as e:
                logger.warning(
                    "Failed to revalidate payment %s (%s:%s): %s",
                    record.payment_id,
                    record.method,
                    record.method_id,
                    e,
                )
                continue
            if result.result is not PaymentStatus.PENDING:
                count += 1
        return count

    @staticmethod
    def _cancelled(cancel_event: threading.Event | None, report: CleanupReport) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            report.cancelled = True
            logger.info("Cleanup cancelled after %s", report.completed_steps[-1])
            return True
        return False
