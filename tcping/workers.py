"""Background worker that runs the probe loop off the main thread."""

import logging
import threading
from collections.abc import Callable

from tcping.scheduler import ProbeScheduler, SchedulerState

logger = logging.getLogger(__name__)


class ProbeWorker(threading.Thread):
    """Worker that executes scheduler.run() in a background thread.

    The main thread stays free to receive interrupt signals. Any exception
    escaping the scheduler is logged and kept in ``error``; the worker never
    lets it kill the process silently.
    """

    def __init__(
        self,
        scheduler: ProbeScheduler,
        on_error: Callable[[BaseException], None] | None = None,
    ):
        super().__init__(name="tcping-probe-worker", daemon=True)
        self.scheduler = scheduler
        self.on_error = on_error
        self.result: SchedulerState | None = None
        self.error: BaseException | None = None
        self.finished = threading.Event()

    def run(self):
        """Execute the probe loop in the background thread."""
        try:
            logger.debug("Worker starting: target=%s", self.scheduler.target.original)

            self.result = self.scheduler.run()

            logger.debug("Worker completed: state=%s", self.result.value)

        except Exception as e:
            logger.exception("Worker exception: target=%s, error=%s", self.scheduler.target.original, str(e))
            self.error = e
            if self.on_error is not None:
                self.on_error(e)

        finally:
            # Always signal completion
            self.finished.set()
