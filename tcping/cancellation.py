"""Cancellation token and operator-interrupt handling for a probe run."""

import logging
import signal
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

# How often the main thread wakes while waiting for the worker, so signal
# handlers get a chance to run.
JOIN_SLICE_SECONDS = 0.1


class CancellationToken:
    """One-shot cancellation flag shared by the scheduler and the probers."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block for up to ``timeout`` seconds.

        Returns:
            True if the token was cancelled, False if the timeout elapsed
        """
        return self._event.wait(timeout)


class CancellationController:
    """Merges operator interrupts and run completion into one token.

    On SIGINT/SIGTERM the token is cancelled and ``on_interrupt`` is called;
    the probing worker sees the token at its next check point. When the
    worker finishes on its own the token is cancelled too, so nothing keeps
    waiting on it.

    Signal handlers can only be installed from the main thread. Elsewhere
    the controller still works, but only :meth:`interrupt` can cancel.
    """

    def __init__(
        self,
        token: CancellationToken | None = None,
        on_interrupt: Callable[[], None] | None = None,
        signals: tuple[int, ...] = (signal.SIGINT, signal.SIGTERM),
    ):
        self.token = token if token is not None else CancellationToken()
        self.on_interrupt = on_interrupt
        self.signals = signals
        self.interrupted = False
        self._previous_handlers = {}
        self._interrupt_lock = threading.Lock()

    def interrupt(self):
        """Cancel the run as if the operator had pressed Ctrl+C."""
        with self._interrupt_lock:
            if self.interrupted:
                return
            self.interrupted = True

        logger.info("Run interrupted by operator")
        if self.on_interrupt is not None:
            self.on_interrupt()
        self.token.cancel()

    def _handle_signal(self, signum, frame):
        logger.debug("Received signal %d", signum)
        self.interrupt()

    def install(self):
        """Route interrupt signals to this controller."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on main thread, signal handlers not installed")
            return

        for signum in self.signals:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def restore(self):
        """Put back whatever signal handlers were active before :meth:`install`."""
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def __enter__(self):
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.restore()
        return False

    def run(self, worker: threading.Thread) -> bool:
        """Start ``worker`` and wait until it finishes or is interrupted.

        The worker is always joined before returning, so statistics read
        afterwards never race with a write.

        Returns:
            True if the run was interrupted, False if it completed
        """
        with self:
            worker.start()
            while worker.is_alive():
                worker.join(JOIN_SLICE_SECONDS)

        # Normal completion releases anything still waiting on the token
        self.token.cancel()
        return self.interrupted
