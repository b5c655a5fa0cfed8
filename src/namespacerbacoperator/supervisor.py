"""Process lifecycle: run the namespace watcher until a termination signal
arrives or the watcher fails.
"""

from __future__ import annotations

__all__ = ("Supervisor",)

import signal
import threading
from collections.abc import Iterable
from types import FrameType
from typing import Any

import structlog

from namespacerbacoperator.exceptions import WatchError
from namespacerbacoperator.watcher import NamespaceWatcher

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Supervisor:
    """Runs a `NamespaceWatcher` in a background thread and coordinates its
    shutdown.

    The watcher thread and the signal handlers share one
    `threading.Event`. A termination signal sets it to ask the watcher to
    stop; the watcher thread sets it when it exits for any reason. Either
    way `run` wakes up, waits for the watcher to finish, and reports how it
    ended.

    Parameters
    ----------
    watcher : `NamespaceWatcher`
        The watch loop to supervise.
    signals : iterable of `signal.Signals`
        Signals that trigger a graceful shutdown. Handlers are only installed
        for the duration of `run`, which must then be called from the main
        thread.
    logger : optional
        Logger to use for logging messages. If not provided, a default logger
        will be used.
    """

    def __init__(
        self,
        watcher: NamespaceWatcher,
        *,
        signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
        logger: Any | None = None,
    ) -> None:
        self.watcher = watcher
        self.signals = tuple(signals)
        if logger is None:
            logger = structlog.getLogger(__name__)
        self._logger = logger
        self.stop_event = threading.Event()
        self._failure: Exception | None = None

    def run(self) -> None:
        """Run the watcher until shutdown.

        Returns normally when shutdown was requested (by a signal or
        `request_stop`) and the watcher stopped cleanly.

        Raises
        ------
        namespacerbacoperator.exceptions.WatchError
            Raised if the watcher failed.
        """
        previous_handlers = {
            signum: signal.signal(signum, self._handle_signal)
            for signum in self.signals
        }
        thread = threading.Thread(
            target=self._run_watcher, name="namespace-watcher", daemon=True
        )
        try:
            thread.start()
            self.stop_event.wait()
            self._logger.info("Waiting for the namespace watcher to stop")
            thread.join()
        finally:
            for signum, handler in previous_handlers.items():
                signal.signal(signum, handler)

        failure = self._failure
        if failure is None:
            self._logger.info("Namespace watcher stopped")
            return
        if isinstance(failure, WatchError):
            raise failure
        raise WatchError(f"Namespace watcher crashed: {failure}") from failure

    def request_stop(self) -> None:
        """Ask the watcher to stop, as a termination signal does.

        An open watch stream is interrupted; a namespace that is being
        synchronized finishes first.
        """
        self.stop_event.set()
        self.watcher.stop()

    def _handle_signal(self, signum: int, frame: FrameType | None) -> None:
        self._logger.info(
            f"Received {signal.Signals(signum).name}, exiting gracefully"
        )
        self.request_stop()

    def _run_watcher(self) -> None:
        try:
            self.watcher.run(self.stop_event)
        except Exception as exc:
            self._logger.error(f"Namespace watcher failed: {exc}")
            self._failure = exc
        finally:
            self.stop_event.set()
