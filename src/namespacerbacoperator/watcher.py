"""The namespace watch loop: list-then-watch with a periodic full resync."""

from __future__ import annotations

__all__ = ("NamespaceWatcher", "WatchState")

import enum
import threading
import time
from collections.abc import Callable
from typing import Any

import structlog
from kubernetes import watch
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from namespacerbacoperator import state
from namespacerbacoperator.events import (
    EventType,
    NamespaceEvent,
    dispatch_event,
    namespace_from_object,
)
from namespacerbacoperator.exceptions import WatchError
from namespacerbacoperator.k8s import get_resource_version
from namespacerbacoperator.reconciler import NamespaceReconciler

HTTP_GONE = 410

MAX_BACKOFF_SECONDS = 30.0


class WatchState(enum.Enum):
    """Lifecycle states of a `NamespaceWatcher`."""

    INITIALIZING = "initializing"
    """Listing the cluster's namespaces to start the subscription."""

    SYNCING = "syncing"
    """Delivering the initial listing as added events."""

    WATCHING = "watching"
    """Delivering incremental events and periodic resyncs."""

    STOPPED = "stopped"


class NamespaceWatcher:
    """Watches the cluster's namespaces and hands each event to a
    `NamespaceReconciler`.

    Two inputs feed the reconciler: the incremental watch stream, and a full
    listing of all namespaces repeated every ``resync_seconds`` so that
    events missed while the stream was disconnected are eventually
    delivered.

    Parameters
    ----------
    core_api
        A ``kubernetes.client.CoreV1Api``.
    reconciler : `NamespaceReconciler`
        Receives the added and modified namespaces.
    resync_seconds : `float`
        Interval between full listings.
    watch_timeout_seconds : `int`
        Server-side timeout of each watch stream. A shutdown request made
        through `stop` interrupts the stream without waiting for it.
    max_failures : `int`
        Number of consecutive list or watch failures after which the loop
        raises `WatchError`.
    backoff_seconds : `float`
        Initial delay before retrying a failed list or watch; doubled on
        every consecutive failure.
    watch_factory : callable
        Creates the ``kubernetes.watch.Watch`` used for each stream.
    clock : callable
        Monotonic clock used to schedule resyncs.
    logger : optional
        Logger to use for logging messages. If not provided, a default logger
        will be used.
    """

    def __init__(
        self,
        *,
        core_api: Any,
        reconciler: NamespaceReconciler,
        resync_seconds: float = state.resync_seconds,
        watch_timeout_seconds: int = state.watch_timeout_seconds,
        max_failures: int = state.max_watch_failures,
        backoff_seconds: float = 1.0,
        watch_factory: Callable[[], Any] = watch.Watch,
        clock: Callable[[], float] = time.monotonic,
        logger: Any | None = None,
    ) -> None:
        self.core_api = core_api
        self.reconciler = reconciler
        self.resync_seconds = resync_seconds
        self.watch_timeout_seconds = watch_timeout_seconds
        self.max_failures = max_failures
        self.backoff_seconds = backoff_seconds
        self.watch_factory = watch_factory
        self.clock = clock
        if logger is None:
            logger = structlog.getLogger(__name__)
        self._logger = logger

        self.state = WatchState.INITIALIZING
        self.resource_version: str | None = None

        self._stop_event: threading.Event | None = None
        self._active_watch: Any = None
        self._watch_lock = threading.Lock()

    def run(self, stop_event: threading.Event) -> None:
        """Run the watch loop until ``stop_event`` is set.

        Parameters
        ----------
        stop_event : `threading.Event`
            Cancellation signal. It is checked between events and between
            watch streams; an in-progress reconciliation is allowed to
            finish. Use `stop` to also interrupt a stream that is waiting
            for events.

        Raises
        ------
        namespacerbacoperator.exceptions.WatchError
            Raised if namespaces cannot be listed or watched.
        """
        with self._watch_lock:
            self._stop_event = stop_event
        self._set_state(WatchState.INITIALIZING)
        try:
            self._list_and_dispatch(stop_event, EventType.ADDED)
            next_resync = self.clock() + self.resync_seconds
            failures = 0

            while not stop_event.is_set():
                if self.clock() >= next_resync:
                    self._logger.info("Resyncing all namespaces")
                    next_resync = self._resync(stop_event)
                    continue

                timeout = min(
                    self.watch_timeout_seconds,
                    max(1, int(next_resync - self.clock())),
                )
                try:
                    self._watch(stop_event, timeout)
                    failures = 0
                except ApiException as exc:
                    if stop_event.is_set():
                        break
                    if exc.status == HTTP_GONE:
                        self._logger.warning(
                            "Watch resource version expired, re-listing",
                            resource_version=self.resource_version,
                        )
                        next_resync = self._resync(stop_event)
                        continue
                    failures = self._handle_failure(exc, failures, stop_event)
                except (HTTPError, OSError) as exc:
                    if stop_event.is_set():
                        break
                    failures = self._handle_failure(exc, failures, stop_event)
        finally:
            self._set_state(WatchState.STOPPED)

    def stop(self) -> None:
        """Ask the running loop to stop, interrupting an open watch stream.

        Safe to call from another thread or a signal handler. The stream's
        connection is shut down so that a read blocked on a quiet watch
        returns immediately instead of at the end of its timeout.
        """
        with self._watch_lock:
            stop_event = self._stop_event
            active_watch = self._active_watch
        if stop_event is not None:
            stop_event.set()
        if active_watch is not None:
            self._logger.debug("Interrupting the namespace watch stream")
            active_watch.stop()

    def dispatch(self, event: NamespaceEvent) -> None:
        """Hand a single namespace event to the reconciler."""
        dispatch_event(event, self.reconciler, self._logger)

    def _resync(self, stop_event: threading.Event) -> float:
        """Re-deliver every namespace as modified and return the time of the
        next resync.
        """
        self._list_and_dispatch(stop_event, EventType.MODIFIED)
        return self.clock() + self.resync_seconds

    def _list_and_dispatch(
        self, stop_event: threading.Event, event_type: EventType
    ) -> None:
        """List all namespaces and dispatch each one as a synthetic event,
        then continue watching from the listing's resource version.
        """
        failures = 0
        while True:
            try:
                namespaces = self.core_api.list_namespace(
                    timeout_seconds=self.watch_timeout_seconds
                )
                break
            except (ApiException, HTTPError, OSError) as exc:
                failures = self._handle_failure(exc, failures, stop_event)
                if stop_event.is_set():
                    return

        initial = self.state is WatchState.INITIALIZING
        if initial:
            self._set_state(WatchState.SYNCING)

        self._logger.debug(f"Listed {len(namespaces.items)} namespaces")
        for item in namespaces.items:
            if stop_event.is_set():
                return
            namespace = namespace_from_object(item)
            self.dispatch(NamespaceEvent(event_type, namespace))
        self.resource_version = get_resource_version(namespaces)

        if initial:
            self._set_state(WatchState.WATCHING)

    def _watch(self, stop_event: threading.Event, timeout: int) -> None:
        """Consume one watch stream until it ends or ``stop_event`` is set.

        A stream that ends because its timeout elapsed is not an error; the
        caller reconnects from ``self.resource_version``.
        """
        kwargs: dict[str, Any] = {"timeout_seconds": timeout}
        if self.resource_version:
            kwargs["resource_version"] = self.resource_version

        watcher = self.watch_factory()
        with self._watch_lock:
            self._active_watch = watcher
        try:
            if stop_event.is_set():
                return
            for event in watcher.stream(self.core_api.list_namespace, **kwargs):
                event_type = event.get("type")
                if event_type == "ERROR":
                    status = event.get("raw_object") or {}
                    raise ApiException(
                        status=status.get("code"),
                        reason=status.get("message"),
                    )
                try:
                    namespace_event_type = EventType(event_type)
                except ValueError:
                    self._logger.debug(f"Ignoring {event_type} watch event")
                    continue

                obj = event["object"]
                resource_version = get_resource_version(obj)
                if resource_version:
                    self.resource_version = resource_version

                self.dispatch(
                    NamespaceEvent(
                        namespace_event_type, namespace_from_object(obj)
                    )
                )
                if stop_event.is_set():
                    break
        finally:
            with self._watch_lock:
                self._active_watch = None
            watcher.stop()

    def _handle_failure(
        self,
        exc: Exception,
        failures: int,
        stop_event: threading.Event,
    ) -> int:
        """Record a failed list or watch, waiting before the next attempt.

        Returns the updated count of consecutive failures, or raises
        `WatchError` if the subscription should be abandoned.
        """
        failures += 1
        status = getattr(exc, "status", None)
        if status in (401, 403):
            raise WatchError(
                f"Access to namespaces was denied (status={status}). "
                "Check the operator's RBAC permissions."
            ) from exc
        if failures >= self.max_failures:
            raise WatchError(
                f"Namespace subscription failed {failures} times in a row: "
                f"{exc}"
            ) from exc

        delay = min(
            self.backoff_seconds * 2 ** (failures - 1), MAX_BACKOFF_SECONDS
        )
        self._logger.warning(
            f"Namespace subscription failed, retrying in {delay}s",
            attempt=failures,
            error=str(exc),
        )
        stop_event.wait(delay)
        return failures

    def _set_state(self, new_state: WatchState) -> None:
        if new_state is not self.state:
            self._logger.debug(
                f"Watch loop {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
