"""In-memory stand-ins for the Kubernetes APIs used by the operator."""

from __future__ import annotations

import copy
import threading
from typing import Any

import pytest
from kubernetes.client import (
    V1ListMeta,
    V1Namespace,
    V1NamespaceList,
    V1ObjectMeta,
)
from kubernetes.client.exceptions import ApiException

from namespacerbacoperator.reconciler import NamespaceReconciler


def make_namespace(
    name: str,
    *,
    deletion_timestamp: Any = None,
    resource_version: str | None = None,
) -> V1Namespace:
    return V1Namespace(
        metadata=V1ObjectMeta(
            name=name,
            deletion_timestamp=deletion_timestamp,
            resource_version=resource_version,
        )
    )


def make_event(
    event_type: str, name: str, resource_version: str, **kwargs: Any
) -> dict[str, Any]:
    namespace = make_namespace(
        name, resource_version=resource_version, **kwargs
    )
    return {
        "type": event_type,
        "object": namespace,
        "raw_object": {
            "metadata": {"name": name, "resourceVersion": resource_version}
        },
    }


class FakeRbacApi:
    """Records RBAC creates and answers 409 for objects that exist."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.failures: dict[str, Exception] = {}
        """Exceptions to raise, keyed by object name."""

    def create_namespaced_role(
        self, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._create("Role", namespace, body)

    def create_namespaced_role_binding(
        self, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._create("RoleBinding", namespace, body)

    def _create(
        self, kind: str, namespace: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        name = body["metadata"]["name"]
        self.calls.append((kind, namespace, name))
        if name in self.failures:
            raise self.failures[name]
        key = (kind, namespace, name)
        if key in self.objects:
            raise ApiException(status=409, reason="Conflict")
        self.objects[key] = copy.deepcopy(body)
        return body

    def names(self, namespace: str) -> set[tuple[str, str]]:
        return {
            (kind, name)
            for kind, ns, name in self.objects
            if ns == namespace
        }


class FakeCoreApi:
    """Serves namespace listings; ``list_errors`` are raised first."""

    def __init__(self) -> None:
        self.namespaces: list[V1Namespace] = []
        self.list_errors: list[Exception] = []
        self.list_calls = 0
        self.resource_version = 1

    def list_namespace(self, **kwargs: Any) -> V1NamespaceList:
        self.list_calls += 1
        if self.list_errors:
            raise self.list_errors.pop(0)
        return V1NamespaceList(
            items=list(self.namespaces),
            metadata=V1ListMeta(resource_version=str(self.resource_version)),
        )


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


BLOCK = object()
"""Watch script item for a stream that waits until its watch is stopped."""


class FakeWatchScript:
    """Scripted watch streams, consumed one per ``Watch.stream`` call.

    Each item of ``streams`` is a list of events (after which the clock
    advances by the stream timeout, as when the server closes the stream),
    an exception to raise, `None` for a stream that closes at once, or
    `BLOCK` for a quiet stream that only ends when its watch is stopped.
    When the script runs out, the stop event is set.
    """

    def __init__(self, clock: FakeClock, stop_event: threading.Event) -> None:
        self.clock = clock
        self.stop_event = stop_event
        self.streams: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.stopped = 0
        self.blocking = threading.Event()

    def __call__(self) -> FakeWatch:
        return FakeWatch(self)


class FakeWatch:
    def __init__(self, script: FakeWatchScript) -> None:
        self.script = script
        self.interrupted = threading.Event()

    def stream(self, func: Any, **kwargs: Any) -> Any:
        script = self.script
        script.calls.append(kwargs)
        if not script.streams:
            script.stop_event.set()
            return
        item = script.streams.pop(0)
        if isinstance(item, Exception):
            raise item
        if item is None:
            return
        if item is BLOCK:
            script.blocking.set()
            self.interrupted.wait(timeout=5)
            return
        yield from item
        script.clock.advance(kwargs["timeout_seconds"])

    def stop(self) -> None:
        self.script.stopped += 1
        self.interrupted.set()


@pytest.fixture
def rbac_api() -> FakeRbacApi:
    return FakeRbacApi()


@pytest.fixture
def core_api() -> FakeCoreApi:
    return FakeCoreApi()


@pytest.fixture
def reconciler(rbac_api: FakeRbacApi) -> NamespaceReconciler:
    return NamespaceReconciler(rbac_api)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stop_event() -> threading.Event:
    return threading.Event()


@pytest.fixture
def watch_script(
    clock: FakeClock, stop_event: threading.Event
) -> FakeWatchScript:
    return FakeWatchScript(clock, stop_event)
