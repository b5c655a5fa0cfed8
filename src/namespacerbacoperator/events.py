"""Namespace events and their dispatch to the reconciler."""

from __future__ import annotations

__all__ = (
    "EventType",
    "NamespaceEvent",
    "NamespaceRef",
    "dispatch_event",
    "namespace_from_object",
)

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from namespacerbacoperator.exceptions import SyncError

if TYPE_CHECKING:
    from namespacerbacoperator.reconciler import NamespaceReconciler


class EventType(enum.Enum):
    """The kinds of namespace lifecycle events, named as the Kubernetes
    watch API names them.
    """

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class NamespaceRef:
    """The parts of a Namespace the operator looks at."""

    name: str
    """The name of the namespace."""

    deletion_timestamp: Any = None
    """The ``metadata.deletionTimestamp`` marker, or `None` if the namespace
    is not being torn down.
    """

    @property
    def is_terminating(self) -> bool:
        return self.deletion_timestamp is not None


@dataclass(frozen=True)
class NamespaceEvent:
    """A lifecycle event for a single namespace."""

    type: EventType
    namespace: NamespaceRef


def namespace_from_object(obj: Any) -> NamespaceRef:
    """Build a `NamespaceRef` from a Namespace resource.

    Parameters
    ----------
    obj
        A ``kubernetes.client.V1Namespace`` model, a ``kopf.Body`` (read
        through its ``metadata`` view like the model), or the raw resource
        as a `dict`.

    Returns
    -------
    NamespaceRef
        The namespace's name and deletion marker.
    """
    if isinstance(obj, dict):
        metadata = obj.get("metadata") or {}
        return NamespaceRef(
            name=metadata["name"],
            deletion_timestamp=metadata.get("deletionTimestamp"),
        )
    return NamespaceRef(
        name=obj.metadata.name,
        deletion_timestamp=obj.metadata.deletion_timestamp,
    )


def dispatch_event(
    event: NamespaceEvent,
    reconciler: NamespaceReconciler,
    logger: Any | None = None,
) -> None:
    """Route a namespace event to the reconciler.

    Added and modified namespaces are synchronized; deleted namespaces are
    only logged. A `SyncError` is logged and not raised, so the caller keeps
    processing events. The namespace is retried when it is next delivered,
    at the latest on the next resync.
    """
    if logger is None:
        logger = structlog.getLogger(__name__)

    name = event.namespace.name
    if event.type is EventType.ADDED or event.type is EventType.MODIFIED:
        logger.debug(
            f"Received {event.type.value.lower()} namespace {name}",
            namespace=name,
        )
        try:
            reconciler.synchronize(event.namespace)
        except SyncError as exc:
            logger.error(
                f"Failed to create {exc.kind} {exc.name} in namespace "
                f"{exc.namespace}: {exc}",
                namespace=exc.namespace,
                kind=exc.kind,
                name=exc.name,
                status=exc.status,
            )
    elif event.type is EventType.DELETED:
        logger.info(f"Namespace {name} was deleted", namespace=name)
    else:
        raise ValueError(f"Unknown namespace event type {event.type!r}")
