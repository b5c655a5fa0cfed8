"""Kopf handler for namespace lifecycle events."""

__all__ = ("get_reconciler", "handle_namespace_event")

from functools import lru_cache
from typing import Any

import kopf

from .. import state
from ..events import (
    EventType,
    NamespaceEvent,
    dispatch_event,
    namespace_from_object,
)
from ..k8s import create_k8sclient
from ..reconciler import NamespaceReconciler


@lru_cache(maxsize=1)
def get_reconciler() -> NamespaceReconciler:
    """Get the reconciler shared by all handler calls."""
    k8s_client = create_k8sclient(state.kubeconfig)
    return NamespaceReconciler(k8s_client.RbacAuthorizationV1Api())


@kopf.on.event("", "v1", "namespaces")  # type: ignore[arg-type]
def handle_namespace_event(
    *,
    event: dict[str, Any],
    body: dict[str, Any],
    name: str,
    logger: Any,
    **kwargs: Any,
) -> None:
    """Handle any change to a Namespace by creating its RBAC resources.

    Parameters
    ----------
    event : `dict`
        The raw watch event. Its ``type`` is `None` for namespaces delivered
        by kopf's initial listing, which are treated as added.
    body : `dict`
        The body of the Namespace, a ``kopf.Body`` mapping.
    name : `str`
        The name of the Namespace.
    logger : `Any`
        The kopf logger.
    kwargs : `Any`
        Additional keyword arguments provided by kopf.
    """
    event_type = event.get("type") or EventType.ADDED.value
    try:
        namespace_event = NamespaceEvent(
            EventType(event_type), namespace_from_object(body)
        )
    except ValueError:
        logger.debug(f"Ignoring {event_type} event for namespace {name}")
        return

    # Failures are logged by dispatch_event and not raised: kopf does not
    # retry event handlers, and the next event or resync retries the
    # namespace.
    dispatch_event(namespace_event, get_reconciler())
