"""Creation of the baseline RBAC resources for a namespace."""

from __future__ import annotations

__all__ = ("CreateResult", "NamespaceReconciler")

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import HTTPError

from namespacerbacoperator.events import NamespaceRef
from namespacerbacoperator.exceptions import SyncError
from namespacerbacoperator.rbac import (
    generate_role,
    generate_role_binding,
    generate_service_account_role_binding,
)

HTTP_CONFLICT = 409


@dataclass(frozen=True)
class CreateResult:
    """The outcome of creating one RBAC resource."""

    kind: str
    name: str
    created: bool
    """`True` if the resource was created, `False` if it already existed."""


class NamespaceReconciler:
    """Ensures that each namespace has its ``default-role`` Role and the
    RoleBindings for the namespace's user and ``default`` ServiceAccount.

    Parameters
    ----------
    rbac_api
        A ``kubernetes.client.RbacAuthorizationV1Api`` (or an object with the
        same ``create_namespaced_role`` and
        ``create_namespaced_role_binding`` methods).
    logger : optional
        Logger to use for logging messages. If not provided, a default logger
        will be used.
    """

    def __init__(self, rbac_api: Any, *, logger: Any | None = None) -> None:
        self.rbac_api = rbac_api
        if logger is None:
            logger = structlog.getLogger(__name__)
        self._logger = logger

    def synchronize(self, namespace: NamespaceRef) -> list[CreateResult]:
        """Create the RBAC resources for a namespace.

        The Role is created first, then the two RoleBindings. Resources that
        already exist count as success. Namespaces that are being deleted
        are skipped without any API calls.

        Parameters
        ----------
        namespace : `NamespaceRef`
            The namespace to synchronize.

        Returns
        -------
        list of `CreateResult`
            One result per resource, in creation order. Empty if the
            namespace is terminating.

        Raises
        ------
        namespacerbacoperator.exceptions.SyncError
            Raised when a resource could not be created for any reason other
            than it already existing. Resources after the failed one are not
            attempted.
        """
        logger = self._logger.bind(namespace=namespace.name)
        if namespace.is_terminating:
            logger.debug(
                f"Namespace {namespace.name} is terminating; skipping"
            )
            return []

        name = namespace.name
        desired: list[tuple[dict[str, Any], Callable[..., Any]]] = [
            (generate_role(name), self.rbac_api.create_namespaced_role),
            (
                generate_role_binding(name, name),
                self.rbac_api.create_namespaced_role_binding,
            ),
            (
                generate_service_account_role_binding(name, name),
                self.rbac_api.create_namespaced_role_binding,
            ),
        ]

        results = []
        for body, create in desired:
            results.append(self._create(body, create, logger))
        return results

    def _create(
        self,
        body: dict[str, Any],
        create: Callable[..., Any],
        logger: Any,
    ) -> CreateResult:
        kind = body["kind"]
        name = body["metadata"]["name"]
        namespace = body["metadata"]["namespace"]
        logger = logger.bind(kind=kind, name=name)

        try:
            create(namespace=namespace, body=body)
        except ApiException as exc:
            if exc.status == HTTP_CONFLICT:
                logger.debug(f"{kind} {name} already exists")
                return CreateResult(kind=kind, name=name, created=False)
            raise SyncError(
                f"API error {exc.status}: {exc.reason}",
                namespace=namespace,
                kind=kind,
                name=name,
                status=exc.status,
            ) from exc
        except (HTTPError, OSError) as exc:
            raise SyncError(
                f"Connection error: {exc}",
                namespace=namespace,
                kind=kind,
                name=name,
            ) from exc

        logger.info(f"Created {kind} {name} in namespace {namespace}")
        return CreateResult(kind=kind, name=name, created=True)
