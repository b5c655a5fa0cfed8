"""Generators for the RBAC resources provisioned in each namespace."""

from __future__ import annotations

from typing import Any

__all__ = (
    "API_GROUP",
    "API_VERSION",
    "CLUSTER_ROLE_NAME",
    "DEFAULT_ROLE_NAME",
    "generate_cluster_role",
    "generate_cluster_role_binding",
    "generate_role",
    "generate_role_binding",
    "generate_service_account_role_binding",
)

API_GROUP = "rbac.authorization.k8s.io"

API_VERSION = f"{API_GROUP}/v1"

DEFAULT_ROLE_NAME = "default-role"
"""Name of the Role created in every namespace."""

CLUSTER_ROLE_NAME = "namespace-creater"
"""Name of the ClusterRole that grants access to namespaces."""


def generate_role(namespace: str) -> dict[str, Any]:
    """Create the JSON resource for the ``default-role`` Role, which grants
    every verb on every resource within the namespace.

    Parameters
    ----------
    namespace : `str`
        The namespace the Role is created in.

    Returns
    -------
    role : `dict`
        The Role resource.
    """
    return {
        "apiVersion": API_VERSION,
        "kind": "Role",
        "metadata": {
            "name": DEFAULT_ROLE_NAME,
            "namespace": namespace,
        },
        "rules": [
            {
                "apiGroups": ["*"],
                "resources": ["*"],
                "verbs": ["*"],
            }
        ],
    }


def generate_role_binding(namespace: str, project: str) -> dict[str, Any]:
    """Create the JSON resource for a RoleBinding that gives the ``project``
    user the ``default-role`` Role in the namespace.

    Parameters
    ----------
    namespace : `str`
        The namespace the RoleBinding is created in.
    project : `str`
        The name of the user (and of the project). The operator uses the
        namespace name.

    Returns
    -------
    rolebinding : `dict`
        The RoleBinding resource, named ``<project>-rolebinding``.
    """
    return {
        "apiVersion": API_VERSION,
        "kind": "RoleBinding",
        "metadata": {
            "name": f"{project}-rolebinding",
            "namespace": namespace,
        },
        "subjects": [{"kind": "User", "name": project}],
        "roleRef": _role_ref("Role", DEFAULT_ROLE_NAME),
    }


def generate_service_account_role_binding(
    namespace: str, project: str
) -> dict[str, Any]:
    """Create the JSON resource for a RoleBinding that gives the namespace's
    ``default`` ServiceAccount the ``default-role`` Role.

    Parameters
    ----------
    namespace : `str`
        The namespace the RoleBinding is created in.
    project : `str`
        The name of the project. The operator uses the namespace name.

    Returns
    -------
    rolebinding : `dict`
        The RoleBinding resource, named ``<project>-rolebinding-sa``.
    """
    return {
        "apiVersion": API_VERSION,
        "kind": "RoleBinding",
        "metadata": {
            "name": f"{project}-rolebinding-sa",
            "namespace": namespace,
        },
        "subjects": [
            {
                "kind": "ServiceAccount",
                "name": "default",
                "namespace": namespace,
            }
        ],
        "roleRef": _role_ref("Role", DEFAULT_ROLE_NAME),
    }


def generate_cluster_role() -> dict[str, Any]:
    """Create the JSON resource for the ``namespace-creater`` ClusterRole,
    which grants every verb on ``namespaces``.

    The operator does not create this resource on its own; it is provided
    for deployments that grant namespace-creation rights to project groups.
    """
    return {
        "apiVersion": API_VERSION,
        "kind": "ClusterRole",
        "metadata": {"name": CLUSTER_ROLE_NAME},
        "rules": [
            {
                "apiGroups": ["*"],
                "resources": ["namespaces"],
                "verbs": ["*"],
            }
        ],
    }


def generate_cluster_role_binding(project: str) -> dict[str, Any]:
    """Create the JSON resource for a ClusterRoleBinding that lets members of
    the ``project`` group create namespaces.

    Parameters
    ----------
    project : `str`
        The name of the group.

    Returns
    -------
    clusterrolebinding : `dict`
        The ClusterRoleBinding resource, named
        ``<project>-namespace-creater``.
    """
    return {
        "apiVersion": API_VERSION,
        "kind": "ClusterRoleBinding",
        "metadata": {"name": f"{project}-{CLUSTER_ROLE_NAME}"},
        "subjects": [{"kind": "Group", "name": project}],
        "roleRef": _role_ref("ClusterRole", CLUSTER_ROLE_NAME),
    }


def _role_ref(kind: str, name: str) -> dict[str, str]:
    return {"apiGroup": API_GROUP, "kind": kind, "name": name}
