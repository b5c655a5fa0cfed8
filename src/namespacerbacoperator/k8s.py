"""Helpers for interacting with Kubernetes APIs."""

__all__ = ("create_k8sclient", "get_resource_version")

from pathlib import Path
from typing import Any

import kubernetes
import structlog
from kubernetes.config.config_exception import ConfigException

from namespacerbacoperator.exceptions import StartupError


def create_k8sclient(
    kubeconfig: str | None = None, logger: Any | None = None
) -> kubernetes.client:
    """Get a Kubernetes client configured with available cluster
    authentication.

    If ``kubeconfig`` names an existing file, that file is used. Otherwise
    in-cluster authentication is used if available, and as a last resort
    this function falls-back to the default kubectl config file, which is
    appropriate for development.

    Parameters
    ----------
    kubeconfig : `str`, optional
        Path to a kubeconfig file.
    logger : optional
        Logger to use for logging messages. If not provided, a default logger
        will be used.

    Returns
    -------
    kubernetes.client
        The configured client module.

    Raises
    ------
    namespacerbacoperator.exceptions.StartupError
        Raised if no cluster configuration could be loaded.
    """
    if logger is None:
        logger = structlog.getLogger(__name__)

    try:
        if kubeconfig and Path(kubeconfig).is_file():
            kubernetes.config.load_kube_config(config_file=kubeconfig)
            logger.info(f"Using kubeconfig {kubeconfig}")
        else:
            try:
                kubernetes.config.load_incluster_config()
                logger.info("Using in-cluster configuration")
            except ConfigException:
                kubernetes.config.load_kube_config()
                logger.info("Using default kubeconfig")
    except (ConfigException, OSError, ValueError) as exc:
        raise StartupError(
            f"Failed to build Kubernetes configuration: {exc}"
        ) from exc
    return kubernetes.client


def get_resource_version(obj: Any) -> str | None:
    """Get the ``metadata.resourceVersion`` of a resource or a list.

    Parameters
    ----------
    obj
        A Kubernetes client model, or a raw resource as a `dict`.

    Returns
    -------
    str or None
        The resource version, or `None` if the object does not carry one.
    """
    if isinstance(obj, dict):
        return (obj.get("metadata") or {}).get("resourceVersion")
    metadata = getattr(obj, "metadata", None)
    return getattr(metadata, "resource_version", None)
