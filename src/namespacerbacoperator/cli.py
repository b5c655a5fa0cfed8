"""Command-line entry point for the namespace-rbac-operator."""

__all__ = ("build_supervisor", "configure_logging", "main")

import logging
import sys
from typing import Any

import click
import structlog

from namespacerbacoperator import state
from namespacerbacoperator.exceptions import StartupError, WatchError
from namespacerbacoperator.k8s import create_k8sclient
from namespacerbacoperator.reconciler import NamespaceReconciler
from namespacerbacoperator.supervisor import Supervisor
from namespacerbacoperator.version import get_version
from namespacerbacoperator.watcher import NamespaceWatcher

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(log_level: str) -> None:
    """Filter structlog output below ``log_level``."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
    )


def build_supervisor(
    k8s_client: Any,
    *,
    resync_seconds: int,
    watch_timeout_seconds: int,
    max_watch_failures: int,
) -> Supervisor:
    """Wire the reconciler, watcher and supervisor to a Kubernetes client."""
    reconciler = NamespaceReconciler(k8s_client.RbacAuthorizationV1Api())
    watcher = NamespaceWatcher(
        core_api=k8s_client.CoreV1Api(),
        reconciler=reconciler,
        resync_seconds=resync_seconds,
        watch_timeout_seconds=watch_timeout_seconds,
        max_failures=max_watch_failures,
    )
    return Supervisor(watcher)


@click.command()
@click.option(
    "--kubeconfig",
    envvar="NRO_KUBECONFIG",
    default=state.kubeconfig,
    show_default=True,
    help="Kubeconfig file. In-cluster credentials are used if it is missing.",
)
@click.option(
    "--resync-seconds",
    envvar="NRO_RESYNC_SECONDS",
    type=click.IntRange(min=1),
    default=state.resync_seconds,
    show_default=True,
    help="Interval between full re-listings of all namespaces.",
)
@click.option(
    "--watch-timeout-seconds",
    envvar="NRO_WATCH_TIMEOUT_SECONDS",
    type=click.IntRange(min=1),
    default=state.watch_timeout_seconds,
    show_default=True,
    help="Server-side timeout of each namespace watch stream.",
)
@click.option(
    "--max-watch-failures",
    envvar="NRO_MAX_WATCH_FAILURES",
    type=click.IntRange(min=1),
    default=state.max_watch_failures,
    show_default=True,
    help="Consecutive list/watch failures tolerated before exiting.",
)
@click.option(
    "--log-level",
    envvar="NRO_LOG_LEVEL",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=state.log_level,
    show_default=True,
    help="Minimum level of emitted log messages.",
)
@click.version_option(version=get_version())
def main(
    kubeconfig: str,
    resync_seconds: int,
    watch_timeout_seconds: int,
    max_watch_failures: int,
    log_level: str,
) -> None:
    """Create a default Role and RoleBindings in every namespace."""
    configure_logging(log_level)
    logger = structlog.getLogger(__name__)

    try:
        k8s_client = create_k8sclient(kubeconfig)
    except StartupError as exc:
        logger.error(str(exc))
        sys.exit(1)

    supervisor = build_supervisor(
        k8s_client,
        resync_seconds=resync_seconds,
        watch_timeout_seconds=watch_timeout_seconds,
        max_watch_failures=max_watch_failures,
    )
    try:
        supervisor.run()
    except WatchError as exc:
        logger.error(f"Unhandled error received: {exc}")
        sys.exit(1)
