"""Kopf handlers for the namespace-rbac-operator.

Run with ``kopf run -m namespacerbacoperator.handlers --all-namespaces`` as
an alternative to the ``namespace-rbac-operator`` command.
"""

__all__ = ("handle_namespace_event",)

from namespacerbacoperator.handlers.namespacewatcher import (
    handle_namespace_event,
)
