"""Exceptions raised by the namespace-rbac-operator."""

__all__ = ("OperatorError", "StartupError", "SyncError", "WatchError")


class OperatorError(Exception):
    """Base class for namespace-rbac-operator errors."""


class StartupError(OperatorError):
    """Raised when the Kubernetes client cannot be configured."""


class WatchError(OperatorError):
    """Raised when the namespace subscription cannot be established or
    maintained.

    This is fatal to the watch loop and, through the supervisor, to the
    process.
    """


class SyncError(OperatorError):
    """Raised when an RBAC object for a namespace could not be created.

    Parameters
    ----------
    message : `str`
        Description of the failure.
    namespace : `str`
        The namespace being synchronized.
    kind : `str`
        The kind of the object that failed (``Role`` or ``RoleBinding``).
    name : `str`
        The name of the object that failed.
    status : `int`, optional
        The HTTP status returned by the Kubernetes API, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        namespace: str,
        kind: str,
        name: str,
        status: int | None = None,
    ) -> None:
        super().__init__(message)
        self.namespace = namespace
        self.kind = kind
        self.name = name
        self.status = status
