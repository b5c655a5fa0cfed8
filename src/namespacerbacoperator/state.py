"""Operator configuration defaults as module-level attributes.

The string settings are read once from the environment at import time. The
numeric settings are plain defaults: the command-line interface reads and
validates their ``NRO_*`` environment variables itself, so that a malformed
value is reported as a usage error.
"""

import os

kubeconfig = os.environ.get("NRO_KUBECONFIG", "/etc/kubernetes/admin.conf")
"""Path to the kubeconfig file used to reach the cluster.

When the file does not exist (or the value is empty) the operator uses the
in-cluster service account credentials instead.
"""

resync_seconds = 300
"""Interval between full re-listings of the cluster's namespaces
(``NRO_RESYNC_SECONDS``).
"""

watch_timeout_seconds = 20
"""Server-side timeout of a single namespace watch stream
(``NRO_WATCH_TIMEOUT_SECONDS``).

A shutdown request interrupts an open stream, so this mainly controls how
often the watch is re-established.
"""

max_watch_failures = 5
"""Consecutive list/watch failures tolerated before the watch loop gives up
(``NRO_MAX_WATCH_FAILURES``).
"""

log_level = os.environ.get("NRO_LOG_LEVEL", "INFO")
"""Minimum level of log messages emitted by the operator."""
