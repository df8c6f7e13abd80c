"""Background job processing with ARQ.

The worker relays tenant outbox events; see ``shopgrid.core.jobs.worker``.
"""

from shopgrid.core.jobs.worker import WorkerSettings


__all__ = [
    "WorkerSettings",
]
