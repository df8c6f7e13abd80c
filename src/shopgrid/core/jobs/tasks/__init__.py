"""Background job tasks.

This package contains all background job implementations.
Each task module should define async functions that can be
registered in the worker.
"""

from shopgrid.core.jobs.tasks.outbox import relay_outbox


__all__ = [
    "relay_outbox",
]
