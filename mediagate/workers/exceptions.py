"""
Worker-specific exceptions.

Raised by workers and the runtime for failure modes that are not request
errors (those live in ``mediagate.exceptions``).
"""


class WorkerInitializationError(Exception):
    """Raised when a worker or the runtime fails to initialize required services."""

    pass
