"""Serialized command dispatch.

Every state-changing marketplace command runs inside the UnitOfWork that
Protean opens around a ``@handle`` method. ``process()`` additionally holds
the domain write lock for the whole unit of work, so two checkouts racing
for the last unit of a product, or a seller confirm racing a buyer cancel on
the same item, always observe each other as committed wholes.

Lock acquisition is bounded by ``MARKETPLACE_LOCK_TIMEOUT`` seconds.

Payment gateway calls are not covered by the unit of work. Handlers make
them last, after the aggregates are handed to their repositories, and
checkout refunds charges it already took when a later step fails.
"""

import os
import threading
from contextlib import contextmanager

import structlog
from protean.utils.globals import current_domain

from marketplace.errors import ServiceBusy

logger = structlog.get_logger(__name__)

DEFAULT_LOCK_TIMEOUT = 5.0

_write_lock = threading.RLock()


def lock_timeout():
    return float(os.environ.get("MARKETPLACE_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT))


@contextmanager
def serialized(timeout=None):
    """Hold the domain write lock for the duration of the block."""
    timeout = lock_timeout() if timeout is None else timeout
    if not _write_lock.acquire(timeout=timeout):
        logger.warning("Write lock acquisition timed out", timeout=timeout)
        raise ServiceBusy(timeout)
    try:
        yield
    finally:
        _write_lock.release()


def process(command):
    """Process a command synchronously under the write lock and return the handler's result."""
    with serialized():
        return current_domain.process(command, asynchronous=False)
