"""
Unit-of-work helpers.

`pdc_transaction()` is the single atomic boundary for every mutating
engine operation: row locks taken inside it are held until it exits, a
lock timeout bounds how long it may wait, and database-level failures
leave it as a retryable `TransientError`.

`snapshot_read()` gives read-only callers one consistent snapshot.
"""
import logging
from contextlib import contextmanager

from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection, transaction

from .exceptions import PDCError, TransientError

logger = logging.getLogger(__name__)


def _lock_timeout_ms():
    return int(getattr(settings, 'PDC_SETTINGS', {}).get('LOCK_TIMEOUT_MS', 5000))


@contextmanager
def pdc_transaction():
    """
    Run the enclosed block as one atomic unit of work.

    Business errors propagate untouched (and roll the block back).
    IntegrityError propagates so callers can map constraint races to a
    domain error. Any other DatabaseError becomes a TransientError.
    """
    try:
        with transaction.atomic():
            if connection.vendor == 'postgresql':
                timeout = _lock_timeout_ms()
                with connection.cursor() as cursor:
                    cursor.execute(f"SET LOCAL lock_timeout = {timeout}")
                    cursor.execute(f"SET LOCAL statement_timeout = {timeout * 2}")
            yield
    except (PDCError, IntegrityError):
        raise
    except DatabaseError as exc:
        logger.error("Unit of work aborted by database error: %s", exc, exc_info=True)
        raise TransientError() from exc


@contextmanager
def snapshot_read():
    """
    Read-only block in which every query sees the same snapshot.

    PostgreSQL gets REPEATABLE READ READ ONLY for the transaction. SQLite
    transactions are already serializable for a single connection.
    """
    try:
        with transaction.atomic():
            # SET TRANSACTION is only legal as the outermost block's first statement
            if connection.vendor == 'postgresql' and len(connection.atomic_blocks) == 1:
                with connection.cursor() as cursor:
                    cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ READ ONLY")
            yield
    except DatabaseError as exc:
        logger.error("Snapshot read failed: %s", exc, exc_info=True)
        raise TransientError() from exc
