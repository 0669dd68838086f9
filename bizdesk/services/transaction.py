"""
Atomic unit-of-work runner for ledger mutations.

Every multi-document write (sale creation, payment application) is handed to
``run_in_transaction`` as a callable. The callable reads current state through
the session, raises a ``BizdeskError`` for validation failures, and buffers its
writes; the runner commits them all at once or discards them all.

Concurrency control is optimistic: ledger rows carry a ``version_id`` column,
so a commit that races a concurrent writer fails with ``StaleDataError`` and the
whole body is re-run against fresh state. Lock/serialization failures reported
by the database (``OperationalError``) are retried the same way.
"""
import logging
import time
from typing import Callable, TypeVar

from flask import current_app, has_app_context
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from bizdesk.exceptions import BizdeskError, TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_ERRORS = (StaleDataError, OperationalError)


def _retry_settings(attempts, backoff_base):
    if attempts is None:
        attempts = current_app.config.get('TXN_RETRY_ATTEMPTS', 3) if has_app_context() else 3
    if backoff_base is None:
        backoff_base = current_app.config.get('TXN_RETRY_BACKOFF', 0.05) if has_app_context() else 0.05
    if attempts < 1:
        raise ValueError(f'attempts must be at least 1, got {attempts}')
    return attempts, backoff_base


def run_in_transaction(session, work: Callable[..., T], *, attempts: int = None,
                       backoff_base: float = None, name: str = 'transaction') -> T:
    """
    Run ``work(session)`` atomically, retrying on optimistic conflicts.

    Args:
        session: SQLAlchemy session
        work: callable receiving the session; must be safe to re-run from scratch
        attempts: total tries before giving up (default: TXN_RETRY_ATTEMPTS)
        backoff_base: seconds; sleeps backoff_base * 2**attempt between tries
        name: label used in logs and metrics

    Returns:
        Whatever ``work`` returned, after a successful commit.

    Raises:
        BizdeskError: validation failures raised by ``work`` (nothing committed)
        TransactionConflictError: retry budget exhausted
        ValueError: attempts below 1
    """
    attempts, backoff_base = _retry_settings(attempts, backoff_base)

    for attempt in range(attempts):
        try:
            result = work(session)
            session.commit()
            return result
        except BizdeskError:
            session.rollback()
            raise
        except RETRYABLE_ERRORS as exc:
            session.rollback()
            _record_retry(name)
            logger.warning(f"[TXN] {name} conflict on attempt {attempt + 1}/{attempts}: {exc}")
            if attempt >= attempts - 1:
                raise TransactionConflictError(attempts=attempts) from exc
            if backoff_base:
                time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            session.rollback()
            raise


def _record_retry(name: str) -> None:
    try:
        from bizdesk.blueprints.metrics import transaction_retries_total
        transaction_retries_total.labels(operation=name).inc()
    except Exception as e:
        logger.debug(f"[TXN] Could not record retry metric: {e}")
