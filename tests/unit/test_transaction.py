"""
Unit tests for the atomic transaction runner.
"""

import pytest
from unittest.mock import MagicMock, patch
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from bizdesk.exceptions import BusinessLogicError, TransactionConflictError
from bizdesk.services.transaction import run_in_transaction


class TestRunInTransaction:
    """Commit/rollback/retry behaviour of run_in_transaction."""

    def test_commits_and_returns_result(self):
        session = MagicMock()
        result = run_in_transaction(session, lambda tx: 'done', attempts=3, backoff_base=0)

        assert result == 'done'
        session.commit.assert_called_once()
        session.rollback.assert_not_called()

    def test_retries_after_stale_data_then_succeeds(self):
        session = MagicMock()
        calls = []

        def work(tx):
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError('version mismatch')
            return 'second try'

        assert run_in_transaction(session, work, attempts=3, backoff_base=0) == 'second try'
        assert len(calls) == 2
        session.rollback.assert_called_once()
        session.commit.assert_called_once()

    def test_conflict_on_commit_is_retried(self):
        """A stale write detected at commit re-runs the whole body."""
        session = MagicMock()
        session.commit.side_effect = [StaleDataError('stale'), None]
        work = MagicMock(return_value=42)

        assert run_in_transaction(session, work, attempts=3, backoff_base=0) == 42
        assert work.call_count == 2

    def test_operational_error_is_retried(self):
        session = MagicMock()
        work = MagicMock(side_effect=[OperationalError('UPDATE', {}, Exception('database is locked')), 'ok'])

        assert run_in_transaction(session, work, attempts=2, backoff_base=0) == 'ok'

    def test_exhausted_retries_raise_conflict(self):
        session = MagicMock()
        work = MagicMock(side_effect=StaleDataError('always stale'))

        with pytest.raises(TransactionConflictError) as exc_info:
            run_in_transaction(session, work, attempts=3, backoff_base=0)

        assert exc_info.value.status_code == 409
        assert exc_info.value.attempts == 3
        assert work.call_count == 3
        assert session.rollback.call_count == 3
        session.commit.assert_not_called()

    def test_validation_error_rolls_back_without_retry(self):
        session = MagicMock()
        work = MagicMock(side_effect=BusinessLogicError('bad input'))

        with pytest.raises(BusinessLogicError):
            run_in_transaction(session, work, attempts=3, backoff_base=0)

        assert work.call_count == 1
        session.rollback.assert_called_once()
        session.commit.assert_not_called()

    def test_unexpected_error_rolls_back_and_propagates(self):
        session = MagicMock()

        def work(tx):
            raise KeyError('boom')

        with pytest.raises(KeyError):
            run_in_transaction(session, work, attempts=3, backoff_base=0)
        session.rollback.assert_called_once()

    def test_backoff_doubles_between_attempts(self):
        session = MagicMock()
        work = MagicMock(side_effect=StaleDataError('stale'))

        with patch('bizdesk.services.transaction.time.sleep') as sleep:
            with pytest.raises(TransactionConflictError):
                run_in_transaction(session, work, attempts=3, backoff_base=0.1)

        # No sleep after the final attempt
        assert [c.args[0] for c in sleep.call_args_list] == [0.1, 0.2]

    def test_reads_retry_budget_from_app_config(self, app):
        app.config['TXN_RETRY_ATTEMPTS'] = 2
        session = MagicMock()
        work = MagicMock(side_effect=StaleDataError('stale'))

        with pytest.raises(TransactionConflictError):
            run_in_transaction(session, work)
        assert work.call_count == 2

    def test_zero_attempts_is_rejected_before_running(self):
        session = MagicMock()
        work = MagicMock()

        with pytest.raises(ValueError):
            run_in_transaction(session, work, attempts=0, backoff_base=0)
        work.assert_not_called()
        session.commit.assert_not_called()

    def test_default_budget_outside_app_context(self):
        session = MagicMock()
        work = MagicMock(side_effect=StaleDataError('stale'))

        with pytest.raises(TransactionConflictError):
            run_in_transaction(session, work, backoff_base=0)
        assert work.call_count == 3
