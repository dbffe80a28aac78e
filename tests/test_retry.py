"""Tests for the retry policy."""

from unittest.mock import Mock

import pytest

from flashgen.errors import AuthError, MaxRetriesExceeded, SchemaError, TransientError
from flashgen.llm.retry import RetryPolicy


def rate_limited():
    return TransientError("Rate limit exceeded", TransientError.RATE_LIMIT, status_code=429)


def test_first_attempt_success():
    sleep = Mock()
    policy = RetryPolicy(max_attempts=3, sleep=sleep)

    assert policy.run(lambda attempt: attempt) == 1
    sleep.assert_not_called()


def test_attempt_number_passed_through():
    outcomes = [rate_limited(), rate_limited(), "done"]

    def operation(attempt):
        outcome = outcomes[attempt - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return f"{outcome} on {attempt}"

    policy = RetryPolicy(max_attempts=3, sleep=Mock())

    assert policy.run(operation) == "done on 3"


@pytest.mark.parametrize("max_attempts", [1, 2, 5])
def test_exact_attempt_count(max_attempts):
    operation = Mock(side_effect=rate_limited())
    policy = RetryPolicy(max_attempts=max_attempts, sleep=Mock())

    with pytest.raises(MaxRetriesExceeded) as exc_info:
        policy.run(operation)

    assert operation.call_count == max_attempts
    assert exc_info.value.attempts == max_attempts
    assert exc_info.value.__cause__ is exc_info.value.last_error


def test_no_sleep_after_last_attempt():
    sleep = Mock()
    policy = RetryPolicy(max_attempts=4, base_delay_s=0.5, sleep=sleep)

    with pytest.raises(MaxRetriesExceeded):
        policy.run(Mock(side_effect=rate_limited()))

    assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0, 2.0]


@pytest.mark.parametrize("error", [
    AuthError("Authentication failed", status_code=401),
    SchemaError(SchemaError.TOO_FEW),
    KeyError("boom"),
])
def test_non_transient_errors_raised_immediately(error):
    operation = Mock(side_effect=error)
    sleep = Mock()
    policy = RetryPolicy(max_attempts=3, sleep=sleep)

    with pytest.raises(type(error)) as exc_info:
        policy.run(operation)

    assert exc_info.value is error
    assert operation.call_count == 1
    sleep.assert_not_called()


def test_invalid_policy():
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)
