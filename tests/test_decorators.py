import httpx
import pytest

from config.decorators import retry_on_transient_error


def test_transient_errors_are_retried():
    calls = []

    @retry_on_transient_error(delay=0)
    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise httpx.ReadError("[SSL: DECRYPTION_FAILED_OR_BAD_RECORD_MAC]")
        return "ok"

    assert flaky() == "ok"
    assert len(calls) == 3


def test_transient_marker_in_message_is_retried():
    calls = []

    @retry_on_transient_error(delay=0)
    def flaky():
        calls.append(1)
        if len(calls) == 1:
            raise OSError("Connection reset by peer")
        return "ok"

    assert flaky() == "ok"


def test_other_errors_raise_immediately():
    calls = []

    @retry_on_transient_error(delay=0)
    def broken():
        calls.append(1)
        raise ValueError("bad column")

    with pytest.raises(ValueError):
        broken()
    assert len(calls) == 1


def test_gives_up_after_max_retries():
    calls = []

    @retry_on_transient_error(max_retries=2, delay=0)
    def down():
        calls.append(1)
        raise httpx.ConnectError("Server disconnected")

    with pytest.raises(httpx.ConnectError):
        down()
    assert len(calls) == 2


def test_bare_decorator_keeps_function_name():
    @retry_on_transient_error
    def fetch():
        return 1

    assert fetch() == 1
    assert fetch.__name__ == "fetch"
