import threading

from filewriting.cancellation import CancellationToken


def test_cancel_is_one_shot():
    token = CancellationToken()
    assert not token.cancelled

    assert token.cancel("timeout") is True
    assert token.cancel("keypress") is False

    assert token.cancelled
    assert token.reason == "timeout"


def test_callbacks_run_once_on_cancel():
    token = CancellationToken()
    calls = []
    token.add_callback(lambda: calls.append("first"))

    token.cancel()
    token.cancel()

    assert calls == ["first"]


def test_callback_added_after_cancel_runs_immediately():
    token = CancellationToken()
    token.cancel()
    calls = []

    token.add_callback(lambda: calls.append(True))

    assert calls == [True]


def test_wait_returns_when_cancelled_from_another_thread():
    token = CancellationToken()
    timer = threading.Timer(0.05, token.cancel, args=("signal SIGINT",))
    timer.start()
    try:
        assert token.wait(timeout=5) is True
    finally:
        timer.cancel()
    assert token.reason == "signal SIGINT"


def test_wait_times_out_while_active():
    token = CancellationToken()
    assert token.wait(timeout=0.01) is False
