import threading

import pytest
from dbmap import CancellationToken, OperationCancelled
from dbmap.cancellation import cancellable, raise_if_cancelled


def test_token_starts_idle():
    token = CancellationToken()
    assert not token.cancelled
    token.raise_if_cancelled()


def test_cancel_runs_callbacks_once():
    token = CancellationToken()
    calls = []
    with token.register(lambda: calls.append(1)):
        token.cancel()
        token.cancel()
    assert calls == [1]
    assert token.cancelled


def test_register_after_cancel_runs_immediately():
    token = CancellationToken()
    token.cancel()
    calls = []
    with token.register(lambda: calls.append(1)):
        assert calls == [1]


def test_callback_unregistered_after_block():
    token = CancellationToken()
    calls = []
    with token.register(lambda: calls.append(1)):
        pass
    token.cancel()
    assert calls == []


def test_timeout_fires_token():
    token = CancellationToken(timeout=0)
    assert token.cancelled
    with pytest.raises(OperationCancelled):
        token.raise_if_cancelled()


def test_cancel_from_another_thread():
    token = CancellationToken()
    thread = threading.Thread(target=token.cancel)
    thread.start()
    thread.join()
    assert token.cancelled


def test_raise_if_cancelled_accepts_none():
    raise_if_cancelled(None)


def test_cancellable_without_token_propagates_errors():
    with pytest.raises(KeyError):
        with cancellable(None, lambda: None):
            raise KeyError('x')


def test_cancellable_checks_before_block():
    token = CancellationToken()
    token.cancel()
    entered = []
    with pytest.raises(OperationCancelled):
        with cancellable(token, lambda: None):
            entered.append(1)
    assert entered == []


def test_cancellable_interrupts_and_converts_driver_error():
    token = CancellationToken()
    interrupted = []
    with pytest.raises(OperationCancelled) as exc_info:
        with cancellable(token, lambda: interrupted.append(1)):
            token.cancel()
            raise RuntimeError('interrupted')
    assert interrupted == [1]
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_cancellable_leaves_unrelated_errors_alone():
    token = CancellationToken()
    with pytest.raises(RuntimeError):
        with cancellable(token, lambda: None):
            raise RuntimeError('driver failure')


def test_operation_cancelled_is_not_database_error():
    from dbmap import DatabaseError
    assert not issubclass(OperationCancelled, DatabaseError)


def test_timeout_runs_registered_callback():
    token = CancellationToken(timeout=0.05)
    fired = threading.Event()
    with token.register(fired.set):
        assert fired.wait(5)
    assert token.cancelled


def test_close_stops_timeout():
    token = CancellationToken(timeout=0.05)
    token.close()
    assert not token.wait(0.2)
    assert not token.cancelled


def test_completed_block_keeps_its_result():
    token = CancellationToken()
    with cancellable(token, lambda: None):
        token.cancel()
        result = 42
    assert result == 42
    with pytest.raises(OperationCancelled):
        raise_if_cancelled(token)


if __name__ == '__main__':
    __import__('pytest').main([__file__])
