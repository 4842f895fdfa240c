import os
import time
import logging
import termios
import threading

from keyboard_monitor import InputWatcher, KeyboardMonitor, TerminalInputWatcher


class _FakeWatcher(InputWatcher):
    def __init__(self, press_after=None):
        self.press_after = press_after
        self.polls = 0

    def poll_nonblocking(self):
        self.polls += 1
        return self.press_after is not None and self.polls >= self.press_after


class _FailingWatcher(InputWatcher):
    def poll_nonblocking(self):
        raise OSError("no terminal")


def test_key_press_sets_stop_signal():
    stop_signal = threading.Event()
    watcher = _FakeWatcher(press_after=3)
    monitor = KeyboardMonitor(stop_signal, watcher, poll_interval=0.01)

    monitor.start()
    assert stop_signal.wait(timeout=2)
    monitor.join(timeout=2)

    assert not monitor.is_alive()
    assert watcher.polls == 3
    # never reset once set
    assert stop_signal.is_set()


def test_shutdown_without_key_press_leaves_signal_unset():
    stop_signal = threading.Event()
    watcher = _FakeWatcher()
    monitor = KeyboardMonitor(stop_signal, watcher, poll_interval=0.01)

    monitor.start()
    monitor.shutdown()

    assert not monitor.is_alive()
    assert not stop_signal.is_set()


def test_monitor_exits_when_signal_already_set():
    stop_signal = threading.Event()
    stop_signal.set()
    watcher = _FakeWatcher()
    monitor = KeyboardMonitor(stop_signal, watcher, poll_interval=0.01)

    monitor.start()
    monitor.join(timeout=2)

    assert not monitor.is_alive()
    assert watcher.polls == 0


def test_watcher_error_stops_monitoring(caplog):
    stop_signal = threading.Event()
    monitor = KeyboardMonitor(stop_signal, _FailingWatcher(), poll_interval=0.01)

    with caplog.at_level(logging.ERROR, logger="keyboard_monitor"):
        monitor.start()
        monitor.join(timeout=2)

    assert not monitor.is_alive()
    assert not stop_signal.is_set()
    assert "Error polling keyboard" in caplog.text


def test_terminal_watcher_on_pipe():
    read_fd, write_fd = os.pipe()
    with os.fdopen(read_fd, "rb", buffering=0) as stream:
        watcher = TerminalInputWatcher(stream)
        assert watcher.poll_nonblocking() is False

        os.write(write_fd, b"q")
        assert watcher.poll_nonblocking() is True
        # the key was consumed
        assert watcher.poll_nonblocking() is False

        os.close(write_fd)
        assert watcher.poll_nonblocking() is False


def test_terminal_watcher_without_stdin(monkeypatch):
    monkeypatch.setattr("sys.stdin", None)
    assert TerminalInputWatcher().poll_nonblocking() is False


def test_default_poll_interval_is_100ms():
    assert KeyboardMonitor.DEFAULT_POLL_INTERVAL == 0.1
    assert KeyboardMonitor(threading.Event(), _FakeWatcher()).poll_interval == 0.1


def _poll_until_key(watcher, attempts=100):
    for _ in range(attempts):
        if watcher.poll_nonblocking():
            return True
        time.sleep(0.01)
    return False


def test_terminal_watcher_restores_tty_settings():
    master_fd, slave_fd = os.openpty()
    try:
        with os.fdopen(slave_fd, "rb", buffering=0, closefd=False) as stream:
            settings = termios.tcgetattr(slave_fd)
            watcher = TerminalInputWatcher(stream)

            assert watcher.poll_nonblocking() is False
            assert termios.tcgetattr(slave_fd) == settings

            os.write(master_fd, b"q\n")
            assert _poll_until_key(watcher) is True
            assert termios.tcgetattr(slave_fd) == settings
    finally:
        os.close(slave_fd)
        os.close(master_fd)
