import os
import sys
import tty
import select
import logging
import termios
import threading


class InputWatcher:
    """
    Source of operator input for the KeyboardMonitor.
    poll_nonblocking must return immediately, True if the operator pressed a key since the last poll.
    """

    def poll_nonblocking(self) -> bool:
        raise NotImplementedError


class TerminalInputWatcher(InputWatcher):
    def __init__(self, stream=None):
        """
        Non-blocking key check on a POSIX terminal (stdin by default).
        Each poll puts the terminal in cbreak mode without echo, looks for a pending character and
        restores the previous terminal settings before returning.
        """
        self.stream = stream if stream is not None else sys.stdin

    def poll_nonblocking(self):
        if self.stream is None:
            return False
        fd = self.stream.fileno()
        if not os.isatty(fd):
            return self._key_pending(fd)

        old_settings = termios.tcgetattr(fd)
        try:
            tty.setcbreak(fd, termios.TCSANOW)
            return self._key_pending(fd)
        finally:
            termios.tcsetattr(fd, termios.TCSANOW, old_settings)

    def _key_pending(self, fd):
        ready, _, _ = select.select([fd], [], [], 0)
        if not ready:
            return False
        # nothing reads stdin after the monitor, so the key can be consumed here
        return os.read(fd, 1) != b''  # EOF is not a key press


class KeyboardMonitor:
    DEFAULT_POLL_INTERVAL = 0.1  # 100 ms

    def __init__(self, stop_signal: threading.Event, watcher: InputWatcher = None, poll_interval: float = None):
        """
        Background thread that sets the stop signal when the operator presses any key.

        Args:
            stop_signal (threading.Event): Shared stop signal. It is only ever set, never cleared.
            watcher (InputWatcher): Where key presses come from. Default is a TerminalInputWatcher on stdin.
            poll_interval (float): Seconds between two polls. Default is 0.1.
        """
        self.logger = logging.getLogger(__name__)
        self.stop_signal = stop_signal
        self.watcher = watcher if watcher is not None else TerminalInputWatcher()
        self.poll_interval = poll_interval if poll_interval is not None else self.DEFAULT_POLL_INTERVAL
        self._shutdown_event = threading.Event()
        self._bg_thread = threading.Thread(target=self._monitor, name='keyboard-monitor', daemon=True)

    def start(self):
        if not self._bg_thread.is_alive():
            self._bg_thread.start()
            self.logger.debug("Keyboard monitor started")
        else:
            self.logger.warning("Keyboard monitor is already running")

    def is_alive(self):
        return self._bg_thread.is_alive()

    def join(self, timeout=None):
        if self._bg_thread.is_alive():
            self._bg_thread.join(timeout)

    def shutdown(self):
        """
        Stop polling without setting the stop signal and wait for the thread to finish.
        Used when the program exits for another reason than a key press.
        """
        self._shutdown_event.set()
        self.join()

    def _monitor(self):
        while not self.stop_signal.is_set() and not self._shutdown_event.is_set():
            try:
                pressed = self.watcher.poll_nonblocking()
            except Exception:
                self.logger.exception("Error polling keyboard, key presses will be ignored")
                return
            if pressed:
                self.logger.info("Key pressed, stopping readings")
                self.stop_signal.set()
                return
            self._shutdown_event.wait(self.poll_interval)
