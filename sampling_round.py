import logging
import threading

from max14001 import Max14001Reader


class LaunchFailed(RuntimeError):
    """A reader thread could not be created for a sampling round."""

    def __init__(self, spec, error):
        super().__init__("Failed to start reader thread for " + spec.source_path + ": " + str(error))
        self.spec = spec
        self.error = error


class SamplingRound:
    def __init__(self, reader: Max14001Reader = None):
        """
        Runs one read of every channel in parallel, one thread per channel, and waits for all of them.

        Args:
            reader (Max14001Reader): Reader used by the worker threads. Default is a Max14001Reader printing to stdout.
        """
        self.logger = logging.getLogger(__name__)
        self.reader = reader if reader is not None else Max14001Reader()

    def run(self, specs):
        """
        Start a reader thread per channel and block until every one of them has finished.
        A failing channel only loses its own reading.

        Raises:
            LaunchFailed: A reader thread could not be started. Threads already started are joined first.
        """
        threads = []
        try:
            for i, spec in enumerate(specs):
                thread = threading.Thread(target=self._read, args=(spec,), name='max14001-t' + str(i + 1))
                try:
                    thread.start()
                except RuntimeError as e:
                    raise LaunchFailed(spec, e) from e
                threads.append(thread)
        finally:
            self._join_all(threads)

    def _join_all(self, threads):
        # Ctrl+C is held back until every reader of the round has finished
        interrupted = None
        for thread in threads:
            while True:
                try:
                    thread.join()
                    break
                except KeyboardInterrupt as e:
                    interrupted = e
        if interrupted is not None:
            raise interrupted

    def _read(self, spec):
        # This method is called from a worker thread
        try:
            self.reader.read_and_report(spec)
        except Exception:
            self.logger.exception("Unexpected error reading " + spec.source_path)
