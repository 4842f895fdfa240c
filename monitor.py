#!/usr/bin/env python
import sys
import time
import logging
import threading

from max14001 import DEFAULT_CHANNELS, Max14001Reader
from sampling_round import LaunchFailed, SamplingRound
from keyboard_monitor import KeyboardMonitor


class Max14001PmbReader:
    DEFAULT_ROUND_INTERVAL = 0.5  # seconds between two rounds

    def __init__(self,
                 channels: list = None,
                 sampling_round: SamplingRound = None,
                 stop_signal: threading.Event = None,
                 keyboard_monitor: KeyboardMonitor = None,
                 round_interval: float = None,
                 output=None):
        """
        Reads all MAX14001PMB channels in rounds until a key is pressed.

        Args:
            channels (list): ChannelSpecs sampled every round. Default is the raw and mean-filtered sources of U11 and U51.
            sampling_round (SamplingRound): Runs the parallel reads of a round. Default prints to output.
            stop_signal (threading.Event): Set by the keyboard monitor to stop the loop. Default is a new Event.
            keyboard_monitor (KeyboardMonitor): Watches for the key press. Default polls the terminal on stdin.
            round_interval (float): Sleep after each round in seconds. Default is 0.5.
            output: Text stream for the program output. Default is sys.stdout at print time.
        """
        self.logger = logging.getLogger(__name__)
        self.channels = list(channels) if channels is not None else list(DEFAULT_CHANNELS)
        self.output = output
        self.sampling_round = sampling_round if sampling_round is not None else SamplingRound(Max14001Reader(output=output))
        self.stop_signal = stop_signal if stop_signal is not None else threading.Event()
        self.keyboard_monitor = keyboard_monitor if keyboard_monitor is not None else KeyboardMonitor(self.stop_signal)
        self.round_interval = round_interval if round_interval is not None else self.DEFAULT_ROUND_INTERVAL
        self.loop = 0

    def run(self):
        """
        Run rounds until the stop signal is set, then wait for the keyboard monitor.
        The stop signal is only checked between rounds, a running round always completes.

        Returns:
            int: Process exit status, 0 on a normal stop and 1 if a reader thread could not be started
        """
        self.keyboard_monitor.start()
        self._print("Press any key to stop the MAX14001 readings")

        try:
            while not self.stop_signal.is_set():
                self._print("Reading.. loop(%d)" % self.loop)
                self.sampling_round.run(self.channels)
                self.loop += 1
                self._print("\n")
                time.sleep(self.round_interval)
        except LaunchFailed as e:
            self.logger.error(str(e))
            self.keyboard_monitor.shutdown()
            return 1
        except KeyboardInterrupt:
            self.logger.info("Stopping readings due to keyboard interrupt")
            self.keyboard_monitor.shutdown()
        else:
            # Wait for keyboard thread to finish
            self.keyboard_monitor.join()

        self._print("MAX14001PMB Reader Program terminated.")
        return 0

    def _print(self, message):
        out = self.output if self.output is not None else sys.stdout
        print(message, file=out, flush=True)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)-15s %(name)-8s %(levelname)s: %(message)s")
    return Max14001PmbReader().run()

if __name__ == "__main__":
    sys.exit(main())
