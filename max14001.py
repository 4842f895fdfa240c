import re
import sys
import logging

from ChannelSpec import ChannelKind, ChannelSpec
from PhysicalReading import PhysicalReading

# https://www.analog.com/media/en/technical-documentation/data-sheets/MAX14001PMB.pdf
# U11 measures voltage with an offset that allows it to measure negative values
MAX14001_U11_ADC = '/sys/bus/iio/devices/iio:device0/in_voltage0_raw'
MAX14001_U11_FADC = '/sys/bus/iio/devices/iio:device0/in_voltage0_mean_raw'
# U51 measures current with an offset that allows it to measure negative values
MAX14001_U51_ADC = '/sys/bus/iio/devices/iio:device1/in_voltage0_raw'
MAX14001_U51_FADC = '/sys/bus/iio/devices/iio:device1/in_voltage0_mean_raw'

DEFAULT_CHANNELS = (
    ChannelSpec(ChannelKind.VOLTAGE, MAX14001_U11_ADC),
    ChannelSpec(ChannelKind.VOLTAGE, MAX14001_U11_FADC),
    ChannelSpec(ChannelKind.CURRENT, MAX14001_U51_ADC),
    ChannelSpec(ChannelKind.CURRENT, MAX14001_U51_FADC),
)

# Calibration from the MAX14001PMB circuit analysis, not configurable
U11_OFFSET = 511.06305173
U11_GAIN = 1.499118283
U51_VOLTS_PER_LSB = 0.001220703125  # 5V / 4096
U51_OFFSET_VOLTS = 0.625
U51_AMPS_PER_VOLT = 10

_LEADING_INT = re.compile(rb'[ \t\n\v\f\r]*([+-]?[0-9]+)')  # C isspace() and digits only


class ReadError(Exception):
    """A MAX14001 data source could not be sampled this round."""
    action = 'access'

    def __init__(self, path, error):
        super().__init__(path, error)
        self.path = path
        self.error = error

    def __str__(self):
        reason = self.error.strerror if getattr(self.error, 'strerror', None) else str(self.error)
        return "Failed to %s %s: %s" % (self.action, self.path, reason)


class OpenFailed(ReadError):
    action = 'open'


class ReadFailed(ReadError):
    action = 'read'


def parse_raw_sample(data):
    """
    Parse the leading decimal integer of a sysfs value the way C atoi() does.
    Leading whitespace and a sign are accepted, parsing stops at the first non-digit and
    data without leading digits yields 0. Accepts bytes or str.
    """
    if isinstance(data, str):
        data = data.encode("latin-1", errors="replace")
    match = _LEADING_INT.match(data)
    if not match:
        return 0
    return int(match.group(1))


def voltage_from_raw(raw):
    return (raw - U11_OFFSET) / U11_GAIN


def current_from_raw(raw):
    return ((raw * U51_VOLTS_PER_LSB) - U51_OFFSET_VOLTS) * U51_AMPS_PER_VOLT


def convert(kind, raw):
    """Convert a raw ADC code to volts or amps depending on the channel kind."""
    if kind is ChannelKind.CURRENT:
        return current_from_raw(raw)
    return voltage_from_raw(raw)


class Max14001Reader:
    DEFAULT_READ_SIZE = 63  # sysfs values are a few digits

    def __init__(self, read_size: int = None, output=None):
        """
        Reads and converts single samples from MAX14001 IIO data sources.

        Args:
            read_size (int): Maximum number of bytes read from a data source. Default is 63.
            output: Text stream the readings are printed to. Default is sys.stdout at print time.
        """
        self.logger = logging.getLogger(__name__) # create logger
        self.read_size = read_size if read_size is not None else self.DEFAULT_READ_SIZE
        self.output = output

    def read_channel(self, spec):
        """
        Read one raw sample from the data source of the channel and convert it.

        Returns:
            PhysicalReading: The converted value for the channel

        Raises:
            OpenFailed: The data source could not be opened.
            ReadFailed: The data source was opened but could not be read.
        """
        try:
            fd = open(spec.source_path, 'rb', buffering=0)
        except OSError as e:
            raise OpenFailed(spec.source_path, e) from e

        with fd:
            try:
                data = fd.read(self.read_size)
            except OSError as e:
                raise ReadFailed(spec.source_path, e) from e

        raw = parse_raw_sample(data)
        self.logger.debug("RawValue " + spec.source_path + ": " + str(raw))
        return PhysicalReading(channel=spec, value=convert(spec.kind, raw))

    def read_and_report(self, spec):
        """
        Read, convert and print one sample. Failures are logged and skipped so other channels are not affected.

        Returns:
            PhysicalReading: The printed reading, or None if the channel failed this round
        """
        try:
            reading = self.read_channel(spec)
        except ReadError as e:
            self.logger.error(str(e))
            return None

        out = self.output if self.output is not None else sys.stdout
        out.write(str(reading) + '\n')  # single write keeps the line whole
        out.flush()
        return reading
