from dataclasses import dataclass

from ChannelSpec import ChannelSpec

@dataclass
class PhysicalReading:
    """
    Class to store a raw sample converted to volts or amps.
    """
    channel: ChannelSpec
    value: float

    def __str__(self):
        return "(%s): Input %s = %f (%s)" % (self.channel.source_path, self.channel.kind.label, self.value, self.channel.kind.unit)
