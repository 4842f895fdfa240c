from dataclasses import dataclass
from enum import Enum

class ChannelKind(Enum):
    """
    Physical quantity measured by a MAX14001 channel.
    The value is the (name, unit) pair used when printing a reading.
    """
    VOLTAGE = ('Voltage', 'V')
    CURRENT = ('Current', 'A')

    @property
    def label(self):
        return self.value[0]

    @property
    def unit(self):
        return self.value[1]

@dataclass(frozen=True)
class ChannelSpec:
    """
    One monitored IIO data source. Created once at startup and shared read-only by every sampling round.
    """
    kind: ChannelKind
    source_path: str
