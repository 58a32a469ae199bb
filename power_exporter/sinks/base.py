"""
Base sink interface for metric publication.

Every sink is started once before the publish loop runs, receives the
samples of each tick through publish(), and is stopped on shutdown.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..collectors.battery import BatteryReading
from ..collectors.derive import BatteryMetrics


class SinkError(Exception):
    """Exception raised when a sink cannot be started."""

    pass


@dataclass(frozen=True)
class BatterySample:
    """One battery's reading and derived metrics from a single tick."""

    device: str
    reading: BatteryReading
    metrics: BatteryMetrics


class Sink(ABC):
    """
    Abstract base class for metric sinks.

    Pull sinks serve the metric store on demand and ignore publish();
    push sinks transmit on every tick.
    """

    # Sink name for logging (override in subclasses)
    name: str = "sink"

    # Whether publish() transmits anything
    push: bool = True

    async def start(self) -> None:
        """
        Prepare the sink (open connections, bind listeners).

        Raises:
            SinkError: If the sink cannot be started
        """

    @abstractmethod
    async def publish(self, samples: list[BatterySample]) -> None:
        """
        Transmit the results of one tick.

        Args:
            samples: Samples of the batteries read successfully this tick
        """

    async def stop(self) -> None:
        """Release the sink's resources."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
