"""Raw measurement data structures."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class MeasurementKind(Enum):
    """Shape of a raw probe value."""
    REACHABILITY = "reachability"
    DURATION_MS = "duration_ms"
    PERCENTAGE = "percentage"
    BYTES = "bytes"
    COUNT = "count"
    RATIO = "ratio"


@dataclass(frozen=True)
class Measurement:
    """A single raw value produced by one probe."""
    kind: MeasurementKind
    value: Optional[Union[bool, float, int]] = None

    @property
    def available(self) -> bool:
        return self.value is not None

    def format(self) -> str:
        """Human-readable value with its unit."""
        if self.value is None:
            return "n/a"
        if self.kind == MeasurementKind.REACHABILITY:
            return "reachable" if self.value else "unreachable"
        if self.kind == MeasurementKind.DURATION_MS:
            return f"{self.value:.1f}ms"
        if self.kind == MeasurementKind.PERCENTAGE:
            return f"{self.value:.2f}%"
        if self.kind == MeasurementKind.BYTES:
            return f"{int(self.value)} bytes"
        if self.kind == MeasurementKind.RATIO:
            return f"{self.value:.2f}x"
        return str(self.value)
