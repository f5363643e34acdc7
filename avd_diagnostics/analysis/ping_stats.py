"""Statistics over ICMP echo samples."""

import statistics
from typing import List, Optional, Sequence


def replies(samples: Sequence[Optional[float]]) -> List[float]:
    """Drop lost echoes (None) from a sample list."""
    return [s for s in samples if s is not None]


def average_latency(samples: Sequence[Optional[float]]) -> Optional[float]:
    """Mean round-trip time of the echoes that came back."""
    received = replies(samples)
    if not received:
        return None
    return round(statistics.mean(received), 2)


def packet_loss_percent(sent: int, received: int) -> Optional[float]:
    """Loss as round((sent - received) / sent * 100, 2)."""
    if sent <= 0:
        return None
    return round((sent - received) / sent * 100, 2)


def jitter(samples: Sequence[Optional[float]]) -> Optional[float]:
    """
    Jitter as the population standard deviation of latency samples.

    Needs at least two replies; lost echoes are ignored.
    """
    received = replies(samples)
    if len(received) < 2:
        return None
    return round(statistics.pstdev(received), 2)
