"""Narrow interface to the operating system's network facilities."""

import socket
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional


class ProbeError(Exception):
    """A probe could not obtain its measurement."""


class ProbeTimeout(ProbeError):
    """The remote side did not answer within the probe timeout."""


class ProbeReset(ProbeError):
    """The connection was refused or reset by the remote side."""


class ProbeUnavailable(ProbeError):
    """The local facility needed by the probe is missing or not permitted."""


class NetworkProbes(ABC):
    """
    Synchronous network primitives used by the runners.

    Every method either returns its raw value or raises a ProbeError
    subclass. Implementations must not retry.
    """

    @abstractmethod
    def resolve(self, host: str, family: int = socket.AF_UNSPEC) -> List[str]:
        """Resolve a hostname to its addresses through the OS resolver."""
        pass

    @abstractmethod
    def tcp_connect(
        self, host: str, port: int, timeout: float = 3.0, family: int = socket.AF_UNSPEC
    ) -> float:
        """Open and close one TCP connection. Returns connect time in ms."""
        pass

    @abstractmethod
    def https_get(self, url: str, timeout: float = 10.0) -> int:
        """Issue one GET request. Returns the HTTP status code."""
        pass

    @abstractmethod
    def ping(self, host: str, timeout: float = 2.0) -> Optional[float]:
        """Send one ICMP echo. Returns RTT in ms, or None when lost."""
        pass

    @abstractmethod
    def ping_df(self, host: str, payload_size: int, timeout: float = 2.0) -> bool:
        """Send one echo with don't-fragment set. True when it came back."""
        pass

    @abstractmethod
    def udp_probe(self, host: str, port: int, timeout: float = 2.0) -> bool:
        """Send one datagram. True when anything answered."""
        pass

    @abstractmethod
    def dns_ttl(self, host: str, timeout: float = 5.0) -> int:
        """TTL in seconds of the host's A record as served by the resolver."""
        pass

    @abstractmethod
    def traceroute(self, host: str, max_hops: int = 30, timeout: float = 60.0) -> int:
        """Trace the route to a host. Returns the number of hops."""
        pass

    @abstractmethod
    def established_connections(self) -> Dict[str, int]:
        """Established connection counts keyed by owning process name."""
        pass

    @abstractmethod
    def power_saving_adapters(self) -> List[str]:
        """Names of network adapters with OS power saving enabled."""
        pass

    @abstractmethod
    def wifi_signal(self) -> Optional[int]:
        """Wi-Fi signal quality in percent, None when not on Wi-Fi."""
        pass

    @abstractmethod
    def proxy_settings(self) -> Dict[str, str]:
        """Proxy URLs in effect, keyed by scheme."""
        pass

    @abstractmethod
    def server_time(self, url: str, timeout: float = 10.0) -> datetime:
        """Timestamp reported by a web server (UTC, timezone aware)."""
        pass
