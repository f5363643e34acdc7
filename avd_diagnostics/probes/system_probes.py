"""Probe implementation backed by sockets, ping3, requests, dnspython and psutil."""

import logging
import os
import socket
import struct
import subprocess
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, List, Optional

import dns.exception
import dns.resolver
import ping3
import psutil
import requests

from .. import __version__
from .base import NetworkProbes, ProbeError, ProbeReset, ProbeTimeout, ProbeUnavailable
from .platform_adapter import PlatformAdapter, get_platform_adapter


logger = logging.getLogger(__name__)

STUN_BINDING_REQUEST = 0x0001
STUN_MAGIC_COOKIE = 0x2112A442


def stun_binding_request() -> bytes:
    """20-byte STUN binding request with a random transaction id."""
    return struct.pack("!HHI", STUN_BINDING_REQUEST, 0, STUN_MAGIC_COOKIE) + os.urandom(12)


class SystemProbes(NetworkProbes):
    """Probes against the live network stack of this machine."""

    def __init__(self, adapter: Optional[PlatformAdapter] = None):
        self.adapter = adapter or get_platform_adapter()
        self.session = requests.Session()
        self.session.headers["User-Agent"] = f"avd-diagnostics/{__version__}"

    def resolve(self, host: str, family: int = socket.AF_UNSPEC) -> List[str]:
        try:
            infos = socket.getaddrinfo(host, None, family, socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise ProbeError(f"cannot resolve {host}: {e}") from e

        addresses = []
        for info in infos:
            address = info[4][0]
            if address not in addresses:
                addresses.append(address)
        if not addresses:
            raise ProbeError(f"no addresses for {host}")
        return addresses

    def tcp_connect(
        self, host: str, port: int, timeout: float = 3.0, family: int = socket.AF_UNSPEC
    ) -> float:
        try:
            infos = socket.getaddrinfo(host, port, family, socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise ProbeError(f"cannot resolve {host}: {e}") from e

        af, socktype, proto, _, sockaddr = infos[0]
        try:
            sock = socket.socket(af, socktype, proto)
        except OSError as e:
            raise ProbeUnavailable(f"cannot open socket for {host}: {e}") from e

        sock.settimeout(timeout)
        start = time.perf_counter()
        try:
            sock.connect(sockaddr)
            elapsed = (time.perf_counter() - start) * 1000
        except socket.timeout as e:
            raise ProbeTimeout(f"connect to {host}:{port} timed out after {timeout}s") from e
        except (ConnectionRefusedError, ConnectionResetError, ConnectionAbortedError) as e:
            raise ProbeReset(f"connect to {host}:{port} refused/reset: {e}") from e
        except OSError as e:
            raise ProbeError(f"connect to {host}:{port} failed: {e}") from e
        finally:
            sock.close()

        logger.debug("tcp %s:%d connected in %.1fms", host, port, elapsed)
        return elapsed

    def https_get(self, url: str, timeout: float = 10.0) -> int:
        try:
            response = self.session.get(url, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise ProbeTimeout(f"GET {url} timed out") from e
        except requests.exceptions.ConnectionError as e:
            raise ProbeReset(f"GET {url} connection failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise ProbeError(f"GET {url} failed: {e}") from e

        logger.debug("GET %s -> %d", url, response.status_code)
        return response.status_code

    def ping(self, host: str, timeout: float = 2.0) -> Optional[float]:
        try:
            result = ping3.ping(host, timeout=timeout, unit="ms")
        except PermissionError as e:
            raise ProbeUnavailable(f"ICMP not permitted: {e}") from e
        except OSError as e:
            raise ProbeError(f"ping {host} failed: {e}") from e

        if result is False:
            raise ProbeError(f"ping {host} failed")
        return result

    def ping_df(self, host: str, payload_size: int, timeout: float = 2.0) -> bool:
        cmd = self.adapter.df_ping_command(host, payload_size, timeout)
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=timeout + 3,
                **self.adapter.subprocess_options(),
            )
        except FileNotFoundError as e:
            raise ProbeUnavailable("ping command not found") from e
        except PermissionError as e:
            raise ProbeUnavailable(f"cannot run {cmd[0]}: {e}") from e
        except subprocess.TimeoutExpired:
            return False
        except OSError as e:
            raise ProbeError(f"DF ping to {host} failed: {e}") from e
        return result.returncode == 0

    def udp_probe(self, host: str, port: int, timeout: float = 2.0) -> bool:
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as e:
            raise ProbeUnavailable(f"cannot open udp socket: {e}") from e

        sock.settimeout(timeout)
        try:
            sock.connect((host, port))
            sock.send(stun_binding_request())
            sock.recv(1024)
            return True
        except socket.timeout:
            return False
        except ConnectionRefusedError as e:
            raise ProbeReset(f"udp {host}:{port} port unreachable") from e
        except OSError as e:
            raise ProbeError(f"udp {host}:{port} failed: {e}") from e
        finally:
            sock.close()

    def dns_ttl(self, host: str, timeout: float = 5.0) -> int:
        resolver = dns.resolver.Resolver()
        resolver.lifetime = timeout
        try:
            answer = resolver.resolve(host, "A")
        except dns.exception.Timeout as e:
            raise ProbeTimeout(f"DNS query for {host} timed out") from e
        except dns.exception.DNSException as e:
            raise ProbeError(f"DNS query for {host} failed: {e}") from e
        return answer.rrset.ttl

    def traceroute(self, host: str, max_hops: int = 30, timeout: float = 60.0) -> int:
        cmd = self.adapter.traceroute_command(host, max_hops)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                **self.adapter.subprocess_options(),
            )
        except FileNotFoundError as e:
            raise ProbeUnavailable(f"{cmd[0]} not installed") from e
        except PermissionError as e:
            raise ProbeUnavailable(f"cannot run {cmd[0]}: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise ProbeTimeout(f"route trace to {host} exceeded {timeout}s") from e
        except OSError as e:
            raise ProbeError(f"route trace to {host} failed: {e}") from e

        hops = self.adapter.parse_hop_count(result.stdout)
        if hops == 0:
            raise ProbeError(f"route trace to {host} produced no hops")
        return hops

    def established_connections(self) -> Dict[str, int]:
        try:
            connections = psutil.net_connections(kind="inet")
        except psutil.AccessDenied as e:
            raise ProbeUnavailable("connection table requires elevated privileges") from e

        counts: Dict[str, int] = {}
        names: Dict[int, str] = {}
        for conn in connections:
            if conn.status != psutil.CONN_ESTABLISHED or not conn.pid:
                continue
            if conn.pid not in names:
                try:
                    names[conn.pid] = psutil.Process(conn.pid).name()
                except (psutil.NoSuchProcess, psutil.AccessDenied):
                    names[conn.pid] = f"pid-{conn.pid}"
            name = names[conn.pid]
            counts[name] = counts.get(name, 0) + 1
        return counts

    def power_saving_adapters(self) -> List[str]:
        return self.adapter.power_saving_adapters()

    def wifi_signal(self) -> Optional[int]:
        return self.adapter.wifi_signal()

    def proxy_settings(self) -> Dict[str, str]:
        return dict(requests.utils.getproxies())

    def server_time(self, url: str, timeout: float = 10.0) -> datetime:
        try:
            response = self.session.head(url, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise ProbeTimeout(f"HEAD {url} timed out") from e
        except requests.exceptions.RequestException as e:
            raise ProbeError(f"HEAD {url} failed: {e}") from e

        header = response.headers.get("Date")
        if not header:
            raise ProbeError(f"{url} sent no Date header")
        try:
            stamp = parsedate_to_datetime(header)
        except (TypeError, ValueError) as e:
            raise ProbeError(f"unparseable Date header: {header}") from e
        if stamp.tzinfo is None:
            stamp = stamp.replace(tzinfo=timezone.utc)
        return stamp
