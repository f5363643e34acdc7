"""Configuration management for AVD diagnostics."""

from dataclasses import dataclass, field, fields
from typing import List, Optional, Dict, Any
from pathlib import Path
import os

import yaml


DEFAULT_ENDPOINTS = [
    "rdweb.wvd.microsoft.com",
    "client.wvd.microsoft.com",
    "rdbroker.wvd.microsoft.com",
    "login.microsoftonline.com",
]

# Processes known to saturate uplinks while a session is open
DEFAULT_HEAVY_PROCESSES = [
    "onedrive",
    "dropbox",
    "googledrivesync",
    "steam",
    "epicgameslauncher",
    "utorrent",
    "qbittorrent",
    "bittorrent",
    "backblaze",
    "teams",
    "zoom",
]


@dataclass
class ProbeConfig:
    """Per-endpoint probe timeouts and repetition counts."""
    dns_timeout: float = 5.0
    tcp_timeout: float = 3.0
    http_timeout: float = 10.0
    ping_timeout: float = 2.0
    latency_pings: int = 4
    loss_pings: int = 20
    jitter_pings: int = 20
    stability_attempts: int = 10
    stability_timeout: float = 2.0
    mtu_sizes: List[int] = field(default_factory=lambda: [1500, 1472, 1460, 1400, 1280])


@dataclass
class AdvancedConfig:
    """Suite-level diagnostics, run once per suite."""
    udp_host: str = "world.relay.avd.microsoft.com"
    udp_ports: List[int] = field(default_factory=lambda: [3478, 3479, 3480, 3481])
    udp_timeout: float = 2.0
    sustained_host: str = "rdweb.wvd.microsoft.com"
    sustained_duration: int = 30  # seconds
    sustained_poll: float = 2.0  # seconds
    broker_url: str = "https://rdbroker.wvd.microsoft.com/"
    broker_requests: int = 10
    heavy_processes: List[str] = field(default_factory=lambda: list(DEFAULT_HEAVY_PROCESSES))
    ipv6_host: str = "login.microsoftonline.com"
    route_host: str = "rdweb.wvd.microsoft.com"
    route_max_hops: int = 30
    route_timeout: float = 90.0
    time_sync_url: str = "https://login.microsoftonline.com/"


@dataclass
class ScheduleConfig:
    """Loop configuration."""
    interval_minutes: int = 5


@dataclass
class OutputConfig:
    """Where logs and CSV summaries are written."""
    log_dir: str = "."


@dataclass
class DiagnosticsConfig:
    """Main configuration container."""
    endpoints: List[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    probes: ProbeConfig = field(default_factory=ProbeConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DiagnosticsConfig":
        """Create config from dictionary. Unknown keys are ignored."""
        config = cls()

        if data.get("endpoints"):
            config.endpoints = [str(host) for host in data["endpoints"]]

        if "probes" in data:
            config.probes = _section(ProbeConfig, data["probes"])

        if "advanced" in data:
            config.advanced = _section(AdvancedConfig, data["advanced"])

        if "schedule" in data:
            config.schedule = _section(ScheduleConfig, data["schedule"])

        if "output" in data:
            config.output = _section(OutputConfig, data["output"])

        return config

    @classmethod
    def from_yaml(cls, path: str) -> "DiagnosticsConfig":
        """Load config from YAML file."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, path: Optional[str] = None) -> "DiagnosticsConfig":
        """Load config from file or use defaults."""
        if path and not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        search_paths = [
            path,
            "config.yaml",
            "config.yml",
            os.path.expanduser("~/.config/avd-diagnostics/config.yaml"),
            "/etc/avd-diagnostics/config.yaml",
        ]

        for config_path in search_paths:
            if config_path and os.path.exists(config_path):
                return cls.from_yaml(config_path)

        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "endpoints": list(self.endpoints),
            "probes": _as_dict(self.probes),
            "advanced": _as_dict(self.advanced),
            "schedule": _as_dict(self.schedule),
            "output": _as_dict(self.output),
        }

    def save_yaml(self, path: str) -> None:
        """Save config to YAML file."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


def _section(section_cls, data: Optional[Dict[str, Any]]):
    """Build one section dataclass, keeping defaults for missing keys."""
    data = data or {}
    known = {f.name for f in fields(section_cls)}
    return section_cls(**{k: v for k, v in data.items() if k in known})


def _as_dict(section) -> Dict[str, Any]:
    result = {}
    for f in fields(section):
        value = getattr(section, f.name)
        result[f.name] = list(value) if isinstance(value, list) else value
    return result
