"""Platform-specific commands for probes the socket layer cannot do."""

import os
import platform
import re
import subprocess
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


HOP_LINE = re.compile(r"^\s*(\d+)\s")


class PlatformAdapter(ABC):
    """Abstract base for OS-specific ping, route and adapter queries."""

    @abstractmethod
    def df_ping_command(self, host: str, payload_size: int, timeout: float) -> List[str]:
        """Command sending one don't-fragment echo with the given payload."""
        pass

    @abstractmethod
    def traceroute_command(self, host: str, max_hops: int) -> List[str]:
        """Command tracing the route to host with numeric output."""
        pass

    @abstractmethod
    def power_saving_adapters(self) -> List[str]:
        """Adapters with OS power management enabled."""
        pass

    @abstractmethod
    def wifi_signal(self) -> Optional[int]:
        """Signal quality of the active wireless link in percent."""
        pass

    def parse_hop_count(self, output: str) -> int:
        """Highest hop number printed by traceroute/tracert."""
        hops = 0
        for line in output.splitlines():
            match = HOP_LINE.match(line)
            if match:
                hops = max(hops, int(match.group(1)))
        return hops

    def subprocess_options(self) -> Dict[str, Any]:
        """Extra subprocess.run arguments: children run outside the terminal's process group."""
        return {"start_new_session": True}


class LinuxAdapter(PlatformAdapter):
    """Linux-specific adapter."""

    def __init__(self, sys_net: str = "/sys/class/net", proc_wireless: str = "/proc/net/wireless"):
        self.sys_net = sys_net
        self.proc_wireless = proc_wireless

    def df_ping_command(self, host: str, payload_size: int, timeout: float) -> List[str]:
        return ["ping", "-M", "do", "-c", "1", "-W", str(max(1, int(timeout))), "-s", str(payload_size), host]

    def traceroute_command(self, host: str, max_hops: int) -> List[str]:
        return ["traceroute", "-n", "-m", str(max_hops), "-w", "2", host]

    def power_saving_adapters(self) -> List[str]:
        """Adapters whose device runtime power control is 'auto' or Wi-Fi power save is on."""
        adapters = []
        try:
            names = sorted(os.listdir(self.sys_net))
        except OSError:
            return adapters

        for name in names:
            if name == "lo":
                continue
            control = os.path.join(self.sys_net, name, "device", "power", "control")
            try:
                with open(control) as f:
                    if f.read().strip() == "auto":
                        adapters.append(name)
                        continue
            except OSError:
                pass

            if os.path.isdir(os.path.join(self.sys_net, name, "wireless")) and self._wifi_power_save(name):
                adapters.append(name)

        return adapters

    def _wifi_power_save(self, interface: str) -> bool:
        try:
            result = subprocess.run(
                ["iw", "dev", interface, "get", "power_save"],
                capture_output=True,
                text=True,
                timeout=5,
                **self.subprocess_options(),
            )
            return "power save: on" in result.stdout.lower()
        except (subprocess.TimeoutExpired, OSError):
            return False

    def wifi_signal(self) -> Optional[int]:
        """Link quality from /proc/net/wireless, scaled from the 0-70 range."""
        try:
            with open(self.proc_wireless) as f:
                lines = f.read().splitlines()[2:]
        except OSError:
            return None

        for line in lines:
            if ":" not in line:
                continue
            fields = line.split(":", 1)[1].split()
            if len(fields) < 2:
                continue
            try:
                quality = float(fields[1].rstrip("."))
            except ValueError:
                continue
            return min(100, int(round(quality / 70 * 100)))
        return None


class MacOSAdapter(PlatformAdapter):
    """macOS-specific adapter."""

    def df_ping_command(self, host: str, payload_size: int, timeout: float) -> List[str]:
        return ["ping", "-D", "-c", "1", "-W", str(int(timeout * 1000)), "-s", str(payload_size), host]

    def traceroute_command(self, host: str, max_hops: int) -> List[str]:
        return ["traceroute", "-n", "-m", str(max_hops), "-w", "2", host]

    def power_saving_adapters(self) -> List[str]:
        # macOS exposes no per-adapter power saving switch
        return []

    def wifi_signal(self) -> Optional[int]:
        """Convert the RSSI reported by system_profiler into a percentage."""
        try:
            result = subprocess.run(
                ["system_profiler", "SPAirPortDataType"],
                capture_output=True,
                text=True,
                timeout=15,
                **self.subprocess_options(),
            )
        except (subprocess.TimeoutExpired, OSError):
            return None

        match = re.search(r"Signal / Noise:\s*(-\d+) dBm", result.stdout)
        if not match:
            return None
        rssi = int(match.group(1))
        return max(0, min(100, 2 * (rssi + 100)))


class WindowsAdapter(PlatformAdapter):
    """Windows-specific adapter."""

    def df_ping_command(self, host: str, payload_size: int, timeout: float) -> List[str]:
        return ["ping", "-f", "-n", "1", "-w", str(int(timeout * 1000)), "-l", str(payload_size), host]

    def traceroute_command(self, host: str, max_hops: int) -> List[str]:
        return ["tracert", "-d", "-h", str(max_hops), host]

    def subprocess_options(self) -> Dict[str, Any]:
        return {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}

    def power_saving_adapters(self) -> List[str]:
        """Adapters the OS is allowed to turn off to save power."""
        adapters = []
        try:
            result = subprocess.run(
                ["powershell", "-Command",
                 "Get-NetAdapterPowerManagement | Format-List Name,AllowComputerToTurnOffDevice"],
                capture_output=True,
                text=True,
                timeout=15,
                **self.subprocess_options(),
            )
        except (subprocess.TimeoutExpired, OSError):
            return adapters

        name = None
        for line in result.stdout.split("\n"):
            if ":" not in line:
                continue
            key, value = line.split(":", 1)
            key, value = key.strip(), value.strip()
            if key == "Name":
                name = value
            elif key == "AllowComputerToTurnOffDevice" and value == "Enabled" and name:
                adapters.append(name)
        return adapters

    def wifi_signal(self) -> Optional[int]:
        try:
            result = subprocess.run(
                ["netsh", "wlan", "show", "interfaces"],
                capture_output=True,
                text=True,
                timeout=10,
                **self.subprocess_options(),
            )
        except (subprocess.TimeoutExpired, OSError):
            return None

        match = re.search(r"^\s*Signal\s*:\s*(\d+)%", result.stdout, re.MULTILINE)
        return int(match.group(1)) if match else None


def get_platform_adapter() -> PlatformAdapter:
    """Factory function to get the appropriate platform adapter."""
    system = platform.system().lower()
    if system == "linux":
        return LinuxAdapter()
    elif system == "darwin":
        return MacOSAdapter()
    elif system == "windows":
        return WindowsAdapter()
    else:
        raise RuntimeError(f"Unsupported platform: {system}")
