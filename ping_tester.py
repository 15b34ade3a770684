"""
Ping Tester

Measures relay latency by running the system ping utility.
"""

import asyncio
import logging
import math
import re
import shutil
from typing import Optional

logger = logging.getLogger(__name__)

# Unprivileged ping refuses shorter intervals
MIN_INTERVAL = 0.2

# Linux iputils prints "rtt min/avg/max/mdev", BSD and macOS print
# "round-trip min/avg/max/stddev"
_SUMMARY_RE = re.compile(
    r"(?:rtt|round-trip) min/avg/max/(?:mdev|stddev) = "
    r"[0-9.]+/([0-9.]+)/[0-9.]+/[0-9.]+"
)


def parse_mean_rtt(output: str) -> Optional[float]:
    """
    Extract the mean RTT from ping's summary line.

    Args:
        output: Captured standard output of ping

    Returns:
        Mean RTT in milliseconds, or None if no summary line was found
    """
    match = _SUMMARY_RE.search(output)
    if not match:
        return None
    try:
        avg = float(match.group(1))
    except ValueError:
        return None
    if not math.isfinite(avg):
        return None
    return avg


class PingTester:
    """Probes IPv4 addresses with ICMP echo requests."""

    def __init__(self, ping_bin: Optional[str] = None):
        self.ping_bin = ping_bin or shutil.which("ping") or "ping"

    def _build_cmd(self, ip: str, count: int, interval: float) -> list:
        return [self.ping_bin, "-c", str(count), "-i", str(interval), ip]

    async def ping(self, ip: str, count: int = 3, interval: float = MIN_INTERVAL) -> Optional[float]:
        """
        Ping an address and return the mean round-trip time.

        Args:
            ip: IPv4 address to probe
            count: Number of echo requests
            interval: Seconds between echo requests

        Returns:
            Mean RTT in milliseconds, or None if the host is unreachable
        """
        cmd = self._build_cmd(ip, count, interval)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL
            )
            stdout, _ = await proc.communicate()
        except OSError as e:
            logger.warning("Could not run %s: %s", self.ping_bin, e)
            return None

        if proc.returncode != 0:
            logger.debug("%s unreachable (ping exit %s)", ip, proc.returncode)
            return None

        avg = parse_mean_rtt(stdout.decode("utf-8", errors="replace"))
        if avg is None:
            logger.debug("%s: no rtt summary in ping output", ip)
        else:
            logger.debug("%s: %.3f ms", ip, avg)
        return avg
