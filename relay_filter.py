"""
Relay Filter

Decides which catalog relays are worth probing.
"""

from dataclasses import dataclass
from typing import Optional

from relay import Relay

RUN_MODE_ALL = "all"
RUN_MODE_RAM = "ram"
RUN_MODE_DISK = "disk"
RUN_MODES = [RUN_MODE_ALL, RUN_MODE_RAM, RUN_MODE_DISK]


def check_run_mode(stboot: bool, run_mode: str) -> bool:
    """Match a relay's boot medium against the requested run mode."""
    if run_mode == RUN_MODE_RAM:
        return stboot
    elif run_mode == RUN_MODE_DISK:
        return not stboot
    return True


def admits(
    relay: Relay,
    country: Optional[str] = None,
    min_port_speed: int = 0,
    run_mode: str = RUN_MODE_ALL
) -> bool:
    """
    Check whether a relay passes the user's filters.

    Args:
        relay: Relay to check
        country: Country code to restrict to, compared case-insensitively
        min_port_speed: Minimum port speed in Gbps
        run_mode: One of "ram", "disk"; anything else means no constraint

    Returns:
        True if the relay should be probed
    """
    if country is not None and relay.country_code.lower() != country.lower():
        return False
    if relay.network_port_speed < min_port_speed:
        return False
    return check_run_mode(relay.stboot, run_mode)


@dataclass
class RelayFilter:
    """User-supplied filter parameters."""

    country: Optional[str] = None
    min_port_speed: int = 1
    run_mode: str = RUN_MODE_ALL

    def admits(self, relay: Relay) -> bool:
        return admits(relay, self.country, self.min_port_speed, self.run_mode)
