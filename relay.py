"""
Relay Model

Relays as published by the Mullvad relay catalog, plus the per-relay
latency result produced by probing them.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple


@dataclass(frozen=True)
class StatusMessage:
    """Operator notice attached to a relay."""

    message: str
    timestamp: str

    @classmethod
    def from_dict(cls, data: dict) -> "StatusMessage":
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ValueError(f"status message must be an object, got {type(data).__name__}")
        return cls(
            message=_required(data, "message", str),
            timestamp=_required(data, "timestamp", str)
        )


def _required(data: dict, key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        raise ValueError(f"missing required field '{key}'")
    # bool is a subclass of int
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ValueError(f"field '{key}' must be {kind.__name__}, got {type(value).__name__}")
    return value


def _optional(data: dict, key: str, kind: type) -> Any:
    if data.get(key) is None:
        return None
    return _required(data, key, kind)


@dataclass(frozen=True)
class Relay:
    """A VPN relay entry from the catalog."""

    hostname: str
    country_code: str
    country_name: str
    city_name: str
    active: bool
    owned: bool
    provider: str
    ipv4_addr_in: str
    network_port_speed: int  # Gbps
    stboot: bool  # True: boots from RAM
    city_code: Optional[str] = None
    ipv6_addr_in: Optional[str] = None
    server_type: Optional[str] = None
    status_messages: Optional[Tuple[StatusMessage, ...]] = None
    pubkey: Optional[str] = None
    multihop_port: Optional[int] = None
    socks_name: Optional[str] = None
    socks_port: Optional[int] = None

    def __post_init__(self):
        """Validate the relay."""
        if self.network_port_speed < 0:
            raise ValueError(f"network_port_speed must be non-negative, got {self.network_port_speed}")

    @classmethod
    def from_dict(cls, data: dict) -> "Relay":
        """
        Decode one catalog entry.

        Unknown keys are ignored and optional keys default to None when
        missing or null. The upstream ``type`` key becomes ``server_type``.

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"relay must be an object, got {type(data).__name__}")

        messages = _optional(data, "status_messages", list)
        return cls(
            hostname=_required(data, "hostname", str),
            country_code=_required(data, "country_code", str),
            country_name=_required(data, "country_name", str),
            city_name=_required(data, "city_name", str),
            active=_required(data, "active", bool),
            owned=_required(data, "owned", bool),
            provider=_required(data, "provider", str),
            ipv4_addr_in=_required(data, "ipv4_addr_in", str),
            network_port_speed=_required(data, "network_port_speed", int),
            stboot=_required(data, "stboot", bool),
            city_code=_optional(data, "city_code", str),
            ipv6_addr_in=_optional(data, "ipv6_addr_in", str),
            server_type=_optional(data, "type", str),
            status_messages=(
                tuple(StatusMessage.from_dict(m) for m in messages)
                if messages is not None else None
            ),
            pubkey=_optional(data, "pubkey", str),
            multihop_port=_optional(data, "multihop_port", int),
            socks_name=_optional(data, "socks_name", str),
            socks_port=_optional(data, "socks_port", int)
        )


@dataclass
class ProbeResult:
    """Mean round-trip time measured for a relay."""

    relay_hostname: str
    city_name: str
    country_name: str
    server_type: Optional[str]
    ipv4_addr_in: str
    mean_rtt_ms: float
    network_port_speed: int

    def __post_init__(self):
        if not math.isfinite(self.mean_rtt_ms) or self.mean_rtt_ms < 0:
            raise ValueError(f"mean_rtt_ms must be finite and non-negative, got {self.mean_rtt_ms}")

    @classmethod
    def from_relay(cls, relay: Relay, mean_rtt_ms: float) -> "ProbeResult":
        """Merge a measured RTT with the relay's catalog metadata."""
        return cls(
            relay_hostname=relay.hostname,
            city_name=relay.city_name,
            country_name=relay.country_name,
            server_type=relay.server_type,
            ipv4_addr_in=relay.ipv4_addr_in,
            mean_rtt_ms=mean_rtt_ms,
            network_port_speed=relay.network_port_speed
        )


def decode_relays(items: List[Any]) -> List[Relay]:
    """Decode a list of catalog entries, failing on the first bad one."""
    relays = []
    for index, item in enumerate(items):
        try:
            relays.append(Relay.from_dict(item))
        except ValueError as e:
            raise ValueError(f"relay #{index}: {e}") from e
    return relays
