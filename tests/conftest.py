"""Shared fixtures for mullscan tests."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from relay import Relay


def make_relay_dict(hostname: str = "se-sto-wg-001", **overrides: Any) -> Dict[str, Any]:
    """Build a catalog entry shaped like the upstream API returns."""
    data = {
        "hostname": hostname,
        "country_code": "se",
        "country_name": "Sweden",
        "city_code": "sto",
        "city_name": "Stockholm",
        "active": True,
        "owned": True,
        "provider": "31173",
        "ipv4_addr_in": "185.195.233.76",
        "ipv6_addr_in": "2a03:1b20:4:f011::a01f",
        "network_port_speed": 10,
        "stboot": True,
        "type": "wireguard",
        "status_messages": [],
        "pubkey": "veLqpZazR9j/Ol2G8TfrO32yEhc1i543MCN8rpy1FBA=",
        "multihop_port": 3155,
        "socks_name": "se-sto-wg-socks5-001.relays.mullvad.net",
        "socks_port": 1080,
    }
    data.update(overrides)
    return data


def make_relay(hostname: str = "se-sto-wg-001", **overrides: Any) -> Relay:
    return Relay.from_dict(make_relay_dict(hostname, **overrides))


class StubPinger:
    """Pinger returning canned RTTs keyed by IPv4 address; None means unreachable."""

    def __init__(self, rtts: Dict[str, Optional[float]], delays: Optional[Dict[str, float]] = None):
        self.rtts = rtts
        self.delays = delays or {}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def ping(self, ip: str, count: int = 3, interval: float = 0.2) -> Optional[float]:
        self.calls.append(ip)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(ip, 0))
            return self.rtts.get(ip)
        finally:
            self.in_flight -= 1


@pytest.fixture
def three_relays() -> List[Relay]:
    """Relays A, B and C: A in the US, B and C in Sweden."""
    return [
        make_relay("A", ipv4_addr_in="10.0.0.1", country_code="us", country_name="USA",
                   city_name="New York", network_port_speed=1, stboot=True),
        make_relay("B", ipv4_addr_in="10.0.0.2", network_port_speed=2, stboot=False),
        make_relay("C", ipv4_addr_in="10.0.0.3", network_port_speed=10, stboot=True),
    ]
