"""Unit tests for the relay model."""

import math

import pytest

from relay import ProbeResult, Relay, StatusMessage, decode_relays
from tests.conftest import make_relay, make_relay_dict


class TestRelayFromDict:
    def test_decodes_all_fields(self):
        relay = Relay.from_dict(make_relay_dict(status_messages=[
            {"message": "Maintenance", "timestamp": "2024-01-01T00:00:00Z"}
        ]))

        assert relay.hostname == "se-sto-wg-001"
        assert relay.country_code == "se"
        assert relay.city_code == "sto"
        assert relay.network_port_speed == 10
        assert relay.stboot is True
        assert relay.server_type == "wireguard"
        assert relay.socks_port == 1080
        assert relay.status_messages == (
            StatusMessage(message="Maintenance", timestamp="2024-01-01T00:00:00Z"),
        )

    def test_unknown_fields_are_ignored(self):
        relay = Relay.from_dict(make_relay_dict(daita=True, features={"quic": {}}))
        assert relay.hostname == "se-sto-wg-001"

    @pytest.mark.parametrize("key", [
        "city_code", "ipv6_addr_in", "type", "status_messages",
        "pubkey", "multihop_port", "socks_name", "socks_port",
    ])
    def test_optional_fields_default_to_none(self, key):
        missing = make_relay_dict()
        del missing[key]
        nulled = make_relay_dict(**{key: None})

        for data in (missing, nulled):
            relay = Relay.from_dict(data)
            attr = "server_type" if key == "type" else key
            assert getattr(relay, attr) is None

    def test_openvpn_shape_without_wireguard_fields(self):
        data = make_relay_dict("us-nyc-ovpn-101", type="openvpn")
        for key in ("pubkey", "multihop_port", "socks_name", "socks_port"):
            del data[key]

        relay = Relay.from_dict(data)

        assert relay.server_type == "openvpn"
        assert relay.pubkey is None

    def test_missing_ipv4_is_rejected(self):
        data = make_relay_dict()
        del data["ipv4_addr_in"]

        with pytest.raises(ValueError, match="ipv4_addr_in"):
            Relay.from_dict(data)

    def test_null_ipv4_is_rejected(self):
        with pytest.raises(ValueError, match="ipv4_addr_in"):
            Relay.from_dict(make_relay_dict(ipv4_addr_in=None))

    @pytest.mark.parametrize("key,value", [
        ("network_port_speed", "10"),
        ("network_port_speed", True),
        ("network_port_speed", -1),
        ("stboot", "yes"),
        ("hostname", 42),
    ])
    def test_wrong_types_are_rejected(self, key, value):
        with pytest.raises(ValueError):
            Relay.from_dict(make_relay_dict(**{key: value}))

    def test_non_object_is_rejected(self):
        with pytest.raises(ValueError):
            Relay.from_dict(["not", "a", "relay"])

    def test_bad_status_message_is_rejected(self):
        with pytest.raises(ValueError, match="timestamp"):
            Relay.from_dict(make_relay_dict(status_messages=[{"message": "down"}]))

    def test_relay_is_immutable(self):
        relay = make_relay()
        with pytest.raises(AttributeError):
            relay.hostname = "other"


class TestDecodeRelays:
    def test_decodes_in_order(self):
        relays = decode_relays([make_relay_dict("a"), make_relay_dict("b")])
        assert [r.hostname for r in relays] == ["a", "b"]

    def test_reports_index_of_bad_entry(self):
        bad = make_relay_dict("b")
        del bad["ipv4_addr_in"]

        with pytest.raises(ValueError, match="relay #1"):
            decode_relays([make_relay_dict("a"), bad])


class TestProbeResult:
    def test_from_relay_copies_metadata(self):
        relay = make_relay()
        result = ProbeResult.from_relay(relay, 12.5)

        assert result.relay_hostname == relay.hostname
        assert result.city_name == "Stockholm"
        assert result.country_name == "Sweden"
        assert result.server_type == "wireguard"
        assert result.ipv4_addr_in == relay.ipv4_addr_in
        assert result.mean_rtt_ms == 12.5
        assert result.network_port_speed == 10

    @pytest.mark.parametrize("rtt", [-0.1, math.inf, math.nan])
    def test_rejects_invalid_rtt(self, rtt):
        with pytest.raises(ValueError):
            ProbeResult.from_relay(make_relay(), rtt)
