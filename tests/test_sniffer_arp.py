"""Tests for ARP frame classification."""

from datetime import UTC, datetime

import pytest
from scapy.layers.inet import IP, UDP
from scapy.layers.l2 import ARP, Ether

from dashwatch.sniffer.arp import classify
from dashwatch.sniffer.base import TriggerEvent

TARGET = bytes.fromhex("b479a7000001")
NOW = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)


class TestMatchingFrames:
    def test_request_from_target_triggers(self, arp_frame):
        event = classify(arp_frame(), TARGET, now=NOW)
        assert isinstance(event, TriggerEvent)
        assert event.mac_address == "B4:79:A7:00:00:01"
        assert event.sender_ip == "192.168.1.77"
        assert event.timestamp == NOW

    def test_raw_bytes_are_decoded(self, arp_frame):
        event = classify(bytes(arp_frame()), TARGET, now=NOW)
        assert event is not None
        assert event.mac_address == "B4:79:A7:00:00:01"

    def test_uppercase_sender_matches(self, arp_frame):
        assert classify(arp_frame(hwsrc="B4:79:A7:00:00:01"), TARGET) is not None

    def test_probe_with_zero_sender_ip(self, arp_frame):
        event = classify(arp_frame(psrc="0.0.0.0"), TARGET, now=NOW)
        assert event is not None

    def test_defaults_timestamp_to_now(self, arp_frame):
        before = datetime.now(UTC)
        event = classify(arp_frame(), TARGET)
        assert event is not None
        assert event.timestamp >= before


class TestNonMatchingFrames:
    def test_arp_reply_ignored(self, arp_frame):
        assert classify(arp_frame(op=2), TARGET) is None

    @pytest.mark.parametrize("index", range(6))
    def test_sender_differing_in_one_byte_ignored(self, arp_frame, index):
        other = bytearray(TARGET)
        other[index] ^= 0x01
        hwsrc = ":".join(f"{b:02x}" for b in other)
        assert classify(arp_frame(hwsrc=hwsrc), TARGET) is None

    def test_non_arp_frame_ignored(self):
        frame = Ether(src="b4:79:a7:00:00:01") / IP(dst="192.168.1.1") / UDP(dport=67)
        assert classify(frame, TARGET) is None

    def test_ethernet_source_alone_does_not_match(self):
        # Ethernet src is the button, but the ARP sender field is not.
        frame = Ether(src="b4:79:a7:00:00:01", dst="ff:ff:ff:ff:ff:ff") / ARP(
            op=1, hwsrc="00:11:22:33:44:55"
        )
        assert classify(frame, TARGET) is None

    def test_truncated_bytes_ignored(self):
        assert classify(b"\x00\x01\x02", TARGET) is None

    def test_none_ignored(self):
        assert classify(None, TARGET) is None

    def test_stateless_between_calls(self, arp_frame):
        frame = arp_frame()
        assert classify(frame, TARGET, now=NOW) is not None
        assert classify(frame, TARGET, now=NOW) is not None
