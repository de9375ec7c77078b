"""Tests for socket table parsing."""

from __future__ import annotations

import pytest

from portmonitor.collect.lsof import (
    collect_pids,
    extract_port,
    fetch_socket_table,
    parse_socket_line,
    parse_socket_table,
)
from portmonitor.models import ConnectionState, Protocol


class TestExtractPort:
    def test_ipv4(self):
        assert extract_port("192.168.1.5:8080") == 8080

    def test_bracketed_ipv6(self):
        assert extract_port("[fe80::1]:443") == 443

    def test_wildcard_host(self):
        assert extract_port("*:5353") == 5353

    def test_wildcard_port(self):
        assert extract_port("*:*") == 0

    def test_no_colon(self):
        assert extract_port("localhost") == 0

    def test_empty_port(self):
        assert extract_port("10.0.0.1:") == 0

    def test_service_name_instead_of_number(self):
        assert extract_port("127.0.0.1:http") == 0

    def test_out_of_range(self):
        assert extract_port("127.0.0.1:70000") == 0

    def test_non_ascii_digits(self):
        assert extract_port("127.0.0.1:\N{SUPERSCRIPT TWO}") == 0
        assert extract_port("127.0.0.1:\N{ARABIC-INDIC DIGIT THREE}") == 0

    def test_non_ascii_port_line_dropped(self):
        header = "COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME\n"
        line = (
            "node 4321 alice 23u IPv4 0x1 0t0 TCP "
            "127.0.0.1:\N{SUPERSCRIPT TWO} (LISTEN)\n"
        )
        assert parse_socket_table(header + line) == []


class TestParseSocketLine:
    def test_listening_tcp(self):
        line = "node 4321 alice 23u IPv4 0x1 0t0 TCP *:3000 (LISTEN)"
        record = parse_socket_line(line)
        assert record is not None
        assert record.process_name == "node"
        assert record.pid == 4321
        assert record.user == "alice"
        assert record.protocol == Protocol.TCP
        assert record.local_address == "*:3000"
        assert record.foreign_address == ""
        assert record.port == 3000
        assert record.state == ConnectionState.LISTEN

    def test_established_uses_local_port(self):
        line = (
            "Google 7777 alice 30u IPv4 0x1 0t0 TCP "
            "192.168.1.5:60123->142.250.1.1:443 (ESTABLISHED)"
        )
        record = parse_socket_line(line)
        assert record is not None
        assert record.local_address == "192.168.1.5:60123"
        assert record.foreign_address == "142.250.1.1:443"
        assert record.port == 60123
        assert record.state == ConnectionState.ESTABLISHED

    def test_udp_without_state(self):
        record = parse_socket_line("mDNSRespo 211 root 12u IPv4 0x1 0t0 UDP *:5353")
        assert record is not None
        assert record.protocol == Protocol.UDP
        assert record.state == ConnectionState.UNKNOWN

    def test_unknown_state(self):
        record = parse_socket_line("x 900 bob 3u IPv4 0x1 0t0 TCP *:9000 (BOUND)")
        assert record is not None
        assert record.state == ConnectionState.UNKNOWN

    def test_wildcard_name_dropped(self):
        assert parse_socket_line("rapportd 612 alice 4u IPv4 0x1 0t0 UDP *:*") is None

    def test_too_few_fields(self):
        assert parse_socket_line("node 4321 alice 23u IPv4 0x1 0t0 TCP") is None

    def test_empty_line(self):
        assert parse_socket_line("") is None

    def test_non_numeric_pid_does_not_crash(self):
        record = parse_socket_line("node abc alice 23u IPv4 0x1 0t0 TCP *:3000 (LISTEN)")
        assert record is not None
        assert record.pid == 0


class TestParseSocketTable:
    def test_fixture(self, lsof_text: str):
        records = parse_socket_table(lsof_text)
        assert [r.port for r in records] == [22, 3000, 3000, 3000, 8000, 5432, 5353, 60123]
        assert all(r.port > 0 for r in records)

    def test_header_skipped(self):
        text = "COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME\n"
        assert parse_socket_table(text) == []

    def test_first_line_always_treated_as_header(self):
        line = "node 4321 alice 23u IPv4 0x1 0t0 TCP *:3000 (LISTEN)"
        assert parse_socket_table(line) == []
        assert len(parse_socket_table("HEADER\n" + line)) == 1

    def test_ipv6_listener(self, lsof_text: str):
        postgres = [r for r in parse_socket_table(lsof_text) if r.process_name == "postgres"]
        assert len(postgres) == 1
        assert postgres[0].local_address == "[::1]:5432"
        assert postgres[0].port == 5432

    @pytest.mark.parametrize("text", ["", "\n\n", "garbage\nmore garbage\n"])
    def test_garbage_yields_nothing(self, text: str):
        assert parse_socket_table(text) == []


def test_collect_pids(lsof_text: str):
    assert collect_pids(lsof_text) == {1, 4321, 5150, 812, 612, 211, 7777}


def test_fetch_socket_table_arguments(runner_factory):
    runner = runner_factory({"sockets": "out"})
    assert fetch_socket_table(runner, "/usr/sbin/lsof") == "out"
    assert runner.calls == [("/usr/sbin/lsof", ["-i", "-P", "-n"])]
