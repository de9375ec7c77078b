"""Tests for nettop traffic parsing."""

from __future__ import annotations

from portmonitor.collect.nettop import fetch_traffic, parse_traffic
from portmonitor.models import UNKNOWN_BYTES, TrafficInfo


def test_simple_line():
    assert parse_traffic("node.1234,1024,2048") == {
        1234: TrafficInfo(bytes_in=1024, bytes_out=2048)
    }


def test_header_skipped():
    assert parse_traffic("time,bytes_in,bytes_out\n") == {}


def test_unparseable_bytes_are_unknown_not_zero():
    traffic = parse_traffic("postgres.812,abc,300")
    assert traffic[812].bytes_in == UNKNOWN_BYTES
    assert traffic[812].bytes_out == 300


def test_confirmed_zero_kept():
    assert parse_traffic("launchd.1,0,0")[1] == TrafficInfo(0, 0)


def test_process_name_with_dots_and_spaces():
    traffic = parse_traffic("com.apple.WebKit Networking.9912,5,6")
    assert traffic[9912] == TrafficInfo(5, 6)


def test_lines_without_pid_skipped():
    assert parse_traffic("no pid here,10,20\nnode.abc,1,2\nnode.7,1\n") == {}


def test_fixture(nettop_text: str):
    traffic = parse_traffic(nettop_text)
    assert set(traffic) == {4321, 7777, 1, 812}
    assert traffic[7777] == TrafficInfo(52428800, 1048576)


def test_empty_output():
    assert parse_traffic("") == {}


def test_fetch_traffic_arguments(runner_factory):
    runner = runner_factory()
    fetch_traffic(runner, "/usr/bin/nettop")
    assert runner.calls == [
        ("/usr/bin/nettop", ["-P", "-L", "1", "-J", "bytes_in,bytes_out", "-x"])
    ]


def test_only_plain_decimal_counts_accepted():
    traffic = parse_traffic("node.1,1_000,+5\nruby.2,\N{SUPERSCRIPT TWO},7\n")
    assert traffic[1] == TrafficInfo(UNKNOWN_BYTES, UNKNOWN_BYTES)
    assert traffic[2] == TrafficInfo(UNKNOWN_BYTES, 7)


def test_non_decimal_pid_skipped():
    assert parse_traffic("node.+5,1,2\nnode.1_0,1,2\n") == {}
