"""Socket table parsing — ``lsof -i -P -n`` output into raw connection records."""

from __future__ import annotations

import logging

from portmonitor.commands import CommandRunner
from portmonitor.models import ConnectionState, Protocol, RawSocketRecord

logger = logging.getLogger(__name__)

# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME [STATE]
_MIN_FIELDS = 9
_NODE_FIELD = 7
_NAME_FIELD = 8
_STATE_FIELD = 9

_WILDCARD = "*:*"


def fetch_socket_table(runner: CommandRunner, lsof_path: str = "/usr/sbin/lsof") -> str:
    """List every open internet socket, numeric hosts and ports."""
    return runner(lsof_path, ["-i", "-P", "-n"])


def parse_socket_table(text: str) -> list[RawSocketRecord]:
    """Parse lsof output into raw records, dropping lines without a usable port."""
    records: list[RawSocketRecord] = []
    for line in text.splitlines()[1:]:  # skip header
        record = parse_socket_line(line)
        if record is not None:
            records.append(record)
    logger.debug("Parsed %d socket records", len(records))
    return records


def parse_socket_line(line: str) -> RawSocketRecord | None:
    """Parse a single lsof line; None for short lines or lines without a port."""
    parts = line.split()
    if len(parts) < _MIN_FIELDS:
        return None

    try:
        pid = int(parts[1])
    except ValueError:
        pid = 0

    protocol = Protocol.TCP if "TCP" in parts[_NODE_FIELD] else Protocol.UDP

    name_field = parts[_NAME_FIELD]
    local = ""
    foreign = ""
    port = 0
    if "->" in name_field:
        local, _, foreign = name_field.partition("->")
        port = extract_port(local)
    elif name_field != _WILDCARD and ":" in name_field:
        local = name_field
        port = extract_port(name_field)

    state = ConnectionState.UNKNOWN
    if len(parts) > _STATE_FIELD:
        state = ConnectionState.parse(parts[_STATE_FIELD])

    if port <= 0:
        return None

    return RawSocketRecord(
        process_name=parts[0],
        pid=pid,
        user=parts[2],
        protocol=protocol,
        local_address=local,
        foreign_address=foreign,
        port=port,
        state=state,
    )


def extract_port(address: str) -> int:
    """Return the port after the last colon, or 0.

    Works for ``1.2.3.4:80``, ``*:80`` and ``[fe80::1]:443`` alike since the
    IPv6 bracket closes before the final colon.
    """
    _, sep, port_str = address.rpartition(":")
    if not sep or not (port_str.isascii() and port_str.isdigit()):
        return 0
    port = int(port_str)
    return port if port <= 65535 else 0


def collect_pids(text: str) -> set[int]:
    """Collect the pid column of every lsof data line."""
    pids: set[int] = set()
    for line in text.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 2:
            continue
        try:
            pids.add(int(parts[1]))
        except ValueError:
            continue
    return pids
