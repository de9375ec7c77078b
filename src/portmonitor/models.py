"""Port data models — immutable records shared by the collector, service and CLI."""

from __future__ import annotations

import enum
from dataclasses import dataclass

# Sentinel for traffic counters that could not be measured.
UNKNOWN_BYTES = -1


class Protocol(enum.Enum):
    """Transport protocol of a socket."""

    TCP = "TCP"
    UDP = "UDP"


class ConnectionState(enum.Enum):
    """TCP connection state as reported by lsof."""

    LISTEN = "LISTEN"
    ESTABLISHED = "ESTABLISHED"
    TIME_WAIT = "TIME_WAIT"
    CLOSE_WAIT = "CLOSE_WAIT"
    SYN_SENT = "SYN_SENT"
    SYN_RECEIVED = "SYN_RECEIVED"
    FIN_WAIT_1 = "FIN_WAIT_1"
    FIN_WAIT_2 = "FIN_WAIT_2"
    CLOSING = "CLOSING"
    LAST_ACK = "LAST_ACK"
    CLOSED = "CLOSED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, text: str) -> ConnectionState:
        """Map an lsof state field like ``(LISTEN)`` to a member, UNKNOWN if unmatched."""
        cleaned = text.replace("(", "").replace(")", "").strip().upper()
        try:
            return cls(cleaned)
        except ValueError:
            return cls.UNKNOWN

    @property
    def display_name(self) -> str:
        return _STATE_DISPLAY_NAMES[self]

    @property
    def color(self) -> str:
        if self is ConnectionState.LISTEN:
            return "green"
        if self is ConnectionState.ESTABLISHED:
            return "blue"
        if self in (
            ConnectionState.TIME_WAIT,
            ConnectionState.CLOSE_WAIT,
            ConnectionState.FIN_WAIT_1,
            ConnectionState.FIN_WAIT_2,
        ):
            return "orange"
        if self in (
            ConnectionState.CLOSED,
            ConnectionState.CLOSING,
            ConnectionState.LAST_ACK,
        ):
            return "red"
        return "gray"


_STATE_DISPLAY_NAMES = {
    ConnectionState.LISTEN: "Listening",
    ConnectionState.ESTABLISHED: "Connected",
    ConnectionState.TIME_WAIT: "Time Wait",
    ConnectionState.CLOSE_WAIT: "Close Wait",
    ConnectionState.SYN_SENT: "SYN Sent",
    ConnectionState.SYN_RECEIVED: "SYN Received",
    ConnectionState.FIN_WAIT_1: "FIN Wait 1",
    ConnectionState.FIN_WAIT_2: "FIN Wait 2",
    ConnectionState.CLOSING: "Closing",
    ConnectionState.LAST_ACK: "Last ACK",
    ConnectionState.CLOSED: "Closed",
    ConnectionState.UNKNOWN: "Unknown",
}


class PortCategory(enum.Enum):
    """Coarse grouping of well-known ports."""

    WEB = "Web"
    DEVELOPMENT = "Development"
    DATABASE = "Database"
    SSH = "SSH"
    MAIL = "Mail"
    OTHER = "Other"

    @classmethod
    def for_port(cls, port: int) -> PortCategory:
        return _PORT_CATEGORIES.get(port, cls.OTHER)

    @property
    def color(self) -> str:
        return _CATEGORY_COLORS[self]


_PORT_CATEGORIES: dict[int, PortCategory] = {
    **dict.fromkeys((80, 443, 8080, 8443), PortCategory.WEB),
    **dict.fromkeys((3000, 3001, 5000, 5173, 8000, 4200), PortCategory.DEVELOPMENT),
    22: PortCategory.SSH,
    **dict.fromkeys((3306, 5432, 27017, 6379), PortCategory.DATABASE),
    **dict.fromkeys((25, 465, 587, 993, 995), PortCategory.MAIL),
}

_CATEGORY_COLORS = {
    PortCategory.WEB: "blue",
    PortCategory.DEVELOPMENT: "purple",
    PortCategory.DATABASE: "orange",
    PortCategory.SSH: "green",
    PortCategory.MAIL: "red",
    PortCategory.OTHER: "gray",
}


@dataclass(frozen=True)
class RawSocketRecord:
    """One connection line from the socket table, before enrichment."""

    process_name: str
    pid: int
    user: str
    protocol: Protocol
    local_address: str
    foreign_address: str
    port: int
    state: ConnectionState = ConnectionState.UNKNOWN


@dataclass(frozen=True)
class EnrichmentInfo:
    """Process metadata joined onto socket records by pid."""

    command: str = ""
    working_directory: str = ""
    executable_path: str = ""


@dataclass(frozen=True)
class TrafficInfo:
    """Cumulative per-process traffic counters."""

    bytes_in: int = UNKNOWN_BYTES
    bytes_out: int = UNKNOWN_BYTES


@dataclass(frozen=True)
class PortRecord:
    """A fully assembled open port, owned by one process."""

    port: int
    protocol: Protocol
    process_name: str
    pid: int
    user: str
    state: ConnectionState
    local_address: str = ""
    foreign_address: str = ""
    command: str = ""
    working_directory: str = ""
    executable_path: str = ""
    bytes_in: int = UNKNOWN_BYTES
    bytes_out: int = UNKNOWN_BYTES

    @property
    def dedup_key(self) -> tuple[int, str, str]:
        return (self.port, self.process_name, self.state.value)

    @property
    def project_name(self) -> str:
        from portmonitor.classify import project_name

        return project_name(self.command, self.working_directory, self.process_name)

    @property
    def description(self) -> str:
        from portmonitor.classify import describe

        return describe(self.process_name, self.command)

    @property
    def category(self) -> PortCategory:
        return PortCategory.for_port(self.port)

    @property
    def display_name(self) -> str:
        """Project name when it says more than the process name."""
        project = self.project_name
        if project and project != self.process_name:
            return project
        return self.process_name

    @property
    def bytes_in_formatted(self) -> str:
        return format_bytes(self.bytes_in)

    @property
    def bytes_out_formatted(self) -> str:
        return format_bytes(self.bytes_out)

    def to_dict(self) -> dict:
        return {
            "port": self.port,
            "protocol": self.protocol.value,
            "process_name": self.process_name,
            "pid": self.pid,
            "user": self.user,
            "state": self.state.value,
            "local_address": self.local_address,
            "foreign_address": self.foreign_address,
            "command": self.command,
            "working_directory": self.working_directory,
            "executable_path": self.executable_path,
            "bytes_in": self.bytes_in,
            "bytes_out": self.bytes_out,
            "project_name": self.project_name,
            "description": self.description,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class PortStats:
    """Aggregate counters over a record set."""

    total: int = 0
    listening: int = 0
    established: int = 0
    total_in: int = 0
    total_out: int = 0

    @classmethod
    def from_records(cls, records: tuple[PortRecord, ...] | list[PortRecord]) -> PortStats:
        return cls(
            total=len(records),
            listening=sum(1 for r in records if r.state is ConnectionState.LISTEN),
            established=sum(
                1 for r in records if r.state is ConnectionState.ESTABLISHED
            ),
            total_in=sum(max(0, r.bytes_in) for r in records),
            total_out=sum(max(0, r.bytes_out) for r in records),
        )


def format_bytes(count: int) -> str:
    """Human-readable byte count; unknown (negative) counts render as a dash."""
    if count < 0:
        return "—"
    if count < 1024:
        return f"{count} B"
    if count < 1024 * 1024:
        return f"{count / 1024:.1f} KB"
    if count < 1024 * 1024 * 1024:
        return f"{count / (1024 * 1024):.1f} MB"
    return f"{count / (1024 * 1024 * 1024):.2f} GB"
