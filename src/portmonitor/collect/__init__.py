"""Discovery pipeline — socket table, process enrichment, traffic, assembly."""

from portmonitor.collect.assemble import Collector, assemble, deduplicate
from portmonitor.collect.enrich import EnrichmentCache, ProcessResolver
from portmonitor.collect.lsof import extract_port, parse_socket_table
from portmonitor.collect.nettop import parse_traffic

__all__ = [
    "Collector",
    "EnrichmentCache",
    "ProcessResolver",
    "assemble",
    "deduplicate",
    "extract_port",
    "parse_socket_table",
    "parse_traffic",
]
