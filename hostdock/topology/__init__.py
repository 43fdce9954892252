"""Unit topology: naming, discovery, rendering, idempotent writes, orphan cleanup."""

from hostdock.topology.discovery import discover, discover_accessories, discover_processes
from hostdock.topology.model import Topology, UnitSpec, WriteOutcome
from hostdock.topology.naming import (
    accessory_unit,
    parse_unit_name,
    process_unit,
    stack_unit,
    unit_name,
)
from hostdock.topology.reconcile import find_orphans, installed_units, reconcile
from hostdock.topology.render import RenderContext, ScaleExtension, render, serialize_unit
from hostdock.topology.writer import normalize, write_if_changed, write_units

__all__ = [
    "RenderContext",
    "ScaleExtension",
    "Topology",
    "UnitSpec",
    "WriteOutcome",
    "accessory_unit",
    "discover",
    "discover_accessories",
    "discover_processes",
    "find_orphans",
    "installed_units",
    "normalize",
    "parse_unit_name",
    "process_unit",
    "reconcile",
    "render",
    "serialize_unit",
    "stack_unit",
    "unit_name",
    "write_if_changed",
    "write_units",
]
