"""Topology and unit descriptor data types."""

import enum
from dataclasses import dataclass, field

from hostdock.errors import ConfigError
from hostdock.topology import naming


@dataclass(frozen=True)
class Topology:
    """Named process and accessory sets of one application.

    Names are stored sorted and de-duplicated so that two topologies built
    from the same sets compare equal regardless of input order.
    """

    app: str
    processes: tuple[str, ...] = ()
    accessories: tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "processes", tuple(sorted(set(self.processes))))
        object.__setattr__(self, "accessories", tuple(sorted(set(self.accessories))))

    @property
    def has_accessories(self) -> bool:
        return bool(self.accessories)

    def validate(self):
        """Raise ConfigError if a name violates the naming invariants."""
        if not self.app or "/" in self.app:
            raise ConfigError(f"invalid app name: {self.app!r}")
        for role in self.processes:
            if not naming.is_valid_role(role):
                raise ConfigError(f"invalid process name '{role}' (reserved or contains '-')")
        clash = set(self.processes) & set(self.accessories)
        if clash:
            raise ConfigError(f"names used as both process and accessory: {', '.join(sorted(clash))}")
        return self

    def with_processes(self, processes) -> "Topology":
        return Topology(self.app, tuple(processes), self.accessories)

    def with_accessories(self, accessories) -> "Topology":
        return Topology(self.app, self.processes, tuple(accessories))

    def expected_units(self) -> set[str]:
        """Unit file names this topology owns."""
        units = set()
        if self.processes or self.accessories:
            units.add(naming.stack_unit(self.app))
        if self.accessories:
            units.add(naming.accessory_unit(self.app))
        for role in self.processes:
            units.add(naming.process_unit(self.app, role))
        return units


@dataclass
class UnitSpec:
    """A declarative unit descriptor before serialisation.

    ``service`` is an ordered (key, value) list; keys may repeat
    (e.g. Environment).
    """

    name: str
    kind: str
    description: str
    after: list[str] = field(default_factory=list)
    wants: list[str] = field(default_factory=list)
    part_of: str | None = None
    service: list[tuple[str, str]] = field(default_factory=list)
    wanted_by: str = "default.target"


class WriteOutcome(enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"

    @property
    def changed(self) -> bool:
        return self is not WriteOutcome.UNCHANGED
