"""Declarative attribute specifications shared by every instance of a model type."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from .errors import UnknownAttribute

TRUTHY = frozenset({'yes', 'on', 'true', '1', 'enabled'})


@dataclass(frozen=True)
class AttributeSpec:
    """One declared field of a model.

    Attributes:
        name: attribute name used by model code.
        readonly: external writes raise ``ReadOnlyAttribute``; loads may
            still set it.
        boolean: coerce loaded values to ``bool`` and encode on save.
        is_property: participates in load/save. Bookkeeping fields set this
            to False.
        default: value a new record starts with.
        interface: field name on a live handle, defaults to ``name``.
        tokens: external (true, false) representation used on save.
    """

    name: str
    readonly: bool = False
    boolean: bool = False
    is_property: bool = True
    default: Any = None
    interface: str | None = None
    tokens: tuple[Any, Any] = (True, False)

    @property
    def interface_name(self) -> str:
        return self.interface or self.name

    def coerce(self, value: Any) -> Any:
        if not self.boolean or value is None:
            return value
        if isinstance(value, str):
            return value.strip().lower() in TRUTHY
        return bool(value)

    def encode(self, value: Any) -> Any:
        if not self.boolean or value is None:
            return value
        return self.tokens[0] if value else self.tokens[1]


@dataclass(frozen=True)
class AttributeRegistry:
    """Mapping from attribute name to its spec, fixed at class definition."""

    specs: dict[str, AttributeSpec] = field(default_factory=dict)

    @classmethod
    def declare(cls, *specs: AttributeSpec) -> 'AttributeRegistry':
        table: dict[str, AttributeSpec] = {}
        for spec in specs:
            if spec.name in table:
                raise ValueError(f'Attribute declared twice: {spec.name}')
            table[spec.name] = spec
        return cls(table)

    def extend(self, *specs: AttributeSpec) -> 'AttributeRegistry':
        return AttributeRegistry.declare(*self.specs.values(), *specs)

    def __contains__(self, name: object) -> bool:
        return name in self.specs

    def __iter__(self) -> Iterator[AttributeSpec]:
        return iter(self.specs.values())

    def __len__(self) -> int:
        return len(self.specs)

    def get(self, name: str) -> AttributeSpec:
        try:
            return self.specs[name]
        except KeyError:
            raise UnknownAttribute(f'Unknown attribute: {name}') from None

    def names(self) -> list[str]:
        return list(self.specs)

    def properties(self) -> Iterable[AttributeSpec]:
        return (s for s in self.specs.values() if s.is_property)

    def settable(self) -> Iterable[AttributeSpec]:
        return (
            s for s in self.specs.values() if s.is_property and not s.readonly
        )
