"""Base model: attribute storage, dirty tracking, validation, and lifecycle."""

from __future__ import annotations

import contextlib
import weakref
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterator, Mapping

from loguru import logger

from .attributes import AttributeRegistry
from .config import VBoxSyncConfig
from .errors import (
    AlreadyDestroyed,
    ReadOnlyAttribute,
    ValidationFailed,
    VBoxSyncError,
)
from .relationship import (
    RelationshipBinding,
    RelationshipSource,
    populate_from_source,
    populate_relationship,
)
from .results import Outcome, attempt, settle

log = logger


@dataclass(frozen=True)
class Rule:
    attribute: str
    message: str
    check: Callable[[Any], bool]


def presence(name: str) -> Rule:
    return Rule(name, "can't be blank", lambda v: v is not None and v != '')


class Model:
    """Common behavior for every entity mirrored from VirtualBox.

    Subclasses declare ``attributes`` (an :class:`AttributeRegistry`),
    optional validation ``rules`` and ``relationships``, and implement the
    ``_create`` / ``_update`` / ``_destroy`` hooks. Each hook talks to the
    external tool and returns the fresh attribute mapping (or None) on
    success; the base class owns the state transitions.

    Declared attributes are exposed as plain instance attributes:

        >>> hd.size = 2000
        >>> hd.is_dirty('size')
        True
    """

    attributes: ClassVar[AttributeRegistry] = AttributeRegistry()
    rules: ClassVar[tuple[Rule, ...]] = ()
    relationships: ClassVar[dict[str, RelationshipBinding]] = {}
    #: Field on the parent's handle that holds this model's handle(s).
    handle_field: ClassVar[str | None] = None
    #: Element tag identifying this model inside a configuration document.
    document_tag: ClassVar[str | None] = None

    def __init__(self, parent: Any = None, *, cfg: VBoxSyncConfig | None = None):
        self._values: dict[str, Any] = {}
        self._changes: dict[str, tuple[Any, Any]] = {}
        self._relations: dict[str, Any] = {}
        self._loading_depth = 0
        self._new_record = True
        self._destroyed = False
        self._parent = weakref.ref(parent) if parent is not None else None
        self.cfg = cfg
        self.errors: dict[str, list[str]] = {}
        for spec in self.attributes:
            if spec.default is not None:
                self._values[spec.name] = spec.default

    def __getattr__(self, name: str) -> Any:
        cls = type(self)
        if name in cls.attributes:
            return self.read_attribute(name)
        if name in cls.relationships:
            return self._relations.get(name)
        raise AttributeError(f'{cls.__name__!r} object has no attribute {name!r}')

    def __setattr__(self, name: str, value: Any) -> None:
        if name in type(self).attributes:
            self.write_attribute(name, value)
        else:
            object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        body = ', '.join(f'{k}={v!r}' for k, v in self._values.items())
        return f'{type(self).__name__}({body})'

    @property
    def parent(self) -> Any:
        return self._parent() if self._parent is not None else None

    @property
    def is_new_record(self) -> bool:
        return self._new_record

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def existing_record(self) -> None:
        self._new_record = False

    def _ensure_alive(self) -> None:
        if self._destroyed:
            raise AlreadyDestroyed(
                f'{type(self).__name__} has already been destroyed'
            )

    # Attribute access

    def read_attribute(self, name: str) -> Any:
        self.attributes.get(name)
        return self._values.get(name)

    def write_attribute(self, name: str, value: Any) -> None:
        spec = self.attributes.get(name)
        loading = self._loading_depth > 0
        if not loading:
            self._ensure_alive()
            if spec.readonly:
                raise ReadOnlyAttribute(f'Attribute is read-only: {name}')
        value = spec.coerce(value)
        if not loading:
            self._track_change(name, self._values.get(name), value)
        self._values[name] = value

    def _track_change(self, name: str, old: Any, new: Any) -> None:
        if name in self._changes:
            baseline = self._changes[name][0]
            if baseline == new:
                del self._changes[name]
            else:
                self._changes[name] = (baseline, new)
        elif old != new:
            self._changes[name] = (old, new)

    @contextlib.contextmanager
    def loading(self) -> Iterator[None]:
        """Scope in which writes bypass read-only checks and never mark dirty."""
        self._loading_depth += 1
        try:
            yield
        finally:
            self._loading_depth -= 1

    def load_attributes(self, data: Mapping[str, Any]) -> None:
        with self.loading():
            for key, value in data.items():
                if key in self.attributes:
                    self.write_attribute(key, value)

    def load_interface_attributes(self, handle: Any) -> None:
        with self.loading():
            for spec in self.attributes.properties():
                self.write_attribute(spec.name, handle.get(spec.interface_name))

    def save_changed_interface_attributes(self, handle: Any) -> None:
        for name in self.changed_attributes():
            spec = self.attributes.get(name)
            if spec.is_property:
                handle.set(spec.interface_name, spec.encode(self._values[name]))

    def replace_attributes(self, data: Mapping[str, Any]) -> None:
        """Load a fresh external snapshot and mark the record as in sync."""
        self.load_attributes(data)
        self.mark_clean()
        self.existing_record()

    def as_dict(self) -> dict[str, Any]:
        return {
            spec.name: self._values.get(spec.name)
            for spec in self.attributes.properties()
        }

    # Dirty tracking

    def mark_clean(self) -> None:
        self._changes.clear()

    def is_dirty(self, name: str | None = None) -> bool:
        if name is None:
            return bool(self._changes)
        self.attributes.get(name)
        return name in self._changes

    def changed_attributes(self) -> list[str]:
        return list(self._changes)

    @property
    def changes(self) -> dict[str, tuple[Any, Any]]:
        return dict(self._changes)

    def create_payload(self) -> dict[str, Any]:
        """Every settable attribute with a value, for records with no baseline."""
        return {
            spec.name: self._values[spec.name]
            for spec in self.attributes.settable()
            if self._values.get(spec.name) is not None
        }

    def update_payload(self) -> dict[str, Any]:
        """Only the attributes changed since the last sync."""
        return {
            name: new
            for name, (_old, new) in self._changes.items()
            if self.attributes.get(name).is_property
        }

    # Validation

    def validate(self) -> bool:
        errors: dict[str, list[str]] = {}
        for rule in self.rules:
            if not rule.check(self._values.get(rule.attribute)):
                errors.setdefault(rule.attribute, []).append(rule.message)
        self.errors = errors
        return not errors

    # Relationships

    @classmethod
    def from_handle(
        cls, parent: Any, handle: Any, cfg: VBoxSyncConfig | None = None
    ) -> 'Model':
        inst = cls(parent, cfg=cfg)
        inst.load_interface_attributes(handle)
        inst.mark_clean()
        inst.existing_record()
        return inst

    @classmethod
    def from_element(
        cls, parent: Any, element: Any, cfg: VBoxSyncConfig | None = None
    ) -> 'Model':
        inst = cls(parent, cfg=cfg)
        inst.replace_attributes(element.attrib)
        return inst

    @classmethod
    def populate_relationship(
        cls, parent: Any, source: RelationshipSource, cfg: VBoxSyncConfig | None = None
    ) -> Any:
        return populate_from_source(cls, parent, source, cfg, plural=False)

    @classmethod
    def save_relationship(cls, parent: Any, instance: 'Model') -> bool:
        return instance.save(raise_errors=True)

    def populate_relationships(
        self, source: RelationshipSource, cfg: VBoxSyncConfig | None = None
    ) -> None:
        for name, binding in self.relationships.items():
            self._relations[name] = populate_relationship(
                binding, self, source, cfg or self.cfg
            )

    def _related(self) -> Iterator[tuple[RelationshipBinding, 'Model']]:
        for name, binding in self.relationships.items():
            child = self._relations.get(name)
            if child is None:
                continue
            for item in child if binding.plural else [child]:
                yield binding, item

    def _save_relationships(self) -> None:
        for binding, item in self._related():
            binding.persist(self, item)

    def has_pending_changes(self) -> bool:
        """True if this record or any loaded related record needs a save."""
        if self._new_record or self._changes:
            return True
        return any(item.has_pending_changes() for _, item in self._related())

    # Lifecycle

    def save(self, raise_errors: bool = False) -> bool:
        self._ensure_alive()
        # Clean existing records are not validated.
        if (self._new_record or self._changes) and not self.validate():
            return settle(
                Outcome.failure(ValidationFailed(self.errors)),
                raise_errors=raise_errors,
                sentinel=False,
            )
        outcome = attempt(self._persist)
        if not outcome.ok:
            return settle(outcome, raise_errors=raise_errors, sentinel=False)
        if outcome.value is not None:
            self.load_attributes(outcome.value)
        self.mark_clean()
        self.existing_record()
        return True

    def destroy(self, raise_errors: bool = False) -> bool:
        self._ensure_alive()
        if self._new_record:
            raise VBoxSyncError(
                f'{type(self).__name__} was never saved and cannot be destroyed'
            )
        outcome = attempt(self._destroy)
        if not outcome.ok:
            return settle(outcome, raise_errors=raise_errors, sentinel=False)
        self._destroyed = True
        return True

    def _persist(self) -> Mapping[str, Any] | None:
        """Send this record's pending changes, then those of its relationships."""
        result = None
        if self._new_record:
            log.debug('Creating {}', type(self).__name__)
            result = self._create()
        elif self._changes:
            log.debug(
                'Updating {} fields {}',
                type(self).__name__,
                self.changed_attributes(),
            )
            result = self._update(self.update_payload())
        self._save_relationships()
        return result

    def _create(self) -> Mapping[str, Any] | None:
        raise NotImplementedError(f'{type(self).__name__} cannot be created')

    def _update(self, changes: dict[str, Any]) -> Mapping[str, Any] | None:
        raise NotImplementedError(f'{type(self).__name__} cannot be updated')

    def _destroy(self) -> None:
        raise NotImplementedError(f'{type(self).__name__} cannot be destroyed')
