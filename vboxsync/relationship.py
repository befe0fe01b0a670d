"""Relationship sources, bindings, and the populate/persist protocol.

A parent model materializes its children from one of two source shapes:

* :class:`HandleSource` wraps a live handle object exposing ``get`` (and,
  inside a session, ``set``).
* :class:`DocumentSource` wraps a parsed XML document such as the global
  ``VirtualBox.xml`` media registry.

Population switches on ``source.kind``; it never inspects handle types.
"""

from __future__ import annotations

import contextlib
import enum
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ClassVar, Iterator, Protocol, Union

from loguru import logger

log = logger


class LiveHandle(Protocol):
    def get(self, field: str) -> Any: ...

    def set(self, field: str, value: Any) -> None: ...


class Session(Protocol):
    machine: LiveHandle

    def commit(self) -> None: ...

    def discard(self) -> None: ...


class SourceKind(str, enum.Enum):
    HANDLE = 'handle'
    DOCUMENT = 'document'


@dataclass(frozen=True)
class HandleSource:
    handle: Any
    kind: ClassVar[SourceKind] = SourceKind.HANDLE


@dataclass(frozen=True)
class DocumentSource:
    root: ET.Element
    kind: ClassVar[SourceKind] = SourceKind.DOCUMENT

    @classmethod
    def from_text(cls, text: str) -> 'DocumentSource':
        return cls(ET.fromstring(text))

    @classmethod
    def from_path(cls, path: str | Path) -> 'DocumentSource':
        return cls(ET.parse(str(path)).getroot())

    def elements(self, tag: str) -> list[ET.Element]:
        """All elements with local name ``tag`` in document order."""
        return [el for el in self.root.iter() if _local_name(el.tag) == tag]


RelationshipSource = Union[HandleSource, DocumentSource]


def _local_name(tag: Any) -> str:
    if not isinstance(tag, str):
        return ''
    return tag.rsplit('}', 1)[-1]


@dataclass(frozen=True)
class RelationshipBinding:
    """Declares that a parent field is owned by ``child`` model instances.

    ``populator(parent, source, cfg)`` and ``persister(parent, child)``
    default to the child type's ``populate_relationship`` and
    ``save_relationship`` classmethods.
    """

    name: str
    child: type
    plural: bool = False
    populator: Callable[..., Any] | None = None
    persister: Callable[[Any, Any], Any] | None = None

    def populate(self, parent: Any, source: RelationshipSource, cfg: Any) -> Any:
        func = self.populator or self.child.populate_relationship
        return func(parent, source, cfg=cfg)

    def persist(self, parent: Any, instance: Any) -> Any:
        func = self.persister or self.child.save_relationship
        return func(parent, instance)


def populate_relationship(
    binding: RelationshipBinding,
    parent: Any,
    source: RelationshipSource,
    cfg: Any = None,
) -> Any:
    log.debug(
        'Populating {}.{} from {} source',
        type(parent).__name__,
        binding.name,
        source.kind.value,
    )
    return binding.populate(parent, source, cfg)


def populate_from_source(
    child: Any,
    parent: Any,
    source: RelationshipSource,
    cfg: Any = None,
    *,
    plural: bool,
) -> Any:
    """Build ``child`` instances from either kind of source.

    Returns a list for plural relationships and a single instance (or
    None) otherwise. Order follows handle or document enumeration order.
    """
    if source.kind is SourceKind.HANDLE:
        field = getattr(child, 'handle_field', None)
        raw = source.handle.get(field) if field else source.handle
        if plural:
            return [child.from_handle(parent, h, cfg=cfg) for h in (raw or [])]
        return child.from_handle(parent, raw, cfg=cfg) if raw is not None else None
    if source.kind is SourceKind.DOCUMENT:
        items = [
            child.from_element(parent, el, cfg=cfg)
            for el in source.elements(child.document_tag)
        ]
        if plural:
            return items
        return items[0] if items else None
    raise TypeError(f'Unsupported relationship source: {source!r}')


@contextlib.contextmanager
def session_scope(
    open_session: Callable[[Any], Session], handle: Any
) -> Iterator[Session]:
    """Open a mutation session that is committed or discarded on every exit."""
    session = open_session(handle)
    try:
        yield session
    except BaseException:
        log.debug('Discarding session after error')
        session.discard()
        raise
    else:
        session.commit()


def save_relationship(parent: Any, instance: Any) -> None:
    """Flush the child's changed attributes through the parent's session."""
    with parent.with_open_session() as session:
        handle = session.machine
        field = getattr(instance, 'handle_field', None)
        if field:
            handle = handle.get(field)
        instance.save_changed_interface_attributes(handle)
