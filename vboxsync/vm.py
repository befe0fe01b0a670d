"""Virtual machines backed by a live machine handle."""

from __future__ import annotations

import contextlib
from typing import Any, Callable, ContextManager, Iterator, Mapping

from .attributes import AttributeRegistry, AttributeSpec
from .config import VBoxSyncConfig
from .errors import VBoxSyncError
from .model import Model
from .relationship import HandleSource, RelationshipBinding, Session, session_scope
from .vrdp_server import VRDPServer


class VirtualMachine(Model):
    """A VM whose settings are read from a handle and written in a session.

    ``session_factory(handle)`` must return an object with a ``machine``
    handle that accepts ``set`` plus ``commit()`` and ``discard()``; the
    session itself is owned by the caller's VirtualBox binding.
    """

    attributes = AttributeRegistry.declare(
        AttributeSpec('uuid', readonly=True, interface='id'),
        AttributeSpec('name'),
        AttributeSpec('description'),
        AttributeSpec('os_type_id', readonly=True),
        AttributeSpec('memory_size'),
        AttributeSpec('cpu_count'),
        AttributeSpec('accessible', readonly=True, boolean=True),
    )
    relationships = {
        'vrdp_server': RelationshipBinding('vrdp_server', VRDPServer),
    }

    def __init__(
        self,
        handle: Any = None,
        session_factory: Callable[[Any], Session] | None = None,
        *,
        cfg: VBoxSyncConfig | None = None,
    ):
        super().__init__(cfg=cfg)
        self._handle = handle
        self._session_factory = session_factory
        self._session: Session | None = None
        if handle is not None:
            self.reload()

    def reload(self) -> None:
        """Re-read attributes and relationships from the live handle."""
        self.load_interface_attributes(self._handle)
        self.mark_clean()
        self.existing_record()
        self.populate_relationships(HandleSource(self._handle))

    def with_open_session(self) -> ContextManager[Session]:
        """Open a session on the machine, or reuse the one already open."""
        if self._session is not None:
            return contextlib.nullcontext(self._session)
        if self._session_factory is None or self._handle is None:
            raise VBoxSyncError(
                f'Cannot open a session for {self.name!r}: no live handle'
            )
        return self._session_scope()

    @contextlib.contextmanager
    def _session_scope(self) -> Iterator[Session]:
        with session_scope(self._session_factory, self._handle) as session:
            self._session = session
            try:
                yield session
            finally:
                self._session = None

    def _persist(self) -> Mapping[str, Any] | None:
        # The machine and its relationships share one session.
        if not self.has_pending_changes():
            return None
        with self.with_open_session():
            return super()._persist()

    def _update(self, changes: dict[str, Any]) -> Mapping[str, Any] | None:
        with self.with_open_session() as session:
            self.save_changed_interface_attributes(session.machine)
        return None
