"""VRDP server settings of a virtual machine."""

from __future__ import annotations

from typing import Any, Mapping

from .attributes import AttributeRegistry, AttributeSpec
from .model import Model
from .relationship import save_relationship


class VRDPServer(Model):
    """Remote display settings read from, and written back to, a machine handle.

    Instances are only built through relationship population and are never
    new records. ``save`` opens a session on the parent VM and writes the
    changed fields to the session machine's ``vrdp_server`` handle.
    """

    attributes = AttributeRegistry.declare(
        AttributeSpec('enabled', boolean=True),
        AttributeSpec('ports'),
        AttributeSpec('net_address'),
        AttributeSpec('auth_type'),
        AttributeSpec('auth_timeout'),
        AttributeSpec('allow_multi_connection', boolean=True),
        AttributeSpec('reuse_single_connection', boolean=True),
    )
    handle_field = 'vrdp_server'

    def _update(self, changes: dict[str, Any]) -> Mapping[str, Any] | None:
        if self.parent is None:
            raise ReferenceError('VRDP server is detached from its virtual machine')
        save_relationship(self.parent, self)
        return None
