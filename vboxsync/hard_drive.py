"""Virtual hard drives managed through ``VBoxManage``."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping

from loguru import logger

from .attributes import AttributeRegistry, AttributeSpec
from .config import VBoxSyncConfig
from .errors import CommandFailed, VBoxSyncError
from .model import Model, presence
from .parser import (
    first_word,
    leading_number,
    map_fields,
    parse_block,
    parse_blocks,
    strip_parenthetical,
    uuid_from_output,
)
from .relationship import RelationshipSource, populate_from_source
from .results import attempt, settle
from .runtime import vboxmanage

log = logger

# Attribute name -> report keys, newest VBoxManage spelling last.
REPORT_FIELDS: dict[str, tuple[str, ...]] = {
    'uuid': ('UUID',),
    'accessible': ('Accessible',),
    'description': ('Description',),
    'size': ('Logical size', 'Capacity'),
    'actual_size': ('Current size on disk', 'Size on disk'),
    'type': ('Type',),
    'format': ('Storage format', 'Format'),
    'used_by': ('In use by VMs',),
    'location': ('Location',),
    'auto_reset': ('Auto-Reset',),
}

CONVERTERS: dict[str, Callable[[str | None], str | None]] = {
    'size': leading_number,
    'actual_size': leading_number,
    'type': first_word,
    'used_by': strip_parenthetical,
}

# Attributes ``modifyhd`` can change on an existing drive.
MODIFY_OPTIONS = {
    'type': '--type',
    'size': '--resize',
    'description': '--description',
    'auto_reset': '--autoreset',
    'location': '--move',
}


def hard_drive_attributes(record: Mapping[str, str]) -> dict[str, Any]:
    """Convert a raw ``showhdinfo`` record into HardDrive attribute values."""
    attrs: dict[str, Any] = map_fields(record, REPORT_FIELDS)
    for name, convert in CONVERTERS.items():
        if name in attrs:
            attrs[name] = convert(attrs[name])
    return attrs


class HardDrive(Model):
    """A virtual disk image registered with VirtualBox.

    Example:
        >>> hd = HardDrive()
        >>> hd.location = '/vms/disk.vdi'
        >>> hd.size = 2000
        >>> hd.save()  # createhd
        True
        >>> hd.clone('/vms/copy.vdi')
        HardDrive(...)
    """

    attributes = AttributeRegistry.declare(
        AttributeSpec('uuid', readonly=True, interface='id'),
        AttributeSpec('accessible', readonly=True),
        AttributeSpec('description'),
        AttributeSpec('size', interface='logical_size'),
        AttributeSpec('actual_size', readonly=True, interface='size'),
        AttributeSpec('type'),
        AttributeSpec('format', default='VDI'),
        AttributeSpec('used_by', readonly=True),
        AttributeSpec('location'),
        AttributeSpec('auto_reset', boolean=True, tokens=('on', 'off')),
    )
    rules = (presence('size'), presence('format'))
    handle_field = 'hard_drives'
    document_tag = 'HardDisk'

    # Finders

    @classmethod
    def find(
        cls,
        name: str,
        raise_errors: bool = False,
        *,
        cfg: VBoxSyncConfig | None = None,
    ) -> 'HardDrive | None':
        """Look up a drive by UUID or path; None if VBoxManage cannot find it."""
        return settle(
            attempt(cls._find, name, cfg), raise_errors=raise_errors, sentinel=None
        )

    @classmethod
    def _find(cls, name: str, cfg: VBoxSyncConfig | None) -> 'HardDrive':
        text = vboxmanage('showhdinfo', name, cfg=cfg)
        return cls._from_record(parse_block(text), cfg)

    @classmethod
    def all(cls, *, cfg: VBoxSyncConfig | None = None) -> list['HardDrive']:
        """Every registered drive. Enumeration failures always raise."""
        text = vboxmanage('list', 'hdds', cfg=cfg)
        return [cls._from_record(r, cfg) for r in parse_blocks(text, marker='UUID')]

    @classmethod
    def _from_record(
        cls, record: Mapping[str, str], cfg: VBoxSyncConfig | None
    ) -> 'HardDrive':
        hd = cls(cfg=cfg)
        hd.replace_attributes(hard_drive_attributes(record))
        return hd

    # Relationship protocol

    @classmethod
    def populate_relationship(
        cls,
        parent: Any,
        source: RelationshipSource,
        cfg: VBoxSyncConfig | None = None,
    ) -> list['HardDrive']:
        return populate_from_source(cls, parent, source, cfg, plural=True)

    @classmethod
    def from_element(
        cls, parent: Any, element: Any, cfg: VBoxSyncConfig | None = None
    ) -> 'HardDrive':
        cfg = cfg or VBoxSyncConfig()
        attrib = element.attrib
        location = attrib.get('location')
        if location:
            location = str(Path(cfg.base_dir) / location)
        hd = cls(parent, cfg=cfg)
        hd.replace_attributes(
            {
                'uuid': attrib.get('uuid', '').strip('{}') or None,
                'location': location,
                'format': attrib.get('format'),
                'type': attrib.get('type'),
            }
        )
        return hd

    # Persistence hooks

    def _create(self) -> Mapping[str, Any]:
        payload = self.create_payload()
        args = ['createhd']
        if payload.get('location') is not None:
            args += ['--filename', payload['location']]
        args += ['--size', payload['size'], '--format', payload['format']]
        args.append('--remember')
        output = vboxmanage(*args, cfg=self.cfg)
        uuid = uuid_from_output(output)
        if uuid is None:
            raise CommandFailed(
                'createhd', args[1:], 'no UUID reported for the new medium'
            )
        log.debug('Created hard drive {} at {}', uuid, payload.get('location'))
        created = self._reload(uuid)
        extra = {
            k: v
            for k, v in payload.items()
            if k not in ('location', 'size', 'format')
        }
        if not extra:
            return created
        # The medium exists; fields createhd cannot set stay dirty until
        # modifyhd succeeds.
        self.replace_attributes(created)
        for name, value in extra.items():
            self.write_attribute(name, value)
        self._modify(uuid, extra)
        return self._reload(uuid)

    def _update(self, changes: dict[str, Any]) -> Mapping[str, Any]:
        self._modify(self.uuid, changes)
        return self._reload(self.uuid)

    def _modify(self, uuid: str, changes: Mapping[str, Any]) -> None:
        unsupported = sorted(set(changes) - set(MODIFY_OPTIONS))
        if unsupported:
            raise VBoxSyncError(
                f'Cannot change {", ".join(unsupported)} of an existing hard drive'
            )
        args = ['modifyhd', uuid]
        for name, value in changes.items():
            args += [MODIFY_OPTIONS[name], self.attributes.get(name).encode(value)]
        vboxmanage(*args, cfg=self.cfg)

    def _reload(self, uuid: str) -> Mapping[str, Any]:
        found = type(self).find(uuid, raise_errors=True, cfg=self.cfg)
        return found.as_dict()

    def _destroy(self) -> None:
        vboxmanage('closemedium', 'disk', self.uuid, '--delete', cfg=self.cfg)

    # Operations

    def clone(
        self,
        outputfile: str,
        format: str = 'VDI',
        raise_errors: bool = False,
    ) -> 'HardDrive | None':
        """Clone this drive into ``outputfile`` and return the new drive."""
        self._ensure_alive()
        return settle(
            attempt(self._clone, outputfile, format),
            raise_errors=raise_errors,
            sentinel=None,
        )

    def _clone(self, outputfile: str, format: str) -> 'HardDrive | None':
        output = vboxmanage(
            'clonehd',
            self.uuid,
            outputfile,
            '--format',
            format,
            '--remember',
            cfg=self.cfg,
        )
        target = uuid_from_output(output) or outputfile
        return type(self).find(target, raise_errors=True, cfg=self.cfg)
