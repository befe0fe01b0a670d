"""Hard drive subcommands."""

from __future__ import annotations

import sys

import scriptconfig as scfg

from ..hard_drive import HardDrive
from ._common import _BaseCommand, _load_cfg, _optional, _render_model, log


class ShowCLI(_BaseCommand):
    """Show one hard drive by UUID or path."""

    medium = scfg.Value('', help='Hard drive UUID or location.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        hd = HardDrive.find(args.medium, cfg=cfg)
        if hd is None:
            print(f'Hard drive not found: {args.medium}', file=sys.stderr)
            return 1
        print(_render_model(hd))
        return 0


class ListCLI(_BaseCommand):
    """List every hard drive registered with VirtualBox."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        for hd in HardDrive.all(cfg=cfg):
            print(f'{hd.uuid}  {hd.size or "?":>8} MB  {hd.location or ""}')
        return 0


class CreateCLI(_BaseCommand):
    """Create and register a new hard drive image."""

    location = scfg.Value('', help='Path of the new image file.')
    size = scfg.Value('', help='Logical size in megabytes.')
    medium_format = scfg.Value('VDI', help='Image format (VDI, VMDK, VHD).')
    medium_type = scfg.Value(
        '', help='Optional medium type, e.g. normal or immutable.'
    )
    description = scfg.Value('', help='Optional description.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        hd = HardDrive(cfg=cfg)
        hd.location = _optional(args.location)
        hd.size = _optional(args.size)
        hd.format = _optional(args.medium_format)
        hd.type = _optional(args.medium_type)
        hd.description = _optional(args.description)
        hd.save(raise_errors=True)
        log.info('Created hard drive {}', hd.uuid)
        print(hd.uuid)
        return 0


class ModifyCLI(_BaseCommand):
    """Change settings of an existing hard drive."""

    medium = scfg.Value('', help='Hard drive UUID or location.')
    size = scfg.Value('', help='New logical size in megabytes.')
    medium_type = scfg.Value('', help='New medium type.')
    description = scfg.Value('', help='New description.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        hd = HardDrive.find(args.medium, raise_errors=True, cfg=cfg)
        changes = {
            'size': args.size,
            'type': args.medium_type,
            'description': args.description,
        }
        for key, raw in changes.items():
            value = _optional(raw)
            if value is not None:
                setattr(hd, key, value)
        if not hd.is_dirty():
            print('Nothing to change.')
            return 0
        hd.save(raise_errors=True)
        print(_render_model(hd))
        return 0


class CloneCLI(_BaseCommand):
    """Clone a hard drive into a new image file."""

    medium = scfg.Value('', help='Source hard drive UUID or location.')
    output = scfg.Value('', help='Path of the cloned image.')
    medium_format = scfg.Value('VDI', help='Format of the cloned image.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        hd = HardDrive.find(args.medium, raise_errors=True, cfg=cfg)
        clone = hd.clone(args.output, args.medium_format, raise_errors=True)
        print(clone.uuid if clone is not None else args.output)
        return 0


class DestroyCLI(_BaseCommand):
    """Unregister a hard drive and delete its image file."""

    medium = scfg.Value('', help='Hard drive UUID or location.')

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        hd = HardDrive.find(args.medium, raise_errors=True, cfg=cfg)
        hd.destroy(raise_errors=True)
        print(f'Destroyed hard drive {hd.uuid}')
        return 0


class HardDriveModalCLI(scfg.ModalCLI):
    """Inspect and manage virtual hard drives."""

    show = ShowCLI
    list = ListCLI
    create = CreateCLI
    modify = ModifyCLI
    clone = CloneCLI
    destroy = DestroyCLI
