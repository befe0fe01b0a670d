"""Configuration subcommands."""

from __future__ import annotations

import sys

import scriptconfig as scfg

from ..config import VBoxSyncConfig, dump_toml, save
from ._common import _BaseCommand, _cfg_path, _load_cfg


class InitCLI(_BaseCommand):
    """Write a default configuration file."""

    vboxconfig = scfg.Value(
        '', help='Path of VirtualBox.xml (default: ~/.VirtualBox/VirtualBox.xml).'
    )
    force = scfg.Value(
        False, isflag=True, help='Overwrite an existing configuration file.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = _cfg_path(args.config)
        if path.exists() and not args.force:
            print(f'Config already exists: {path}', file=sys.stderr)
            print('Use --force to overwrite it.', file=sys.stderr)
            return 2
        cfg = VBoxSyncConfig()
        if str(args.vboxconfig or '').strip():
            cfg.vboxconfig = str(args.vboxconfig).strip()
        save(cfg, path)
        print(f'Wrote config: {path}')
        return 0


class ConfigShowCLI(_BaseCommand):
    """Show the resolved configuration."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = _cfg_path(args.config)
        cfg = _load_cfg(args.config)
        print(f'# Config: {path}{"" if path.exists() else " (defaults)"}')
        print(dump_toml(cfg), end='')
        return 0


class ConfigModalCLI(scfg.ModalCLI):
    """Manage vboxsync configuration."""

    init = InitCLI
    show = ConfigShowCLI
