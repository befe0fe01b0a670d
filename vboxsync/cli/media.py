"""Media registry subcommands."""

from __future__ import annotations

import scriptconfig as scfg

from ..media import MediaRegistry
from ._common import _BaseCommand, _load_cfg


class MediaListCLI(_BaseCommand):
    """List hard drives recorded in the VirtualBox configuration document."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config)
        media = MediaRegistry.load(cfg)
        for hd in media.hard_drives:
            print(f'{hd.uuid}  {hd.format or "":<5} {hd.location or ""}')
        return 0


class MediaModalCLI(scfg.ModalCLI):
    """Inspect the global media registry."""

    list = MediaListCLI
