"""Global media registry read from the VirtualBox configuration document."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from .config import VBoxSyncConfig
from .errors import VBoxSyncError
from .hard_drive import HardDrive
from .model import Model
from .relationship import DocumentSource, RelationshipBinding

log = logger


class MediaRegistry(Model):
    """Media known to VirtualBox, as listed in ``VirtualBox.xml``."""

    relationships = {
        'hard_drives': RelationshipBinding('hard_drives', HardDrive, plural=True),
    }

    @classmethod
    def load(cls, cfg: VBoxSyncConfig | None = None) -> 'MediaRegistry':
        """Parse the configured document; it is read again on every call."""
        cfg = cfg or VBoxSyncConfig()
        fpath = Path(cfg.expanded_paths().vboxconfig)
        if not fpath.exists():
            raise VBoxSyncError(f'VirtualBox configuration not found: {fpath}')
        log.debug('Loading media registry from {}', fpath)
        return cls.from_document(DocumentSource.from_path(fpath), cfg)

    @classmethod
    def from_document(
        cls, source: DocumentSource, cfg: VBoxSyncConfig | None = None
    ) -> 'MediaRegistry':
        media = cls(cfg=cfg)
        media.existing_record()
        media.populate_relationships(source, cfg)
        return media
