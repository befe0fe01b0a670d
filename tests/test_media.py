"""Tests for the document-backed media registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from vboxsync.config import VBoxSyncConfig
from vboxsync.errors import VBoxSyncError
from vboxsync.media import MediaRegistry

DOC = """<?xml version="1.0"?>
<VirtualBox xmlns="http://www.virtualbox.org/" version="1.12-linux">
  <Global>
    <MediaRegistry>
      <HardDisks>
        <HardDisk uuid="{9d2e4353-d1e9-466c-ac58-f2249264147b}" location="HardDisks/TestJeOS.vdi" format="VDI" type="Normal"/>
        {extra}
      </HardDisks>
    </MediaRegistry>
  </Global>
</VirtualBox>
"""


def _write_doc(path: Path, extra: str = '') -> None:
    path.write_text(DOC.replace('{extra}', extra), encoding='utf-8')


def test_load_populates_hard_drives(tmp_path: Path) -> None:
    doc = tmp_path / 'VirtualBox.xml'
    _write_doc(doc)
    cfg = VBoxSyncConfig(vboxconfig=str(doc))
    media = MediaRegistry.load(cfg)
    assert len(media.hard_drives) == 1
    hd = media.hard_drives[0]
    assert hd.location == str(tmp_path / 'HardDisks' / 'TestJeOS.vdi')
    assert hd.parent is media


def test_load_reads_document_fresh(tmp_path: Path) -> None:
    doc = tmp_path / 'VirtualBox.xml'
    _write_doc(doc)
    cfg = VBoxSyncConfig(vboxconfig=str(doc))
    assert len(MediaRegistry.load(cfg).hard_drives) == 1
    _write_doc(
        doc,
        '<HardDisk uuid="{5f7ccd06-78ef-47e9-b2bc-515aedd2f288}" '
        'location="HardDisks/hobobase.vdi" format="VDI" type="Normal"/>',
    )
    drives = MediaRegistry.load(cfg).hard_drives
    assert [d.location.rsplit('/', 1)[-1] for d in drives] == [
        'TestJeOS.vdi',
        'hobobase.vdi',
    ]


def test_load_missing_document(tmp_path: Path) -> None:
    cfg = VBoxSyncConfig(vboxconfig=str(tmp_path / 'missing.xml'))
    with pytest.raises(VBoxSyncError):
        MediaRegistry.load(cfg)


def test_clean_registry_save_makes_no_calls(tmp_path: Path, monkeypatch) -> None:
    doc = tmp_path / 'VirtualBox.xml'
    _write_doc(doc)
    calls = []
    monkeypatch.setattr(
        'vboxsync.hard_drive.vboxmanage', lambda *a, **k: calls.append(a)
    )
    media = MediaRegistry.load(VBoxSyncConfig(vboxconfig=str(doc)))
    assert media.save()
    assert calls == []


def test_load_leaves_callers_config_untouched(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv('HOME', str(tmp_path))
    _write_doc(tmp_path / 'VirtualBox.xml')
    cfg = VBoxSyncConfig(vboxconfig='~/VirtualBox.xml')
    media = MediaRegistry.load(cfg)
    assert len(media.hard_drives) == 1
    assert cfg.vboxconfig == '~/VirtualBox.xml'
