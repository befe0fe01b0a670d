"""Tests for the HardDrive entity against a fake VBoxManage gateway."""

from __future__ import annotations

import pytest

from vboxsync.config import VBoxSyncConfig
from vboxsync.errors import (
    AlreadyDestroyed,
    CommandFailed,
    ValidationFailed,
    VBoxSyncError,
)
from vboxsync.hard_drive import HardDrive, hard_drive_attributes
from vboxsync.parser import parse_block
from vboxsync.relationship import DocumentSource, HandleSource

UUID = '11dedd14-57a1-4bdb-adeb-dd1d67f066e1'

FIND_RAW = f"""UUID:                 {UUID}
Accessible:           yes
Description:
Logical size:         20480 MBytes
Current size on disk: 1218 MBytes
Type:                 normal (base)
Storage format:       VDI
In use by VMs:        FooVM (UUID: 696249ad-00b6-4087-b47f-9b82629efc31)
Location:             /Users/x/HardDisks/foo.vdi
"""

MEDIA_XML = """<MediaRegistry>
  <HardDisks>
    <HardDisk uuid="{9d2e4353-d1e9-466c-ac58-f2249264147b}" location="HardDisks/TestJeOS.vdi" format="VDI" type="Normal"/>
    <HardDisk uuid="{5f7ccd06-78ef-47e9-b2bc-515aedd2f288}" location="HardDisks/hobobase.vdi" format="VDI" type="Normal"/>
  </HardDisks>
</MediaRegistry>
"""


class FakeVBoxManage:
    """Records calls and answers per subcommand; can fail all or some calls."""

    def __init__(self, responses=None):
        self.responses = {'showhdinfo': FIND_RAW}
        self.responses.update(responses or {})
        self.calls = []
        self.error = None
        self.failing = {}

    def __call__(self, *args, cfg=None):
        self.calls.append(list(args))
        if self.error is not None:
            raise self.error
        if args[0] in self.failing:
            raise self.failing[args[0]]
        return self.responses.get(args[0], '')

    def fail(self) -> CommandFailed:
        self.error = CommandFailed('showhdinfo', ['x'], 'VBOX_E_OBJECT_NOT_FOUND')
        return self.error


@pytest.fixture
def vbox(monkeypatch):
    fake = FakeVBoxManage(
        {
            'createhd': f'0%...100%\nDisk image created. UUID: {UUID}\n',
            'clonehd': f"Clone medium created in format 'VDI'. UUID: {UUID}\n",
        }
    )
    monkeypatch.setattr('vboxsync.hard_drive.vboxmanage', fake)
    return fake


def _new_drive() -> HardDrive:
    hd = HardDrive()
    hd.location = 'foo.foo'
    hd.size = '758'
    return hd


def test_report_converts_fields() -> None:
    attrs = hard_drive_attributes(parse_block(FIND_RAW))
    assert attrs['uuid'] == UUID
    assert attrs['accessible'] == 'yes'
    assert attrs['size'] == '20480'
    assert attrs['actual_size'] == '1218'
    assert attrs['type'] == 'normal'
    assert attrs['used_by'] == 'FooVM'
    assert attrs['location'] == '/Users/x/HardDisks/foo.vdi'
    assert attrs['description'] == ''


def test_find_parses_proper_fields(vbox) -> None:
    hd = HardDrive.find('foo')
    assert isinstance(hd, HardDrive)
    assert vbox.calls == [['showhdinfo', 'foo']]
    assert hd.uuid == UUID
    assert hd.accessible == 'yes'
    assert hd.size == '20480'
    assert hd.location == '/Users/x/HardDisks/foo.vdi'
    assert not hd.is_new_record
    assert not hd.is_dirty()


def test_find_missing_returns_none_or_raises(vbox) -> None:
    err = vbox.fail()
    assert HardDrive.find('12') is None
    with pytest.raises(CommandFailed) as excinfo:
        HardDrive.find('12', True)
    assert excinfo.value is err


def test_all_builds_one_drive_per_block(vbox) -> None:
    vbox.responses['list'] = (
        'UUID: a\nLocation: /vms/a.vdi\nCapacity: 10 MBytes\n\n'
        'UUID: b\nLocation: /vms/b.vdi\nCapacity: 20 MBytes\n'
    )
    drives = HardDrive.all()
    assert vbox.calls == [['list', 'hdds']]
    assert [d.uuid for d in drives] == ['a', 'b']
    assert [d.size for d in drives] == ['10', '20']


def test_all_failures_propagate(vbox) -> None:
    vbox.fail()
    with pytest.raises(CommandFailed):
        HardDrive.all()


def test_validations() -> None:
    hd = HardDrive()
    hd.size = 2000
    assert hd.validate()
    hd.size = None
    assert not hd.validate()
    hd.size = 700
    assert hd.validate()


def test_create_calls_createhd_and_replaces_attributes(vbox) -> None:
    hd = _new_drive()
    assert hd.is_new_record
    assert hd.save()
    assert vbox.calls[0] == [
        'createhd', '--filename', 'foo.foo', '--size', '758',
        '--format', 'VDI', '--remember',
    ]
    assert vbox.calls[1] == ['showhdinfo', UUID]
    assert hd.uuid == UUID
    assert hd.size == '20480'
    assert not hd.is_new_record
    assert not hd.is_dirty()


def test_create_applies_remaining_settable_attributes(vbox) -> None:
    hd = _new_drive()
    hd.type = 'immutable'
    hd.description = 'base image'
    hd.auto_reset = True
    assert hd.save()
    assert vbox.calls[1] == ['showhdinfo', UUID]
    assert vbox.calls[2] == [
        'modifyhd', UUID, '--description', 'base image',
        '--type', 'immutable', '--autoreset', 'on',
    ]


def test_failed_follow_up_after_create_is_retried_as_update(vbox) -> None:
    hd = _new_drive()
    hd.type = 'bogus'
    vbox.failing['modifyhd'] = CommandFailed('modifyhd', [UUID], 'bad type')
    assert hd.save() is False
    assert [c[0] for c in vbox.calls] == ['createhd', 'showhdinfo', 'modifyhd']
    assert not hd.is_new_record
    assert hd.uuid == UUID
    assert hd.changed_attributes() == ['type']

    vbox.calls.clear()
    vbox.failing.clear()
    assert hd.save()
    assert vbox.calls == [
        ['modifyhd', UUID, '--type', 'bogus'],
        ['showhdinfo', UUID],
    ]
    assert not hd.is_dirty()


def test_existing_record_does_not_create_again(vbox) -> None:
    hd = _new_drive()
    hd.save()
    vbox.calls.clear()
    assert hd.save()
    assert vbox.calls == []


def test_create_failure_follows_flag(vbox) -> None:
    hd = _new_drive()
    err = vbox.fail()
    assert hd.save() is False
    assert hd.is_new_record
    with pytest.raises(CommandFailed) as excinfo:
        hd.save(True)
    assert excinfo.value is err


def test_invalid_drive_is_never_sent(vbox) -> None:
    hd = HardDrive()
    hd.location = 'foo.foo'
    assert hd.save() is False
    with pytest.raises(ValidationFailed):
        hd.save(True)
    assert vbox.calls == []


def test_update_sends_minimal_modifyhd(vbox) -> None:
    hd = HardDrive.find('foo')
    vbox.calls.clear()
    hd.size = '30000'
    assert hd.save()
    assert vbox.calls == [
        ['modifyhd', UUID, '--resize', '30000'],
        ['showhdinfo', UUID],
    ]
    assert not hd.is_dirty()


def test_update_of_unsupported_attribute_raises(vbox) -> None:
    hd = HardDrive.find('foo')
    hd.format = 'VMDK'
    with pytest.raises(VBoxSyncError):
        hd.save()
    assert hd.is_dirty('format')


def test_destroy_calls_closemedium(vbox) -> None:
    hd = HardDrive.find('foo')
    assert hd.destroy()
    assert vbox.calls[-1] == ['closemedium', 'disk', UUID, '--delete']
    with pytest.raises(AlreadyDestroyed):
        hd.destroy()
    with pytest.raises(AlreadyDestroyed):
        hd.clone('bar')


def test_destroy_failure_follows_flag(vbox) -> None:
    hd = HardDrive.find('foo')
    vbox.fail()
    assert hd.destroy() is False
    assert not hd.is_destroyed
    with pytest.raises(CommandFailed):
        hd.destroy(True)


def test_destroy_of_unsaved_drive_sends_nothing(vbox) -> None:
    hd = _new_drive()
    with pytest.raises(VBoxSyncError):
        hd.destroy()
    assert vbox.calls == []


def test_clone_returns_new_drive(vbox) -> None:
    hd = HardDrive.find('foo')
    vbox.calls.clear()
    clone = hd.clone('bar')
    assert vbox.calls[0] == ['clonehd', UUID, 'bar', '--format', 'VDI', '--remember']
    assert isinstance(clone, HardDrive)
    assert clone is not hd
    assert clone.uuid == UUID


def test_clone_failure_follows_flag(vbox) -> None:
    hd = HardDrive.find('foo')
    vbox.fail()
    assert hd.clone('bar') is None
    with pytest.raises(CommandFailed):
        hd.clone('bar', 'VDI', True)


def test_populate_from_document_resolves_locations() -> None:
    cfg = VBoxSyncConfig(vboxconfig='/foo/rawr.rb')
    result = HardDrive.populate_relationship(
        None, DocumentSource.from_text(MEDIA_XML), cfg=cfg
    )
    assert len(result) == 2
    assert result[0].uuid == '9d2e4353-d1e9-466c-ac58-f2249264147b'
    assert result[0].format == 'VDI'
    assert result[0].location == '/foo/HardDisks/TestJeOS.vdi'
    assert result[1].location == '/foo/HardDisks/hobobase.vdi'
    assert not result[0].is_new_record


def test_clean_save_of_document_drive_makes_no_calls(vbox) -> None:
    drives = HardDrive.populate_relationship(
        None, DocumentSource.from_text(MEDIA_XML), cfg=VBoxSyncConfig()
    )
    hd = drives[0]
    assert hd.size is None
    assert not hd.is_dirty()
    assert hd.save()
    assert hd.save(raise_errors=True)
    assert vbox.calls == []


def test_populate_reads_base_path_on_every_call() -> None:
    source = DocumentSource.from_text(MEDIA_XML)
    first = HardDrive.populate_relationship(
        None, source, cfg=VBoxSyncConfig(vboxconfig='/a/VirtualBox.xml')
    )
    second = HardDrive.populate_relationship(
        None, source, cfg=VBoxSyncConfig(vboxconfig='/b/VirtualBox.xml')
    )
    assert first[0].location == '/a/HardDisks/TestJeOS.vdi'
    assert second[0].location == '/b/HardDisks/TestJeOS.vdi'


def test_populate_from_namespaced_document() -> None:
    xml = (
        '<VirtualBox xmlns="http://www.virtualbox.org/"><Global><MediaRegistry>'
        '<HardDisks><HardDisk uuid="{abc}" location="/abs/disk.vdi" '
        'format="VMDK" type="Normal"/></HardDisks>'
        '</MediaRegistry></Global></VirtualBox>'
    )
    cfg = VBoxSyncConfig(vboxconfig='/home/u/.VirtualBox/VirtualBox.xml')
    (hd,) = HardDrive.populate_relationship(
        None, DocumentSource.from_text(xml), cfg=cfg
    )
    assert hd.uuid == 'abc'
    assert hd.location == '/abs/disk.vdi'


def test_populate_from_handle() -> None:
    class Handle:
        def __init__(self, **fields):
            self.fields = fields

        def get(self, field):
            return self.fields.get(field)

    disks = [
        Handle(id='d1', location='/vms/1.vdi', logical_size='10', format='VDI'),
        Handle(id='d2', location='/vms/2.vdi', logical_size='20', format='VMDK'),
    ]
    drives = HardDrive.populate_relationship(None, HandleSource(Handle(hard_drives=disks)))
    assert [d.uuid for d in drives] == ['d1', 'd2']
    assert drives[1].size == '20'
    assert drives[1].format == 'VMDK'
