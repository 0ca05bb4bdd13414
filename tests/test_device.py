from pathlib import Path

import pytest
from pytest import MonkeyPatch

from archsetup.lib.disk import utils
from archsetup.lib.disk.utils import list_disks
from archsetup.lib.models.device import DiskLayout, LsblkOutput, partition_path


@pytest.mark.parametrize(
	'disk, expected',
	[
		('nvme0n1', ('/dev/nvme0n1p1', '/dev/nvme0n1p2')),
		('nvme1n2', ('/dev/nvme1n2p1', '/dev/nvme1n2p2')),
		('sda', ('/dev/sda1', '/dev/sda2')),
		('vdb', ('/dev/vdb1', '/dev/vdb2')),
	],
)
def test_partition_paths(disk: str, expected: tuple[str, str]) -> None:
	assert (str(partition_path(disk, 1)), str(partition_path(disk, 2))) == expected


def test_partition_path_accepts_device_path() -> None:
	assert partition_path(Path('/dev/nvme0n1'), 2) == Path('/dev/nvme0n1p2')


def test_disk_layout_from_nvme() -> None:
	layout = DiskLayout.from_disk_name('nvme0n1')

	assert layout.device == Path('/dev/nvme0n1')
	assert layout.efi_partition == Path('/dev/nvme0n1p1')
	assert layout.root_partition == Path('/dev/nvme0n1p2')
	assert layout.mapper_path == Path('/dev/mapper/cryptroot')
	assert layout.root_volume == Path('/dev/mapper/vg0-root')
	assert layout.swap_volume == Path('/dev/mapper/vg0-swap')


def test_disk_layout_is_deterministic() -> None:
	assert DiskLayout.from_disk_name('sda') == DiskLayout.from_disk_name('sda')


def test_lsblk_lists_only_whole_disks(data_dir: Path, monkeypatch: MonkeyPatch) -> None:
	lsblk = LsblkOutput.model_validate_json((data_dir / 'lsblk.json').read_text())
	monkeypatch.setattr(utils, '_fetch_lsblk_info', lambda dev_path=None: lsblk)

	disks = list_disks()

	assert [disk.name for disk in disks] == ['/dev/sda', '/dev/nvme0n1']
	assert disks[0].model == 'Samsung SSD 870'
	assert disks[0].mountpoints == []
	assert disks[0].children[0].path == Path('/dev/sda1')
	assert disks[1].size == 512110190592
