import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from pytest import MonkeyPatch

from archsetup.lib.capabilities import Capabilities
from archsetup.lib.chroot import ChrootExecutor
from archsetup.lib.disk.device_handler import FilesystemManager
from archsetup.lib.disk.luks import EncryptionManager
from archsetup.lib.disk.lvm import VolumeManager
from archsetup.lib.disk.partitioning import PartitionManager
from archsetup.lib.exceptions import SysCallError
from archsetup.lib.hardware import Chassis, CpuVendor, HardwareProfile
from archsetup.lib.models.config import InstallConfig
from archsetup.lib.models.device import FilesystemType
from archsetup.lib.models.users import Password
from archsetup.lib.output import logger
from archsetup.lib.pacman import PackageInstaller

LUKS_UUID = '0b3d1f6e-2c4a-4f7e-9a51-8d2b6c0e7f13'

FSTAB = (
	'# /dev/mapper/vg0-root\n'
	'UUID=1111-root\t/\text4\trw,relatime\t0 1\n\n'
	'# /dev/nvme0n1p1 LABEL=EFI\n'
	'UUID=ABCD-EF01\t/boot\tvfat\trw,relatime,fmask=0022,dmask=0022,codepage=437\t0 2\n'
)


@pytest.fixture(autouse=True)
def log_dir(tmp_path: Path, monkeypatch: MonkeyPatch) -> Path:
	directory = tmp_path / 'log'
	directory.mkdir()
	monkeypatch.setattr(logger, '_path', directory)
	return directory


@pytest.fixture(scope='session')
def data_dir() -> Path:
	return Path(__file__).parent / 'data'


@pytest.fixture(scope='session')
def config_fixture(data_dir: Path) -> Path:
	return data_dir / 'test_config.json'


@pytest.fixture(scope='session')
def creds_fixture(data_dir: Path) -> Path:
	return data_dir / 'test_creds.json'


@pytest.fixture
def make_config() -> Callable[..., InstallConfig]:
	def _make(**overrides: Any) -> InstallConfig:
		values: dict[str, Any] = {
			'hostname': 'box',
			'disk': 'nvme0n1',
			'gaming': False,
			'hibernate': False,
			'desktop': 'sway',
			'username': 'alice',
			'password': 'hunter2',
		}
		values.update(overrides)
		return InstallConfig(**values)

	return _make


@pytest.fixture
def intel_desktop() -> HardwareProfile:
	return HardwareProfile(cpu_vendor=CpuVendor.GenuineIntel, chassis=Chassis.Desktop)


class FakePartitionManager(PartitionManager):
	def __init__(self, calls: list[tuple[Any, ...]]):
		self.calls = calls

	def wipe(self, device: Path) -> None:
		self.calls.append(('wipe', device))

	def create_layout(self, device: Path) -> None:
		self.calls.append(('create_layout', device))

	def settle(self, device: Path) -> None:
		self.calls.append(('settle', device))


class FakeEncryptionManager(EncryptionManager):
	def __init__(self, calls: list[tuple[Any, ...]]):
		self.calls = calls
		self.passwords: list[Password] = []

	def format(self, partition: Path, password: Password) -> None:
		self.passwords.append(password)
		self.calls.append(('luks_format', partition))

	def open(self, partition: Path, mapper_name: str, password: Password) -> Path:
		self.calls.append(('luks_open', partition, mapper_name))
		return Path('/dev/mapper') / mapper_name

	def uuid(self, partition: Path) -> str:
		self.calls.append(('luks_uuid', partition))
		return LUKS_UUID


class FakeVolumeManager(VolumeManager):
	def __init__(self, calls: list[tuple[Any, ...]]):
		self.calls = calls

	def create_physical_volume(self, path: Path) -> None:
		self.calls.append(('pvcreate', path))

	def create_volume_group(self, name: str, physical_volume: Path) -> None:
		self.calls.append(('vgcreate', name, physical_volume))

	def create_volume(self, volume_group: str, name: str, size_gib: int | None = None) -> Path:
		self.calls.append(('lvcreate', name, size_gib))
		return Path('/dev/mapper') / f'{volume_group}-{name}'


class FakeFilesystemManager(FilesystemManager):
	def __init__(self, calls: list[tuple[Any, ...]]):
		self.calls = calls

	def format(self, fs_type: FilesystemType, path: Path, label: str | None = None) -> None:
		self.calls.append(('mkfs', fs_type, path, label))

	def mount(self, dev_path: Path, target_mountpoint: Path, options: list[str] = []) -> None:
		self.calls.append(('mount', dev_path, target_mountpoint, list(options)))

	def swapon(self, path: Path) -> None:
		self.calls.append(('swapon', path))


class FakePackageInstaller(PackageInstaller):
	def __init__(self, calls: list[tuple[Any, ...]], fstab: str = FSTAB):
		self.calls = calls
		self.fstab = fstab
		self.strapped: list[str] = []

	def rank_mirrors(self, countries: list[str]) -> None:
		self.calls.append(('reflector', tuple(countries)))

	def strap(self, target: Path, packages: list[str]) -> None:
		self.strapped = list(packages)
		self.calls.append(('pacstrap', target))

	def genfstab(self, target: Path) -> str:
		self.calls.append(('genfstab', target))
		return self.fstab


class FakeChroot(ChrootExecutor):
	def __init__(self, calls: list[tuple[Any, ...]], failing: set[str] | None = None):
		self.calls = calls
		self.failing = failing or set()
		self.inputs: list[bytes | None] = []

	def run(
		self,
		target: Path,
		cmd: list[str],
		input_data: bytes | None = None,
		run_as: str | None = None,
	) -> str:
		self.calls.append(('chroot', tuple(cmd), run_as))
		self.inputs.append(input_data)

		if ' '.join(cmd) in self.failing:
			raise SysCallError(f'{" ".join(cmd)} exited with abnormal exit code [1]', 1)

		return ''


class FakeCapabilities(Capabilities):
	@classmethod
	def recording(cls, failing: set[str] | None = None) -> 'FakeCapabilities':
		calls: list[tuple[Any, ...]] = []

		capabilities = cls(
			partitions=FakePartitionManager(calls),
			encryption=FakeEncryptionManager(calls),
			volumes=FakeVolumeManager(calls),
			filesystems=FakeFilesystemManager(calls),
			packages=FakePackageInstaller(calls),
			chroot=FakeChroot(calls, failing),
		)
		capabilities.calls = calls
		return capabilities

	def chroot_commands(self) -> list[str]:
		return [' '.join(call[1]) for call in self.calls if call[0] == 'chroot']


@pytest.fixture
def capabilities() -> FakeCapabilities:
	return FakeCapabilities.recording()


@pytest.fixture
def target_root(tmp_path: Path, data_dir: Path) -> Path:
	"""
	A minimal freshly strapped root with the files the configuration
	steps edit in place.
	"""
	root = tmp_path / 'mnt'
	(root / 'etc').mkdir(parents=True)
	(root / 'boot').mkdir()

	shutil.copy(data_dir / 'pacman.conf', root / 'etc/pacman.conf')
	shutil.copy(data_dir / 'mkinitcpio.conf', root / 'etc/mkinitcpio.conf')
	shutil.copy(data_dir / 'locale.gen', root / 'etc/locale.gen')

	return root


@pytest.fixture
def host_pacman_conf(tmp_path: Path, data_dir: Path) -> Path:
	path = tmp_path / 'host-pacman.conf'
	shutil.copy(data_dir / 'pacman.conf', path)
	return path
