from abc import ABCMeta, abstractmethod
from pathlib import Path

from ..exceptions import DiskError, SysCallError
from ..general import SysCommand
from ..output import debug


class VolumeManager(metaclass=ABCMeta):
	@abstractmethod
	def create_physical_volume(self, path: Path) -> None: ...

	@abstractmethod
	def create_volume_group(self, name: str, physical_volume: Path) -> None: ...

	@abstractmethod
	def create_volume(self, volume_group: str, name: str, size_gib: int | None = None) -> Path:
		"""
		Creates a logical volume of ``size_gib`` GiB, or one that consumes
		all remaining free space when no size is given.
		"""


class LvmManager(VolumeManager):
	@staticmethod
	def _run(cmd: list[str], message: str) -> None:
		debug(f'{message}: {" ".join(cmd)}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'{message} failed: {err.message}') from err

	def create_physical_volume(self, path: Path) -> None:
		self._run(['pvcreate', '--yes', str(path)], 'Creating LVM PVS')

	def create_volume_group(self, name: str, physical_volume: Path) -> None:
		self._run(['vgcreate', '--yes', name, str(physical_volume)], 'Creating LVM group')

	def create_volume(self, volume_group: str, name: str, size_gib: int | None = None) -> Path:
		if size_gib is not None:
			size_args = ['-L', f'{size_gib}G']
		else:
			size_args = ['-l', '100%FREE']

		self._run(['lvcreate', '--yes', *size_args, '-n', name, volume_group], 'Creating volume')

		return Path('/dev/mapper') / f'{volume_group}-{name}'
