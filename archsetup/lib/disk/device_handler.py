from abc import ABCMeta, abstractmethod
from pathlib import Path

from ..exceptions import DiskError, SysCallError, UnknownFilesystemFormat
from ..general import SysCommand
from ..models.device import FilesystemType
from ..output import debug, error


class FilesystemManager(metaclass=ABCMeta):
	@abstractmethod
	def format(self, fs_type: FilesystemType, path: Path, label: str | None = None) -> None: ...

	@abstractmethod
	def mount(self, dev_path: Path, target_mountpoint: Path, options: list[str] = []) -> None: ...

	@abstractmethod
	def swapon(self, path: Path) -> None: ...


class DeviceHandler(FilesystemManager):
	def format(self, fs_type: FilesystemType, path: Path, label: str | None = None) -> None:
		mkfs_type = fs_type.value
		command = None
		options = []

		match fs_type:
			case FilesystemType.Ext4:
				# Force create
				options.append('-F')
				if label:
					options.extend(('-L', label))
			case FilesystemType.Fat32:
				mkfs_type = 'fat'
				# Set FAT size
				options.extend(('-F', fs_type.value.removeprefix(mkfs_type)))
				if label:
					options.extend(('-n', label))
			case FilesystemType.LinuxSwap:
				command = 'mkswap'
				if label:
					options.extend(('-L', label))
			case _:
				raise UnknownFilesystemFormat(f'Filetype "{fs_type.value}" is not supported')

		if not command:
			command = f'mkfs.{mkfs_type}'

		cmd = [command, *options, str(path)]

		debug('Formatting filesystem:', ' '.join(cmd))

		try:
			SysCommand(cmd)
		except SysCallError as err:
			msg = f'Could not format {path} with {fs_type.value}: {err.message}'
			error(msg)
			raise DiskError(msg) from err

	def mount(self, dev_path: Path, target_mountpoint: Path, options: list[str] = []) -> None:
		target_mountpoint.mkdir(parents=True, exist_ok=True)

		cmd = ['mount']

		if len(options):
			cmd.extend(('-o', ','.join(options)))

		cmd.extend((str(dev_path), str(target_mountpoint)))

		debug(f'Mounting {dev_path}: {" ".join(cmd)}')

		try:
			SysCommand(cmd)
		except SysCallError as err:
			raise DiskError(f'Could not mount {dev_path}: {" ".join(cmd)}\n{err.message}')

	def swapon(self, path: Path) -> None:
		try:
			SysCommand(['swapon', str(path)])
		except SysCallError as err:
			raise DiskError(f'Could not enable swap {path}:\n{err.message}')
