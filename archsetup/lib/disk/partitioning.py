import logging
from abc import ABCMeta, abstractmethod
from pathlib import Path

from ..exceptions import DiskError, SysCallError
from ..general import SysCommand
from ..models.device import FilesystemType
from ..output import debug, error, info, log

MiB = 1024 * 1024

ESP_START = 1 * MiB
ESP_END = 512 * MiB


def partition_geometries(device_length: int, sector_size: int) -> tuple[tuple[int, int], tuple[int, int]]:
	"""
	Returns ``(start, length)`` in sectors for the EFI system partition
	(1 MiB to 512 MiB) and the encrypted root partition that spans the rest
	of the disk. The last MiB is left free for the backup GPT header.
	"""
	mib = MiB // sector_size
	esp_start = ESP_START // sector_size
	esp_length = (ESP_END - ESP_START) // sector_size

	root_start = esp_start + esp_length
	root_end = (device_length // mib) * mib - mib
	root_length = root_end - root_start

	if root_length <= 0:
		raise DiskError(f'Disk too small for the partition layout: {device_length} sectors of {sector_size} bytes')

	return (esp_start, esp_length), (root_start, root_length)


class PartitionManager(metaclass=ABCMeta):
	@abstractmethod
	def wipe(self, device: Path) -> None:
		"""
		Removes filesystem signatures and zaps the partition table
		"""

	@abstractmethod
	def create_layout(self, device: Path) -> None:
		"""
		Writes a fresh GPT with an EFI system partition and one partition
		spanning the remainder of the disk
		"""

	@abstractmethod
	def settle(self, device: Path) -> None:
		"""
		Asks the kernel to re-read the partition table and waits for udev
		"""


class SystemPartitionManager(PartitionManager):
	def wipe(self, device: Path) -> None:
		info(f'Wiping {device}...')

		for cmd in (['wipefs', '-af', str(device)], ['sgdisk', '-Zo', str(device)]):
			try:
				SysCommand(cmd)
			except SysCallError as err:
				raise DiskError(f'Could not wipe {device}: {err.message}') from err

	def create_layout(self, device: Path) -> None:
		import parted  # type: ignore[import-untyped]

		info(f'Creating partitions: {device}')

		try:
			parted_device = parted.getDevice(str(device))
		except parted.IOException as err:
			raise DiskError(f'Unable to open {device}: {err}') from err

		disk = parted.freshDisk(parted_device, 'gpt')
		esp, root = partition_geometries(parted_device.length, parted_device.sectorSize)

		for name, (start, length), fs_type in (
			('ESP', esp, FilesystemType.Fat32),
			('cryptroot', root, None),
		):
			geometry = parted.Geometry(device=parted_device, start=start, length=length)
			filesystem = parted.FileSystem(type=fs_type.value, geometry=geometry) if fs_type else None

			partition = parted.Partition(
				disk=disk,
				type=parted.PARTITION_NORMAL,
				fs=filesystem,
				geometry=geometry,
			)

			if fs_type == FilesystemType.Fat32:
				partition.setFlag(parted.PARTITION_ESP)

			debug(f'\tName: {name}')
			debug(f'\tGeometry: {start} start sector, {length} length')

			try:
				disk.addPartition(partition=partition, constraint=parted_device.optimalAlignedConstraint)
			except parted.PartitionException as ex:
				raise DiskError(f'Unable to add partition, most likely due to overlapping sectors: {ex}') from ex

			partition.set_name(name)

		disk.commit()

	def settle(self, device: Path) -> None:
		command = ['partprobe', str(device)]

		try:
			debug(f'Calling partprobe: {command}')
			SysCommand(command)
		except SysCallError as err:
			if 'have been written, but we have been unable to inform the kernel of the change' in str(err):
				log(f'Partprobe was not able to inform the kernel of the new disk state (ignoring error): {err}', fg='gray', level=logging.INFO)
			else:
				error(f'"{" ".join(command)}" failed to run (continuing anyway): {err}')

		try:
			SysCommand('udevadm settle')
		except SysCallError as err:
			debug(f'Failed to synchronize with udev: {err}')
