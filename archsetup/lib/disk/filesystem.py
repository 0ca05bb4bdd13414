from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from ..models.device import ROOT_VOLUME, SWAP_VOLUME, FilesystemType
from ..output import debug, info
from .utils import wait_for_device_nodes

if TYPE_CHECKING:
	from ..capabilities import Capabilities
	from ..models.config import InstallConfig

ESP_MOUNT_OPTIONS = ['fmask=0077', 'dmask=0077']


class FilesystemHandler:
	"""
	Runs the destructive storage chain: wipe, partition, encrypt, LVM,
	format and mount. Nothing is rolled back, the first failure propagates
	and aborts the installation.
	"""

	def __init__(
		self,
		config: InstallConfig,
		capabilities: Capabilities,
		mountpoint: Path = Path('/mnt'),
		wait_for_devices: Callable[[Iterable[Path]], None] = wait_for_device_nodes,
	):
		self._config = config
		self._layout = config.disk_layout
		self._capabilities = capabilities
		self._mountpoint = mountpoint
		self._wait_for_devices = wait_for_devices

	def perform_filesystem_operations(self) -> Path | None:
		"""
		Returns the swap volume when one was created.
		"""
		self.partition()
		self.encrypt()
		swap = self.perform_lvm_operations()
		self.format()
		self.mount(swap)

		return swap

	def partition(self) -> None:
		partitions = self._capabilities.partitions

		partitions.wipe(self._layout.device)
		partitions.create_layout(self._layout.device)
		partitions.settle(self._layout.device)

		self._wait_for_devices([self._layout.efi_partition, self._layout.root_partition])

	def encrypt(self) -> None:
		encryption = self._capabilities.encryption
		password = self._config.luks_password

		encryption.format(self._layout.root_partition, password)
		encryption.open(self._layout.root_partition, self._layout.mapper_name, password)

	def perform_lvm_operations(self) -> Path | None:
		info('Setting up LVM...')
		volumes = self._capabilities.volumes

		volumes.create_physical_volume(self._layout.mapper_path)
		volumes.create_volume_group(self._layout.volume_group, self._layout.mapper_path)

		swap = None
		if self._config.hibernate:
			swap = volumes.create_volume(self._layout.volume_group, SWAP_VOLUME, self._config.swap_size)
			self._capabilities.filesystems.format(FilesystemType.LinuxSwap, swap, label='swap')

		volumes.create_volume(self._layout.volume_group, ROOT_VOLUME)

		return swap

	def format(self) -> None:
		filesystems = self._capabilities.filesystems

		debug(f'Formatting root volume: {self._layout.root_volume}')
		filesystems.format(FilesystemType.Ext4, self._layout.root_volume, label='arch_root')

		debug(f'Formatting EFI partition: {self._layout.efi_partition}')
		filesystems.format(FilesystemType.Fat32, self._layout.efi_partition, label='EFI')

	def mount(self, swap: Path | None) -> None:
		info('Mounting...')
		filesystems = self._capabilities.filesystems

		filesystems.mount(self._layout.root_volume, self._mountpoint)
		filesystems.mount(self._layout.efi_partition, self._mountpoint / 'boot', options=ESP_MOUNT_OPTIONS)

		if swap:
			filesystems.swapon(swap)
