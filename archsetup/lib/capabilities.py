from dataclasses import dataclass

from .chroot import ArchChroot, ChrootExecutor
from .disk.device_handler import DeviceHandler, FilesystemManager
from .disk.luks import EncryptionManager, Luks2Manager
from .disk.lvm import LvmManager, VolumeManager
from .disk.partitioning import PartitionManager, SystemPartitionManager
from .pacman import PackageInstaller, Pacman


@dataclass
class Capabilities:
	"""
	Every external tool the installer drives, grouped by concern.
	The installer only talks to the system through these.
	"""

	partitions: PartitionManager
	encryption: EncryptionManager
	volumes: VolumeManager
	filesystems: FilesystemManager
	packages: PackageInstaller
	chroot: ChrootExecutor

	@classmethod
	def system(cls) -> 'Capabilities':
		return cls(
			partitions=SystemPartitionManager(),
			encryption=Luks2Manager(),
			volumes=LvmManager(),
			filesystems=DeviceHandler(),
			packages=Pacman(),
			chroot=ArchChroot(),
		)
