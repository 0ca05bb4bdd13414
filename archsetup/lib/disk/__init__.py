from .device_handler import DeviceHandler, FilesystemManager
from .filesystem import FilesystemHandler
from .luks import EncryptionManager, Luks2Manager
from .lvm import LvmManager, VolumeManager
from .partitioning import PartitionManager, SystemPartitionManager
from .utils import disk_layouts, is_block_device, list_disks, wait_for_device_nodes

__all__ = [
	'DeviceHandler',
	'EncryptionManager',
	'FilesystemHandler',
	'FilesystemManager',
	'Luks2Manager',
	'LvmManager',
	'PartitionManager',
	'SystemPartitionManager',
	'VolumeManager',
	'disk_layouts',
	'is_block_device',
	'list_disks',
	'wait_for_device_nodes',
]
