from .config import DesktopEnvironment, InstallConfig, Kernel
from .device import DiskLayout, FilesystemType, LsblkInfo, LsblkOutput, partition_path
from .packages import PackageSet, Repository
from .users import Password, User

__all__ = [
	'DesktopEnvironment',
	'DiskLayout',
	'FilesystemType',
	'InstallConfig',
	'Kernel',
	'LsblkInfo',
	'LsblkOutput',
	'PackageSet',
	'Password',
	'Repository',
	'User',
	'partition_path',
]
