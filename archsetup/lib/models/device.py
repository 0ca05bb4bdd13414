from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

CRYPT_MAPPER_NAME = 'cryptroot'
VOLUME_GROUP = 'vg0'
ROOT_VOLUME = 'root'
SWAP_VOLUME = 'swap'


class FilesystemType(Enum):
	Ext4 = 'ext4'
	Fat32 = 'fat32'
	LinuxSwap = 'linux-swap'


def partition_path(disk: str | Path, index: int) -> Path:
	"""
	NVMe (and other namespace style) device names end in a digit, the kernel
	separates the partition index from them with a ``p``: nvme0n1 -> nvme0n1p1.
	"""
	device = Path('/dev') / Path(str(disk)).name
	separator = 'p' if 'nvme' in device.name else ''

	return device.with_name(f'{device.name}{separator}{index}')


@dataclass(frozen=True)
class DiskLayout:
	device: Path
	efi_partition: Path
	root_partition: Path
	mapper_name: str = CRYPT_MAPPER_NAME
	volume_group: str = VOLUME_GROUP

	@classmethod
	def from_disk_name(cls, disk: str) -> DiskLayout:
		return cls(
			device=Path('/dev') / Path(disk).name,
			efi_partition=partition_path(disk, 1),
			root_partition=partition_path(disk, 2),
		)

	@property
	def mapper_path(self) -> Path:
		return Path('/dev/mapper') / self.mapper_name

	@property
	def root_volume(self) -> Path:
		return Path('/dev/mapper') / f'{self.volume_group}-{ROOT_VOLUME}'

	@property
	def swap_volume(self) -> Path:
		return Path('/dev/mapper') / f'{self.volume_group}-{SWAP_VOLUME}'

	def json(self) -> dict[str, str]:
		return {
			'device': str(self.device),
			'efi_partition': str(self.efi_partition),
			'root_partition': str(self.root_partition),
			'mapper': str(self.mapper_path),
			'root_volume': str(self.root_volume),
			'swap_volume': str(self.swap_volume),
		}


class LsblkInfo(BaseModel):
	name: str
	path: Path
	size: int
	type: str | None
	model: str | None = None
	tran: str | None = None
	mountpoints: list[Path] = Field(default_factory=list)
	children: list[LsblkInfo] = Field(default_factory=list)

	@field_validator('mountpoints', mode='before')
	@classmethod
	def remove_none(cls, v: list[Path | None] | None) -> list[Path]:
		if v is None:
			return []
		return [item for item in v if item is not None]

	@classmethod
	def fields(cls) -> list[str]:
		return [field.alias or name for name, field in cls.model_fields.items() if name != 'children']


class LsblkOutput(BaseModel):
	blockdevices: list[LsblkInfo]
