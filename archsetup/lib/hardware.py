import os
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path

from .exceptions import RequirementError, SysCallError
from .general import SysCommand
from .output import debug, info, warn

PORTABLE_CHASSIS_TYPES = frozenset({8, 9, 10, 14, 31, 32})

GENERIC_GPU_PACKAGES = ['mesa', 'lib32-mesa']

_DISPLAY_CLASS = re.compile(r'VGA|3D|Display')


class CpuVendor(Enum):
	AuthenticAMD = 'amd'
	GenuineIntel = 'intel'
	_Unknown = 'unknown'

	@classmethod
	def get_vendor(cls, name: str) -> 'CpuVendor':
		if vendor := getattr(cls, name, None):
			return vendor
		else:
			debug(f"Unknown CPU vendor '{name}' detected.")
			return cls._Unknown

	def _has_microcode(self) -> bool:
		match self:
			case CpuVendor.AuthenticAMD | CpuVendor.GenuineIntel:
				return True
			case _:
				return False

	def get_ucode_package(self) -> str | None:
		if self._has_microcode():
			return f'{self.value}-ucode'
		return None

	def get_ucode(self) -> Path | None:
		if self._has_microcode():
			return Path(self.value + '-ucode.img')
		return None


class GpuVendor(Enum):
	Nvidia = 'nvidia'
	Amd = 'amd'
	Intel = 'intel'

	def packages(self) -> list[str]:
		match self:
			case GpuVendor.Nvidia:
				return ['nvidia-dkms', 'nvidia-utils', 'lib32-nvidia-utils', 'nvidia-settings']
			case GpuVendor.Amd:
				return ['mesa', 'lib32-mesa', 'vulkan-radeon', 'lib32-vulkan-radeon', 'xf86-video-amdgpu']
			case GpuVendor.Intel:
				return ['mesa', 'lib32-mesa', 'vulkan-intel', 'lib32-vulkan-intel']


class Chassis(Enum):
	Laptop = 'laptop'
	Desktop = 'desktop'

	@classmethod
	def from_code(cls, code: int | None) -> 'Chassis':
		if code in PORTABLE_CHASSIS_TYPES:
			return cls.Laptop
		return cls.Desktop


@dataclass(frozen=True)
class HardwareProfile:
	cpu_vendor: CpuVendor = CpuVendor._Unknown
	gpu_vendors: tuple[GpuVendor, ...] = field(default_factory=tuple)
	chassis: Chassis = Chassis.Desktop

	@property
	def ucode_package(self) -> str | None:
		return self.cpu_vendor.get_ucode_package()

	@property
	def ucode(self) -> Path | None:
		return self.cpu_vendor.get_ucode()

	@property
	def is_laptop(self) -> bool:
		return self.chassis == Chassis.Laptop

	def gpu_packages(self) -> list[str]:
		"""
		Driver packages for every detected GPU vendor, in detection order.
		Falls back to the generic mesa stack when nothing was recognised.
		"""
		if not self.gpu_vendors:
			return list(GENERIC_GPU_PACKAGES)

		packages: list[str] = []
		for vendor in self.gpu_vendors:
			packages += vendor.packages()

		return packages

	def json(self) -> dict[str, str | list[str] | None]:
		return {
			'cpu_vendor': self.cpu_vendor.value,
			'ucode': self.ucode_package,
			'gpu_vendors': [vendor.value for vendor in self.gpu_vendors],
			'chassis': self.chassis.value,
		}


def parse_cpu_vendor(cpuinfo: str) -> CpuVendor:
	for line in cpuinfo.splitlines():
		if ':' not in line:
			continue

		key, value = line.split(':', maxsplit=1)
		if key.strip() == 'vendor_id':
			return CpuVendor.get_vendor(value.strip())

	return CpuVendor._Unknown


def parse_gpu_vendors(lspci_output: str) -> tuple[GpuVendor, ...]:
	"""
	Every vendor mentioned by a display-class controller is reported,
	a machine with an Intel iGPU and an Nvidia dGPU yields both.
	"""
	controllers = [line.lower() for line in lspci_output.splitlines() if _DISPLAY_CLASS.search(line)]

	return tuple(
		vendor
		for vendor in GpuVendor
		if any(vendor.value in controller for controller in controllers)
	)


def parse_chassis(raw: str) -> Chassis:
	try:
		return Chassis.from_code(int(raw.strip()))
	except ValueError:
		debug(f'Unparsable chassis type: {raw!r}')
		return Chassis.Desktop


def _lspci() -> str:
	return SysCommand(['lspci', '-mm']).decode()


class HardwareDetector:
	def __init__(
		self,
		cpuinfo_path: Path = Path('/proc/cpuinfo'),
		chassis_path: Path = Path('/sys/class/dmi/id/chassis_type'),
		lspci: Callable[[], str] = _lspci,
	):
		self._cpuinfo_path = cpuinfo_path
		self._chassis_path = chassis_path
		self._lspci = lspci
		self._profile: HardwareProfile | None = None

	def detect(self) -> HardwareProfile:
		"""
		Detection happens once, later calls return the same profile.
		"""
		if self._profile is None:
			self._profile = HardwareProfile(
				cpu_vendor=self._detect_cpu(),
				gpu_vendors=self._detect_gpus(),
				chassis=self._detect_chassis(),
			)
			debug(f'Hardware profile: {self._profile.json()}')

		return self._profile

	def _detect_cpu(self) -> CpuVendor:
		info('Detecting CPU vendor...')
		try:
			vendor = parse_cpu_vendor(self._cpuinfo_path.read_text())
		except OSError as err:
			debug(f'Could not read {self._cpuinfo_path}: {err}')
			vendor = CpuVendor._Unknown

		if vendor.get_ucode_package():
			info(f'{vendor.name} CPU detected, staging {vendor.get_ucode_package()}')
		else:
			warn('Unknown CPU vendor, skipping microcode')

		return vendor

	def _detect_gpus(self) -> tuple[GpuVendor, ...]:
		info('Scanning PCI bus for GPUs...')
		try:
			vendors = parse_gpu_vendors(self._lspci())
		except (SysCallError, RequirementError, OSError) as err:
			debug(f'Could not enumerate PCI devices: {err}')
			return ()

		for vendor in vendors:
			info(f'{vendor.name} GPU detected')

		return vendors

	def _detect_chassis(self) -> Chassis:
		try:
			chassis = parse_chassis(self._chassis_path.read_text())
		except OSError as err:
			debug(f'Could not read {self._chassis_path}: {err}')
			chassis = Chassis.Desktop

		info(f'Chassis type: {chassis.value}')
		return chassis


class _SysInfo:
	@cached_property
	def cpu_info(self) -> dict[str, str]:
		"""
		Returns system cpu information
		"""
		cpu_info_path = Path('/proc/cpuinfo')
		cpu: dict[str, str] = {}

		with cpu_info_path.open() as file:
			for line in file:
				if (line := line.strip()) and ':' in line:
					key, value = line.split(':', maxsplit=1)
					cpu[key.strip()] = value.strip()

		return cpu

	@cached_property
	def mem_info(self) -> dict[str, int]:
		"""
		Returns system memory information
		"""
		mem_info_path = Path('/proc/meminfo')
		mem_info: dict[str, int] = {}

		with mem_info_path.open() as file:
			for line in file:
				key, value = line.strip().split(':')
				num = value.split()[0]
				mem_info[key] = int(num)

		return mem_info


_sys_info = _SysInfo()


class SysInfo:
	@staticmethod
	def has_uefi(efivars: Path = Path('/sys/firmware/efi/efivars')) -> bool:
		return os.path.isdir(efivars)

	@staticmethod
	def cpu_model() -> str | None:
		return _sys_info.cpu_info.get('model name', None)

	@staticmethod
	def mem_total() -> int:
		return _sys_info.mem_info['MemTotal']
