import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .device import DiskLayout
from .users import Password, User, is_valid_username

DEFAULT_HOSTNAME = 'archlinux'

_HOSTNAME_LABEL = re.compile(r'^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$', re.IGNORECASE)
_TIMEZONE = re.compile(r'^[A-Za-z0-9_+-]+(/[A-Za-z0-9_+-]+)*$')


class DesktopEnvironment(Enum):
	Sway = 'sway'
	Gnome = 'gnome'
	Kde = 'kde'

	@property
	def display_name(self) -> str:
		match self:
			case DesktopEnvironment.Sway:
				return 'Sway'
			case DesktopEnvironment.Gnome:
				return 'Gnome'
			case DesktopEnvironment.Kde:
				return 'KDE'


class Kernel(Enum):
	Linux = 'linux'
	LinuxZen = 'linux-zen'

	@property
	def headers(self) -> str:
		return f'{self.value}-headers'

	@property
	def vmlinuz(self) -> str:
		return f'/vmlinuz-{self.value}'

	@property
	def initramfs(self) -> str:
		return f'/initramfs-{self.value}.img'

	@property
	def initramfs_fallback(self) -> str:
		return f'/initramfs-{self.value}-fallback.img'


def is_valid_hostname(hostname: str) -> bool:
	if len(hostname) > 253:
		return False

	return all(_HOSTNAME_LABEL.match(label) for label in hostname.split('.'))


class InstallConfig(BaseModel):
	"""
	The immutable result of the collection phase. Everything that executes
	afterwards receives this object explicitly and never mutates it.
	Secrets are excluded from every serialized form.
	"""

	model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, populate_by_name=True)

	hostname: str = DEFAULT_HOSTNAME
	disk: str
	gaming: bool = False
	hibernate: bool = False
	desktop: DesktopEnvironment = DesktopEnvironment.Sway
	username: str
	password: Password = Field(alias='!password', exclude=True, repr=False)
	encryption_password: Password | None = Field(default=None, alias='!encryption_password', exclude=True, repr=False)
	locale: str = 'en_US.UTF-8'
	keymap: str = 'us-acentos'
	timezone: str = 'America/Sao_Paulo'
	swap_size: int = Field(default=34, gt=0)
	mirror_countries: tuple[str, ...] = ('Brazil', 'United States')
	aur_packages: tuple[str, ...] = ()

	@field_validator('hostname', mode='before')
	@classmethod
	def _default_hostname(cls, v: Any) -> Any:
		if v is None or (isinstance(v, str) and not v.strip()):
			return DEFAULT_HOSTNAME
		return v.strip() if isinstance(v, str) else v

	@field_validator('hostname')
	@classmethod
	def _validate_hostname(cls, v: str) -> str:
		if not is_valid_hostname(v):
			raise ValueError(f'Invalid hostname: {v}')
		return v

	@field_validator('disk', mode='before')
	@classmethod
	def _strip_dev_prefix(cls, v: Any) -> Any:
		if isinstance(v, str):
			v = v.strip().removeprefix('/dev/')
			if not v or '/' in v:
				raise ValueError(f'Invalid disk name: {v}')
		return v

	@field_validator('username')
	@classmethod
	def _validate_username(cls, v: str) -> str:
		if not is_valid_username(v):
			raise ValueError(f'Invalid username: {v}')
		return v

	@field_validator('password', 'encryption_password', mode='before')
	@classmethod
	def _parse_password(cls, v: Any) -> Any:
		if isinstance(v, str):
			return Password(v) if v else None
		return v

	@field_validator('timezone')
	@classmethod
	def _validate_timezone(cls, v: str) -> str:
		if not _TIMEZONE.match(v) or '..' in v:
			raise ValueError(f'Invalid timezone: {v}')
		return v

	@property
	def kernel(self) -> Kernel:
		return Kernel.LinuxZen if self.gaming else Kernel.Linux

	@property
	def disk_layout(self) -> DiskLayout:
		return DiskLayout.from_disk_name(self.disk)

	@property
	def luks_password(self) -> Password:
		return self.encryption_password or self.password

	@property
	def user(self) -> User:
		return User(username=self.username, password=self.password)

	def safe_json(self) -> dict[str, Any]:
		return self.model_dump(mode='json')
