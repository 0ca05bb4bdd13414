import re
import textwrap
import uuid
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from ..models.config import Kernel
from ..models.device import CRYPT_MAPPER_NAME, DiskLayout
from ..output import debug, info

SECURITY_PARAMETERS = (
	'lsm=landlock,lockdown,yama,integrity,apparmor,bpf',
	'audit=1',
	'apparmor=1',
	'security=apparmor',
)

DEFAULT_PARAMETERS = ('rw', 'quiet', 'splash', *SECURITY_PARAMETERS)

_TOKEN = re.compile(r'^\S+$')
_BOOT_PATH = re.compile(r'^/[A-Za-z0-9._-]+$')


class KernelCmdline(BaseModel):
	model_config = ConfigDict(frozen=True)

	luks_uuid: str
	root: Path
	mapper_name: str = CRYPT_MAPPER_NAME
	resume: Path | None = None
	parameters: tuple[str, ...] = DEFAULT_PARAMETERS

	@field_validator('luks_uuid')
	@classmethod
	def _validate_uuid(cls, v: str) -> str:
		return str(uuid.UUID(v.strip()))

	@field_validator('mapper_name')
	@classmethod
	def _validate_mapper_name(cls, v: str) -> str:
		if not re.match(r'^[A-Za-z0-9_-]+$', v):
			raise ValueError(f'Invalid mapper name: {v}')
		return v

	@field_validator('root', 'resume')
	@classmethod
	def _validate_device(cls, v: Path | None) -> Path | None:
		if v is not None and (not v.is_absolute() or not _TOKEN.match(str(v))):
			raise ValueError(f'Invalid device path: {v}')
		return v

	@field_validator('parameters')
	@classmethod
	def _validate_parameters(cls, v: tuple[str, ...]) -> tuple[str, ...]:
		for parameter in v:
			if not _TOKEN.match(parameter):
				raise ValueError(f'Invalid kernel parameter: {parameter!r}')
		return v

	@classmethod
	def for_layout(cls, layout: DiskLayout, luks_uuid: str, hibernate: bool) -> 'KernelCmdline':
		return cls(
			luks_uuid=luks_uuid,
			root=layout.root_volume,
			mapper_name=layout.mapper_name,
			resume=layout.swap_volume if hibernate else None,
		)

	def render(self) -> str:
		params = [
			f'rd.luks.name={self.luks_uuid}={self.mapper_name}',
			f'root={self.root}',
		]

		if self.resume:
			params.append(f'resume={self.resume}')

		return ' '.join(params + list(self.parameters))


class LoaderEntry(BaseModel):
	model_config = ConfigDict(frozen=True)

	title: str
	linux: str
	initrds: tuple[str, ...]
	options: KernelCmdline

	@field_validator('title')
	@classmethod
	def _validate_title(cls, v: str) -> str:
		if not v.strip() or '\n' in v:
			raise ValueError(f'Invalid entry title: {v!r}')
		return v

	@field_validator('linux')
	@classmethod
	def _validate_linux(cls, v: str) -> str:
		if not _BOOT_PATH.match(v):
			raise ValueError(f'Invalid kernel image path: {v}')
		return v

	@field_validator('initrds')
	@classmethod
	def _validate_initrds(cls, v: tuple[str, ...]) -> tuple[str, ...]:
		if not v:
			raise ValueError('At least one initrd is required')

		for initrd in v:
			if not _BOOT_PATH.match(initrd):
				raise ValueError(f'Invalid initrd path: {initrd}')
		return v

	def render(self) -> str:
		lines = [
			f'title   {self.title}',
			f'linux   {self.linux}',
			*(f'initrd  {initrd}' for initrd in self.initrds),
			f'options {self.options.render()}',
		]

		return '\n'.join(lines) + '\n'


class LoaderConf(BaseModel):
	model_config = ConfigDict(frozen=True)

	default: str = 'arch.conf'
	timeout: int = 2
	console_mode: str = 'max'
	editor: bool = False

	def render(self) -> str:
		return textwrap.dedent(
			f"""\
			default {self.default}
			timeout {self.timeout}
			console-mode {self.console_mode}
			editor {'yes' if self.editor else 'no'}
			""",
		)


def loader_entries(kernel: Kernel, ucode: Path | None, cmdline: KernelCmdline) -> dict[str, LoaderEntry]:
	"""
	The default entry and its fallback-initramfs twin, keyed by file name.
	Microcode is loaded as the first initrd when present.
	"""
	microcode = (f'/{ucode}',) if ucode else ()

	entries = {}
	for name, title, initramfs in (
		('arch.conf', 'Arch Linux', kernel.initramfs),
		('arch-fallback.conf', 'Arch Linux (fallback initramfs)', kernel.initramfs_fallback),
	):
		entries[name] = LoaderEntry(
			title=title,
			linux=kernel.vmlinuz,
			initrds=(*microcode, initramfs),
			options=cmdline,
		)

	return entries


def write_loader_files(boot: Path, conf: LoaderConf, entries: dict[str, LoaderEntry]) -> None:
	# Loader configuration is stored in ESP/loader:
	# https://man.archlinux.org/man/loader.conf.5
	loader_dir = boot / 'loader'
	entries_dir = loader_dir / 'entries'
	entries_dir.mkdir(parents=True, exist_ok=True)

	info('Writing systemd-boot loader configuration')
	(loader_dir / 'loader.conf').write_text(conf.render())

	for name, entry in entries.items():
		debug(f'Writing loader entry {name}')
		(entries_dir / name).write_text(entry.render())
