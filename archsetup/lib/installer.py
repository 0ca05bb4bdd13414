import os
import re
import shutil
import textwrap
from collections.abc import Callable, Iterable
from pathlib import Path
from types import TracebackType

from archsetup.default_profiles.desktops import desktop_profile

from .aur import AurHelper
from .bootloader.systemd_boot import KernelCmdline, LoaderConf, loader_entries, write_loader_files
from .capabilities import Capabilities
from .disk.filesystem import FilesystemHandler
from .disk.utils import wait_for_device_nodes
from .exceptions import RequirementError, ServiceException, SysCallError
from .hardware import HardwareProfile
from .mkinitcpio import Mkinitcpio, hooks
from .models.config import InstallConfig
from .models.packages import Repository
from .output import debug, error, info, log, logger, warn
from .pacman.config import PacmanConfig

SUDOERS_RULE = '%wheel ALL=(ALL:ALL) ALL\n'

ZRAM_CONFIG = textwrap.dedent(
	"""\
	[zram0]
	zram-size = min(ram / 2, 8192)
	compression-algorithm = zstd
	""",
)

SYSCTL_CONFIG = 'vm.swappiness=10\n'

CRITICAL_SERVICES = ['NetworkManager']

AUXILIARY_SERVICES = [
	'bluetooth',
	'chronyd',
	'firewalld',
	'docker',
	'fstrim.timer',
	'pcscd',
	'cups',
	'apparmor',
]

LAPTOP_SERVICES = ['power-profiles-daemon']


class Installer:
	def __init__(
		self,
		config: InstallConfig,
		hardware: HardwareProfile,
		capabilities: Capabilities,
		target: Path = Path('/mnt'),
		host_pacman_conf: Path = Path('/etc/pacman.conf'),
		skip_mirrors: bool = False,
		wait_for_devices: Callable[[Iterable[Path]], None] = wait_for_device_nodes,
	):
		"""
		`Installer()` drives the execute phase: storage, packages and the
		configuration of the installed system. It only touches the system
		through the given capabilities and files below ``target``.
		"""
		self.config = config
		self.hardware = hardware
		self.capabilities = capabilities
		self.target = target
		self.profile = desktop_profile(config.desktop)

		self._host_pacman_conf = host_pacman_conf
		self._skip_mirrors = skip_mirrors
		self._wait_for_devices = wait_for_devices
		self._swap: Path | None = None
		self._base_strapped = False

	def __enter__(self) -> 'Installer':
		return self

	def __exit__(self, exc_type: type[BaseException] | None, exc_value: BaseException | None, traceback: TracebackType | None) -> bool | None:
		if exc_type is not None:
			error(str(exc_value))

			self.sync_log_to_install_medium()

			# The log on the live medium is the one to keep, the copy inside
			# the target may be incomplete
			print(f'[!] A log file has been created here: {logger.path}')

			# Return None to propagate the exception
			return None

		self.sync()

		msg = f'Installation completed without any errors.\nLog files temporarily available at {logger.directory}.\nYou may reboot when ready.\n'
		log(msg, fg='green')
		self.sync_log_to_install_medium()
		return True

	def sync(self) -> None:
		info('Syncing the system...')
		os.sync()

	def chroot(self, cmd: list[str], input_data: bytes | None = None, run_as: str | None = None) -> str:
		return self.capabilities.chroot.run(self.target, cmd, input_data=input_data, run_as=run_as)

	def sync_log_to_install_medium(self) -> bool:
		# Copy over the install log (if there is one) to the install medium if
		# at least the base has been strapped in, otherwise we won't have a filesystem/structure to copy to.
		if not self._base_strapped:
			return False

		absolute_logfile = logger.path
		destination = self.target / absolute_logfile.relative_to(absolute_logfile.anchor)

		try:
			destination.parent.mkdir(parents=True, exist_ok=True)
			shutil.copy2(absolute_logfile, destination)
		except OSError as err:
			warn(f'Could not copy the install log into the target: {err}')
			return False

		return True

	def prepare_storage(self) -> None:
		handler = FilesystemHandler(
			self.config,
			self.capabilities,
			mountpoint=self.target,
			wait_for_devices=self._wait_for_devices,
		)

		self._swap = handler.perform_filesystem_operations()

	def set_mirrors(self) -> None:
		if self._skip_mirrors:
			info('Skipping mirror ranking')
			return

		try:
			self.capabilities.packages.rank_mirrors(list(self.config.mirror_countries))
		except (SysCallError, RequirementError) as err:
			warn(f'Could not rank mirrors, continuing with the current mirrorlist: {err}')

	def _pacman_config(self, path: Path, options: list[str]) -> PacmanConfig:
		pacman_config = PacmanConfig(path)
		pacman_config.enable_option(options)

		if self.config.gaming:
			pacman_config.enable(Repository.Multilib)

		return pacman_config

	def install_packages(self, packages: list[str]) -> None:
		self.set_mirrors()

		info('Configuring pacman...')
		self._pacman_config(self._host_pacman_conf, ['ParallelDownloads']).apply()

		info('Bootstrapping...')
		self.capabilities.packages.strap(self.target, packages)
		self._base_strapped = True

		self.genfstab()

	def genfstab(self) -> None:
		fstab_path = self.target / 'etc' / 'fstab'
		info(f'Updating {fstab_path}')

		try:
			gen_fstab = self.capabilities.packages.genfstab(self.target)
		except SysCallError as err:
			raise RequirementError(f'Could not generate fstab, strapping in packages most likely failed (disk out of space?)\n Error: {err}')

		fstab_path.parent.mkdir(parents=True, exist_ok=True)
		with open(fstab_path, 'a') as fp:
			fp.write(gen_fstab)

		if not fstab_path.is_file():
			raise RequirementError('Could not create fstab file')

		self._tighten_fstab_masks(fstab_path)

	def _tighten_fstab_masks(self, fstab_path: Path) -> None:
		try:
			content = fstab_path.read_text()
			content = content.replace('fmask=0022', 'fmask=0077').replace('dmask=0022', 'dmask=0077')
			fstab_path.write_text(content)
		except OSError as err:
			warn(f'Could not tighten mount permissions in {fstab_path}: {err}')

	def set_timezone(self, zone: str) -> None:
		info(f'Setting timezone to {zone}')
		self.chroot(['ln', '-sf', f'/usr/share/zoneinfo/{zone}', '/etc/localtime'])

		try:
			self.chroot(['hwclock', '--systohc'])
		except SysCallError as err:
			warn(f'Could not sync the hardware clock: {err}')

	def set_locale(self, locale: str) -> None:
		info(f'Setting locale to {locale}')

		lang, _, encoding = locale.partition('.')
		encoding = encoding or 'UTF-8'
		entry = f'{lang}.{encoding} {encoding}' if '.' in locale else f'{lang} {encoding}'

		locale_gen = self.target / 'etc/locale.gen'
		locale_gen_lines = locale_gen.read_text().splitlines(True) if locale_gen.exists() else []

		# A locale entry in /etc/locale.gen may or may not contain the encoding
		# in the first column of the entry; check for both cases.
		entry_re = re.compile(rf'^#?\s*{re.escape(lang)}(\.{re.escape(encoding)})? {re.escape(encoding)}\s*$')

		for index, line in enumerate(locale_gen_lines):
			if entry_re.match(line):
				locale_gen_lines[index] = line.lstrip('#').lstrip()
				break
		else:
			locale_gen_lines.append(f'{entry}\n')

		locale_gen.parent.mkdir(parents=True, exist_ok=True)
		locale_gen.write_text(''.join(locale_gen_lines))

		self.chroot(['locale-gen'])

		(self.target / 'etc/locale.conf').write_text(f'LANG={locale}\n')

	def set_keyboard_language(self, keymap: str) -> None:
		info(f'Setting console keymap to {keymap}')
		(self.target / 'etc/vconsole.conf').write_text(f'KEYMAP={keymap}\n')

	def set_hostname(self, hostname: str) -> None:
		(self.target / 'etc/hostname').write_text(hostname + '\n')

		hosts = textwrap.dedent(
			f"""\
			127.0.0.1   localhost
			::1         localhost
			127.0.1.1   {hostname}.localdomain {hostname}
			""",
		)
		(self.target / 'etc/hosts').write_text(hosts)

	def configure_pacman(self) -> None:
		self._pacman_config(self.target / 'etc/pacman.conf', ['ParallelDownloads', 'Color']).apply()

	def create_user(self) -> None:
		user = self.config.user
		info(f'Creating user {user.username}')

		self.chroot(['useradd', '-m', '-G', ','.join(user.groups), '-s', user.shell, user.username])
		self.set_passwords()

		if user.sudo:
			self.enable_sudo()

	def set_passwords(self) -> None:
		info(f'Setting password for {self.config.username} and root')

		plaintext = self.config.password.plaintext
		input_data = f'{self.config.username}:{plaintext}\nroot:{plaintext}\n'.encode()

		self.chroot(['chpasswd'], input_data=input_data)

	def enable_sudo(self) -> None:
		info('Enabling sudo permissions for the wheel group')

		sudoers_dir = self.target / 'etc/sudoers.d'
		sudoers_dir.mkdir(parents=True, exist_ok=True)

		rule_file = sudoers_dir / 'wheel'
		rule_file.write_text(SUDOERS_RULE)

		# Guarantees sudoer conf file recommended perms
		rule_file.chmod(0o440)

	def add_environment(self, variables: dict[str, str]) -> None:
		environment = self.target / 'etc/environment'
		content = environment.read_text() if environment.exists() else ''

		missing = [
			f'{key}={value}'
			for key, value in variables.items()
			if not re.search(rf'^{re.escape(key)}=', content, flags=re.MULTILINE)
		]

		if not missing:
			return

		debug(f'Adding to /etc/environment: {missing}')

		if content and not content.endswith('\n'):
			content += '\n'

		environment.parent.mkdir(parents=True, exist_ok=True)
		environment.write_text(content + '\n'.join(missing) + '\n')

	def chown(self, owner: str, path: str, options: list[str] = []) -> None:
		self.chroot(['chown', *options, f'{owner}:{owner}', path])

	def install_profile(self) -> None:
		info(f'Configuring the {self.profile.name} desktop')

		try:
			self.profile.install(self)
		except (OSError, SysCallError) as err:
			warn(f'Could not fully configure the {self.profile.name} desktop: {err}')

	def add_bootloader(self) -> None:
		info('Installing systemd-boot')

		try:
			self.chroot(['bootctl', 'install'])
		except SysCallError as err:
			# bootctl detects arch-chroot as a container and may refuse to touch EFI variables
			debug(f'bootctl install failed, retrying without EFI variables: {err}')
			self.chroot(['bootctl', '--no-variables', 'install'])

		layout = self.config.disk_layout
		luks_uuid = self.capabilities.encryption.uuid(layout.root_partition)

		cmdline = KernelCmdline.for_layout(layout, luks_uuid, hibernate=self.config.hibernate)
		entries = loader_entries(self.config.kernel, self.hardware.ucode, cmdline)

		write_loader_files(self.target / 'boot', LoaderConf(), entries)

	def setup_swap(self) -> None:
		if self.config.hibernate:
			debug('Hibernation enabled, swap lives on the LVM swap volume')
			return

		info('Setting up swap on zram')
		zram_conf = self.target / 'etc/systemd/zram-generator.conf'
		zram_conf.parent.mkdir(parents=True, exist_ok=True)
		zram_conf.write_text(ZRAM_CONFIG)

	def mkinitcpio(self) -> None:
		Mkinitcpio(self.target / 'etc/mkinitcpio.conf').set_hooks(hooks(self.config.hibernate))

		info('Regenerating initramfs')
		self.chroot(['mkinitcpio', '-P'])

	def enable_service(self, service: str, critical: bool = True) -> None:
		info(f'Enabling service {service}')

		try:
			self.chroot(['systemctl', 'enable', service])
		except SysCallError as err:
			if critical:
				raise ServiceException(f'Unable to start service {service}: {err}')

			warn(f'Unable to enable service {service}, continuing: {err}')

	def enable_services(self) -> None:
		for service in CRITICAL_SERVICES + self.profile.services:
			self.enable_service(service)

		auxiliary = list(AUXILIARY_SERVICES)
		if self.hardware.is_laptop:
			auxiliary += LAPTOP_SERVICES

		for service in auxiliary:
			self.enable_service(service, critical=False)

	def tune_sysctl(self) -> None:
		sysctl_conf = self.target / 'etc/sysctl.d/99-ssd.conf'
		sysctl_conf.parent.mkdir(parents=True, exist_ok=True)
		sysctl_conf.write_text(SYSCTL_CONFIG)

	def install_aur_packages(self) -> None:
		if not self.config.aur_packages:
			return

		helper = AurHelper(self.capabilities.chroot, self.target, self.config.username)

		try:
			helper.install(list(self.config.aur_packages))
		except (SysCallError, OSError) as err:
			warn(f'AUR bootstrap failed, the system is usable without it: {err}')

	def configure_target(self) -> None:
		info('Configuring the installed system...')

		self.set_timezone(self.config.timezone)
		self.set_locale(self.config.locale)
		self.set_keyboard_language(self.config.keymap)
		self.set_hostname(self.config.hostname)
		self.configure_pacman()
		self.create_user()
		self.install_profile()
		self.add_bootloader()
		self.setup_swap()
		self.mkinitcpio()
		self.enable_services()
		self.tune_sysctl()
		self.install_aur_packages()
