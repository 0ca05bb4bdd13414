import getpass
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..disk.utils import is_block_device, list_disks
from ..exceptions import DiskError, RequirementError, SysCallError
from ..models.config import DEFAULT_HOSTNAME, DesktopEnvironment, InstallConfig, is_valid_hostname
from ..models.device import LsblkInfo
from ..models.users import USERNAME_MAX_LENGTH, is_valid_username
from ..output import warn


def _format_size(size: int) -> str:
	value = float(size)
	for unit in ('B', 'KiB', 'MiB', 'GiB', 'TiB'):
		if value < 1024 or unit == 'TiB':
			return f'{value:.1f}{unit}'
		value /= 1024
	return f'{value:.1f}TiB'


class InputCollector:
	"""
	The interactive half of the collection phase. It only asks questions
	and validates answers; nothing here touches a disk.
	"""

	def __init__(
		self,
		input_func: Callable[[str], str] = input,
		password_func: Callable[[str], str] = getpass.getpass,
		block_device_check: Callable[[Path], bool] = is_block_device,
		disk_lister: Callable[[], list[LsblkInfo]] = list_disks,
		print_func: Callable[[str], None] = print,
	):
		self._input = input_func
		self._password = password_func
		self._is_block_device = block_device_check
		self._list_disks = disk_lister
		self._print = print_func

	def ask_hostname(self) -> str:
		while True:
			hostname = self._input(f'Hostname [{DEFAULT_HOSTNAME}]: ').strip() or DEFAULT_HOSTNAME

			if is_valid_hostname(hostname):
				return hostname

			warn(f'"{hostname}" is not a valid hostname (letters, digits and inner hyphens, max 63 per label). Try again')

	def show_disks(self) -> None:
		try:
			disks = self._list_disks()
		except (SysCallError, DiskError) as err:
			warn(f'Could not list disks: {err}')
			return

		self._print('')
		for disk in disks:
			self._print(f'{disk.name.removeprefix("/dev/"):<12} {_format_size(disk.size):>10}  {disk.model or ""}')
		self._print('')

	def check_disk(self, name: str) -> str:
		"""
		Resolves a disk name such as ``nvme0n1`` or ``/dev/nvme0n1`` and makes
		sure it names a block device directly under /dev.
		"""
		disk = name.strip().removeprefix('/dev/')
		device = Path('/dev') / disk

		if not disk or '/' in disk:
			raise DiskError(f'Invalid device: {name!r} is not a disk name under /dev')

		if not self._is_block_device(device):
			raise DiskError(f'Invalid device: {device} is not a block device')

		return disk

	def ask_disk(self) -> str:
		return self.check_disk(self._input('Target disk (e.g., nvme0n1): '))

	def ask_yes_no(self, prompt: str) -> bool:
		return self._input(f'{prompt} (y/N): ').strip().lower() in ('y', 'yes')

	def select_desktop(self) -> DesktopEnvironment:
		options = list(DesktopEnvironment)

		self._print('Select a desktop environment:')
		for index, option in enumerate(options, start=1):
			self._print(f'{index}) {option.display_name}')

		while True:
			selected = self._input('Desktop: ').strip()

			if selected.isdigit() and 1 <= int(selected) <= len(options):
				return options[int(selected) - 1]

			for option in options:
				if selected.lower() in (option.value, option.display_name.lower()):
					return option

			warn('Invalid choice, select one of the numbers above')

	def ask_username(self) -> str:
		while True:
			username = self._input('Username: ').strip()

			if is_valid_username(username):
				return username

			warn(
				f'The username you entered is invalid (lowercase letters, digits, "_" and "-", '
				f'max {USERNAME_MAX_LENGTH} characters). Try again'
			)

	def ask_for_password(self, prompt: str = 'Password: ', allow_empty: bool = False) -> str | None:
		while True:
			passwd = self._password(prompt)

			if not passwd:
				if allow_empty:
					return None

				warn('The password cannot be empty')
				continue

			passwd_verification = self._password('And one more time for verification: ')
			if passwd != passwd_verification:
				warn(' * Passwords did not match * ')
				continue

			return passwd

	def ask_encryption_password(self) -> str | None:
		return self.ask_for_password(
			'Disk encryption passphrase (leave empty to reuse the user password): ',
			allow_empty=True,
		)

	def collect(self) -> InstallConfig:
		self._print('=== Arch Linux installer ===')

		hostname = self.ask_hostname()
		self.show_disks()
		disk = self.ask_disk()
		gaming = self.ask_yes_no('Enable gaming profile (zen kernel + GPU drivers)?')
		hibernate = self.ask_yes_no('Enable hibernation?')
		desktop = self.select_desktop()
		username = self.ask_username()
		password = self.ask_for_password()
		encryption_password = self.ask_encryption_password()

		return InstallConfig(
			hostname=hostname,
			disk=disk,
			gaming=gaming,
			hibernate=hibernate,
			desktop=desktop,
			username=username,
			password=password,
			encryption_password=encryption_password,
		)

	def complete_credentials(self, data: dict[str, Any], silent: bool = False) -> dict[str, Any]:
		"""
		Fills in the secrets a configuration file left out. Silent runs
		cannot ask, a missing user password is fatal there.
		"""
		data = dict(data)

		if not data.get('!password'):
			if silent:
				raise RequirementError('No user password given, pass one with --creds when running with --silent')
			data['!password'] = self.ask_for_password(f'Password for {data.get("username", "the user")}: ')

		if '!encryption_password' not in data and not silent:
			data['!encryption_password'] = self.ask_encryption_password()

		return data
