import time
from abc import ABCMeta, abstractmethod
from pathlib import Path

from ..exceptions import PackageError, RequirementError, SysCallError
from ..general import SysCommand
from ..output import debug, info, warn
from .config import PacmanConfig


class PackageInstaller(metaclass=ABCMeta):
	@abstractmethod
	def rank_mirrors(self, countries: list[str]) -> None: ...

	@abstractmethod
	def strap(self, target: Path, packages: list[str]) -> None: ...

	@abstractmethod
	def genfstab(self, target: Path) -> str:
		"""
		Returns the UUID based fstab for everything mounted below target
		"""


class Pacman(PackageInstaller):
	def __init__(
		self,
		mirrorlist: Path = Path('/etc/pacman.d/mirrorlist'),
		lock_timeout: int = 60 * 10,
	):
		self.mirrorlist = mirrorlist
		self.lock_timeout = lock_timeout

	def _wait_for_lock(self) -> None:
		"""
		Protects us from colliding with other running pacman sessions.
		"""
		pacman_db_lock = Path('/var/lib/pacman/db.lck')

		if pacman_db_lock.exists():
			warn(f'Pacman is already running, waiting maximum {self.lock_timeout // 60} minutes for it to terminate.')

		started = time.time()
		while pacman_db_lock.exists():
			time.sleep(0.25)

			if time.time() - started > self.lock_timeout:
				raise RequirementError('Pre-existing pacman lock never exited. Please clean up any existing pacman sessions before using archsetup.')

	def rank_mirrors(self, countries: list[str]) -> None:
		info(f'Ranking mirrors for: {", ".join(countries)}')

		cmd = ['reflector']
		for country in countries:
			cmd.extend(('--country', country))

		cmd.extend(('--protocol', 'https', '--latest', '10', '--sort', 'rate', '--save', str(self.mirrorlist)))

		SysCommand(cmd)

	def strap(self, target: Path, packages: list[str]) -> None:
		self._wait_for_lock()

		info(f'Installing packages: {packages}')

		try:
			SysCommand(
				['pacstrap', '-K', str(target), *packages, '--noconfirm'],
				peek_output=True,
			)
		except SysCallError as err:
			debug(f'pacstrap failed: {err}')
			raise PackageError(
				'Pacstrap failed. Check the network connection and mirrors '
				f'(/etc/pacman.d/mirrorlist) and see the install log for details: {err.message}'
			) from err

	def genfstab(self, target: Path) -> str:
		return SysCommand(['genfstab', '-U', str(target)]).output().decode()


__all__ = [
	'PackageInstaller',
	'Pacman',
	'PacmanConfig',
]
