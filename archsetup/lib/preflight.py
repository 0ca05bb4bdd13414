import os
from collections.abc import Callable
from pathlib import Path

from .exceptions import RequirementError
from .networking import ping
from .output import debug, info


class PreflightValidator:
	"""
	Fail-fast checks that must pass before anything touches a disk.
	The checks run in order (root, UEFI, network) and the first failure
	raises a RequirementError; nothing is retried.
	"""

	def __init__(
		self,
		geteuid: Callable[[], int] = os.geteuid,
		efivars: Path = Path('/sys/firmware/efi/efivars'),
		ping: Callable[[str, int], int] = ping,
		ping_host: str = 'archlinux.org',
		timeout: int = 5,
	):
		self._geteuid = geteuid
		self._efivars = efivars
		self._ping = ping
		self._ping_host = ping_host
		self._timeout = timeout

	def check_root(self) -> None:
		if self._geteuid() != 0:
			raise RequirementError('archsetup requires root privileges to run. See --help for more.')

	def check_uefi(self) -> None:
		if not self._efivars.is_dir():
			raise RequirementError(f'Not booted in UEFI mode, {self._efivars} does not exist.')

	def check_network(self) -> None:
		try:
			latency = self._ping(self._ping_host, self._timeout)
		except OSError as err:
			debug(f'Ping failed: {err}')
			latency = -1

		if latency < 0:
			raise RequirementError(
				f'No internet connection, {self._ping_host} did not answer within {self._timeout}s. '
				'Connect via iwctl or ethernet and try again.'
			)

		debug(f'{self._ping_host} answered in {latency}ms')

	def validate(self) -> None:
		info('Running pre-flight checks...')
		self.check_root()
		self.check_uefi()
		self.check_network()
