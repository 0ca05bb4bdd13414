import shlex
from abc import ABCMeta, abstractmethod
from pathlib import Path
from subprocess import CalledProcessError

from ..exceptions import DiskError, SysCallError
from ..general import SysCommand, run
from ..models.users import Password
from ..output import debug, info


class EncryptionManager(metaclass=ABCMeta):
	@abstractmethod
	def format(self, partition: Path, password: Password) -> None:
		"""
		Initialises a LUKS2 header on the partition
		"""

	@abstractmethod
	def open(self, partition: Path, mapper_name: str, password: Password) -> Path:
		"""
		Unlocks the partition and returns the mapper device
		"""

	@abstractmethod
	def uuid(self, partition: Path) -> str:
		"""
		Returns the LUKS header UUID of the partition
		"""


class Luks2Manager(EncryptionManager):
	def __init__(
		self,
		cipher: str = 'aes-xts-plain64',
		key_size: int = 512,
		hash_type: str = 'sha512',
		sector_size: int = 4096,
	):
		self.cipher = cipher
		self.key_size = key_size
		self.hash_type = hash_type
		self.sector_size = sector_size

	@staticmethod
	def _password_bytes(password: Password) -> bytes:
		return bytes(password.plaintext, 'UTF-8')

	def format(self, partition: Path, password: Password) -> None:
		info(f'Encrypting {partition} (LUKS2/argon2id)...')

		cmd = [
			'cryptsetup',
			'--batch-mode',
			'--verbose',
			'--type',
			'luks2',
			'--pbkdf',
			'argon2id',
			'--cipher',
			self.cipher,
			'--key-size',
			str(self.key_size),
			'--hash',
			self.hash_type,
			'--sector-size',
			str(self.sector_size),
			'--key-file',
			'-',
			'--use-urandom',
			'luksFormat',
			str(partition),
		]

		debug(f'cryptsetup format: {shlex.join(cmd)}')

		try:
			result = run(cmd, input_data=self._password_bytes(password))
		except CalledProcessError as err:
			output = err.stdout.decode().rstrip() if err.stdout else ''
			raise DiskError(f'Could not encrypt volume "{partition}": {output}') from err

		debug(f'cryptsetup luksFormat output: {result.stdout.decode().rstrip()}')

	def open(self, partition: Path, mapper_name: str, password: Password) -> Path:
		debug(f'Unlocking luks2 device: {partition}')

		cmd = [
			'cryptsetup',
			'open',
			'--type',
			'luks2',
			'--key-file',
			'-',
			'--perf-no_read_workqueue',
			'--perf-no_write_workqueue',
			'--allow-discards',
			str(partition),
			mapper_name,
		]

		try:
			result = run(cmd, input_data=self._password_bytes(password))
		except CalledProcessError as err:
			output = err.stdout.decode().rstrip() if err.stdout else ''
			raise DiskError(f'Failed to open luks2 device {partition}: {output}') from err

		debug(f'cryptsetup open output: {result.stdout.decode().rstrip()}')

		return Path('/dev/mapper') / mapper_name

	def uuid(self, partition: Path) -> str:
		try:
			return SysCommand(['cryptsetup', 'luksUUID', str(partition)]).decode()
		except SysCallError as err:
			info(f'Unable to get UUID for Luks device: {partition}')
			raise err
