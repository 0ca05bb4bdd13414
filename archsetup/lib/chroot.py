import shlex
from abc import ABCMeta, abstractmethod
from pathlib import Path
from subprocess import CalledProcessError

from .exceptions import SysCallError
from .general import run
from .output import debug


class ChrootExecutor(metaclass=ABCMeta):
	@abstractmethod
	def run(
		self,
		target: Path,
		cmd: list[str],
		input_data: bytes | None = None,
		run_as: str | None = None,
	) -> str:
		"""
		Runs ``cmd`` inside the installed system rooted at ``target``,
		optionally as an unprivileged user, and returns its output.
		Raises SysCallError on a non-zero exit code.
		"""


class ArchChroot(ChrootExecutor):
	def run(
		self,
		target: Path,
		cmd: list[str],
		input_data: bytes | None = None,
		run_as: str | None = None,
	) -> str:
		if run_as:
			cmd = ['su', '-', run_as, '-c', shlex.join(cmd)]

		full_cmd = ['arch-chroot', str(target), *cmd]
		debug(f'Executing in chroot: {shlex.join(cmd)}')

		try:
			result = run(full_cmd, input_data=input_data)
		except CalledProcessError as err:
			output = err.stdout.decode(errors='backslashreplace').rstrip() if err.stdout else ''
			raise SysCallError(
				f'{shlex.join(cmd)} exited with abnormal exit code [{err.returncode}]: {output[-500:]}',
				err.returncode,
				worker_log=err.stdout or b'',
			) from err

		return result.stdout.decode(errors='backslashreplace')
