from __future__ import annotations

import json
import os
import shlex
import stat
import subprocess
import sys
import time
from enum import Enum
from pathlib import Path
from select import EPOLLHUP, EPOLLIN, epoll
from shutil import which
from types import TracebackType
from typing import Any, override

from .exceptions import RequirementError, SysCallError
from .output import debug, error, logger

# parsed output (lsblk, lspci, cryptsetup) must not be localized
_COMMAND_ENV = {'LC_ALL': 'C'}


def locate_binary(name: str) -> str:
	if path := which(name):
		return path
	raise RequirementError(f'Binary {name} does not exist.')


def jsonify(obj: Any, safe: bool = True) -> Any:
	"""
	Converts objects into json.dumps() compatible nested structures.
	With safe set, dictionary keys starting with a bang (!) are dropped,
	that is where secrets live.
	"""
	match obj:
		case dict():
			return {
				key: jsonify(value, safe)
				for key, value in obj.items()
				if isinstance(key, str | int | float | bool)
				and not (safe and isinstance(key, str) and key.startswith('!'))
			}
		case Enum():
			return obj.value
		case Path():
			return str(obj)
		case list() | set() | tuple():
			return [jsonify(item, safe) for item in obj]

	if hasattr(obj, 'json'):
		return jsonify(obj.json(), safe)

	return obj


class JSON(json.JSONEncoder, json.JSONDecoder):
	"""
	A safe JSON encoder that will omit private information in dicts (starting with !)
	"""

	@override
	def encode(self, o: Any) -> str:
		return super().encode(jsonify(o))


class SysCommandWorker:
	"""
	Runs one command inside a pseudo terminal and collects everything it
	writes. Leaving the context raises a SysCallError on a non-zero exit.
	"""

	def __init__(self, cmd: str | list[str], peek_output: bool = False):
		cmd = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)

		if cmd and not cmd[0].startswith(('/', './')):
			cmd[0] = locate_binary(cmd[0])

		self.cmd = cmd
		self.peek_output = peek_output
		self.exit_code: int | None = None
		self.trace_log = b''
		self.ended = False

		self._poll = epoll()
		self._child_fd: int | None = None
		self._pid = 0

	@override
	def __str__(self) -> str:
		return self.trace_log.decode('utf-8', errors='backslashreplace')

	def __enter__(self) -> SysCommandWorker:
		self._spawn()
		return self

	def __exit__(
		self,
		exc_type: type[BaseException] | None,
		exc_value: BaseException | None,
		traceback: TracebackType | None,
	) -> None:
		if self._child_fd is not None:
			try:
				os.close(self._child_fd)
			except OSError:
				pass

		self._poll.close()

		if self.peek_output:
			# don't leave the prompt on the last line of peeked output
			sys.stdout.write('\n')
			sys.stdout.flush()

		if exc_value is not None:
			debug(str(exc_value))
			return

		if self.exit_code != 0:
			raise SysCallError(
				f'{self.cmd} exited with abnormal exit code [{self.exit_code}]: {str(self)[-500:]}',
				self.exit_code,
				worker_log=self.trace_log,
			)

	def _spawn(self) -> None:
		import pty

		_log_cmd(self.cmd)

		self._pid, self._child_fd = pty.fork()

		if not self._pid:
			try:
				os.execve(self.cmd[0], self.cmd, {**os.environ, **_COMMAND_ENV})
			except FileNotFoundError:
				error(f'{self.cmd[0]} does not exist.')
				os._exit(1)

		self._poll.register(self._child_fd, EPOLLIN | EPOLLHUP)

	def _echo(self, chunk: bytes) -> None:
		try:
			sys.stdout.write(chunk.decode('UTF-8'))
		except UnicodeDecodeError:
			return
		sys.stdout.flush()

	def poll(self) -> None:
		if self.ended or self._child_fd is None:
			return

		got_output = False
		for _fileno, _event in self._poll.poll(0.1):
			try:
				chunk = os.read(self._child_fd, 8192)
			except OSError:
				# EIO, the child closed its end of the pty
				self.ended = True
				break

			if not chunk:
				self.ended = True
				break

			got_output = True
			self.trace_log += chunk
			if self.peek_output:
				self._echo(chunk)

		if self.ended or (not got_output and not _pid_exists(self._pid)):
			self.ended = True
			self._reap()

	def wait(self) -> None:
		while not self.ended:
			self.poll()

	def _reap(self) -> None:
		try:
			wait_status = os.waitpid(self._pid, 0)[1]
			self.exit_code = os.waitstatus_to_exitcode(wait_status)
		except ChildProcessError:
			self.exit_code = 1


class SysCommand:
	"""
	Runs a command to completion, raising SysCallError when it fails.
	The collected output is available through decode() and output().
	"""

	def __init__(self, cmd: str | list[str], peek_output: bool = False):
		self.cmd = cmd

		with SysCommandWorker(cmd, peek_output=peek_output) as worker:
			worker.wait()

		self._trace_log = worker.trace_log

	def decode(self, encoding: str = 'utf-8', errors: str = 'backslashreplace', strip: bool = True) -> str:
		val = self._trace_log.decode(encoding, errors=errors)
		return val.strip() if strip else val

	def output(self, remove_cr: bool = True) -> bytes:
		if remove_cr:
			return self._trace_log.replace(b'\r\n', b'\n')
		return self._trace_log


def _log_cmd(cmd: list[str]) -> None:
	history_logfile = logger.directory / 'cmd_history.txt'
	created = not history_logfile.exists()

	try:
		with history_logfile.open('a') as cmd_log:
			cmd_log.write(f'{time.time()} {cmd}\n')

		if created:
			history_logfile.chmod(stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP)
	except (PermissionError, FileNotFoundError):
		# log directory not created yet
		pass


def run(
	cmd: list[str],
	input_data: bytes | None = None,
) -> subprocess.CompletedProcess[bytes]:
	"""
	Runs a command to completion with optional stdin data.
	Secrets must only ever be passed through input_data, never as arguments.
	"""
	_log_cmd(cmd)

	return subprocess.run(
		cmd,
		input=input_data,
		stdout=subprocess.PIPE,
		stderr=subprocess.STDOUT,
		check=True,
	)


def _pid_exists(pid: int) -> bool:
	try:
		os.kill(pid, 0)
	except ProcessLookupError:
		return False
	except PermissionError:
		return True

	return True
