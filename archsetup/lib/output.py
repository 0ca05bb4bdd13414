import logging
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

_ANSI_COLORS = {
	'black': '0',
	'red': '1',
	'green': '2',
	'yellow': '3',
	'blue': '4',
	'magenta': '5',
	'cyan': '6',
	'white': '7',
	'gray': '8;5;246',
	'grey': '8;5;246',
}


class Journald:
	"""
	Forwards messages to the systemd journal when python-systemd is
	installed, the handler is attached on first use and reused after.
	"""

	def __init__(self, name: str = 'archsetup') -> None:
		self._name = name
		self._adapter: logging.Logger | None = None
		self._unavailable = False

	def _handler(self) -> logging.Handler | None:
		try:
			import systemd.journal  # type: ignore[import-not-found]
		except ModuleNotFoundError:
			return None

		return systemd.journal.JournalHandler()

	def _get_adapter(self) -> logging.Logger | None:
		if self._adapter is None and not self._unavailable:
			handler = self._handler()

			if handler is None:
				self._unavailable = True
				return None

			handler.setFormatter(logging.Formatter('[%(levelname)s]: %(message)s'))

			adapter = logging.getLogger(self._name)
			adapter.addHandler(handler)
			adapter.setLevel(logging.DEBUG)
			self._adapter = adapter

		return self._adapter

	def log(self, message: str, level: int = logging.DEBUG) -> None:
		if adapter := self._get_adapter():
			adapter.log(level, message)


class Logger:
	def __init__(self, path: Path = Path('/var/log/archsetup')) -> None:
		self._path = path

	@property
	def path(self) -> Path:
		return self._path / 'install.log'

	@property
	def directory(self) -> Path:
		return self._path

	def _check_permissions(self) -> None:
		log_file = self.path

		try:
			self._path.mkdir(exist_ok=True, parents=True)
			log_file.touch(exist_ok=True)
		except OSError:
			# Fallback to creating the log file in the current folder
			self._path = Path('./').absolute()
			warn(f'Not enough permission to place log file at {log_file}, creating it in {self.path} instead')

	def log(self, level: int, content: str) -> None:
		self._check_permissions()

		with self.path.open('a') as f:
			f.write(f'[{_timestamp()}] - {logging.getLevelName(level)} - {content}\n')


logger = Logger()
journald = Journald()


def _supports_color() -> bool:
	"""
	True when stdout is a terminal that understands ANSI escapes.
	"""
	if sys.platform == 'win32' and 'ANSICON' not in os.environ:
		return False

	return hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()


def _stylize_output(text: str, fg: str) -> str:
	return f'\033[3{_ANSI_COLORS[fg]}m{text}\033[0m'


def _timestamp() -> str:
	return datetime.now(tz=UTC).strftime('%Y-%m-%d %H:%M:%S')


def info(*msgs: str, level: int = logging.INFO, fg: str = 'blue') -> None:
	log(*msgs, level=level, fg=fg)


def debug(*msgs: str, level: int = logging.DEBUG, fg: str = 'white') -> None:
	log(*msgs, level=level, fg=fg)


def error(*msgs: str, level: int = logging.ERROR, fg: str = 'red') -> None:
	log(*msgs, level=level, fg=fg)


def warn(*msgs: str, level: int = logging.WARNING, fg: str = 'yellow') -> None:
	log(*msgs, level=level, fg=fg)


def log(*msgs: str, level: int = logging.INFO, fg: str = 'white') -> None:
	"""
	Appends the message to the install log and the journal, anything
	above debug level is echoed to the console as well.
	"""
	text = ' '.join(str(x) for x in msgs)

	logger.log(level, text)
	journald.log(text, level=level)

	if level == logging.DEBUG:
		return

	if _supports_color():
		text = _stylize_output(text, fg)

	stream = sys.stderr if level >= logging.ERROR else sys.stdout
	print(text, file=stream, flush=True)
