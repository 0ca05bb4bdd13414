"""Arch Linux workstation installer - LUKS2, LVM and systemd-boot."""

import sys
import traceback

from .lib.args import SetupConfigHandler
from .lib.disk.utils import disk_layouts
from .lib.hardware import SysInfo
from .lib.output import debug, error, info, log, logger, warn


def _log_sys_info() -> None:
	# Log various information about hardware before starting the installation. This might assist in troubleshooting
	try:
		debug(f'Processor model detected: {SysInfo.cpu_model()}; UEFI mode: {SysInfo.has_uefi()}')
		debug(f'Memory statistics: {SysInfo.mem_total()} total installed')
	except (OSError, KeyError) as err:
		debug(f'Could not read system information: {err}')

	# For support reasons, we'll log the disk layout pre installation to match against post-installation layout
	debug(f'Disk states before installing:\n{disk_layouts()}')


def main(argv: list[str] | None = None) -> int:
	"""
	This can either be run as the installed application: archsetup
	OR straight as a module: python -m archsetup
	"""
	handler = SetupConfigHandler(argv)

	_log_sys_info()

	from .scripts.guided import guided

	return guided(handler)


def run_as_a_module() -> None:
	rc = 0
	exc = None

	try:
		rc = main()
	except KeyboardInterrupt:
		warn('Installation aborted by the user')
		rc = 1
	except Exception as e:
		exc = e
	finally:
		if exc:
			err = ''.join(traceback.format_exception(exc))
			error(err)

			text = (
				'archsetup experienced the above error. The disk may be left partially prepared.\n'
				f'The full log is available at "{logger.path}".\n'
			)

			warn(text)
			rc = 1

		sys.exit(rc)


__all__ = [
	'SysInfo',
	'debug',
	'disk_layouts',
	'error',
	'info',
	'log',
	'main',
	'run_as_a_module',
	'warn',
]
