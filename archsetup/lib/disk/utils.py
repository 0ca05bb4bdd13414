import os
import stat
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from ..exceptions import DiskError, RequirementError, SysCallError
from ..general import SysCommand
from ..models.device import LsblkInfo, LsblkOutput
from ..output import debug, warn


def _fetch_lsblk_info(dev_path: Path | str | None = None) -> LsblkOutput:
	cmd = ['lsblk', '--json', '--bytes', '--paths', '--output', ','.join(LsblkInfo.fields())]

	if dev_path:
		cmd.append(str(dev_path))

	try:
		worker = SysCommand(cmd)
	except SysCallError as err:
		# Get the output minus the message/info from lsblk if it returns a non-zero exit code.
		if err.worker_log:
			debug(f'Error calling lsblk: {err.worker_log.decode()}')

		if dev_path:
			raise DiskError(f'Failed to read disk "{dev_path}" with lsblk')

		raise err

	output = worker.output(remove_cr=False)
	return LsblkOutput.model_validate_json(output)


def list_disks() -> list[LsblkInfo]:
	"""
	Only whole disks are install targets, partitions, loop devices
	and optical drives are filtered out.
	"""
	return [device for device in _fetch_lsblk_info().blockdevices if device.type == 'disk']


def disk_layouts() -> str:
	try:
		lsblk_output = _fetch_lsblk_info()
	except (SysCallError, RequirementError) as err:
		warn(f'Could not return disk layouts: {err}')
		return ''

	return lsblk_output.model_dump_json(indent=4)


def is_block_device(path: Path) -> bool:
	try:
		return stat.S_ISBLK(os.stat(path).st_mode)
	except OSError:
		return False


def wait_for_device_nodes(
	paths: Iterable[Path],
	timeout: float = 10.0,
	initial_delay: float = 0.1,
	max_delay: float = 1.0,
	exists: Callable[[Path], bool] = is_block_device,
	sleep: Callable[[float], None] = time.sleep,
	clock: Callable[[], float] = time.monotonic,
) -> None:
	"""
	Polls until every given device node exists, doubling the delay between
	attempts up to ``max_delay``. Raises a DiskError once ``timeout`` seconds
	have passed without all nodes showing up.
	"""
	pending = list(paths)
	deadline = clock() + timeout
	delay = initial_delay

	while True:
		pending = [path for path in pending if not exists(path)]

		if not pending:
			return

		remaining = deadline - clock()
		if remaining <= 0:
			raise DiskError(f'Timed out after {timeout}s waiting for device nodes: {", ".join(str(p) for p in pending)}')

		debug(f'Waiting {delay:.2f}s for device nodes: {pending}')
		sleep(min(delay, remaining))
		delay = min(delay * 2, max_delay)
