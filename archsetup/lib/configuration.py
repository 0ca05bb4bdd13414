import json
import stat
from collections.abc import Callable
from pathlib import Path

from .general import JSON
from .hardware import HardwareProfile
from .models.config import InstallConfig
from .output import debug, info, logger, warn
from .packages.selection import PackageSelection


class ConfigurationOutput:
	def __init__(self, config: InstallConfig, hardware: HardwareProfile, selection: PackageSelection):
		"""
		Configuration output handler to parse the existing
		configuration data structure and prepare for output on the
		console and for saving it to configuration files

		:param config: The collected install configuration
		:type config: InstallConfig
		"""

		self._config = config
		self._hardware = hardware
		self._selection = selection
		self._default_save_path = logger.directory
		self._user_config_file = Path('user_configuration.json')

	@property
	def user_configuration_file(self) -> Path:
		return self._user_config_file

	def user_config_to_json(self) -> str:
		out = self._config.safe_json()
		return json.dumps(out, indent=4, sort_keys=True, cls=JSON)

	def plan_to_json(self) -> str:
		out = {
			'config': self._config.safe_json(),
			'disk_layout': self._config.disk_layout,
			'hardware': self._hardware,
			'package_sets': self._selection,
			'packages': self._selection.packages(),
		}
		return json.dumps(out, indent=4, cls=JSON)

	def write_debug(self) -> None:
		debug(' -- Chosen configuration --')
		debug(self.user_config_to_json())
		debug(' -- Detected hardware --')
		debug(json.dumps(self._hardware, cls=JSON))

	def show_plan(self) -> None:
		layout = self._config.disk_layout

		info(f'Hostname:        {self._config.hostname}')
		info(f'Target disk:     {layout.device}')
		info(f'EFI partition:   {layout.efi_partition}')
		info(f'Root partition:  {layout.root_partition} (LUKS2 -> {layout.mapper_path})')
		info(f'Root volume:     {layout.root_volume}')
		if self._config.hibernate:
			info(f'Swap volume:     {layout.swap_volume} ({self._config.swap_size}G)')
		else:
			info('Swap:            zram')
		info(f'Kernel:          {self._config.kernel.value}')
		info(f'Desktop:         {self._config.desktop.display_name}')
		info(f'User:            {self._config.username}')
		info(f'Packages ({len(self._selection.packages())}): {" ".join(self._selection.packages())}')

	def confirm_config(self, input_func: Callable[[str], str] = input) -> bool:
		self.show_plan()

		warn(f'ALL DATA ON {self._config.disk_layout.device} WILL BE ERASED!')
		answer = input_func('The specified configuration will be applied. Would you like to continue? (y/N): ')

		return answer.strip().lower() in ('y', 'yes')

	def _is_valid_path(self, dest_path: Path) -> bool:
		dest_path_ok = dest_path.exists() and dest_path.is_dir()
		if not dest_path_ok:
			warn(
				f'Destination directory {dest_path.resolve()} does not exist or is not a directory.',
				'Configuration files can not be saved',
			)
		return dest_path_ok

	def save(self, dest_path: Path | None = None) -> Path | None:
		save_path = dest_path or self._default_save_path

		if not self._is_valid_path(save_path):
			return None

		target = save_path / self.user_configuration_file
		target.write_text(self.user_config_to_json())
		target.chmod(stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP)

		return target
