import argparse
import json
import sys
from argparse import ArgumentParser
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic.dataclasses import dataclass as p_dataclass

from .exceptions import RequirementError
from .interactions.general_conf import InputCollector
from .models.config import InstallConfig
from .output import logger, warn


@p_dataclass
class Arguments:
	config: Path | None = None
	creds: Path | None = None
	silent: bool = False
	dry_run: bool = False
	mountpoint: Path = Path('/mnt')
	skip_mirrors: bool = False
	debug: bool = False


class SetupConfigHandler:
	def __init__(self, argv: list[str] | None = None) -> None:
		self._parser: ArgumentParser = self._define_arguments()
		self._args: Arguments = self._parse_args(argv)
		self._config_data: dict[str, Any] = self._parse_config()

	@property
	def args(self) -> Arguments:
		return self._args

	@property
	def config_data(self) -> dict[str, Any]:
		return self._config_data

	@staticmethod
	def _get_version() -> str:
		try:
			return version('archsetup')
		except PackageNotFoundError:
			return 'archsetup version not found'

	def _define_arguments(self) -> ArgumentParser:
		parser = ArgumentParser(prog='archsetup', formatter_class=argparse.ArgumentDefaultsHelpFormatter)
		parser.add_argument(
			'-v',
			'--version',
			action='version',
			default=False,
			version='%(prog)s ' + self._get_version(),
		)
		parser.add_argument(
			'--config',
			type=Path,
			nargs='?',
			default=None,
			help='JSON configuration file',
		)
		parser.add_argument(
			'--creds',
			type=Path,
			nargs='?',
			default=None,
			help='JSON credentials configuration file',
		)
		parser.add_argument(
			'--silent',
			action='store_true',
			default=False,
			help='WARNING: Disables all prompts for input and confirmation. If no configuration is provided, this is ignored',
		)
		parser.add_argument(
			'--dry-run',
			'--dry_run',
			action='store_true',
			default=False,
			help='Prints the installation plan and saves the configuration, then exits without touching any disk',
		)
		parser.add_argument(
			'--mountpoint',
			type=Path,
			nargs='?',
			default=Path('/mnt'),
			help='Define an alternate mount point for installation',
		)
		parser.add_argument(
			'--skip-mirrors',
			action='store_true',
			default=False,
			help='Do not rank mirrors with reflector before installing',
		)
		parser.add_argument(
			'--debug',
			action='store_true',
			default=False,
			help='Adds debug info into the log',
		)

		return parser

	def _parse_args(self, argv: list[str] | None) -> Arguments:
		argparse_args = vars(self._parser.parse_args(argv))
		args: Arguments = Arguments(**argparse_args)

		# Installation can't be silent if config is not passed
		if args.config is None:
			args.silent = False

		if args.debug:
			warn(f'Warning: --debug mode will write the full configuration to {logger.path}!')

		return args

	def _parse_config(self) -> dict[str, Any]:
		config: dict[str, Any] = {}

		if self._args.config is not None:
			config.update(self._read_json(self._args.config))

		if self._args.creds is not None:
			config.update(self._read_json(self._args.creds))

		return self._cleanup_config(config)

	def _read_json(self, path: Path) -> dict[str, Any]:
		if not path.exists():
			raise RequirementError(f'Could not find file {path}')

		try:
			data = json.loads(path.read_text())
		except json.JSONDecodeError as err:
			raise RequirementError(f'{path} is not valid JSON: {err}')

		if not isinstance(data, dict):
			raise RequirementError(f'{path} must contain a JSON object')

		return data

	def _cleanup_config(self, config: dict[str, Any]) -> dict[str, Any]:
		clean_args = {}
		for key, val in config.items():
			if isinstance(val, dict):
				val = self._cleanup_config(val)

			if val is not None:
				clean_args[key] = val

		return clean_args

	def install_config(self, collector: InputCollector) -> InstallConfig:
		"""
		Builds the immutable configuration, from the JSON files when given
		and from interactive prompts otherwise.
		"""
		if self._args.config is None:
			return collector.collect()

		data = dict(self._config_data)
		if isinstance(data.get('disk'), str):
			data['disk'] = collector.check_disk(data['disk'])

		data = collector.complete_credentials(data, silent=self._args.silent)

		try:
			return InstallConfig.model_validate(data)
		except ValidationError as err:
			# input values are left out, they may hold secrets
			for entry in err.errors():
				location = '.'.join(str(part) for part in entry['loc'])
				warn(f'Invalid configuration value for {location}: {entry["msg"]}')
			sys.exit(1)
