from collections.abc import Callable

from archsetup.lib.args import SetupConfigHandler
from archsetup.lib.capabilities import Capabilities
from archsetup.lib.configuration import ConfigurationOutput
from archsetup.lib.hardware import HardwareDetector, HardwareProfile
from archsetup.lib.installer import Installer
from archsetup.lib.interactions import InputCollector
from archsetup.lib.models.config import InstallConfig
from archsetup.lib.output import debug, info
from archsetup.lib.packages import PackageSelection
from archsetup.lib.preflight import PreflightValidator


def perform_installation(
	config: InstallConfig,
	hardware: HardwareProfile,
	selection: PackageSelection,
	handler: SetupConfigHandler,
	capabilities: Capabilities,
) -> None:
	"""
	Performs the installation steps on the configured disk.
	Storage first, then the base system, then everything
	that has to happen inside the new root.
	"""
	info('Starting installation...')

	with Installer(
		config,
		hardware,
		capabilities,
		target=handler.args.mountpoint,
		skip_mirrors=handler.args.skip_mirrors,
	) as installation:
		installation.prepare_storage()
		installation.install_packages(selection.packages())
		installation.configure_target()


def guided(
	handler: SetupConfigHandler,
	collector: InputCollector | None = None,
	detector: HardwareDetector | None = None,
	preflight: PreflightValidator | None = None,
	capabilities: Capabilities | None = None,
	input_func: Callable[[str], str] = input,
) -> int:
	if not handler.args.dry_run:
		(preflight or PreflightValidator()).validate()

	hardware = (detector or HardwareDetector()).detect()
	config = handler.install_config(collector or InputCollector())
	selection = PackageSelection(config, hardware)

	output = ConfigurationOutput(config, hardware, selection)
	output.write_debug()

	if handler.args.dry_run:
		output.show_plan()
		print(output.plan_to_json())
		output.save()
		return 0

	if not handler.args.silent:
		if not output.confirm_config(input_func):
			debug('Installation aborted')
			return 0

	output.save()

	perform_installation(config, hardware, selection, handler, capabilities or Capabilities.system())
	return 0
