import json
from pathlib import Path

import pytest

from archsetup.lib.args import Arguments, SetupConfigHandler
from archsetup.lib.exceptions import DiskError, RequirementError
from archsetup.lib.interactions import InputCollector
from archsetup.lib.models.config import DesktopEnvironment, Kernel
from archsetup.lib.models.users import Password


def _no_prompts(block_devices: tuple[str, ...] = ('/dev/nvme0n1', '/dev/sda')) -> InputCollector:
	def fail(prompt: str) -> str:
		raise AssertionError(f'unexpected prompt: {prompt}')

	return InputCollector(
		input_func=fail,
		password_func=fail,
		block_device_check=lambda path: str(path) in block_devices,
	)


def test_default_args() -> None:
	handler = SetupConfigHandler([])

	assert handler.args == Arguments(
		config=None,
		creds=None,
		silent=False,
		dry_run=False,
		mountpoint=Path('/mnt'),
		skip_mirrors=False,
		debug=False,
	)
	assert handler.config_data == {}


def test_correct_parsing_args(config_fixture: Path, creds_fixture: Path) -> None:
	handler = SetupConfigHandler(
		[
			'--config',
			str(config_fixture),
			'--creds',
			str(creds_fixture),
			'--mountpoint',
			'/tmp',
			'--skip-mirrors',
			'--debug',
			'--dry-run',
			'--silent',
		]
	)

	assert handler.args == Arguments(
		config=config_fixture,
		creds=creds_fixture,
		silent=True,
		dry_run=True,
		mountpoint=Path('/tmp'),
		skip_mirrors=True,
		debug=True,
	)


def test_silent_requires_config() -> None:
	assert SetupConfigHandler(['--silent']).args.silent is False


def test_config_file_parsing(config_fixture: Path, creds_fixture: Path) -> None:
	handler = SetupConfigHandler(['--config', str(config_fixture), '--creds', str(creds_fixture), '--silent'])

	config = handler.install_config(_no_prompts())

	assert config.hostname == 'box'
	assert config.disk == 'nvme0n1'
	assert config.gaming
	assert config.hibernate
	assert config.desktop == DesktopEnvironment.Kde
	assert config.kernel == Kernel.LinuxZen
	assert config.username == 'alice'
	assert config.password == Password('correct horse battery staple')
	assert config.luks_password == Password('luks passphrase')
	assert config.locale == 'pt_BR.UTF-8'
	assert config.keymap == 'br-abnt2'
	assert config.timezone == 'Europe/Lisbon'
	assert config.swap_size == 16
	assert config.mirror_countries == ('Portugal',)
	assert config.aur_packages == ('visual-studio-code-bin',)


def test_defaults_fill_missing_keys(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text(json.dumps({'disk': 'sda', 'username': 'bob', 'hostname': None, '!password': 'pw'}))

	config = SetupConfigHandler(['--config', str(config_file), '--silent']).install_config(_no_prompts())

	assert config.hostname == 'archlinux'
	assert config.desktop == DesktopEnvironment.Sway
	assert config.locale == 'en_US.UTF-8'
	assert config.keymap == 'us-acentos'
	assert config.timezone == 'America/Sao_Paulo'
	assert config.swap_size == 34
	assert config.mirror_countries == ('Brazil', 'United States')
	assert config.aur_packages == ()
	assert config.encryption_password is None


def test_silent_config_without_password(config_fixture: Path) -> None:
	handler = SetupConfigHandler(['--config', str(config_fixture), '--silent'])

	with pytest.raises(RequirementError):
		handler.install_config(_no_prompts())


def test_invalid_config_exits(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text(json.dumps({'disk': 'sda', 'username': 'Not Valid', '!password': 'pw'}))

	handler = SetupConfigHandler(['--config', str(config_file), '--silent'])

	with pytest.raises(SystemExit) as exc_info:
		handler.install_config(_no_prompts())

	assert exc_info.value.code == 1


def test_missing_config_file(tmp_path: Path) -> None:
	with pytest.raises(RequirementError, match='Could not find file'):
		SetupConfigHandler(['--config', str(tmp_path / 'missing.json')])


def test_config_must_be_an_object(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text('["sda"]')

	with pytest.raises(RequirementError, match='JSON object'):
		SetupConfigHandler(['--config', str(config_file)])


def test_malformed_json(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text('{"disk": ')

	with pytest.raises(RequirementError, match='not valid JSON'):
		SetupConfigHandler(['--config', str(config_file)])


def test_config_disk_must_be_a_block_device(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text(json.dumps({'disk': 'doesnotexist0', 'username': 'bob', '!password': 'pw'}))

	handler = SetupConfigHandler(['--config', str(config_file), '--silent'])

	with pytest.raises(DiskError, match='/dev/doesnotexist0'):
		handler.install_config(_no_prompts())


def test_config_disk_checked_before_password_prompt(config_fixture: Path) -> None:
	handler = SetupConfigHandler(['--config', str(config_fixture)])

	with pytest.raises(DiskError):
		handler.install_config(_no_prompts(block_devices=()))


def test_config_disk_accepts_dev_prefix(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text(json.dumps({'disk': '/dev/sda', 'username': 'bob', '!password': 'pw'}))

	config = SetupConfigHandler(['--config', str(config_file), '--silent']).install_config(_no_prompts())

	assert config.disk == 'sda'


def test_config_disk_rejects_nested_paths(tmp_path: Path) -> None:
	config_file = tmp_path / 'config.json'
	config_file.write_text(json.dumps({'disk': 'disk/by-id/nvme-WD_BLACK', 'username': 'bob', '!password': 'pw'}))

	handler = SetupConfigHandler(['--config', str(config_file), '--silent'])

	with pytest.raises(DiskError, match='not a disk name'):
		handler.install_config(_no_prompts(block_devices=('/dev/disk/by-id/nvme-WD_BLACK',)))
