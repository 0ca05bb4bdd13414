from collections.abc import Callable
from pathlib import Path

import pytest

from archsetup.lib.exceptions import DiskError, RequirementError
from archsetup.lib.interactions import InputCollector
from archsetup.lib.models.config import DesktopEnvironment, Kernel
from archsetup.lib.models.device import LsblkInfo
from archsetup.lib.models.users import Password


def _scripted(answers: list[str]) -> Callable[[str], str]:
	remaining = iter(answers)

	def _answer(prompt: str) -> str:
		return next(remaining)

	return _answer


def _collector(
	inputs: list[str],
	passwords: list[str] | None = None,
	block_devices: tuple[str, ...] = ('/dev/nvme0n1', '/dev/sda'),
	printed: list[str] | None = None,
) -> InputCollector:
	sink = printed if printed is not None else []

	return InputCollector(
		input_func=_scripted(inputs),
		password_func=_scripted(passwords or []),
		block_device_check=lambda path: str(path) in block_devices,
		disk_lister=lambda: [
			LsblkInfo(name='/dev/nvme0n1', path=Path('/dev/nvme0n1'), size=512110190592, type='disk', model='WD_BLACK SN770'),
		],
		print_func=sink.append,
	)


def test_collect_end_to_end_answers() -> None:
	printed: list[str] = []
	collector = _collector(
		inputs=['box', 'nvme0n1', 'n', '', '1', 'alice'],
		passwords=['hunter2', 'hunter2', ''],
		printed=printed,
	)

	config = collector.collect()

	assert config.hostname == 'box'
	assert config.disk == 'nvme0n1'
	assert not config.gaming
	assert not config.hibernate
	assert config.desktop == DesktopEnvironment.Sway
	assert config.username == 'alice'
	assert config.password == Password('hunter2')
	assert config.encryption_password is None
	assert config.luks_password == Password('hunter2')
	assert config.kernel == Kernel.Linux
	assert any('nvme0n1' in line and 'WD_BLACK' in line for line in printed)


def test_empty_hostname_uses_default() -> None:
	assert _collector(inputs=['']).ask_hostname() == 'archlinux'


def test_invalid_hostname_reprompts() -> None:
	assert _collector(inputs=['-bad-', 'my_host', 'good-host']).ask_hostname() == 'good-host'


def test_disk_accepts_dev_prefix() -> None:
	assert _collector(inputs=['/dev/sda']).ask_disk() == 'sda'


def test_missing_disk_raises() -> None:
	with pytest.raises(DiskError, match='/dev/sdz'):
		_collector(inputs=['sdz']).ask_disk()


def test_disk_rejects_nested_paths() -> None:
	collector = _collector(inputs=['disk/by-id/nvme-WD_BLACK'], block_devices=('/dev/disk/by-id/nvme-WD_BLACK',))

	with pytest.raises(DiskError, match='not a disk name'):
		collector.ask_disk()


def test_empty_disk_raises() -> None:
	with pytest.raises(DiskError):
		_collector(inputs=['  ']).ask_disk()


@pytest.mark.parametrize(
	'answer, expected',
	[
		('y', True),
		('Y', True),
		('yes', True),
		('n', False),
		('', False),
		('maybe', False),
	],
)
def test_yes_no(answer: str, expected: bool) -> None:
	assert _collector(inputs=[answer]).ask_yes_no('Enable hibernation?') is expected


def test_desktop_menu_reprompts_on_invalid_choice() -> None:
	printed: list[str] = []
	collector = _collector(inputs=['0', '7', 'xfce', '3'], printed=printed)

	assert collector.select_desktop() == DesktopEnvironment.Kde
	assert printed[1:] == ['1) Sway', '2) Gnome', '3) KDE']


def test_desktop_menu_accepts_names() -> None:
	assert _collector(inputs=['Gnome']).select_desktop() == DesktopEnvironment.Gnome


def test_username_validation() -> None:
	collector = _collector(inputs=['Alice', '1alice', 'a' * 33, 'alice'])

	assert collector.ask_username() == 'alice'


def test_password_reprompts_on_mismatch_and_empty() -> None:
	collector = _collector(inputs=[], passwords=['', 'one', 'two', 'secret', 'secret'])

	assert collector.ask_for_password() == 'secret'


def test_separate_encryption_passphrase() -> None:
	collector = _collector(
		inputs=['box', 'sda', 'y', 'y', '2', 'bob'],
		passwords=['userpw', 'userpw', 'diskpw', 'diskpw'],
	)

	config = collector.collect()

	assert config.gaming
	assert config.hibernate
	assert config.kernel == Kernel.LinuxZen
	assert config.luks_password == Password('diskpw')
	assert config.password == Password('userpw')


def test_complete_credentials_prompts_when_interactive() -> None:
	collector = _collector(inputs=[], passwords=['pw', 'pw', ''])

	data = collector.complete_credentials({'username': 'alice'})

	assert data['!password'] == 'pw'
	assert data['!encryption_password'] is None


def test_complete_credentials_silent_requires_password() -> None:
	with pytest.raises(RequirementError):
		_collector(inputs=[]).complete_credentials({'username': 'alice'}, silent=True)


def test_complete_credentials_keeps_given_secrets() -> None:
	data = {'username': 'alice', '!password': 'pw', '!encryption_password': 'luks'}

	assert _collector(inputs=[]).complete_credentials(data, silent=True) == data
