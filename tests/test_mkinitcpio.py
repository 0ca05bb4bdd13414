import shutil
from pathlib import Path

import pytest

from archsetup.lib.mkinitcpio import Mkinitcpio, hooks


@pytest.mark.parametrize('hibernate', [False, True])
def test_encrypt_runs_before_lvm(hibernate: bool) -> None:
	result = hooks(hibernate)

	assert result.index('sd-encrypt') < result.index('lvm2') < result.index('filesystems')
	assert result[-2:] == ['filesystems', 'fsck']


def test_resume_only_with_hibernation() -> None:
	assert 'resume' not in hooks(False)

	with_resume = hooks(True)
	assert with_resume.index('lvm2') < with_resume.index('resume') < with_resume.index('filesystems')


def test_hooks_line_is_replaced(tmp_path: Path, data_dir: Path) -> None:
	config = tmp_path / 'mkinitcpio.conf'
	shutil.copy(data_dir / 'mkinitcpio.conf', config)

	Mkinitcpio(config).set_hooks(hooks(False))

	lines = config.read_text().splitlines()
	assert [line for line in lines if line.startswith('HOOKS=')] == [
		'HOOKS=(systemd autodetect modconf kms keyboard sd-vconsole block sd-encrypt lvm2 filesystems fsck)',
	]
	assert 'MODULES=()' in lines
	assert '#COMPRESSION="zstd"' in lines


def test_hooks_line_is_added_when_missing(tmp_path: Path) -> None:
	config = tmp_path / 'mkinitcpio.conf'
	config.write_text('MODULES=()\n')

	Mkinitcpio(config).set_hooks(['base', 'udev'])

	assert config.read_text() == 'MODULES=()\nHOOKS=(base udev)\n'
