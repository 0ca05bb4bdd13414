from collections.abc import Callable
from pathlib import Path

import pytest

from archsetup.default_profiles.desktops import GnomeProfile, KdeProfile, SwayProfile, desktop_profile
from archsetup.default_profiles.desktops.sway import AUTOSTART_LINES
from archsetup.default_profiles.profile import GreeterType
from archsetup.lib.hardware import HardwareProfile
from archsetup.lib.installer import Installer
from archsetup.lib.models.config import DesktopEnvironment, InstallConfig

from .conftest import FakeCapabilities


@pytest.mark.parametrize(
	'desktop, profile_class, greeter',
	[
		(DesktopEnvironment.Sway, SwayProfile, GreeterType.Ly),
		(DesktopEnvironment.Gnome, GnomeProfile, GreeterType.Gdm),
		(DesktopEnvironment.Kde, KdeProfile, GreeterType.Sddm),
	],
)
def test_desktop_profiles(desktop: DesktopEnvironment, profile_class: type, greeter: GreeterType) -> None:
	profile = desktop_profile(desktop)

	assert isinstance(profile, profile_class)
	assert profile.default_greeter_type == greeter
	assert profile.services == [greeter.value]
	assert greeter.value in profile.packages
	assert profile.environment['MOZ_ENABLE_WAYLAND'] == '1'


@pytest.fixture
def sway_installation(
	make_config: Callable[..., InstallConfig],
	capabilities: FakeCapabilities,
	target_root: Path,
	intel_desktop: HardwareProfile,
) -> Installer:
	return Installer(make_config(desktop='sway'), intel_desktop, capabilities, target=target_root)


def test_sway_seeds_user_config(sway_installation: Installer, target_root: Path, capabilities: FakeCapabilities) -> None:
	system_config = target_root / 'etc/sway/config'
	system_config.parent.mkdir(parents=True)
	system_config.write_text('set $mod Mod4\n')

	sway_installation.install_profile()
	sway_installation.install_profile()

	user_config = (target_root / 'home/alice/.config/sway/config').read_text()
	assert user_config.startswith('set $mod Mod4\n')
	for line in AUTOSTART_LINES:
		assert user_config.count(line) == 1

	environment = (target_root / 'etc/environment').read_text().splitlines()
	assert environment == ['MOZ_ENABLE_WAYLAND=1', 'QT_QPA_PLATFORM=wayland', 'XDG_CURRENT_DESKTOP=sway']

	assert capabilities.chroot_commands() == ['chown -R alice:alice /home/alice/.config'] * 2


def test_sway_keeps_existing_user_config(sway_installation: Installer, target_root: Path) -> None:
	user_config = target_root / 'home/alice/.config/sway/config'
	user_config.parent.mkdir(parents=True)
	user_config.write_text('exec /usr/lib/polkit-gnome/polkit-gnome-authentication-agent-1\n')

	sway_installation.install_profile()

	assert user_config.read_text() == 'exec /usr/lib/polkit-gnome/polkit-gnome-authentication-agent-1\n'


def test_sway_without_system_config(sway_installation: Installer, target_root: Path, capabilities: FakeCapabilities) -> None:
	sway_installation.install_profile()

	assert not (target_root / 'home/alice/.config').exists()
	assert capabilities.chroot_commands() == []
	assert (target_root / 'etc/environment').is_file()
