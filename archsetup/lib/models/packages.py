from dataclasses import dataclass, field
from enum import Enum


class Repository(Enum):
	Core = 'core'
	Extra = 'extra'
	Multilib = 'multilib'


@dataclass(frozen=True)
class PackageSet:
	name: str
	packages: tuple[str, ...] = field(default_factory=tuple)

	def __iter__(self):
		return iter(self.packages)

	def __len__(self) -> int:
		return len(self.packages)


BASE = PackageSet('base', ('base', 'base-devel', 'linux-firmware', 'lvm2', 'sof-firmware'))

SYSTEM = PackageSet(
	'system',
	(
		'sudo',
		'neovim',
		'git',
		'man-db',
		'pacman-contrib',
		'unzip',
		'p7zip',
		'bat',
		'eza',
		'btop',
		'reflector',
		'usbutils',
		'ripgrep',
		'fd',
		'docker',
	),
)

SECURITY = PackageSet('security', ('pcsclite', 'ccid', 'yubikey-manager', 'bitwarden', 'apparmor'))

NETWORK = PackageSet('network', ('networkmanager', 'chrony', 'firewalld', 'bluez', 'bluez-utils'))

FILESYSTEM = PackageSet('filesystem', ('efibootmgr', 'cryptsetup', 'dosfstools', 'e2fsprogs', 'ntfs-3g'))

AUDIO = PackageSet('audio', ('pipewire', 'pipewire-alsa', 'pipewire-pulse', 'wireplumber', 'alsa-firmware'))

PRINT = PackageSet('print', ('cups',))

FONTS = PackageSet(
	'fonts',
	(
		'noto-fonts',
		'noto-fonts-emoji',
		'ttf-liberation',
		'ttf-jetbrains-mono-nerd',
		'ttf-cascadia-code-nerd',
		'ttf-hack-nerd',
		'ttf-firacode-nerd',
	),
)

APPS = PackageSet('apps', ('firefox', 'thunderbird'))

LAPTOP = PackageSet('laptop', ('power-profiles-daemon', 'acpi'))

GAME_TOOLS = PackageSet('gaming', ('steam', 'lutris', 'gamemode', 'mangohud', 'wine-staging', 'winetricks'))

ZRAM = PackageSet('zram', ('zram-generator',))
