import shutil
from typing import TYPE_CHECKING, override

from archsetup.default_profiles.profile import GreeterType, Profile
from archsetup.lib.output import info, warn

if TYPE_CHECKING:
	from archsetup.lib.installer import Installer

AUTOSTART_LINES = [
	'exec /usr/lib/polkit-gnome/polkit-gnome-authentication-agent-1',
	'exec nm-applet --indicator',
]


class SwayProfile(Profile):
	def __init__(self) -> None:
		super().__init__(
			'Sway',
			environment={
				'MOZ_ENABLE_WAYLAND': '1',
				'QT_QPA_PLATFORM': 'wayland',
				'XDG_CURRENT_DESKTOP': 'sway',
			},
		)

	@property
	@override
	def packages(self) -> list[str]:
		return [
			'sway',
			'swaybg',
			'swayidle',
			'swaylock',
			'waybar',
			'wofi',
			'mako',
			'ly',
			'polkit-gnome',
			'thunar',
			'gvfs',
			'wezterm',
			'grim',
			'slurp',
			'wl-clipboard',
			'brightnessctl',
			'pavucontrol',
			'network-manager-applet',
			'xdg-desktop-portal-wlr',
		]

	@property
	@override
	def default_greeter_type(self) -> GreeterType:
		return GreeterType.Ly

	@override
	def install(self, install_session: 'Installer') -> None:
		super().install(install_session)
		self._seed_user_config(install_session)

	def _seed_user_config(self, install_session: 'Installer') -> None:
		user = install_session.config.user
		config_dir = install_session.target / user.home.lstrip('/') / '.config'
		user_config = config_dir / 'sway' / 'config'
		system_config = install_session.target / 'etc/sway/config'

		if not user_config.exists():
			if not system_config.exists():
				warn(f'{system_config} is missing, not seeding a sway config for {user.username}')
				return

			info(f'Seeding sway config for {user.username}')
			user_config.parent.mkdir(parents=True, exist_ok=True)
			shutil.copy2(system_config, user_config)

		content = user_config.read_text()
		if 'polkit-gnome' not in content:
			with user_config.open('a') as fp:
				fp.write('\n' + '\n'.join(AUTOSTART_LINES) + '\n')

		install_session.chown(user.username, f'{user.home}/.config', options=['-R'])
