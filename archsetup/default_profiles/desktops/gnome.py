from typing import override

from archsetup.default_profiles.profile import GreeterType, Profile


class GnomeProfile(Profile):
	def __init__(self) -> None:
		super().__init__('Gnome', environment={'MOZ_ENABLE_WAYLAND': '1'})

	@property
	@override
	def packages(self) -> list[str]:
		return [
			'gnome-shell',
			'gdm',
			'gnome-console',
			'nautilus',
			'xdg-desktop-portal-gnome',
			'gnome-control-center',
		]

	@property
	@override
	def default_greeter_type(self) -> GreeterType:
		return GreeterType.Gdm
