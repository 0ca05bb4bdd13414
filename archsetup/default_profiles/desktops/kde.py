from typing import override

from archsetup.default_profiles.profile import GreeterType, Profile


class KdeProfile(Profile):
	def __init__(self) -> None:
		super().__init__('KDE', environment={'MOZ_ENABLE_WAYLAND': '1'})

	@property
	@override
	def packages(self) -> list[str]:
		return [
			'plasma-desktop',
			'sddm',
			'dolphin',
			'konsole',
			'xdg-desktop-portal-kde',
			'ark',
			'spectacle',
		]

	@property
	@override
	def default_greeter_type(self) -> GreeterType:
		return GreeterType.Sddm
