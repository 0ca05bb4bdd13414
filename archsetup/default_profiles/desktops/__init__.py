from archsetup.default_profiles.profile import Profile
from archsetup.lib.models.config import DesktopEnvironment

from .gnome import GnomeProfile
from .kde import KdeProfile
from .sway import SwayProfile


def desktop_profile(desktop: DesktopEnvironment) -> Profile:
	match desktop:
		case DesktopEnvironment.Sway:
			return SwayProfile()
		case DesktopEnvironment.Gnome:
			return GnomeProfile()
		case DesktopEnvironment.Kde:
			return KdeProfile()


__all__ = [
	'GnomeProfile',
	'KdeProfile',
	'SwayProfile',
	'desktop_profile',
]
