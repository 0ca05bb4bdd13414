from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
	from ..lib.installer import Installer


class GreeterType(Enum):
	Sddm = 'sddm'
	Gdm = 'gdm'
	Ly = 'ly'


class Profile:
	def __init__(
		self,
		name: str,
		packages: list[str] = [],
		environment: dict[str, str] = {},
	) -> None:
		self.name = name
		self._packages = packages
		self._environment = environment

	@property
	def packages(self) -> list[str]:
		"""
		Returns a list of packages that should be installed when
		this profile is the chosen one
		"""
		return list(self._packages)

	@property
	def environment(self) -> dict[str, str]:
		"""
		Variables added to /etc/environment, existing keys are never overwritten
		"""
		return dict(self._environment)

	@property
	def default_greeter_type(self) -> GreeterType | None:
		"""
		Setting a default greeter type for a desktop profile
		"""
		return None

	@property
	def services(self) -> list[str]:
		if greeter := self.default_greeter_type:
			return [greeter.value]
		return []

	def install(self, install_session: Installer) -> None:
		"""
		Performs installation steps when this profile was selected
		"""
		install_session.add_environment(self.environment)
