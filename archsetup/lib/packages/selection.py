from collections.abc import Callable
from dataclasses import dataclass

from archsetup.default_profiles.desktops import desktop_profile

from ..hardware import HardwareProfile
from ..models.config import InstallConfig
from ..models.packages import (
	APPS,
	AUDIO,
	BASE,
	FILESYSTEM,
	FONTS,
	GAME_TOOLS,
	LAPTOP,
	NETWORK,
	PRINT,
	SECURITY,
	SYSTEM,
	ZRAM,
)


def _always(config: InstallConfig, hardware: HardwareProfile) -> bool:
	return True


@dataclass(frozen=True)
class InclusionRule:
	name: str
	packages: Callable[[InstallConfig, HardwareProfile], list[str]]
	condition: Callable[[InstallConfig, HardwareProfile], bool] = _always


RULES: tuple[InclusionRule, ...] = (
	InclusionRule('base', lambda c, h: list(BASE)),
	InclusionRule('kernel', lambda c, h: [c.kernel.value, c.kernel.headers]),
	InclusionRule(
		'microcode',
		lambda c, h: [h.ucode_package] if h.ucode_package else [],
		lambda c, h: h.ucode_package is not None,
	),
	InclusionRule('system', lambda c, h: list(SYSTEM)),
	InclusionRule('security', lambda c, h: list(SECURITY)),
	InclusionRule('network', lambda c, h: list(NETWORK)),
	InclusionRule('filesystem', lambda c, h: list(FILESYSTEM)),
	InclusionRule('audio', lambda c, h: list(AUDIO)),
	InclusionRule('print', lambda c, h: list(PRINT)),
	InclusionRule('fonts', lambda c, h: list(FONTS)),
	InclusionRule('apps', lambda c, h: list(APPS)),
	InclusionRule('desktop', lambda c, h: desktop_profile(c.desktop).packages),
	InclusionRule('gpu', lambda c, h: h.gpu_packages(), lambda c, h: c.gaming),
	InclusionRule('laptop', lambda c, h: list(LAPTOP), lambda c, h: h.is_laptop),
	InclusionRule('gaming', lambda c, h: list(GAME_TOOLS), lambda c, h: c.gaming),
	InclusionRule('zram', lambda c, h: list(ZRAM), lambda c, h: not c.hibernate),
)


class PackageSelection:
	"""
	Concatenates the package sets whose rule applies, in rule order.
	Duplicates between sets are kept, pacman tolerates them.
	"""

	def __init__(self, config: InstallConfig, hardware: HardwareProfile, rules: tuple[InclusionRule, ...] = RULES):
		self._config = config
		self._hardware = hardware
		self._rules = rules

	def rules(self) -> list[InclusionRule]:
		return [rule for rule in self._rules if rule.condition(self._config, self._hardware)]

	def sets(self) -> dict[str, list[str]]:
		return {rule.name: rule.packages(self._config, self._hardware) for rule in self.rules()}

	def packages(self) -> list[str]:
		packages: list[str] = []

		for rule in self.rules():
			packages += rule.packages(self._config, self._hardware)

		return packages

	def json(self) -> dict[str, list[str]]:
		return self.sets()
