from .selection import RULES, InclusionRule, PackageSelection

__all__ = [
	'RULES',
	'InclusionRule',
	'PackageSelection',
]
