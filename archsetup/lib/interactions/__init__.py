from .general_conf import InputCollector

__all__ = [
	'InputCollector',
]
