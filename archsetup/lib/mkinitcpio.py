import re
from pathlib import Path

from .output import debug, info

BASE_HOOKS = ['systemd', 'autodetect', 'modconf', 'kms', 'keyboard', 'sd-vconsole', 'block', 'sd-encrypt', 'lvm2']
TRAILING_HOOKS = ['filesystems', 'fsck']


def hooks(hibernate: bool) -> list[str]:
	"""
	sd-encrypt has to unlock the container before lvm2 can activate the
	volume group inside it, and resume needs the swap volume from lvm2.
	"""
	result = list(BASE_HOOKS)

	if hibernate:
		result.append('resume')

	return result + TRAILING_HOOKS


class Mkinitcpio:
	def __init__(self, config_path: Path):
		self._config_path = config_path

	def set_hooks(self, hook_list: list[str]) -> None:
		content = self._config_path.read_text()
		line = f'HOOKS=({" ".join(hook_list)})'

		if re.search(r'^HOOKS=.*$', content, flags=re.MULTILINE):
			content = re.sub(r'^HOOKS=.*$', line, content, flags=re.MULTILINE)
		else:
			content = content.rstrip('\n') + f'\n{line}\n'

		debug(f'Setting mkinitcpio {line}')
		info('Updating mkinitcpio hooks')
		self._config_path.write_text(content)
