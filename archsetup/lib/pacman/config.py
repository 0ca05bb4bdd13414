import re
from pathlib import Path

from ..models.packages import Repository
from ..output import debug


class PacmanConfig:
	"""
	Uncomments repositories and options in a pacman.conf in place.
	Sections and options that are already enabled are left untouched,
	so applying the same edits twice is harmless.
	"""

	def __init__(self, path: Path = Path('/etc/pacman.conf')):
		self._config_path = path
		self._repositories: list[Repository] = []
		self._options: list[str] = []

	@property
	def path(self) -> Path:
		return self._config_path

	def enable(self, repo: Repository | list[Repository]) -> None:
		if not isinstance(repo, list):
			repo = [repo]

		self._repositories += repo

	def enable_option(self, option: str | list[str]) -> None:
		if not isinstance(option, list):
			option = [option]

		self._options += option

	def apply(self) -> None:
		if not self._repositories and not self._options:
			return

		repos_to_enable = [repo.value for repo in self._repositories]
		content = self._config_path.read_text().splitlines(keepends=True)

		for row, line in enumerate(content):
			# Check if this is a commented repository section that needs to be enabled
			match = re.match(r'^#\s*\[(.*)\]', line)

			if match and match.group(1) in repos_to_enable:
				# uncomment the repository section line, properly removing # and any spaces
				content[row] = re.sub(r'^#\s*', '', line)

				# also uncomment the next line (Include statement) if it exists and is commented
				if row + 1 < len(content) and content[row + 1].lstrip().startswith('#Include'):
					content[row + 1] = re.sub(r'^#\s*', '', content[row + 1])

				continue

			option = re.match(r'^#(\w+)\b', line)
			if option and option.group(1) in self._options:
				content[row] = line[1:]

		debug(f'Enabling {repos_to_enable + self._options} in {self._config_path}')

		# Write the modified content back to the file
		with open(self._config_path, 'w') as f:
			f.writelines(content)
