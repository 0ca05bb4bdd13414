from pathlib import Path

from .chroot import ChrootExecutor
from .output import info

AUR_HELPER = 'yay-bin'
AUR_HELPER_URL = f'https://aur.archlinux.org/{AUR_HELPER}.git'


class AurHelper:
	"""
	Bootstraps yay inside the target and installs AUR packages with it.
	makepkg refuses to run as root, so everything is built as the regular
	user under a temporary NOPASSWD sudoers drop-in that is removed again
	no matter how the build ends.
	"""

	def __init__(
		self,
		chroot: ChrootExecutor,
		target: Path,
		username: str,
		build_dir: str = f'/tmp/{AUR_HELPER}',
	):
		self._chroot = chroot
		self._target = target
		self._username = username
		self._build_dir = build_dir

	@property
	def sudoers_file(self) -> Path:
		return self._target / 'etc/sudoers.d/99-aur-bootstrap'

	def _grant_nopasswd(self) -> None:
		self.sudoers_file.parent.mkdir(parents=True, exist_ok=True)
		self.sudoers_file.write_text(f'{self._username} ALL=(ALL:ALL) NOPASSWD: ALL\n')
		self.sudoers_file.chmod(0o440)

	def _revoke_nopasswd(self) -> None:
		self.sudoers_file.unlink(missing_ok=True)

	def _as_user(self, cmd: list[str]) -> str:
		return self._chroot.run(self._target, cmd, run_as=self._username)

	def install(self, packages: list[str]) -> None:
		info(f'Bootstrapping AUR helper {AUR_HELPER}')

		self._grant_nopasswd()
		try:
			self._as_user(['rm', '-rf', self._build_dir])
			self._as_user(['git', 'clone', AUR_HELPER_URL, self._build_dir])
			self._as_user(['sh', '-c', f'cd {self._build_dir} && makepkg -si --noconfirm'])
			self._as_user(['rm', '-rf', self._build_dir])

			if packages:
				info(f'Installing AUR packages: {packages}')
				self._as_user(['yay', '-S', '--noconfirm', '--needed', *packages])
		finally:
			self._revoke_nopasswd()
