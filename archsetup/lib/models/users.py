import re
from dataclasses import dataclass, field
from typing import override

USERNAME_REGEX = re.compile(r'^[a-z_][a-z0-9_-]*\$?$')
USERNAME_MAX_LENGTH = 32

DEFAULT_GROUPS = ['wheel', 'video', 'input', 'storage']


def is_valid_username(username: str) -> bool:
	return len(username) <= USERNAME_MAX_LENGTH and USERNAME_REGEX.match(username) is not None


class Password:
	"""
	Holds a plaintext secret in memory only. The secret is handed to
	commands through stdin and never appears in repr/str or serialized output.
	"""

	def __init__(self, plaintext: str):
		if not plaintext:
			raise ValueError('A password cannot be empty')

		self._plaintext = plaintext

	@property
	def plaintext(self) -> str:
		return self._plaintext

	@override
	def __eq__(self, other: object) -> bool:
		if not isinstance(other, Password):
			return NotImplemented

		return self._plaintext == other._plaintext

	@override
	def __hash__(self) -> int:
		return hash(self._plaintext)

	@override
	def __repr__(self) -> str:
		return f'Password({self.hidden()})'

	@override
	def __str__(self) -> str:
		return self.hidden()

	def hidden(self) -> str:
		return '*' * 8


@dataclass
class User:
	username: str
	password: Password
	sudo: bool = True
	groups: list[str] = field(default_factory=lambda: list(DEFAULT_GROUPS))
	shell: str = '/bin/bash'

	@override
	def __str__(self) -> str:
		# safety overwrite to make sure password is not leaked
		return f'User({self.username=}, {self.sudo=}, {self.groups=})'

	@property
	def home(self) -> str:
		return f'/home/{self.username}'
