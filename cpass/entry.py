"""
Password entries.

An entry only records where a password is used (username and site) and how
long it is. The password itself is derived from the master secret on demand.
"""

from dataclasses import dataclass
from typing import Optional

from cpass.crypto import derive_password, check_length

IDENTITY_SEPARATOR = '@'


class InvalidIdentity(ValueError):
    """Raised when an identity is not of the form user@site."""


class InvalidEntry(ValueError):
    """Raised when a stored record cannot be turned into an entry."""


def parse_identity(identity: str) -> tuple:
    """
    Split an identity into username and site.

    The split happens on the last '@' so usernames may be e-mail addresses.

    Args:
        identity: Identity string, e.g. 'alice@example.com@mail.example.com'

    Returns:
        Tuple (username, site)

    Raises:
        InvalidIdentity: If there is no '@' or either side is empty
    """
    username, sep, site = identity.rpartition(IDENTITY_SEPARATOR)
    if not sep:
        raise InvalidIdentity(f"Invalid entry id '{identity}': expected user@site")
    if not username or not site:
        raise InvalidIdentity(f"Invalid entry id '{identity}': username and site must not be empty")
    return username, site


@dataclass(frozen=True)
class Entry:
    """A single stored (username, site, length) record."""

    username: str
    url: str
    length: int

    @classmethod
    def from_identity(cls, identity: str, length: int) -> 'Entry':
        username, url = parse_identity(identity)
        return cls(username=username, url=url, length=check_length(length))

    @classmethod
    def from_dict(cls, data: dict) -> 'Entry':
        """
        Build an entry from its JSON representation.

        Raises:
            InvalidEntry: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise InvalidEntry(f'Entry must be an object, got {type(data).__name__}')
        try:
            username = data['username']
            url = data['url']
            length = data['length']
        except KeyError as e:
            raise InvalidEntry(f'Entry is missing field {e}') from e
        if not isinstance(username, str) or not username:
            raise InvalidEntry('Entry username must be a non-empty string')
        if not isinstance(url, str) or not url or IDENTITY_SEPARATOR in url:
            raise InvalidEntry(f"Entry url must be a non-empty string without '{IDENTITY_SEPARATOR}'")
        if isinstance(length, bool) or not isinstance(length, int):
            raise InvalidEntry('Entry length must be an integer')
        return cls(username=username, url=url, length=length)

    def to_dict(self) -> dict:
        return {'url': self.url, 'username': self.username, 'length': self.length}

    def identity(self) -> str:
        return self.username + IDENTITY_SEPARATOR + self.url

    def describe(self) -> str:
        return f'{self.identity()} ({self.length})'

    def derive_password(self, secret: bytes) -> str:
        """Regenerate this entry's password, salted with its identity."""
        return derive_password(secret, self.identity().encode('utf-8'), self.length)

    def __str__(self):
        return self.describe()


class Entries(list):
    """Ordered collection of entries, in file order."""

    def get(self, identity: str) -> Optional[Entry]:
        """Return the entry with the given identity, or None."""
        index = self.index_of(identity)
        if index is None:
            return None
        return self[index]

    def index_of(self, identity: str) -> Optional[int]:
        for i, entry in enumerate(self):
            if entry.identity() == identity:
                return i
        return None

    def filter(self, substring: str) -> 'Entries':
        """Return the entries whose identity contains substring (case-sensitive)."""
        return Entries(e for e in self if substring in e.identity())

    def __str__(self):
        return ''.join(f'{entry.describe()}\n' for entry in self)
