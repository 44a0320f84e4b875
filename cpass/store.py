"""
Password store operations for cpass.

Handles opening, loading, saving and validation of password stores. A store
is a JSON array of entries; every mutation rewrites the whole file.
"""

import os
import stat
import logging
import tempfile
from json import dumps, loads

from cpass.entry import Entry, Entries, InvalidEntry
from cpass.crypto import SHA256

logger = logging.getLogger(__name__)

# Constants
PLAIN_EXTENSION = '.json'
ENCRYPTED_EXTENSION = '.age'
JSON_INDENT = 2
NEW_STORE_MODE = 0o600


class StoreError(Exception):
    """Base class for password store errors."""


class StoreNotFound(StoreError):
    """The store file does not exist."""


class StoreIsDirectory(StoreError):
    """The store path names a directory."""


class UnrecognizedExtension(StoreError):
    """The store file has neither the plain nor the encrypted extension."""


class StoreExists(StoreError):
    """A store cannot be initialized over an existing file."""


class EncryptionUnsupported(StoreError):
    """Encrypted stores are recognized but cannot be read or written."""


class StoreDecodeError(StoreError):
    """The store file does not hold a valid list of entries."""


class DuplicateEntry(StoreError):
    """An entry with the same identity is already stored."""


class EntryNotFound(StoreError):
    """No entry with the given identity is stored."""


class ConcurrentModification(StoreError):
    """The store file changed between loading and rewriting it."""


def _digest(data: bytes) -> bytes:
    return SHA256.new(data=data).digest()


def encode_entries(entries: Entries) -> bytes:
    """Serialize entries as indented JSON, in order."""
    return dumps([e.to_dict() for e in entries], indent=JSON_INDENT).encode('utf-8')


def decode_entries(data: bytes) -> Entries:
    """
    Parse the contents of a store file.

    Args:
        data: Raw file contents

    Returns:
        Entries in file order

    Raises:
        StoreDecodeError: If the data is not a JSON array of valid entries
    """
    try:
        records = loads(data.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise StoreDecodeError(f'Invalid store file: {e}') from e

    if not isinstance(records, list):
        raise StoreDecodeError('Invalid store file: expected a JSON array of entries')

    entries = Entries()
    for position, record in enumerate(records):
        try:
            entries.append(Entry.from_dict(record))
        except InvalidEntry as e:
            raise StoreDecodeError(f'Invalid entry at position {position}: {e}') from e
    return entries


def initialize_store(store_path: str) -> 'Store':
    """
    Create a new, empty store.

    Parent directories are created as needed.

    Args:
        store_path: Path where to create the store

    Returns:
        The opened store

    Raises:
        StoreExists: If a file already exists at store_path
        UnrecognizedExtension: If store_path does not end in .json or .age
        EncryptionUnsupported: If store_path names an encrypted store
    """
    _, ext = os.path.splitext(store_path)
    if ext == ENCRYPTED_EXTENSION:
        raise EncryptionUnsupported('Encrypted stores are not supported yet')
    if ext != PLAIN_EXTENSION:
        raise UnrecognizedExtension(
            f"Store {store_path} must have a {PLAIN_EXTENSION} extension"
        )

    data_dir = os.path.dirname(store_path)
    if data_dir and not os.path.exists(data_dir):
        os.makedirs(data_dir)

    try:
        fd = os.open(store_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, NEW_STORE_MODE)
    except FileExistsError as e:
        raise StoreExists(f'Store already exists: {store_path}') from e
    with os.fdopen(fd, 'wb') as store_file:
        store_file.write(encode_entries(Entries()))

    logger.info('Initialized empty store at %s', store_path)
    return Store(store_path)


class Store:
    """
    Handle on a single password store file.

    The store keeps no copy of its entries; every operation reads the file.
    """

    def __init__(self, path: str):
        """
        Open the store at path.

        Raises:
            StoreNotFound: If path does not exist
            StoreIsDirectory: If path is a directory
            UnrecognizedExtension: If path does not end in .json or .age
        """
        try:
            st = os.stat(path)
        except FileNotFoundError as e:
            raise StoreNotFound(f'Store not found: {path}') from e
        if stat.S_ISDIR(st.st_mode):
            raise StoreIsDirectory(f'Store path is a directory: {path}')

        base = os.path.basename(path)
        name, ext = os.path.splitext(base)
        if ext not in (PLAIN_EXTENSION, ENCRYPTED_EXTENSION):
            raise UnrecognizedExtension(
                f"Store {path} must have a {PLAIN_EXTENSION} or {ENCRYPTED_EXTENSION} extension"
            )

        self.encrypted = ext == ENCRYPTED_EXTENSION
        if self.encrypted and name.endswith(PLAIN_EXTENSION):
            name = name[:-len(PLAIN_EXTENSION)]
        self.path = path
        self.name = name

    def __repr__(self):
        return f'Store({self.path!r})'

    def _check_plain(self):
        if self.encrypted:
            raise EncryptionUnsupported('Encrypted stores are not supported yet')

    def _load(self) -> tuple:
        self._check_plain()
        with open(self.path, 'rb') as store_file:
            data = store_file.read()
        entries = decode_entries(data)
        logger.debug('Loaded %d entries from %s', len(entries), self.path)
        return entries, _digest(data)

    def _save(self, entries: Entries, expected_digest: bytes):
        """
        Atomically replace the store file with the given entries.

        The new contents go to a temporary file next to the store, which is
        renamed over the store once fully written. If the store changed since
        it was loaded nothing is written.

        Raises:
            ConcurrentModification: If the file no longer matches expected_digest
            OSError: If the file cannot be written
        """
        data = encode_entries(entries)
        # Replace the file a symlinked store points to, not the link
        target = os.path.realpath(self.path)
        store_dir = os.path.dirname(target)
        mode = stat.S_IMODE(os.stat(target).st_mode)

        fd, temp_path = tempfile.mkstemp(prefix=f'.{self.name}.', suffix='.tmp', dir=store_dir)
        try:
            with os.fdopen(fd, 'wb') as temp_file:
                temp_file.write(data)
                temp_file.flush()
                os.fsync(temp_file.fileno())
            os.chmod(temp_path, mode)

            with open(target, 'rb') as store_file:
                if _digest(store_file.read()) != expected_digest:
                    raise ConcurrentModification(
                        f'Store {self.path} was modified by another process; nothing was written'
                    )
            # TODO: take an advisory lock around the digest check and rename
            os.replace(temp_path, target)
        except BaseException:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

        logger.debug('Wrote %d entries to %s', len(entries), self.path)

    def entries(self) -> Entries:
        """
        Load all entries from the store file.

        Raises:
            EncryptionUnsupported: If the store is encrypted
            StoreDecodeError: If the file is not a valid store
            OSError: If the file cannot be read
        """
        entries, _ = self._load()
        return entries

    def entry_exists(self, identity: str) -> bool:
        return self.entries().get(identity) is not None

    def get_entry(self, identity: str) -> Entry:
        """
        Look up an entry by identity.

        Raises:
            EntryNotFound: If no entry has this identity
        """
        entry = self.entries().get(identity)
        if entry is None:
            raise EntryNotFound(f'Entry {identity} does not exist')
        return entry

    def add_entry(self, identity: str, length: int) -> Entry:
        """
        Add a new entry and rewrite the store.

        Args:
            identity: Entry id as user@site, split on the last '@'
            length: Password length

        Returns:
            The new entry

        Raises:
            EncryptionUnsupported: If the store is encrypted
            InvalidIdentity: If identity is not of the form user@site
            LengthOutOfRange: If length is outside [1, 44]
            DuplicateEntry: If the identity is already stored
        """
        self._check_plain()
        entry = Entry.from_identity(identity, length)

        entries, digest = self._load()
        if entries.get(entry.identity()) is not None:
            raise DuplicateEntry(f'Entry {entry.identity()} already exists')

        entries.append(entry)
        self._save(entries, digest)
        logger.info('Added entry %s', entry.identity())
        return entry

    def remove_entry(self, identity: str) -> Entry:
        """
        Remove an entry and rewrite the store.

        Returns:
            The removed entry

        Raises:
            EntryNotFound: If no entry has this identity
        """
        entries, digest = self._load()
        index = entries.index_of(identity)
        if index is None:
            raise EntryNotFound(f'Entry {identity} does not exist')

        removed = entries.pop(index)
        self._save(entries, digest)
        logger.info('Removed entry %s', identity)
        return removed
