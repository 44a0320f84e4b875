"""
Password derivation for cpass.

Passwords are never stored. They are regenerated from the master secret and
the entry identity using PBKDF2, then base64 encoded and truncated.
"""

from base64 import b64encode

# Try importing from Crypto (pycryptodome standard package)
# Fall back to Cryptodome (pycryptodomex installations)
try:
    from Crypto.Hash import SHA256
    from Crypto.Protocol.KDF import PBKDF2
except ImportError:
    from Cryptodome.Hash import SHA256
    from Cryptodome.Protocol.KDF import PBKDF2

# Constants
PBKDF2_ITERATIONS = 5000
KEY_SIZE = 32
# base64 of a 32 byte key is 44 characters, including one '=' of padding
MAX_PASSWORD_LENGTH = 44
DEFAULT_PASSWORD_LENGTH = 16


class LengthOutOfRange(ValueError):
    """Raised when a password length cannot be produced from the derived key."""

    def __init__(self, length):
        super().__init__(
            f'Password length must be between 1 and {MAX_PASSWORD_LENGTH}, got {length}'
        )
        self.length = length


def check_length(length: int) -> int:
    """
    Validate a password length.

    Args:
        length: Requested number of password characters

    Returns:
        The length, unchanged

    Raises:
        LengthOutOfRange: If length is not an integer in [1, MAX_PASSWORD_LENGTH]
    """
    if isinstance(length, bool) or not isinstance(length, int):
        raise LengthOutOfRange(length)
    if not 1 <= length <= MAX_PASSWORD_LENGTH:
        raise LengthOutOfRange(length)
    return length


def derive_key(secret: bytes, salt: bytes) -> bytes:
    """
    Derive the raw key using PBKDF2 with HMAC-SHA256.

    Args:
        secret: Master secret
        salt: Salt, the entry identity

    Returns:
        Derived key (32 bytes)
    """
    return PBKDF2(secret, salt, dkLen=KEY_SIZE, count=PBKDF2_ITERATIONS,
                  hmac_hash_module=SHA256)


def derive_password(secret: bytes, salt: bytes, length: int) -> str:
    """
    Derive a printable password.

    The derived key is encoded as standard base64 and cut down to the
    requested length. Identical inputs always give the identical password.

    Args:
        secret: Master secret (str is encoded as UTF-8)
        salt: Salt, the entry identity (str is encoded as UTF-8)
        length: Number of characters to keep (1 to 44)

    Returns:
        Password made of base64 characters

    Raises:
        LengthOutOfRange: If length is outside [1, 44]
    """
    check_length(length)
    if isinstance(secret, str):
        secret = secret.encode('utf-8')
    if isinstance(salt, str):
        salt = salt.encode('utf-8')
    encoded = b64encode(derive_key(secret, salt)).decode('ascii')
    return encoded[:length]
