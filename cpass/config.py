"""
Configuration for a single cpass invocation.
"""

import os
import sys
from typing import NamedTuple

from cpass.crypto import DEFAULT_PASSWORD_LENGTH

APP_DIR = 'cpass'
DEFAULT_STORE_NAME = 'bookmarks.json'


class ConfigError(Exception):
    """Raised when no default store location can be determined."""


def user_config_dir() -> str:
    """
    Return the platform's per-user configuration directory.

    Linux and BSD follow XDG ($XDG_CONFIG_HOME, else ~/.config), macOS uses
    ~/Library/Application Support and Windows uses %APPDATA%.

    Raises:
        ConfigError: If the relevant environment variable is not set
    """
    if sys.platform == 'win32':
        appdata = os.environ.get('APPDATA')
        if not appdata:
            raise ConfigError('%APPDATA% is not defined')
        return appdata

    home = os.environ.get('HOME')
    if sys.platform == 'darwin':
        if not home:
            raise ConfigError('$HOME is not defined')
        return os.path.join(home, 'Library', 'Application Support')

    xdg = os.environ.get('XDG_CONFIG_HOME')
    if xdg:
        return xdg
    if not home:
        raise ConfigError('neither $XDG_CONFIG_HOME nor $HOME are defined')
    return os.path.join(home, '.config')


def default_store_path() -> str:
    """Default store file: <config dir>/cpass/bookmarks.json"""
    return os.path.join(user_config_dir(), APP_DIR, DEFAULT_STORE_NAME)


class Config(NamedTuple):
    """Options for one command, built from the command line."""

    command: str
    store_path: str
    entry_id: str = None
    substring: str = None
    length: int = DEFAULT_PASSWORD_LENGTH
    print_password: bool = False
    force: bool = False
    verbosity: int = 0
