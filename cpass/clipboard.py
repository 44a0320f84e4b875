"""
Clipboard delivery.

On WSL the Windows clip.exe is used; everywhere else pyperclip picks the
platform's clipboard mechanism.
"""

import subprocess

import pyperclip

WSL_CLIP_PATH = '/mnt/c/Windows/system32/clip.exe'
OS_RELEASE_PATH = '/proc/sys/kernel/osrelease'


class ClipboardError(OSError):
    """Raised when text could not be copied to the clipboard."""


def is_wsl() -> bool:
    """Return True when running under the Windows Subsystem for Linux."""
    try:
        with open(OS_RELEASE_PATH, 'r') as f:
            release = f.read()
    except OSError:
        return False
    return 'microsoft' in release.lower()


def copy(text: str):
    """
    Copy text to the clipboard.

    Raises:
        ClipboardError: If no clipboard mechanism is available or it fails
    """
    if is_wsl():
        try:
            subprocess.run([WSL_CLIP_PATH], input=text.encode('utf-8'), check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise ClipboardError(f'Could not copy to clipboard: {e}') from e
        return

    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise ClipboardError(f'Could not copy to clipboard: {e}') from e
