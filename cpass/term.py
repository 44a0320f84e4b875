"""
Terminal prompts.
"""

import sys
import getpass

SECRET_PROMPT = 'secret (will not echo): '


def ask_secret(prompt: str = SECRET_PROMPT) -> bytes:
    """
    Read the master secret from the terminal without echoing it.

    Returns:
        The secret encoded as UTF-8

    Raises:
        EOFError, KeyboardInterrupt: If input is interrupted
    """
    return getpass.getpass(prompt).encode('utf-8')


def ask(question: str) -> bool:
    """Ask a yes/no question on the terminal; anything but y/yes is no."""
    sys.stderr.write(f'{question} [y/N] ')
    sys.stderr.flush()
    answer = sys.stdin.readline()
    if not answer:
        raise EOFError('no answer given')
    return answer.strip().lower() in ('y', 'yes')
