"""
Command-line interface for cpass.

Parses the command line into a Config, runs one command against the store
and reports errors. This is the only place where the process exits.
"""

import sys
import logging
import argparse

from cpass import term, clipboard
from cpass.config import Config, ConfigError, default_store_path
from cpass.crypto import DEFAULT_PASSWORD_LENGTH, MAX_PASSWORD_LENGTH
from cpass.store import Store, StoreError, initialize_store

logger = logging.getLogger('cpass')

PRINT_WARNING = 'warning: will print password to standard output'


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per action."""
    parser = argparse.ArgumentParser(
        prog='cpass',
        description='Deterministic password manager: passwords are derived, never stored',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s init                          # Create an empty store
  %(prog)s save -l 20 alice@example.com  # Add an entry with a 20 character password
  %(prog)s ls                            # List entries
  %(prog)s find example                  # List entries containing "example"
  %(prog)s open alice@example.com        # Copy the password to the clipboard
  %(prog)s open -p alice@example.com     # Print the password instead
  %(prog)s rm alice@example.com          # Remove an entry
        '''
    )
    parser.add_argument('-s', '--store', default=None,
                        help='Path to the password store (default: <config dir>/cpass/bookmarks.json)')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Show what is done to the store (repeat for debug output)')

    # -s is also accepted after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('-s', '--store', default=argparse.SUPPRESS,
                        help='Path to the password store')

    subparsers = parser.add_subparsers(dest='command', metavar='command')

    subparsers.add_parser('help', help='Show this help message')

    subparsers.add_parser('init', parents=[common], help='Create an empty password store')

    subparsers.add_parser('ls', parents=[common], help='List password entries')

    find_parser = subparsers.add_parser('find', parents=[common],
                                        help='List entries containing a substring')
    find_parser.add_argument('substring', help='Text to look for in user@site')

    open_parser = subparsers.add_parser('open', parents=[common], help='Open a password entry')
    open_parser.add_argument('-p', '--print', dest='print_password', action='store_true',
                             help='Print the password to standard output instead of copying it')
    open_parser.add_argument('entry_id', metavar='user@site')

    save_parser = subparsers.add_parser('save', parents=[common], help='Save a new password entry')
    save_parser.add_argument('-l', '--length', type=int, default=DEFAULT_PASSWORD_LENGTH,
                             help=f'Password length, 1 to {MAX_PASSWORD_LENGTH} '
                                  f'(default: {DEFAULT_PASSWORD_LENGTH})')
    save_parser.add_argument('entry_id', metavar='user@site')

    rm_parser = subparsers.add_parser('rm', parents=[common], help='Remove a password entry')
    rm_parser.add_argument('-f', '--force', action='store_true',
                           help='Do not ask before removing')
    rm_parser.add_argument('entry_id', metavar='user@site')

    return parser


def parse_config(args: argparse.Namespace) -> Config:
    """Turn parsed arguments into the Config for this invocation."""
    store_path = args.store if args.store else default_store_path()
    return Config(
        command=args.command,
        store_path=store_path,
        entry_id=getattr(args, 'entry_id', None),
        substring=getattr(args, 'substring', None),
        length=getattr(args, 'length', DEFAULT_PASSWORD_LENGTH),
        print_password=getattr(args, 'print_password', False),
        force=getattr(args, 'force', False),
        verbosity=args.verbose,
    )


def configure_logging(verbosity: int):
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(format='cpass: %(message)s', level=level, stream=sys.stderr)


def init_command(config: Config):
    store = initialize_store(config.store_path)
    print(f'Created empty store {store.name} at {store.path}')


def list_command(config: Config):
    store = Store(config.store_path)
    print(store.entries(), end='')


def find_command(config: Config):
    store = Store(config.store_path)
    print(store.entries().filter(config.substring), end='')


def open_command(config: Config):
    """Derive the password of an entry and deliver it."""
    if config.print_password:
        sys.stderr.write(f'{PRINT_WARNING}\n')

    store = Store(config.store_path)
    entry = store.get_entry(config.entry_id)

    secret = term.ask_secret()
    password = entry.derive_password(secret)

    if config.print_password:
        print(password)
        return

    clipboard.copy(password)
    print('copied to clipboard.')


def save_command(config: Config):
    store = Store(config.store_path)
    entry = store.add_entry(config.entry_id, config.length)
    print(f'saved {entry.describe()}')


def remove_command(config: Config) -> int:
    store = Store(config.store_path)
    # Fails with EntryNotFound before prompting
    store.get_entry(config.entry_id)

    if not config.force and not term.ask(f'remove entry {config.entry_id}?'):
        sys.stderr.write('aborted.\n')
        return 0

    store.remove_entry(config.entry_id)
    print(f'removed {config.entry_id}')
    return 0


COMMANDS = {
    'init': init_command,
    'ls': list_command,
    'find': find_command,
    'open': open_command,
    'save': save_command,
    'rm': remove_command,
}


def main(argv=None) -> int:
    """
    Main entry point.

    Args:
        argv: Command line arguments without the program name (default: sys.argv[1:])

    Returns:
        Process exit status
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_usage(sys.stderr)
        return 1
    if args.command == 'help':
        parser.print_help()
        return 0

    try:
        config = parse_config(args)
        configure_logging(config.verbosity)
        logger.debug('Using store %s', config.store_path)
        status = COMMANDS[config.command](config)
    except (EOFError, KeyboardInterrupt):
        sys.stderr.write('\n')
        return 1
    except (StoreError, ConfigError, ValueError, OSError) as e:
        sys.stderr.write(f'ERROR: {e}\n')
        return 1

    return status or 0


if __name__ == '__main__':
    sys.exit(main())
