"""
Command line interface for ripcheck

    ripcheck [folder] [--fix] [--sort]     analyse boundaries, optionally repair and sort
    ripcheck problems [folder]             cross-reference albums against last.fm
    ripcheck sort [folder]                 move tracks into Artist/Album folders
"""

import argparse
import sys
from typing import List, Optional

from .. import __version__
from ..app import RipCheckApp
from ..core.exceptions import RipCheckError
from ..utils.logging_config import setup_logging
from .config import CLIConfig, LOG_LEVELS, create_tolerances


SUBCOMMANDS = ('problems', 'p', 'sort', 's')


def _add_common_options(parser: argparse.ArgumentParser):
    logging_group = parser.add_argument_group('Logging Options')
    logging_group.add_argument('--log-level', choices=LOG_LEVELS, default=None,
                               help='Console logging level (default: WARNING)')
    logging_group.add_argument('--log-dir', metavar='DIR',
                               help='Directory for log files (default: ~/.ripcheck/logs)')
    logging_group.add_argument('--no-log-files', action='store_true',
                               help='Do not write log files')

    utility_group = parser.add_argument_group('Utility Options')
    utility_group.add_argument('--config', metavar='FILE',
                               help='Load configuration from JSON file')
    utility_group.add_argument('--no-color', action='store_false', dest='color', default=None,
                               help='Disable colored output')
    utility_group.add_argument('--no-progress', action='store_false', dest='progress_bars', default=None,
                               help='Disable progress bars')
    utility_group.add_argument('--version', action='version', version=f'ripcheck {__version__}')


def create_parser() -> argparse.ArgumentParser:
    """Parser of the root command"""
    parser = argparse.ArgumentParser(
        prog='ripcheck',
        description="Check a music collection for silence, clipping and truncation left by ripping",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s /path/to/music                  # Report boundary problems
  %(prog)s /path/to/music --fix            # Trim fixable tracks in place
  %(prog)s /path/to/music --fix --dry-run  # Show the trims without writing
  %(prog)s /path/to/music --sort           # Also move tracks into Artist/Album folders

Subcommands:
  %(prog)s problems /path/to/music         # Cross-reference albums against last.fm
  %(prog)s sort /path/to/music             # Only sort the collection
        """
    )
    parser.add_argument('folder', nargs='?', default='.',
                        help='Folder to check (default: current directory)')

    basic_group = parser.add_argument_group('Basic Options')
    basic_group.add_argument('--fix', action='store_true',
                             help='Trim tracks with fixable boundary problems')
    basic_group.add_argument('--sort', action='store_true',
                             help='Move tracks into Artist/Album folders')
    basic_group.add_argument('--dry-run', action='store_true',
                             help='Preview changes without modifying files')
    basic_group.add_argument('--workers', type=int, default=None, metavar='N',
                             help='Number of parallel workers (default: 10)')

    _add_common_options(parser)
    return parser


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Parser of the problems and sort subcommands"""
    parser = argparse.ArgumentParser(prog='ripcheck')
    subparsers = parser.add_subparsers(dest='command', required=True)

    problems = subparsers.add_parser(
        'problems', aliases=['p'],
        help='check for tracks with the wrong length or albums with missing songs'
    )
    problems.add_argument('folder', nargs='?', default='.')
    problems.add_argument('--key', '-k', dest='lastfm_api_key', metavar='KEY',
                          help='last.fm API key (default: LASTFM_API_KEY)')
    problems.add_argument('--secret', '-s', dest='lastfm_api_secret', metavar='SECRET',
                          help='last.fm API secret (default: LASTFM_API_SECRET)')
    _add_common_options(problems)

    sort = subparsers.add_parser('sort', aliases=['s'], help='sorts your music collection')
    sort.add_argument('folder', nargs='?', default='.')
    sort.add_argument('--dry-run', action='store_true',
                      help='Print the moves without performing them')
    _add_common_options(sort)

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] in SUBCOMMANDS:
        args = create_subcommand_parser().parse_args(argv)
        args.command = {'p': 'problems', 's': 'sort'}.get(args.command, args.command)
        return args
    args = create_parser().parse_args(argv)
    args.command = 'check'
    return args


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point; returns the process exit code"""
    args = parse_args(argv)

    try:
        cli_config = CLIConfig(args.config)
        config = cli_config.load_config()

        options = cli_config.create_run_options(
            folder=args.folder,
            fix=getattr(args, 'fix', None),
            sort=getattr(args, 'sort', None),
            dry_run=getattr(args, 'dry_run', None),
            workers=getattr(args, 'workers', None),
            color=args.color,
            progress_bars=args.progress_bars,
            lastfm_api_key=getattr(args, 'lastfm_api_key', None),
            lastfm_api_secret=getattr(args, 'lastfm_api_secret', None),
        )

        setup_logging(
            log_dir=args.log_dir or config['app'].get('log_dir'),
            console_level=args.log_level or config['app']['log_level'],
            file_level=config['app'].get('file_log_level', 'DEBUG'),
            enable_files=not args.no_log_files,
            color=options.color,
        )

        app = RipCheckApp(options, create_tolerances(options))

        if args.command == 'problems':
            app.run_catalog_check()
        elif args.command == 'sort':
            app.run_sort()
        else:
            app.run()

    except RipCheckError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130

    return 0


if __name__ == '__main__':
    sys.exit(main())
