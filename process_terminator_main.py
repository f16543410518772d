#!/usr/bin/env python3
"""Main entry point for process terminator."""

import argparse
import logging
import sys
from typing import List, Optional

from terminator import __version__
from terminator.config import LOG_LEVELS, RunConfig
from terminator.process_terminator import ProcessTerminator

FILE_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_LOG_DATEFMT = '%Y.%m.%d-%H:%M:%S'

logger = logging.getLogger(__name__)

EPILOG = """\
All time-related options are specified in seconds.

examples:
  %(prog)s whatsapp
      Attempt to exit 'whatsapp' immediately.
  %(prog)s -m chrome firefox
      Wait for 'chrome' to exit before attempting to exit 'firefox'.
  %(prog)s -d 10 spotify
      Delay for 10 seconds before attempting to exit 'spotify'.
  %(prog)s -c "quit" -r "/tmp/temp1,/tmp/temp2" exif
      Send 'quit' to 'exif' before attempting to close it, then delete
      '/tmp/temp1' and '/tmp/temp2' after termination.
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog='process-terminator',
        description=(
            'Terminate processes by name with graceful handling: wait for '
            'another process to exit, delay, send a custom command, close, '
            'kill what does not exit in time and remove leftovers.'
        ),
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        'process_name',
        nargs='?',
        default=None,
        help='Name of the process to terminate'
    )
    parser.add_argument(
        '-v', '--version', action='version', version=__version__
    )
    parser.add_argument(
        '-m', '--monitor', help='Process to wait for before proceeding'
    )
    parser.add_argument(
        '-i',
        '--interval',
        type=int,
        help='How often the monitored process is checked (default: 1)'
    )
    parser.add_argument(
        '-d',
        '--delay',
        type=int,
        help='Time to wait before sending a close request (default: 0)'
    )
    parser.add_argument(
        '-c',
        '--command',
        help='Custom command written to the processes\' standard input'
    )
    parser.add_argument(
        '-w',
        '--wait',
        type=int,
        help='Time allowed for the process to close naturally (default: 0)'
    )
    parser.add_argument(
        '-r',
        '--remove',
        help='Comma-separated paths to remove after termination'
    )
    parser.add_argument(
        '-l',
        '--log',
        action='store_true',
        default=None,
        help='Also write output to a log file'
    )
    parser.add_argument('--log-file', help='Log file used with --log')
    parser.add_argument(
        '--log-level',
        choices=LOG_LEVELS,
        default=None,
        help='Set the logging level'
    )
    parser.add_argument(
        '--config', help='YAML file with default values for these options'
    )
    return parser


def configure_logging(options: RunConfig) -> None:
    """Send progress to stdout and, if requested, to a log file."""
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter('%(message)s'))
    handlers = [console]
    if options.log:
        file_handler = logging.FileHandler(options.log_file, encoding='utf-8')
        file_handler.setFormatter(
            logging.Formatter(FILE_LOG_FORMAT, datefmt=FILE_LOG_DATEFMT)
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, options.log_level),
        handlers=handlers,
        force=True
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = RunConfig.from_yaml(args.config) if args.config else None
        options = RunConfig.from_args_and_config(args, config)
    except (ValueError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    if not options.process_name:
        parser.print_help()
        return 0

    configure_logging(options)
    if options.log:
        logger.info("%s", options)

    try:
        return ProcessTerminator(options).run()
    except Exception:  # pylint: disable=broad-except
        logger.exception("Unexpected error while terminating %s",
                         options.process_name)
        return 1


if __name__ == '__main__':
    sys.exit(main())
