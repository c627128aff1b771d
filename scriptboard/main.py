#!/usr/bin/env python3
"""
scriptboard - command-line entry point.
"""

import logging
import sys
from typing import Optional, Sequence

from .config import GlobalConfig
from .modules.cli_parser import create_main_parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the scriptboard CLI."""
    parser = create_main_parser()
    args = parser.parse_args(argv)

    config = GlobalConfig.load(args.config)
    args.global_config = config
    configure_logging(args.verbose or config.verbose)

    if args.command in (None, 'help', 'h'):
        parser.print_help()
        return 0

    from scriptboard.commands import handle_script_command

    return handle_script_command(args)


if __name__ == "__main__":
    sys.exit(main())
