"""
CLI argument parsing for scriptboard.
"""
import argparse

import pyfiglet

from .utils import Colors, styled_print, print_subheader
from .. import __version__

# (line prefix, color, style) for help output, first match wins
HELP_LINE_STYLES = (
    ('usage:', Colors.BRIGHT_YELLOW, Colors.BOLD),
    ('options:', Colors.BRIGHT_CYAN, Colors.BOLD),
    ('optional arguments:', Colors.BRIGHT_CYAN, Colors.BOLD),
    ('positional arguments:', Colors.BRIGHT_CYAN, Colors.BOLD),
    ('  -', Colors.BRIGHT_YELLOW, None),
)


def _help_line_style(line):
    for prefix, color, style in HELP_LINE_STYLES:
        if line.startswith(prefix):
            return color, style
    return Colors.BRIGHT_GREEN, None


class StyledArgumentParser(argparse.ArgumentParser):
    """ArgumentParser whose help output is colored, with an optional banner."""

    def __init__(self, *args, show_banner=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.show_banner = show_banner

    def _print_banner(self):
        banner = pyfiglet.figlet_format("SCRIPTBOARD", font="small")
        for line in filter(str.strip, banner.splitlines()):
            styled_print(line, Colors.BRIGHT_CYAN, Colors.BOLD)
        print()
        print_subheader("COMMAND OPTIONS")

    def print_help(self, file=None):
        if self.show_banner:
            self._print_banner()

        for line in filter(str.strip, self.format_help().splitlines()):
            color, style = _help_line_style(line)
            styled_print(line, color, style)

        if self.show_banner:
            print()
            styled_print(f" scriptboard v{__version__} ", Colors.BRIGHT_MAGENTA)


def create_main_parser(show_banner: bool = True) -> argparse.ArgumentParser:
    """Create the main argument parser for scriptboard."""
    from ..commands.script import add_script_parsers

    parser = StyledArgumentParser(
        prog='scriptboard',
        description="scriptboard - video production checklist scripts in Markdown\n\n"
                    "Examples: 'scriptboard check lesson.md', 'scriptboard export lesson.md -o out.md',\n"
                    "          'scriptboard mark lesson.md task-0-1 --video'",
        formatter_class=argparse.RawTextHelpFormatter,
        allow_abbrev=False,
        show_banner=show_banner,
    )
    parser.add_argument('--version', action='version', version=f'scriptboard {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show debug logging, including every tolerated parse issue')
    parser.add_argument('--config', default=None,
                        help='Path to config.toml (default: ~/.scriptboard/config.toml)')

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.add_parser('help', aliases=['h'], help='Show this help')
    add_script_parsers(subparsers)

    return parser
