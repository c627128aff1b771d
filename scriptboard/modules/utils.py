"""
Terminal output helpers for scriptboard.
"""
import sys


class Colors:
    # Text colors
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'

    # Bright colors
    BRIGHT_GREEN = '\033[92m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_MAGENTA = '\033[95m'
    BRIGHT_CYAN = '\033[96m'

    # Formatting
    BOLD = '\033[1m'

    # Reset
    RESET = '\033[0m'


def _supports_color() -> bool:
    return hasattr(sys.stdout, 'isatty') and sys.stdout.isatty()


def styled_print(text, color=None, style=None, indent=0):
    """Print text indented by `indent` spaces, colored only when stdout is a terminal."""
    prefix = " " * indent
    if color is None and style is None or not _supports_color():
        print(prefix + str(text))
    else:
        print(f"{prefix}{color or ''}{style or ''}{text}{Colors.RESET}")


def print_header(text, width=60):
    rule = "=" * width
    for line in (rule, text.center(width), rule):
        styled_print(line, Colors.BRIGHT_CYAN, Colors.BOLD)


def print_subheader(text):
    styled_print(f"\n{text}", Colors.CYAN, Colors.BOLD, 2)


def print_success(text, indent=0):
    styled_print(text, Colors.GREEN, Colors.BOLD, indent)


def print_warning(text, indent=0):
    styled_print(text, Colors.YELLOW, Colors.BOLD, indent)


def print_error(text, indent=0):
    styled_print(text, Colors.RED, Colors.BOLD, indent)


def print_info(text, indent=0):
    styled_print(text, Colors.BLUE, None, indent)


def format_progress_bar(percentage: int, width: int = 20) -> str:
    """
    Render a percentage as a text bar.

    Examples:
        >>> format_progress_bar(50, width=10)
        '[#####-----]  50%'
    """
    filled = int(round(width * percentage / 100))
    return f"[{'#' * filled}{'-' * (width - filled)}] {percentage:3d}%"
