"""
Commands package for scriptboard CLI commands.
"""

from .script import add_script_parsers, handle_script_command

__all__ = [
    'add_script_parsers',
    'handle_script_command',
]
