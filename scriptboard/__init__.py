"""
scriptboard - video production checklist scripts in Markdown

This package provides the script document model, the markdown codec that
round-trips it, and a command-line interface around them.
"""

__version__ = "1.0.0"


def main(*args, **kwargs):
    """Lazy import to avoid CLI startup side effects for library users."""
    from .main import main as _main

    return _main(*args, **kwargs)


__all__ = ["main", "__version__"]
