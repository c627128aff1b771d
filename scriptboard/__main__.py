#!/usr/bin/env python3
"""
Entry point for running scriptboard as a module: python -m scriptboard
"""

import sys

from scriptboard.main import main


if __name__ == '__main__':
    sys.exit(main())
