"""
Modules for the scriptboard CLI: argument parsing and terminal output.
"""
