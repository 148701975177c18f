"""
Rewatch CLI Package.

Command line entry point, see cli.main.
Requires Python 3.11+.
"""
