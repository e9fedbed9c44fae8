"""
Entry point for running pg_setconf as a module.

Usage:
    python -m pg_setconf --pgconf /path/to/postgresql.conf --change work_mem=64MB
"""

from .cli import main

if __name__ == "__main__":
    main()
