"""
Package entry point.

Allows running the application via:

    python -m classswitcher

This simply forwards execution to classswitcher.cli.main().
"""

from classswitcher.cli import main

if __name__ == "__main__":
    main()
