"""
Package entry point.

Allows running the application via:

    python -m gridplanner

This simply forwards execution to gridplanner.cli.main().
"""

from gridplanner.cli import main

if __name__ == "__main__":
    main()
