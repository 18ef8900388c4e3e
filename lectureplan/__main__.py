"""
Package entry point.

Allows running the application via:

    python -m lectureplan

This simply forwards execution to lectureplan.cli.main().
"""

from lectureplan.cli import main

if __name__ == "__main__":
    main()
