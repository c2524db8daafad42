"""
Package entry point.

Allows running the scraper via:

    python -m modscraper

This simply forwards execution to modscraper.cli.main().
"""

from modscraper.cli import main

if __name__ == "__main__":
    main()
