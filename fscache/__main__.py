"""Main entry point when executing fscache as a package.

This allows running the package using python -m fscache.
"""

from fscache.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
