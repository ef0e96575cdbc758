"""Main entry point when executing figlink as a package.

This allows running the package using python -m figlink.
"""

from figlink.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
