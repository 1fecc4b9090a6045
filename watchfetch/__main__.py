"""Allow ``python -m watchfetch``."""

from watchfetch.cli import cli


if __name__ == "__main__":
    cli()
