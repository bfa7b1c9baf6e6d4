"""Allow ``python -m lapdev_bootstrap``."""

from lapdev_bootstrap.main import cli

if __name__ == "__main__":
    cli()
