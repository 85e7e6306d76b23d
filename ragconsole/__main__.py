"""Entry point for python -m ragconsole."""

from ragconsole.cli import app

if __name__ == "__main__":
    app()
