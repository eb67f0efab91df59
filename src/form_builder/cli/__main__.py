"""Entry point for ``python -m form_builder.cli``."""

from form_builder.cli import app

if __name__ == "__main__":
    app()
