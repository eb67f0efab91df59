"""Runtime configuration."""

from form_builder.config.settings import FormBuilderConfig

__all__ = ["FormBuilderConfig"]
