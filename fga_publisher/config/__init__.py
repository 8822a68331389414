"""Configuration module for the OpenFGA event publisher."""
from .settings import PublisherConfig, load_settings

__all__ = ["PublisherConfig", "load_settings"]
