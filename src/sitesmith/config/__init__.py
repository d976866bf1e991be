"""
Configuration helpers for sitesmith.
"""

from .models import DEFAULT_SITE_FILES, ConfigError, SitesmithConfig, load_config
from .settings import Secrets, get_secrets

__all__ = ["DEFAULT_SITE_FILES", "ConfigError", "SitesmithConfig", "load_config", "Secrets", "get_secrets"]
