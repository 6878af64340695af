"""
Configuration models and loading.

This module provides Pydantic models for stainless-tools configuration
with multi-layer merging: defaults < user < project < explicit file.
"""

from .env import load_layered_env
from .loader import (
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    DefaultsConfig,
    LifecycleCommands,
    SdkRepoUrls,
    StainlessToolsConfig,
)

__all__ = [
    # Models
    "DefaultsConfig",
    "LifecycleCommands",
    "SdkRepoUrls",
    "StainlessToolsConfig",
    # Loader functions
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
