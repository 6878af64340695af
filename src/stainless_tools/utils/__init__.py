"""Utility modules for stainless-tools."""

from .paths import DEFAULT_TARGET_DIR, get_target_dir

__all__ = [
    "DEFAULT_TARGET_DIR",
    "get_target_dir",
]
