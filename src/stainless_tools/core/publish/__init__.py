"""
Publishing specifications to Stainless.

- StainlessApi: uploads specs to the Stainless API
- FileWatcher: file change subscription
- PublishCoordinator: debounced, single-flight publishing on file changes
"""

from stainless_tools.core.publish.api import StainlessApi
from stainless_tools.core.publish.coordinator import PublishCoordinator
from stainless_tools.core.publish.watcher import FileWatcher

__all__ = [
    "FileWatcher",
    "PublishCoordinator",
    "StainlessApi",
]
