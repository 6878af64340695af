"""
Lifecycle hooks.

Per-SDK shell commands that run at three points:
- postClone: after the SDK repository is first cloned
- postUpdate: after every successful pull
- prePublishSpec: before specs are published to Stainless

Usage:
    from stainless_tools.core.hooks import LifecycleManager, LifecycleContext

    manager = LifecycleManager(config.lifecycle)
    await manager.post_update(LifecycleContext(path=sdk_path, branch="main", name="python"))
"""

from stainless_tools.core.hooks.executor import HookRunner
from stainless_tools.core.hooks.lifecycle import LifecycleManager
from stainless_tools.core.hooks.models import HookPoint, HookResult, LifecycleContext

__all__ = [
    "HookPoint",
    "HookResult",
    "HookRunner",
    "LifecycleContext",
    "LifecycleManager",
]
