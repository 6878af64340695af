"""
Lifecycle manager for per-SDK hook commands.

Looks up the command configured for an SDK at a hook point and runs it
through :class:`HookRunner`. A missing SDK entry or an unset command is a
silent no-op.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from stainless_tools.core.config.models import LifecycleCommands
from stainless_tools.core.hooks.executor import HookRunner
from stainless_tools.core.hooks.models import HookPoint, HookResult, LifecycleContext

logger = logging.getLogger(__name__)

_FIELDS = {
    HookPoint.POST_CLONE: "post_clone",
    HookPoint.POST_UPDATE: "post_update",
    HookPoint.PRE_PUBLISH_SPEC: "pre_publish_spec",
}


class LifecycleManager:
    """
    Runs the lifecycle commands configured for each SDK.

    Example:
        >>> manager = LifecycleManager({"python": LifecycleCommands(post_clone="pip install -e .")})
        >>> await manager.post_clone(LifecycleContext(path="/sdk", branch="main", name="python"))
    """

    def __init__(
        self,
        config: Mapping[str, LifecycleCommands] | None = None,
        runner: HookRunner | None = None,
    ):
        self.config = dict(config or {})
        self.runner = runner or HookRunner()

    def command_for(self, sdk_name: str, point: HookPoint) -> str | None:
        """Configured command for ``sdk_name`` at ``point``, if any."""
        commands = self.config.get(sdk_name)
        if commands is None:
            return None
        return getattr(commands, _FIELDS[point])

    async def run(self, point: HookPoint, context: LifecycleContext) -> HookResult | None:
        """
        Run the command for ``point`` if one is configured.

        Raises:
            HookError: If the command fails
        """
        command = self.command_for(context.name, point)
        if not command:
            logger.debug("No %s command configured for %s", point.value, context.name)
            return None
        return await self.runner.run(command, context, point)

    async def post_clone(self, context: LifecycleContext) -> HookResult | None:
        return await self.run(HookPoint.POST_CLONE, context)

    async def post_update(self, context: LifecycleContext) -> HookResult | None:
        return await self.run(HookPoint.POST_UPDATE, context)

    async def pre_publish_spec(self, context: LifecycleContext) -> HookResult | None:
        return await self.run(HookPoint.PRE_PUBLISH_SPEC, context)
