"""
Stainless Tools - keep a local SDK checkout in sync with Stainless.

Publishes OpenAPI/Stainless config changes to the Stainless API, watches the
generated SDK branch for new commits, and pulls them into a local working copy
without losing uncommitted edits.
"""

__version__ = "3.5.2"

# Re-export the main entry points for library use
from stainless_tools.core.exceptions import ManualInterventionRequired, StainlessError
from stainless_tools.core.session import SdkSession, SessionOptions, generate_and_watch_sdk

__all__ = [
    "ManualInterventionRequired",
    "SdkSession",
    "SessionOptions",
    "StainlessError",
    "generate_and_watch_sdk",
    "__version__",
]
