"""Core configuration and constants.

Import what you need from `cyberpulse.core.config` and
`cyberpulse.core.constants` to avoid heavy side effects at import time.
"""

__all__ = ["config", "constants"]
