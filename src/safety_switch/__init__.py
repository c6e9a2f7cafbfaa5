"""Safety Switch - human approval gate for agent-proposed actions.

Holds side-effecting actions (file writes, package installs, shell commands)
until an operator explicitly confirms or cancels them.
"""

__version__ = "0.1.0"

from safety_switch.config import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings", "__version__"]
