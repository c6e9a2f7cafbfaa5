"""Terminal review surface for the Safety Switch."""

from safety_switch.ui.console import SwitchConsole, format_parameter
from safety_switch.ui.prompts import confirm, prompt

__all__ = ["SwitchConsole", "format_parameter", "confirm", "prompt"]
