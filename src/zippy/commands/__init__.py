"""Command registry and built-in repository commands."""

from .builtin import register_builtin_commands
from .registry import Argument, CommandDispatchError, CommandHandler, CommandRegistry, CommandSpec

__all__ = [
    "Argument",
    "CommandDispatchError",
    "CommandHandler",
    "CommandRegistry",
    "CommandSpec",
    "register_builtin_commands",
]
