"""Command registration with declared, registry-checked arguments."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

CommandHandler = Callable[[dict[str, object]], dict[str, object]]

ARGUMENT_KINDS = ("string", "string_list", "bool", "positive_int")


@dataclass(slots=True, frozen=True)
class CommandDispatchError(Exception):
    """Represents deterministic command dispatch failures."""

    code: str
    message: str


@dataclass(slots=True, frozen=True)
class Argument:
    """One named command argument.

    Optional strings normalize an empty value to ``None``; any other
    missing optional argument takes ``default``.
    """

    name: str
    kind: str = "string"
    required: bool = False
    default: object = None

    def __post_init__(self) -> None:
        if self.kind not in ARGUMENT_KINDS:
            raise ValueError(f"Unsupported argument kind: {self.kind}")


@dataclass(slots=True, frozen=True)
class CommandSpec:
    """A handler plus the arguments it accepts.

    ``arguments`` of ``None`` passes the raw mapping through unchecked.
    """

    name: str
    handler: CommandHandler
    arguments: tuple[Argument, ...] | None = None


@dataclass(slots=True)
class CommandRegistry:
    """Commands in registration order, validated before their handler runs."""

    _commands: dict[str, CommandSpec] = field(default_factory=dict)

    def register(
        self,
        name: str,
        handler: CommandHandler,
        arguments: tuple[Argument, ...] | None = None,
    ) -> None:
        """Register a named handler and the arguments it declares."""
        self._commands[name] = CommandSpec(name=name, handler=handler, arguments=arguments)

    def get(self, name: str) -> CommandSpec | None:
        """Return a command by name."""
        return self._commands.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered command names in deterministic order."""
        return tuple(self._commands.keys())

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Validate ``arguments`` against the command and run its handler."""
        command = self.get(name)
        if command is None:
            raise CommandDispatchError(code="UNKNOWN_COMMAND", message=f"Unknown command: {name}")
        if command.arguments is None:
            return command.handler(arguments)
        return command.handler(_bind_arguments(command, arguments))


def _bind_arguments(command: CommandSpec, arguments: dict[str, object]) -> dict[str, object]:
    declared = {argument.name for argument in command.arguments or ()}
    unexpected = sorted(key for key in arguments if key not in declared)
    if unexpected:
        raise _invalid(f"{command.name} does not accept: {', '.join(unexpected)}.")
    bound: dict[str, object] = {}
    for argument in command.arguments or ():
        bound[argument.name] = _check_value(command.name, argument, arguments.get(argument.name))
    return bound


def _check_value(command: str, argument: Argument, value: object) -> object:
    label = f"{command} {argument.name}"
    if value is None:
        if argument.required:
            raise _invalid(f"{label} is required.")
        return argument.default
    if argument.kind == "string":
        if not isinstance(value, str):
            raise _invalid(f"{label} must be a string.")
        if not value:
            if argument.required:
                raise _invalid(f"{label} must be a non-empty string.")
            return argument.default
        return value
    if argument.kind == "string_list":
        if not isinstance(value, list) or not all(isinstance(item, str) and item for item in value):
            raise _invalid(f"{label} must be a list of non-empty strings.")
        if argument.required and not value:
            raise _invalid(f"{label} must not be empty.")
        return list(value)
    if argument.kind == "bool":
        if not isinstance(value, bool):
            raise _invalid(f"{label} must be a boolean.")
        return value
    # positive_int; bool is an int subclass and is refused
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise _invalid(f"{label} must be a positive integer.")
    return value


def _invalid(message: str) -> CommandDispatchError:
    return CommandDispatchError(code="INVALID_ARGUMENTS", message=message)
