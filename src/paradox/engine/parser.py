"""Tokenize free text into structured commands.

parse(raw) lowercases and whitespace-splits the input, resolves the first
token through the direction table and then the verb alias table, and fills
in target, item, direction and operands depending on the command type.
"""

from dataclasses import dataclass, field
from enum import StrEnum

from .world import ITEM_NAMES, Direction


class CommandType(StrEnum):
    MOVE = "move"
    TAKE = "take"
    USE = "use"
    DROP = "drop"
    COMBINE = "combine"
    LOOK = "look"
    EXAMINE = "examine"
    INVENTORY = "inventory"
    HELP = "help"
    SAVE = "save"
    LOAD = "load"
    RESET = "reset"
    SOLVE = "solve"
    HINT = "hint"
    UNKNOWN = "unknown"


DIRECTION_ALIASES: dict[str, Direction] = {
    **dict.fromkeys(("n", "north"), Direction.NORTH),
    **dict.fromkeys(("s", "south"), Direction.SOUTH),
    **dict.fromkeys(("e", "east"), Direction.EAST),
    **dict.fromkeys(("w", "west"), Direction.WEST),
    **dict.fromkeys(("u", "up"), Direction.UP),
    **dict.fromkeys(("d", "down"), Direction.DOWN),
}

VERB_ALIASES: dict[str, CommandType] = {
    **dict.fromkeys(("go", "walk", "move"), CommandType.MOVE),
    **dict.fromkeys(("take", "get", "grab", "pickup"), CommandType.TAKE),
    **dict.fromkeys(("use", "run", "execute", "apply"), CommandType.USE),
    **dict.fromkeys(("drop", "discard", "remove"), CommandType.DROP),
    **dict.fromkeys(("combine", "merge", "pipe"), CommandType.COMBINE),
    **dict.fromkeys(("look", "l"), CommandType.LOOK),
    **dict.fromkeys(("examine", "inspect", "check"), CommandType.EXAMINE),
    **dict.fromkeys(("inventory", "i", "inv", "items"), CommandType.INVENTORY),
    **dict.fromkeys(("help", "h", "?", "commands"), CommandType.HELP),
    "save": CommandType.SAVE,
    "load": CommandType.LOAD,
    **dict.fromkeys(("reset", "restart", "quit", "exit"), CommandType.RESET),
    **dict.fromkeys(("solve", "answer", "attempt"), CommandType.SOLVE),
    **dict.fromkeys(("hint", "hints", "clue"), CommandType.HINT),
}

_TARGETED = {CommandType.TAKE, CommandType.USE, CommandType.DROP, CommandType.EXAMINE}


@dataclass
class ParsedCommand:
    type: CommandType
    raw: str
    args: list[str] = field(default_factory=list)
    direction: Direction | None = None
    target: str | None = None
    item: str | None = None


@dataclass
class ShellInvocation:
    """A simulated shell command split into flags and positional args."""

    command: str
    flags: list[str] = field(default_factory=list)
    args: list[str] = field(default_factory=list)


def parse(raw: str) -> ParsedCommand:
    """Turn raw player text into a ParsedCommand."""
    words = raw.strip().lower().split()
    if not words:
        return ParsedCommand(type=CommandType.UNKNOWN, raw=raw)

    first, rest = words[0], words[1:]

    direction = DIRECTION_ALIASES.get(first)
    if direction is not None:
        return ParsedCommand(
            type=CommandType.MOVE, raw=raw, args=rest, direction=direction
        )

    command_type = VERB_ALIASES.get(first, CommandType.UNKNOWN)
    command = ParsedCommand(type=command_type, raw=raw, args=rest)

    match command_type:
        case CommandType.MOVE if rest:
            command.direction = DIRECTION_ALIASES.get(rest[0])
        case _ if command_type in _TARGETED and rest:
            command.target = " ".join(rest)
            if rest[0] in ITEM_NAMES:
                command.item = rest[0]
        case CommandType.COMBINE:
            if "with" in rest:
                idx = rest.index("with")
                if 0 < idx < len(rest) - 1:
                    command.args = [" ".join(rest[:idx]), " ".join(rest[idx + 1:])]

    return command


def parse_flags(text: str) -> ShellInvocation:
    """Split a shell-style command line into flags and positional args.

    Combined short flags like ``-la`` expand to ``-l`` and ``-a``; long
    flags (``--all``) and single short flags are kept whole.
    """
    parts = text.strip().split()
    if not parts:
        return ShellInvocation(command="")

    invocation = ShellInvocation(command=parts[0].lower())
    for part in parts[1:]:
        if not part.startswith("-"):
            invocation.args.append(part)
        elif len(part) > 2 and not part.startswith("--"):
            invocation.flags.extend(f"-{ch}" for ch in part[1:])
        else:
            invocation.flags.append(part)
    return invocation


def help_text() -> str:
    """Summary of the commands the interpreter understands."""
    return (
        "AVAILABLE COMMANDS:\n"
        "===================\n"
        "Movement:\n"
        "  go/move <direction>  - Move in a direction\n"
        "  n/s/e/w/up/down      - Quick movement\n"
        "\n"
        "Items:\n"
        "  take/get <item>      - Pick up an item\n"
        "  drop <item>          - Drop an item from inventory\n"
        "  use <item> [flags]   - Run a command you carry\n"
        "  combine <X> with <Y> - Combine two items\n"
        "\n"
        "Puzzles:\n"
        "  solve <answer>       - Attempt the puzzle in this room\n"
        "  hint                 - Ask for a hint (may cost corruption)\n"
        "\n"
        "Information:\n"
        "  look/l               - Look around the room\n"
        "  examine <target>     - Examine something closely\n"
        "  inventory/i          - Check your inventory\n"
        "  help/? [item]        - Show this help, or help for a command\n"
        "\n"
        "Game:\n"
        "  save                 - Save your progress\n"
        "  load                 - Load saved game\n"
        "  reset                - Reset the game\n"
        "\n"
        "TIPS:\n"
        "- Some commands can be corrupted and may not work as expected\n"
        "- Combine commands creatively to solve puzzles\n"
        "- Pay attention to error messages - they might be clues"
    )
