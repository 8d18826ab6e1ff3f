"""Command dispatch and handler functions.

handle_command(game, text) -> list[str] is the main entry point. It parses
the (already intercepted) text and dispatches on the command type. All
handlers mutate state through the GameStateStore and return output lines.
"""

import random
from collections.abc import Callable
from dataclasses import dataclass, field

from . import shell
from .combos import CombinationCatalog, CommandCombo, describe
from .corruption import CorruptionSimulator
from .parser import CommandType, ParsedCommand, help_text, parse, parse_flags
from .puzzles import Puzzle, PuzzleEngine, PuzzleKind, corrupt_prompt
from .state import GameStateStore
from .validators import process_table
from .world import ITEM_NAMES, Room, RoomGraph, RoomId

MOVE_CORRUPTION_CHANCE = 0.2
MOVE_CORRUPTION_AMOUNT = 5
GLITCH_ERROR_LEVEL = 50
MEMORY_LEAK_SLOTS = 3

GLITCH_ERRORS = (
    "ERROR: Command not recognized.",
    "SEGMENTATION FAULT",
    "ERROR: Corrupted command.",
    "????: ???????? ??? ?????",
)

SOLVED_FLAG_PREFIX = "solved:"
ROOM_ITEM_FLAG_PREFIX = "room_item:"


@dataclass
class Game:
    """Everything a command handler may read or mutate during one turn."""

    store: GameStateStore
    graph: RoomGraph
    puzzles: PuzzleEngine
    combos: CombinationCatalog
    corruption: CorruptionSimulator
    rng: random.Random
    rooms: dict[RoomId, Room] = field(default_factory=dict)

    @property
    def room(self) -> Room:
        return self.rooms[self.store.state.current_room]

    def refresh_rooms(self) -> None:
        """Rebuild per-session room copies, replaying items taken and dropped.

        A ``room_item:<room>:<item>`` flag records whether the item was last
        dropped in (True) or taken from (False) that room.
        """
        self.rooms = {room.id: room for room in self.graph.all_rooms()}
        for key, present in self.store.state.flags.items():
            if not key.startswith(ROOM_ITEM_FLAG_PREFIX):
                continue
            room_id, item = key[len(ROOM_ITEM_FLAG_PREFIX):].split(":", 1)
            room = self.rooms.get(room_id)
            if room is None:
                continue
            if present and item not in room.items:
                room.items.append(item)
            elif not present and item in room.items:
                room.items.remove(item)

    def restore_progress(self) -> None:
        """Re-mark puzzles solved according to persisted flags."""
        self.puzzles.reset_all()
        for key, value in self.store.state.flags.items():
            if value and key.startswith(SOLVED_FLAG_PREFIX):
                self.puzzles.mark_solved(key[len(SOLVED_FLAG_PREFIX):])


def _verb_remainder(raw: str) -> str:
    """Everything after the first word, with its original case."""
    parts = raw.strip().split(maxsplit=1)
    return parts[1] if len(parts) > 1 else ""


def _shift_corruption(game: Game, delta: int) -> None:
    if delta > 0:
        game.store.increase_corruption(delta)
    elif delta < 0:
        game.store.decrease_corruption(-delta)


def describe_room(game: Game) -> list[str]:
    """Describe the current room, or a false one when memory lies."""
    shown = game.room
    if game.corruption.should_show_false_room():
        others = [room for room in game.rooms.values() if room.id != shown.id]
        shown = game.rng.choice(others)

    lines = ["", f"> {shown.name.upper()}"]
    if shown.ascii:
        lines.append(shown.ascii)
    lines.append(shown.description)

    items = game.corruption.shuffle(list(shown.items))
    if items:
        lines.append(f"Items here: {', '.join(items)}")
    lines.append(f"Exits: {', '.join(shown.exits) or 'none'}")

    for puzzle in game.puzzles.unsolved_for_room(shown.id):
        prompt = corrupt_prompt(puzzle.description, game.corruption.level, game.rng)
        lines.append(f"[PUZZLE] {puzzle.name}: {prompt}")
    return lines


def _cmd_move(game: Game, command: ParsedCommand) -> list[str]:
    direction = command.direction
    if direction is None:
        return ["ERROR: Move where? Specify a direction."]

    room = game.room
    destination = game.graph.destination(room, direction)
    if not game.graph.can_move(room, direction) or destination is None:
        return [f"ERROR: Cannot move {direction}. Path blocked."]

    game.store.move_to_room(destination)
    lines = [f"You move {direction}..."]
    if game.rng.random() < MOVE_CORRUPTION_CHANCE:
        game.store.increase_corruption(MOVE_CORRUPTION_AMOUNT)
        lines.append("WARNING: Memory corruption detected!")
    return lines + describe_room(game)


def _cmd_take(game: Game, command: ParsedCommand) -> list[str]:
    if not command.target:
        return ["ERROR: Take what?"]

    room = game.room
    item = next(
        (i for i in room.items if i in (command.target, command.item)), None
    )
    if item is None:
        return [f"ERROR: No such item: {command.target}"]
    if not game.store.add_item(item):
        return ["ERROR: Inventory full. Drop something first."]
    room.items.remove(item)
    game.store.set_flag(f"{ROOM_ITEM_FLAG_PREFIX}{room.id}:{item}", False)
    return [f"Acquired command: {item}"]


def _cmd_drop(game: Game, command: ParsedCommand) -> list[str]:
    if not command.target:
        return ["ERROR: Drop what?"]
    if command.item is None or not game.store.remove_item(command.item):
        return [f"ERROR: You don't have: {command.target}"]
    game.room.items.append(command.item)
    game.store.set_flag(f"{ROOM_ITEM_FLAG_PREFIX}{game.room.id}:{command.item}", True)
    return [f"Dropped: {command.item}"]


def _attempt(game: Game, puzzle: Puzzle, answer: str) -> list[str]:
    result = game.puzzles.attempt(puzzle.id, answer)
    lines = [result.message]
    if result.success:
        game.store.set_flag(f"{SOLVED_FLAG_PREFIX}{puzzle.id}", True)
        reward = result.reward
        if reward and not game.store.has_item(reward):
            if game.store.add_item(reward):
                lines.append(f"Reward acquired: {reward}")
            else:
                lines.append(f"Reward '{reward}' lost: inventory full.")
    _shift_corruption(game, result.corruption_delta)
    return lines


def _run_shell(game: Game, line: str) -> list[str]:
    invocation = parse_flags(line)
    room = game.room
    unsolved = game.puzzles.unsolved_for_room(room.id)

    if invocation.command == "kill" and invocation.args and all(
        arg.isdigit() for arg in invocation.args
    ):
        for puzzle in unsolved:
            if puzzle.kind == PuzzleKind.PROCESS_TREE:
                return _attempt(game, puzzle, "kill " + " ".join(invocation.args))

    active = unsolved[0].id if unsolved else None
    result = shell.execute(invocation, room.id, active)
    for flag, value in result.flags_to_set.items():
        game.store.set_flag(flag, value)
    _shift_corruption(game, result.corruption_change)
    return result.output


def _cmd_use(game: Game, command: ParsedCommand) -> list[str]:
    if not command.target:
        return ["ERROR: Use what?"]
    if command.item is None or not game.store.has_item(command.item):
        return [f"ERROR: Command not found: {command.target}"]
    return _run_shell(game, _verb_remainder(command.raw))


def _apply_combo(game: Game, combo: CommandCombo) -> list[str]:
    store = game.store
    match combo.id:
        case "deep-search":
            store.set_flag("found_hidden", True)
            return ["Revealing hidden paths..."]
        case "force-kill":
            store.decrease_corruption(20)
            return ["Process terminated with extreme prejudice."]
        case "duplicate":
            held = store.state.inventory
            copy = next((i for i in held if i not in combo.inputs), combo.inputs[0])
            if not store.add_item(copy):
                return ["ERROR: Inventory full. Nothing to duplicate into."]
            return [f"Item duplicated: {copy}"]
        case "god-mode":
            store.set_flag("god_mode", True)
            store.decrease_corruption(25)
            return ["God mode activated. Corruption recedes."]
        case "pipe-dream":
            store.set_flag("portal_open", True)
            return ["Portal created!"]
        case "memory-leak":
            store.expand_inventory(MEMORY_LEAK_SLOTS)
            return ["Inventory expanded!"]
        case "root-reveal":
            store.set_flag("truth_revealed", True)
            return ["The truth is revealed..."]
    return []


def _cmd_combine(game: Game, command: ParsedCommand) -> list[str]:
    if len(command.args) != 2:
        return ["ERROR: Combine what? Use: combine <X> with <Y>"]

    first, second = command.args
    missing = [item for item in (first, second) if not game.store.has_item(item)]
    if missing:
        return [f"ERROR: You don't have: {', '.join(missing)}"]

    known = {combo.id for combo in game.combos.discovered()}
    combo = game.combos.special_combination(
        [first, second], game.room.id
    ) or game.combos.try_combine(first, second)
    if combo is None:
        return [f"Nothing happens. '{first}' and '{second}' don't combine."]

    lines = describe(combo)
    if combo.id in known:
        return lines + ["Nothing more happens."]
    return lines + _apply_combo(game, combo)


def _cmd_look(game: Game, command: ParsedCommand) -> list[str]:
    return describe_room(game)


def _describe_puzzle(game: Game, puzzle: Puzzle) -> list[str]:
    state = game.puzzles.state(puzzle.id)
    prompt = corrupt_prompt(puzzle.description, game.corruption.level, game.rng)
    lines = [
        f"[{puzzle.difficulty.upper()}] {puzzle.name}",
        prompt,
        f"Attempts: {state.attempts if state else 0}",
    ]
    if puzzle.kind == PuzzleKind.PROCESS_TREE:
        lines.append(process_table())
    return lines


def _cmd_examine(game: Game, command: ParsedCommand) -> list[str]:
    target = command.target
    if not target:
        return ["ERROR: Examine what?"]

    room = game.room
    item = command.item
    if item and (game.store.has_item(item) or item in room.items):
        return [f"{item}: {shell.quick_help(item)}"]

    if target in ("processes", "ps", "process tree"):
        return [process_table()]

    unsolved = game.puzzles.unsolved_for_room(room.id)
    matching = [
        puzzle
        for puzzle in unsolved
        if target in ("puzzle", "puzzles", "terminal")
        or target in (puzzle.kind, puzzle.name.lower())
    ]
    if matching:
        lines: list[str] = []
        for puzzle in matching:
            lines += _describe_puzzle(game, puzzle)
        return lines
    return [f"You see nothing special about {target}."]


def _cmd_inventory(game: Game, command: ParsedCommand) -> list[str]:
    state = game.store.state
    lines = ["", "COMMAND INVENTORY:"]
    items = game.corruption.shuffle(list(state.inventory))
    if not items:
        lines.append("  [empty]")
    lines += [f"  {i}. {item}" for i, item in enumerate(items, start=1)]
    lines.append(f"Memory: {len(state.inventory)}/{state.max_inventory}")

    hint = game.combos.hint_for_partial_set(list(state.inventory))
    if hint:
        lines.append(hint)
    discovered = game.combos.discovered()
    if discovered:
        lines.append("Known combos: " + ", ".join(c.name for c in discovered))
    return lines


def _cmd_help(game: Game, command: ParsedCommand) -> list[str]:
    if command.args and command.args[0] in ITEM_NAMES:
        return shell.command_help(command.args[0])
    return [help_text()]


def _cmd_save(game: Game, command: ParsedCommand) -> list[str]:
    game.store.save()
    return ["Game saved."]


def _cmd_load(game: Game, command: ParsedCommand) -> list[str]:
    if not game.store.load():
        return ["No compatible save found."]
    game.restore_progress()
    game.refresh_rooms()
    return ["Game loaded."] + describe_room(game)


def _cmd_reset(game: Game, command: ParsedCommand) -> list[str]:
    game.store.reset()
    game.puzzles.reset_all()
    game.combos.reset()
    game.refresh_rooms()
    return ["Game reset."] + describe_room(game)


def _cmd_solve(game: Game, command: ParsedCommand) -> list[str]:
    unsolved = game.puzzles.unsolved_for_room(game.room.id)
    if not unsolved:
        return ["There is nothing to solve here."]
    puzzle = unsolved[0]
    answer = _verb_remainder(command.raw)
    if not answer:
        return [f"Usage: solve <answer>  ({puzzle.name})"]
    return _attempt(game, puzzle, answer)


def _cmd_hint(game: Game, command: ParsedCommand) -> list[str]:
    unsolved = game.puzzles.unsolved_for_room(game.room.id)
    if not unsolved:
        return ["No puzzle here needs a hint."]

    puzzle = unsolved[0]
    index = game.puzzles.next_hint_index(puzzle.id)
    hint = game.puzzles.reveal_hint(puzzle.id, index) if index is not None else None
    if hint is None:
        return ["No hints available yet. Keep trying."]

    lines = [f"HINT: {hint.text}"]
    if hint.cost:
        game.store.increase_corruption(hint.cost)
        lines.append(f"(Revealing this hint cost {hint.cost}% corruption)")
    return lines


def _cmd_unknown(game: Game, command: ParsedCommand) -> list[str]:
    words = command.raw.split()
    if words and words[0].lower() in ITEM_NAMES and game.store.has_item(words[0].lower()):
        return _run_shell(game, command.raw)
    if game.store.state.corruption > GLITCH_ERROR_LEVEL:
        return [game.rng.choice(GLITCH_ERRORS)]
    return ['ERROR: Unknown command. Type "help" for commands.']


_DISPATCH: dict[CommandType, Callable[[Game, ParsedCommand], list[str]]] = {
    CommandType.MOVE: _cmd_move,
    CommandType.TAKE: _cmd_take,
    CommandType.DROP: _cmd_drop,
    CommandType.USE: _cmd_use,
    CommandType.COMBINE: _cmd_combine,
    CommandType.LOOK: _cmd_look,
    CommandType.EXAMINE: _cmd_examine,
    CommandType.INVENTORY: _cmd_inventory,
    CommandType.HELP: _cmd_help,
    CommandType.SAVE: _cmd_save,
    CommandType.LOAD: _cmd_load,
    CommandType.RESET: _cmd_reset,
    CommandType.SOLVE: _cmd_solve,
    CommandType.HINT: _cmd_hint,
    CommandType.UNKNOWN: _cmd_unknown,
}


def win_lines(game: Game) -> list[str]:
    """Congratulations block, shown once when both escape flags are set."""
    store = game.store
    if store.get_flag("escaped"):
        return []
    if not (store.get_flag("has_root") and store.get_flag("found_escape")):
        return []
    store.set_flag("escaped", True)
    return [
        "",
        "=================================",
        "CONGRATULATIONS!",
        "You have escaped the Terminal Paradox!",
        f"Time: {store.formatted_elapsed()}",
        f"Moves: {store.state.moves}",
        "=================================",
    ]


def handle_command(game: Game, text: str) -> tuple[ParsedCommand, list[str]]:
    """Parse and execute one command; returns the parsed form and output."""
    command = parse(text)
    lines = _DISPATCH[command.type](game, command)
    return command, lines + win_lines(game)
