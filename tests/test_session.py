"""Tests for command handling through a full game session."""

from paradox.engine.commands import GLITCH_ERRORS
from paradox.engine.state import GameStateStore
from paradox.engine.world import RoomGraph, RoomId
from paradox.session import GameSession


def play(session: GameSession, *commands: str) -> list[str]:
    """Run commands and return the output lines of the last one."""
    lines: list[str] = []
    for command in commands:
        lines = list(session.process_command(command).lines)
    return lines


def text(session: GameSession, *commands: str) -> str:
    return "\n".join(play(session, *commands))


def test_look(session: GameSession):
    """LOOK describes the room, its items, exits and puzzles."""
    result = text(session, "look")
    assert "> BOOT SEQUENCE" in result
    assert "Items here: ls" in result
    assert "Exits: north" in result
    assert "[PUZZLE] Access Denied" in result


def test_intro_describes_start(session: GameSession):
    assert "> BOOT SEQUENCE" in session.intro()


def test_clean_turn_has_no_effects(session: GameSession):
    result = session.process_command("look")
    assert result.input_delay_ms == 0
    assert result.echo is None
    assert result.glitch == ""
    assert result.time_dilation == 1.0


def test_move(session: GameSession, store: GameStateStore):
    result = text(session, "north")
    assert "You move north..." in result
    assert "> FILE SYSTEM MAZE" in result
    assert store.state.current_room == RoomId.FILE_MAZE
    assert store.state.moves == 1
    assert store.state.corruption == 0


def test_blocked_move(session: GameSession, store: GameStateStore):
    assert play(session, "go south") == ["ERROR: Cannot move south. Path blocked."]
    assert play(session, "go") == ["ERROR: Move where? Specify a direction."]
    assert store.state.moves == 0


def test_move_can_corrupt(store: GameStateStore, graph: RoomGraph, fixed_rng):
    session = GameSession(store, graph, rng=fixed_rng(0.1))
    assert "WARNING: Memory corruption detected!" in play(session, "n")
    assert store.state.corruption == 5


def test_take_and_drop(session: GameSession, store: GameStateStore):
    assert play(session, "take ls") == ["Acquired command: ls"]
    assert store.has_item("ls")
    assert "ls" not in session.snapshot().room.items

    assert play(session, "take ls") == ["ERROR: No such item: ls"]
    assert play(session, "drop ls") == ["Dropped: ls"]
    assert session.snapshot().room.items == ["ls"]
    assert play(session, "drop ls") == ["ERROR: You don't have: ls"]


def test_take_when_full(session: GameSession, store: GameStateStore):
    for item in ("grep", "cat", "echo", "pipe", "kill"):
        store.add_item(item)
    assert play(session, "take ls") == ["ERROR: Inventory full. Drop something first."]
    assert session.snapshot().room.items == ["ls"]


def test_inventory(session: GameSession):
    result = text(session, "take ls", "i")
    assert "1. ls" in result
    assert "Memory: 1/5" in result
    assert "These items might combine well with 'grep'..." in result


def test_examine(session: GameSession):
    assert play(session, "examine ls") == [
        "ls: Lists files and directories in the current location"
    ]
    assert "Access Denied" in text(session, "examine puzzle")
    assert play(session, "examine wall") == ["You see nothing special about wall."]


def test_help(session: GameSession):
    assert "AVAILABLE COMMANDS:" in text(session, "help")
    assert play(session, "help grep")[1] == "GREP (GLOBAL REGULAR EXPRESSION PRINT)"


def test_use_requires_held_item(session: GameSession):
    assert play(session, "use ls") == ["ERROR: Command not found: ls"]


def test_use_ls_finds_hidden_path(session: GameSession, store: GameStateStore):
    play(session, "take ls", "n")
    assert "[!] Hidden path discovered!" in play(session, "use ls -la")
    assert store.get_flag("found_hidden")


def test_held_command_runs_directly(session: GameSession):
    play(session, "take ls")
    assert any(".secrets" in line for line in play(session, "ls -a"))


def test_unknown_command(session: GameSession):
    assert play(session, "dance") == ['ERROR: Unknown command. Type "help" for commands.']


def test_unknown_command_glitches_when_corrupted(session: GameSession, store: GameStateStore):
    store.increase_corruption(60)
    assert play(session, "dance")[0] in GLITCH_ERRORS


def test_solve_permission_puzzle(session: GameSession, store: GameStateStore):
    assert play(session, "solve 754") == [
        "Permissions set! The file is now accessible.",
        "Reward acquired: chmod",
    ]
    assert store.get_flag("solved:binary-permission-1")
    assert store.has_item("chmod")
    assert "[PUZZLE]" not in text(session, "look")
    assert play(session, "solve 754") == ["There is nothing to solve here."]


def test_failed_solve_adds_corruption(session: GameSession, store: GameStateStore):
    lines = play(session, "solve 755")
    assert "rwxr-xr-x" in lines[0]
    assert store.state.corruption == 1
    assert play(session, "solve") == ["Usage: solve <answer>  (Access Denied)"]


def test_regex_answer_keeps_case(session: GameSession, store: GameStateStore):
    play(session, "n")
    assert play(session, r"solve \[ERROR\].*0x7fff")[0].startswith("Pattern matched!")
    assert store.has_item("grep")


def test_unparseable_pattern_is_a_failed_attempt(session: GameSession, store: GameStateStore):
    play(session, "n")
    assert play(session, "solve a{4294967296}")[0].startswith("REGEX ERROR:")
    assert store.state.corruption == 3
    assert not store.get_flag("solved:regex-escape-1")


def test_hints(session: GameSession, store: GameStateStore):
    assert play(session, "hint") == ["No hints available yet. Keep trying."]
    play(session, "solve 111", "solve 222")
    assert play(session, "hint") == ["HINT: chmod uses octal notation: r=4, w=2, x=1"]
    assert play(session, "hint") == ["No hints available yet. Keep trying."]


def test_costly_hint_adds_corruption(session: GameSession, store: GameStateStore):
    for answer in ("111", "222", "333", "444", "555", "666"):
        play(session, f"solve {answer}")
    before = store.state.corruption
    play(session, "hint", "hint")
    assert play(session, "hint") == [
        "HINT: Others need read only (4)",
        "(Revealing this hint cost 3% corruption)",
    ]
    assert store.state.corruption == before + 3


def test_process_puzzle_through_kill(session: GameSession, store: GameStateStore):
    play(session, "n", "e", "take kill")
    assert play(session, "use kill 3047 2048 1337") == [
        "All zombie processes terminated! System stabilizing..."
    ]
    assert store.get_flag("solved:process-tree-1")


def test_fork_bomb_through_kill(session: GameSession, store: GameStateStore):
    play(session, "n", "e", "take kill")
    assert "fork bomb" in play(session, "kill 1337")[0]
    assert store.state.corruption == 20


def test_combine(session: GameSession, store: GameStateStore):
    assert play(session, "combine ls with grep") == ["ERROR: You don't have: ls, grep"]
    play(session, "take ls", "n", "take grep")
    assert play(session, "combine grep with ls") == [
        "Executed: ls | grep",
        "Search through hidden files and directories",
        "Revealing hidden paths...",
    ]
    assert store.get_flag("found_hidden")
    assert play(session, "combine ls with grep")[-1] == "Nothing more happens."
    assert "Known combos: Deep Search" in text(session, "inventory")


def test_root_reveal_applies_once(session: GameSession, store: GameStateStore):
    play(session, "take ls", "n", "e", "n", "take sudo")
    assert play(session, "combine ls with sudo") == [
        "Executed: sudo ls -la /",
        "Reveals the true nature of the system",
        "The truth is revealed...",
    ]
    assert store.get_flag("truth_revealed")
    assert play(session, "combine sudo with ls")[-1] == "Nothing more happens."
    assert "Known combos: Root Revelation" in text(session, "inventory")


def test_combine_unknown_pair(session: GameSession):
    play(session, "take ls", "n", "w", "take cat")
    assert play(session, "combine ls with cat") == [
        "Nothing happens. 'ls' and 'cat' don't combine."
    ]


def test_duplicate_combo(session: GameSession, store: GameStateStore):
    play(session, "take ls", "n", "w", "take cat", "take echo")
    play(session, "combine cat with echo")
    assert store.state.inventory == ("ls", "cat", "echo", "ls")


def test_win(session: GameSession, store: GameStateStore):
    store.set_flag("has_root", True)
    assert "CONGRATULATIONS!" not in text(session, "look")
    store.set_flag("found_escape", True)
    result = text(session, "look")
    assert "CONGRATULATIONS!" in result
    assert "Moves: 0" in result
    assert "CONGRATULATIONS!" not in text(session, "look")


def test_escape_route(session: GameSession, store: GameStateStore):
    """Play from boot to the root vault and escape."""
    play(session, "take ls", "n", "take grep")
    play(session, "grep escape")
    assert store.get_flag("found_escape")
    play(session, "e", "n", "take sudo")
    assert "CONGRATULATIONS!" in text(session, "sudo")
    assert store.get_flag("has_root")


def test_corruption_synced_from_store(session: GameSession, store: GameStateStore):
    store.increase_corruption(35)
    assert session.corruption.level == 35
    assert session.snapshot().corruption.level == 35


def test_reset(session: GameSession, store: GameStateStore):
    play(session, "take ls", "solve 754", "n")
    assert "Game reset." in play(session, "reset")
    assert store.state.current_room == RoomId.BOOT_SEQUENCE
    assert store.state.inventory == ()
    assert session.snapshot().room.items == ["ls"]
    assert session.snapshot().puzzles_solved == 0


def test_save_and_resume(session: GameSession, snapshot_store, graph, calm_rng):
    play(session, "take ls", "solve 754")
    assert play(session, "save") == ["Game saved."]
    session.close()

    resumed_store = GameStateStore(backend=snapshot_store)
    resumed = GameSession(resumed_store, graph, rng=calm_rng)
    assert resumed_store.state.inventory == ("ls", "chmod")
    assert "ls" not in resumed.snapshot().room.items
    assert resumed.snapshot().puzzles_solved == 1
    assert play(resumed, "load")[0] == "Game loaded."


def test_resume_keeps_room_items(session: GameSession, snapshot_store, graph, calm_rng):
    """Rewards and dropped items leave the other rooms as they were."""
    play(session, "take ls", "solve 754", "n", "drop ls", "save")
    session.close()

    resumed = GameSession(GameStateStore(backend=snapshot_store), graph, rng=calm_rng)
    assert resumed.store.state.inventory == ("chmod",)
    assert resumed.game.rooms[RoomId.BOOT_SEQUENCE].items == []
    assert resumed.game.rooms[RoomId.FILE_MAZE].items == ["grep", "ls"]
    assert resumed.game.rooms[RoomId.ROOT_VAULT].items == ["sudo", "chmod"]

    play(resumed, "take ls", "s", "drop ls")
    assert resumed.game.rooms[RoomId.FILE_MAZE].items == ["grep"]
    assert resumed.game.rooms[RoomId.BOOT_SEQUENCE].items == ["ls"]
