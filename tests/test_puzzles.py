"""Tests for puzzle validators and the puzzle engine."""

import pytest

from paradox.engine.puzzles import PuzzleEngine, PuzzleKind, corrupt_prompt
from paradox.engine.validators import (
    LOG_LINE,
    octal_to_symbolic,
    symbolic_to_octal,
    validate_kill_order,
    validate_pattern,
    validate_permission,
)
from paradox.engine.world import RoomId


def test_octal_symbolic_round_trip():
    for value in range(0o1000):
        octal = format(value, "03o")
        assert symbolic_to_octal(octal_to_symbolic(octal)) == octal


@pytest.mark.parametrize("answer", ["754", "rwxr-xr--", "  754\n"])
def test_permission_accepted(answer: str):
    result = validate_permission(answer)
    assert result.success
    assert result.reward == "chmod"
    assert result.corruption_delta == -3


def test_permission_invalid_octal():
    result = validate_permission("999")
    assert not result.success
    assert "invalid" in result.message.lower()
    assert result.corruption_delta == 2


def test_permission_wrong_octal_echoes_symbolic():
    result = validate_permission("755")
    assert not result.success
    assert "rwxr-xr-x" in result.message
    assert result.corruption_delta == 1


def test_permission_wrong_symbolic_echoes_octal():
    result = validate_permission("rwxrwxrwx")
    assert not result.success
    assert "777" in result.message


def test_permission_garbage():
    result = validate_permission("let me out")
    assert result.message.startswith("Invalid permission format")


def test_pattern_validation():
    assert validate_pattern(r"^\[ERROR\].*corruption.*0x[0-9a-fA-F]+$").success
    assert validate_pattern("corruption").reward == "grep"

    miss = validate_pattern("^nothing$")
    assert not miss.success
    assert miss.corruption_delta == 2

    broken = validate_pattern("[ERROR")
    assert not broken.success
    assert broken.message.startswith("REGEX ERROR:")
    assert broken.corruption_delta == 3

    for text in ("a{4294967296}", "(" * 2000 + ")" * 2000):
        result = validate_pattern(text)
        assert not result.success
        assert result.message.startswith("REGEX ERROR:")
        assert result.corruption_delta == 3

    assert "corruption" in LOG_LINE


def test_kill_order_success():
    result = validate_kill_order("kill 3047 2048 1337")
    assert result.success
    assert result.reward == "kill"
    assert result.corruption_delta == -15


def test_kill_fork_bomb():
    result = validate_kill_order("kill 1337")
    assert not result.success
    assert "fork bomb" in result.message
    assert result.corruption_delta > 10


def test_kill_zombies_remain_names_matched_pids():
    result = validate_kill_order("kill 3047 4242")
    assert result.message == "Killed processes 3047 but zombies remain active."
    assert result.corruption_delta == 5


def test_kill_wrong_order():
    result = validate_kill_order("kill 1337 2048 3047")
    assert not result.success
    assert "wrong order" in result.message
    assert result.corruption_delta == 10


def test_kill_usage():
    result = validate_kill_order("terminate everything")
    assert result.message.startswith("Invalid command")


def test_engine_rooms():
    engine = PuzzleEngine()
    assert [p.id for p in engine.list_for_room(RoomId.FILE_MAZE)] == [
        "regex-escape-1",
        "binary-permission-1",
    ]
    assert engine.list_for_room(RoomId.MEMORY_LEAK) == []
    assert engine.get("process-tree-1").kind == PuzzleKind.PROCESS_TREE


def test_attempt_counts_malformed_input():
    engine = PuzzleEngine()
    engine.attempt("binary-permission-1", "nonsense")
    engine.attempt("binary-permission-1", "999")
    state = engine.state("binary-permission-1")
    assert state.attempts == 2
    assert state.last_attempt == "999"
    assert not state.solved


def test_attempt_solves():
    engine = PuzzleEngine(clock=lambda: 42.0)
    result = engine.attempt("binary-permission-1", "754")
    assert result.success
    state = engine.state("binary-permission-1")
    assert state.solved
    assert state.solved_at == 42.0
    assert engine.unsolved_for_room(RoomId.BOOT_SEQUENCE) == []
    assert engine.solved_ids() == ["binary-permission-1"]


def test_attempt_unknown_puzzle():
    result = PuzzleEngine().attempt("nope", "754")
    assert not result.success
    assert result.message == "Puzzle not found"
    assert result.corruption_delta == 5


def test_hints_unlock_with_attempts():
    engine = PuzzleEngine()
    assert engine.hints("binary-permission-1") == []
    assert engine.next_hint_index("binary-permission-1") is None

    engine.attempt("binary-permission-1", "111")
    engine.attempt("binary-permission-1", "222")
    assert engine.hints("binary-permission-1") == [
        "chmod uses octal notation: r=4, w=2, x=1"
    ]
    assert engine.next_hint_index("binary-permission-1") == 0

    hint = engine.reveal_hint("binary-permission-1", 0)
    assert hint.cost == 0
    assert engine.hints("binary-permission-1") == []
    assert engine.reveal_hint("binary-permission-1", 0) is None
    assert engine.reveal_hint("binary-permission-1", 3) is None


def test_progress_and_reset():
    engine = PuzzleEngine()
    engine.attempt("regex-escape-1", "corruption")
    assert engine.progress() == {"total": 3, "solved": 1, "percentage": 33}

    engine.reset("regex-escape-1")
    assert engine.progress()["solved"] == 0

    engine.mark_solved("process-tree-1")
    engine.reset_all()
    assert engine.solved_ids() == []


def test_corrupt_prompt_below_threshold(fixed_rng):
    text = "Kill the zombie processes"
    assert corrupt_prompt(text, 24, fixed_rng(0.0)) == text


def test_corrupt_prompt_preserves_shape(fixed_rng):
    text = "Set permissions to\trwxr-xr-- now"
    glitched = corrupt_prompt(text, 100, fixed_rng(0.0))
    assert len(glitched) == len(text)
    assert glitched != text
    for original, new in zip(text, glitched):
        if original.isspace():
            assert new == original
