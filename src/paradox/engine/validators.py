"""Validation rules for each puzzle kind.

Every validator takes the player's raw text and returns a PuzzleResult; none
of them raise on bad input.
"""

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class PuzzleResult:
    success: bool
    message: str
    corruption_delta: int = 0
    reward: str | None = None


# --- binary permission -------------------------------------------------

PERMISSION_TRIPLETS = ("---", "--x", "-w-", "-wx", "r--", "r-x", "rw-", "rwx")

TARGET_OCTAL = "754"
TARGET_SYMBOLIC = "rwxr-xr--"

_OCTAL_SHAPE = re.compile(r"^\d{3}$")
_OCTAL = re.compile(r"^[0-7]{3}$")
_SYMBOLIC = re.compile(r"^[rwx-]{9}$")


def octal_to_symbolic(octal: str) -> str:
    return "".join(PERMISSION_TRIPLETS[int(digit)] for digit in octal)


def symbolic_to_octal(symbolic: str) -> str:
    digits = []
    for i in range(0, 9, 3):
        chunk = symbolic[i:i + 3]
        value = 0
        if chunk[0] == "r":
            value |= 4
        if chunk[1] == "w":
            value |= 2
        if chunk[2] == "x":
            value |= 1
        digits.append(str(value))
    return "".join(digits)


def validate_permission(text: str) -> PuzzleResult:
    """Accept octal (754) or symbolic (rwxr-xr--) notation."""
    value = text.strip()

    if _OCTAL_SHAPE.match(value):
        if value == TARGET_OCTAL:
            return PuzzleResult(
                True, "Permissions set! The file is now accessible.", -3, "chmod"
            )
        if _OCTAL.match(value):
            return PuzzleResult(
                False,
                f"Permissions set to {octal_to_symbolic(value)}, "
                "but the file remains locked.",
                1,
            )
        return PuzzleResult(
            False, "Invalid octal notation. Use values 0-7 for each digit.", 2
        )

    if _SYMBOLIC.match(value):
        if value == TARGET_SYMBOLIC:
            return PuzzleResult(
                True, "Permissions matched! The file is now accessible.", -3, "chmod"
            )
        return PuzzleResult(
            False,
            f"Permissions {symbolic_to_octal(value)} ({value}) "
            "don't match the required pattern.",
            1,
        )

    return PuzzleResult(
        False,
        "Invalid permission format. Use octal (e.g., 755) "
        "or symbolic (e.g., rwxr-xr-x).",
        2,
    )


# --- regex escape ------------------------------------------------------

LOG_LINE = "[ERROR] Memory corruption detected at 0x7fff"


def validate_pattern(text: str) -> PuzzleResult:
    """Compile the player's text and search the corrupted log line with it."""
    try:
        pattern = re.compile(text)
    except (re.error, OverflowError, RecursionError) as exc:
        return PuzzleResult(False, f"REGEX ERROR: {exc}", 3)

    if pattern.search(LOG_LINE):
        return PuzzleResult(
            True, "Pattern matched! The corruption clears slightly.", -5, "grep"
        )
    return PuzzleResult(False, "Pattern does not match the corrupted logs.", 2)


# --- process tree ------------------------------------------------------


@dataclass(frozen=True)
class Process:
    pid: int
    ppid: int
    name: str
    status: str


PROCESS_TREE = (
    Process(1, 0, "init", "running"),
    Process(1337, 1, "fork_bomb", "running"),
    Process(2048, 1337, "zombie_spawn", "zombie"),
    Process(3047, 2048, "zombie_child", "zombie"),
    Process(666, 1, "daemon", "sleeping"),
    Process(9999, 666, "watcher", "running"),
)

KNOWN_PIDS = frozenset(process.pid for process in PROCESS_TREE)
REQUIRED_KILLS = (3047, 2048, 1337)
FORK_BOMB_PID = 1337

_KILL_COMMAND = re.compile(r"kill\s+([\d\s]+)")


def process_table() -> str:
    rows = [
        f"{p.pid:<6}{p.ppid:<6}{p.status:<10}{p.name}" for p in PROCESS_TREE
    ]
    return "\n".join(["PID   PPID  STATUS    NAME", "-" * 32, *rows])


def kill_order_valid(pids: list[int]) -> bool:
    """True if no required process is killed before one of its children."""
    relevant = [pid for pid in pids if pid in REQUIRED_KILLS]
    for i, pid in enumerate(relevant):
        for child in PROCESS_TREE:
            if child.ppid != pid or child.pid not in relevant:
                continue
            if relevant.index(child.pid) > i:
                return False
    return True


def validate_kill_order(text: str) -> PuzzleResult:
    """Check a ``kill <pid...>`` command against the process tree."""
    match = _KILL_COMMAND.search(text)
    if not match:
        return PuzzleResult(
            False, "Invalid command. Use: kill <pid> [pid2] [pid3]", 2
        )

    pids = [int(pid) for pid in match.group(1).split()]

    if pids == [FORK_BOMB_PID]:
        return PuzzleResult(
            False,
            "CRITICAL: Killing parent process triggered fork bomb! "
            "System corrupting...",
            20,
        )

    if not all(pid in pids for pid in REQUIRED_KILLS):
        killed = ", ".join(str(pid) for pid in pids if pid in KNOWN_PIDS)
        return PuzzleResult(
            False, f"Killed processes {killed} but zombies remain active.", 5
        )

    if kill_order_valid(pids):
        return PuzzleResult(
            True, "All zombie processes terminated! System stabilizing...", -15, "kill"
        )
    return PuzzleResult(
        False,
        "Processes killed but in wrong order. Fork bomb partially triggered!",
        10,
    )
