"""Item combinations.

Combos are keyed by their two inputs sorted and joined, so ``ls + grep`` and
``grep + ls`` find the same entry. The effect of a combo is applied by the
command handlers, which special-case the combo id. Room combos only exist
while the player stands in their room.
"""

from dataclasses import dataclass

from ..logging import get_logger
from .world import RoomId

logger = get_logger(__name__)


@dataclass
class CommandCombo:
    id: str
    name: str
    inputs: tuple[str, str]
    output: str
    description: str
    discovered: bool = False


def combo_key(items: tuple[str, ...] | list[str]) -> str:
    return "+".join(sorted(items))


def _default_combos() -> list[CommandCombo]:
    return [
        CommandCombo(
            "deep-search", "Deep Search", ("ls", "grep"), "ls | grep",
            "Search through hidden files and directories",
        ),
        CommandCombo(
            "force-kill", "Force Kill", ("sudo", "kill"), "sudo kill -9",
            "Forcefully terminate any process",
        ),
        CommandCombo(
            "duplicate", "Duplicate", ("cat", "echo"), "cat | tee",
            "Duplicate items in your inventory",
        ),
        CommandCombo(
            "god-mode", "God Mode", ("chmod", "sudo"), "sudo chmod 777",
            "Temporary invincibility from corruption",
        ),
        CommandCombo(
            "pipe-dream", "Pipe Dream", ("pipe", "echo"), "echo | pipe",
            "Create a portal between rooms",
        ),
        CommandCombo(
            "memory-leak", "Memory Leak", ("free", "malloc"), "malloc --unlimited",
            "Temporarily expand inventory capacity",
        ),
    ]


def _room_combos() -> dict[RoomId, CommandCombo]:
    return {
        RoomId.ROOT_VAULT: CommandCombo(
            "root-reveal", "Root Revelation", ("ls", "sudo"), "sudo ls -la /",
            "Reveals the true nature of the system",
        ),
    }


class CombinationCatalog:
    """Fixed table of combos plus their discovered flags."""

    def __init__(self, combos: list[CommandCombo] | None = None):
        self._combos = {
            combo_key(combo.inputs): combo for combo in combos or _default_combos()
        }
        self._room_combos = _room_combos()

    def try_combine(self, item_a: str, item_b: str) -> CommandCombo | None:
        combo = self._combos.get(combo_key((item_a, item_b)))
        if combo is not None and not combo.discovered:
            combo.discovered = True
            logger.info("combo_discovered", combo=combo.id)
        return combo

    def discovered(self) -> list[CommandCombo]:
        return [combo for combo in self._every_combo() if combo.discovered]

    def hint_for_partial_set(self, held: list[str]) -> str | None:
        """Hint at a combo the held items are exactly one item short of."""
        for combo in self._combos.values():
            missing = [item for item in combo.inputs if item not in held]
            if len(missing) == 1:
                return f"These items might combine well with '{missing[0]}'..."
        return None

    def all_combos(self) -> list[str]:
        return [
            f"{' + '.join(combo.inputs)} = {combo.name}"
            for combo in self._combos.values()
        ]

    def get(self, combo_id: str) -> CommandCombo | None:
        for combo in self._every_combo():
            if combo.id == combo_id:
                return combo
        return None

    def reset(self) -> None:
        for combo in self._every_combo():
            combo.discovered = False

    def special_combination(
        self, items: list[str], room_id: RoomId
    ) -> CommandCombo | None:
        """Context-gated combos that only exist in particular rooms."""
        combo = self._room_combos.get(room_id)
        if combo is None or not all(item in items for item in combo.inputs):
            return None
        if not combo.discovered:
            combo.discovered = True
            logger.info("combo_discovered", combo=combo.id, room=str(room_id))
        return combo

    def _every_combo(self) -> list[CommandCombo]:
        return [*self._combos.values(), *self._room_combos.values()]


def describe(combo: CommandCombo) -> list[str]:
    return [f"Executed: {combo.output}", combo.description]
