"""System corruption: a 0-100 level and the distortions it unlocks.

Active effects are derived from the level alone and recomputed in full on
every level write. All randomness comes from the injected ``random.Random``
so callers can seed it.
"""

import math
import random
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TypeVar

from ..logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MIN_LEVEL = 0
MAX_LEVEL = 100

TEXT_GLITCH_CHARS = "░▒▓█▀▄▌▐│┤┬┴├┼╬═║╔╗╚╝"
BLOCK_GLITCH_CHARS = "▓▒░█▄▀▌▐"


class CorruptionEffect(StrEnum):
    TEXT_SCRAMBLE = "text-scramble"
    VISUAL_GLITCH = "visual-glitch"
    COMMAND_INTERCEPT = "command-intercept"
    MEMORY_SHUFFLE = "memory-shuffle"
    TIME_DILATION = "time-dilation"
    FALSE_ROOMS = "false-rooms"
    INPUT_LAG = "input-lag"
    ECHO_LOOP = "echo-loop"


EFFECT_THRESHOLDS: dict[CorruptionEffect, int] = {
    CorruptionEffect.TEXT_SCRAMBLE: 15,
    CorruptionEffect.VISUAL_GLITCH: 25,
    CorruptionEffect.COMMAND_INTERCEPT: 30,
    CorruptionEffect.MEMORY_SHUFFLE: 40,
    CorruptionEffect.TIME_DILATION: 50,
    CorruptionEffect.FALSE_ROOMS: 60,
    CorruptionEffect.INPUT_LAG: 70,
    CorruptionEffect.ECHO_LOOP: 80,
}

# Applied in order; floor(level / 20) of them are active at a time.
INTERCEPTIONS = (
    ("help", "hinder"),
    ("save", "corrupt"),
    ("north", "south"),
    ("take", "drop"),
    ("exit", "enter"),
)


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def effects_for(level: int) -> frozenset[CorruptionEffect]:
    return frozenset(
        effect for effect, threshold in EFFECT_THRESHOLDS.items() if level >= threshold
    )


@dataclass(frozen=True)
class CorruptionState:
    level: int = 0
    active_effects: frozenset[CorruptionEffect] = frozenset()
    intercepted: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    false_room_active: bool = False


class CorruptionSimulator:
    """Derives corruption effects from a level and applies them."""

    def __init__(self, rng: random.Random | None = None, level: int = 0):
        self._rng = rng or random.Random()
        self._state = CorruptionState()
        self.set_level(level)

    @property
    def level(self) -> int:
        return self._state.level

    @property
    def active_effects(self) -> frozenset[CorruptionEffect]:
        return self._state.active_effects

    def state(self) -> CorruptionState:
        return self._state

    def is_active(self, effect: CorruptionEffect) -> bool:
        return effect in self._state.active_effects

    def set_level(self, level: int) -> None:
        """Recompute effects for a new level.

        The stored false-room roll is kept while the level stays the same.
        """
        level = clamp_level(level)
        if level == self._state.level:
            return
        effects = effects_for(level)

        intercepted: dict[str, str] = {}
        if CorruptionEffect.COMMAND_INTERCEPT in effects:
            intercepted = dict(INTERCEPTIONS[: math.floor(level / 20)])

        self._state = CorruptionState(
            level=level,
            active_effects=effects,
            intercepted=MappingProxyType(intercepted),
            false_room_active=level >= 60 and self._rng.random() < 0.3,
        )
        logger.debug(
            "corruption_level_set",
            level=level,
            effects=sorted(effects),
            false_room=self._state.false_room_active,
        )

    def increase(self, amount: int) -> None:
        self.set_level(self.level + amount)

    def decrease(self, amount: int) -> None:
        self.set_level(self.level - amount)

    def corrupt_text(self, text: str) -> str:
        """Randomly glitch, duplicate or drop characters.

        Spaces and newlines always pass through untouched.
        """
        if not self.is_active(CorruptionEffect.TEXT_SCRAMBLE):
            return text

        chance = self.level / 300
        rng = self._rng
        out = []
        for ch in text:
            if ch in " \n" or rng.random() >= chance:
                out.append(ch)
            elif rng.random() < 0.7:
                out.append(rng.choice(TEXT_GLITCH_CHARS))
            elif rng.random() < 0.2:
                out.append(ch * 2)
        return "".join(out)

    def intercept_command(self, text: str) -> str:
        """Substitute the first word of a command or crash it outright."""
        if not self.is_active(CorruptionEffect.COMMAND_INTERCEPT):
            return text

        if self.level > 80 and self._rng.random() < 0.1:
            return "segfault"

        words = text.split(maxsplit=1)
        if not words:
            return text
        replacement = self._state.intercepted.get(words[0].lower())
        if replacement is None:
            return text
        start = text.index(words[0])
        return text[:start] + replacement + text[start + len(words[0]):]

    def shuffle(self, items: list[T]) -> list[T]:
        if not self.is_active(CorruptionEffect.MEMORY_SHUFFLE):
            return items
        shuffled = list(items)
        if self._rng.random() < self.level / 100:
            self._rng.shuffle(shuffled)
        return shuffled

    def input_delay(self) -> int:
        """Cosmetic input lag in milliseconds."""
        if not self.is_active(CorruptionEffect.INPUT_LAG):
            return 0
        return math.floor((self.level - 70) * 66)

    def should_echo(self) -> bool:
        if not self.is_active(CorruptionEffect.ECHO_LOOP):
            return False
        return self._rng.random() < (self.level - 80) / 40

    def generate_glitch(self, width: int, height: int) -> str:
        if not self.is_active(CorruptionEffect.VISUAL_GLITCH):
            return ""
        chance = self.level / 200
        rng = self._rng
        return "\n".join(
            "".join(
                rng.choice(BLOCK_GLITCH_CHARS) if rng.random() < chance else " "
                for _ in range(width)
            )
            for _ in range(height)
        )

    def should_show_false_room(self) -> bool:
        # The stored flag was rolled at the last level change; this is a
        # second, independent roll.
        return self._state.false_room_active and self._rng.random() < 0.5

    def time_dilation(self) -> float:
        if not self.is_active(CorruptionEffect.TIME_DILATION):
            return 1.0
        return self._rng.uniform(0.5, 1.5)
