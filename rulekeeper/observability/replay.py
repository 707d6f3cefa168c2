"""
Deterministic replay of recorded dice.

A ReplaySession wraps the roll stream of an earlier run. Once installed with
DiceRoller.set_replay_session, every roller draws its faces from the stream
in order, so resolving the same intents again gives the same outcomes. A
session in RECORDING mode builds such a stream instead.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional
import json
import logging

from rulekeeper.observability.run_log import ROLL_KEYS, EventType

logger = logging.getLogger(__name__)


class ReplayMode(str, Enum):
    DISABLED = "disabled"  # dice use their own RNG
    REPLAYING = "replaying"  # dice read faces from the stream
    RECORDING = "recording"  # dice use their own RNG and append to the stream


def _entry(source: dict[str, Any]) -> dict[str, Any]:
    defaults: dict[str, Any] = {"notation": "", "rolls": [], "modifier": 0, "total": 0, "reason": ""}
    return {key: source.get(key, defaults[key]) for key in ROLL_KEYS}


@dataclass
class ReplaySession:
    """
    A roll stream with a read cursor.

    Reading past the end is an overrun: get_next_roll() returns None, the
    roller falls back to its RNG and the session counts the miss.
    """

    seed: Optional[int] = None
    roll_stream: list[dict[str, Any]] = field(default_factory=list)
    mode: ReplayMode = ReplayMode.DISABLED
    _cursor: int = field(default=0, init=False, repr=False)
    _overruns: int = field(default=0, init=False, repr=False)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_run_log(cls, log_data: dict[str, Any]) -> "ReplaySession":
        """Build a session that replays the rolls in a RunLog.to_dict() payload."""
        rolls = [
            _entry(event)
            for event in log_data.get("events", [])
            if event.get("event_type") == EventType.ROLL.value
        ]
        return cls(seed=log_data.get("seed"), roll_stream=rolls, mode=ReplayMode.REPLAYING)

    @classmethod
    def recording(cls, seed: Optional[int] = None) -> "ReplaySession":
        return cls(seed=seed, mode=ReplayMode.RECORDING)

    @classmethod
    def load(cls, filepath: str) -> "ReplaySession":
        """
        Read a replay file.

        Accepts both the output of save() and a saved run log.

        Raises:
            OSError: If the file cannot be read
            ValueError: If it is not valid JSON
        """
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        if "roll_stream" not in data:
            return cls.from_run_log(data)
        return cls(
            seed=data.get("seed"),
            roll_stream=[_entry(roll) for roll in data["roll_stream"]],
            mode=ReplayMode.REPLAYING,
        )

    def save(self, filepath: str) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump({"seed": self.seed, "roll_stream": self.roll_stream}, f, indent=2)
        logger.info(f"Replay stream of {len(self.roll_stream)} rolls written to {filepath}")

    # -------------------------------------------------------------------------
    # Mode
    # -------------------------------------------------------------------------

    def start_replay(self) -> None:
        """Switch to replaying from the first recorded roll."""
        self.mode = ReplayMode.REPLAYING
        self.reset()
        logger.info(f"Replaying {len(self.roll_stream)} recorded rolls")

    def stop_replay(self) -> None:
        self.mode = ReplayMode.DISABLED
        logger.info(f"Replay stopped after {self._cursor} of {len(self.roll_stream)} rolls")

    def is_replaying(self) -> bool:
        return self.mode == ReplayMode.REPLAYING

    def is_recording(self) -> bool:
        return self.mode == ReplayMode.RECORDING

    def reset(self) -> None:
        self._cursor = 0
        self._overruns = 0

    # -------------------------------------------------------------------------
    # Reading and writing the stream
    # -------------------------------------------------------------------------

    def has_next_roll(self) -> bool:
        return self._cursor < len(self.roll_stream)

    def peek_next_roll(self) -> Optional[dict[str, Any]]:
        return self.roll_stream[self._cursor] if self.has_next_roll() else None

    def get_next_roll(self) -> Optional[dict[str, Any]]:
        """
        Hand out the next recorded roll.

        Returns:
            The roll dict (notation, rolls, modifier, total, reason), or None
            when not replaying or when the stream is used up
        """
        if not self.is_replaying():
            return None
        if not self.has_next_roll():
            self._overruns += 1
            logger.warning(f"Replay overrun {self._overruns}: stream ended after {len(self.roll_stream)} rolls")
            return None

        roll = self.roll_stream[self._cursor]
        self._cursor += 1
        return roll

    def add_roll(
        self,
        notation: str,
        rolls: Iterable[int],
        modifier: int,
        total: int,
        reason: str = "",
    ) -> None:
        self.roll_stream.append(
            _entry({"notation": notation, "rolls": list(rolls), "modifier": modifier, "total": total, "reason": reason})
        )

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    def get_position(self) -> int:
        return self._cursor

    def get_remaining_rolls(self) -> int:
        return max(0, len(self.roll_stream) - self._cursor)

    def get_overrun_count(self) -> int:
        return self._overruns

    def get_summary(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "mode": self.mode.value,
            "total_rolls": len(self.roll_stream),
            "current_position": self._cursor,
            "remaining_rolls": self.get_remaining_rolls(),
            "overruns": self._overruns,
        }
