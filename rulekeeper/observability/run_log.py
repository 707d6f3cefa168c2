"""
Run log for the rules kernel.

Every dice roll, every resolved intent and every applied effect lands here in
the order it happened. A saved log can be audited later or turned into a
ReplaySession that feeds the same dice back to the engine.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Callable, ClassVar, Iterable, Optional
import json
import logging

logger = logging.getLogger(__name__)

# Keys of one entry in a replayable roll stream
ROLL_KEYS = ("notation", "rolls", "modifier", "total", "reason")


class EventType(str, Enum):
    """Kinds of logged events."""

    ROLL = "roll"
    RESOLUTION = "resolution"  # intent turned into a Resolution
    EFFECT = "effect"  # effect committed to a world
    CUSTOM = "custom"


def _signed(modifier: int) -> str:
    if modifier > 0:
        return f" + {modifier}"
    if modifier < 0:
        return f" - {-modifier}"
    return ""


# =============================================================================
# EVENTS
# =============================================================================


@dataclass
class LogEvent:
    """
    One entry in the run log.

    Subclasses add their own fields and set ``kind``; serialization walks the
    dataclass fields, so a new event type only needs its fields declared.
    """

    kind: ClassVar[EventType] = EventType.CUSTOM

    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    game_time: Optional[str] = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def event_type(self) -> EventType:
        return self.kind

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"event_type": self.kind.value}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = value.isoformat() if isinstance(value, datetime) else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Rebuild an event, ignoring keys this event type does not declare."""
        kwargs = {f.name: data[f.name] for f in fields(cls) if f.name in data}
        if isinstance(kwargs.get("timestamp"), str):
            kwargs["timestamp"] = datetime.fromisoformat(kwargs["timestamp"])
        return cls(**kwargs)

    def __str__(self) -> str:
        label = str(self.context.get("event_name", self.kind.value)).upper()
        return f"[{self.sequence_number}] {label} {self.context}"


@dataclass
class RollEvent(LogEvent):
    """A dice roll; rolls holds every face drawn, kept or not."""

    kind: ClassVar[EventType] = EventType.ROLL

    notation: str = ""
    rolls: list[int] = field(default_factory=list)
    modifier: int = 0
    total: int = 0
    reason: str = ""

    def replay_entry(self) -> dict[str, Any]:
        return {key: getattr(self, key) for key in ROLL_KEYS}

    def __str__(self) -> str:
        why = f" ({self.reason})" if self.reason else ""
        return (
            f"[{self.sequence_number}] ROLL {self.notation}: "
            f"{self.rolls}{_signed(self.modifier)} = {self.total}{why}"
        )


@dataclass
class ResolutionEvent(LogEvent):
    """An intent resolved by the engine."""

    kind: ClassVar[EventType] = EventType.RESOLUTION

    intent_type: str = ""
    narrative: str = ""
    effect_types: list[str] = field(default_factory=list)
    rejected: bool = False

    def __str__(self) -> str:
        outcome = "REJECTED" if self.rejected else f"{len(self.effect_types)} effects"
        return f"[{self.sequence_number}] RESOLVE {self.intent_type} ({outcome}): {self.narrative}"


@dataclass
class EffectEvent(LogEvent):
    """An effect committed to the world, with a JSON-friendly field summary."""

    kind: ClassVar[EventType] = EventType.EFFECT

    effect_type: str = ""
    summary: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.sequence_number}] APPLY {self.effect_type} {self.summary}"


_EVENT_TYPES: dict[str, type[LogEvent]] = {
    cls.kind.value: cls for cls in (RollEvent, ResolutionEvent, EffectEvent)
}


def event_from_dict(data: dict[str, Any]) -> LogEvent:
    """Rebuild a saved event as its own subclass; unknown kinds become LogEvent."""
    return _EVENT_TYPES.get(data.get("event_type", ""), LogEvent).from_dict(data)


# =============================================================================
# RUN LOG
# =============================================================================


class RunLog:
    """
    Ordered record of kernel events for one session.

    There is one log per process. Calling RunLog() again returns the same
    object; get_run_log() is the usual way in.
    """

    _shared: Optional["RunLog"] = None

    def __new__(cls) -> "RunLog":
        if cls._shared is None:
            log = super().__new__(cls)
            log._listeners = []
            log._clock = None
            log._paused = False
            log._clear()
            cls._shared = log
        return cls._shared

    def _clear(self) -> None:
        self._events: list[LogEvent] = []
        self._sequence = 0
        self._seed: Optional[int] = None
        self._started_at = datetime.now()

    def reset(self) -> None:
        """Drop all events and the seed; listeners and the clock stay."""
        self._clear()
        logger.info("RunLog reset")

    # -------------------------------------------------------------------------
    # Session settings
    # -------------------------------------------------------------------------

    def set_seed(self, seed: int) -> None:
        """Record which seed the session's dice were built with."""
        self._seed = seed
        logger.info(f"RunLog seed: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def set_game_time_provider(self, provider: Optional[Callable[[], str]]) -> None:
        """Stamp each new event with the string this callback returns, e.g. str(world.game_time)."""
        self._clock = provider

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Call ``callback`` with every event recorded from now on."""
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def _append(self, event: LogEvent) -> LogEvent:
        if self._paused:
            return event

        self._sequence += 1
        event.sequence_number = self._sequence
        if self._clock is not None:
            event.game_time = self._clock()
        self._events.append(event)

        # A failing listener must not lose the event for the others
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Run log listener {listener!r} raised {e!r}")
        return event

    def log_roll(
        self,
        notation: str,
        rolls: Iterable[int],
        modifier: int,
        total: int,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        event = RollEvent(
            notation=notation,
            rolls=list(rolls),
            modifier=modifier,
            total=total,
            reason=reason,
            context=dict(context or {}),
        )
        self._append(event)
        return event

    def log_resolution(
        self,
        intent_type: str,
        narrative: str,
        effect_types: Iterable[str],
        context: Optional[dict[str, Any]] = None,
    ) -> ResolutionEvent:
        """Record a resolved intent; no effect types means it was rejected."""
        effect_types = list(effect_types)
        event = ResolutionEvent(
            intent_type=intent_type,
            narrative=narrative,
            effect_types=effect_types,
            rejected=not effect_types,
            context=dict(context or {}),
        )
        self._append(event)
        return event

    def log_effect(self, effect_type: str, summary: Optional[dict[str, Any]] = None) -> EffectEvent:
        event = EffectEvent(effect_type=effect_type, summary=dict(summary or {}))
        self._append(event)
        return event

    def log_custom(self, event_name: str, details: dict[str, Any]) -> LogEvent:
        return self._append(LogEvent(context={"event_name": event_name, **details}))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Return recorded events in order.

        Args:
            event_type: Only events of this kind; None for every kind
            since_sequence: Only events recorded after this sequence number

        Returns:
            Matching events, oldest first
        """
        return [
            e for e in self._events
            if e.sequence_number > since_sequence and (event_type is None or e.kind == event_type)
        ]

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_resolutions(self) -> list[ResolutionEvent]:
        return [e for e in self._events if isinstance(e, ResolutionEvent)]

    def get_applied_effects(self) -> list[EffectEvent]:
        return [e for e in self._events if isinstance(e, EffectEvent)]

    def get_roll_stream(self) -> list[dict[str, Any]]:
        """Every roll as a ROLL_KEYS dict, in the order rolled. This is what replay consumes."""
        return [e.replay_entry() for e in self.get_rolls()]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        resolutions = self.get_resolutions()
        return {
            "session_start": self._started_at.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "resolutions": len(resolutions),
            "rejections": len([r for r in resolutions if r.rejected]),
            "effects_applied": len(self.get_applied_effects()),
            "last_sequence": self._sequence,
        }

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """
        Render the log for reading.

        Args:
            event_types: Kinds to include; None for all
            max_events: Show only this many of the latest matching events

        Returns:
            A header followed by one line per event
        """
        shown = [e for e in self._events if not event_types or e.kind in event_types]
        if max_events:
            shown = shown[-max_events:]

        seed = "not set" if self._seed is None else self._seed
        header = [
            "=== Run Log ===",
            f"Session: {self._started_at.isoformat()}",
            f"Seed: {seed}",
            f"Total Events: {len(self._events)}",
            "",
        ]
        return "\n".join(header + [str(e) for e in shown])

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_start": self._started_at.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog written to {filepath} ({len(self._events)} events)")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Replace the shared log's contents with a saved log."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = cls()
        log._clear()
        log._started_at = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._events = [event_from_dict(entry) for entry in data.get("events", [])]
        log._sequence = data.get("sequence", len(log._events))

        logger.info(f"RunLog read from {filepath} ({len(log._events)} events)")
        return log


def get_run_log() -> RunLog:
    """Return the process-wide run log."""
    return RunLog()


def reset_run_log() -> RunLog:
    """Empty the process-wide run log and return it."""
    log = RunLog()
    log.reset()
    return log
