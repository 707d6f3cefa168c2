"""
Run log and dice replay.

Everything the kernel does that matters for auditing (rolls, resolutions,
applied effects) goes through the shared RunLog. A saved log can be fed back
through a ReplaySession to reproduce a run.
"""

from rulekeeper.observability.run_log import (
    EffectEvent,
    EventType,
    LogEvent,
    ResolutionEvent,
    RollEvent,
    RunLog,
    event_from_dict,
    get_run_log,
    reset_run_log,
)
from rulekeeper.observability.replay import ReplayMode, ReplaySession

__all__ = [
    "EffectEvent",
    "EventType",
    "LogEvent",
    "ResolutionEvent",
    "RollEvent",
    "RunLog",
    "event_from_dict",
    "get_run_log",
    "reset_run_log",
    "ReplayMode",
    "ReplaySession",
]
