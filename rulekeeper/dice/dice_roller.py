"""
Dice engine for the rules kernel.

Parses standard dice notation ("2d6+3", "1d20 - 1", "8d6 + 2d6"), rolls it
through an injectable random source and reports advantage, critical and
fumble information. Every roll is kept in the roller's own log and mirrored
to the run log so sessions can be audited and replayed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING
import logging
import random
import re

from rulekeeper.observability.run_log import get_run_log

if TYPE_CHECKING:
    from rulekeeper.observability.replay import ReplaySession

logger = logging.getLogger(__name__)


MAX_DICE_COUNT = 1000
MAX_DIE_SIDES = 1000

_TERM_PATTERN = re.compile(r"[+-]?[^+-]+")
_DICE_TERM = re.compile(r"^(\d*)d(\d+)$")


class DiceParseError(ValueError):
    """Raised when a dice notation string cannot be parsed."""


# =============================================================================
# ADVANTAGE
# =============================================================================


class Advantage(str, Enum):
    """Roll-twice modes for d20 rolls."""
    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"

    def combine(self, other: "Advantage") -> "Advantage":
        """
        Stack two advantage sources.

        Advantage and disadvantage cancel out; anything combined with
        NORMAL keeps the other side.
        """
        if self == Advantage.NORMAL:
            return other
        if other == Advantage.NORMAL or other == self:
            return self
        return Advantage.NORMAL


# =============================================================================
# EXPRESSIONS
# =============================================================================


@dataclass(frozen=True)
class DiceGroup:
    """One NdS term of an expression."""
    count: int
    sides: int
    sign: int = 1

    def __str__(self) -> str:
        return f"{self.count}d{self.sides}"


@dataclass(frozen=True)
class DiceExpression:
    """A parsed dice expression: signed dice groups plus a flat modifier."""
    groups: tuple[DiceGroup, ...]
    modifier: int = 0
    notation: str = ""

    @property
    def is_single_d20(self) -> bool:
        """True for expressions like 1d20+5 that advantage applies to."""
        return (
            len(self.groups) == 1
            and self.groups[0].count == 1
            and self.groups[0].sides == 20
            and self.groups[0].sign == 1
        )

    def __str__(self) -> str:
        return self.notation


def parse(notation: str) -> DiceExpression:
    """
    Parse dice notation into a DiceExpression.

    Whitespace is ignored and a missing count means one die ("d6" == "1d6").
    Pure flat expressions such as "5" are accepted.

    Args:
        notation: Dice notation string

    Returns:
        The parsed expression

    Raises:
        DiceParseError: If the notation is empty or malformed
    """
    if not isinstance(notation, str):
        raise DiceParseError(f"Dice notation must be a string, got {type(notation).__name__}")

    compact = "".join(notation.split()).lower()
    if not compact:
        raise DiceParseError("Empty dice notation")

    terms = _TERM_PATTERN.findall(compact)
    if "".join(terms) != compact:
        raise DiceParseError(f"Invalid dice notation: '{notation}'")

    groups: list[DiceGroup] = []
    modifier = 0
    for term in terms:
        sign = -1 if term.startswith("-") else 1
        body = term.lstrip("+-")
        if not body:
            raise DiceParseError(f"Invalid dice notation: '{notation}'")

        match = _DICE_TERM.match(body)
        if match:
            count = int(match.group(1)) if match.group(1) else 1
            sides = int(match.group(2))
            if not 1 <= count <= MAX_DICE_COUNT:
                raise DiceParseError(f"Dice count out of range in '{notation}': {count}")
            if not 1 <= sides <= MAX_DIE_SIDES:
                raise DiceParseError(f"Die size out of range in '{notation}': d{sides}")
            groups.append(DiceGroup(count=count, sides=sides, sign=sign))
        elif body.isdigit():
            modifier += sign * int(body)
        else:
            raise DiceParseError(f"Invalid dice term '{term}' in '{notation}'")

    return DiceExpression(groups=tuple(groups), modifier=modifier, notation=compact)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class GroupResult:
    """Rolled faces for one dice group."""
    sides: int
    rolls: tuple[int, ...]
    kept: tuple[int, ...]
    subtotal: int


@dataclass(frozen=True)
class RollResult:
    """
    Result of rolling an expression.

    natural_20 and natural_1 describe the unmodified primary d20 face
    (the kept die when advantage applied), never the total.
    """
    notation: str
    groups: tuple[GroupResult, ...]
    modifier: int
    total: int
    natural_20: bool = False
    natural_1: bool = False
    reason: str = ""

    @property
    def rolls(self) -> list[int]:
        """Every die face rolled, in order."""
        return [face for group in self.groups for face in group.rolls]

    @property
    def kept(self) -> list[int]:
        """Every die face that counted toward the total."""
        return [face for group in self.groups for face in group.kept]

    def is_critical(self) -> bool:
        return self.natural_20

    def is_fumble(self) -> bool:
        return self.natural_1

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.kept} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.kept} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.kept} = {self.total}"


def minimal_roll(notation: str = "1d4", reason: str = "") -> RollResult:
    """The deterministic last-resort result: a single d4 showing 1."""
    return RollResult(
        notation=notation,
        groups=(GroupResult(sides=4, rolls=(1,), kept=(1,), subtotal=1),),
        modifier=0,
        total=1,
        reason=reason,
    )


# =============================================================================
# ROLLER
# =============================================================================


class DiceRoller:
    """
    Randomization interface for the rules kernel.

    Each roller owns its random source, so two engines built with separate
    rollers never share state. Pass a seed (or a ready random.Random) for
    reproducible sequences.
    """

    _replay_session: Optional["ReplaySession"] = None

    def __init__(self, seed: Optional[int] = None, rng: Optional[random.Random] = None):
        self._seed = seed
        self._rng = rng if rng is not None else random.Random(seed)
        self._roll_log: list[RollResult] = []

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    def set_seed(self, seed: int) -> None:
        """Reseed the random source for reproducibility."""
        self._seed = seed
        self._rng.seed(seed)

    @classmethod
    def set_replay_session(cls, session: Optional["ReplaySession"]) -> None:
        """Install (or clear, with None) a replay session shared by all rollers."""
        cls._replay_session = session

    @classmethod
    def get_replay_session(cls) -> Optional["ReplaySession"]:
        return cls._replay_session

    # -------------------------------------------------------------------------
    # Rolling
    # -------------------------------------------------------------------------

    def roll(self, notation: str, reason: str = "") -> RollResult:
        """
        Roll dice using standard notation (e.g., '2d6', '1d20+5', '3d6-2').

        Args:
            notation: Dice notation string
            reason: Why this roll is being made (for logging)

        Returns:
            RollResult with individual rolls and total

        Raises:
            DiceParseError: If the notation is malformed
        """
        return self.roll_expression(parse(notation), reason=reason)

    def roll_expression(self, expr: DiceExpression, reason: str = "") -> RollResult:
        """Roll an already-parsed expression with no advantage."""
        return self._roll(expr, Advantage.NORMAL, reason)

    def roll_with_advantage(
        self,
        notation: str,
        mode: Advantage = Advantage.NORMAL,
        reason: str = "",
    ) -> RollResult:
        """
        Roll an expression honoring advantage or disadvantage.

        Only single-d20 expressions roll twice; anything else rolls normally.
        """
        return self._roll(parse(notation), mode, reason)

    def roll_d20(
        self,
        modifier: int = 0,
        advantage: Advantage = Advantage.NORMAL,
        reason: str = "",
    ) -> RollResult:
        """Convenience method for d20 + modifier rolls."""
        return self._roll(
            DiceExpression(
                groups=(DiceGroup(count=1, sides=20),),
                modifier=modifier,
                notation=f"1d20{format_modifier(modifier)}" if modifier else "1d20",
            ),
            advantage,
            reason,
        )

    def roll_with_fallback(self, notation: str, fallback: str, reason: str = "") -> RollResult:
        """
        Roll untrusted notation without ever raising.

        Tries the notation, then the fallback. If both fail to parse, a
        minimal result (a single d4 showing 1) is returned instead.
        """
        for candidate in (notation, fallback):
            try:
                return self.roll(candidate, reason=reason)
            except DiceParseError as e:
                logger.debug(f"Dice fallback: {e}")

        result = minimal_roll(fallback, reason)
        self._record(result)
        return result

    def get_roll_log(self) -> list[RollResult]:
        """Get every roll made by this roller."""
        return self._roll_log.copy()

    def clear_roll_log(self) -> None:
        """Clear the roll log."""
        self._roll_log = []

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _roll(self, expr: DiceExpression, mode: Advantage, reason: str) -> RollResult:
        double_d20 = expr.is_single_d20 and mode != Advantage.NORMAL
        faces = self._draw_faces(expr, double_d20)

        group_results: list[GroupResult] = []
        position = 0
        for group in expr.groups:
            if double_d20:
                rolls = tuple(faces[position:position + 2])
                position += 2
                chosen = max(rolls) if mode == Advantage.ADVANTAGE else min(rolls)
                kept: tuple[int, ...] = (chosen,)
            else:
                rolls = tuple(faces[position:position + group.count])
                position += group.count
                kept = rolls
            group_results.append(
                GroupResult(
                    sides=group.sides,
                    rolls=rolls,
                    kept=kept,
                    subtotal=group.sign * sum(kept),
                )
            )

        natural_20 = False
        natural_1 = False
        if group_results and expr.groups[0].sides == 20 and len(group_results[0].kept) == 1:
            primary = group_results[0].kept[0]
            natural_20 = primary == 20
            natural_1 = primary == 1

        total = sum(g.subtotal for g in group_results) + expr.modifier
        result = RollResult(
            notation=expr.notation,
            groups=tuple(group_results),
            modifier=expr.modifier,
            total=total,
            natural_20=natural_20,
            natural_1=natural_1,
            reason=reason,
        )
        self._record(result)
        return result

    def _draw_faces(self, expr: DiceExpression, double_d20: bool) -> list[int]:
        """Take faces from the replay stream when one is active, else the RNG."""
        sides_sequence: list[int] = []
        for group in expr.groups:
            repeat = 2 if double_d20 else group.count
            sides_sequence.extend([group.sides] * repeat)

        session = self._replay_session
        if session is not None and session.is_replaying():
            recorded = session.get_next_roll()
            if recorded is not None:
                faces = list(recorded.get("rolls", []))
                if len(faces) == len(sides_sequence) and all(
                    1 <= face <= sides for face, sides in zip(faces, sides_sequence)
                ):
                    return faces
                logger.warning(
                    f"Replay roll mismatch for {expr.notation}: "
                    f"recorded {recorded.get('notation')} {faces}"
                )

        return [self._rng.randint(1, sides) for sides in sides_sequence]

    def _record(self, result: RollResult) -> None:
        self._roll_log.append(result)
        get_run_log().log_roll(
            notation=result.notation,
            rolls=result.rolls,
            modifier=result.modifier,
            total=result.total,
            reason=result.reason,
        )
        session = self._replay_session
        if session is not None and session.is_recording():
            session.add_roll(result.notation, result.rolls, result.modifier, result.total, result.reason)


def format_modifier(value: int) -> str:
    """Render a modifier as '+3' or '-1'."""
    return f"+{value}" if value >= 0 else str(value)


# Process default roller
_dice_roller: Optional[DiceRoller] = None


def get_dice_roller() -> DiceRoller:
    """Get the process-wide default DiceRoller."""
    global _dice_roller
    if _dice_roller is None:
        _dice_roller = DiceRoller()
    return _dice_roller


def roll(notation: str, reason: str = "") -> RollResult:
    """Roll notation with the default roller."""
    return get_dice_roller().roll(notation, reason)


def roll_result_summary(result: RollResult) -> dict[str, Any]:
    """Compact dict view of a roll for logs and CLI output."""
    return {
        "notation": result.notation,
        "rolls": result.rolls,
        "kept": result.kept,
        "modifier": result.modifier,
        "total": result.total,
        "natural_20": result.natural_20,
        "natural_1": result.natural_1,
    }
