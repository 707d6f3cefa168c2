"""
Small helpers shared by the resolvers.
"""

from typing import Optional

from rulekeeper.data_models import Character, Combatant, Condition, Feature, GameWorld


def hp_status(current: int, maximum: int) -> str:
    """Narrative suffix describing how hurt a character is."""
    if current <= maximum // 4:
        return f" (HP: {current}/{maximum} - critically wounded)"
    elif current <= maximum // 2:
        return f" (HP: {current}/{maximum} - bloodied)"
    return f" (HP: {current}/{maximum})"


def double_dice(notation: str) -> str:
    """
    Double the dice term of a damage expression for a critical hit.

    Only the leading dice count is doubled; flat damage ("1") doubles its
    value. Modifiers are never part of the notation passed here.
    """
    text = notation.strip()
    if "d" in text:
        d_pos = text.index("d")
        count_text = text[:d_pos].strip()
        count = int(count_text) if count_text.isdigit() else 1
        return f"{count * 2}{text[d_pos:]}"
    if text.isdigit():
        return str(int(text) * 2)
    return text


def quantity_prefix(quantity: int) -> str:
    """'3 x ' for stacks, nothing for single items."""
    return f"{quantity} x " if quantity > 1 else ""


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def target_combatant(world: GameWorld, target_id: Optional[str]) -> Optional[Combatant]:
    """A non-player combatant by id, if combat is running."""
    if world.combat is None or target_id is None:
        return None
    if target_id == world.player_character.id:
        return None
    return world.combat.find_by_id(target_id)


def limited_feature(character: Character, name: str) -> Optional[Feature]:
    """A feature with tracked uses, or None."""
    feature = character.find_feature(name)
    if feature is None or feature.uses is None:
        return None
    return feature


def is_unconscious(character: Character) -> bool:
    return character.has_condition(Condition.UNCONSCIOUS)
