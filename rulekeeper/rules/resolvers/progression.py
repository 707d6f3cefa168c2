"""
Rests, time, experience, generic features, ability score changes and the
memory-style intents (facts, travel, consequences).
"""

import logging
import uuid

from rulekeeper.classes.class_data import MAX_LEVEL, level_for_experience
from rulekeeper.data_models import GameWorld
from rulekeeper.dice.dice_roller import format_modifier
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.types import Resolution, RestType

logger = logging.getLogger(__name__)

SHORT_REST_MINUTES = 60
LONG_REST_MINUTES = 480

CONSEQUENCE_SEVERITIES = ("minor", "moderate", "major", "critical")


def describe_duration(minutes: int) -> str:
    """'2 hours and 5 minutes', '3 hours' or '45 minutes'."""
    hours, mins = divmod(minutes, 60)
    if hours > 0 and mins > 0:
        return f"{hours} hours and {mins} minutes"
    elif hours > 0:
        return f"{hours} hours"
    return f"{mins} minutes"


class ProgressionResolverMixin:
    """Resolvers for rest, time and character progression."""

    # -------------------------------------------------------------------------
    # Rest and time
    # -------------------------------------------------------------------------

    def _resolve_short_rest(self, world: GameWorld, intent: it.ShortRest) -> Resolution:
        if world.combat is not None:
            return Resolution.reject("Cannot take a short rest while in combat!")
        return Resolution(
            narrative="The party takes a short rest, spending 1 hour resting."
        ).add(fx.TimeAdvanced(minutes=SHORT_REST_MINUTES)).add(fx.RestCompleted(rest_type=RestType.SHORT))

    def _resolve_long_rest(self, world: GameWorld, intent: it.LongRest) -> Resolution:
        if world.combat is not None:
            return Resolution.reject("Cannot take a long rest while in combat!")
        return Resolution(
            narrative="The party takes a long rest, spending 8 hours resting."
        ).add(fx.TimeAdvanced(minutes=LONG_REST_MINUTES)).add(fx.RestCompleted(rest_type=RestType.LONG))

    def _resolve_advance_time(self, world: GameWorld, intent: it.AdvanceTime) -> Resolution:
        if intent.minutes < 0:
            return Resolution.reject("Time cannot run backwards.")
        return Resolution(
            narrative=f"{describe_duration(intent.minutes)} pass."
        ).add(fx.TimeAdvanced(minutes=intent.minutes))

    # -------------------------------------------------------------------------
    # Progression
    # -------------------------------------------------------------------------

    def _resolve_gain_experience(self, world: GameWorld, intent: it.GainExperience) -> Resolution:
        character = world.player_character
        new_total = character.experience + max(0, intent.amount)
        current_level = character.level
        new_level = min(MAX_LEVEL, level_for_experience(new_total))

        resolution = Resolution(
            narrative=f"Gained {intent.amount} experience points (Total: {new_total})"
        )
        resolution.add(fx.ExperienceGained(amount=intent.amount, new_total=new_total))
        for level in range(current_level + 1, new_level + 1):
            resolution.add(fx.LevelUp(new_level=level))
        if new_level > current_level:
            logger.info(f"{character.name} reached level {new_level}")
        return resolution

    def _resolve_use_feature(self, world: GameWorld, intent: it.UseFeature) -> Resolution:
        character = world.player_character
        feature = character.find_feature(intent.feature_name)
        if feature is None:
            return Resolution.reject(
                f"{character.name} does not have the feature {intent.feature_name}"
            )
        if feature.uses is None:
            # Unlimited features have nothing to track
            return Resolution(narrative=f"{character.name} uses {feature.name}")
        if feature.uses.current <= 0:
            return Resolution.reject(f"{character.name} has no uses of {feature.name} remaining")

        remaining = feature.uses.current - 1
        return Resolution(
            narrative=f"{character.name} uses {feature.name} ({remaining} uses remaining)"
        ).add(fx.FeatureUsed(feature_name=feature.name, uses_remaining=remaining))

    def _resolve_modify_ability_score(self, world: GameWorld, intent: it.ModifyAbilityScore) -> Resolution:
        duration_text = f" for {intent.duration}" if intent.duration else " permanently"
        return Resolution(
            narrative=(
                f"{intent.ability.full_name} modified by {format_modifier(intent.modifier)}"
                f"{duration_text} from {intent.source}"
            )
        ).add(fx.AbilityScoreModified(
            ability=intent.ability,
            modifier=intent.modifier,
            source=intent.source,
        ))

    # -------------------------------------------------------------------------
    # Memory, travel and consequences
    # -------------------------------------------------------------------------

    def _resolve_remember_fact(self, world: GameWorld, intent: it.RememberFact) -> Resolution:
        related = f" (related: {', '.join(intent.related_entities)})" if intent.related_entities else ""
        return Resolution(
            narrative=f"Noted: {intent.subject_name} ({intent.subject_type}) - {intent.fact}{related}"
        ).add(fx.FactRemembered(
            subject_name=intent.subject_name,
            subject_type=intent.subject_type,
            fact=intent.fact,
            category=intent.category,
            related_entities=intent.related_entities,
            importance=intent.importance,
        ))

    def _resolve_change_location(self, world: GameWorld, intent: it.ChangeLocation) -> Resolution:
        previous = world.current_location.name
        return Resolution(
            narrative=f"You travel from {previous} to {intent.new_location}."
        ).add(fx.LocationChanged(previous_location=previous, new_location=intent.new_location))

    def _resolve_register_consequence(self, world: GameWorld, intent: it.RegisterConsequence) -> Resolution:
        severity = intent.severity.strip().lower()
        if severity not in CONSEQUENCE_SEVERITIES:
            severity = "moderate"
        expiry = f" (expires in {intent.expires_in_turns} turns)" if intent.expires_in_turns is not None else ""

        return Resolution(
            narrative=(
                f"Consequence registered: If {intent.trigger_description}, then "
                f"{intent.consequence_description} ({severity} severity, importance "
                f"{intent.importance:.1f}){expiry}"
            )
        ).add(fx.ConsequenceRegistered(
            consequence_id=str(uuid.uuid4()),
            trigger_description=intent.trigger_description,
            consequence_description=intent.consequence_description,
            severity=severity,
        ))
