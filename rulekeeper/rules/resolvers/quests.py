"""
Quest lifecycle resolvers.
"""

from rulekeeper.data_models import GameWorld
from rulekeeper.name_index import find_containing
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.types import Resolution


def _quest_not_found(quest_name: str) -> Resolution:
    return Resolution.reject(f"Quest '{quest_name}' not found")


class QuestResolverMixin:
    """Resolvers for creating, progressing and closing quests."""

    def _resolve_create_quest(self, world: GameWorld, intent: it.CreateQuest) -> Resolution:
        existing = world.find_quest(intent.name)
        if existing is not None:
            return Resolution.reject(
                f"DUPLICATE QUEST ERROR: A quest named '{existing.name}' already exists "
                f"(status: {existing.status.value}). Use 'update_quest' or 'add_quest_objective' "
                f"instead of creating it again."
            )

        giver = f" (from {intent.giver})" if intent.giver else ""
        return Resolution(
            narrative=f"Quest Started: \"{intent.name}\"{giver}"
        ).add(fx.QuestCreated(
            name=intent.name,
            description=intent.description,
            giver=intent.giver,
            objectives=intent.objectives,
            rewards=intent.rewards,
        ))

    def _resolve_add_quest_objective(self, world: GameWorld, intent: it.AddQuestObjective) -> Resolution:
        if world.find_quest(intent.quest_name) is None:
            return _quest_not_found(intent.quest_name)
        optional = " (optional)" if intent.optional else ""
        return Resolution(
            narrative=f"New objective for \"{intent.quest_name}\": {intent.objective}{optional}"
        ).add(fx.QuestObjectiveAdded(
            quest_name=intent.quest_name,
            objective=intent.objective,
            optional=intent.optional,
        ))

    def _resolve_complete_objective(self, world: GameWorld, intent: it.CompleteObjective) -> Resolution:
        quest = world.find_quest(intent.quest_name)
        if quest is None:
            return _quest_not_found(intent.quest_name)
        if find_containing(quest.objectives, intent.objective_description, key=lambda o: o.description) is None:
            return Resolution.reject(
                f"Quest '{quest.name}' has no objective matching '{intent.objective_description}'"
            )
        return Resolution(
            narrative=f"Objective completed for \"{intent.quest_name}\": {intent.objective_description}"
        ).add(fx.QuestObjectiveCompleted(
            quest_name=intent.quest_name,
            objective_description=intent.objective_description,
        ))

    def _resolve_complete_quest(self, world: GameWorld, intent: it.CompleteQuest) -> Resolution:
        if world.find_quest(intent.quest_name) is None:
            return _quest_not_found(intent.quest_name)
        note = f" - {intent.completion_note}" if intent.completion_note else ""
        return Resolution(
            narrative=f"Quest Completed: \"{intent.quest_name}\"{note}"
        ).add(fx.QuestCompleted(quest_name=intent.quest_name, completion_note=intent.completion_note))

    def _resolve_fail_quest(self, world: GameWorld, intent: it.FailQuest) -> Resolution:
        if world.find_quest(intent.quest_name) is None:
            return _quest_not_found(intent.quest_name)
        return Resolution(
            narrative=f"Quest Failed: \"{intent.quest_name}\" - {intent.failure_reason}"
        ).add(fx.QuestFailed(quest_name=intent.quest_name, failure_reason=intent.failure_reason))

    def _resolve_update_quest(self, world: GameWorld, intent: it.UpdateQuest) -> Resolution:
        if world.find_quest(intent.quest_name) is None:
            return _quest_not_found(intent.quest_name)
        parts = [f"Quest \"{intent.quest_name}\" updated"]
        if intent.new_description is not None:
            parts.append("description changed")
        if intent.add_rewards:
            parts.append(f"rewards added: {', '.join(intent.add_rewards)}")
        return Resolution(narrative="; ".join(parts)).add(fx.QuestUpdated(
            quest_name=intent.quest_name,
            new_description=intent.new_description,
            add_rewards=intent.add_rewards,
        ))
