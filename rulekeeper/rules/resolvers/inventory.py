"""
Inventory and equipment resolvers, including coin adjustments.
"""

import logging

from rulekeeper.content.item_catalog import get_item_catalog
from rulekeeper.data_models import GameWorld, ItemType
from rulekeeper.rules import effects as fx
from rulekeeper.rules import intents as it
from rulekeeper.rules.helpers import is_unconscious, quantity_prefix
from rulekeeper.rules.types import Resolution

logger = logging.getLogger(__name__)

DEFAULT_POTION_HEALING = "2d4+2"

EQUIP_SLOTS = {
    ItemType.WEAPON: "main_hand",
    ItemType.ARMOR: "armor",
    ItemType.SHIELD: "shield",
}


class InventoryResolverMixin:
    """Resolvers for items, equipment and money. Expects ``self.dice``."""

    def _resolve_add_item(self, world: GameWorld, intent: it.AddItem) -> Resolution:
        character = world.player_character
        new_total = character.inventory.count(intent.item_name) + intent.quantity
        return Resolution(
            narrative=(
                f"{character.name} receives {quantity_prefix(intent.quantity)}{intent.item_name} "
                f"(now has {new_total} total)"
            )
        ).add(fx.ItemAdded(
            item_name=intent.item_name,
            quantity=intent.quantity,
            new_total=new_total,
            item_type=intent.item_type,
            description=intent.description,
            magical=intent.magical,
            weight=intent.weight,
            value_gp=intent.value_gp,
        ))

    def _resolve_remove_item(self, world: GameWorld, intent: it.RemoveItem) -> Resolution:
        character = world.player_character
        item = character.inventory.find_item(intent.item_name)
        if item is None:
            return Resolution.reject(f"{character.name} doesn't have any {intent.item_name}")
        if item.quantity < intent.quantity:
            return Resolution.reject(
                f"{character.name} doesn't have enough {intent.item_name} "
                f"(has {item.quantity}, needs {intent.quantity})"
            )

        remaining = item.quantity - intent.quantity
        return Resolution(
            narrative=(
                f"{character.name} loses {quantity_prefix(intent.quantity)}{intent.item_name} "
                f"({remaining} remaining)"
            )
        ).add(fx.ItemRemoved(item_name=intent.item_name, quantity=intent.quantity, remaining=remaining))

    def _resolve_equip_item(self, world: GameWorld, intent: it.EquipItem) -> Resolution:
        character = world.player_character
        name = intent.item_name
        item = character.inventory.find_item(name)
        if item is None:
            return Resolution.reject(f"{character.name} doesn't have {name} in their inventory")

        slot = EQUIP_SLOTS.get(item.item_type)
        if slot is None:
            return Resolution.reject(f"{name} cannot be equipped (not a weapon, armor, or shield)")

        catalog = get_item_catalog()
        equipped_weapon = character.equipment.main_hand
        if slot == "shield" and equipped_weapon is not None and equipped_weapon.is_two_handed():
            return Resolution.reject(f"Cannot equip {name} - {equipped_weapon.name} requires two hands")

        if slot == "main_hand":
            weapon = catalog.get_weapon(name)
            if weapon is not None and weapon.is_two_handed() and character.equipment.shield is not None:
                return Resolution.reject(
                    f"Cannot equip {name} - it requires two hands but a shield is equipped. "
                    f"Unequip the shield first."
                )

        equipped = fx.ItemEquipped(item_name=name, slot=slot)
        if slot == "armor":
            armor = catalog.get_armor(name)
            strength = character.ability_scores.strength
            if armor is not None and armor.strength_requirement and strength < armor.strength_requirement:
                return Resolution(
                    narrative=(
                        f"{character.name} equips {name} but doesn't meet the Strength "
                        f"{armor.strength_requirement} requirement (has {strength}). "
                        f"Movement speed reduced by 10 feet."
                    )
                ).add(equipped)

        return Resolution(narrative=f"{character.name} equips {name} in {slot} slot").add(equipped)

    def _resolve_unequip_item(self, world: GameWorld, intent: it.UnequipItem) -> Resolution:
        character = world.player_character
        equipment = character.equipment
        slot = intent.slot.strip().lower()

        if slot == "armor":
            equipped = equipment.armor
        elif slot == "shield":
            equipped = equipment.shield
        elif slot in ("main_hand", "weapon"):
            equipped = equipment.main_hand
        elif slot == "off_hand":
            equipped = equipment.off_hand
        else:
            return Resolution.reject(
                f"Unknown equipment slot: {intent.slot}. Valid slots: armor, shield, main_hand, off_hand"
            )

        if equipped is None:
            return Resolution.reject(f"Nothing equipped in {intent.slot} slot")

        return Resolution(
            narrative=f"{character.name} unequips {equipped.name}"
        ).add(fx.ItemUnequipped(item_name=equipped.name, slot=intent.slot))

    def _resolve_use_item(self, world: GameWorld, intent: it.UseItem) -> Resolution:
        character = world.player_character
        if is_unconscious(character):
            return Resolution.reject(f"{character.name} is unconscious and cannot use items!")

        name = intent.item_name
        item = character.inventory.find_item(name)
        if item is None:
            return Resolution.reject(f"{character.name} doesn't have {name} in their inventory")

        remaining = max(0, item.quantity - 1)
        if item.item_type == ItemType.POTION:
            potion = get_item_catalog().get_potion(name)
            notation = potion.healing_notation if potion else DEFAULT_POTION_HEALING
            heal_roll = self.dice.roll_with_fallback(notation, "1d4", reason=f"Drinking {name}")
            hp = character.hit_points
            return Resolution(
                narrative=f"{character.name} drinks {name} and heals for {heal_roll.total} HP"
            ).add(fx.ItemUsed(
                item_name=name,
                result=f"Healed {heal_roll.total} HP",
            )).add(fx.HpChanged(
                target_id=character.id,
                amount=heal_roll.total,
                new_current=min(hp.current + heal_roll.total, hp.maximum),
                new_max=hp.maximum,
            )).add(fx.ItemRemoved(item_name=name, quantity=1, remaining=remaining))

        if item.item_type == ItemType.SCROLL:
            return Resolution(
                narrative=f"{character.name} reads {name} and it crumbles to dust"
            ).add(fx.ItemUsed(
                item_name=name,
                result="Scroll consumed",
            )).add(fx.ItemRemoved(item_name=name, quantity=1, remaining=remaining))

        return Resolution.reject(f"{name} is not a consumable item")

    def _resolve_adjust_gold(self, world: GameWorld, intent: it.AdjustGold) -> Resolution:
        character = world.player_character
        gold = character.inventory.gold
        new_total = gold + intent.amount
        if new_total < 0:
            return Resolution.reject(
                f"{character.name} doesn't have enough gold (has {gold} gp, needs {-intent.amount} gp)"
            )
        action = "gains" if intent.amount >= 0 else "spends"
        return Resolution(
            narrative=(
                f"{character.name} {action} {abs(intent.amount)} gp {intent.reason} "
                f"(now has {new_total} gp)"
            )
        ).add(fx.GoldChanged(amount=intent.amount, new_total=new_total, reason=intent.reason))

    def _resolve_adjust_silver(self, world: GameWorld, intent: it.AdjustSilver) -> Resolution:
        character = world.player_character
        silver = character.inventory.silver
        new_total = silver + intent.amount
        if new_total < 0:
            return Resolution.reject(
                f"{character.name} doesn't have enough silver (has {silver} sp, needs {-intent.amount} sp)"
            )
        action = "gains" if intent.amount >= 0 else "spends"
        return Resolution(
            narrative=(
                f"{character.name} {action} {abs(intent.amount)} sp {intent.reason} "
                f"(now has {new_total} sp)"
            )
        ).add(fx.SilverChanged(amount=intent.amount, new_total=new_total, reason=intent.reason))
