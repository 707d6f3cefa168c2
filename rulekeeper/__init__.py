"""
Rulekeeper: a deterministic rules kernel for a 5e-style tabletop RPG.

Intents go in, narrated Resolutions of ordered Effects come out; the world
only changes when those effects are applied.
"""

__version__ = "0.1.0"
