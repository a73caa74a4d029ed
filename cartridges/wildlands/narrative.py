import re
from typing import Dict, List, Mapping, Optional

# context → intensity level → templates. Only levels 1, 3 and 5 are authored.
NARRATIVE_TEMPLATES: Dict[str, Dict[int, List[str]]] = {
    "CREATURE_DEATH": {
        1: [
            "The {{creatureName}} passed away peacefully.",
            "The {{creatureName}} faded from the world.",
        ],
        3: [
            "The {{creatureName}} collapsed in {{location}}.",
            "The {{creatureName}} breathed its last.",
        ],
        5: [
            "The {{creatureName}} FELL in a final struggle at {{location}}!",
            "The {{creatureName}} perished in AGONY and DESPAIR!",
        ],
    },
    "CREATURE_BIRTH": {
        1: [
            "A new {{creatureName}} emerged from the egg.",
            "A young {{creatureName}} took its first steps.",
        ],
        3: [
            "A {{creatureName}} was born in {{location}}!",
            "The eggs hatched, releasing {{creatureCount}} new {{creatureName}}!",
        ],
        5: [
            "A MAGNIFICENT {{creatureName}} BURST forth into the world!",
            "{{creatureCount}} powerful {{creatureName}} emerged TRIUMPHANTLY!",
        ],
    },
    "PLANT_GROW": {
        1: [
            "The {{plantName}} grew slightly.",
            "The {{plantName}} appears healthier.",
        ],
        3: [
            "The {{plantName}} flourished in {{location}}.",
            "The {{plantName}} reached new heights.",
        ],
        5: [
            "The {{plantName}} EXPLODED with growth, its {{color}} flowers MAGNIFICENT!",
            "The {{plantName}} became a TOWERING TESTAMENT to nature's power!",
        ],
    },
    "ITEM_CRAFT": {
        1: [
            "You crafted a {{itemName}}.",
            "A {{itemName}} was created.",
        ],
        3: [
            "You successfully crafted a {{itemName}}!",
            "A {{itemName}} materialized before you.",
        ],
        5: [
            "You FORGED a LEGENDARY {{itemName}} of IMMENSE POWER!",
            "A {{itemName}} of UNPARALLELED QUALITY emerged from your work!",
        ],
    },
    "EXPLORATION": {
        1: [
            "You discovered {{location}}.",
            "You found something at {{location}}.",
        ],
        3: [
            "You uncovered {{location}} and its secrets!",
            "A new area, {{location}}, revealed itself.",
        ],
        5: [
            "You DISCOVERED THE MAGNIFICENT {{location}}!",
            "{{location}} REVEALED ITSELF in all its GLORY!",
        ],
    },
}

UNKNOWN_CONTEXT_TEMPLATE = "An event occurred at {{location}}."
UNKNOWN_LEVEL_TEMPLATE = "An event occurred."

PLACEHOLDER_PATTERN = re.compile(r"\{\{([a-zA-Z_][a-zA-Z0-9_]*)\}\}")


def select_dynamic_narrative(context: str, intensity: int, seed: int) -> str:
    """Picks a template for an event; the seed makes the pick reproducible."""
    levels = NARRATIVE_TEMPLATES.get(context)
    if levels is None:
        return UNKNOWN_CONTEXT_TEMPLATE
    templates = levels.get(intensity)
    if not templates:
        return UNKNOWN_LEVEL_TEMPLATE
    return templates[abs(seed) % len(templates)]


def build_template(template: str, values: Mapping[str, object]) -> str:
    """Fills {{name}} placeholders. Names with no value are left as-is."""
    def substitute(match):
        value = values.get(match.group(1))
        return match.group(0) if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def extract_placeholders(template: str) -> List[str]:
    return PLACEHOLDER_PATTERN.findall(template)


def validate_placeholders(template: str, values: Optional[Mapping[str, object]]) -> bool:
    """True when every placeholder in the template has a non-None value."""
    names = extract_placeholders(template)
    if not names:
        return True
    if values is None:
        return False
    return all(values.get(name) is not None for name in names)
