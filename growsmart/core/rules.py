from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Rule:
    tag: str                    # short code, e.g. "fungal", "leaves"
    keywords: tuple[str, ...]   # any lowercase substring triggers the rule
    value: str = ""             # payload, e.g. a symptom sentence

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(k in lowered for k in self.keywords)


def first_match(rules: tuple[Rule, ...], text: str, default: Rule) -> Rule:
    for rule in rules:
        if rule.matches(text):
            return rule
    return default


def all_matches(rules: tuple[Rule, ...], text: str) -> list[Rule]:
    return [rule for rule in rules if rule.matches(text)]


# ---- Condition type (first match wins) ----
CONDITION_TYPE_RULES: tuple[Rule, ...] = (
    Rule("fungal", ("rust", "blight", "mold")),
    Rule("bacterial", ("bacterial",)),
    Rule("viral", ("virus", "mosaic")),
    Rule("pest", ("mite", "pest")),
)
UNKNOWN_TYPE = Rule("unknown", ())

# ---- Affected parts (every match) ----
AFFECTED_PART_RULES: tuple[Rule, ...] = (
    Rule("leaves", ("leaf", "spot")),
    Rule("fruits", ("fruit", "rot")),
    Rule("stems", ("stem", "blight")),
    Rule("roots", ("root",)),
)
DEFAULT_PARTS: tuple[str, ...] = ("leaves",)

# ---- Symptoms (every match, table order) ----
SYMPTOM_RULES: tuple[Rule, ...] = (
    Rule("spot", ("spot",), "Dark spots on leaves"),
    Rule("blight", ("blight",), "Browning and wilting of leaves"),
    Rule("rust", ("rust",), "Orange/brown pustules on leaves"),
    Rule("mold", ("mold",), "Fuzzy growth on plant surface"),
    Rule("bacterial", ("bacterial",), "Water-soaked lesions"),
    Rule("virus", ("virus",), "Yellowing and curling of leaves"),
)
DEFAULT_SYMPTOMS: tuple[str, ...] = ("Visible symptoms present on the plant",)

# ---- Prevention (every match, then the baseline) ----
PREVENTION_RULES: tuple[tuple[Rule, tuple[str, ...]], ...] = (
    (
        Rule("fungal", ("blight", "fungal")),
        (
            "Ensure proper air circulation around plants",
            "Avoid overhead watering",
            "Remove infected plant debris",
        ),
    ),
    (
        Rule("bacterial", ("bacterial",)),
        (
            "Use disease-free seeds",
            "Disinfect tools between plants",
            "Avoid working with wet plants",
        ),
    ),
    (
        Rule("viral", ("virus", "viral")),
        (
            "Control insect vectors",
            "Remove infected plants immediately",
            "Use resistant varieties",
        ),
    ),
)
BASELINE_PREVENTION: tuple[str, ...] = (
    "Regular crop rotation",
    "Maintain healthy soil conditions",
)
