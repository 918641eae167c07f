from __future__ import annotations

import re

from growsmart.core.policies import IdentificationPolicy


# Ordered: first keyword hit wins, so narrower names sit before broader ones
CARE_TABLE: tuple[tuple[tuple[str, ...], str], ...] = (
    # Vegetables and food crops
    (("tomato",), "Water regularly but avoid overwatering. Provide support with stakes or cages. Ensure 6-8 hours of sunlight daily. Watch for signs of blight and pests. Harvest when fruits are firm and fully colored."),
    (("corn", "maize"), "Plant in well-draining soil with full sun. Water deeply but less frequently. Apply nitrogen fertilizer during growing season. Watch for corn borers. Plant in blocks for better pollination."),
    (("bean",), "Plant in well-draining soil. Water regularly but avoid waterlogged soil. Provide support for climbing varieties. Rich in nitrogen-fixing bacteria. Harvest pods when young and tender."),
    (("potato",), "Plant in loose, well-draining soil. Hill soil around plants as they grow. Water consistently but avoid overwatering. Harvest when foliage dies back. Store in cool, dark place."),
    (("cabbage", "lettuce"), "Prefers cool weather. Keep soil consistently moist. Provide partial shade in hot climates. Watch for aphids and caterpillars. Harvest outer leaves first for continuous growth."),
    (("pepper", "capsicum"), "Needs warm weather and full sun. Water regularly but ensure good drainage. Support heavy fruit-bearing plants. Harvest when fruits reach desired size and color."),
    (("cucumber",), "Requires warm soil and consistent moisture. Provide climbing support or let sprawl. Regular harvesting encourages more production. Watch for cucumber beetles."),
    (("carrot",), "Plant in loose, sandy soil. Keep soil consistently moist. Thin seedlings for proper root development. Harvest when roots reach desired size."),
    # Herbs
    (("basil",), "Loves warm weather and full sun. Water regularly but avoid wetting leaves. Pinch flowers to encourage leaf growth. Harvest leaves frequently for best flavor."),
    (("mint",), "Prefers partial shade and moist soil. Can be invasive - consider container growing. Harvest regularly to prevent flowering. Very hardy and fast-growing."),
    (("rosemary",), "Requires well-draining soil and full sun. Drought-tolerant once established. Prune regularly to maintain shape. Protect from harsh winter conditions."),
    (("oregano", "thyme"), "Thrives in well-draining soil with full sun. Drought-tolerant. Trim regularly to encourage bushy growth. Dry leaves for winter use."),
    # Flowers
    (("rose",), "Needs full sun and well-draining soil. Water at base to avoid leaf diseases. Prune in late winter. Feed regularly during growing season. Watch for aphids and black spot."),
    (("sunflower",), "Requires full sun and rich, well-draining soil. Water regularly, especially during flower development. Support tall varieties. Harvest seeds when flower head droops."),
    (("marigold",), "Easy to grow in full sun. Tolerates poor soil. Deadhead spent flowers for continuous blooming. Good companion plant for vegetables."),
    (("lavender",), "Needs full sun and well-draining, alkaline soil. Drought-tolerant once established. Prune after flowering. Harvest flowers just before fully open."),
    # Trees and shrubs
    (("oak", "maple"), "Plant in well-draining soil with adequate space for growth. Water young trees regularly. Mulch around base. Prune dead or damaged branches in dormant season."),
    (("pine", "fir"), "Prefers acidic, well-draining soil. Minimal pruning needed. Water during dry periods. Watch for needle diseases and pests like bark beetles."),
    (("citrus", "orange", "lemon"), "Needs warm climate and well-draining soil. Regular watering but avoid waterlogging. Feed with citrus-specific fertilizer. Protect from frost."),
    # Indoor / houseplants
    (("succulent", "cactus"), "Requires bright light and well-draining soil. Water only when soil is completely dry. Avoid overwatering. Good drainage is essential to prevent root rot."),
    (("fern",), "Prefers indirect light and high humidity. Keep soil consistently moist but not waterlogged. Mist regularly. Good for bathrooms and shaded areas."),
    (("spider plant", "pothos"), "Adaptable to various light conditions. Water when top inch of soil is dry. Easy to propagate from cuttings. Good air-purifying plant."),
)

GENERIC_CARE = (
    "Provide appropriate sunlight based on plant type, water regularly based on soil moisture, "
    "ensure good drainage, and monitor for pests and diseases. Research specific care requirements "
    "for this plant variety and consider local growing conditions and seasonal requirements."
)

UNKNOWN_PLANT = "Unknown plant"

# General-purpose image models often label animals; strip the obvious leftovers
_NOISE_PREFIX = re.compile(r"^(egyptian|tiger|tabby|domestic|feral|wild)\s+", re.IGNORECASE)
_NOISE_SUFFIX = re.compile(r"\s+(cat|dog|animal)$", re.IGNORECASE)
_PUNCTUATION = re.compile(r"[,()]")


def capitalize_words(text: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in text.split())


def clean_plant_name(raw_name: str | None) -> str:
    if not raw_name:
        return UNKNOWN_PLANT
    cleaned = _NOISE_PREFIX.sub("", raw_name.strip())
    cleaned = _NOISE_SUFFIX.sub("", cleaned)
    cleaned = _PUNCTUATION.sub("", cleaned).strip()
    return capitalize_words(cleaned) if cleaned else UNKNOWN_PLANT


class CareService:
    """
    Static care guidance keyed by plant name.

    Deterministic and total: unknown plants get generic horticultural advice.
    """

    def __init__(self, table: tuple[tuple[tuple[str, ...], str], ...] = CARE_TABLE, policy: IdentificationPolicy | None = None):
        self.table = table
        self.policy = policy or IdentificationPolicy()

    def care_for(self, subject_name: str | None) -> str:
        lowered = (subject_name or "").lower()
        for keywords, advice in self.table:
            if any(k in lowered for k in keywords):
                return advice
        return GENERIC_CARE

    def identification_status(self, confidence: float) -> str:
        p = self.policy
        if confidence > p.excellent_above:
            return "Excellent identification confidence"
        if confidence > p.good_above:
            return "Good identification confidence"
        if confidence > p.moderate_above:
            return "Moderate identification confidence"
        return "Low identification confidence - try a clearer image with better lighting"
