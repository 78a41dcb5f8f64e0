"""
Thrivera collection knowledge base.

Everything the enrichment pipeline needs to know about the brand lives in one
versioned BrandProfile: collection tags and keywords, the first-match priority
order, voice transforms, prompt and fallback templates, SEO clauses and the
Google Shopping taxonomy entries. The pipeline receives a profile instead of
reading module globals, so a different catalog voice is a different profile.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

MIND_AND_MOOD = "Mind and Mood"
MOVEMENT_AND_FLOW = "Movement and Flow"
REST_AND_SLEEP = "Rest and Sleep"
SUPPORTIVE_LIVING = "Supportive Living"
EVERYDAY_COMFORTS = "Everyday Comforts"

COLLECTION_NAMES = (
    MIND_AND_MOOD,
    MOVEMENT_AND_FLOW,
    REST_AND_SLEEP,
    SUPPORTIVE_LIVING,
    EVERYDAY_COMFORTS,
)

DEFAULT_COLLECTION = EVERYDAY_COMFORTS

# Tag order is significant: it is the comma-joined Tags output.
# Keywords feed the scoring strategy (each hit weighs its own length).
COLLECTIONS = {
    MIND_AND_MOOD: {
        "tags": ["mind", "mood", "focus"],
        "keywords": [
            "essential oil", "aromatherapy", "diffuser", "scent", "fragrance",
            "focus", "concentration", "mental", "clarity", "meditation",
            "mindfulness", "stress", "anxiety", "mood", "emotional",
            "calm mind", "mental wellness",
        ],
    },
    MOVEMENT_AND_FLOW: {
        "tags": ["movement", "mobility", "stretch"],
        "keywords": [
            "yoga", "exercise", "fitness", "stretch", "mobility", "movement",
            "flow", "muscle", "joint", "flexibility", "workout", "active",
            "physical", "body", "posture", "balance", "strength",
        ],
    },
    REST_AND_SLEEP: {
        "tags": ["rest", "sleep", "night"],
        "keywords": [
            "sleep", "night", "bedtime", "pillow", "mattress", "blanket",
            "rest", "relaxation", "calm", "peaceful", "soothing", "nighttime",
            "evening", "slumber", "tranquil", "serene",
        ],
    },
    SUPPORTIVE_LIVING: {
        "tags": ["safety", "support", "confidence"],
        "keywords": [
            "support", "safety", "secure", "confidence", "home",
            "daily living", "independence", "assist", "help", "stability",
            "reliable", "comfort zone", "protection", "security",
        ],
    },
    EVERYDAY_COMFORTS: {
        "tags": ["comfort", "ease", "cushion"],
        "keywords": [
            "comfort", "cushion", "soft", "cozy", "ease", "gentle", "plush",
            "padded", "ergonomic", "everyday", "daily", "convenient",
            "simple", "effortless",
        ],
    },
}

# First-match order. When keywords from several groups co-occur, the earlier
# group wins; Everyday Comforts has no rule and is the default.
PRIORITY_RULES = [
    (MIND_AND_MOOD, [
        "focus", "clarity", "mind", "mood", "meditation", "stress",
        "anxiety", "calm", "mental", "cognitive", "brain", "concentration",
    ]),
    (REST_AND_SLEEP, [
        "sleep", "rest", "night", "bedtime", "pillow", "mattress",
        "blanket", "relaxation", "dream", "insomnia", "slumber",
    ]),
    (MOVEMENT_AND_FLOW, [
        "movement", "mobility", "stretch", "exercise", "fitness", "yoga",
        "flow", "flexibility", "muscle", "joint", "physical", "active",
    ]),
    (SUPPORTIVE_LIVING, [
        "safety", "support", "confidence", "secure", "protection",
        "assist", "stability", "balance", "help", "aid", "therapeutic",
    ]),
]

VOICE_TRANSFORMS = {
    "high-quality": "mindfully crafted",
    "premium": "thoughtfully designed",
    "excellent": "beautifully crafted",
    "helps": "gently supports",
    "provides": "nurtures you with",
    "comfortable": "gently supportive",
    "effective": "naturally beneficial",
    "perfect": "beautifully suited",
    "great": "wonderfully supportive",
}

PROMPT_TEMPLATES = [
    """Transform this product description into {brand}'s wellness-focused voice. Keep all specific details like size, color, flavor, scent, material, dimensions, or technical specifications from the original.

Original Product: {title}
Original Description: {description}
Collection: {collection}

{style_guide}

Write only the product description, no titles or extra text.""",
    """You are {brand}'s product copywriter. Rewrite the description below for the {collection} collection without losing a single concrete product detail (size, color, scent, material, dimensions, quantity).

Product: {title}
Current description: {description}

{style_guide}

Return only the finished description.""",
    """Write a warm, supportive product description for "{title}", part of {brand}'s {collection} collection.

Source description (keep every specific attribute it mentions):
{description}

{style_guide}

Respond with the description text only.""",
]

STYLE_GUIDE = """Style requirements:
- NEVER start with {banned}, and do not use {banned_lower} anywhere
- Open with one of: {openers}
- Focus on wellness benefits and how the product enhances daily life
- Use warm, inclusive, supportive language
- Keep ALL specific product details (size, color, flavor, scent, material, etc.)
- Mention the collection context ({collection})
- {length}
- End with "{closing}\""""

BANNED_OPENERS = ["Indulge"]
PREFERRED_OPENERS = ["Discover", "Experience", "Embrace", "Enjoy", "Find", "Create", "Welcome"]

FALLBACK_TEMPLATES = {
    MIND_AND_MOOD: "Nurture your mental wellness with this thoughtfully designed {title}. Mindfully crafted for our {collection} collection to support your daily tranquility. {closing}",
    MOVEMENT_AND_FLOW: "Support your active lifestyle with this gently effective {title}. Beautifully designed for our {collection} collection to enhance your movement. {closing}",
    REST_AND_SLEEP: "Create your peaceful sanctuary with this lovingly made {title}. Thoughtfully designed for our {collection} collection to support restful sleep. {closing}",
    SUPPORTIVE_LIVING: "Enhance your daily confidence with this reliably supportive {title}. Mindfully crafted for our {collection} collection to nurture your independence. {closing}",
    EVERYDAY_COMFORTS: "Embrace daily comfort with this gently supportive {title}. Thoughtfully designed for our {collection} collection to enhance your wellness routine. {closing}",
}

SEO_OPENINGS = {
    MIND_AND_MOOD: "Mindfully selected {name} for mental wellness & emotional balance.",
    MOVEMENT_AND_FLOW: "Thoughtfully curated {name} to support your active wellness journey.",
    REST_AND_SLEEP: "Carefully chosen {name} for peaceful rest & restorative sleep.",
    SUPPORTIVE_LIVING: "Lovingly selected {name} to enhance daily confidence & independence.",
    EVERYDAY_COMFORTS: "Wellness-focused {name} for everyday comfort & well-being.",
}

# Collection -> (Google product category, custom label 0, custom label 3)
TAXONOMY_ENTRIES = {
    MIND_AND_MOOD: ("Health & Beauty > Personal Care > Aromatherapy", "Mind-and-Mood", "aromatherapy"),
    MOVEMENT_AND_FLOW: ("Sporting Goods > Exercise & Fitness", "Movement-and-Flow", "fitness"),
    REST_AND_SLEEP: ("Home & Garden > Decor > Home Fragrance", "Rest-and-Sleep", "sleep-wellness"),
    SUPPORTIVE_LIVING: ("Health & Beauty > Health Care > Mobility & Daily Living Aids", "Supportive-Living", "daily-living"),
    EVERYDAY_COMFORTS: ("Home & Garden > Household Supplies", "Everyday-Comforts", "comfort"),
}

# Highest threshold first; prices at or below every threshold are "budget".
PRICE_TIERS = [(50.0, "premium"), (25.0, "mid-range")]

VOICE_MARKERS = [
    "mindfully crafted", "thoughtfully designed", "gently supports",
    "nurtures you with", "lovingly made", "wellness essential",
]

DESCRIPTION_COLUMNS = [
    "Body (HTML)", "Body HTML", "Body", "Description", "body_html",
    "Product Description",
]


@dataclass
class BrandProfile:
    """Versioned configuration injected into every enrichment step."""

    version: str = "2025.05"
    brand: str = "Thrivera"
    closing: str = "Experience the Thrivera difference."
    seo_title_suffix: str = "Wellness Collection"
    seo_closing: str = "Shop Thrivera's curated wellness collection."
    label_4: str = "thrivera-wellness"
    default_collection: str = DEFAULT_COLLECTION
    classifier_strategy: str = "first_match"
    target_length: str = "Is 2-3 paragraphs, around 150-200 words"

    collections: Dict[str, Dict[str, List[str]]] = field(default_factory=lambda: COLLECTIONS)
    priority_rules: List[Tuple[str, List[str]]] = field(default_factory=lambda: PRIORITY_RULES)
    voice_transforms: Dict[str, str] = field(default_factory=lambda: VOICE_TRANSFORMS)
    prompt_templates: List[str] = field(default_factory=lambda: PROMPT_TEMPLATES)
    style_guide: str = STYLE_GUIDE
    banned_openers: List[str] = field(default_factory=lambda: BANNED_OPENERS)
    preferred_openers: List[str] = field(default_factory=lambda: PREFERRED_OPENERS)
    fallback_templates: Dict[str, str] = field(default_factory=lambda: FALLBACK_TEMPLATES)
    seo_openings: Dict[str, str] = field(default_factory=lambda: SEO_OPENINGS)
    taxonomy_entries: Dict[str, Tuple[str, str, str]] = field(default_factory=lambda: TAXONOMY_ENTRIES)
    price_tiers: List[Tuple[float, str]] = field(default_factory=lambda: PRICE_TIERS)
    default_price_tier: str = "budget"
    male_markers: Tuple[str, ...] = ("men", "men's", "mens", "male", "man")
    female_markers: Tuple[str, ...] = ("women", "women's", "womens", "female", "woman", "ladies")
    custom_indicators: Tuple[str, ...] = ("custom", "handmade", "personalized", "vintage")
    voice_markers: List[str] = field(default_factory=lambda: VOICE_MARKERS)
    description_columns: List[str] = field(default_factory=lambda: DESCRIPTION_COLUMNS)

    def tags_for(self, collection: str) -> List[str]:
        entry = self.collections.get(collection) or self.collections[self.default_collection]
        return entry["tags"]

    def tag_tokens(self) -> List[str]:
        """All canonical tags across collections, used by the enrichment sniff test."""
        tokens = []
        for entry in self.collections.values():
            for tag in entry["tags"]:
                if tag.lower() not in tokens:
                    tokens.append(tag.lower())
        return tokens


DEFAULT_PROFILE = BrandProfile()


def profile_from_config(cfg) -> BrandProfile:
    """Build the profile for a run, applying config overrides."""
    strategy = (cfg or {}).get("CLASSIFIER_STRATEGY", "first_match")
    if strategy not in ("first_match", "scoring"):
        raise ValueError(f"Unknown CLASSIFIER_STRATEGY: {strategy}. Must be 'first_match' or 'scoring'.")
    return BrandProfile(classifier_strategy=strategy)
