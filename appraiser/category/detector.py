"""Deterministic category detection from item names and hints."""

import logging
import re
from functools import lru_cache
from typing import Dict, List, Optional, Pattern, Tuple

from appraiser.category.keywords import CATEGORY_KEYWORDS
from appraiser.category.models import (
    SOURCE_AI_VOTE,
    SOURCE_CATEGORY_HINT,
    SOURCE_DEFAULT,
    SOURCE_KEYWORDS,
    SOURCE_NAME_PARSING,
    SOURCE_OVERRIDE,
    CategoryDetection,
    NamePatternOverride,
)
from appraiser.category.overrides import NAME_PATTERN_OVERRIDES

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"
GENERIC_CATEGORIES = {"", "general", "unknown", "other", "misc", "none", "n/a"}

OVERRIDE_CONFIDENCE = 0.98
AI_VOTE_CONFIDENCE = 0.95
NAME_PARSING_CONFIDENCE = 0.92
HINT_CONFIDENCE = 0.90
DEFAULT_CONFIDENCE = 0.5

CATEGORY_SOURCE_MAP: Dict[str, List[str]] = {
    "coins": ["numista", "ebay"],
    "banknotes": ["numista", "ebay"],
    "currency": ["numista", "ebay"],
    "lego": ["brickset", "ebay"],
    "trading_cards": ["pokemon_tcg", "psa", "ebay"],
    "pokemon_cards": ["pokemon_tcg", "psa", "ebay"],
    "sports_cards": ["psa", "ebay"],
    "graded_cards": ["psa", "ebay"],
    "books": ["google_books", "ebay"],
    "comics": ["comicvine", "psa", "ebay"],
    "video_games": ["ebay"],
    "vinyl_records": ["discogs", "ebay"],
    "sneakers": ["retailed", "ebay"],
    "streetwear": ["retailed", "ebay"],
    "vehicles": ["nhtsa", "ebay"],
    "household": ["upcitemdb", "ebay"],
    "electronics": ["upcitemdb", "ebay"],
    "stamps": ["colnect", "ebay"],
    "postcards": ["colnect", "ebay"],
    "medals": ["colnect", "ebay"],
    "tokens": ["colnect", "ebay"],
    "general": ["ebay"],
}

_WORD_CHARS = 3


@lru_cache(maxsize=None)
def compile_pattern(pattern: str) -> Optional[Pattern]:
    """Compile a pattern that needs word-boundary matching.

    Returns None for plain substring patterns.
    """
    if "\\b" in pattern:
        return re.compile(pattern)
    if len(pattern) <= _WORD_CHARS:
        return re.compile(r"\b" + re.escape(pattern) + r"\b")
    return None


def contains(text: str, pattern: str) -> bool:
    """Boundary-safe containment: short tokens and ``\\b`` patterns match whole words."""
    compiled = compile_pattern(pattern)
    if compiled is None:
        return pattern in text
    return compiled.search(text) is not None


def normalize_category(category: str) -> str:
    """Map a free-form category label onto a canonical category id.

    Args:
        category: Label from a model, caller hint, or catalogue

    Returns:
        Canonical category id (lowercase, underscore separated)
    """
    cat = re.sub(r"[_\s-]+", "_", category.lower().strip())

    if "pokemon" in cat or "pokémon" in cat:
        return "pokemon_cards"
    if "trading_card" in cat or "tcg" in cat or cat == "cards":
        return "trading_cards"
    # Vinyl before vehicles: "vinyl" starts with "vin"
    if "vinyl" in cat or "record" in cat or cat in ("music", "album") or "discogs" in cat:
        return "vinyl_records"
    if "household" in cat or "appliance" in cat or "kitchen" in cat or "home_goods" in cat:
        return "household"

    vin_related = (
        cat == "vin" or cat.startswith("vin_") or cat.endswith("_vin") or "_vin_" in cat
    )
    if "vehicle" in cat or "auto" in cat or "truck" in cat or "motorcycle" in cat or vin_related:
        if not any(word in cat for word in ("card", "pokemon", "tcg", "vinyl")):
            return "vehicles"

    if "coin" in cat or "numismatic" in cat or "currency" in cat:
        return "coins"
    if "lego" in cat or "brick" in cat:
        return "lego"
    if "video_game" in cat or "videogame" in cat or cat == "gaming":
        return "video_games"
    if "comic" in cat or "manga" in cat:
        return "comics"
    if "book" in cat:
        return "books"
    if any(word in cat for word in ("sneaker", "jordan", "yeezy", "shoe", "footwear")):
        return "sneakers"
    if "electronic" in cat or "gadget" in cat or "tech" in cat:
        return "electronics"
    return cat


def get_sources_for_category(category: str) -> List[str]:
    """Market-data sources to consult for a category, most authoritative first."""
    cat = category.lower().strip()
    if cat in CATEGORY_SOURCE_MAP:
        return list(CATEGORY_SOURCE_MAP[cat])
    for key, sources in CATEGORY_SOURCE_MAP.items():
        if key in cat or (cat and cat in key):
            return list(sources)
    return ["ebay"]


_BARCODE = re.compile(r"\b\d{8,13}\b")
_VIN = re.compile(r"\b[a-hj-npr-z0-9]{17}\b")
_VIN_WORD = re.compile(r"\bvin\b")

_CARD_WORDS = ["card", "pokemon", "tcg", "holo", "vmax", "vstar", "ex", "gx", "trading"]
_VINYL_WORDS = ["vinyl", r"\brecord\b", r"\blp\b", "33 rpm", "45 rpm", r"\balbum\b"]
_VEHICLE_WORDS = [
    "vehicle", "automobile", "automotive", r"\bcar\b", "sedan", "coupe",
    "truck", "pickup", "suv", "crossover", "minivan", r"\bvan\b",
    "motorcycle", "motorbike", "harley", "yamaha", r"\bford\b", "chevrolet", "chevy",
    "toyota", r"\bhonda\b", "nissan", "dodge", "jeep", "gmc", "bmw", "mercedes",
    "audi", "lexus", "acura", "volkswagen", r"\bvw\b", "subaru", "mazda", "hyundai",
    "kia", "tesla", "mustang", "camaro", "corvette", "wrangler", "f-150", "f150",
    "silverado", "ram 1500", "tacoma", "tundra", "civic", "accord", "camry", "corolla",
    "model s", "model 3", "model x", "model y",
]
_HOUSEHOLD_WORDS = [
    "blender", "coffee maker", "keurig", "nespresso", "instant pot", "air fryer",
    "toaster", "microwave", "food processor", "juicer", "waffle maker",
    "vacuum", "dyson", "roomba", "bissell", "hoover", "soundbar", "airpods",
    "fitbit", "garmin", "kindle", "roku", "firestick", "chromecast",
    "dewalt", "makita", "milwaukee", "ryobi", "craftsman",
    "baby monitor", "car seat", "stroller", "pack n play", "high chair",
    "vitamix", "cuisinart", "kitchenaid", "hamilton beach",
    "new in box", "nib", "factory sealed",
]
_GRADE_WORDS = [
    "psa 10", "psa 9", "psa 8", "psa 7", "psa 6", "psa 5", "psa gem", "psa mint",
    "bgs 10", "bgs 9.5", "bgs 9", "bgs 8.5", "cgc 10", "cgc 9.8", "cgc 9.6",
    "beckett graded", "psa graded", "cgc graded", "gem mint 10", "pristine 10",
]
_POKEMON_NAMES = [
    "pikachu", "charizard", "blastoise", "venusaur", "mewtwo", "mew", "dragonite",
    "gyarados", "snorlax", "gengar", "alakazam", "arcanine", "lapras", "eevee",
    "lugia", "ho-oh", "celebi", "rayquaza", "umbreon", "espeon", "sylveon",
    "giratina", "arceus", "zacian", "zamazenta",
]
_COIN_WORDS = [
    "coin", "penny", "nickel", r"\bdime\b", "half dollar", "silver dollar",
    "morgan dollar", "peace dollar", "walking liberty", "buffalo nickel",
    "mercury dime", "seated liberty", "standing liberty", "indian head",
    "wheat penny", "flying eagle", "trade dollar", "proof coin", "mint state",
    "ms63", "ms64", "ms65", "ms66", "ms67", "ms68", "ms69", "ms70", "pcgs", "ngc",
]


def _any(text: str, patterns: List[str]) -> bool:
    return any(contains(text, pattern) for pattern in patterns)


def detect_category_from_name(name_lower: str) -> Optional[str]:
    """Structural heuristics over a lowercased item name.

    Args:
        name_lower: Lowercased item name

    Returns:
        Category id, or None when no heuristic applies
    """
    if _BARCODE.search(name_lower):
        return "household"

    if _any(name_lower, _VINYL_WORDS):
        return "vinyl_records"

    vin = _VIN.search(name_lower)
    if (vin and any(ch.isdigit() for ch in vin.group(0))) or _VIN_WORD.search(name_lower):
        return "vehicles"

    if not _any(name_lower, _CARD_WORDS) and _any(name_lower, _VEHICLE_WORDS):
        return "vehicles"

    if _any(name_lower, _HOUSEHOLD_WORDS):
        return "household"

    if _any(name_lower, _GRADE_WORDS):
        if _any(name_lower, ["pokemon", "pikachu", "charizard", "tcg"]):
            return "pokemon_cards"
        if _any(name_lower, ["baseball", "topps", "bowman", "rookie card", "football",
                             "nfl", "panini", "prizm", "basketball", "nba", "hoops"]):
            return "sports_cards"
        return "graded_cards"

    if _any(name_lower, ["pokemon", "pokémon", "poke mon"] + _POKEMON_NAMES):
        return "pokemon_cards"

    if _any(name_lower, _COIN_WORDS):
        return "coins"

    if _any(name_lower, ["lego", "minifig"]):
        return "lego"

    if _any(name_lower, ["book", "hardcover", "paperback", "novel", "isbn"]) and "comic" not in name_lower:
        return "books"

    if _any(name_lower, ["video game", "nintendo", "playstation", "xbox", "ps5", "ps4",
                         "switch game", r"\bwii\b"]):
        return "video_games"

    if _any(name_lower, ["jordan", "yeezy", "nike dunk", "air force", "air max", "sneaker"]):
        return "sneakers"

    if _any(name_lower, ["comic", "marvel", "dc comics", "manga"]):
        return "comics"

    return None


def score_keywords(
    name_lower: str, keywords: Optional[Dict[str, List[str]]] = None
) -> List[Tuple[str, int, List[str]]]:
    """Score every category's keyword list against a lowercased name.

    Returns:
        (category, score, matches) for categories scoring above zero, best
        first. Ties prefer the longer (more specific) category id, then the
        table order.
    """
    table = CATEGORY_KEYWORDS if keywords is None else keywords
    scored = []
    for category, words in table.items():
        matches = [kw for kw in words if contains(name_lower, kw)]
        score = sum(len(kw.split()) for kw in matches)
        if score > 0:
            scored.append((category, score, matches))
    scored.sort(key=lambda entry: (-entry[1], -len(entry[0])))
    return scored


class CategoryDetector:
    """Maps an item name and optional hints to a category.

    Tiers, first match wins: name-pattern override, model-suggested
    category, caller hint, structural name parsing, keyword scoring, default.
    """

    def __init__(
        self,
        overrides: Optional[List[NamePatternOverride]] = None,
        keywords: Optional[Dict[str, List[str]]] = None,
    ):
        """Initialize detector.

        Args:
            overrides: Override rules. If None, uses the built-in table.
            keywords: Keyword table. If None, uses the built-in table.
        """
        rules = NAME_PATTERN_OVERRIDES if overrides is None else overrides
        # sorted() is stable, so equal priorities keep list order
        self.overrides = sorted(rules, key=lambda rule: -rule.priority)
        self.keywords = CATEGORY_KEYWORDS if keywords is None else keywords

    def match_override(self, name_lower: str) -> Optional[Tuple[NamePatternOverride, str]]:
        """Return the highest-priority override and the pattern that fired."""
        for rule in self.overrides:
            for pattern in rule.patterns:
                if contains(name_lower, pattern):
                    return rule, pattern
        return None

    def detect(
        self,
        item_name: str,
        category_hint: Optional[str] = None,
        model_category: Optional[str] = None,
    ) -> CategoryDetection:
        """Detect an item's category.

        Args:
            item_name: Item name or description
            category_hint: Category supplied by the caller
            model_category: Category suggested by a model vote

        Returns:
            Category detection with confidence and source tier
        """
        name_lower = item_name.lower()

        override = self.match_override(name_lower)
        if override:
            rule, pattern = override
            return CategoryDetection(
                category=rule.category,
                confidence=OVERRIDE_CONFIDENCE,
                keywords=[pattern],
                source=SOURCE_OVERRIDE,
            )

        for label, confidence, source in (
            (model_category, AI_VOTE_CONFIDENCE, SOURCE_AI_VOTE),
            (category_hint, HINT_CONFIDENCE, SOURCE_CATEGORY_HINT),
        ):
            if label and label.strip().lower() not in GENERIC_CATEGORIES:
                normalized = normalize_category(label)
                if normalized not in GENERIC_CATEGORIES:
                    return CategoryDetection(
                        category=normalized,
                        confidence=confidence,
                        keywords=[source],
                        source=source,
                    )

        parsed = detect_category_from_name(name_lower)
        if parsed:
            return CategoryDetection(
                category=parsed,
                confidence=NAME_PARSING_CONFIDENCE,
                keywords=[SOURCE_NAME_PARSING],
                source=SOURCE_NAME_PARSING,
            )

        scored = score_keywords(name_lower, self.keywords)
        if scored:
            category, score, matches = scored[0]
            logger.debug(f"Keyword scores for '{item_name}': {scored[:3]}")
            return CategoryDetection(
                category=category,
                confidence=min(0.5 + score * 0.1, 0.95),
                keywords=matches,
                source=SOURCE_KEYWORDS,
            )

        return CategoryDetection(
            category=DEFAULT_CATEGORY,
            confidence=DEFAULT_CONFIDENCE,
            keywords=[],
            source=SOURCE_DEFAULT,
        )


_default_detector: Optional[CategoryDetector] = None


def detect_category(
    item_name: str,
    category_hint: Optional[str] = None,
    model_category: Optional[str] = None,
) -> CategoryDetection:
    """Detect a category with the built-in rule tables."""
    global _default_detector
    if _default_detector is None:
        _default_detector = CategoryDetector()
    return _default_detector.detect(item_name, category_hint, model_category)
