"""Name pattern overrides, evaluated by descending priority.

Priority guide: 120 single-authority collectibles, 115 niche collectibles,
110 hype brands, 100 general apparel, 90-95 specific items.

Use a ``\\b`` pattern for short tokens that occur inside other words:
"lp" appears in "dlp projector", so vinyl uses ``\\blp\\b``.
"""

from typing import List

from appraiser.category.models import NamePatternOverride

NAME_PATTERN_OVERRIDES: List[NamePatternOverride] = [
    NamePatternOverride(
        patterns=["stamp", "postage", "philately", "philatelic", "first day cover", r"\bfdc\b"],
        category="stamps",
        priority=120,
    ),
    NamePatternOverride(
        patterns=["banknote", "bank note", "paper money", "paper currency"],
        category="banknotes",
        priority=120,
    ),
    NamePatternOverride(
        patterns=["postcard", "post card", r"\brppc\b"],
        category="postcards",
        priority=120,
    ),
    NamePatternOverride(
        patterns=["medal", "medallion"],
        category="medals",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["enamel pin", "lapel pin", "pin badge", "collector pin", "disney pin", "olympic pin"],
        category="pins",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["embroidered patch", "iron-on patch", "morale patch", "military patch", "scout patch"],
        category="patches",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["phone card", "phonecard", "calling card", "telecarte"],
        category="phonecards",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["beer coaster", "beermat", "beer mat"],
        category="beer_coasters",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["bottle cap", "bottlecap", "crown cap"],
        category="bottlecaps",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["happy meal", "mcdonalds toy", "kids meal toy", "kinder surprise", "kinder egg"],
        category="kids_meal_toys",
        priority=115,
    ),
    NamePatternOverride(
        patterns=["arcade token", "transit token", "casino chip", "casino token", "parking token"],
        category="tokens",
        priority=110,
    ),
    # Streetwear ranks above general apparel
    NamePatternOverride(
        patterns=["supreme", "box logo", r"\bbogo\b", r"\bbape\b", "bathing ape", "baby milo"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["off-white", "off white", "offwhite", "virgil abloh"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["fear of god", "fog essentials", "essentials hoodie", r"\bessentials\b"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=[r"\bpalace\b", "tri-ferg", "palace skate"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["travis scott", "cactus jack", "astroworld", "utopia merch"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["anti social social club", r"\bassc\b"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=[r"\bvlone\b", "chrome hearts", "gallery dept", r"\brhude\b", r"\bamiri\b"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["stussy", r"\bkith\b", "undefeated", "undftd"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["yeezy gap", "yzy gap", "yeezy season"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["sp5der", "spider worldwide", "hellstar", "eric emanuel", r"\bee shorts\b"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["drew house", "human made", "billionaire boys club", "bbc icecream"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["corteiz", r"\bcrtz\b", "broken planet"],
        category="streetwear",
        priority=110,
    ),
    NamePatternOverride(
        patterns=["hoodie", "hoody", "sweatshirt", "sweater", "pullover", "crewneck"],
        category="apparel",
        priority=100,
    ),
    NamePatternOverride(
        patterns=["jacket", r"\bcoat\b", "blazer", "windbreaker", "parka", r"\bvest\b"],
        category="apparel",
        priority=100,
    ),
    NamePatternOverride(
        patterns=["jersey"],
        category="apparel",
        priority=100,
    ),
    NamePatternOverride(
        patterns=["t-shirt", "tee shirt", "polo shirt", "button up", "flannel shirt"],
        category="apparel",
        priority=100,
    ),
    NamePatternOverride(
        patterns=[r"\bpants\b", r"\bjeans\b", r"\bshorts\b", "joggers", "sweatpants", "trousers"],
        category="apparel",
        priority=100,
    ),
    NamePatternOverride(
        patterns=[r"\bhat\b", r"\bcap\b", "beanie", "snapback", "fitted cap", "bucket hat"],
        category="apparel",
        priority=100,
    ),
    NamePatternOverride(
        patterns=["vinyl", r"\brecord\b", r"\blp\b", "33 rpm", "45 rpm", r"\balbum\b"],
        category="vinyl_records",
        priority=95,
    ),
    NamePatternOverride(
        patterns=["pokemon", "pokémon", "pikachu", "charizard", "mewtwo"],
        category="pokemon_cards",
        priority=90,
    ),
    NamePatternOverride(
        patterns=["lego", "minifig", "minifigure"],
        category="lego",
        priority=90,
    ),
    NamePatternOverride(
        patterns=["psa 10", "psa 9", "bgs 10", "bgs 9.5", "cgc 9.8"],
        category="graded_cards",
        priority=90,
    ),
]
