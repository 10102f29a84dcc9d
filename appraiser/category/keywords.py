"""Keyword lists per category for keyword scoring.

A matched keyword scores its word count, so longer phrases count more.
Keywords of three characters or fewer only match whole words.
"""

from typing import Dict, List

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "stamps": [
        "stamp", "postage", "postage stamp", "first day cover", "fdc",
        "mint stamp", "used stamp", "stamp sheet", "souvenir sheet",
        "philately", "philatelic", "postmark", "stanley gibbons",
    ],
    "postcards": [
        "postcard", "post card", "vintage postcard", "real photo postcard",
        "rppc", "chrome postcard", "linen postcard",
    ],
    "medals": [
        "medal", "medallion", "military medal", "commemorative medal",
        "service medal", "campaign medal", "cross of merit",
    ],
    "tokens": [
        "token", "transit token", "arcade token", "trade token",
        "casino token", "casino chip", "exonumia",
    ],
    "pins": ["enamel pin", "lapel pin", "pin badge", "olympic pin", "disney pin", "trading pin"],
    "stickers": ["sticker", "decal", "panini sticker", "sticker album", "bumper sticker"],
    "tickets": ["ticket", "concert ticket", "ticket stub", "event ticket", "movie ticket"],
    "streetwear": [
        "supreme", "supreme box logo", "bape", "a bathing ape", "bathing ape",
        "off-white", "off white", "fear of god", "fog essentials",
        "kith", "palace skateboards", "travis scott", "cactus jack",
        "yeezy gap", "stussy", "anti social social club", "chrome hearts",
        "gallery dept", "human made", "drew house", "corteiz", "hellstar",
        "deadstock", "brand new with tags",
    ],
    "apparel": [
        "hoodie", "sweatshirt", "sweater", "pullover", "crewneck", "crew neck",
        "jacket", "coat", "blazer", "cardigan", "windbreaker", "parka", "bomber jacket",
        "shirt", "t-shirt", "tee", "polo", "flannel", "long sleeve",
        "pants", "jeans", "shorts", "joggers", "sweatpants", "trousers", "skirt",
        "dress", "hat", "cap", "beanie", "snapback", "scarf", "gloves",
        "jersey", "team jersey", "basketball jersey", "football jersey",
        "vintage tee", "band tee", "concert tee", "varsity jacket",
    ],
    "sneakers": [
        "sneaker", "sneakers", "kicks", "trainers",
        "air jordan", "jordan 1", "jordan 4", "jordan 11", "jordan retro",
        "yeezy", "yeezy 350", "yeezy slide",
        "nike dunk", "dunk low", "dunk high", "sb dunk",
        "air force 1", "af1", "air max", "air max 90",
        "new balance 550", "new balance 990",
        "adidas samba", "adidas gazelle", "converse", "chuck taylor",
        "vans old skool", "asics gel",
    ],
    "household": [
        "appliance", "kitchen", "blender", "mixer", "coffee maker", "keurig", "nespresso",
        "instant pot", "air fryer", "toaster", "microwave", "food processor", "juicer",
        "vacuum", "dyson", "roomba", "bissell", "hoover", "steam cleaner",
        "vitamix", "cuisinart", "kitchenaid", "hamilton beach",
        "baby monitor", "stroller", "high chair", "pet feeder", "litter box",
        "new in box", "factory sealed",
    ],
    "vehicles": [
        "vehicle", "automobile", "automotive", "sedan", "coupe", "hatchback",
        "truck", "pickup", "suv", "minivan", "motorcycle", "motorbike", "atv",
        "odometer", "mileage", "carfax",
        "ford", "chevrolet", "chevy", "toyota", "honda", "nissan", "dodge",
        "jeep", "bmw", "mercedes", "audi", "lexus", "subaru", "mazda", "hyundai",
        "kia", "tesla", "porsche", "ferrari", "mustang", "camaro", "corvette",
        "f-150", "silverado", "tacoma", "civic", "accord", "camry", "corolla",
        "model s", "model 3", "model y", "harley davidson", "ducati", "kawasaki",
    ],
    "coins": [
        "coin", "penny", "nickel", "dime", "quarter", "cent",
        "morgan", "buffalo", "wheat", "mercury",
        "numismatic", "uncirculated", "proof", "silver dollar",
        "gold coin", "half dollar", "commemorative", "bullion",
        "peace dollar", "walking liberty", "standing liberty", "seated liberty",
        "indian head", "flying eagle", "trade dollar", "double eagle",
        "silver eagle", "krugerrand", "maple leaf", "britannia",
        "ancient coin", "roman coin", "ms63", "ms65", "ms70",
        "pcgs", "ngc", "mint state", "proof coin",
    ],
    "banknotes": ["banknote", "paper money", "currency note", "federal reserve note"],
    "lego": [
        "lego", "legos", "minifig", "minifigure", "star wars lego", "technic",
        "ninjago", "duplo", "bionicle", "millennium falcon", "creator expert",
    ],
    "pokemon_cards": [
        "pokemon", "pokémon", "poke mon",
        "pikachu", "charizard", "blastoise", "venusaur", "mewtwo", "mew",
        "bulbasaur", "charmander", "squirtle", "eevee", "snorlax", "gengar",
        "dragonite", "gyarados", "lugia", "rayquaza", "umbreon", "sylveon",
        "vmax", "vstar", "full art", "rainbow rare", "secret rare",
        "reverse holo", "trainer gallery", "alt art", "illustration rare",
        "base set", "team rocket",
    ],
    "trading_cards": [
        "trading card", "tcg", "holographic", "foil card",
        "first edition", "graded card", "booster", "booster box", "card game",
        "beckett", "magic the gathering", "yugioh",
    ],
    "sports_cards": [
        "topps", "panini", "rookie card", "sports card", "baseball card",
        "football card", "basketball card", "hockey card", "prizm",
        "donruss", "bowman", "upper deck",
    ],
    "books": [
        "book", "novel", "hardcover", "paperback", "first edition book",
        "signed copy", "isbn", "rare book", "antique book", "dust jacket",
    ],
    "comics": [
        "comic", "comic book", "graphic novel", "manga",
        "marvel", "dc comics", "spider-man", "batman", "superman", "x-men",
        "first appearance", "key issue", "cbcs", "graded comic",
        "golden age", "silver age", "bronze age", "variant cover", "newsstand",
    ],
    "video_games": [
        "video game", "nintendo", "playstation", "xbox", "ps5", "ps4", "ps2",
        "switch", "wii", "gamecube", "n64", "snes", "nes", "gameboy", "game boy",
        "sega", "genesis", "dreamcast", "atari", "cib", "complete in box",
        "cartridge", "zelda", "mario", "final fantasy",
    ],
    "vinyl_records": [
        "vinyl", "record", "lp", "album", "45 rpm", "33 rpm", "78 rpm",
        "first pressing", "original pressing", "picture disc", "colored vinyl",
        "discogs", "sealed vinyl",
    ],
    "electronics": [
        "electronic", "gadget", "speaker", "headphones", "earbuds",
        "tablet", "laptop", "computer", "monitor", "keyboard",
        "projector", "smart home", "gopro", "drone", "camera", "lens",
    ],
    "watches": ["watch", "rolex", "omega", "seiko", "casio", "timepiece", "wristwatch"],
    "jewelry": ["jewelry", "necklace", "bracelet", "ring", "earring", "diamond", "sterling"],
    "toys": ["toy", "doll", "plush", "stuffed animal", "hot wheels"],
    "action_figures": ["action figure", "figure", "statue", "funko", "funko pop", "hot toys"],
    "antiques": ["antique", "victorian", "art deco", "edwardian"],
    "vintage": ["vintage", "retro", "mid-century"],
}
