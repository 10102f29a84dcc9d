from appraiser.category.detector import (
    CategoryDetector,
    contains,
    detect_category,
    get_sources_for_category,
    normalize_category,
)
from appraiser.category.models import (
    SOURCE_AI_VOTE,
    SOURCE_CATEGORY_HINT,
    SOURCE_DEFAULT,
    SOURCE_KEYWORDS,
    SOURCE_NAME_PARSING,
    SOURCE_OVERRIDE,
    NamePatternOverride,
)


def test_dlp_projector_is_electronics_not_vinyl():
    detection = detect_category("Epson DLP Projector")

    assert detection.category == "electronics"
    assert detection.source == SOURCE_KEYWORDS
    assert "projector" in detection.keywords


def test_short_tokens_match_whole_words_only():
    assert not contains("epson dlp projector", "lp")
    assert contains("beatles lp first pressing", "lp")
    assert contains("beatles lp first pressing", r"\blp\b")
    assert contains("a long phrase here", "long phrase")


def test_vinyl_override_still_fires_on_whole_word():
    detection = detect_category("Beatles Abbey Road LP")

    assert detection.category == "vinyl_records"
    assert detection.source == SOURCE_OVERRIDE


def test_streetwear_outranks_apparel():
    detection = detect_category("Supreme Box Logo Hoodie")

    assert detection.category == "streetwear"
    assert detection.confidence == 0.98


def test_override_priority_wins_regardless_of_list_order():
    detector = CategoryDetector(
        overrides=[
            NamePatternOverride(patterns=["widget"], category="low", priority=50),
            NamePatternOverride(patterns=["gizmo"], category="high", priority=60),
        ],
        keywords={},
    )

    assert detector.detect("Widget Gizmo Deluxe").category == "high"


def test_equal_priority_keeps_list_order():
    overrides = [
        NamePatternOverride(patterns=["widget"], category="first", priority=70),
        NamePatternOverride(patterns=["gizmo"], category="second", priority=70),
    ]
    detector = CategoryDetector(overrides=overrides, keywords={})

    for _ in range(3):
        assert detector.detect("Gizmo Widget").category == "first"


def test_override_beats_model_and_hint():
    detection = detect_category(
        "Vintage Postage Stamp Sheet", category_hint="books", model_category="coins"
    )

    assert detection.category == "stamps"
    assert detection.source == SOURCE_OVERRIDE


def test_model_category_beats_hint():
    detection = detect_category(
        "Mystery Thing", category_hint="books", model_category="Electronic Gadgets"
    )

    assert detection.category == "electronics"
    assert detection.source == SOURCE_AI_VOTE
    assert detection.confidence == 0.95


def test_generic_model_category_falls_through_to_hint():
    detection = detect_category("Mystery Thing", category_hint="Comic Books", model_category="general")

    assert detection.category == "comics"
    assert detection.source == SOURCE_CATEGORY_HINT


def test_name_parsing_tier():
    detection = detect_category("Nintendo Switch OLED")

    assert detection.category == "video_games"
    assert detection.source == SOURCE_NAME_PARSING


def test_cards_at_equal_priority():
    # Pokemon is listed before graded cards at the same priority
    assert detect_category("Charizard Base Set PSA 9").category == "pokemon_cards"
    assert detect_category("Topps Chrome Rookie PSA 10").category == "graded_cards"


def test_vin_detected_as_vehicle():
    detection = detect_category("1HGCM82633A004352 clean title")

    assert detection.category == "vehicles"


def test_unknown_name_defaults_to_general():
    detection = detect_category("Zqxv Blorp")

    assert detection.category == "general"
    assert detection.source == SOURCE_DEFAULT
    assert detection.confidence == 0.5


def test_normalize_category_vinyl_before_vehicles():
    assert normalize_category("Vinyl Records") == "vinyl_records"
    assert normalize_category("vin-decoded auto") == "vehicles"
    assert normalize_category("Pokemon TCG") == "pokemon_cards"
    assert normalize_category("Kitchen Appliances") == "household"


def test_sources_for_category():
    assert get_sources_for_category("coins") == ["numista", "ebay"]
    assert get_sources_for_category("something new") == ["ebay"]
