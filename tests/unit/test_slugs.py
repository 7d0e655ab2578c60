import re

from printvault.core.slugs import FALLBACK_SLUG, resolve_unique_slug, slugify

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def test_slugify_strips_punctuation() -> None:
    assert slugify("Lord Ganesha!!") == "lord-ganesha"


def test_slugify_collapses_whitespace_and_hyphens() -> None:
    assert slugify("  Royal   Gold -- Frame  ") == "royal-gold-frame"
    assert slugify("--Leading and trailing--") == "leading-and-trailing"


def test_slugify_turns_underscores_into_hyphens() -> None:
    assert slugify("snake_case__title") == "snake-case-title"


def test_slugify_empty_and_symbol_only_input() -> None:
    assert slugify("") == ""
    assert slugify("!!! ???") == ""


def test_slugify_output_alphabet() -> None:
    titles = [
        "Classic Monogram Frame A-Z",
        "Heart & Wreath: Initial Logo (v2)",
        "Mandala\tDesign\nPack",
        "Ganpati Bappa Morya ~ 2024",
        "_under_score_",
        "Déjà vu ✨ design",
    ]
    for title in titles:
        slug = slugify(title)
        assert SLUG_RE.match(slug), (title, slug)


def test_resolve_unique_slug_appends_counter() -> None:
    taken = {"lord-ganesha", "lord-ganesha-1"}
    assert resolve_unique_slug("Lord Ganesha!!", taken.__contains__) == "lord-ganesha-2"


def test_resolve_unique_slug_returns_base_when_free() -> None:
    assert resolve_unique_slug("Paisley Pattern", lambda slug: False) == "paisley-pattern"


def test_resolve_unique_slug_falls_back_for_empty_base() -> None:
    assert resolve_unique_slug("!!!", lambda slug: False) == FALLBACK_SLUG


def test_resolve_unique_slug_skips_route_words() -> None:
    assert resolve_unique_slug("Tags", lambda slug: False) == "tags-1"
    assert resolve_unique_slug("Featured", lambda slug: False) == "featured-1"
    assert resolve_unique_slug("Categories", {"categories-1"}.__contains__) == "categories-2"
    assert resolve_unique_slug("Featured Frames", lambda slug: False) == "featured-frames"
