from __future__ import annotations

import pytest

from wplace_convert.colour_match import BoundedCache, ColourMatcher, is_white
from wplace_convert.config import MatchPolicy
from wplace_convert.core_types import PaletteEntry

SPACES = ["rgb", "hsv", "oklab", "lab"]


@pytest.mark.parametrize("space", SPACES)
def test_exact_colour_scores_zero(matcher, wplace_palette, space):
    policy = MatchPolicy(distance_space=space)
    prepared = matcher._bind(wplace_palette)
    for entry in wplace_palette:
        result = matcher.find_closest(entry.rgb, wplace_palette, policy)
        assert result.rgb == entry.rgb
        scores = matcher._scores(entry.rgb, prepared, policy)
        assert scores.min() == 0


@pytest.mark.parametrize("space", SPACES)
def test_empty_palette_returns_sentinel(matcher, space):
    policy = MatchPolicy(distance_space=space)
    result = matcher.find_closest((10.4, 20.6, 300), [], policy)
    assert result.id is None
    assert result.rgb == (10, 21, 255)
    assert matcher.resolve_colour((1, 2, 3), []).id is None


def test_float_targets_are_rounded(matcher, bw_palette):
    white = matcher.find_closest((127.6, 127.6, 127.6), bw_palette)
    assert white.rgb == (255, 255, 255)
    assert matcher.find_closest((-40.0, 3.0, 2.0), bw_palette).id == 1


def test_first_entry_wins_ties(matcher):
    palette = [PaletteEntry(7, (10, 10, 10)), PaletteEntry(8, (10, 10, 10))]
    assert matcher.find_closest((12, 12, 12), palette).id == 7


def test_white_pixel_resolves_to_pure_white(matcher):
    palette = [
        PaletteEntry(1, (0, 0, 0)),
        PaletteEntry(11, (255, 250, 188)),
        PaletteEntry(4, (240, 240, 240)),
        PaletteEntry(5, (255, 255, 255)),
        PaletteEntry(12, (235, 238, 236)),
    ]
    assert matcher.resolve_colour((255, 255, 255), palette).id == 5


def test_white_override_prefers_white_candidates(matcher):
    # Off-white target whose plain nearest colour is not white.
    palette = [PaletteEntry(2, (236, 236, 250)), PaletteEntry(5, (255, 255, 255))]
    target = (240, 240, 252)
    policy = MatchPolicy(distance_space="rgb")
    assert matcher.find_closest(target, palette, policy).id == 2
    assert matcher.resolve_colour(target, palette, policy).id == 2
    strict = MatchPolicy(distance_space="rgb", white_threshold=240)
    assert matcher.resolve_colour(target, palette, strict).id == 5


def test_exact_match_mode(matcher, bw_palette):
    hit = matcher.resolve_colour((255, 255, 255), bw_palette, exact_match=True)
    assert hit.id == 5
    miss = matcher.resolve_colour((254, 255, 255), bw_palette, exact_match=True)
    assert miss.id is None
    assert miss.rgb == (254, 255, 255)


def test_chroma_penalty_pushes_vivid_colours_off_grey(matcher):
    palette = [PaletteEntry(3, (120, 120, 120)), PaletteEntry(7, (200, 30, 30))]
    target = (150, 90, 90)
    plain = matcher.find_closest(target, palette, MatchPolicy())
    penalised = matcher.find_closest(
        target, palette, MatchPolicy(chroma_penalty=True, chroma_penalty_weight=5.0)
    )
    assert plain.id == 3
    assert penalised.id == 7


def test_legacy_alias_and_unknown_space(capsys):
    assert MatchPolicy(distance_space="legacy").distance_space == "rgb"
    assert MatchPolicy(distance_space="RGB-Legacy").distance_space == "rgb"
    policy = MatchPolicy(distance_space="ciede2000")
    assert policy.distance_space == "lab"
    assert "[warn]" in capsys.readouterr().out


def test_match_cache_is_bounded(bw_palette):
    matcher = ColourMatcher(cache_limit=8, lab_cache_limit=4)
    for v in range(50):
        matcher.find_closest((v, v, v), bw_palette)
        assert matcher.match_cache_size <= 8
        assert matcher.lab_cache_size <= 4
    matcher.clear_caches()
    assert matcher.match_cache_size == 0
    assert matcher.lab_cache_size == 0


def test_palette_change_invalidates_results(matcher):
    first = [PaletteEntry(1, (0, 0, 0))]
    second = [PaletteEntry(9, (250, 0, 0))]
    assert matcher.find_closest((200, 0, 0), first).id == 1
    assert matcher.find_closest((200, 0, 0), second).id == 9
    # Same contents, new list object.
    assert matcher.find_closest((200, 0, 0), list(second)).id == 9


def test_bounded_cache_clears_wholesale():
    cache = BoundedCache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 3)
    assert len(cache) == 2
    cache.put("c", 4)
    assert len(cache) == 1
    assert "c" in cache and "a" not in cache
    with pytest.raises(ValueError):
        BoundedCache(0)


def test_is_white():
    assert is_white(230, 231, 255, 230)
    assert not is_white(229, 255, 255, 230)


def test_palette_edited_in_place_is_rebound(matcher, bw_palette):
    palette = list(bw_palette)
    assert matcher.find_closest((250, 10, 10), palette).id != 3
    palette.append(PaletteEntry(3, (255, 0, 0)))
    assert matcher.find_closest((250, 10, 10), palette).id == 3
    assert matcher.resolve_colour((250, 10, 10), palette).id == 3
    palette[2] = PaletteEntry(4, (0, 0, 255))
    assert matcher.find_closest((250, 10, 10), palette).id != 4
    assert matcher.find_closest((10, 10, 250), palette).id == 4
