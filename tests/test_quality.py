from __future__ import annotations

import pytest

from songstash.quality import is_eligible, pick_best, quality_of
from songstash.utils.models import Candidate, QualityEnum


def candidate(
    source: str = "qq",
    song_id: str = "1",
    artist: str = "Alice",
    song: str = "Song",
    **quality: bool,
) -> Candidate:
    return Candidate(
        source=source,
        id=song_id,
        album_name="Album",
        artist_name=artist,
        song_name=song,
        **quality,
    )


def test_pick_best_returns_none_without_candidates() -> None:
    assert pick_best([], "Alice", "Song") is None


def test_pick_best_returns_none_when_nothing_matches_exactly() -> None:
    candidates = [
        candidate(artist="alice", lossless=True),
        candidate(song="Song (Live)", lossless=True),
        candidate(artist="Alice Bob", kbps_320=True),
    ]

    assert pick_best(candidates, "Alice", "Song") is None


def test_is_eligible_is_case_sensitive() -> None:
    assert is_eligible(candidate(), "Alice", "Song")
    assert not is_eligible(candidate(), "ALICE", "Song")
    assert not is_eligible(candidate(), "Alice", "song")


@pytest.mark.parametrize("lossless_first", [True, False])
def test_lossless_beats_320kbps_in_either_order(lossless_first: bool) -> None:
    lossless = candidate(source="xiami", song_id="L", lossless=True)
    kbps_320 = candidate(source="qq", song_id="H", kbps_320=True)
    ordered = [lossless, kbps_320] if lossless_first else [kbps_320, lossless]

    assert pick_best(ordered, "Alice", "Song") is lossless


def test_320kbps_replaces_earlier_192kbps() -> None:
    low = candidate(song_id="192", kbps_192=True)
    high = candidate(song_id="320", kbps_320=True)

    assert pick_best([low, high], "Alice", "Song") is high


def test_192kbps_does_not_replace_earlier_320kbps() -> None:
    high = candidate(song_id="320", kbps_320=True)
    low = candidate(song_id="192", kbps_192=True)

    assert pick_best([high, low], "Alice", "Song") is high


def test_earliest_candidate_wins_among_equal_tiers() -> None:
    first = candidate(source="qq", lossless=True)
    second = candidate(source="netease", lossless=True)

    assert pick_best([first, second], "Alice", "Song") is first


def test_lossless_pick_is_kept_against_later_320kbps_with_lossless_flags() -> None:
    first = candidate(source="qq", lossless=True, kbps_320=True)
    second = candidate(source="netease", kbps_320=True)

    assert pick_best([first, second], "Alice", "Song") is first


def test_ineligible_candidates_never_displace_the_pick() -> None:
    match = candidate(kbps_192=True)
    other = candidate(artist="Bob", lossless=True)

    assert pick_best([match, other], "Alice", "Song") is match


@pytest.mark.parametrize(
    ("flags", "expected"),
    [
        ({"lossless": True, "kbps_320": True}, QualityEnum.LOSSLESS),
        ({"kbps_320": True, "kbps_192": True}, QualityEnum.KBPS_320),
        ({"kbps_192": True}, QualityEnum.KBPS_192),
        ({}, QualityEnum.UNKNOWN),
    ],
)
def test_quality_of_reports_highest_tier(
    flags: dict[str, bool], expected: QualityEnum
) -> None:
    assert quality_of(candidate(**flags)) is expected
