"""Best-match and quality tier selection among provider candidates.

Matching is exact, case-sensitive string equality on artist and song name.
Name formatting differences across providers (feat. credits, full-width
punctuation, artist ordering) silently exclude true matches.
"""

from collections.abc import Iterable

from .utils.models import Candidate, QualityEnum


def quality_of(candidate: Candidate) -> QualityEnum:
    """Maps a candidate's quality flags to its tier label.

    Args:
        candidate: The candidate to classify.

    Returns:
        The highest tier the candidate offers.
    """
    if candidate.lossless:
        return QualityEnum.LOSSLESS
    elif candidate.kbps_320:
        return QualityEnum.KBPS_320
    elif candidate.kbps_192:
        return QualityEnum.KBPS_192
    else:
        return QualityEnum.UNKNOWN


def is_eligible(candidate: Candidate, artist_name: str, song_name: str) -> bool:
    return candidate.artist_name == artist_name and candidate.song_name == song_name


def _should_replace(current: Candidate, candidate: Candidate) -> bool:
    if candidate.lossless and not current.lossless:
        return True
    if not current.lossless and not current.kbps_320 and candidate.kbps_320:
        return True
    return False


def pick_best(
    candidates: Iterable[Candidate], artist_name: str, song_name: str
) -> Candidate | None:
    """Picks the single best candidate for a target song.

    Candidates are scanned in provider-result order. The first eligible one
    becomes the pick; a later one replaces it only when it offers lossless
    and the pick does not, or offers 320kbps while the pick has neither
    lossless nor 320kbps. Among equal tiers the earliest candidate wins.

    Args:
        candidates: Normalised candidates in provider-result order.
        artist_name: Target artist name.
        song_name: Target song name.

    Returns:
        The best candidate, or None if none is eligible.
    """
    best: Candidate | None = None
    for candidate in candidates:
        if not is_eligible(candidate, artist_name, song_name):
            continue
        if best is None or _should_replace(best, candidate):
            best = candidate
    return best
