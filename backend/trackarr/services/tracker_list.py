"""
Tracker List Normalization and Merging

Pure functions that turn raw tracker list bodies into clean announce URLs
and combine several lists into one deduplicated, order-stable set.

Normalization rules:
    - Split on line boundaries, trim each line
    - Drop empty lines
    - Drop lines without an allowed scheme prefix (http, https, udp, ws, wss)
    - Drop lines with embedded whitespace or nothing after the scheme

Merge rules:
    - Exact string equality (no case or trailing-slash folding)
    - Source order first, caller-supplied extras last
    - First occurrence wins
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from trackarr.config import DEFAULT_SCHEMES


@dataclass(frozen=True)
class MergedTrackerSet:
    """Ordered, deduplicated union of tracker lists for one invocation."""

    trackers: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[str]:
        return iter(self.trackers)

    def __len__(self) -> int:
        return len(self.trackers)

    def __contains__(self, tracker: object) -> bool:
        return tracker in self.trackers

    def to_list(self) -> List[str]:
        return list(self.trackers)

    def to_text(self) -> str:
        """Newline-joined trackers with a trailing newline; empty set gives ""."""
        if not self.trackers:
            return ""
        return "\n".join(self.trackers) + "\n"


def is_tracker_url(candidate: str, allowed_schemes: Sequence[str] = DEFAULT_SCHEMES) -> bool:
    """
    Check minimal URL syntax for a trimmed tracker candidate.

    Args:
        candidate: Trimmed line
        allowed_schemes: Accepted scheme names (lowercase)

    Returns:
        True if the candidate starts with an allowed scheme and has a host part
    """
    if not candidate or any(ch.isspace() for ch in candidate):
        return False

    scheme, sep, rest = candidate.partition("://")
    if not sep or not rest:
        return False

    return scheme.lower() in allowed_schemes


def normalize_tracker_lines(
    lines: Iterable[str],
    allowed_schemes: Sequence[str] = DEFAULT_SCHEMES
) -> List[str]:
    """
    Normalize already-split lines into tracker URLs.

    Args:
        lines: Candidate lines (untrimmed)
        allowed_schemes: Accepted scheme names

    Returns:
        Valid tracker URLs in order of first appearance
    """
    seen = set()
    trackers = []
    for line in lines:
        if not isinstance(line, str):
            continue
        candidate = line.strip()
        if candidate in seen or not is_tracker_url(candidate, allowed_schemes):
            continue
        seen.add(candidate)
        trackers.append(candidate)
    return trackers


def normalize_tracker_list(
    text: str,
    allowed_schemes: Sequence[str] = DEFAULT_SCHEMES
) -> List[str]:
    """
    Parse a raw line-delimited tracker list body.

    Malformed lines are dropped silently.

    Args:
        text: Raw response body
        allowed_schemes: Accepted scheme names

    Returns:
        Valid tracker URLs in order of first appearance
    """
    if not text:
        return []
    return normalize_tracker_lines(text.splitlines(), allowed_schemes)


def merge_tracker_lists(
    lists: Iterable[Iterable[str]],
    extra: Optional[Iterable[str]] = None
) -> MergedTrackerSet:
    """
    Union tracker lists into one MergedTrackerSet.

    Args:
        lists: Normalized lists in source order
        extra: Optional caller-supplied list, appended after all sources

    Returns:
        MergedTrackerSet with first-occurrence ordering
    """
    seen = set()
    merged = []

    def _add(trackers: Iterable[str]) -> None:
        for tracker in trackers:
            if tracker not in seen:
                seen.add(tracker)
                merged.append(tracker)

    for trackers in lists:
        _add(trackers)
    if extra:
        _add(extra)

    return MergedTrackerSet(tuple(merged))
