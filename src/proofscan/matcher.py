# ───────────────────────── src/proofscan/matcher.py ─────────────────────────
"""
Dictionary term matching engine.

This module scans text for every alias of the active proof terms and returns
the located occurrences with their proposed corrections.

Module Architecture:
    - LRUCache: Bounded cache for compiled alias patterns and built matchers
    - MatchResult: One located alias occurrence with its correction
    - Matcher: Scans text against an ordered set of proof terms
    - build_matcher: Convenience constructor

Matching Rules:
    1. Every alias of every active term is searched for all non-overlapping
       occurrences. Literal aliases are exact, case-sensitive substrings.
    2. Occurrences whose matched text already equals the correction are
       dropped.
    3. Overlapping candidates are resolved by dictionary order: the term
       registered first keeps its span, later ones are discarded. Within one
       term, earlier aliases win.
    4. Results are returned in ascending start offset.

Usage Examples:
    >>> from proofscan.dictionary import ProofTerm
    >>> matcher = build_matcher([ProofTerm("the", ("teh",))])
    >>> [(r.match_start_index, r.match_end_index, r.expected) for r in matcher.match("teh cat")]
    [(0, 3, 'the')]

Thread Safety:
    - Matcher.match is a pure scan apart from statistics counters and the
      pattern cache, which are guarded by a lock so amatch can run on worker
      threads concurrently.
"""

import asyncio
import bisect
import re
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from .dictionary import ProofTerm, compile_alias, is_regex_alias

_GROUP_REFERENCE = re.compile(r"\$(\d+)")


class LRUCache:
    """LRU (Least Recently Used) cache.

    Uses an OrderedDict to keep access order and evicts the least recently
    used entry once ``maxsize`` is exceeded.

    Attributes:
        cache (OrderedDict): Internal storage maintaining access order.
        maxsize (int): Maximum number of items to store in the cache.

    Examples:
        >>> cache = LRUCache(maxsize=2)
        >>> cache.set("teh", "the")
        >>> cache.set("adn", "and")
        >>> cache.get("teh")
        'the'
        >>> cache.set("fro", "for")  # Evicts "adn" (least recent)
        >>> cache.get("adn") is None
        True

    Note:
        Not thread-safe by itself; callers sharing an instance across threads
        must synchronize.
    """

    def __init__(self, maxsize: int = 1000):
        """Initialize the cache.

        Args:
            maxsize: Maximum number of entries kept.

        Raises:
            ValueError: If maxsize is less than 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be at least 1")
        self.cache: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.maxsize = maxsize

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value and mark it as recently used, or None."""
        if key in self.cache:
            self.cache.move_to_end(key)
            return self.cache[key]
        return None

    def set(self, key: Hashable, value: Any) -> None:
        """Store or update an entry, evicting the oldest one if over capacity."""
        if key in self.cache:
            self.cache.move_to_end(key)
        self.cache[key] = value

        if len(self.cache) > self.maxsize:
            self.cache.popitem(last=False)

    def resize(self, new_size: int) -> None:
        """Change capacity, evicting least recently used entries if needed.

        Raises:
            ValueError: If new_size is less than 1.
        """
        if new_size < 1:
            raise ValueError("new_size must be at least 1")
        self.maxsize = new_size
        while len(self.cache) > self.maxsize:
            self.cache.popitem(last=False)

    def clear(self) -> None:
        self.cache.clear()

    def __len__(self) -> int:
        return len(self.cache)


@dataclass(frozen=True)
class MatchResult:
    """One located alias occurrence.

    Attributes:
        match_start_index: Zero-based start offset into the scanned text.
        match_end_index: Exclusive end offset.
        actual: The matched text.
        expected: The proposed correction.
        description: Description of the term, if any.
        rule: Rule id of the term, if any.
    """

    match_start_index: int
    match_end_index: int
    actual: str
    expected: str
    description: Optional[str] = None
    rule: Optional[str] = None

    @property
    def is_reportable(self) -> bool:
        return self.actual != self.expected


def expand_expected(expected: str, match: "re.Match[str]") -> str:
    """Replace ``$N`` group references in ``expected`` with the matched groups.

    References to groups the pattern does not define are left as written.
    """

    def _group(ref: "re.Match[str]") -> str:
        index = int(ref.group(1))
        if index > (match.re.groups or 0):
            return ref.group(0)
        return match.group(index) or ""

    return _GROUP_REFERENCE.sub(_group, expected)


class Matcher:
    """Scans text for the aliases of an ordered set of proof terms.

    Attributes:
        terms (tuple): Active terms in dictionary order.
        pattern_cache (LRUCache): Compiled alias patterns keyed by alias.
        stats (dict): Cumulative scan statistics.

    Examples:
        >>> from proofscan.dictionary import ProofTerm
        >>> matcher = Matcher([
        ...     ProofTerm("JavaScript", ("Javascript", "javascript")),
        ...     ProofTerm("Java", ("java",)),
        ... ])
        >>> [r.actual for r in matcher.match("Javascript and javascript")]
        ['Javascript', 'javascript']
        >>> [r.actual for r in matcher.match("java and javascript")]
        ['java', 'javascript']
    """

    def __init__(self, terms: Sequence[ProofTerm], cache_size: int = 10000):
        self.terms: Tuple[ProofTerm, ...] = tuple(terms)
        self.pattern_cache = LRUCache(maxsize=cache_size)
        self._lock = threading.Lock()
        self.reset_statistics()

    def _pattern(self, alias: str) -> Optional["re.Pattern[str]"]:
        with self._lock:
            pattern = self.pattern_cache.get(alias)
            if pattern is not None:
                self.stats["cache_hits"] += 1
                return pattern
            self.stats["cache_misses"] += 1

        pattern = compile_alias(alias)
        if pattern is not None:
            with self._lock:
                self.pattern_cache.set(alias, pattern)
        return pattern

    def _candidates(self, text: str) -> List[MatchResult]:
        """Collect candidates in acceptance order: term, alias, then offset."""
        candidates: List[MatchResult] = []
        for term in self.terms:
            for alias in term.aliases:
                if not alias:
                    continue
                pattern = self._pattern(alias)
                if pattern is None:
                    continue
                regex = is_regex_alias(alias)
                for found in pattern.finditer(text):
                    start, end = found.span()
                    # Zero-width matches have nothing to replace
                    if start == end:
                        continue
                    candidates.append(
                        MatchResult(
                            match_start_index=start,
                            match_end_index=end,
                            actual=found.group(0),
                            expected=(
                                expand_expected(term.expected, found)
                                if regex
                                else term.expected
                            ),
                            description=term.description,
                            rule=term.rule_id,
                        )
                    )
        return candidates

    def match(self, text: str) -> List[MatchResult]:
        """Find every reportable alias occurrence in ``text``.

        Args:
            text: Text to scan.

        Returns:
            Non-overlapping match results sorted by start offset. Matches
            whose text already equals the correction are not included.
        """
        if not text or not self.terms:
            with self._lock:
                self.stats["texts_scanned"] += 1
            return []

        candidates = self._candidates(text)
        reportable = [c for c in candidates if c.is_reportable]

        # Accepted spans kept sorted by start; they never overlap each other
        starts: List[int] = []
        accepted: List[MatchResult] = []
        discarded = 0
        for candidate in reportable:
            position = bisect.bisect_right(starts, candidate.match_start_index)
            overlaps_previous = (
                position > 0
                and accepted[position - 1].match_end_index
                > candidate.match_start_index
            )
            overlaps_next = (
                position < len(accepted)
                and accepted[position].match_start_index < candidate.match_end_index
            )
            if overlaps_previous or overlaps_next:
                discarded += 1
                continue
            starts.insert(position, candidate.match_start_index)
            accepted.insert(position, candidate)

        with self._lock:
            self.stats["texts_scanned"] += 1
            self.stats["candidates_found"] += len(candidates)
            self.stats["identity_suppressed"] += len(candidates) - len(reportable)
            self.stats["overlaps_discarded"] += discarded
            self.stats["matches_returned"] += len(accepted)

        return accepted

    async def amatch(self, text: str) -> List[MatchResult]:
        """Run match() on a worker thread."""
        return await asyncio.to_thread(self.match, text)

    def get_statistics(self) -> Dict[str, Any]:
        """Return scan statistics with the pattern cache hit rate.

        Returns:
            Dictionary containing texts_scanned, candidates_found,
            identity_suppressed, overlaps_discarded, matches_returned,
            cache_hits, cache_misses and cache_hit_rate (0.0-1.0).
        """
        with self._lock:
            stats: Dict[str, Any] = dict(self.stats)

        lookups = stats["cache_hits"] + stats["cache_misses"]
        stats["cache_hit_rate"] = stats["cache_hits"] / lookups if lookups else 0.0
        return stats

    def reset_statistics(self) -> None:
        """Reset all statistics to zero. Caches are kept."""
        self.stats = {
            "texts_scanned": 0,
            "candidates_found": 0,
            "identity_suppressed": 0,
            "overlaps_discarded": 0,
            "matches_returned": 0,
            "cache_hits": 0,
            "cache_misses": 0,
        }

    def clear_cache(self) -> None:
        with self._lock:
            self.pattern_cache.clear()


def build_matcher(active_terms: Sequence[ProofTerm]) -> Matcher:
    """Build a matcher for the given active terms, in dictionary order."""
    return Matcher(active_terms)
