# ───────────────────────── src/proofscan/scanner.py ─────────────────────────
"""
Scan orchestration: dictionary refresh, text collection, matching, reports.

A scan runs in two phases over a document node tree:

1. **collect(document)**: gather every ``Str`` node that is not nested in a
   block quote, link, image or emphasis.
2. **resolve_and_match(units)**: resolve the dictionary once (inline option,
   then network cache, then local files), apply the tag filter, match every
   unit concurrently and turn reportable matches into diagnostics.

``scan(document)`` wraps both and, in NETWORK mode, refreshes an expired
cached dictionary while the document is being collected. A failed refresh
only logs a warning; the scan goes on with whatever dictionary is cached.

Workflow:
    >>> config = Config(proofdict=[{"expected": "the", "patterns": ["teh"]}])
    >>> [d.message for d in lint_text("teh cat", config)]
    ['teh => the']
    >>> fix_text("teh cat", config)
    'the cat'
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

import httpx

from .config import Config, SourceMode
from .dictionary import Dictionary, ProofTerm, load_dictionary, load_local_dictionary
from .document import Node, NodeType, parse_markdown, parse_text
from .fetch import FetchError, fetch_proofdict, get_dict_json_url, get_rule_url
from .freshness import is_expired, now_ms
from .logging_utils import log_error
from .matcher import LRUCache, Matcher, MatchResult, build_matcher
from .storage import DictionaryCache, FileStorage, Storage, default_storage
from .tag_filter import select_active

logger = logging.getLogger(__name__)

EXCLUDED_CONTEXTS = (
    NodeType.LINK,
    NodeType.IMAGE,
    NodeType.BLOCK_QUOTE,
    NodeType.EMPHASIS,
)

MISSING_SOURCE_MESSAGE = (
    "Not found dictionary setting.\n"
    "Please set dict_url, dict_path or proofdict in the configuration."
)

Fetcher = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class TextUnit:
    """A text-bearing node selected for matching."""

    node: Node

    @property
    def text(self) -> str:
        return self.node.value

    @property
    def offset(self) -> int:
        return self.node.start


@dataclass(frozen=True)
class Fix:
    """Replace ``range`` (relative to the reported node) with ``text``."""

    range: Tuple[int, int]
    text: str
    node_offset: int = 0

    @property
    def absolute_range(self) -> Tuple[int, int]:
        return (self.node_offset + self.range[0], self.node_offset + self.range[1])


@dataclass(frozen=True)
class Diagnostic:
    """One report against a document node.

    Attributes:
        node: The node the report is attached to.
        message: Human-readable message.
        index: Offset of the report inside the node text.
        fix: Suggested replacement, if any.
        match: The match that produced the report, if any.
    """

    node: Node
    message: str
    index: int = 0
    fix: Optional[Fix] = None
    match: Optional[MatchResult] = None

    @property
    def offset(self) -> int:
        """Offset of the report in the document source."""
        return self.node.start + self.index


def format_message(result: MatchResult, url: Optional[str] = None) -> str:
    """Build ``"<actual> => <expected>"`` plus description and reference URL."""
    message = f"{result.actual} => {result.expected}"
    if result.description:
        message += f"\n{result.description}"
    if url:
        message += f"\nSee {url}"
    return message


class ProofdictScanner:
    """Scans documents against a proofdict dictionary.

    Attributes:
        config (Config): Scan configuration.
        cache (DictionaryCache): Persisted network dictionary.
        fetcher: Coroutine function ``fetcher(url, timeout=...)`` returning
            dictionary JSON.

    Examples:
        >>> scanner = ProofdictScanner(Config(proofdict=[{"expected": "the", "actual": "teh"}]))
        >>> diagnostics = asyncio.run(scanner.scan(parse_markdown("teh cat")))
        >>> diagnostics[0].fix
        Fix(range=(0, 3), text='the', node_offset=0)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        storage: Optional[Storage] = None,
        fetcher: Optional[Fetcher] = None,
    ):
        self.config = config or Config()
        if storage is None:
            storage = (
                FileStorage(self.config.storage_path)
                if self.config.storage_path
                else default_storage()
            )
        self.cache = DictionaryCache(storage, self.config.fix_dictionary_encoding)
        self.fetcher = fetcher or fetch_proofdict
        self._matchers = LRUCache(maxsize=self.config.matcher_cache_size)

    async def refresh(self) -> bool:
        """Refetch the network dictionary if the cached copy is stale.

        Never runs in LOCAL mode or when an inline dictionary is configured.
        A failed fetch or cache write leaves the scan running on the old cache.

        Returns:
            True if a fresh dictionary was stored.
        """
        if self.config.proofdict is not None or self.config.mode is not SourceMode.NETWORK:
            return False
        if not is_expired(
            self.cache.last_updated(), self.config.auto_update_interval, now_ms()
        ):
            return False

        url = get_dict_json_url(self.config.dict_url)
        try:
            data = await self.fetcher(url, timeout=self.config.fetch_timeout)
            # Refuse to cache something that is not a dictionary
            load_dictionary(data, fix_encoding=False)
        except (FetchError, httpx.HTTPError, httpx.InvalidURL, ValueError, TypeError) as e:
            logger.warning("Dictionary refresh failed: %s", e)
            return False

        try:
            self.cache.write(data, now=now_ms())
        except OSError as e:
            log_error("Failed to store refreshed dictionary", e, self.config)
            return False
        logger.info("Dictionary refreshed from %s", url)
        return True

    def collect(self, document: Node) -> List[TextUnit]:
        """Return the text units of ``document`` eligible for matching."""
        return [
            TextUnit(node)
            for node in document.walk()
            if node.type is NodeType.STR and not node.is_child_of(EXCLUDED_CONTEXTS)
        ]

    def resolve_dictionary(self) -> Optional[Dictionary]:
        """Resolve the dictionary for one scan.

        Order: inline ``proofdict``, cached network dictionary, local
        ``dict_path`` files.

        Returns:
            The dictionary, or None if none is available.
        """
        if self.config.proofdict is not None:
            try:
                return load_dictionary(
                    self.config.proofdict,
                    mode=self.config.mode,
                    fix_encoding=self.config.fix_dictionary_encoding,
                )
            except ValueError as e:
                log_error("Invalid inline proofdict", e, self.config)
                return None

        if self.config.dict_url:
            dictionary = self.cache.read_dictionary()
            if dictionary is not None:
                return dictionary

        if self.config.dict_path:
            return load_local_dictionary(
                self.config.dict_path, self.config.fix_dictionary_encoding
            )

        return None

    def matcher_for(self, terms: Sequence[ProofTerm]) -> Matcher:
        """Return a matcher for ``terms``, reusing one built earlier."""
        key = tuple(terms)
        matcher = self._matchers.get(key)
        if matcher is None:
            matcher = build_matcher(key)
            self._matchers.set(key, matcher)
        return matcher

    def _report(self, unit: TextUnit, result: MatchResult) -> Diagnostic:
        url = get_rule_url(self.config, result.rule)
        return Diagnostic(
            node=unit.node,
            message=format_message(result, url),
            index=result.match_start_index,
            fix=Fix(
                range=(result.match_start_index, result.match_end_index),
                text=result.expected,
                node_offset=unit.offset,
            ),
            match=result,
        )

    async def resolve_and_match(self, units: Sequence[TextUnit]) -> List[Diagnostic]:
        """Match every unit against the active dictionary terms.

        The dictionary is resolved once, so a refresh finishing mid-scan does
        not change this scan's results.

        Args:
            units: Text units from collect().

        Returns:
            Diagnostics ordered by document offset.
        """
        dictionary = self.resolve_dictionary()
        if dictionary is None or not units:
            return []

        active = select_active(
            dictionary.terms, self.config.whitelist_tags, self.config.blacklist_tags
        )
        matcher = self.matcher_for(active)
        results = await asyncio.gather(*(matcher.amatch(unit.text) for unit in units))

        diagnostics = [
            self._report(unit, result)
            for unit, matches in zip(units, results)
            for result in matches
            if result.is_reportable
        ]
        diagnostics.sort(key=lambda d: d.offset)
        return diagnostics

    async def scan(self, document: Node) -> List[Diagnostic]:
        """Run a full scan of ``document``.

        Returns:
            Diagnostics ordered by document offset. Without any dictionary
            source configured, a single diagnostic on the document node.
        """
        if not self.config.has_dictionary_source:
            return [Diagnostic(node=document, message=MISSING_SOURCE_MESSAGE)]

        refresh = asyncio.create_task(self.refresh())
        units = self.collect(document)
        await refresh
        return await self.resolve_and_match(units)


def apply_fixes(source: str, diagnostics: Sequence[Diagnostic]) -> str:
    """Apply the suggested fixes of ``diagnostics`` to ``source``.

    Fixes are applied from the end of the document backwards. A fix that
    overlaps one already applied is skipped.
    """
    fixes = sorted(
        (d.fix for d in diagnostics if d.fix is not None),
        key=lambda fix: fix.absolute_range,
        reverse=True,
    )
    result = source
    limit = len(source)
    for fix in fixes:
        start, end = fix.absolute_range
        if end > limit:
            continue
        result = result[:start] + fix.text + result[end:]
        limit = start
    return result


def _parse(text: str, syntax: str) -> Node:
    if syntax == "markdown":
        return parse_markdown(text)
    if syntax == "text":
        return parse_text(text)
    raise ValueError(f"syntax must be 'markdown' or 'text', got '{syntax}'")


def lint_text(
    text: str,
    config: Optional[Config] = None,
    storage: Optional[Storage] = None,
    syntax: str = "markdown",
) -> List[Diagnostic]:
    """Scan ``text`` synchronously and return its diagnostics.

    Raises:
        ValueError: If syntax is not "markdown" or "text".
    """
    document = _parse(text, syntax)
    return asyncio.run(ProofdictScanner(config, storage).scan(document))


def fix_text(
    text: str,
    config: Optional[Config] = None,
    storage: Optional[Storage] = None,
    syntax: str = "markdown",
) -> str:
    """Return ``text`` with every suggested fix applied."""
    return apply_fixes(text, lint_text(text, config, storage, syntax))
