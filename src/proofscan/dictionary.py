# ───────────────────────── src/proofscan/dictionary.py ─────────────────────────
"""Proofdict dictionary model.

This module turns raw dictionary records into ordered ``ProofTerm`` rules.
The record layout follows the proofdict JSON format, where each rule looks
like::

    {
        "id": "01BQ92YYQRW6ZGFKFDN9YVKDP8",
        "expected": "JavaScript",
        "patterns": ["Javascript", "javascript", "/java[ -]?script/i"],
        "tags": ["JavaScript", "noun"],
        "description": "Use the official spelling"
    }

Aliases may also be given as ``actual`` (a string or list) or ``aliases``,
and the rule id as ``rule`` or ``ruleId``.

Alias Kinds:
    - Literal aliases match exactly and case-sensitively.
    - Aliases written as ``/pattern/flags`` are regular expressions. Group
      references such as ``$1`` in ``expected`` are expanded per match.

Ordering:
    Input order is preserved. It later decides which term wins when two
    candidates overlap in the scanned text.

Examples:
    >>> terms = normalize([{"expected": "the", "actual": "teh"}, {"actual": "x"}])
    >>> [(t.expected, t.aliases) for t in terms]
    [('the', ('teh',))]
"""

import glob
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import ftfy

from .config import SourceMode
from .logging_utils import log_error

logger = logging.getLogger(__name__)

# "/pattern/flags" as written in proofdict rules
REGEX_ALIAS = re.compile(r"^/(?P<body>.+)/(?P<flags>[gimsuy]*)$", re.DOTALL)

_REGEX_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,  # str patterns are unicode already
    "g": 0,  # every occurrence is matched anyway
    "y": 0,
}

ALIAS_KEYS = ("patterns", "aliases", "actual")
RULE_ID_KEYS = ("id", "rule", "ruleId")


@dataclass(frozen=True)
class ProofTerm:
    """One dictionary rule mapping incorrect aliases to one correct form.

    Attributes:
        expected: The correct form.
        aliases: Incorrect variants, in dictionary order.
        tags: Labels used by the tag filter.
        description: Optional explanation shown with each report.
        rule_id: Optional identifier used to build a reference URL.
    """

    expected: str
    aliases: Tuple[str, ...] = ()
    tags: Tuple[str, ...] = ()
    description: Optional[str] = None
    rule_id: Optional[str] = None


@dataclass
class Dictionary:
    """Ordered proof terms plus freshness metadata."""

    terms: List[ProofTerm] = field(default_factory=list)
    last_updated: int = 0
    mode: SourceMode = SourceMode.LOCAL

    def __len__(self) -> int:
        return len(self.terms)


def compile_alias(alias: str) -> Optional["re.Pattern[str]"]:
    """Compile an alias into a search pattern.

    Args:
        alias: Literal alias or ``/pattern/flags`` regex alias.

    Returns:
        Compiled pattern, or None if the regex alias is invalid.
    """
    regex = REGEX_ALIAS.match(alias)
    if regex is None:
        return re.compile(re.escape(alias))

    flags = 0
    for flag in regex.group("flags"):
        flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(regex.group("body"), flags)
    except re.error as e:
        logger.warning("Skipping invalid pattern %r: %s", alias, e)
        return None


def is_regex_alias(alias: str) -> bool:
    return REGEX_ALIAS.match(alias) is not None


def _fix(text: str, fix_encoding: bool) -> str:
    return ftfy.fix_encoding(text) if fix_encoding else text


def _as_strings(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Iterable) and not isinstance(value, Mapping):
        return [item for item in value if isinstance(item, str)]
    return []


def _first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def normalize(
    raw_records: Iterable[Any], fix_encoding: bool = True
) -> List[ProofTerm]:
    """Normalize raw dictionary records into proof terms.

    Records without a usable ``expected`` value are dropped; the rest of the
    dictionary is kept. Empty aliases are skipped and duplicate aliases within
    one record collapse to their first occurrence.

    Args:
        raw_records: Ordered records (mappings) from a proofdict JSON file.
        fix_encoding: Repair mojibake in descriptions with ftfy. Aliases and
            corrections are matched literally and never rewritten.

    Returns:
        Proof terms in input order.

    Raises:
        TypeError: If raw_records is not iterable.
    """
    terms: List[ProofTerm] = []
    for position, record in enumerate(raw_records):
        if not isinstance(record, Mapping):
            logger.debug("Dropping record %d: not a mapping", position)
            continue

        expected = record.get("expected")
        if not isinstance(expected, str) or not expected:
            logger.debug("Dropping record %d: missing expected", position)
            continue

        aliases: List[str] = []
        for key in ALIAS_KEYS:
            for alias in _as_strings(record.get(key)):
                if alias and alias not in aliases:
                    aliases.append(alias)

        description = record.get("description")
        rule_id = _first_present(record, RULE_ID_KEYS)

        terms.append(
            ProofTerm(
                expected=expected,
                aliases=tuple(aliases),
                tags=tuple(_as_strings(record.get("tags"))),
                description=(
                    _fix(description, fix_encoding)
                    if isinstance(description, str) and description
                    else None
                ),
                rule_id=str(rule_id) if rule_id is not None else None,
            )
        )
    return terms


def extract_records(data: Any) -> List[Any]:
    """Pull the rule list out of parsed dictionary JSON.

    Raises:
        ValueError: If the data has no recognizable rule list.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, Mapping):
        for key in ("rules", "dictionary"):
            if isinstance(data.get(key), list):
                return data[key]
    raise ValueError(f"Unsupported dictionary format: {type(data).__name__}")


def load_dictionary(
    data: Any,
    last_updated: int = 0,
    mode: SourceMode = SourceMode.LOCAL,
    fix_encoding: bool = True,
) -> Dictionary:
    """Build a Dictionary from parsed JSON data.

    Args:
        data: A list of rule records, or a mapping holding one under
            ``"rules"`` or ``"dictionary"``.
        last_updated: Epoch milliseconds of the fetch that produced data.
        mode: Source the data came from.
        fix_encoding: Repair mojibake in descriptions with ftfy.

    Returns:
        The normalized dictionary.

    Raises:
        ValueError: If data is not a supported dictionary shape.
    """
    records = extract_records(data)
    return Dictionary(
        terms=normalize(records, fix_encoding=fix_encoding),
        last_updated=last_updated,
        mode=mode,
    )


def load_local_dictionary(
    pattern: str, fix_encoding: bool = True
) -> Optional[Dictionary]:
    """Load and concatenate every dictionary file matching a glob.

    Files are read in sorted path order so the term order is stable between
    runs. Files that cannot be read or parsed are logged and skipped.

    Args:
        pattern: Glob such as ``"dict/**/*.json"``.
        fix_encoding: Repair mojibake in descriptions with ftfy.

    Returns:
        The combined dictionary, or None when no file could be loaded.
    """
    paths = sorted(Path(p) for p in glob.glob(pattern, recursive=True))
    records: List[Any] = []
    loaded = 0
    for path in paths:
        if not path.is_file():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                records.extend(extract_records(json.load(f)))
            loaded += 1
        except (OSError, ValueError) as e:
            log_error(f"Failed to load dictionary file {path}", e)

    if not loaded:
        logger.warning("No dictionary files loaded from %s", pattern)
        return None

    return Dictionary(
        terms=normalize(records, fix_encoding=fix_encoding),
        last_updated=0,
        mode=SourceMode.LOCAL,
    )
