# ───────────────────────── src/proofscan/__init__.py ─────────────────────────
"""
proofscan: Find dictionary-listed term mistakes in text and propose corrections.

Scans markdown or plain text against a proofdict dictionary of
"incorrect => correct" rules, fetched from a published dictionary site,
loaded from local JSON files, or passed inline, and reports every match
with a suggested fix. Quoted, linked and emphasized text is left alone.
"""

__version__ = "1.0.0"
__author__ = "proofscan Team"

from .config import Config, DictURL, SourceMode
from .dictionary import Dictionary, ProofTerm, load_dictionary, normalize
from .freshness import is_expired
from .matcher import Matcher, MatchResult, build_matcher
from .scanner import (
    Diagnostic,
    Fix,
    ProofdictScanner,
    apply_fixes,
    fix_text,
    lint_text,
)
from .storage import FileStorage, MemoryStorage
from .tag_filter import select_active

# Public API exports
__all__ = [
    "Config",
    "DictURL",
    "SourceMode",
    "Dictionary",
    "ProofTerm",
    "load_dictionary",
    "normalize",
    "select_active",
    "is_expired",
    "Matcher",
    "MatchResult",
    "build_matcher",
    "ProofdictScanner",
    "Diagnostic",
    "Fix",
    "apply_fixes",
    "lint_text",
    "fix_text",
    "MemoryStorage",
    "FileStorage",
    "__version__",
]
