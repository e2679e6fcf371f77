# ───────────────────────── src/proofscan/config.py ─────────────────────────
"""
Configuration management for proofscan.

This module provides the configuration struct consumed by the scanner. Options
mirror the proofdict rule options (``dictURL``, ``dictPath``,
``autoUpdateInterval``, ``whitelistTags``, ``blacklistTags``, ``proofdict``) and
add the logging, cache and network settings the package needs to run on its own.

Key Components:
    - SourceMode: Where the dictionary comes from (NETWORK or LOCAL)
    - DictURL: Explicit JSON endpoint and rule reference base
    - Config: Main configuration class with defaults applied at construction

Dictionary Source Guide:
    1. **Network dictionary** (``dict_url``):
       - A base URL such as ``https://example.github.io/proof-dictionary/``
         from which ``dictionary.json`` and rule pages are derived
       - Or a ``DictURL(json_api=..., rule_base=...)`` for custom layouts
       - Refetched every ``auto_update_interval`` milliseconds

    2. **Local dictionary** (``dict_path``):
       - Glob of JSON files holding proofdict rules
       - Read on every scan, no caching

    3. **Inline dictionary** (``proofdict``):
       - A list of rules passed directly, bypassing fetch and cache
       - Intended for deterministic tests and embedding

Examples:
    Use a published dictionary and only the "JavaScript" tagged rules:
    >>> config = Config(
    ...     dict_url="https://example.github.io/proof-dictionary/",
    ...     whitelist_tags=["JavaScript"],
    ... )
    >>> config.mode
    <SourceMode.NETWORK: 'NETWORK'>

    Build from textlintrc-style options:
    >>> config = Config.from_options({"dictURL": "https://example.com/", "autoUpdateInterval": 0})
    >>> config.auto_update_interval
    0
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class SourceMode(Enum):
    """Where the active dictionary is resolved from."""

    LOCAL = "LOCAL"
    NETWORK = "NETWORK"


@dataclass(frozen=True)
class DictURL:
    """Explicit dictionary endpoints.

    Attributes:
        json_api: URL returning the dictionary JSON.
        rule_base: Prefix joined with a rule id to build its reference URL.
    """

    json_api: str
    rule_base: str = ""


@dataclass
class Config:
    """Configuration settings for a proofdict scan.

    Attributes:
        dict_url: Base URL of a proofdict site, or a DictURL (default: None).
        dict_path: Glob of local dictionary JSON files (default: None).
        auto_update_interval: Milliseconds before the cached network
            dictionary is considered stale (default: 60000).
        whitelist_tags: Only terms carrying one of these tags are active.
        blacklist_tags: Terms carrying one of these tags are inactive.
            Ignored when whitelist_tags is non-empty.
        proofdict: Inline dictionary records; bypasses fetch and cache.
        fetch_timeout: Seconds before a dictionary fetch is abandoned.
        storage_path: JSON file used as the persisted cache. When None the
            process-wide in-memory storage is used.
        fix_dictionary_encoding: Repair mojibake in rule descriptions with ftfy.
        matcher_cache_size: Number of built matchers kept for reuse.
        log_file: Path to the log file (default: "proofscan.log").
        log_level: Logging level name for the package logger.
        max_log_size: Maximum log file size in bytes (default: 10MB).
        log_backup_count: Number of backup log files to keep (default: 3).

    Examples:
        >>> config = Config(proofdict=[{"expected": "the", "patterns": ["teh"]}])
        >>> config.has_dictionary_source
        True
        >>> Config().has_dictionary_source
        False
    """

    # Dictionary sources
    dict_url: Optional[Union[str, DictURL]] = None
    dict_path: Optional[str] = None
    proofdict: Optional[Any] = None

    # Refresh policy
    auto_update_interval: int = 60 * 1000  # 60sec
    fetch_timeout: float = 10.0

    # Tag settings; whitelist is preferred when both are set
    whitelist_tags: List[str] = field(default_factory=list)
    blacklist_tags: List[str] = field(default_factory=list)

    # Cache configuration
    storage_path: Optional[str] = None
    matcher_cache_size: int = 32

    fix_dictionary_encoding: bool = True

    # Logging configuration
    log_file: str = "proofscan.log"
    log_level: str = "WARNING"
    max_log_size: int = 10 * 1024 * 1024  # 10MB
    log_backup_count: int = 3

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ValueError: If any configuration values are invalid.
        """
        if isinstance(self.dict_url, str) and not self.dict_url.strip():
            raise ValueError("dict_url cannot be empty")
        if isinstance(self.dict_url, DictURL) and not self.dict_url.json_api:
            raise ValueError("dict_url.json_api cannot be empty")

        if self.auto_update_interval < 0:
            raise ValueError("auto_update_interval cannot be negative")
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if self.matcher_cache_size < 1:
            raise ValueError("matcher_cache_size must be at least 1")

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise ValueError(
                f"log_level must be one of {valid_levels}, got '{self.log_level}'"
            )

        self.whitelist_tags = list(self.whitelist_tags)
        self.blacklist_tags = list(self.blacklist_tags)

    @property
    def mode(self) -> SourceMode:
        """NETWORK when a dictionary URL is configured, LOCAL otherwise."""
        return SourceMode.NETWORK if self.dict_url else SourceMode.LOCAL

    @property
    def has_dictionary_source(self) -> bool:
        return bool(self.dict_url or self.dict_path or self.proofdict is not None)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "Config":
        """Build a Config from proofdict rule options.

        Accepts the camelCase option names used in ``.textlintrc`` as well as
        the snake_case field names. Tag options that are not lists fall back
        to the empty default.

        Args:
            options: Mapping of option names to values.

        Returns:
            A validated Config.

        Raises:
            ValueError: If an option value is invalid.
        """
        aliases = {
            "dictURL": "dict_url",
            "dictPath": "dict_path",
            "autoUpdateInterval": "auto_update_interval",
            "whitelistTags": "whitelist_tags",
            "blacklistTags": "blacklist_tags",
        }
        known = set(cls.__dataclass_fields__)
        kwargs: Dict[str, Any] = {}
        for key, value in options.items():
            name = aliases.get(key, key)
            if name in known and value is not None:
                kwargs[name] = value

        dict_url = kwargs.get("dict_url")
        if isinstance(dict_url, Mapping):
            kwargs["dict_url"] = DictURL(
                json_api=dict_url.get("jsonAPI") or dict_url.get("json_api", ""),
                rule_base=dict_url.get("ruleBase") or dict_url.get("rule_base", ""),
            )

        for name in ("whitelist_tags", "blacklist_tags"):
            if name in kwargs and not isinstance(kwargs[name], (list, tuple)):
                del kwargs[name]

        return cls(**kwargs)
