# ───────────────────────── src/proofscan/fetch.py ─────────────────────────
"""
Network retrieval of proofdict dictionaries and rule reference URLs.

A ``dict_url`` is either the base URL of a published proofdict site, from
which the endpoints are derived::

    https://example.github.io/proof-dictionary/
        -> https://example.github.io/proof-dictionary/dictionary.json
        -> https://example.github.io/proof-dictionary/dictionary/<rule id>

or a ``DictURL`` naming the JSON endpoint and the rule page prefix directly.
"""

import logging
from typing import Any, Optional, Union

import httpx

from .config import Config, DictURL

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """The dictionary could not be fetched or parsed."""


def _base(url: str) -> str:
    return url.rstrip("/")


def get_dict_json_url(dict_url: Union[str, DictURL]) -> str:
    """Return the JSON endpoint for a dictionary locator.

    Examples:
        >>> get_dict_json_url("https://example.com/dict/")
        'https://example.com/dict/dictionary.json'
        >>> get_dict_json_url(DictURL("https://api.example.com/d.json", "https://example.com/r/"))
        'https://api.example.com/d.json'
    """
    if isinstance(dict_url, DictURL):
        return dict_url.json_api
    return f"{_base(dict_url)}/dictionary.json"


def get_rule_url(config: Config, rule_id: Optional[str]) -> Optional[str]:
    """Return the human-readable reference URL for a rule, if derivable.

    Returns None without a rule id or without a network dictionary.

    Examples:
        >>> get_rule_url(Config(dict_url="https://example.com/dict"), "abc")
        'https://example.com/dict/dictionary/abc'
        >>> get_rule_url(Config(dict_path="dict/*.json"), "abc") is None
        True
    """
    if not rule_id or not config.dict_url:
        return None
    if isinstance(config.dict_url, DictURL):
        if not config.dict_url.rule_base:
            return None
        return f"{config.dict_url.rule_base}{rule_id}"
    return f"{_base(config.dict_url)}/dictionary/{rule_id}"


async def fetch_proofdict(url: str, timeout: float = 10.0) -> Any:
    """Fetch dictionary JSON.

    Args:
        url: JSON endpoint.
        timeout: Seconds before the request is abandoned.

    Returns:
        The parsed JSON document.

    Raises:
        FetchError: On transport failure, non-2xx status or invalid JSON.
    """
    logger.debug("Fetching dictionary from %s", url)
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            resp = await client.get(url)
            resp.raise_for_status()
            return resp.json()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(f"Failed to fetch {url}: {e}") from e
    except ValueError as e:
        raise FetchError(f"Invalid dictionary JSON from {url}: {e}") from e
