# ───────────────────────── tests/test_fetch.py ─────────────────────────
"""
Tests for dictionary retrieval and rule URL derivation.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from proofscan.config import Config, DictURL
from proofscan.fetch import FetchError, fetch_proofdict, get_dict_json_url, get_rule_url


def _mock_client(get):
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    mock_client.get = get
    return mock_client


class TestURLs:
    """Test endpoint derivation."""

    def test_json_url_from_base(self):
        assert get_dict_json_url("https://example.com/dict") == "https://example.com/dict/dictionary.json"
        assert get_dict_json_url("https://example.com/dict/") == "https://example.com/dict/dictionary.json"

    def test_json_url_explicit(self):
        dict_url = DictURL(json_api="https://api.example.com/d.json", rule_base="https://example.com/r/")
        assert get_dict_json_url(dict_url) == "https://api.example.com/d.json"

    def test_rule_url_from_base(self):
        config = Config(dict_url="https://example.com/dict/")
        assert get_rule_url(config, "r1") == "https://example.com/dict/dictionary/r1"

    def test_rule_url_explicit(self):
        config = Config(dict_url=DictURL("https://api.example.com/d.json", "https://example.com/r/"))
        assert get_rule_url(config, "r1") == "https://example.com/r/r1"

    def test_rule_url_not_derivable(self):
        assert get_rule_url(Config(dict_url="https://example.com/"), None) is None
        assert get_rule_url(Config(proofdict=[]), "r1") is None
        assert get_rule_url(Config(dict_url=DictURL("https://api.example.com/d.json")), "r1") is None


class TestFetchProofdict:
    """Test the HTTP fetch."""

    @pytest.mark.asyncio
    async def test_success(self):
        mock_response = MagicMock()
        mock_response.json.return_value = [{"expected": "the", "patterns": ["teh"]}]

        with patch("proofscan.fetch.httpx.AsyncClient") as mock_client_cls:
            mock_client = _mock_client(AsyncMock(return_value=mock_response))
            mock_client_cls.return_value = mock_client

            data = await fetch_proofdict("https://example.com/dictionary.json", timeout=3.0)

        assert data == [{"expected": "the", "patterns": ["teh"]}]
        mock_client.get.assert_awaited_once_with("https://example.com/dictionary.json")
        assert mock_client_cls.call_args.kwargs["timeout"] == 3.0

    @pytest.mark.asyncio
    async def test_transport_error(self):
        with patch("proofscan.fetch.httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client(
                AsyncMock(side_effect=httpx.ConnectError("refused"))
            )

            with pytest.raises(FetchError, match="Failed to fetch"):
                await fetch_proofdict("https://example.com/dictionary.json")

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        mock_response = MagicMock()
        mock_response.json.side_effect = ValueError("Expecting value")

        with patch("proofscan.fetch.httpx.AsyncClient") as mock_client_cls:
            mock_client_cls.return_value = _mock_client(AsyncMock(return_value=mock_response))

            with pytest.raises(FetchError, match="Invalid dictionary JSON"):
                await fetch_proofdict("https://example.com/dictionary.json")

    @pytest.mark.asyncio
    async def test_malformed_url(self):
        with pytest.raises(FetchError, match="Failed to fetch"):
            await fetch_proofdict("http://[::1/dictionary.json")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
