# ───────────────────────── tests/test_dictionary.py ─────────────────────────
"""
Tests for dictionary normalization, loading and tag filtering.
"""

import json

import pytest

from proofscan.config import SourceMode
from proofscan.dictionary import (
    ProofTerm,
    load_dictionary,
    load_local_dictionary,
    normalize,
)
from proofscan.tag_filter import select_active


class TestNormalize:
    """Test record normalization."""

    def test_proofdict_record(self):
        """Test the native proofdict layout."""
        terms = normalize(
            [
                {
                    "id": "01BQ92YYQRW6ZGFKFDN9YVKDP8",
                    "expected": "JavaScript",
                    "patterns": ["Javascript", "javascript"],
                    "tags": ["JavaScript", "noun"],
                    "description": "Use the official spelling",
                    "specs": [],
                }
            ]
        )
        assert terms == [
            ProofTerm(
                expected="JavaScript",
                aliases=("Javascript", "javascript"),
                tags=("JavaScript", "noun"),
                description="Use the official spelling",
                rule_id="01BQ92YYQRW6ZGFKFDN9YVKDP8",
            )
        ]

    def test_single_actual(self):
        terms = normalize([{"actual": "teh", "expected": "the", "tags": []}])
        assert terms == [ProofTerm("the", ("teh",))]

    def test_alias_keys_combined_without_duplicates(self):
        terms = normalize(
            [{"expected": "the", "actual": "teh", "aliases": ["hte", "teh"], "patterns": ["eth"]}]
        )
        assert terms[0].aliases == ("eth", "hte", "teh")

    def test_rule_id_keys(self):
        assert normalize([{"expected": "a", "rule": "r1"}])[0].rule_id == "r1"
        assert normalize([{"expected": "a", "ruleId": 7}])[0].rule_id == "7"

    def test_missing_expected_dropped(self):
        """A bad record does not sink the dictionary."""
        terms = normalize(
            [
                {"actual": "x"},
                {"expected": "", "actual": "y"},
                "not a record",
                {"expected": "the", "actual": "teh"},
            ]
        )
        assert [t.expected for t in terms] == ["the"]

    def test_empty_aliases_skipped(self):
        terms = normalize([{"expected": "the", "patterns": ["", "teh", None]}])
        assert terms[0].aliases == ("teh",)

    def test_order_preserved(self):
        records = [{"expected": str(i), "actual": f"a{i}"} for i in range(5)]
        assert [t.expected for t in normalize(records)] == ["0", "1", "2", "3", "4"]

    def test_description_encoding_repaired(self):
        """Mojibake in descriptions is repaired."""
        terms = normalize([{"expected": "the", "actual": "teh", "description": "cafÃ© rule"}])
        assert terms[0].description == "café rule"

    def test_aliases_kept_literal(self):
        """A rule that corrects mojibake keeps its alias as written."""
        terms = normalize([{"expected": "é", "patterns": ["Ã©"]}])
        assert terms[0].aliases == ("Ã©",)
        assert terms[0].expected == "é"

    def test_encoding_repair_can_be_disabled(self):
        terms = normalize(
            [{"expected": "the", "actual": "teh", "description": "cafÃ© rule"}],
            fix_encoding=False,
        )
        assert terms[0].description == "cafÃ© rule"


class TestLoadDictionary:
    """Test dictionary construction from JSON data."""

    def test_list(self):
        dictionary = load_dictionary(
            [{"expected": "the", "actual": "teh"}], last_updated=5, mode=SourceMode.NETWORK
        )
        assert len(dictionary) == 1
        assert dictionary.last_updated == 5
        assert dictionary.mode is SourceMode.NETWORK

    def test_wrapped_rules(self):
        dictionary = load_dictionary({"rules": [{"expected": "the", "actual": "teh"}]})
        assert dictionary.terms[0].expected == "the"

    def test_unsupported_shape(self):
        with pytest.raises(ValueError, match="Unsupported dictionary format"):
            load_dictionary("the => teh")

    def test_empty(self):
        assert len(load_dictionary([])) == 0


class TestLocalDictionary:
    """Test glob-based loading of local dictionary files."""

    def test_files_concatenated_in_path_order(self, tmp_path):
        (tmp_path / "b.json").write_text(
            json.dumps([{"expected": "B", "actual": "b"}]), encoding="utf-8"
        )
        (tmp_path / "a.json").write_text(
            json.dumps({"rules": [{"expected": "A", "actual": "a"}]}), encoding="utf-8"
        )

        dictionary = load_local_dictionary(str(tmp_path / "*.json"))

        assert [t.expected for t in dictionary.terms] == ["A", "B"]
        assert dictionary.mode is SourceMode.LOCAL

    def test_broken_file_skipped(self, tmp_path):
        (tmp_path / "a.json").write_text("[{broken", encoding="utf-8")
        (tmp_path / "b.json").write_text(
            json.dumps([{"expected": "B", "actual": "b"}]), encoding="utf-8"
        )

        dictionary = load_local_dictionary(str(tmp_path / "*.json"))
        assert [t.expected for t in dictionary.terms] == ["B"]

    def test_no_match(self, tmp_path):
        assert load_local_dictionary(str(tmp_path / "missing-*.json")) is None


class TestTagFilter:
    """Test whitelist/blacklist selection."""

    AB = ProofTerm("AB", ("ab",), tags=("a", "b"))
    B = ProofTerm("B", ("b",), tags=("b",))
    UNTAGGED = ProofTerm("U", ("u",))

    def test_whitelist(self):
        active = select_active([self.AB, self.B, self.UNTAGGED], ["a"], [])
        assert active == [self.AB]

    def test_blacklist(self):
        """Untagged terms survive a blacklist."""
        active = select_active([self.AB, self.B, self.UNTAGGED], [], ["a"])
        assert active == [self.B, self.UNTAGGED]

    def test_whitelist_wins(self):
        active = select_active([self.AB, self.B, self.UNTAGGED], ["a"], ["a"])
        assert active == [self.AB]

    def test_no_policy(self):
        terms = [self.AB, self.B, self.UNTAGGED]
        assert select_active(terms, [], []) == terms

    def test_order_preserved(self):
        active = select_active([self.B, self.AB], ["b"], [])
        assert active == [self.B, self.AB]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
