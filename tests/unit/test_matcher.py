"""Unit tests for modmeta.matcher."""

from __future__ import annotations

import pytest

from modmeta.matcher import normalize_tokens, similar


class TestNormalizeTokens:
    def test_lowercases_and_splits_punctuation(self) -> None:
        assert normalize_tokens("Sodium-Extra") == {"sodium", "extra"}

    def test_drops_stop_words(self) -> None:
        assert normalize_tokens("Fabric API Mod Remastered") == set()

    def test_drops_short_tokens(self) -> None:
        assert normalize_tokens("Xaero's World Map") == {"xaero", "world", "map"}
        assert normalize_tokens("EMI 2") == {"emi"}


class TestSimilar:
    def test_abbreviation_does_not_match_full_name(self) -> None:
        assert similar("JEI", "Just Enough Items") is False

    def test_slug_with_platform_suffix(self) -> None:
        assert similar("Sodium Extra", "sodium-extra-fabric") is True

    def test_concatenated_name_matches_spaced_title(self) -> None:
        assert similar("JustEnoughItems", "Just Enough Items (JEI)") is True

    def test_plural_forms(self) -> None:
        assert similar("Iron Chest", "Iron Chests") is True

    def test_unrelated_names(self) -> None:
        assert similar("Lithium", "Create") is False

    def test_partial_overlap_above_ratio(self) -> None:
        # 3 of 4 tokens cross-match: 0.75 >= 0.6
        assert similar("Better Nether Biomes Reborn", "Better Nether Biomes Overhaul") is True

    def test_partial_overlap_below_ratio(self) -> None:
        # 1 of 3 tokens cross-match
        assert similar("Better Combat Extended", "Better Farming Tools") is False

    def test_custom_ratio(self) -> None:
        assert similar("Better Combat Extended", "Better Farming Tools", min_ratio=0.3) is True

    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("Fabric API", "fabric-api", True),
            ("Forge Mod", "forgemodloader", True),
            ("API", "Lithium", False),
            ("", "Lithium", False),
        ],
    )
    def test_empty_token_sets_fall_back_to_substring(self, a: str, b: str, expected: bool) -> None:
        assert similar(a, b) is expected

    def test_symmetric_for_common_cases(self) -> None:
        assert similar("sodium-extra-fabric", "Sodium Extra") is True
        assert similar("Just Enough Items", "JEI") is False
