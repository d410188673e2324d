"""
Tests for dev_eui normalization.
"""

import pytest

from ith_monitor.services.eui import normalize_eui, placeholder_name


class TestNormalizeEui:
    """Tests for normalize_eui."""

    def test_colon_separated_lowercase(self):
        """Test that separators are stripped and hex is uppercased."""
        assert normalize_eui("70:b3:d5:7e:d0:03:ab:cd") == "70B3D57ED003ABCD"

    @pytest.mark.parametrize("raw", [
        "70-B3-D5-7E-D0-03-AB-CD",
        " 70b3d57ed003abcd ",
        "70 b3 d5 7e d0 03 ab cd",
    ])
    def test_other_separator_styles(self, raw):
        """Test that dashes, spaces and padding all reduce to the same EUI."""
        assert normalize_eui(raw) == "70B3D57ED003ABCD"

    @pytest.mark.parametrize("raw", [
        "70:b3:d5:7e:d0:03:ab:cd",
        "AABBCCDDEEFF0011",
        "eui-70b3d57ed003abcd",
        "zz",
        "",
        None,
    ])
    def test_idempotent(self, raw):
        """Test that normalizing twice equals normalizing once."""
        once = normalize_eui(raw)
        assert normalize_eui(once) == once

    @pytest.mark.parametrize("raw", [None, "", "   ", "::--", "xyz"])
    def test_empty_results_are_none(self, raw):
        """Test that absent or non-hex input yields None."""
        assert normalize_eui(raw) is None

    def test_length_not_validated(self):
        """Test that short hex values are accepted as-is."""
        assert normalize_eui("ab:cd") == "ABCD"


class TestPlaceholderName:
    """Tests for placeholder sensor names."""

    def test_deterministic(self):
        """Test that the same EUI always yields the same name."""
        assert placeholder_name("70B3D57ED003ABCD") == placeholder_name("70B3D57ED003ABCD")
        assert "70B3D57ED003ABCD" in placeholder_name("70B3D57ED003ABCD")
