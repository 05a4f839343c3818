"""Tests for partition name derivation."""

import pytest

from portal_tenancy.database.connection import PARTITION_NAME_PATTERN
from portal_tenancy.features.tenants.services import derive_partition_name


class TestDerivePartitionName:

    @pytest.mark.parametrize("identifier,expected", [
        ("acme.example.com", "acme"),
        ("https://acme.example.com/", "acme"),
        ("HTTP://Acme.Example.com/jobs?x=1", "acme"),
        ("acme.example.com:8443", "acme"),
        ("user:secret@acme.example.com", "acme"),
        ("globex-inc.example.com", "globex_inc"),
        ("123staffing.example.com", "t_123staffing"),
        ("localhost", "localhost"),
    ])
    def test_first_label(self, identifier, expected):
        assert derive_partition_name(identifier) == expected

    @pytest.mark.parametrize("identifier", [
        "jobs.stadiumpeople.com",
        "https://jobs.stadiumpeople.com",
        "https://JOBS.stadiumpeople.com/login",
    ])
    def test_legacy_identifier_maps_to_legacy_partition(self, identifier):
        """The legacy job board does not map to its literal prefix ``jobs``."""
        assert derive_partition_name(identifier) == "stadiumpeople"

    def test_legacy_mapping_is_configurable(self):
        result = derive_partition_name(
            "portal.legacy.example",
            default_partition="fallback",
            legacy_identifier="portal.legacy.example",
            legacy_partition="legacy_main",
        )

        assert result == "legacy_main"

    @pytest.mark.parametrize("identifier", [None, "", "   ", "---", "https://", "@@@"])
    def test_unusable_identifier_yields_default(self, identifier):
        assert derive_partition_name(identifier, default_partition="fallback") == "fallback"

    def test_deterministic(self):
        results = {derive_partition_name("initech.example.com") for _ in range(20)}

        assert results == {"initech"}

    @pytest.mark.parametrize("identifier", [
        "acme.example.com",
        "Ünïcode-Tenant.example.com",
        "9" * 80 + ".example.com",
        "a" * 100,
    ])
    def test_result_is_valid_partition_name(self, identifier):
        assert PARTITION_NAME_PATTERN.match(derive_partition_name(identifier))
