"""Tests for tenant context entities."""

from datetime import datetime, timezone

import pytest

from portal_tenancy.config.constants import IntegrationProfile
from portal_tenancy.features.tenants.entities import (
    AvailableTenantSet,
    CacheEntry,
    PartitionResolution,
    ResolutionTier,
    SwitchOutcome,
    SwitchResult,
    TenantAssignment,
    TenantContext,
    TenantSummary,
    UserIdentityInTenant,
    normalize_email,
    normalize_tenant_id,
)


class TestNormalization:

    def test_normalize_email(self):
        assert normalize_email("  Alice@Example.COM\n") == "alice@example.com"

    @pytest.mark.parametrize("value,expected", [
        ("https://Acme.example.com/", "acme.example.com"),
        ("http://acme.example.com", "acme.example.com"),
        ("acme.example.com", "acme.example.com"),
        (None, ""),
        ("", ""),
    ])
    def test_normalize_tenant_id(self, value, expected):
        assert normalize_tenant_id(value) == expected


class TestAvailableTenantSet:

    def test_membership_ignores_case_and_scheme(self, acme, globex):
        available = AvailableTenantSet([acme, globex])

        assert "https://ACME.example.com/" in available
        assert "umbrella.example.com" not in available
        assert available.find("globex.example.com") == globex

    def test_duplicates_keep_first(self, acme):
        duplicate = TenantSummary(tenant_id="https://acme.example.com", display_name="Other")

        available = AvailableTenantSet([acme, duplicate])

        assert len(available) == 1
        assert available.find("acme.example.com").display_name == "Acme"

    def test_assignment_active_always_available(self, acme, globex):
        assignment = TenantAssignment(active=TenantContext(tenant=acme), available=AvailableTenantSet([globex]))

        assert acme.tenant_id in assignment.available
        assert [t.tenant_id for t in assignment.available] == [globex.tenant_id, acme.tenant_id]


class TestCacheEntry:

    def test_round_trip_keeps_every_field(self, acme, globex, alice_identity):
        switched_at = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)
        prism = TenantSummary(
            tenant_id="prism.example.com",
            partition_name="prism",
            integration_profile=IntegrationProfile.PRISM,
            logo_url="https://cdn.example.com/prism.png",
        )
        entry = CacheEntry(
            active=TenantContext(tenant=acme, last_switched_at=switched_at),
            available=AvailableTenantSet([acme, globex, prism]),
            identity=alice_identity,
        )

        restored = CacheEntry.from_dict(entry.to_dict())

        assert restored == entry
        assert restored.available.find("prism.example.com").integration_profile == IntegrationProfile.PRISM

    def test_from_dict_defaults(self):
        entry = CacheEntry.from_dict({"active": {"tenant_id": "acme.example.com"}})

        assert entry.active.partition_name == ""
        assert entry.active.tenant.tenant_type == "Venue"
        assert entry.active.integration_profile == IntegrationProfile.HELM
        assert entry.identity is None
        assert "acme.example.com" in entry.available

    def test_from_dict_missing_active_raises(self):
        with pytest.raises(KeyError):
            CacheEntry.from_dict({"available": []})


class TestIntegrationProfile:

    @pytest.mark.parametrize("value,expected", [
        ("Prism", IntegrationProfile.PRISM),
        ("prism", IntegrationProfile.PRISM),
        ("Helm", IntegrationProfile.HELM),
        (None, IntegrationProfile.HELM),
        ("unknown", IntegrationProfile.HELM),
    ])
    def test_parse(self, value, expected):
        assert IntegrationProfile.parse(value) == expected


class TestResolutionOutcomes:

    def test_partition_resolution_rejects_empty(self):
        with pytest.raises(ValueError):
            PartitionResolution(partition_name="", tier=ResolutionTier.DEFAULT)

    def test_degraded_tiers(self):
        assert ResolutionTier.HEURISTIC.is_degraded
        assert ResolutionTier.DEFAULT.is_degraded
        assert not ResolutionTier.FROM_CACHE.is_degraded

    def test_discard_client_state_only_after_switch(self, acme):
        context = TenantContext(tenant=acme)

        assert SwitchResult(SwitchOutcome.SWITCHED, context).discard_client_state
        assert not SwitchResult(SwitchOutcome.ALREADY_ACTIVE, context).discard_client_state

    def test_identity_from_dict_stringifies_user_id(self):
        identity = UserIdentityInTenant.from_dict({"user_id": 42})

        assert identity.user_id == "42"
