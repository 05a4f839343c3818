"""Deterministic partition name derivation.

Used when neither the cache nor the authoritative store has an explicit
partition name for a tenant. Pure function of its inputs.
"""

import re
from typing import Optional

from ....config.constants import LEGACY_TENANT_IDENTIFIER, PartitionNames

_SCHEME_PATTERN = re.compile(r'^[a-z][a-z0-9+.-]*://')
_SEPARATOR_PATTERN = re.compile(r'[./:]')
_INVALID_CHARS_PATTERN = re.compile(r'[^a-z0-9_]+')


def _host_of(identifier: str) -> str:
    """Lowercased host part of a tenant url (scheme, credentials, port and path removed)."""
    value = identifier.strip().lower()
    value = _SCHEME_PATTERN.sub("", value)
    value = value.split("/", 1)[0]
    value = value.rsplit("@", 1)[-1]
    return value.split(":", 1)[0]


def derive_partition_name(
    tenant_identifier: Optional[str],
    default_partition: str = PartitionNames.LEGACY_DEFAULT,
    legacy_identifier: str = LEGACY_TENANT_IDENTIFIER,
    legacy_partition: str = PartitionNames.LEGACY_DEFAULT,
) -> str:
    """Derive a partition name from a tenant's public identifier.

    ``acme.example.com`` -> ``acme``; the legacy job board identifier maps to
    ``legacy_partition``; a missing or unusable identifier yields
    ``default_partition``. Never returns an empty string.
    """
    if not tenant_identifier or not tenant_identifier.strip():
        return default_partition

    host = _host_of(tenant_identifier)
    if not host:
        return default_partition
    if host == _host_of(legacy_identifier):
        return legacy_partition

    label = _SEPARATOR_PATTERN.split(host, 1)[0]
    label = _INVALID_CHARS_PATTERN.sub("_", label).strip("_")
    if not label:
        return default_partition
    if label[0].isdigit():
        label = f"t_{label}"
    return label[:63]
