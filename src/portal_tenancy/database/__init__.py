"""Database utilities for tenant partitions."""

from .connection import (
    ConnectionManager,
    PartitionHandle,
    validate_partition_name,
    get_connection_manager,
    init_connections,
    close_connections,
)

__all__ = [
    "ConnectionManager",
    "PartitionHandle",
    "validate_partition_name",
    "get_connection_manager",
    "init_connections",
    "close_connections",
]
