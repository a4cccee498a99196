"""
Audit Storage Package

Provides the abstract audit storage interface and an in-memory implementation.
"""

from splitledger.storage.interface import (
    AuditStorageInterface,
    CapacityError,
    StorageError,
)
from splitledger.storage.memory import InMemoryAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    # Exceptions
    "CapacityError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
]
