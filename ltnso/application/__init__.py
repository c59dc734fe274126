"""Application layer: interfaces, DTOs and services.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (backing store, cache).
"""

from ltnso.application.dtos import QueryOptions, ServiceResult
from ltnso.application.interfaces import BackingStore

__all__ = ["BackingStore", "QueryOptions", "ServiceResult"]
