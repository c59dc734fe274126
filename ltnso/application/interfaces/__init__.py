"""Application interfaces (ports): backing store protocol.

Define contracts for infrastructure implementations (DIP).
No runtime imports from ltnso.infrastructure.
"""

from ltnso.application.interfaces.store import BackingStore, Row

__all__ = ["BackingStore", "Row"]
