"""Messaging: Redis pub/sub consumers.

Used for cross-process lazy cache invalidation.
"""

from ltnso.infrastructure.messaging.redis_pubsub import InvalidationSubscriber

__all__ = ["InvalidationSubscriber"]
