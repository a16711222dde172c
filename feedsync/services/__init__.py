"""
FeedSync Services
================

Shared service layer used by the management script and other interfaces.
"""

from .feed_service import FeedService

__all__ = [
    'FeedService',
]
