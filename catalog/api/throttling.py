"""
API throttling classes for the catalog endpoints.
"""

from rest_framework.throttling import AnonRateThrottle, UserRateThrottle


class RelatedReadThrottle(AnonRateThrottle):
    """
    Throttle for anonymous reads of related whiskies.

    Rate: 600 requests per hour per client IP.
    Applied to: /api/v1/whiskies/<id>/related/
    """

    rate = '600/hour'
    scope = 'related_read'


class RebuildTriggerThrottle(UserRateThrottle):
    """
    Throttle for manual rebuild triggers.

    Rate: 30 requests per hour per user.
    Applied to: /api/v1/whiskies/<id>/related/rebuild/
    """

    rate = '30/hour'
    scope = 'related_rebuild'
