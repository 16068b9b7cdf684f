"""API throttling classes."""

from rest_framework.throttling import UserRateThrottle

class TopicSelectionRateThrottle(UserRateThrottle):
    """Throttle limiting topic selection requests per user."""
    scope = "topic_selection"
    rate = "10/hour"
