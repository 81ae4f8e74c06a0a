"""
Database models for request usage records and channel outcomes.
"""
from usage_analytics.models.request_stat import RequestStat, ChannelStat

__all__ = [
    "RequestStat",
    "ChannelStat",
]
