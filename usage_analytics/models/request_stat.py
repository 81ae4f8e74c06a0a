"""
Usage record database models.

Rows are written by the ingestion side of the gateway; this service only reads them.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, Index

from usage_analytics.core.database import Base


class RequestStat(Base):
    """One proxied API request."""

    __tablename__ = "request_stats"

    request_id = Column(String(64), primary_key=True)

    # Ownership
    api_key = Column(String(128), nullable=False, index=True)
    endpoint = Column(String(100), nullable=False)  # e.g. "POST /v1/chat/completions"

    # Routing
    model = Column(String(100), index=True)
    provider = Column(String(100), index=True)

    # Performance metrics
    process_time = Column(Float)  # Total processing time in seconds
    first_response_time = Column(Float)  # Time to first response chunk in seconds

    # Token usage
    prompt_tokens = Column(Integer, default=0)
    completion_tokens = Column(Integer, default=0)
    total_tokens = Column(Integer, default=0)

    text = Column(Text)

    timestamp = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index("idx_request_stats_key_endpoint", "api_key", "endpoint"),
        Index("idx_request_stats_key_timestamp", "api_key", "timestamp"),
    )


class ChannelStat(Base):
    """One upstream channel attempt for a request. A request may have none or several."""

    __tablename__ = "channel_stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(String(64), nullable=False, index=True)
    provider = Column(String(100))
    success = Column(Boolean, nullable=False, default=False)
