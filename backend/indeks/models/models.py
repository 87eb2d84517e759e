"""
SQLAlchemy models for the Indeks analytics rollup pipeline.
"""
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Float, Date,
    ForeignKey, DateTime, CheckConstraint, Index
)
from sqlalchemy.sql import func

from indeks.core.database import Base


class Project(Base):
    """Tracked site. Owned by the product layer; read-only here."""
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    link = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class RawEvent(Base):
    """One behavioral event as emitted by the tracking SDK (append-only)."""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), nullable=False)
    event_type = Column(String(64), nullable=False)
    url = Column(Text, nullable=True)
    session_id = Column(String(128), nullable=True)
    user_id = Column(String(128), nullable=True)
    user_agent = Column(Text, nullable=True)
    referrer = Column(Text, nullable=True)
    # JSON text, shape is caller-controlled
    event_metadata = Column("metadata", Text, nullable=False, default="{}")
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_events_project_timestamp", "project_id", "timestamp"),
    )


class AnalyticsDaily(Base):
    """Daily traffic totals, one row per project per day."""
    __tablename__ = "analytics_daily"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    page_views = Column(Integer, nullable=False, default=0)
    unique_visitors = Column(Integer, nullable=False, default=0)
    sessions = Column(Integer, nullable=False, default=0)
    total_clicks = Column(Integer, nullable=False, default=0)
    total_scrolls = Column(Integer, nullable=False, default=0)
    total_errors = Column(Integer, nullable=False, default=0)

    avg_session_duration = Column(Float, nullable=True, default=0)  # seconds
    bounce_rate = Column(Float, nullable=True, default=0)  # percentage
    avg_scroll_depth = Column(Float, nullable=True, default=0)  # percentage

    rage_clicks = Column(Integer, nullable=False, default=0)
    dead_clicks = Column(Integer, nullable=False, default=0)
    error_clicks = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_analytics_daily_project_date", "project_id", "date"),
    )


class AnalyticsTopPage(Base):
    __tablename__ = "analytics_top_pages"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    url = Column(Text, nullable=False)
    page_views = Column(Integer, nullable=False, default=0)
    unique_visitors = Column(Integer, nullable=False, default=0)
    avg_time_on_page = Column(Float, nullable=True, default=0)  # seconds
    bounce_rate = Column(Float, nullable=True, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_top_pages_project_date", "project_id", "date"),
    )


class AnalyticsReferrer(Base):
    __tablename__ = "analytics_referrers"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    referrer = Column(Text, nullable=False)
    referrer_domain = Column(Text, nullable=True)
    visits = Column(Integer, nullable=False, default=0)
    unique_visitors = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_referrers_project_date", "project_id", "date"),
    )


class AnalyticsDevice(Base):
    __tablename__ = "analytics_devices"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    device_type = Column(String(20), nullable=False)
    browser = Column(String(50), nullable=True)
    os = Column(String(50), nullable=True)
    visits = Column(Integer, nullable=False, default=0)
    unique_visitors = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "device_type IN ('desktop', 'mobile', 'tablet')",
            name="valid_analytics_device_type",
        ),
        Index("idx_analytics_devices_project_date", "project_id", "date"),
    )


class AnalyticsEventType(Base):
    """Per event-type breakdown."""
    __tablename__ = "analytics_events"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    event_type = Column(String(64), nullable=False)
    count = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_events_project_date", "project_id", "date"),
    )


class AnalyticsClickedElement(Base):
    __tablename__ = "analytics_clicked_elements"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    element_selector = Column(Text, nullable=False)
    element_text = Column(Text, nullable=True)
    element_tag = Column(String(64), nullable=True)
    page_url = Column(Text, nullable=True)
    click_count = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_clicked_elements_project_date", "project_id", "date"),
    )


class AnalyticsScrollDepth(Base):
    """Per-page scroll reach."""
    __tablename__ = "analytics_scroll_depth"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    page_url = Column(Text, nullable=False)
    reached_25 = Column(Integer, nullable=False, default=0)
    reached_50 = Column(Integer, nullable=False, default=0)
    reached_75 = Column(Integer, nullable=False, default=0)
    reached_100 = Column(Integer, nullable=False, default=0)
    avg_scroll_depth = Column(Float, nullable=True, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_scroll_depth_project_date", "project_id", "date"),
    )


class AnalyticsError(Base):
    __tablename__ = "analytics_errors"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    error_message = Column(Text, nullable=False)
    error_type = Column(String(20), nullable=False)
    filename = Column(Text, nullable=True)
    page_url = Column(Text, nullable=True)
    count = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("error_type IN ('javascript', 'resource')", name="valid_analytics_error_type"),
        Index("idx_analytics_errors_project_date", "project_id", "date"),
    )


class AnalyticsEngagement(Base):
    """Frustration signals (rage/dead/error clicks) per element and page."""
    __tablename__ = "analytics_engagement"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    event_type = Column(String(20), nullable=False)
    element_selector = Column(Text, nullable=False)
    page_url = Column(Text, nullable=True)
    count = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)
    reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('rage_click', 'dead_click', 'error_click')",
            name="valid_analytics_engagement_type",
        ),
        Index("idx_analytics_engagement_project_date", "project_id", "date"),
    )


class AnalyticsTrafficSource(Base):
    """Sessions per traffic source and UTM triple."""
    __tablename__ = "analytics_traffic_sources"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    traffic_source = Column(String(50), nullable=False)
    utm_source = Column(Text, nullable=True)
    utm_medium = Column(Text, nullable=True)
    utm_campaign = Column(Text, nullable=True)
    sessions = Column(Integer, nullable=False, default=0)
    unique_visitors = Column(Integer, nullable=False, default=0)
    conversions = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_traffic_sources_project_date", "project_id", "date"),
    )


class AnalyticsFormEvent(Base):
    __tablename__ = "analytics_form_events"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    form_id = Column(Text, nullable=False)
    page_url = Column(Text, nullable=True)
    submissions = Column(Integer, nullable=False, default=0)
    abandonments = Column(Integer, nullable=False, default=0)
    errors = Column(Integer, nullable=False, default=0)
    avg_time_to_complete = Column(Float, nullable=True, default=0)  # milliseconds
    avg_fields_completed = Column(Float, nullable=True, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_form_events_project_date", "project_id", "date"),
    )


class AnalyticsPerformance(Base):
    """Per-page load timing and web vitals averages."""
    __tablename__ = "analytics_performance"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    page_url = Column(Text, nullable=False)
    avg_load_time = Column(Float, nullable=True, default=0)
    avg_fcp = Column(Float, nullable=True, default=0)
    avg_lcp = Column(Float, nullable=True, default=0)
    avg_fid = Column(Float, nullable=True, default=0)
    avg_cls = Column(Float, nullable=True, default=0)
    avg_ttfb = Column(Float, nullable=True, default=0)
    sample_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_performance_project_date", "project_id", "date"),
    )


class AnalyticsMedia(Base):
    __tablename__ = "analytics_media"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    media_url = Column(Text, nullable=False)
    media_type = Column(String(20), nullable=False)
    page_url = Column(Text, nullable=True)
    plays = Column(Integer, nullable=False, default=0)
    completions = Column(Integer, nullable=False, default=0)
    avg_watch_time = Column(Float, nullable=True, default=0)
    reached_25 = Column(Integer, nullable=False, default=0)
    reached_50 = Column(Integer, nullable=False, default=0)
    reached_75 = Column(Integer, nullable=False, default=0)
    reached_100 = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_media_project_date", "project_id", "date"),
    )


class AnalyticsOutbound(Base):
    """Outbound link clicks and file downloads."""
    __tablename__ = "analytics_outbound"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    event_type = Column(String(20), nullable=False)
    url = Column(Text, nullable=False)
    link_text = Column(Text, nullable=True)
    domain = Column(Text, nullable=True)
    file_type = Column(String(50), nullable=True)
    page_url = Column(Text, nullable=True)
    clicks = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(
            "event_type IN ('outbound_link', 'file_download')",
            name="valid_analytics_outbound_type",
        ),
        Index("idx_analytics_outbound_project_date", "project_id", "date"),
    )


class AnalyticsSearch(Base):
    __tablename__ = "analytics_search"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    query = Column(Text, nullable=False)
    search_location = Column(Text, nullable=True)
    total_searches = Column(Integer, nullable=False, default=0)
    avg_results_count = Column(Float, nullable=True, default=0)
    avg_results_clicked = Column(Float, nullable=True, default=0)
    zero_results_count = Column(Integer, nullable=False, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_search_project_date", "project_id", "date"),
    )


class AnalyticsCustomEvent(Base):
    __tablename__ = "analytics_custom_events"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    event_name = Column(Text, nullable=False)
    category = Column(Text, nullable=True)
    label = Column(Text, nullable=True)
    page_url = Column(Text, nullable=True)
    count = Column(Integer, nullable=False, default=0)
    total_value = Column(Float, nullable=True, default=0)
    unique_users = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_custom_events_project_date", "project_id", "date"),
    )


class AnalyticsSessionPath(Base):
    """Session outcomes grouped by landing page."""
    __tablename__ = "analytics_sessions"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    landing_page = Column(Text, nullable=False)
    exit_page = Column(Text, nullable=True)
    total_sessions = Column(Integer, nullable=False, default=0)
    avg_pages_per_session = Column(Float, nullable=True, default=0)
    avg_duration = Column(Float, nullable=True, default=0)  # seconds
    bounces = Column(Integer, nullable=False, default=0)
    conversions = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_sessions_project_date", "project_id", "date"),
    )


class AnalyticsVisitors(Base):
    """New vs returning visitors, one row per project per day."""
    __tablename__ = "analytics_visitors"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)

    new_visitors = Column(Integer, nullable=False, default=0)
    returning_visitors = Column(Integer, nullable=False, default=0)
    avg_days_since_last_visit = Column(Float, nullable=True, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_analytics_visitors_project_date", "project_id", "date"),
    )


class AnalyticsSyncLog(Base):
    """One row per sync attempt. Created at run start, finalized once at run end."""
    __tablename__ = "analytics_sync_log"

    id = Column(Integer, primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    sync_date = Column(Date, nullable=False)
    sync_type = Column(String(20), nullable=False)  # daily | manual
    status = Column(String(20), nullable=False)
    records_processed = Column(Integer, nullable=True, default=0)
    error_message = Column(Text, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    completed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('in_progress', 'success', 'failed')",
            name="valid_analytics_sync_status",
        ),
        Index("idx_analytics_sync_log_project_date", "project_id", "sync_date"),
    )


ROLLUP_MODELS = (
    AnalyticsDaily,
    AnalyticsTopPage,
    AnalyticsReferrer,
    AnalyticsDevice,
    AnalyticsEventType,
    AnalyticsClickedElement,
    AnalyticsScrollDepth,
    AnalyticsError,
    AnalyticsEngagement,
    AnalyticsTrafficSource,
    AnalyticsFormEvent,
    AnalyticsPerformance,
    AnalyticsMedia,
    AnalyticsOutbound,
    AnalyticsSearch,
    AnalyticsCustomEvent,
    AnalyticsSessionPath,
    AnalyticsVisitors,
)
