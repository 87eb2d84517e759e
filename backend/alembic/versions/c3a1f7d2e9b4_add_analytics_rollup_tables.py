"""add_analytics_rollup_tables

Revision ID: c3a1f7d2e9b4
Revises:
Create Date: 2026-02-09

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "c3a1f7d2e9b4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _rollup_key_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
    ]


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True)


def _project_fk(table_name: str) -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(
        ["project_id"], ["projects.id"], ondelete="CASCADE", name=f"fk_{table_name}_project_id"
    )


def upgrade() -> None:
    op.create_table(
        "analytics_daily",
        *_rollup_key_columns(),
        sa.Column("page_views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_visitors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_scrolls", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_errors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_session_duration", sa.Float(), nullable=True, server_default="0"),
        sa.Column("bounce_rate", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_scroll_depth", sa.Float(), nullable=True, server_default="0"),
        sa.Column("rage_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("dead_clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error_clicks", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        _project_fk("analytics_daily"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_top_pages",
        *_rollup_key_columns(),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("page_views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_visitors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_time_on_page", sa.Float(), nullable=True, server_default="0"),
        sa.Column("bounce_rate", sa.Float(), nullable=True, server_default="0"),
        _created_at(),
        _project_fk("analytics_top_pages"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_referrers",
        *_rollup_key_columns(),
        sa.Column("referrer", sa.Text(), nullable=False),
        sa.Column("referrer_domain", sa.Text(), nullable=True),
        sa.Column("visits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_visitors", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_referrers"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_devices",
        *_rollup_key_columns(),
        sa.Column("device_type", sa.String(length=20), nullable=False),
        sa.Column("browser", sa.String(length=50), nullable=True),
        sa.Column("os", sa.String(length=50), nullable=True),
        sa.Column("visits", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_visitors", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.CheckConstraint("device_type IN ('desktop', 'mobile', 'tablet')", name="valid_analytics_device_type"),
        _project_fk("analytics_devices"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_events",
        *_rollup_key_columns(),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_events"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_clicked_elements",
        *_rollup_key_columns(),
        sa.Column("element_selector", sa.Text(), nullable=False),
        sa.Column("element_text", sa.Text(), nullable=True),
        sa.Column("element_tag", sa.String(length=64), nullable=True),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("click_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_clicked_elements"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_scroll_depth",
        *_rollup_key_columns(),
        sa.Column("page_url", sa.Text(), nullable=False),
        sa.Column("reached_25", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reached_50", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reached_75", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reached_100", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_scroll_depth", sa.Float(), nullable=True, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_scroll_depth"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_errors",
        *_rollup_key_columns(),
        sa.Column("error_message", sa.Text(), nullable=False),
        sa.Column("error_type", sa.String(length=20), nullable=False),
        sa.Column("filename", sa.Text(), nullable=True),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.CheckConstraint("error_type IN ('javascript', 'resource')", name="valid_analytics_error_type"),
        _project_fk("analytics_errors"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_engagement",
        *_rollup_key_columns(),
        sa.Column("event_type", sa.String(length=20), nullable=False),
        sa.Column("element_selector", sa.Text(), nullable=False),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reason", sa.Text(), nullable=True),
        _created_at(),
        sa.CheckConstraint(
            "event_type IN ('rage_click', 'dead_click', 'error_click')",
            name="valid_analytics_engagement_type",
        ),
        _project_fk("analytics_engagement"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_traffic_sources",
        *_rollup_key_columns(),
        sa.Column("traffic_source", sa.String(length=50), nullable=False),
        sa.Column("utm_source", sa.Text(), nullable=True),
        sa.Column("utm_medium", sa.Text(), nullable=True),
        sa.Column("utm_campaign", sa.Text(), nullable=True),
        sa.Column("sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_visitors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conversions", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_traffic_sources"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_form_events",
        *_rollup_key_columns(),
        sa.Column("form_id", sa.Text(), nullable=False),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("submissions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("abandonments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("errors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_time_to_complete", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_fields_completed", sa.Float(), nullable=True, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_form_events"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_performance",
        *_rollup_key_columns(),
        sa.Column("page_url", sa.Text(), nullable=False),
        sa.Column("avg_load_time", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_fcp", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_lcp", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_fid", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_cls", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_ttfb", sa.Float(), nullable=True, server_default="0"),
        sa.Column("sample_count", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_performance"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_media",
        *_rollup_key_columns(),
        sa.Column("media_url", sa.Text(), nullable=False),
        sa.Column("media_type", sa.String(length=20), nullable=False),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("plays", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_watch_time", sa.Float(), nullable=True, server_default="0"),
        sa.Column("reached_25", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reached_50", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reached_75", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reached_100", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_media"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_outbound",
        *_rollup_key_columns(),
        sa.Column("event_type", sa.String(length=20), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("link_text", sa.Text(), nullable=True),
        sa.Column("domain", sa.Text(), nullable=True),
        sa.Column("file_type", sa.String(length=50), nullable=True),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("clicks", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        sa.CheckConstraint(
            "event_type IN ('outbound_link', 'file_download')",
            name="valid_analytics_outbound_type",
        ),
        _project_fk("analytics_outbound"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_search",
        *_rollup_key_columns(),
        sa.Column("query", sa.Text(), nullable=False),
        sa.Column("search_location", sa.Text(), nullable=True),
        sa.Column("total_searches", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_results_count", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_results_clicked", sa.Float(), nullable=True, server_default="0"),
        sa.Column("zero_results_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_search"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_custom_events",
        *_rollup_key_columns(),
        sa.Column("event_name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=True),
        sa.Column("label", sa.Text(), nullable=True),
        sa.Column("page_url", sa.Text(), nullable=True),
        sa.Column("count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_value", sa.Float(), nullable=True, server_default="0"),
        sa.Column("unique_users", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_custom_events"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_sessions",
        *_rollup_key_columns(),
        sa.Column("landing_page", sa.Text(), nullable=False),
        sa.Column("exit_page", sa.Text(), nullable=True),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_pages_per_session", sa.Float(), nullable=True, server_default="0"),
        sa.Column("avg_duration", sa.Float(), nullable=True, server_default="0"),
        sa.Column("bounces", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("conversions", sa.Integer(), nullable=False, server_default="0"),
        _created_at(),
        _project_fk("analytics_sessions"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "analytics_visitors",
        *_rollup_key_columns(),
        sa.Column("new_visitors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("returning_visitors", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("avg_days_since_last_visit", sa.Float(), nullable=True, server_default="0"),
        _created_at(),
        _project_fk("analytics_visitors"),
        sa.PrimaryKeyConstraint("id"),
    )

    for table_name in ROLLUP_TABLES:
        op.create_index(f"idx_{table_name}_project_date", table_name, ["project_id", "date"], unique=False)

    op.create_table(
        "analytics_sync_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.String(length=36), nullable=False),
        sa.Column("sync_date", sa.Date(), nullable=False),
        sa.Column("sync_type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("records_processed", sa.Integer(), nullable=True, server_default="0"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('in_progress', 'success', 'failed')",
            name="valid_analytics_sync_status",
        ),
        _project_fk("analytics_sync_log"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_analytics_sync_log_project_date", "analytics_sync_log", ["project_id", "sync_date"], unique=False
    )


ROLLUP_TABLES = (
    "analytics_daily",
    "analytics_top_pages",
    "analytics_referrers",
    "analytics_devices",
    "analytics_events",
    "analytics_clicked_elements",
    "analytics_scroll_depth",
    "analytics_errors",
    "analytics_engagement",
    "analytics_traffic_sources",
    "analytics_form_events",
    "analytics_performance",
    "analytics_media",
    "analytics_outbound",
    "analytics_search",
    "analytics_custom_events",
    "analytics_sessions",
    "analytics_visitors",
)


def downgrade() -> None:
    op.drop_index("idx_analytics_sync_log_project_date", table_name="analytics_sync_log")
    op.drop_table("analytics_sync_log")
    for table_name in reversed(ROLLUP_TABLES):
        op.drop_index(f"idx_{table_name}_project_date", table_name=table_name)
        op.drop_table(table_name)
