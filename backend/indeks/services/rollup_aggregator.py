"""
Daily rollup aggregation.

Folds one project-day of raw events into the summary rows written to the
analytics_* tables. Everything here is pure: no I/O, and all working state lives
on a builder that is created per call and dropped on return.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from indeks.core.time import ensure_utc
from indeks.services.event_metadata import get_mapping, get_number, get_string, parse_metadata
from indeks.services.event_store import RawEventRecord
from indeks.services.referrers import referrer_domain
from indeks.services.user_agent import classify_user_agent

TOP_PAGES_LIMIT = 50
TOP_REFERRERS_LIMIT = 50
TOP_CLICKED_ELEMENTS_LIMIT = 100
TOP_ERRORS_LIMIT = 100
TOP_OUTBOUND_LIMIT = 100
TOP_SEARCHES_LIMIT = 100
TOP_CUSTOM_EVENTS_LIMIT = 100
TOP_LANDING_PAGES_LIMIT = 50

ANONYMOUS_VISITOR = "anonymous"
UNKNOWN_SESSION = "unknown"
UNKNOWN_FORM = "unknown-form"

SCROLL_THRESHOLDS = (25, 50, 75, 100)
FRUSTRATION_EVENT_TYPES = ("rage_click", "dead_click", "error_click")
ERROR_EVENT_TYPES = {"error": "javascript", "resource_error": "resource"}
FORM_EVENT_TYPES = ("form_submit", "form_abandon", "form_error")
PERFORMANCE_EVENT_TYPES = ("performance", "page_load")
MEDIA_EVENT_TYPES = ("media_play", "media_pause", "media_ended", "media_progress")
OUTBOUND_EVENT_TYPES = ("outbound_link", "file_download")

# metadata.type of a performance event -> metric column suffix
PERFORMANCE_METRICS = {
    "first_contentful_paint": "fcp",
    "largest_contentful_paint": "lcp",
    "first_input_delay": "fid",
    "cumulative_layout_shift": "cls",
    "time_to_first_byte": "ttfb",
}

_ELEMENT_TEXT_MAX = 100
_ERROR_MESSAGE_MAX = 100


# --- Output rows (field names match the analytics_* columns) ---


@dataclass(frozen=True)
class DailySummary:
    page_views: int = 0
    unique_visitors: int = 0
    sessions: int = 0
    total_clicks: int = 0
    total_scrolls: int = 0
    total_errors: int = 0
    avg_session_duration: float = 0.0
    bounce_rate: float = 0.0
    avg_scroll_depth: float = 0.0
    rage_clicks: int = 0
    dead_clicks: int = 0
    error_clicks: int = 0


@dataclass(frozen=True)
class TopPage:
    url: str
    page_views: int
    unique_visitors: int
    avg_time_on_page: float = 0.0
    bounce_rate: float = 0.0


@dataclass(frozen=True)
class ReferrerStat:
    referrer: str
    referrer_domain: str
    visits: int
    unique_visitors: int


@dataclass(frozen=True)
class DeviceStat:
    device_type: str
    browser: str
    os: str
    visits: int
    unique_visitors: int


@dataclass(frozen=True)
class EventTypeStat:
    event_type: str
    count: int
    unique_users: int


@dataclass(frozen=True)
class ClickedElementStat:
    element_selector: str
    element_text: str
    element_tag: str
    page_url: str
    click_count: int
    unique_users: int


@dataclass(frozen=True)
class ScrollDepthStat:
    page_url: str
    reached_25: int
    reached_50: int
    reached_75: int
    reached_100: int
    avg_scroll_depth: float
    unique_users: int


@dataclass(frozen=True)
class ErrorStat:
    error_message: str
    error_type: str
    filename: str
    page_url: str
    count: int
    unique_users: int


@dataclass(frozen=True)
class EngagementStat:
    event_type: str
    element_selector: str
    page_url: str
    count: int
    unique_users: int
    reason: str


@dataclass(frozen=True)
class TrafficSourceStat:
    traffic_source: str
    utm_source: str | None
    utm_medium: str | None
    utm_campaign: str | None
    sessions: int
    unique_visitors: int
    conversions: int


@dataclass(frozen=True)
class FormStat:
    form_id: str
    page_url: str
    submissions: int
    abandonments: int
    errors: int
    avg_time_to_complete: float
    avg_fields_completed: float
    unique_users: int


@dataclass(frozen=True)
class PerformanceStat:
    page_url: str
    avg_load_time: float
    avg_fcp: float
    avg_lcp: float
    avg_fid: float
    avg_cls: float
    avg_ttfb: float
    sample_count: int


@dataclass(frozen=True)
class MediaStat:
    media_url: str
    media_type: str
    page_url: str
    plays: int
    completions: int
    reached_25: int
    reached_50: int
    reached_75: int
    reached_100: int
    unique_users: int
    avg_watch_time: float = 0.0


@dataclass(frozen=True)
class OutboundStat:
    event_type: str  # outbound_link | file_download
    url: str
    link_text: str
    domain: str
    file_type: str
    page_url: str
    clicks: int
    unique_users: int


@dataclass(frozen=True)
class SearchStat:
    query: str
    search_location: str
    total_searches: int
    avg_results_count: float
    avg_results_clicked: float
    zero_results_count: int
    unique_users: int


@dataclass(frozen=True)
class CustomEventStat:
    event_name: str
    category: str
    label: str
    page_url: str
    count: int
    total_value: float
    unique_users: int


@dataclass(frozen=True)
class SessionPathStat:
    landing_page: str
    exit_page: str
    total_sessions: int
    avg_pages_per_session: float
    avg_duration: float
    bounces: int
    conversions: int


@dataclass(frozen=True)
class VisitorSummary:
    new_visitors: int = 0
    returning_visitors: int = 0
    avg_days_since_last_visit: float = 0.0


@dataclass(frozen=True)
class AggregationResult:
    summary: DailySummary
    top_pages: list[TopPage] = field(default_factory=list)
    referrers: list[ReferrerStat] = field(default_factory=list)
    devices: list[DeviceStat] = field(default_factory=list)
    event_types: list[EventTypeStat] = field(default_factory=list)
    clicked_elements: list[ClickedElementStat] = field(default_factory=list)
    scroll_depth: list[ScrollDepthStat] = field(default_factory=list)
    errors: list[ErrorStat] = field(default_factory=list)
    engagement: list[EngagementStat] = field(default_factory=list)
    traffic_sources: list[TrafficSourceStat] = field(default_factory=list)
    forms: list[FormStat] = field(default_factory=list)
    performance: list[PerformanceStat] = field(default_factory=list)
    media: list[MediaStat] = field(default_factory=list)
    outbound: list[OutboundStat] = field(default_factory=list)
    searches: list[SearchStat] = field(default_factory=list)
    custom_events: list[CustomEventStat] = field(default_factory=list)
    session_paths: list[SessionPathStat] = field(default_factory=list)
    visitors: VisitorSummary = field(default_factory=VisitorSummary)


# --- Helpers ---


def visitor_id_for(event: RawEventRecord) -> str:
    return event.user_id or event.session_id or ANONYMOUS_VISITOR


def element_selector(element: Mapping[str, Any]) -> str:
    """`#id`, else `tag.firstClass`, else `tag`, else "unknown"."""
    element_id = get_string(element, "id")
    if element_id:
        return f"#{element_id}"
    tag_name = get_string(element, "tagName") or ""
    class_name = get_string(element, "className")
    classes = class_name.split() if class_name else []
    if classes:
        return f"{tag_name}.{classes[0]}"
    return tag_name or "unknown"


def _event_time(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            return None
    return None


def _before(at: datetime | None, other: datetime | None) -> bool:
    return at is not None and other is not None and at < other


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return float(sum(values)) / len(values)


def _ranked(rows: list, attr: str, limit: int | None = None) -> list:
    # sorted() is stable, so equal counts keep first-encountered order
    ordered = sorted(rows, key=lambda row: getattr(row, attr), reverse=True)
    if limit is not None:
        return ordered[:limit]
    return ordered


# --- Builder ---


@dataclass
class _SessionStats:
    page_view_count: int = 0
    first_seen_at: datetime | None = None
    last_seen_at: datetime | None = None
    pages: set[str] = field(default_factory=set)
    landing_page: str | None = None
    landing_at: datetime | None = None
    exit_page: str | None = None
    exit_at: datetime | None = None
    declared_landing_page: str | None = None
    converted: bool = False

    def observe(self, at: datetime | None, url: str | None) -> None:
        if at is not None:
            if self.first_seen_at is None or at < self.first_seen_at:
                self.first_seen_at = at
            if self.last_seen_at is None or at > self.last_seen_at:
                self.last_seen_at = at
        if not url:
            return
        self.pages.add(url)
        # Earliest URL lands, latest URL exits; untimed events fall back to arrival order.
        if self.landing_page is None or _before(at, self.landing_at):
            self.landing_page, self.landing_at = url, at
        if self.exit_page is None or not _before(at, self.exit_at):
            self.exit_page, self.exit_at = url, at

    @property
    def duration_seconds(self) -> float:
        if self.first_seen_at is None or self.last_seen_at is None:
            return 0.0
        return (self.last_seen_at - self.first_seen_at).total_seconds()

    @property
    def entry_page(self) -> str:
        return self.declared_landing_page or self.landing_page or ""


@dataclass
class _CountBucket:
    count: int = 0
    visitors: set[str] = field(default_factory=set)

    def add(self, visitor_id: str) -> None:
        self.count += 1
        self.visitors.add(visitor_id)


@dataclass
class _ClickBucket(_CountBucket):
    text: str = ""
    tag: str = ""
    page_url: str = ""


@dataclass
class _ReferrerBucket(_CountBucket):
    domain: str = ""


@dataclass
class _ErrorBucket(_CountBucket):
    filename: str = ""


@dataclass
class _EngagementBucket(_CountBucket):
    reason: str = ""


@dataclass
class _ScrollBucket:
    depths: list[float] = field(default_factory=list)
    visitors: set[str] = field(default_factory=set)
    reached: dict[int, set[str]] = field(
        default_factory=lambda: {threshold: set() for threshold in SCROLL_THRESHOLDS}
    )

    def add(self, depth: float, visitor_id: str) -> None:
        self.depths.append(depth)
        self.visitors.add(visitor_id)
        for threshold in SCROLL_THRESHOLDS:
            if depth >= threshold:
                self.reached[threshold].add(visitor_id)


@dataclass
class _TrafficBucket:
    sessions: set[str] = field(default_factory=set)
    visitors: set[str] = field(default_factory=set)


@dataclass
class _FormBucket:
    page_url: str = ""
    submissions: int = 0
    abandonments: int = 0
    errors: int = 0
    time_spent: list[float] = field(default_factory=list)
    fields_completed: list[float] = field(default_factory=list)
    visitors: set[str] = field(default_factory=set)


@dataclass
class _MediaBucket:
    media_type: str = "video"
    page_url: str = ""
    plays: int = 0
    completions: int = 0
    reached: dict[int, int] = field(
        default_factory=lambda: {threshold: 0 for threshold in SCROLL_THRESHOLDS}
    )
    visitors: set[str] = field(default_factory=set)


@dataclass
class _OutboundBucket(_CountBucket):
    link_text: str = ""
    domain: str = ""
    file_type: str = ""
    page_url: str = ""


@dataclass
class _SearchBucket(_CountBucket):
    location: str = "unknown"
    results: list[float] = field(default_factory=list)
    results_clicked: list[float] = field(default_factory=list)
    zero_results: int = 0


@dataclass
class _CustomBucket(_CountBucket):
    page_url: str = ""
    total_value: float = 0


@dataclass
class _LandingBucket:
    sessions: int = 0
    pages: list[int] = field(default_factory=list)
    durations: list[float] = field(default_factory=list)
    bounces: int = 0
    conversions: int = 0
    exit_pages: Counter = field(default_factory=Counter)


class _RollupBuilder:
    def __init__(self) -> None:
        self.visitors: set[str] = set()
        self.sessions: dict[str, _SessionStats] = {}
        self.counters = {
            "page_views": 0,
            "total_clicks": 0,
            "total_scrolls": 0,
            "total_errors": 0,
            "rage_clicks": 0,
            "dead_clicks": 0,
            "error_clicks": 0,
            "new_visitors": 0,
            "returning_visitors": 0,
        }
        self.scroll_samples: list[float] = []
        self.days_since_last_visit: list[float] = []
        self.pages: dict[str, _CountBucket] = {}
        self.referrers: dict[str, _ReferrerBucket] = {}
        self.devices: dict[tuple[str, str, str], _CountBucket] = {}
        self.event_types: dict[str, _CountBucket] = {}
        self.clicks: dict[str, _ClickBucket] = {}
        self.scroll_pages: dict[str, _ScrollBucket] = {}
        self.errors: dict[tuple[str, str, str], _ErrorBucket] = {}
        self.engagement: dict[tuple[str, str, str], _EngagementBucket] = {}
        self.traffic: dict[tuple[str, str | None, str | None, str | None], _TrafficBucket] = {}
        self.forms: dict[str, _FormBucket] = {}
        self.performance: dict[str, dict[str, list[float]]] = {}
        self.media: dict[str, _MediaBucket] = {}
        self.outbound: dict[tuple[str, str], _OutboundBucket] = {}
        self.searches: dict[str, _SearchBucket] = {}
        self.custom: dict[tuple[str, str, str], _CustomBucket] = {}

    def fold(self, event: RawEventRecord) -> None:
        visitor_id = visitor_id_for(event)
        session_key = event.session_id or UNKNOWN_SESSION
        event_type = str(event.event_type or "")
        metadata = parse_metadata(event.metadata)

        self.visitors.add(visitor_id)
        session = self.sessions.get(session_key)
        if session is None:
            session = self.sessions[session_key] = _SessionStats()
        session.observe(_event_time(event.timestamp), event.url)

        self.event_types.setdefault(event_type, _CountBucket()).add(visitor_id)

        if event_type == "pageview":
            self.counters["page_views"] += 1
            session.page_view_count += 1
            if event.url:
                self.pages.setdefault(event.url, _CountBucket()).add(visitor_id)
        elif event_type == "click":
            self.counters["total_clicks"] += 1
            self._fold_click(event, metadata, visitor_id)
        elif event_type == "scroll":
            self.counters["total_scrolls"] += 1
            self._fold_scroll_sample(event, get_number(metadata, "scrollPercentage"), visitor_id)
        elif event_type == "scroll_depth":
            self._fold_scroll_sample(event, get_number(metadata, "depth"), visitor_id)
        elif event_type in ERROR_EVENT_TYPES:
            self.counters["total_errors"] += 1
            self._fold_error(event, event_type, metadata, visitor_id)
        elif event_type in FRUSTRATION_EVENT_TYPES:
            self.counters[f"{event_type}s"] += 1
            self._fold_frustration(event, event_type, metadata, visitor_id)
        elif event_type == "session_start":
            self._fold_session_start(session, session_key, metadata, visitor_id)
        elif event_type == "session_end":
            if metadata.get("converted"):
                session.converted = True
        elif event_type in FORM_EVENT_TYPES:
            self._fold_form(event, event_type, metadata, visitor_id)
        elif event_type in PERFORMANCE_EVENT_TYPES:
            self._fold_performance(event, metadata)
        elif event_type in MEDIA_EVENT_TYPES:
            self._fold_media(event, event_type, metadata, visitor_id)
        elif event_type in OUTBOUND_EVENT_TYPES:
            self._fold_outbound(event, event_type, metadata, visitor_id)
        elif event_type == "search":
            self._fold_search(metadata, visitor_id)
        elif event_type == "custom":
            self._fold_custom(event, metadata, visitor_id)

        if event.referrer and event_type == "pageview":
            bucket = self.referrers.get(event.referrer)
            if bucket is None:
                bucket = self.referrers[event.referrer] = _ReferrerBucket(
                    domain=referrer_domain(event.referrer)
                )
            bucket.add(visitor_id)

        if event.user_agent:
            info = classify_user_agent(event.user_agent)
            key = (info.device_type, info.browser, info.os)
            self.devices.setdefault(key, _CountBucket()).add(visitor_id)

    def _fold_click(self, event: RawEventRecord, metadata: Mapping[str, Any], visitor_id: str) -> None:
        element = get_mapping(metadata, "element")
        if element is None:
            return
        selector = element_selector(element)
        bucket = self.clicks.get(selector)
        if bucket is None:
            bucket = self.clicks[selector] = _ClickBucket(
                text=(get_string(element, "textContent") or "")[:_ELEMENT_TEXT_MAX],
                tag=get_string(element, "tagName") or "",
                page_url=event.url or "",
            )
        bucket.add(visitor_id)

    def _fold_scroll_sample(self, event: RawEventRecord, depth: float | None, visitor_id: str) -> None:
        if depth is None:
            return
        self.scroll_samples.append(depth)
        self.scroll_pages.setdefault(event.url or "unknown", _ScrollBucket()).add(depth, visitor_id)

    def _fold_error(
        self,
        event: RawEventRecord,
        event_type: str,
        metadata: Mapping[str, Any],
        visitor_id: str,
    ) -> None:
        error = get_mapping(metadata, "error") or {}
        message = (
            get_string(error, "message")
            or get_string(metadata, "errorMessage")
            or "Unknown error"
        )[:_ERROR_MESSAGE_MAX]
        key = (message, event.url or "", ERROR_EVENT_TYPES[event_type])
        bucket = self.errors.get(key)
        if bucket is None:
            bucket = self.errors[key] = _ErrorBucket(filename=get_string(error, "filename") or "")
        bucket.add(visitor_id)

    def _fold_frustration(
        self,
        event: RawEventRecord,
        event_type: str,
        metadata: Mapping[str, Any],
        visitor_id: str,
    ) -> None:
        element = metadata.get("element")
        if isinstance(element, str) and element:
            selector = element
        elif isinstance(element, Mapping):
            selector = element_selector(element)
        else:
            selector = "unknown"
        key = (event_type, selector, event.url or "")
        bucket = self.engagement.get(key)
        if bucket is None:
            bucket = self.engagement[key] = _EngagementBucket(
                reason=get_string(metadata, "whyRage") or get_string(metadata, "expectedBehavior") or "",
            )
        bucket.add(visitor_id)

    def _fold_session_start(
        self,
        session: _SessionStats,
        session_key: str,
        metadata: Mapping[str, Any],
        visitor_id: str,
    ) -> None:
        key = (
            get_string(metadata, "trafficSource") or "direct",
            get_string(metadata, "utmSource"),
            get_string(metadata, "utmMedium"),
            get_string(metadata, "utmCampaign"),
        )
        bucket = self.traffic.setdefault(key, _TrafficBucket())
        bucket.sessions.add(session_key)
        bucket.visitors.add(visitor_id)

        if metadata.get("isNewUser"):
            self.counters["new_visitors"] += 1
        else:
            self.counters["returning_visitors"] += 1
            days = get_number(metadata, "daysSinceLastVisit")
            if days is not None:
                self.days_since_last_visit.append(days)

        declared = get_string(metadata, "landingPage")
        if declared:
            session.declared_landing_page = declared

    def _fold_form(
        self,
        event: RawEventRecord,
        event_type: str,
        metadata: Mapping[str, Any],
        visitor_id: str,
    ) -> None:
        form_id = get_string(metadata, "formId")
        if form_id is None and event_type == "form_submit":
            form_id = get_string(get_mapping(metadata, "element") or {}, "id")
        bucket = self.forms.get(form_id or UNKNOWN_FORM)
        if bucket is None:
            bucket = self.forms[form_id or UNKNOWN_FORM] = _FormBucket(page_url=event.url or "")
        bucket.visitors.add(visitor_id)

        if event_type == "form_submit":
            bucket.submissions += 1
        elif event_type == "form_error":
            bucket.errors += 1
        else:
            bucket.abandonments += 1
            time_spent = get_number(metadata, "timeSpent")
            if time_spent is not None:
                bucket.time_spent.append(time_spent)
            fields_completed = get_number(metadata, "fieldsCompleted")
            if fields_completed is not None:
                bucket.fields_completed.append(fields_completed)

    def _fold_performance(self, event: RawEventRecord, metadata: Mapping[str, Any]) -> None:
        samples = self.performance.setdefault(
            event.url or "unknown",
            {"load": [], **{metric: [] for metric in PERFORMANCE_METRICS.values()}},
        )
        metric = PERFORMANCE_METRICS.get(get_string(metadata, "type") or "")
        value = get_number(metadata, "value")
        if metric is not None and value is not None:
            samples[metric].append(value)
        load_time = get_number(metadata, "loadTime")
        if load_time is not None:
            samples["load"].append(load_time)

    def _fold_media(
        self,
        event: RawEventRecord,
        event_type: str,
        metadata: Mapping[str, Any],
        visitor_id: str,
    ) -> None:
        element = get_mapping(metadata, "element") or {}
        media_url = get_string(element, "src") or get_string(metadata, "mediaUrl") or "unknown"
        bucket = self.media.get(media_url)
        if bucket is None:
            bucket = self.media[media_url] = _MediaBucket(
                media_type=(get_string(element, "tagName") or "video").lower(),
                page_url=event.url or "",
            )
        bucket.visitors.add(visitor_id)

        if event_type == "media_play":
            bucket.plays += 1
        elif event_type == "media_ended":
            bucket.completions += 1
        elif event_type == "media_progress":
            progress = get_number(metadata, "progress")
            if progress is not None:
                for threshold in SCROLL_THRESHOLDS:
                    if progress >= threshold:
                        bucket.reached[threshold] += 1

    def _fold_outbound(
        self,
        event: RawEventRecord,
        event_type: str,
        metadata: Mapping[str, Any],
        visitor_id: str,
    ) -> None:
        if event_type == "outbound_link":
            url = get_string(metadata, "url") or "unknown"
        else:
            url = get_string(metadata, "downloadUrl") or get_string(metadata, "fileName") or "unknown"
        key = (event_type, url)
        bucket = self.outbound.get(key)
        if bucket is None:
            if event_type == "outbound_link":
                bucket = _OutboundBucket(
                    link_text=get_string(metadata, "linkText") or "",
                    domain=get_string(metadata, "domain") or referrer_domain(url),
                )
            else:
                bucket = _OutboundBucket(
                    link_text=get_string(metadata, "fileName") or "",
                    file_type=get_string(metadata, "fileType") or "",
                )
            bucket.page_url = event.url or ""
            self.outbound[key] = bucket
        bucket.add(visitor_id)

    def _fold_search(self, metadata: Mapping[str, Any], visitor_id: str) -> None:
        query = get_string(metadata, "query")
        if query is None:
            return
        bucket = self.searches.get(query)
        if bucket is None:
            bucket = self.searches[query] = _SearchBucket(
                location=get_string(metadata, "searchLocation") or "unknown"
            )
        bucket.add(visitor_id)
        results = get_number(metadata, "resultsCount")
        if results is not None:
            bucket.results.append(results)
            if results == 0:
                bucket.zero_results += 1
        clicked = get_number(metadata, "resultsClicked")
        if clicked is not None:
            bucket.results_clicked.append(clicked)

    def _fold_custom(self, event: RawEventRecord, metadata: Mapping[str, Any], visitor_id: str) -> None:
        key = (
            get_string(metadata, "eventName") or "unknown",
            get_string(metadata, "category") or "",
            get_string(metadata, "label") or "",
        )
        bucket = self.custom.get(key)
        if bucket is None:
            bucket = self.custom[key] = _CustomBucket(page_url=event.url or "")
        bucket.add(visitor_id)
        value = get_number(metadata, "value")
        if value is not None:
            bucket.total_value += value

    def _session_paths(self) -> list[SessionPathStat]:
        landings: dict[str, _LandingBucket] = {}
        for session in self.sessions.values():
            bucket = landings.setdefault(session.entry_page, _LandingBucket())
            bucket.sessions += 1
            bucket.pages.append(len(session.pages))
            bucket.durations.append(session.duration_seconds)
            if session.page_view_count == 1:
                bucket.bounces += 1
            if session.converted:
                bucket.conversions += 1
            bucket.exit_pages[session.exit_page or ""] += 1

        rows = []
        for landing_page, bucket in landings.items():
            # most common exit page; ties go to the lexically smallest URL
            exit_page = min(bucket.exit_pages.items(), key=lambda item: (-item[1], item[0]))[0]
            rows.append(
                SessionPathStat(
                    landing_page=landing_page,
                    exit_page=exit_page,
                    total_sessions=bucket.sessions,
                    avg_pages_per_session=_mean(bucket.pages),
                    avg_duration=_mean(bucket.durations),
                    bounces=bucket.bounces,
                    conversions=bucket.conversions,
                )
            )
        return rows

    def finalize(self) -> AggregationResult:
        total_sessions = len(self.sessions)
        bounced = sum(1 for session in self.sessions.values() if session.page_view_count == 1)
        durations = [session.duration_seconds for session in self.sessions.values()]

        summary = DailySummary(
            page_views=self.counters["page_views"],
            unique_visitors=len(self.visitors),
            sessions=total_sessions,
            total_clicks=self.counters["total_clicks"],
            total_scrolls=self.counters["total_scrolls"],
            total_errors=self.counters["total_errors"],
            avg_session_duration=_mean(durations),
            bounce_rate=(bounced / total_sessions * 100.0) if total_sessions else 0.0,
            avg_scroll_depth=_mean(self.scroll_samples),
            rage_clicks=self.counters["rage_clicks"],
            dead_clicks=self.counters["dead_clicks"],
            error_clicks=self.counters["error_clicks"],
        )

        top_pages = [
            TopPage(url=url, page_views=bucket.count, unique_visitors=len(bucket.visitors))
            for url, bucket in self.pages.items()
        ]
        referrers = [
            ReferrerStat(
                referrer=referrer,
                referrer_domain=bucket.domain,
                visits=bucket.count,
                unique_visitors=len(bucket.visitors),
            )
            for referrer, bucket in self.referrers.items()
        ]
        devices = [
            DeviceStat(
                device_type=device_type,
                browser=browser,
                os=os_name,
                visits=bucket.count,
                unique_visitors=len(bucket.visitors),
            )
            for (device_type, browser, os_name), bucket in self.devices.items()
        ]
        event_types = [
            EventTypeStat(event_type=name, count=bucket.count, unique_users=len(bucket.visitors))
            for name, bucket in self.event_types.items()
        ]
        clicked_elements = [
            ClickedElementStat(
                element_selector=selector,
                element_text=bucket.text,
                element_tag=bucket.tag,
                page_url=bucket.page_url,
                click_count=bucket.count,
                unique_users=len(bucket.visitors),
            )
            for selector, bucket in self.clicks.items()
        ]
        scroll_depth = [
            ScrollDepthStat(
                page_url=page_url,
                reached_25=len(bucket.reached[25]),
                reached_50=len(bucket.reached[50]),
                reached_75=len(bucket.reached[75]),
                reached_100=len(bucket.reached[100]),
                avg_scroll_depth=_mean(bucket.depths),
                unique_users=len(bucket.visitors),
            )
            for page_url, bucket in self.scroll_pages.items()
        ]
        errors = [
            ErrorStat(
                error_message=message,
                error_type=error_type,
                filename=bucket.filename,
                page_url=page_url,
                count=bucket.count,
                unique_users=len(bucket.visitors),
            )
            for (message, page_url, error_type), bucket in self.errors.items()
        ]
        engagement = [
            EngagementStat(
                event_type=event_type,
                element_selector=selector,
                page_url=page_url,
                count=bucket.count,
                unique_users=len(bucket.visitors),
                reason=bucket.reason,
            )
            for (event_type, selector, page_url), bucket in self.engagement.items()
        ]
        traffic_sources = [
            TrafficSourceStat(
                traffic_source=source,
                utm_source=utm_source,
                utm_medium=utm_medium,
                utm_campaign=utm_campaign,
                sessions=len(bucket.sessions),
                unique_visitors=len(bucket.visitors),
                conversions=sum(1 for key in bucket.sessions if self.sessions[key].converted),
            )
            for (source, utm_source, utm_medium, utm_campaign), bucket in self.traffic.items()
        ]
        forms = [
            FormStat(
                form_id=form_id,
                page_url=bucket.page_url,
                submissions=bucket.submissions,
                abandonments=bucket.abandonments,
                errors=bucket.errors,
                avg_time_to_complete=_mean(bucket.time_spent),
                avg_fields_completed=_mean(bucket.fields_completed),
                unique_users=len(bucket.visitors),
            )
            for form_id, bucket in self.forms.items()
        ]
        performance = [
            PerformanceStat(
                page_url=page_url,
                avg_load_time=_mean(samples["load"]),
                avg_fcp=_mean(samples["fcp"]),
                avg_lcp=_mean(samples["lcp"]),
                avg_fid=_mean(samples["fid"]),
                avg_cls=_mean(samples["cls"]),
                avg_ttfb=_mean(samples["ttfb"]),
                sample_count=max(len(samples["load"]), len(samples["fcp"]), len(samples["lcp"])),
            )
            for page_url, samples in self.performance.items()
        ]
        media = [
            MediaStat(
                media_url=media_url,
                media_type=bucket.media_type,
                page_url=bucket.page_url,
                plays=bucket.plays,
                completions=bucket.completions,
                reached_25=bucket.reached[25],
                reached_50=bucket.reached[50],
                reached_75=bucket.reached[75],
                reached_100=bucket.reached[100],
                unique_users=len(bucket.visitors),
            )
            for media_url, bucket in self.media.items()
        ]
        outbound = [
            OutboundStat(
                event_type=event_type,
                url=url,
                link_text=bucket.link_text,
                domain=bucket.domain,
                file_type=bucket.file_type,
                page_url=bucket.page_url,
                clicks=bucket.count,
                unique_users=len(bucket.visitors),
            )
            for (event_type, url), bucket in self.outbound.items()
        ]
        searches = [
            SearchStat(
                query=query,
                search_location=bucket.location,
                total_searches=bucket.count,
                avg_results_count=_mean(bucket.results),
                avg_results_clicked=_mean(bucket.results_clicked),
                zero_results_count=bucket.zero_results,
                unique_users=len(bucket.visitors),
            )
            for query, bucket in self.searches.items()
        ]
        custom_events = [
            CustomEventStat(
                event_name=name,
                category=category,
                label=label,
                page_url=bucket.page_url,
                count=bucket.count,
                total_value=float(bucket.total_value),
                unique_users=len(bucket.visitors),
            )
            for (name, category, label), bucket in self.custom.items()
        ]
        visitors = VisitorSummary(
            new_visitors=self.counters["new_visitors"],
            returning_visitors=self.counters["returning_visitors"],
            avg_days_since_last_visit=_mean(self.days_since_last_visit),
        )

        return AggregationResult(
            summary=summary,
            top_pages=_ranked(top_pages, "page_views", TOP_PAGES_LIMIT),
            referrers=_ranked(referrers, "visits", TOP_REFERRERS_LIMIT),
            devices=_ranked(devices, "visits"),
            event_types=_ranked(event_types, "count"),
            clicked_elements=_ranked(clicked_elements, "click_count", TOP_CLICKED_ELEMENTS_LIMIT),
            scroll_depth=_ranked(scroll_depth, "unique_users"),
            errors=_ranked(errors, "count", TOP_ERRORS_LIMIT),
            engagement=_ranked(engagement, "count"),
            traffic_sources=_ranked(traffic_sources, "sessions"),
            forms=_ranked(forms, "submissions"),
            performance=_ranked([row for row in performance if row.sample_count > 0], "sample_count"),
            media=_ranked(media, "plays"),
            outbound=_ranked(outbound, "clicks", TOP_OUTBOUND_LIMIT),
            searches=_ranked(searches, "total_searches", TOP_SEARCHES_LIMIT),
            custom_events=_ranked(custom_events, "count", TOP_CUSTOM_EVENTS_LIMIT),
            session_paths=_ranked(self._session_paths(), "total_sessions", TOP_LANDING_PAGES_LIMIT),
            visitors=visitors,
        )


def aggregate_events(events: Iterable[RawEventRecord]) -> AggregationResult:
    """Aggregate one project-day batch of raw events."""
    builder = _RollupBuilder()
    for event in events:
        builder.fold(event)
    return builder.finalize()
