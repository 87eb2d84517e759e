from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from indeks.services.event_store import RawEventRecord
from indeks.services.rollup_aggregator import (
    TOP_CLICKED_ELEMENTS_LIMIT,
    TOP_LANDING_PAGES_LIMIT,
    TOP_OUTBOUND_LIMIT,
    TOP_PAGES_LIMIT,
    aggregate_events,
    element_selector,
    visitor_id_for,
)

T0 = datetime(2026, 2, 9, 12, 0, tzinfo=timezone.utc)
IPHONE = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) Mobile/15E148 Safari/604.1"


def _event(event_type: str, *, seconds: float = 0, **fields) -> RawEventRecord:
    return RawEventRecord(event_type=event_type, timestamp=T0 + timedelta(seconds=seconds), **fields)


def _mixed_batch() -> list[RawEventRecord]:
    return [
        _event("pageview", url="/", session_id="s1", user_id="u1", referrer="https://google.com/x", user_agent=IPHONE),
        _event("pageview", seconds=30, url="/pricing", session_id="s1", user_id="u1", user_agent=IPHONE),
        _event("click", seconds=35, url="/pricing", session_id="s1", user_id="u1",
               metadata={"element": {"tagName": "BUTTON", "className": "btn primary", "textContent": "Buy"}}),
        _event("scroll", seconds=40, url="/pricing", session_id="s1", user_id="u1", metadata={"scrollPercentage": 80}),
        _event("pageview", seconds=5, url="/", session_id="s2", referrer="https://google.com/y"),
        _event("scroll_depth", seconds=9, url="/", session_id="s2", metadata='{"depth": 20}'),
        _event("error", seconds=10, url="/", session_id="s2", metadata={"error": {"message": "boom", "filename": "app.js"}}),
        _event("rage_click", seconds=11, url="/", session_id="s2", metadata={"element": "#cta", "whyRage": "no response"}),
        _event("dead_click", seconds=12, url="/", session_id="s2"),
        _event("custom_signup", seconds=13, url="/", session_id="s2"),
        _event("pageview", seconds=20, url="/docs"),
        _event("session_start", session_id="s1", user_id="u1",
               metadata={"trafficSource": "search", "utmSource": "google", "isNewUser": True, "landingPage": "/"}),
        _event("session_start", seconds=5, session_id="s2", metadata={"daysSinceLastVisit": 3}),
        _event("session_end", seconds=39, session_id="s1", user_id="u1", metadata={"converted": True}),
        _event("page_load", seconds=1, url="/", session_id="s1", user_id="u1", metadata={"loadTime": 900}),
        _event("performance", seconds=7, url="/", session_id="s2",
               metadata={"type": "largest_contentful_paint", "value": 1800}),
        _event("form_submit", seconds=36, url="/pricing", session_id="s1", user_id="u1", metadata={"formId": "checkout"}),
        _event("form_abandon", seconds=6, url="/", session_id="s2",
               metadata={"formId": "newsletter", "timeSpent": 4000, "fieldsCompleted": 1}),
        _event("media_play", seconds=31, url="/pricing", session_id="s1", user_id="u1",
               metadata={"element": {"tagName": "VIDEO", "src": "/demo.mp4"}}),
        _event("media_progress", seconds=32, url="/pricing", session_id="s1", user_id="u1",
               metadata={"element": {"tagName": "VIDEO", "src": "/demo.mp4"}, "progress": 50}),
        _event("outbound_link", seconds=8, url="/", session_id="s2",
               metadata={"url": "https://docs.example.com/start", "linkText": "Docs"}),
        _event("file_download", seconds=37, url="/pricing", session_id="s1", user_id="u1",
               metadata={"fileName": "price.pdf", "fileType": "pdf"}),
        _event("search", seconds=12.5, url="/", session_id="s2", metadata={"query": "pricing", "resultsCount": 0}),
        _event("custom", seconds=38, url="/pricing", session_id="s1", user_id="u1",
               metadata={"eventName": "signup", "category": "cta", "value": 5}),
    ]


def test_three_event_scenario():
    events = [
        _event("pageview", url="/a", session_id="s1"),
        _event("pageview", seconds=5, url="/a", session_id="s1"),
        _event("click", seconds=6, session_id="s1", metadata={"element": {"id": "buy"}}),
    ]

    result = aggregate_events(events)

    assert result.summary.page_views == 2
    assert result.summary.sessions == 1
    assert result.summary.unique_visitors == 1
    assert result.summary.total_clicks == 1
    assert result.summary.bounce_rate == 0
    assert result.summary.avg_session_duration == pytest.approx(6.0)
    assert [(p.url, p.page_views, p.unique_visitors) for p in result.top_pages] == [("/a", 2, 1)]
    assert [(c.element_selector, c.click_count) for c in result.clicked_elements] == [("#buy", 1)]


def test_reordering_batch_does_not_change_totals():
    batch = _mixed_batch()
    baseline = aggregate_events(batch)

    shuffled = list(batch)
    random.Random(7).shuffle(shuffled)
    reordered = aggregate_events(shuffled)

    assert reordered.summary == baseline.summary
    assert sorted(reordered.top_pages, key=lambda p: p.url) == sorted(baseline.top_pages, key=lambda p: p.url)
    assert set(reordered.event_types) == set(baseline.event_types)
    assert set(reordered.devices) == set(baseline.devices)
    assert set(reordered.referrers) == set(baseline.referrers)
    assert reordered.visitors == baseline.visitors
    for dimension in (
        "clicked_elements",
        "scroll_depth",
        "errors",
        "engagement",
        "traffic_sources",
        "forms",
        "performance",
        "media",
        "outbound",
        "searches",
        "custom_events",
        "session_paths",
    ):
        assert set(getattr(reordered, dimension)) == set(getattr(baseline, dimension)), dimension
        assert getattr(baseline, dimension), dimension


def test_session_duration_uses_min_and_max_regardless_of_order():
    events = [
        _event("click", seconds=50, session_id="s1"),
        _event("pageview", seconds=0, session_id="s1"),
        _event("scroll", seconds=20, session_id="s1"),
    ]
    assert aggregate_events(events).summary.avg_session_duration == pytest.approx(50.0)


def test_bounce_rate_boundaries():
    single = [_event("pageview", url="/", session_id="s1")]
    assert aggregate_events(single).summary.bounce_rate == pytest.approx(100.0)

    double = [
        _event("pageview", url="/", session_id="s1"),
        _event("pageview", seconds=3, url="/b", session_id="s1"),
    ]
    assert aggregate_events(double).summary.bounce_rate == 0

    mixed = single + [_event("pageview", url="/", session_id="s2"), _event("pageview", url="/c", session_id="s2")]
    assert aggregate_events(mixed).summary.bounce_rate == pytest.approx(50.0)


def test_empty_batch_yields_zeroes_not_errors():
    result = aggregate_events([])
    assert result.summary.sessions == 0
    assert result.summary.bounce_rate == 0
    assert result.summary.avg_session_duration == 0
    assert result.summary.avg_scroll_depth == 0
    assert result.top_pages == []


def test_session_without_pageview_is_not_a_bounce():
    events = [_event("click", session_id="s1"), _event("scroll", session_id="s1")]
    summary = aggregate_events(events).summary
    assert summary.sessions == 1
    assert summary.bounce_rate == 0


def test_visitor_identity_fallback():
    assert visitor_id_for(RawEventRecord(event_type="pageview", user_id="u1", session_id="s1")) == "u1"
    assert visitor_id_for(RawEventRecord(event_type="pageview", session_id="s1")) == "s1"
    assert visitor_id_for(RawEventRecord(event_type="pageview")) == "anonymous"

    events = [
        _event("pageview", url="/", session_id="s1"),
        _event("pageview", url="/", session_id="s1"),
        _event("pageview", url="/"),
    ]
    result = aggregate_events(events)
    assert result.summary.unique_visitors == 2
    assert result.summary.page_views == 3
    assert result.summary.sessions == 2
    assert result.top_pages[0].unique_visitors == 2


def test_unique_visitors_can_exceed_sessions():
    events = [
        _event("pageview", url="/", user_id="u1", session_id="s1"),
        _event("pageview", url="/", user_id="u2", session_id="s1"),
    ]
    summary = aggregate_events(events).summary
    assert summary.unique_visitors == 2
    assert summary.sessions == 1


def test_top_pages_truncated_to_fifty_highest():
    events = []
    for index in range(60):
        url = f"/page-{index}"
        events.extend(_event("pageview", url=url, session_id=f"s-{index}") for _ in range(60 - index))

    top_pages = aggregate_events(events).top_pages

    assert len(top_pages) == TOP_PAGES_LIMIT
    assert [page.url for page in top_pages] == [f"/page-{index}" for index in range(50)]
    assert [page.page_views for page in top_pages] == list(range(60, 10, -1))


def test_rank_ties_keep_first_encountered_order():
    events = [
        _event("pageview", url="/b"),
        _event("pageview", url="/a"),
        _event("pageview", url="/c"),
        _event("pageview", url="/c"),
    ]
    assert [page.url for page in aggregate_events(events).top_pages] == ["/c", "/b", "/a"]


def test_clicked_elements_capped_at_one_hundred():
    events = [
        _event("click", session_id="s1", metadata={"element": {"id": f"el-{index}"}})
        for index in range(120)
    ]
    result = aggregate_events(events)
    assert result.summary.total_clicks == 120
    assert len(result.clicked_elements) == TOP_CLICKED_ELEMENTS_LIMIT


@pytest.mark.parametrize(
    ("element", "expected"),
    [
        ({"id": "buy", "tagName": "BUTTON", "className": "btn"}, "#buy"),
        ({"tagName": "BUTTON", "className": "btn primary"}, "BUTTON.btn"),
        ({"tagName": "A"}, "A"),
        ({"tagName": "A", "className": "   "}, "A"),
        ({"className": {"baseVal": "icon"}, "tagName": "svg"}, "svg"),
        ({}, "unknown"),
    ],
)
def test_element_selector(element, expected):
    assert element_selector(element) == expected


def test_click_bucket_keeps_first_seen_details():
    events = [
        _event("click", url="/one", session_id="s1", metadata={"element": {"tagName": "A", "className": "nav", "textContent": "Home" * 40}}),
        _event("click", url="/two", session_id="s2", metadata={"element": {"tagName": "A", "className": "nav", "textContent": "Other"}}),
        _event("click", url="/two", session_id="s2", metadata={"element": {"tagName": "A", "className": "nav"}}),
    ]
    [element] = aggregate_events(events).clicked_elements
    assert element.element_selector == "A.nav"
    assert element.page_url == "/one"
    assert element.element_tag == "A"
    assert len(element.element_text) == 100
    assert element.click_count == 3
    assert element.unique_users == 2


def test_malformed_metadata_never_aborts_the_batch():
    events = [
        _event("click", session_id="s1", metadata="{broken"),
        _event("click", session_id="s1", metadata={"element": "not-a-dict"}),
        _event("scroll", session_id="s1", metadata={"scrollPercentage": "80"}),
        _event("scroll_depth", session_id="s1", metadata=["depth", 10]),
        _event("error", session_id="s1", metadata={"error": "string error"}),
    ]
    result = aggregate_events(events)
    assert result.summary.total_clicks == 2
    assert result.summary.total_scrolls == 1
    assert result.summary.total_errors == 1
    assert result.summary.avg_scroll_depth == 0
    assert result.clicked_elements == []
    assert result.errors[0].error_message == "Unknown error"


def test_mixed_batch_dimensions():
    result = aggregate_events(_mixed_batch())
    summary = result.summary

    assert summary.page_views == 4
    assert summary.sessions == 3  # s1, s2, unknown
    assert summary.unique_visitors == 3  # u1, s2, anonymous
    assert summary.total_scrolls == 1
    assert summary.avg_scroll_depth == pytest.approx(50.0)
    assert summary.total_errors == 1
    assert summary.rage_clicks == 1
    assert summary.dead_clicks == 1
    assert summary.error_clicks == 0
    assert summary.total_clicks == 1
    # s1 has 2 pageviews, s2 and unknown have 1 each
    assert summary.bounce_rate == pytest.approx(200.0 / 3)
    assert summary.avg_session_duration == pytest.approx((40 + 8 + 0) / 3)

    assert [(r.referrer, r.referrer_domain, r.visits) for r in result.referrers] == [
        ("https://google.com/x", "google.com", 1),
        ("https://google.com/y", "google.com", 1),
    ]
    assert [(d.device_type, d.browser, d.os, d.visits, d.unique_visitors) for d in result.devices] == [
        ("mobile", "Safari", "iOS", 2, 1)
    ]

    breakdown = {row.event_type: (row.count, row.unique_users) for row in result.event_types}
    assert breakdown["pageview"] == (4, 3)
    assert breakdown["custom_signup"] == (1, 1)
    assert result.event_types[0].event_type == "pageview"

    assert [(c.element_selector, c.element_text) for c in result.clicked_elements] == [("BUTTON.btn", "Buy")]


def test_scroll_depth_per_page():
    events = [
        _event("scroll", url="/long", session_id="s1", metadata={"scrollPercentage": 100}),
        _event("scroll", url="/long", session_id="s1", metadata={"scrollPercentage": 30}),
        _event("scroll_depth", url="/long", session_id="s2", metadata={"depth": 60}),
        _event("scroll_depth", session_id="s3", metadata={"depth": 10}),
    ]
    result = aggregate_events(events)

    assert result.summary.total_scrolls == 2
    assert result.summary.avg_scroll_depth == pytest.approx(50.0)
    by_page = {row.page_url: row for row in result.scroll_depth}
    long_page = by_page["/long"]
    assert (long_page.reached_25, long_page.reached_50, long_page.reached_75, long_page.reached_100) == (2, 2, 1, 1)
    assert long_page.unique_users == 2
    assert long_page.avg_scroll_depth == pytest.approx(190 / 3)
    assert by_page["unknown"].reached_25 == 0


def test_error_details_group_by_message_and_page():
    events = [
        _event("error", url="/", session_id="s1", metadata={"error": {"message": "x is undefined", "filename": "main.js"}}),
        _event("error", url="/", session_id="s2", metadata={"error": {"message": "x is undefined"}}),
        _event("resource_error", url="/", session_id="s1", metadata={"errorMessage": "img 404"}),
        _event("error", url="/", session_id="s1", metadata={"errorMessage": "y" * 150}),
    ]
    result = aggregate_events(events)

    assert result.summary.total_errors == 4
    top = result.errors[0]
    assert (top.error_message, top.error_type, top.filename, top.count, top.unique_users) == (
        "x is undefined",
        "javascript",
        "main.js",
        2,
        2,
    )
    types = {row.error_message: row.error_type for row in result.errors}
    assert types["img 404"] == "resource"
    assert "y" * 100 in types


def test_frustration_signals_group_by_selector_and_page():
    events = [
        _event("rage_click", url="/", session_id="s1", metadata={"element": "#cta", "whyRage": "nothing happened"}),
        _event("rage_click", url="/", session_id="s2", metadata={"element": "#cta"}),
        _event("dead_click", url="/", session_id="s1", metadata={"element": {"tagName": "DIV", "className": "card"}, "expectedBehavior": "link"}),
        _event("error_click", url="/about", session_id="s1"),
    ]
    result = aggregate_events(events)

    assert (result.summary.rage_clicks, result.summary.dead_clicks, result.summary.error_clicks) == (2, 1, 1)
    assert result.summary.total_clicks == 0
    rows = [(r.event_type, r.element_selector, r.page_url, r.count, r.unique_users, r.reason) for r in result.engagement]
    assert rows == [
        ("rage_click", "#cta", "/", 2, 2, "nothing happened"),
        ("dead_click", "DIV.card", "/", 1, 1, "link"),
        ("error_click", "unknown", "/about", 1, 1, ""),
    ]


def test_iso_string_timestamps_are_accepted():
    events = [
        RawEventRecord(event_type="pageview", session_id="s1", timestamp="2026-02-09T10:00:00Z"),
        RawEventRecord(event_type="pageview", session_id="s1", timestamp="2026-02-09T10:00:12"),
        RawEventRecord(event_type="click", session_id="s1", timestamp="garbage"),
    ]
    assert aggregate_events(events).summary.avg_session_duration == pytest.approx(12.0)


def test_script_and_resource_errors_with_same_message_stay_apart():
    events = [
        _event("error", url="/", session_id="s1", metadata={"errorMessage": "Failed to load"}),
        _event("resource_error", url="/", session_id="s2", metadata={"errorMessage": "Failed to load"}),
        _event("resource_error", url="/", session_id="s3", metadata={"errorMessage": "Failed to load"}),
    ]
    forward = aggregate_events(events)
    backward = aggregate_events(list(reversed(events)))

    rows = {(r.error_message, r.page_url, r.error_type): r.count for r in forward.errors}
    assert rows == {("Failed to load", "/", "javascript"): 1, ("Failed to load", "/", "resource"): 2}
    assert set(backward.errors) == set(forward.errors)


def test_mixed_batch_session_and_acquisition_dimensions():
    result = aggregate_events(_mixed_batch())

    assert [(t.traffic_source, t.utm_source, t.sessions, t.unique_visitors, t.conversions) for t in result.traffic_sources] == [
        ("search", "google", 1, 1, 1),
        ("direct", None, 1, 1, 0),
    ]
    assert (result.visitors.new_visitors, result.visitors.returning_visitors) == (1, 1)
    assert result.visitors.avg_days_since_last_visit == pytest.approx(3.0)

    paths = {p.landing_page: p for p in result.session_paths}
    home = paths["/"]
    # s1 exits on /pricing, s2 on /; ties resolve to the smallest URL
    assert (home.exit_page, home.total_sessions, home.bounces, home.conversions) == ("/", 2, 1, 1)
    assert home.avg_pages_per_session == pytest.approx(1.5)
    assert home.avg_duration == pytest.approx(24.0)
    assert (paths["/docs"].exit_page, paths["/docs"].total_sessions) == ("/docs", 1)
    assert result.session_paths[0].landing_page == "/"


def test_traffic_sources_group_by_utm_and_count_converted_sessions():
    campaign = {"trafficSource": "social", "utmSource": "twitter", "utmMedium": "post", "utmCampaign": "launch"}
    events = [
        _event("session_end", seconds=60, session_id="s2", metadata={"converted": True}),
        _event("session_start", session_id="s1", user_id="u1", metadata={**campaign, "isNewUser": True}),
        _event("session_start", session_id="s2", user_id="u2", metadata=campaign),
        _event("session_start", session_id="s3", user_id="u1"),
        _event("session_end", seconds=60, session_id="s3", metadata={"converted": False}),
    ]
    result = aggregate_events(events)

    assert [
        (t.traffic_source, t.utm_source, t.utm_medium, t.utm_campaign, t.sessions, t.unique_visitors, t.conversions)
        for t in result.traffic_sources
    ] == [
        ("social", "twitter", "post", "launch", 2, 2, 1),
        ("direct", None, None, None, 1, 1, 0),
    ]


def test_visitor_summary_averages_days_for_returning_visitors_only():
    events = [
        _event("session_start", session_id="s1", metadata={"isNewUser": True, "daysSinceLastVisit": 40}),
        _event("session_start", session_id="s2", metadata={"daysSinceLastVisit": 2}),
        _event("session_start", session_id="s3", metadata={"isNewUser": False, "daysSinceLastVisit": 6}),
        _event("session_start", session_id="s4", metadata={"daysSinceLastVisit": "7"}),
    ]
    visitors = aggregate_events(events).visitors

    assert (visitors.new_visitors, visitors.returning_visitors) == (1, 3)
    assert visitors.avg_days_since_last_visit == pytest.approx(4.0)


def test_visitor_summary_is_zero_without_session_starts():
    visitors = aggregate_events([_event("pageview", url="/", session_id="s1")]).visitors
    assert (visitors.new_visitors, visitors.returning_visitors, visitors.avg_days_since_last_visit) == (0, 0, 0)


def test_session_paths_use_declared_landing_page_and_timestamps():
    events = [
        _event("pageview", seconds=30, url="/b", session_id="s1"),
        _event("pageview", seconds=10, url="/a", session_id="s1"),
        _event("pageview", seconds=50, url="/c", session_id="s1"),
        _event("session_start", seconds=0, session_id="s2", metadata={"landingPage": "/promo"}),
        _event("pageview", seconds=5, url="/b", session_id="s2"),
    ]
    paths = {p.landing_page: p for p in aggregate_events(events).session_paths}

    assert (paths["/a"].exit_page, paths["/a"].avg_pages_per_session, paths["/a"].bounces) == ("/c", 3, 0)
    assert paths["/a"].avg_duration == pytest.approx(40.0)
    assert (paths["/promo"].exit_page, paths["/promo"].bounces) == ("/b", 1)


def test_session_paths_capped_at_landing_page_limit():
    events = [
        _event("pageview", url=f"/land-{index}", session_id=f"s-{index}-{copy}")
        for index in range(60)
        for copy in range(60 - index)
    ]
    paths = aggregate_events(events).session_paths
    assert len(paths) == TOP_LANDING_PAGES_LIMIT
    assert paths[0].landing_page == "/land-0"


def test_form_events_by_form_id():
    events = [
        _event("form_submit", url="/contact", session_id="s1", metadata={"formId": "contact"}),
        _event("form_submit", url="/contact", session_id="s2", metadata={"element": {"id": "contact"}}),
        _event("form_abandon", url="/contact", session_id="s3", metadata={"formId": "contact", "timeSpent": 3000, "fieldsCompleted": 2}),
        _event("form_abandon", url="/contact", session_id="s3", metadata={"formId": "contact", "timeSpent": 5000, "fieldsCompleted": 4}),
        _event("form_error", url="/contact", session_id="s1", metadata={"formId": "contact"}),
        _event("form_error", url="/signup", session_id="s1", metadata={"element": {"id": "signup"}}),
    ]
    forms = {f.form_id: f for f in aggregate_events(events).forms}

    contact = forms["contact"]
    assert (contact.submissions, contact.abandonments, contact.errors, contact.unique_users) == (2, 2, 1, 3)
    assert contact.avg_time_to_complete == pytest.approx(4000.0)
    assert contact.avg_fields_completed == pytest.approx(3.0)
    # only submits read the element id
    assert (forms["unknown-form"].errors, forms["unknown-form"].page_url) == (1, "/signup")


def test_performance_averages_per_page_and_drops_empty_pages():
    events = [
        _event("page_load", url="/", session_id="s1", metadata={"loadTime": 1000}),
        _event("page_load", url="/", session_id="s2", metadata={"loadTime": 2000}),
        _event("performance", url="/", session_id="s1", metadata={"type": "first_contentful_paint", "value": 400}),
        _event("performance", url="/", session_id="s1", metadata={"type": "cumulative_layout_shift", "value": 0.1}),
        _event("performance", url="/", session_id="s1", metadata={"type": "time_to_first_byte", "value": 120}),
        _event("performance", session_id="s1", metadata={"type": "largest_contentful_paint", "value": 2500}),
        _event("performance", url="/fid-only", session_id="s1", metadata={"type": "first_input_delay", "value": 8}),
    ]
    rows = {p.page_url: p for p in aggregate_events(events).performance}

    assert set(rows) == {"/", "unknown"}
    home = rows["/"]
    assert home.sample_count == 2
    assert home.avg_load_time == pytest.approx(1500.0)
    assert (home.avg_fcp, home.avg_cls, home.avg_ttfb, home.avg_lcp) == (
        pytest.approx(400.0),
        pytest.approx(0.1),
        pytest.approx(120.0),
        0,
    )
    assert (rows["unknown"].avg_lcp, rows["unknown"].sample_count) == (pytest.approx(2500.0), 1)


def test_media_plays_completions_and_progress():
    video = {"tagName": "VIDEO", "src": "/intro.mp4"}
    events = [
        _event("media_play", url="/", session_id="s1", metadata={"element": video}),
        _event("media_play", url="/", session_id="s2", metadata={"element": video}),
        _event("media_progress", url="/", session_id="s1", metadata={"element": video, "progress": 75}),
        _event("media_progress", url="/", session_id="s2", metadata={"element": video, "progress": 30}),
        _event("media_ended", url="/", session_id="s1", metadata={"element": video}),
        _event("media_pause", url="/", session_id="s3", metadata={"mediaUrl": "/podcast.mp3"}),
    ]
    media = {m.media_url: m for m in aggregate_events(events).media}

    intro = media["/intro.mp4"]
    assert (intro.media_type, intro.plays, intro.completions, intro.unique_users) == ("video", 2, 1, 2)
    assert (intro.reached_25, intro.reached_50, intro.reached_75, intro.reached_100) == (2, 1, 1, 0)
    assert intro.avg_watch_time == 0
    assert (media["/podcast.mp3"].plays, media["/podcast.mp3"].media_type) == (0, "video")


def test_outbound_links_and_downloads():
    events = [
        _event("outbound_link", url="/", session_id="s1", metadata={"url": "https://partner.io/x", "linkText": "Partner"}),
        _event("outbound_link", url="/", session_id="s2", metadata={"url": "https://partner.io/x"}),
        _event("outbound_link", url="/", session_id="s2", metadata={"url": "https://a.dev", "domain": "a.dev"}),
        _event("file_download", url="/docs", session_id="s1", metadata={"downloadUrl": "/files/guide.pdf", "fileName": "guide.pdf", "fileType": "pdf"}),
        _event("file_download", url="/docs", session_id="s1", metadata={"fileName": "notes.txt"}),
    ]
    rows = {(o.event_type, o.url): o for o in aggregate_events(events).outbound}

    partner = rows[("outbound_link", "https://partner.io/x")]
    assert (partner.link_text, partner.domain, partner.clicks, partner.unique_users) == ("Partner", "partner.io", 2, 2)
    assert rows[("outbound_link", "https://a.dev")].domain == "a.dev"
    guide = rows[("file_download", "/files/guide.pdf")]
    assert (guide.link_text, guide.domain, guide.file_type, guide.page_url) == ("guide.pdf", "", "pdf", "/docs")
    assert ("file_download", "notes.txt") in rows


def test_outbound_capped_at_one_hundred():
    events = [
        _event("outbound_link", session_id="s1", metadata={"url": f"https://site-{index}.com"})
        for index in range(130)
    ]
    assert len(aggregate_events(events).outbound) == TOP_OUTBOUND_LIMIT


def test_search_queries_track_results():
    events = [
        _event("search", session_id="s1", metadata={"query": "shoes", "searchLocation": "header", "resultsCount": 12, "resultsClicked": 2}),
        _event("search", session_id="s2", metadata={"query": "shoes", "resultsCount": 0, "resultsClicked": 0}),
        _event("search", session_id="s2", metadata={"query": "hats"}),
        _event("search", session_id="s3", metadata={"query": ""}),
    ]
    searches = {s.query: s for s in aggregate_events(events).searches}

    assert set(searches) == {"shoes", "hats"}
    shoes = searches["shoes"]
    assert (shoes.search_location, shoes.total_searches, shoes.zero_results_count, shoes.unique_users) == (
        "header",
        2,
        1,
        2,
    )
    assert shoes.avg_results_count == pytest.approx(6.0)
    assert shoes.avg_results_clicked == pytest.approx(1.0)
    assert (searches["hats"].search_location, searches["hats"].avg_results_count) == ("unknown", 0)


def test_custom_events_sum_numeric_values():
    events = [
        _event("custom", url="/", session_id="s1", metadata={"eventName": "purchase", "category": "shop", "value": 20}),
        _event("custom", url="/", session_id="s2", metadata={"eventName": "purchase", "category": "shop", "value": 12.5}),
        _event("custom", url="/", session_id="s2", metadata={"eventName": "purchase", "category": "shop", "value": "n/a"}),
        _event("custom", url="/", session_id="s3", metadata={"category": "misc", "label": "x"}),
    ]
    rows = aggregate_events(events).custom_events

    assert [(c.event_name, c.category, c.label, c.count, c.unique_users) for c in rows] == [
        ("purchase", "shop", "", 3, 2),
        ("unknown", "misc", "x", 1, 1),
    ]
    assert rows[0].total_value == pytest.approx(32.5)
