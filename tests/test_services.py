"""Tests for the link registry, redirect resolver and analytics services."""

import logging
import sqlite3
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from shortlink.core.config import Settings
from shortlink.core.database import Database
from shortlink.core.errors import Conflict, Internal, InvalidInput, NotFound
from shortlink.services import (
    AnalyticsService,
    LinkRegistry,
    RedirectResolver,
    RequestMetadata,
)

from .conftest import DESKTOP_UA, IPHONE_UA


def run_inline(fn, *args):
    """Dispatcher that runs background work immediately."""
    fn(*args)


class TaskQueue:
    """Dispatcher that holds background work until told to run it."""

    def __init__(self):
        self.tasks = []

    def __call__(self, fn, *args):
        self.tasks.append((fn, args))

    def run_all(self):
        while self.tasks:
            fn, args = self.tasks.pop(0)
            fn(*args)


class CollidingStore:
    """Fake store reporting the first ``collisions`` candidates as taken."""

    def __init__(self, collisions):
        self.collisions = collisions
        self.checked = []
        self.created = []

    def short_code_exists(self, short_code):
        self.checked.append(short_code)
        return len(self.checked) <= self.collisions

    def create_link(self, short_code, original_url, title=None, description=None, expires_at=None):
        link = {"id": "x", "short_code": short_code, "original_url": original_url}
        self.created.append(link)
        return link


class RejectingStore(CollidingStore):
    """Fake store whose unique constraint rejects the first ``rejections`` inserts."""

    def __init__(self, rejections):
        super().__init__(collisions=0)
        self.rejections = rejections
        self.attempted = 0

    def create_link(self, short_code, *args, **kwargs):
        self.attempted += 1
        if self.attempted <= self.rejections:
            return None
        return super().create_link(short_code, *args, **kwargs)


def counting_generator(lengths):
    """Code generator that records the requested lengths."""

    def generate(length):
        lengths.append(length)
        return f"{len(lengths):0{length}d}"

    return generate


@pytest.fixture
def settings():
    return Settings(_env_file=None, database_url=":memory:")


@pytest.fixture
def registry(test_db, settings):
    return LinkRegistry(test_db, settings)


class TestCodeGeneration:
    """Tests for bounded, length-escalating code generation."""

    def test_retries_after_collisions(self, settings):
        """Test a few collisions are retried at the default length."""
        store = CollidingStore(collisions=2)
        lengths = []
        registry = LinkRegistry(store, settings, counting_generator(lengths))

        link = registry.create("https://example.com")

        assert lengths == [6, 6, 6]
        assert link["short_code"] == store.checked[-1]
        assert len(store.created) == 1

    def test_escalates_length(self, settings):
        """Test the code length grows once a length's attempts are spent."""
        store = CollidingStore(collisions=4)
        lengths = []
        registry = LinkRegistry(store, settings, counting_generator(lengths))

        link = registry.create("https://example.com")

        assert lengths == [6, 6, 6, 7, 7]
        assert len(link["short_code"]) == 7

    def test_gives_up_after_attempt_budget(self, settings):
        """Test generation fails with Internal instead of looping forever."""
        store = CollidingStore(collisions=10_000)
        lengths = []
        registry = LinkRegistry(store, settings, counting_generator(lengths))

        with pytest.raises(Internal):
            registry.create("https://example.com")

        assert lengths == [6, 6, 6, 7, 7, 7, 8, 8, 8]
        assert store.created == []

    def test_attempt_budget_is_configurable(self):
        settings = Settings(_env_file=None, code_generation_attempts=1)
        store = CollidingStore(collisions=10_000)
        lengths = []
        registry = LinkRegistry(store, settings, counting_generator(lengths))

        with pytest.raises(Internal):
            registry.create("https://example.com")
        assert lengths == [6, 7, 8]

    def test_constraint_rejection_triggers_retry(self, settings):
        """Test a unique constraint violation on insert counts as a collision."""
        store = RejectingStore(rejections=1)
        lengths = []
        registry = LinkRegistry(store, settings, counting_generator(lengths))

        registry.create("https://example.com")

        assert store.attempted == 2
        assert lengths == [6, 6]

    def test_validation_happens_before_store(self, settings):
        store = MagicMock(spec=Database)
        registry = LinkRegistry(store, settings)

        with pytest.raises(InvalidInput):
            registry.create("ftp://x")
        with pytest.raises(InvalidInput):
            registry.create("https://example.com", short_code="bad!")

        store.short_code_exists.assert_not_called()
        store.create_link.assert_not_called()

    def test_unrepresentable_expiry_rejected_before_store(self, settings):
        store = MagicMock(spec=Database)
        registry = LinkRegistry(store, settings)
        expires_at = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone(timedelta(hours=-5)))

        with pytest.raises(InvalidInput):
            registry.create("https://example.com", expires_at=expires_at)

        store.short_code_exists.assert_not_called()
        store.create_link.assert_not_called()


class TestLinkRegistry:
    """Tests for the registry against a real database."""

    def test_create_and_get(self, registry):
        link = registry.create(
            " https://example.com/path ", title="Example", description="An example"
        )
        assert link["original_url"] == "https://example.com/path"
        assert link["clicks"] == 0
        assert link["is_active"] == 1

        fetched = registry.get(link["short_code"])
        assert fetched["id"] == link["id"]
        assert fetched["title"] == "Example"

    def test_get_not_found(self, registry):
        with pytest.raises(NotFound):
            registry.get("nope123")
        with pytest.raises(NotFound):
            registry.get("bad!")

    def test_custom_code_conflict(self, registry):
        registry.create("https://example.com", short_code="taken1")
        with pytest.raises(Conflict):
            registry.create("https://example.org", short_code="taken1")

    def test_conflict_from_store_constraint(self, registry, test_db, monkeypatch):
        """Test the unique constraint catches a create that slipped past the pre-check."""
        registry.create("https://example.com", short_code="race01")
        monkeypatch.setattr(test_db, "short_code_exists", lambda code: False)

        with pytest.raises(Conflict):
            registry.create("https://example.org", short_code="race01")

    def test_concurrent_custom_code_creates(self, registry):
        """Test concurrent creates of one custom code yield one success."""

        def attempt(i):
            try:
                registry.create(f"https://example.com/{i}", short_code="samecd")
                return "created"
            except Conflict:
                return "conflict"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(16)))

        assert outcomes.count("created") == 1
        assert outcomes.count("conflict") == 15

    def test_concurrent_generated_codes_are_unique(self, registry):
        with ThreadPoolExecutor(max_workers=8) as pool:
            links = list(pool.map(lambda i: registry.create(f"https://e.com/{i}"), range(40)))

        codes = {link["short_code"] for link in links}
        assert len(codes) == 40

    def test_list_links(self, registry):
        for i in range(3):
            registry.create(f"https://example.com/{i}", short_code=f"list00{i}")

        links, pagination = registry.list_links(page=1, limit=2)
        assert [link["short_code"] for link in links] == ["list002", "list001"]
        assert pagination == {"page": 1, "limit": 2, "total": 3, "pages": 2}

    def test_list_links_limit_clamped(self, registry):
        _, pagination = registry.list_links(limit=1000)
        assert pagination["limit"] == 100

    def test_delete(self, registry):
        registry.create("https://example.com", short_code="delme1")
        registry.delete("delme1")

        assert registry.get("delme1")["is_active"] == 0
        with pytest.raises(NotFound):
            registry.delete("delme1")

    def test_delete_unknown(self, registry):
        with pytest.raises(NotFound):
            registry.delete("nope123")


class TestRedirectResolver:
    """Tests for resolving codes and recording clicks."""

    def test_resolve_active_link(self, registry, test_db):
        registry.create("https://example.com", short_code="go1234")
        queue = TaskQueue()
        resolver = RedirectResolver(test_db, dispatch=queue)

        target = resolver.resolve("go1234", RequestMetadata(user_agent=DESKTOP_UA))

        assert target.url == "https://example.com"
        assert target.clicks == 1
        # Click event is only scheduled, not yet written
        link = registry.get("go1234")
        assert test_db.count_click_events(link["id"]) == 0
        assert len(queue.tasks) == 1

        queue.run_all()
        events = test_db.get_click_events(link["id"])
        assert len(events) == 1
        assert events[0]["device_type"] == "Desktop"
        assert events[0]["browser"] == "Chrome"
        assert events[0]["os"].startswith("Windows")

    def test_resolve_unknown(self, test_db):
        resolver = RedirectResolver(test_db, dispatch=run_inline)
        with pytest.raises(NotFound):
            resolver.resolve("nope123", RequestMetadata())

    def test_resolve_invalid_format_skips_store(self):
        db = MagicMock(spec=Database)
        resolver = RedirectResolver(db, dispatch=run_inline)

        with pytest.raises(NotFound):
            resolver.resolve("no", RequestMetadata())
        db.get_link_by_code.assert_not_called()

    def test_resolve_deleted(self, registry, test_db):
        registry.create("https://example.com", short_code="dead12")
        registry.delete("dead12")
        queue = TaskQueue()
        resolver = RedirectResolver(test_db, dispatch=queue)

        with pytest.raises(NotFound):
            resolver.resolve("dead12", RequestMetadata())
        assert queue.tasks == []
        assert registry.get("dead12")["clicks"] == 0

    def test_resolve_expired(self, registry, test_db):
        past = datetime.now(timezone.utc) - timedelta(seconds=1)
        registry.create("https://example.com", short_code="old123", expires_at=past)
        resolver = RedirectResolver(test_db, dispatch=run_inline)

        with pytest.raises(NotFound):
            resolver.resolve("old123", RequestMetadata())
        assert registry.get("old123")["clicks"] == 0

    def test_resolve_deleted_after_lookup(self):
        """Test a link deleted between lookup and increment is not found."""
        db = MagicMock(spec=Database)
        db.get_link_by_code.return_value = {
            "id": "abc",
            "short_code": "race12",
            "original_url": "https://example.com",
            "is_active": 1,
            "expires_at": None,
        }
        db.increment_clicks.return_value = None
        queue = TaskQueue()
        resolver = RedirectResolver(db, dispatch=queue)

        with pytest.raises(NotFound):
            resolver.resolve("race12", RequestMetadata())
        assert queue.tasks == []

    def test_concurrent_resolves_count_every_click(self, registry, test_db):
        """Test N concurrent resolves add exactly N clicks and N events."""
        link = registry.create("https://example.com", short_code="busy12")
        resolver = RedirectResolver(test_db, dispatch=run_inline)
        n = 50

        with ThreadPoolExecutor(max_workers=10) as pool:
            targets = list(
                pool.map(
                    lambda i: resolver.resolve(
                        "busy12", RequestMetadata(ip_address=f"10.0.0.{i}")
                    ),
                    range(n),
                )
            )

        assert sorted(t.clicks for t in targets) == list(range(1, n + 1))
        assert registry.get("busy12")["clicks"] == n
        assert test_db.count_click_events(link["id"]) == n

    def test_resolve_racing_delete(self, registry, test_db):
        """Test every resolve after a delete fails, whatever ran before it."""
        registry.create("https://example.com", short_code="race99")
        resolver = RedirectResolver(test_db, dispatch=run_inline)

        def resolve(_):
            try:
                resolver.resolve("race99", RequestMetadata())
                return True
            except NotFound:
                return False

        with ThreadPoolExecutor(max_workers=4) as pool:
            futures = [pool.submit(resolve, i) for i in range(20)]
            registry.delete("race99")
            results = [f.result() for f in futures]

        assert registry.get("race99")["clicks"] == sum(results)
        assert resolve(None) is False

    def test_record_click_failure_is_logged(self, caplog):
        db = MagicMock(spec=Database)
        db.create_click_event.side_effect = sqlite3.OperationalError("database is locked")
        resolver = RedirectResolver(db, dispatch=run_inline)

        with caplog.at_level(logging.ERROR):
            resolver.record_click("abc", RequestMetadata(user_agent=IPHONE_UA))

        assert "Dropped click event" in caplog.text


class TestAnalyticsService:
    """Tests for click summaries and event paging."""

    def test_summary(self, registry, test_db, settings):
        registry.create("https://example.com", short_code="anal01")
        resolver = RedirectResolver(test_db, dispatch=run_inline)
        resolver.resolve("anal01", RequestMetadata(user_agent=IPHONE_UA))
        resolver.resolve("anal01", RequestMetadata(user_agent=DESKTOP_UA))
        resolver.resolve("anal01", RequestMetadata())

        summary = AnalyticsService(test_db, settings).summary("anal01")

        assert summary["total_clicks"] == 3
        assert summary["recorded_events"] == 3
        assert summary["devices"] == {"Mobile": 1, "Desktop": 1, "Unknown": 1}
        assert summary["browsers"]["Chrome"] == 1

    def test_events_unknown_code(self, test_db, settings):
        with pytest.raises(NotFound):
            AnalyticsService(test_db, settings).events("nope123")

    def test_events_bad_range(self, registry, test_db, settings):
        registry.create("https://example.com", short_code="anal02")
        now = datetime.now(timezone.utc)
        with pytest.raises(InvalidInput):
            AnalyticsService(test_db, settings).events(
                "anal02", start_date=now, end_date=now - timedelta(days=1)
            )
