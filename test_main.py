# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
Tests for the Hotline Service: voice webhooks, admin API, forward store,
scheduled refresh, and the refresh CLI.
"""

import json
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from main import app
from hotline.cli import main as refresh_main
from hotline.core.config import HotlineConfig
from hotline.core.database import make_engine
from hotline.core.dependencies import (
    get_admin_api_token,
    get_forward_repo,
    get_hotline_config,
    get_schedule,
)
from hotline.models.domain import Schedule, Volunteer, WeekdayRoster
from hotline.repositories.forward_state_repository import (
    ForwardStateRepository,
    ForwardStoreError,
)
from hotline.services.forward_service import ForwardService

ADMIN = "+12066058551"
PUBLIC = "+14145550000"
DEFAULT_NUMBER = "+19205559999"
CALLER_ID = "+19205550000"
GREETING = "https://example.org/hotline-greeting.wav"

VOL_A = Volunteer(name="Alice", phone="+19205550001")
VOL_B = Volunteer(name="Bob", phone="+19205550002")
VOL_C = Volunteer(name="Carol", phone="+19205550003")

SCHEDULE = Schedule(
    timezone="America/Chicago",
    days=(WeekdayRoster(key="friday", callers=(VOL_A, VOL_B, VOL_C)),),
)
CONFIG = HotlineConfig(
    default_forward_number=DEFAULT_NUMBER,
    caller_id=CALLER_ID,
    admin_numbers=frozenset({ADMIN}),
    shift_change_hour=17,
    greeting_audio_url=GREETING,
)

# Friday Mar 20 2026, 18:00 CDT: third Friday, week index 2
THIRD_FRIDAY_EVENING = datetime(2026, 3, 20, 23, 0, tzinfo=timezone.utc)
# Tuesday Mar 17 2026, 18:00 CDT: no roster
TUESDAY_EVENING = datetime(2026, 3, 17, 23, 0, tzinfo=timezone.utc)

engine = make_engine("sqlite://")
forward_repo = ForwardStateRepository(engine)
forward_repo.ensure_schema()

client = TestClient(app)


# ============================================
# Fixtures & helpers
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Fresh store and dependency wiring for every test."""
    with engine.begin() as conn:
        conn.execute(text("DELETE FROM forward_state"))
    app.dependency_overrides[get_hotline_config] = lambda: CONFIG
    app.dependency_overrides[get_schedule] = lambda: SCHEDULE
    app.dependency_overrides[get_forward_repo] = lambda: forward_repo
    app.dependency_overrides[get_admin_api_token] = lambda: ""
    yield
    app.dependency_overrides.clear()


def frozen_now(moment):
    """Pin the clock the forward service reads."""
    mocked = patch("hotline.services.forward_service.datetime")
    fake = mocked.start()
    fake.now.return_value = moment
    return mocked


def twiml(response):
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    return ET.fromstring(response.content)


def tags(root):
    return [el.tag for el in root]


def spoken(root):
    return " ".join(el.text or "" for el in root.iter("Say"))


def dialed(root):
    dial = root.find("Dial")
    assert dial is not None
    return dial.text.strip()


def make_service(config=CONFIG):
    return ForwardService(forward_repo, SCHEDULE, config)


# ============================================
# Health & Metrics
# ============================================
class TestHealth:
    def test_health_returns_ok(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "timestamp" in data

    def test_readiness(self):
        response = client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["timezone"] == "America/Chicago"
        assert data["weekdays_scheduled"] == ["friday"]

    def test_readiness_store_down(self):
        with patch.object(forward_repo, "ping", return_value=False):
            response = client.get("/health/ready")
        assert response.status_code == 503


class TestRequestID:
    def test_request_id_generated(self):
        response = client.get("/health")
        assert len(response.headers.get("X-Request-ID", "")) > 0

    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "call-123"})
        assert response.headers["X-Request-ID"] == "call-123"


class TestMetrics:
    def test_metrics_endpoint(self):
        client.post("/", data={"From": PUBLIC})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "hotline_calls_total" in response.text
        assert "hotline_requests_total" in response.text


# ============================================
# Initial state
# ============================================
class TestInitial:
    def test_public_caller_is_forwarded_to_default(self):
        root = twiml(client.post("/", data={"From": PUBLIC}))
        assert tags(root) == ["Play", "Pause", "Dial"]
        assert root.find("Play").text == GREETING
        assert dialed(root) == DEFAULT_NUMBER

    def test_dial_attributes(self):
        root = twiml(client.post("/", data={"From": PUBLIC}))
        dial = root.find("Dial")
        assert dial.get("callerId") == CALLER_ID
        assert dial.get("answerOnBridge") == "true"
        assert dial.get("timeout") == "25"

    def test_public_caller_is_forwarded_to_stored_number(self):
        forward_repo.put(VOL_B.phone, "schedule")
        root = twiml(client.post("/", data={"From": PUBLIC}))
        assert dialed(root) == VOL_B.phone

    def test_admin_gets_menu(self):
        forward_repo.put(VOL_A.phone, "schedule")
        root = twiml(client.post("/", data={"From": ADMIN}))
        assert tags(root) == ["Gather", "Say", "Play", "Pause", "Dial"]
        gather = root.find("Gather")
        assert gather.get("action") == "/menu"
        assert gather.get("method") == "POST"
        assert gather.get("numDigits") == "1"
        assert "Press 9" in gather.find("Say").text
        assert "Press 2" in gather.find("Say").text
        assert dialed(root) == VOL_A.phone

    def test_say_uses_configured_voice(self):
        root = twiml(client.post("/", data={"From": ADMIN}))
        assert root.find("Gather/Say").get("voice") == "Polly.Joanna"

    def test_missing_fields_are_public(self):
        root = twiml(client.post("/"))
        assert root.find("Gather") is None
        assert dialed(root) == DEFAULT_NUMBER

    def test_no_number_anywhere_hangs_up(self):
        app.dependency_overrides[get_hotline_config] = lambda: CONFIG.model_copy(
            update={"default_forward_number": ""}
        )
        root = twiml(client.post("/", data={"From": PUBLIC}))
        assert root.find("Dial") is None
        assert root.find("Hangup") is not None

    def test_greeting_can_be_disabled(self):
        app.dependency_overrides[get_hotline_config] = lambda: CONFIG.model_copy(
            update={"greeting_audio_url": ""}
        )
        root = twiml(client.post("/", data={"From": PUBLIC}))
        assert tags(root) == ["Pause", "Dial"]

    def test_store_read_failure_uses_default(self):
        forward_repo.put(VOL_A.phone, "schedule")
        with patch.object(forward_repo, "get", side_effect=ForwardStoreError("down")):
            root = twiml(client.post("/", data={"From": PUBLIC}))
        assert dialed(root) == DEFAULT_NUMBER


# ============================================
# Menu state
# ============================================
class TestMenu:
    def test_digit_one_forwards(self):
        forward_repo.put(VOL_B.phone, "schedule")
        root = twiml(client.post("/menu", data={"From": ADMIN, "Digits": "1"}))
        assert tags(root) == ["Play", "Pause", "Dial"]
        assert dialed(root) == VOL_B.phone

    def test_empty_digits_forwards(self):
        root = twiml(client.post("/menu", data={"From": ADMIN, "Digits": ""}))
        assert dialed(root) == DEFAULT_NUMBER

    def test_unknown_digit_forwards(self):
        root = twiml(client.post("/menu", data={"From": ADMIN, "Digits": "7"}))
        assert dialed(root) == DEFAULT_NUMBER

    def test_digit_nine_prompts_for_number(self):
        root = twiml(client.post("/menu", data={"From": ADMIN, "Digits": "9"}))
        gather = root.find("Gather")
        assert gather.get("action") == "/admin-set-number"
        assert gather.get("finishOnKey") == "#"
        assert gather.get("input") == "dtmf"
        assert gather.get("timeout") == "15"
        assert "ten digit phone number" in gather.find("Say").text
        assert dialed(root) == DEFAULT_NUMBER

    def test_digit_two_announces_current_and_next(self):
        forward_repo.put(VOL_C.phone, "schedule")
        mocked = frozen_now(THIRD_FRIDAY_EVENING)
        try:
            root = twiml(client.post("/menu", data={"From": ADMIN, "Digits": "2"}))
        finally:
            mocked.stop()
        assert tags(root) == ["Say", "Pause", "Redirect"]
        text_spoken = spoken(root)
        assert "currently on call is Carol" in text_spoken
        assert "next scheduled volunteer is Alice" in text_spoken
        assert "forwarded to Carol" in text_spoken
        redirect = root.find("Redirect")
        assert redirect.text == "/"
        assert redirect.get("method") == "POST"

    def test_digit_two_without_roster(self):
        mocked = frozen_now(TUESDAY_EVENING)
        try:
            root = twiml(client.post("/menu", data={"From": ADMIN, "Digits": "2"}))
        finally:
            mocked.stop()
        text_spoken = spoken(root)
        assert "No volunteer is scheduled for the current shift" in text_spoken
        assert "No volunteer is scheduled for the next shift" in text_spoken
        assert "9 2 0 5 5 5 9 9 9 9" in text_spoken


# ============================================
# SetNumber state
# ============================================
class TestSetNumber:
    def test_ten_digits_stored(self):
        root = twiml(client.post("/admin-set-number", data={"From": ADMIN, "Digits": "2025551234"}))
        assert forward_repo.get() == "+12025551234"
        assert dialed(root) == "+12025551234"
        assert "2 0 2 5 5 5 1 2 3 4" in spoken(root)
        assert tags(root) == ["Say", "Pause", "Dial"]

    def test_eleven_digits_stored(self):
        client.post("/admin-set-number", data={"From": ADMIN, "Digits": "12025551234"})
        assert forward_repo.get() == "+12025551234"
        assert forward_repo.get_record()["source"] == "admin"

    def test_volunteer_number_is_announced_by_name(self):
        root = twiml(client.post("/admin-set-number", data={"From": ADMIN, "Digits": "9205550002"}))
        assert "forwarded to Bob" in spoken(root)
        assert forward_repo.get() == VOL_B.phone

    @pytest.mark.parametrize("digits", ["555-1234", "5551234", "202555123", ""])
    def test_invalid_number_keeps_previous(self, digits):
        forward_repo.put(VOL_A.phone, "schedule")
        root = twiml(client.post("/admin-set-number", data={"From": ADMIN, "Digits": digits}))
        assert "not recognized" in spoken(root)
        assert dialed(root) == VOL_A.phone
        assert forward_repo.get() == VOL_A.phone
        assert forward_repo.get_record()["source"] == "schedule"

    def test_invalid_number_announces_previous_volunteer(self):
        forward_repo.put(VOL_A.phone, "schedule")
        root = twiml(client.post("/admin-set-number", data={"From": ADMIN, "Digits": "5551234"}))
        assert "Keeping the existing forwarding number, Alice." in spoken(root)
        assert dialed(root) == VOL_A.phone

    def test_invalid_number_spells_out_unknown_previous(self):
        forward_repo.put("+12025551234", "admin")
        root = twiml(client.post("/admin-set-number", data={"From": ADMIN, "Digits": "123"}))
        assert "1 2 0 2 5 5 5 1 2 3 4" in spoken(root)
        assert dialed(root) == "+12025551234"

    def test_store_write_failure_connects_to_default(self):
        forward_repo.put(VOL_A.phone, "schedule")
        with patch.object(forward_repo, "put", side_effect=ForwardStoreError("down")):
            root = twiml(client.post(
                "/admin-set-number", data={"From": ADMIN, "Digits": "2025551234"},
            ))
        assert "could not be saved" in spoken(root)
        assert dialed(root) == DEFAULT_NUMBER
        assert forward_repo.get() == VOL_A.phone


# ============================================
# Authorization
# ============================================
class TestNonAdmin:
    @pytest.mark.parametrize("path", ["/", "/menu", "/admin-set-number"])
    @pytest.mark.parametrize("digits", ["", "1", "2", "9", "2025551234"])
    def test_public_caller_never_gets_admin_features(self, path, digits):
        forward_repo.put(VOL_A.phone, "schedule")
        root = twiml(client.post(path, data={"From": PUBLIC, "Digits": digits}))
        assert root.find("Gather") is None
        assert root.find("Redirect") is None
        assert tags(root) == ["Play", "Pause", "Dial"]
        assert dialed(root) == VOL_A.phone
        assert forward_repo.get() == VOL_A.phone
        assert forward_repo.get_record()["source"] == "schedule"


# ============================================
# Forward store
# ============================================
class TestForwardStateRepository:
    def test_empty_store(self):
        assert forward_repo.get() is None
        assert forward_repo.get_record() is None

    def test_put_then_get(self):
        forward_repo.put(VOL_A.phone, "schedule")
        record = forward_repo.get_record()
        assert record["value"] == VOL_A.phone
        assert record["source"] == "schedule"
        assert record["updated_at"]

    def test_last_write_wins(self):
        forward_repo.put(VOL_A.phone, "admin")
        forward_repo.put(VOL_B.phone, "schedule")
        assert forward_repo.get() == VOL_B.phone
        with engine.connect() as conn:
            count = conn.execute(text("SELECT COUNT(*) FROM forward_state")).scalar()
        assert count == 1

    def test_missing_table_raises_store_error(self):
        bare = ForwardStateRepository(make_engine("sqlite://"))
        with pytest.raises(ForwardStoreError):
            bare.get()
        with pytest.raises(ForwardStoreError):
            bare.put(VOL_A.phone, "admin")

    def test_ping(self):
        assert forward_repo.ping() is True

    def test_insert_if_missing_seeds_empty_store(self):
        assert forward_repo.insert_if_missing(DEFAULT_NUMBER, "default") is True
        record = forward_repo.get_record()
        assert record["value"] == DEFAULT_NUMBER
        assert record["source"] == "default"

    def test_insert_if_missing_keeps_existing_value(self):
        forward_repo.put(VOL_A.phone, "admin")
        assert forward_repo.insert_if_missing(DEFAULT_NUMBER, "default") is False
        assert forward_repo.get() == VOL_A.phone
        assert forward_repo.get_record()["source"] == "admin"


# ============================================
# Scheduled refresh
# ============================================
class TestForwardService:
    def test_initialize_store_writes_default_once(self):
        service = make_service()
        assert service.initialize_store() is True
        assert forward_repo.get_record()["source"] == "default"
        service.override("2025551234")
        assert service.initialize_store() is False
        assert forward_repo.get() == "+12025551234"

    def test_initialize_store_without_default(self):
        service = make_service(CONFIG.model_copy(update={"default_forward_number": ""}))
        assert service.initialize_store() is False
        assert forward_repo.get() is None

    def test_refresh_stores_third_friday_volunteer(self):
        result = make_service().refresh_from_schedule(THIRD_FRIDAY_EVENING)
        assert result["status"] == "updated"
        assert result["volunteer"] == "Carol"
        assert result["week_index"] == 2
        assert forward_repo.get() == VOL_C.phone

    def test_refresh_is_idempotent(self):
        service = make_service()
        service.refresh_from_schedule(THIRD_FRIDAY_EVENING)
        first = forward_repo.get()
        service.refresh_from_schedule(THIRD_FRIDAY_EVENING)
        assert forward_repo.get() == first == VOL_C.phone

    def test_refresh_without_roster_stores_default(self):
        result = make_service().refresh_from_schedule(TUESDAY_EVENING)
        assert result["source"] == "default"
        assert forward_repo.get() == DEFAULT_NUMBER

    def test_refresh_without_roster_or_default_leaves_store(self):
        forward_repo.put(VOL_A.phone, "admin")
        service = make_service(CONFIG.model_copy(update={"default_forward_number": ""}))
        result = service.refresh_from_schedule(TUESDAY_EVENING)
        assert result["status"] == "unchanged"
        assert forward_repo.get() == VOL_A.phone

    def test_refresh_supersedes_admin_override(self):
        service = make_service()
        service.override("2025551234")
        service.refresh_from_schedule(THIRD_FRIDAY_EVENING)
        assert forward_repo.get() == VOL_C.phone

    def test_refresh_write_failure_propagates(self):
        with patch.object(forward_repo, "put", side_effect=ForwardStoreError("down")):
            with pytest.raises(ForwardStoreError):
                make_service().refresh_from_schedule(THIRD_FRIDAY_EVENING)

    def test_override_rejects_short_number(self):
        assert make_service().override("5551234") is None
        assert forward_repo.get() is None

    def test_describe(self):
        service = make_service()
        assert service.describe(VOL_A.phone) == "Alice"
        assert service.describe("+12025551234") == "1 2 0 2 5 5 5 1 2 3 4"


# ============================================
# Admin JSON API
# ============================================
class TestAdminApi:
    def test_current_oncall(self):
        forward_repo.put(VOL_C.phone, "schedule")
        mocked = frozen_now(THIRD_FRIDAY_EVENING)
        try:
            response = client.get("/api/v1/oncall/current")
        finally:
            mocked.stop()
        assert response.status_code == 200
        data = response.json()
        assert data["effective_date"] == "2026-03-20"
        assert data["week_index"] == 2
        assert data["current"]["name"] == "Carol"
        assert data["next"]["name"] == "Alice"
        assert data["forward_number"] == VOL_C.phone

    def test_forward_number_default(self):
        response = client.get("/api/v1/forward")
        assert response.status_code == 200
        assert response.json()["forward_number"] == DEFAULT_NUMBER
        assert response.json()["source"] == "default"

    def test_forward_number_stored(self):
        forward_repo.put(VOL_B.phone, "admin")
        data = client.get("/api/v1/forward").json()
        assert data["forward_number"] == VOL_B.phone
        assert data["source"] == "admin"

    def test_refresh(self):
        mocked = frozen_now(THIRD_FRIDAY_EVENING)
        try:
            response = client.post("/api/v1/forward/refresh")
        finally:
            mocked.stop()
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "updated"
        assert data["forward_number"] == VOL_C.phone
        assert data["source"] == "schedule"
        assert forward_repo.get() == VOL_C.phone

    def test_refresh_store_down(self):
        failure = ForwardStoreError("(sqlite3.OperationalError) database is locked")
        with patch.object(forward_repo, "put", side_effect=failure):
            response = client.post("/api/v1/forward/refresh")
        assert response.status_code == 503
        assert response.json()["error"] == "forward_store_unavailable"
        assert "request_id" in response.json()
        assert "sqlite3" not in response.text
        assert "locked" not in response.text

    def test_forward_number_store_down(self):
        failure = ForwardStoreError("(sqlite3.OperationalError) no such table")
        with patch.object(forward_repo, "get_record", side_effect=failure):
            response = client.get("/api/v1/forward")
        assert response.status_code == 503
        assert response.json()["error"] == "forward_store_unavailable"
        assert "no such table" not in response.text

    def test_source_shows_schedule_after_refresh_replaces_override(self):
        client.post("/admin-set-number", data={"From": ADMIN, "Digits": "2025551234"})
        assert client.get("/api/v1/forward").json()["source"] == "admin"
        make_service().refresh_from_schedule(THIRD_FRIDAY_EVENING)
        data = client.get("/api/v1/forward").json()
        assert data["forward_number"] == VOL_C.phone
        assert data["source"] == "schedule"
        assert data["updated_at"]

    def test_token_required_when_configured(self):
        app.dependency_overrides[get_admin_api_token] = lambda: "s3cret"
        assert client.get("/api/v1/forward").status_code == 401
        assert client.get("/api/v1/forward", headers={"X-Admin-Token": "wrong"}).status_code == 401
        assert client.get("/api/v1/forward", headers={"X-Admin-Token": "s3cret"}).status_code == 200

    def test_voice_webhooks_do_not_need_token(self):
        app.dependency_overrides[get_admin_api_token] = lambda: "s3cret"
        assert client.post("/", data={"From": PUBLIC}).status_code == 200


# ============================================
# Refresh CLI
# ============================================
class TestRefreshCli:
    def _schedule_file(self, tmp_path):
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps({
            "timezone": "America/Chicago",
            "days": [{"key": "friday", "callers": [v.model_dump() for v in (VOL_A, VOL_B, VOL_C)]}],
        }), encoding="utf-8")
        return path

    def test_refresh_writes_store(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'hotline.db'}"
        code = refresh_main([
            "--at", "2026-03-20T18:00:00-05:00",
            "--schedule-file", str(self._schedule_file(tmp_path)),
            "--database-url", url,
        ])
        assert code == 0
        assert json.loads(capsys.readouterr().out.strip().splitlines()[-1])["volunteer"] == "Carol"
        check_engine = make_engine(url)
        try:
            assert ForwardStateRepository(check_engine).get() == VOL_C.phone
        finally:
            check_engine.dispose()

    def test_dry_run_does_not_write(self, tmp_path, capsys):
        url = f"sqlite:///{tmp_path / 'hotline.db'}"
        code = refresh_main([
            "--dry-run",
            "--at", "2026-03-13T18:00:00-05:00",
            "--schedule-file", str(self._schedule_file(tmp_path)),
            "--database-url", url,
        ])
        assert code == 0
        assert json.loads(capsys.readouterr().out.strip().splitlines()[-1])["volunteer"] == "Bob"
        assert not (tmp_path / "hotline.db").exists()

    def test_missing_schedule(self, tmp_path):
        code = refresh_main(["--schedule-file", str(tmp_path / "missing.json"), "--database-url", "sqlite://"])
        assert code == 2
