"""Tests for parsing, validation, payloads, dashboard stats and reports."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

import db
import utils


class TestParsing:

    @pytest.mark.parametrize("text, expected", [("12.5", 12.5), ("12,5", 12.5), (" 3 ", 3.0), ("abc", 0.0), ("", 0.0), (None, 0.0)])
    def test_parse_float(self, text, expected):
        assert utils.parse_float(text) == expected

    @pytest.mark.parametrize("text", ["nan", "NaN", "inf", "-inf", "1e400"])
    def test_parse_float_rejects_non_finite(self, text):
        assert utils.parse_float(text) == 0.0

    @pytest.mark.parametrize("text, expected", [("7", 7), ("12.7", 12), ("", 0), ("many", 0), ("inf", 0), ("nan", 0), ("1e400", 0)])
    def test_parse_int(self, text, expected):
        assert utils.parse_int(text) == expected

    def test_blank_to_none(self):
        assert utils.blank_to_none("  ") is None
        assert utils.blank_to_none(" x ") == "x"
        assert utils.blank_to_none(None) is None
        assert utils.blank_to_none(3) == 3


class TestValidation:

    def test_member_requires_name(self):
        errors = utils.validate_member_inputs({"name": " ", "status": "active"})
        assert errors == ["Name is required."]

    def test_member_rejects_unknown_status_and_bad_email(self):
        errors = utils.validate_member_inputs({"name": "Ana", "email": "nope", "status": "visitor"})
        assert len(errors) == 2

    def test_member_conversion_date_must_be_iso(self):
        assert utils.validate_member_inputs({"name": "Ana", "status": "active", "conversion_date": "31/12/2020"})
        assert not utils.validate_member_inputs({"name": "Ana", "status": "active", "conversion_date": "2020-12-31"})

    def test_cell_meeting_day_and_time(self):
        assert not utils.validate_cell_inputs({"name": "North", "meeting_day": "Monday", "meeting_time": "19:30"})
        errors = utils.validate_cell_inputs({"name": "North", "meeting_day": "Someday", "meeting_time": "7pm"})
        assert len(errors) == 2

    def test_finance_rules(self):
        ok = {"date": "2024-01-01", "type": "offering", "amount": "10"}
        assert not utils.validate_finance_inputs(ok)
        assert utils.validate_finance_inputs({**ok, "amount": "-5"}) == ["Amount cannot be negative."]
        assert utils.validate_finance_inputs({**ok, "date": ""})
        assert utils.validate_finance_inputs({**ok, "type": "donation"})

    def test_finance_amount_is_required(self):
        ok = {"date": "2024-01-01", "type": "tithe"}
        assert utils.validate_finance_inputs({**ok, "amount": ""}) == ["Amount is required."]
        assert utils.validate_finance_inputs({**ok, "amount": "  "}) == ["Amount is required."]
        assert utils.validate_finance_inputs(ok) == ["Amount is required."]
        assert utils.validate_finance_inputs({**ok, "amount": "0"}) == []

    def test_event_rules(self):
        ok = {"name": "Vigil", "date": "2030-01-01", "status": "planned", "expected_attendees": "10"}
        assert not utils.validate_event_inputs(ok)
        assert utils.validate_event_inputs({**ok, "date": ""}) == ["Date must be a valid ISO date (YYYY-MM-DD)."]
        assert utils.validate_event_inputs({**ok, "confirmed_attendees": "-1"})
        assert utils.validate_event_inputs({**ok, "status": "postponed"})


class TestPayloads:

    def test_member_payload_nulls_blank_optionals(self):
        payload = utils.member_payload({"name": " Ana ", "email": "", "cell_id": "", "status": "active"})
        assert payload["name"] == "Ana"
        assert payload["email"] is None
        assert payload["cell_id"] is None

    def test_finance_payload_anonymous(self):
        payload = utils.finance_payload({"date": "2024-01-01", "type": "tithe", "amount": "15.50", "member_id": ""})
        assert payload["amount"] == 15.5
        assert payload["member_id"] is None

    def test_event_payload_counts(self):
        payload = utils.event_payload({"name": "X", "date": "2024-01-01", "expected_attendees": "20",
                                       "confirmed_attendees": "", "time": "", "status": "planned"})
        assert payload["expected_attendees"] == 20
        assert payload["confirmed_attendees"] == 0
        assert payload["time"] is None


class TestDashboard:

    def test_fold_example(self):
        stats = utils.fold_dashboard_stats(
            [{"id": 1, "status": "active"}, {"id": 2, "status": "inactive"}],
            [{"amount": 10.00}, {"amount": 5.50}],
            [{"id": 1}],
        )
        assert stats == utils.DashboardStats(total_members=2, active_members=1, total_revenue=15.50, upcoming_events=1)

    def test_load_reads_store(self, store):
        today = date(2024, 6, 1)
        store.insert("members", {"name": "A", "status": "active"})
        store.insert("members", {"name": "B", "status": "inactive"})
        store.insert("finances", {"date": "2024-05-01", "type": "tithe", "amount": 10.00})
        store.insert("finances", {"date": "2024-05-02", "type": "offering", "amount": 5.50})
        store.insert("events", {"name": "Next", "date": (today + timedelta(days=3)).isoformat(), "status": "planned"})
        store.insert("events", {"name": "Old", "date": (today - timedelta(days=3)).isoformat(), "status": "completed"})

        stats = utils.load_dashboard_stats(today=today.isoformat())

        assert stats.total_members == 2
        assert stats.active_members == 1
        assert stats.total_revenue == pytest.approx(15.50)
        assert stats.upcoming_events == 1

    def test_event_dated_today_is_upcoming(self, store):
        store.insert("events", {"name": "Today", "date": "2024-06-01", "status": "planned"})
        assert utils.load_dashboard_stats(today="2024-06-01").upcoming_events == 1

    def test_any_failed_read_zeroes_everything(self, store, monkeypatch):
        store.insert("members", {"name": "A", "status": "active"})
        real_read = db.read

        def flaky(table, *args, **kwargs):
            if table == "events":
                raise db.StoreError("timeout")
            return real_read(table, *args, **kwargs)

        monkeypatch.setattr(db, "read", flaky)
        assert utils.load_dashboard_stats() == utils.DashboardStats()


class TestReports:

    def test_revenue_summary_by_month(self):
        df = utils.revenue_summary_by_month([
            {"date": "2024-01-05", "amount": 10.0},
            {"date": "2024-01-20", "amount": 5.5},
            {"date": "2024-02-01", "amount": 3.0},
        ])
        assert df["month"].tolist() == ["2024-02", "2024-01"]
        assert df["revenue"].tolist() == [3.0, 15.5]

    def test_revenue_summary_empty(self):
        df = utils.revenue_summary_by_month([])
        assert df.empty
        assert list(df.columns) == ["month", "revenue"]

    def test_format_money(self, monkeypatch):
        monkeypatch.setattr(utils.config.settings, "currency", "$")
        assert utils.format_money(1234.5) == "$ 1,234.50"


def test_insert_sample_data(store):
    utils.insert_sample_data()

    cells = store.read("cells", "name")
    assert len(cells) == 2
    assert all(c["leader_id"] for c in cells)
    assert len(store.read("members", "name")) == 4
    assert len(store.read("finances", "date")) == 3
    assert len(store.read("events", "date")) == 3


class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CHURCH_CURRENCY", raising=False)
        s = utils.config.Settings()
        assert s.currency == "R$"
        assert s.db_file.name == "church.db"

    def test_env_prefix_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHURCH_CURRENCY", "EUR")
        monkeypatch.setenv("CHURCH_DB_FILE", str(tmp_path / "other.db"))
        monkeypatch.setenv("CHURCH_LOG_LEVEL", "DEBUG")
        s = utils.config.Settings()
        assert s.currency == "EUR"
        assert s.db_file == tmp_path / "other.db"
        assert s.log_level == "DEBUG"
