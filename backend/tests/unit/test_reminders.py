"""
タスクリマインダー単体テスト

期限判定・件名/本文・配信停止リンクの署名、および送信処理全体を検証する。
"""
from __future__ import annotations

from datetime import date, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse

import pytest

from program_planner.core.security import sign_unsubscribe, verify_unsubscribe
from program_planner.services import reminders
from program_planner.services.mailer import Mailer
from tests.conftest import FakeSession, build_event, build_user

TODAY = date(2026, 10, 17)


class RecordingMailer:
    """送信内容を記録するだけのメーラー。fail_for に含まれる宛先は例外を送出する"""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send_html(self, to, subject, html):
        if to in self.fail_for:
            raise ConnectionError("smtp unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True


def task(text, due, **extra):
    return {"id": text, "task": text, "due_date": due, "completed": False, **extra}


class TestDueTasks:
    def test_window_is_whole_day_inclusive(self):
        target = date(2026, 10, 22)
        checklist = [
            task("start of day", "2026-10-22T00:00:00+00:00"),
            task("end of day", "2026-10-22T23:59:59.999999Z"),
            task("day before", "2026-10-21T23:59:59Z"),
            task("day after", "2026-10-23T00:00:00Z"),
        ]
        assert [t["task"] for t in reminders.due_tasks(checklist, target)] == [
            "start of day",
            "end of day",
        ]

    def test_skips_completed_headers_and_missing_dates(self):
        target = date(2026, 10, 22)
        checklist = [
            task("done", "2026-10-22T10:00:00Z", completed=True),
            task("Morning", "2026-10-22T09:00:00Z", is_time_header=True),
            task("no date", None),
            task("bad date", "next tuesday"),
            task("open", "2026-10-22"),
        ]
        assert [t["task"] for t in reminders.due_tasks(checklist, target)] == ["open"]

    def test_naive_dates_use_given_timezone(self):
        tz = timezone(timedelta(hours=-5))
        checklist = [task("evening", "2026-10-22T22:00:00")]
        assert reminders.due_tasks(checklist, date(2026, 10, 22), tz)
        assert not reminders.due_tasks(checklist, date(2026, 10, 23), tz)


class TestNotificationSettings:
    def test_defaults(self):
        event = build_event(notifications={})
        assert reminders.reminder_days_for(event) == 5
        assert reminders.wants_email(event) is True

    def test_opt_out(self):
        event = build_event(notifications={"email_opt_in": False, "reminder_days": 3})
        assert reminders.reminder_days_for(event) == 3
        assert reminders.wants_email(event) is False


class TestMessage:
    def test_subject(self):
        event = build_event(title="Fall Mixer")
        tasks = [task("a", None), task("b", None)]
        assert reminders.build_reminder_subject(event, tasks, 5) == (
            "Reminder: 2 task(s) due in 5 days for Fall Mixer"
        )

    def test_html_escapes_and_links(self):
        event = build_event(title="Mixer <Fall>")
        tasks = [task("Order <b>food</b>", "2026-10-22T12:00:00Z")]
        body = reminders.build_reminder_html(event, tasks, 5)

        assert "Mixer &lt;Fall&gt;" in body
        assert "Order &lt;b&gt;food&lt;/b&gt;" in body
        assert "(due 2026-10-22)" in body
        assert "/events" in body
        assert "/notifications/unsubscribe?" in body

    def test_unsubscribe_url_carries_valid_signature(self):
        url = reminders.unsubscribe_url("user-1", "event-1")
        query = parse_qs(urlparse(url).query)

        assert query["uid"] == ["user-1"]
        assert query["eid"] == ["event-1"]
        assert verify_unsubscribe("user-1", "event-1", query["sig"][0])


class TestSignature:
    def test_signature_is_unpadded_base64url(self):
        sig = sign_unsubscribe("u", "e")
        assert "=" not in sig
        assert "+" not in sig and "/" not in sig
        assert len(sig) == 43

    def test_tampered_values_are_rejected(self):
        sig = sign_unsubscribe("u", "e")
        assert not verify_unsubscribe("u", "other", sig)
        assert not verify_unsubscribe("other", "e", sig)
        assert not verify_unsubscribe("u", "e", "")


class TestSweep:
    @pytest.mark.asyncio
    async def test_sends_one_email_per_event_with_due_tasks(self):
        owner = build_user(email="owner@vanderbilt.edu")
        due = build_event(
            user_id=owner.id,
            title="Fall Mixer",
            checklist=[
                task("Confirm DJ", "2026-10-22T15:00:00"),
                task("Print flyers", "2026-10-22T09:00:00"),
                task("Later", "2026-11-01T09:00:00"),
            ],
        )
        nothing_due = build_event(user_id=owner.id, checklist=[task("Later", "2026-11-01")])
        opted_out = build_event(
            user_id=owner.id,
            notifications={"email_opt_in": False, "reminder_days": 5},
            checklist=[task("Confirm DJ", "2026-10-22T15:00:00")],
        )
        session = FakeSession(results=[[(due, owner), (nothing_due, owner), (opted_out, owner)]])
        mail = RecordingMailer()

        result = await reminders.run_reminder_sweep(session, today=TODAY, mail=mail)

        assert result.to_dict() == {"scanned": 2, "sent": 1, "dry_run": 0, "skipped": 1, "failed": []}
        assert len(mail.sent) == 1
        assert mail.sent[0]["to"] == "owner@vanderbilt.edu"
        assert mail.sent[0]["subject"] == "Reminder: 2 task(s) due in 5 days for Fall Mixer"

    @pytest.mark.asyncio
    async def test_custom_reminder_days(self):
        owner = build_user()
        event = build_event(
            user_id=owner.id,
            notifications={"email_opt_in": True, "reminder_days": 1},
            checklist=[task("Pick up keys", "2026-10-18T10:00:00")],
        )
        mail = RecordingMailer()

        result = await reminders.run_reminder_sweep(
            FakeSession(results=[[(event, owner)]]), today=TODAY, mail=mail
        )

        assert result.sent == 1
        assert "due in 1 days" in mail.sent[0]["subject"]

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_the_sweep(self):
        broken = build_user(email="broken@vanderbilt.edu")
        healthy = build_user(email="healthy@vanderbilt.edu")
        checklist = [task("Confirm DJ", "2026-10-22T15:00:00")]
        failing_event = build_event(user_id=broken.id, checklist=checklist)
        ok_event = build_event(user_id=healthy.id, checklist=checklist)
        mail = RecordingMailer(fail_for={"broken@vanderbilt.edu"})

        result = await reminders.run_reminder_sweep(
            FakeSession(results=[[(failing_event, broken), (ok_event, healthy)]]),
            today=TODAY,
            mail=mail,
        )

        assert result.failed == [str(failing_event.id)]
        assert result.sent == 1
        assert mail.sent[0]["to"] == "healthy@vanderbilt.edu"

    @pytest.mark.asyncio
    async def test_dry_run_is_not_counted_as_sent(self):
        owner = build_user()
        event = build_event(user_id=owner.id, checklist=[task("Confirm DJ", "2026-10-22T15:00:00")])
        mail = Mailer()
        mail.settings = mail.settings.model_copy(update={"smtp_host": None})

        result = await reminders.run_reminder_sweep(
            FakeSession(results=[[(event, owner)]]), today=TODAY, mail=mail
        )

        assert result.sent == 0
        assert result.dry_run == 1
        assert result.failed == []


class TestMailer:
    def test_dry_run_without_smtp_host(self):
        mailer = Mailer()
        mailer.settings = mailer.settings.model_copy(update={"smtp_host": None})
        assert mailer.enabled is False
        assert mailer.send_html("a@b.edu", "Hi", "<p>hi</p>") is False

    def test_build_message(self):
        message = Mailer().build_message("a@b.edu", "Subject line", "<p>hi</p>")
        assert message["To"] == "a@b.edu"
        assert message["Subject"] == "Subject line"


class TestWorker:
    def test_beat_schedule(self):
        from program_planner.workers.celery_app import celery_app

        entry = celery_app.conf.beat_schedule["send-task-reminders-daily"]
        assert entry["task"] == "program_planner.workers.reminder_tasks.send_task_reminders_task"

    def test_task_runs_sweep_and_returns_summary(self):
        from program_planner.workers import reminder_tasks

        engine = MagicMock()
        engine.dispose = AsyncMock()
        sweep = AsyncMock(return_value=reminders.SweepResult(scanned=2, sent=1, skipped=1))

        with patch.object(reminder_tasks, "engine", engine), \
                patch.object(reminder_tasks, "async_session_maker", MagicMock()), \
                patch.object(reminder_tasks, "run_reminder_sweep", sweep):
            summary = reminder_tasks.send_task_reminders_task.run()

        assert summary == {"scanned": 2, "sent": 1, "dry_run": 0, "skipped": 1, "failed": []}
        engine.dispose.assert_awaited_once()
        sweep.assert_awaited_once()
