"""
Program Planner - Task Reminder Service
期限が近いチェックリスト項目のリマインダーメール

毎日 1 回（Celery beat）実行される。各イベントの reminder_days 日後が期限の
未完了タスクを集め、所有者にメールを送る。
"""
import asyncio
import html
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from program_planner.core.config import settings
from program_planner.core.security import sign_unsubscribe
from program_planner.models.event import DEFAULT_REMINDER_DAYS, Event
from program_planner.models.user import User
from program_planner.services.mailer import Mailer, mailer as default_mailer

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """1 回の送信処理の集計"""
    scanned: int = 0
    sent: int = 0
    dry_run: int = 0  # SMTP 未設定でログ出力のみ
    skipped: int = 0
    failed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanned": self.scanned,
            "sent": self.sent,
            "dry_run": self.dry_run,
            "skipped": self.skipped,
            "failed": list(self.failed),
        }


def reminder_days_for(event: Event) -> int:
    notifications = event.notifications or {}
    return notifications.get("reminder_days") or DEFAULT_REMINDER_DAYS


def wants_email(event: Event) -> bool:
    return (event.notifications or {}).get("email_opt_in") is not False


def day_window(target: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    """対象日の 00:00:00 から 23:59:59.999999 まで（両端を含む）"""
    return (
        datetime.combine(target, time.min, tzinfo=tz),
        datetime.combine(target, time.max, tzinfo=tz),
    )


def parse_due_date(value: Any, tz: tzinfo) -> Optional[datetime]:
    """JSONB に保存された期限を datetime に変換（タイムゾーンなしは tz とみなす）"""
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable checklist due date: %r", value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def due_tasks(
    checklist: List[Dict[str, Any]],
    target: date,
    tz: tzinfo = timezone.utc,
) -> List[Dict[str, Any]]:
    """対象日に期限を迎える未完了タスク（時間帯見出しは除く）"""
    start, end = day_window(target, tz)
    tasks = []
    for item in checklist or []:
        if item.get("is_time_header") or item.get("completed"):
            continue
        due = parse_due_date(item.get("due_date"), tz)
        if due is not None and start <= due <= end:
            tasks.append(item)
    return tasks


def unsubscribe_url(user_id: str, event_id: str) -> str:
    query = urlencode({
        "uid": user_id,
        "eid": event_id,
        "sig": sign_unsubscribe(user_id, event_id),
    })
    base = settings.public_api_url.rstrip("/")
    return f"{base}{settings.api_prefix}/notifications/unsubscribe?{query}"


def build_reminder_subject(event: Event, tasks: List[Dict[str, Any]], days: int) -> str:
    return f"Reminder: {len(tasks)} task(s) due in {days} days for {event.title}"


def build_reminder_html(
    event: Event,
    tasks: List[Dict[str, Any]],
    days: int,
    tz: tzinfo = timezone.utc,
) -> str:
    app_url = settings.public_app_url.rstrip("/")
    items = []
    for task in tasks:
        line = f"• {html.escape(str(task.get('task') or ''))}"
        due = parse_due_date(task.get("due_date"), tz)
        if due is not None:
            line += f" (due {due.astimezone(tz).strftime('%Y-%m-%d')})"
        items.append(f"<li>{line}</li>")

    title = html.escape(event.title)
    unsubscribe = html.escape(unsubscribe_url(str(event.user_id), str(event.id)))
    return (
        '<div style="font-family: Arial, sans-serif; line-height:1.5; color:#111">'
        f'<h2 style="margin:0 0 8px 0;">Upcoming tasks for: {title}</h2>'
        f"<p>The following task(s) are due in {days} days:</p>"
        f"<ul>{''.join(items)}</ul>"
        f'<p>View event: <a href="{app_url}/events" target="_blank">Open Saved Events</a></p>'
        "<hr />"
        '<p style="font-size:12px;color:#666">To stop receiving these emails for this event, '
        f'<a href="{unsubscribe}">unsubscribe here</a>.</p>'
        "</div>"
    )


def reminder_timezone() -> tzinfo:
    return ZoneInfo(settings.reminder_timezone)


async def run_reminder_sweep(
    session: AsyncSession,
    today: Optional[date] = None,
    mail: Optional[Mailer] = None,
) -> SweepResult:
    """
    全イベントを走査してリマインダーを送る。

    1 件の送信失敗で処理全体を止めない（失敗したイベント ID を記録する）。
    """
    tz = reminder_timezone()
    today = today or datetime.now(tz).date()
    mail = mail or default_mailer
    result = SweepResult()

    rows = await session.execute(
        select(Event, User).join(User, User.id == Event.user_id)
    )
    for event, user in rows.all():
        if not wants_email(event):
            continue
        result.scanned += 1

        days = reminder_days_for(event)
        tasks = due_tasks(event.checklist, today + timedelta(days=days), tz)
        if not tasks or not user.email:
            result.skipped += 1
            continue

        subject = build_reminder_subject(event, tasks, days)
        body = build_reminder_html(event, tasks, days, tz)
        try:
            delivered = await asyncio.to_thread(mail.send_html, user.email, subject, body)
            if delivered:
                result.sent += 1
            else:
                result.dry_run += 1
        except Exception as e:
            logger.error("Reminder email failed for event %s: %s", event.id, e)
            result.failed.append(str(event.id))

    logger.info("Reminder sweep finished: %s", result.to_dict())
    return result
