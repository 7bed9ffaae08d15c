"""
Program Planner - Celery Application
定期実行タスクの設定

Celery Beat が毎日 reminder_hour:reminder_minute にリマインダー送信を起動する。
"""
from celery import Celery
from celery.schedules import crontab

from program_planner.core.config import settings

celery_app = Celery(
    "program_planner",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["program_planner.workers.reminder_tasks"],
)

# Celery設定
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.reminder_timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=600,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

celery_app.conf.task_routes = {
    "program_planner.workers.reminder_tasks.send_task_reminders_task": {"queue": "notifications"},
}

# Celery Beat スケジュール
celery_app.conf.beat_schedule = {
    "send-task-reminders-daily": {
        "task": "program_planner.workers.reminder_tasks.send_task_reminders_task",
        "schedule": crontab(hour=settings.reminder_hour, minute=settings.reminder_minute),
    },
}
