"""
Program Planner - Workers Module
Celery タスク定義
"""
from program_planner.workers.celery_app import celery_app
from program_planner.workers.reminder_tasks import send_task_reminders_task

__all__ = [
    "celery_app",
    "send_task_reminders_task",
]
