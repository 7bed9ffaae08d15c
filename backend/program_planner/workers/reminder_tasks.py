"""
Program Planner - Reminder Celery Tasks
期限が近いタスクのリマインダーメール送信
"""
import asyncio
import concurrent.futures
import logging

from program_planner.workers.celery_app import celery_app
from program_planner.db.base import async_session_maker, engine
from program_planner.services.reminders import run_reminder_sweep

logger = logging.getLogger(__name__)


def run_async(coro):
    """非同期関数を同期的に実行"""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor() as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()


@celery_app.task
def send_task_reminders_task():
    """
    全イベントを走査し、期限の近い未完了タスクを所有者にメールで知らせる。

    Celery Beat で毎日実行される。
    """
    async def _send():
        # ワーカープロセスごとにイベントループが変わるため接続プールを作り直す
        await engine.dispose()

        async with async_session_maker() as session:
            result = await run_reminder_sweep(session)
        return result.to_dict()

    summary = run_async(_send())
    logger.info("Task reminders sent: %s", summary)
    return summary
