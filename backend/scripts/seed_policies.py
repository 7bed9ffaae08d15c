#!/usr/bin/env python3
"""
ポリシー初期データ投入スクリプト
policies テーブルを組み込みの Vanderbilt ポリシーで置き換えます。

使用方法:
    # backend ディレクトリから実行
    python scripts/seed_policies.py
"""
import asyncio
import logging

from program_planner.core.logger import configure_logging
from program_planner.db.base import async_session_maker, engine
from program_planner.db.seed_data import seed_policies

logger = logging.getLogger(__name__)


async def main() -> None:
    async with async_session_maker() as session:
        count = await seed_policies(session)
    await engine.dispose()
    logger.info("Inserted %d policies", count)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
