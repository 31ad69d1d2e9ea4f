#!/usr/bin/env python3
"""
导入常见AI表达模式 - seeds the pattern store with the built-in catalogue
使用方法: python scripts/import_common_patterns.py [user_id] [min_confidence]
"""
import asyncio
import sys
from typing import Optional

from correction_engine.core.config import get_settings
from correction_engine.core.logging import configure_logging
from correction_engine.db import dispose_engine, init_db
from correction_engine.services import ServiceFactory
from correction_engine.services.common_patterns import common_ai_patterns


async def main(user_id: str, min_confidence: Optional[float]) -> int:
    await init_db()
    try:
        learner = ServiceFactory.get_pattern_learner()
        report = await learner.import_patterns(user_id, common_ai_patterns(min_confidence))
    finally:
        await dispose_engine()

    print(f"✅ imported={report.imported} skipped={report.skipped} total={report.total}")
    return 0


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.log_level, json_logs=False)

    user = sys.argv[1] if len(sys.argv) > 1 else settings.default_user_id
    threshold = float(sys.argv[2]) if len(sys.argv) > 2 else None
    sys.exit(asyncio.run(main(user, threshold)))
