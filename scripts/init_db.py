import sys
import os
import logging

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rewardapi.config import settings
from rewardapi.database.connection import engine
from rewardapi.database.schema import create_all
from rewardapi.logging_config import setup_logging

logger = logging.getLogger("rewardapi")


def init_db():
    """데이터베이스 초기화 (테이블 생성)"""
    try:
        create_all(engine)
        logger.info(f"Database initialized successfully: {engine.url.render_as_string(hide_password=True)}")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


if __name__ == "__main__":
    setup_logging(settings.LOG_LEVEL)
    init_db()
