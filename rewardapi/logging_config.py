import logging.config
import sys

# 요청마다 발생하는 라이브러리 로그 (redis 재연결, boto 자격 증명 탐색 등)
_NOISY_LOGGERS = ("sqlalchemy.engine", "botocore", "boto3", "urllib3", "redis")


def setup_logging(log_level: str = "INFO", sql_echo: bool = False):
    """로컬 개발용 콘솔 로깅

    - stdout: 모든 로그 한 줄 요약
    - stderr: WARNING 이상 (거절되지 않은 실패, 커밋 이후 부수효과 실패 등)
    """
    log_level = log_level.upper()

    loggers = {
        "": {
            "handlers": ["console", "error_console"],
            "level": log_level,
        },
        "rewardapi": {
            "handlers": ["console", "error_console"],
            "level": log_level,
            "propagate": False,
        },
        "uvicorn.access": {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        },
    }
    for name in _NOISY_LOGGERS:
        loggers[name] = {"handlers": ["console"], "level": "WARNING", "propagate": False}
    if sql_echo:
        loggers["sqlalchemy.engine"]["level"] = "INFO"

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "line": {
                    "format": "%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s",
                },
                "located": {
                    "format": "%(asctime)s | %(levelname)-8s | %(name)s (%(filename)s:%(lineno)d) | %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "line",
                    "stream": sys.stdout,
                },
                "error_console": {
                    "class": "logging.StreamHandler",
                    "formatter": "located",
                    "stream": sys.stderr,
                    "level": "WARNING",
                },
            },
            "loggers": loggers,
        }
    )
