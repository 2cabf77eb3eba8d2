"""Lambda 용 JSON 한 줄 로깅"""

import json
import logging

# logger.info(..., extra={...}) 로 전달되면 JSON 필드로 그대로 남김
_EXTRA_FIELDS = ("request_id", "user_id", "error_code")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False, default=str)


def init_logging(level: int = logging.INFO) -> None:
    """루트 로거를 JSON 핸들러 하나로 교체 (CloudWatch 가 한 줄 = 한 이벤트로 수집)"""
    root = logging.getLogger()
    if root.hasHandlers():
        root.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)
    root.setLevel(level)
    for name in ("botocore", "urllib3", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)
