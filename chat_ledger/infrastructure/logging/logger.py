import json
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Optional

from chat_ledger.config.settings import settings


class JsonFormatter(logging.Formatter):
    def __init__(self, redact_content: bool = False):
        super().__init__()
        self._redact_content = redact_content

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if self._redact_content:
            msg = (msg or "")[:64]
        payload = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "name": record.name,
            "msg": msg,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logger(
    name: str = "chat_ledger",
    log_dir: Optional[str] = None,
    redact_content: Optional[bool] = None,
) -> logging.Logger:
    """按 JSON 行格式写入 <log_dir>/ledger.log；同名 logger 只配置一次。"""
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    if logger.handlers:
        return logger
    log_dir = Path(log_dir or settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = logging.FileHandler(log_dir / "ledger.log", encoding="utf-8")
    fh.setLevel(logging.INFO)
    fh.setFormatter(JsonFormatter(
        redact_content=settings.log_redact_content if redact_content is None else redact_content
    ))
    logger.addHandler(fh)
    return logger


logger = setup_logger()
