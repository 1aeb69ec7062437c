from logging.handlers import RotatingFileHandler
from pathlib import Path
import logging, sys
from pythonjsonlogger import jsonlogger

from northstar.core.config import LOG_LEVEL
from northstar.core.request_logger import RequestContextFilter

# request_id/user_id come from RequestContextFilter
LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s "
    "%(request_id)s %(user_id)s %(module)s %(lineno)d"
)

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "openai", "kafka", "celery.redirected")


def setup_json_logger(service_name: str = "northstar", log_to_file: bool = False):
    root = logging.getLogger()
    root.setLevel(LOG_LEVEL)

    formatter = jsonlogger.JsonFormatter(LOG_FORMAT, static_fields={"service": service_name})
    context = RequestContextFilter()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_to_file:
        Path("logs").mkdir(exist_ok=True)
        handlers.append(
            RotatingFileHandler(f"logs/{service_name}.json.log", maxBytes=10_000_000, backupCount=5, encoding="utf-8")
        )

    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(context)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"📝 JSON logging ready for {service_name} at level {logging.getLevelName(root.level)}")
    return root
