import logging
from enum import Enum
from typing import Callable

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class NoticeLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


class Notice(BaseModel):
    level: NoticeLevel
    message: str


Notifier = Callable[[Notice], None]


def log_notice(notice: Notice) -> None:
    logger.log(_LOG_LEVELS[notice.level], notice.message)


def make_notify(listener: Notifier | None = None) -> Callable[[NoticeLevel, str], None]:
    """Build the callable components use to surface user-visible messages.

    Every notice is logged; ``listener`` (the view's toast area, a test
    collector, ...) additionally receives it.
    """

    def notify(level: NoticeLevel, message: str) -> None:
        notice = Notice(level=level, message=message)
        log_notice(notice)
        if listener is not None:
            listener(notice)

    return notify
