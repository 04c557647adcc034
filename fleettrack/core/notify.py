# fleettrack/core/notify.py
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class Notice:
    title: str
    message: str = ""
    level: str = "info"  # info | success | warning | error


Notifier = Callable[[Notice], None]


def silent(_: Notice) -> None:
    pass


def error_notice(title: str, message: str) -> Notice:
    return Notice(title=title, message=message, level="error")
