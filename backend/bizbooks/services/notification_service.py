# Overview: User-facing success/error notices raised by record mutations.

from __future__ import annotations

import logging
from abc import ABC, abstractmethod


logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Sink for short user-facing messages ("Invoice INV-2025-004 created")."""

    @abstractmethod
    def notify_success(self, message: str) -> None:
        ...

    @abstractmethod
    def notify_error(self, message: str) -> None:
        ...


class LoggingNotifier(Notifier):
    def notify_success(self, message: str) -> None:
        logger.info(message)

    def notify_error(self, message: str) -> None:
        logger.error(message)


class CollectingNotifier(LoggingNotifier):
    """
    Logs every message and keeps it until drained.

    Routes drain it into the response body as "messages".
    """

    def __init__(self):
        self.messages: list[dict] = []

    def notify_success(self, message: str) -> None:
        super().notify_success(message)
        self.messages.append({"level": "success", "message": message})

    def notify_error(self, message: str) -> None:
        super().notify_error(message)
        self.messages.append({"level": "error", "message": message})

    def drain(self) -> list[dict]:
        messages, self.messages = self.messages, []
        return messages
