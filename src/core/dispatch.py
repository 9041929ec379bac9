"""Notification dispatch seam."""

from typing import List, Protocol

from loguru import logger

from src.models import AlertEvent, NotificationPayload, Recommendation


class NotificationDispatcher(Protocol):
    def dispatch_alert(self, alert: AlertEvent) -> None:
        ...

    def dispatch_recommendation(self, recommendation: Recommendation) -> None:
        ...


class LoggingDispatcher:
    """Logs payloads instead of delivering them. Keeps what it sent for inspection."""

    def __init__(self):
        self.sent: List[NotificationPayload] = []

    def dispatch_alert(self, alert: AlertEvent) -> None:
        payload = alert.notification_payload()
        self.sent.append(payload)
        if payload.urgent:
            logger.warning(f"URGENT [{payload.severity}] {payload.location}: {payload.title} - {payload.message}")
        else:
            logger.info(f"[{payload.severity}] {payload.location}: {payload.title} - {payload.message}")

    def dispatch_recommendation(self, recommendation: Recommendation) -> None:
        payload = NotificationPayload(
            title=recommendation.title,
            message=recommendation.description,
            severity=recommendation.priority,
            location=recommendation.location,
        )
        self.sent.append(payload)
        logger.info(f"Recommendation [{payload.severity}] {payload.location}: {payload.title}")
