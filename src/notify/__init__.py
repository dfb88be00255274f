"""Delivery of charted alerts: image storage and chat notification."""

from .notifier import AlertMessage, AlertNotifier, SlackTransport, StdoutTransport
from .storage import FilesystemImageStore, ImageStore

__all__ = [
    "AlertMessage",
    "AlertNotifier",
    "FilesystemImageStore",
    "ImageStore",
    "SlackTransport",
    "StdoutTransport",
]
