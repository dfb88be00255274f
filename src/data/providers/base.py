"""Provider abstractions and shared retry handling."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Mapping, TypeVar

import requests

from alerting.errors import QueryError

T = TypeVar("T")


class DataProviderError(QueryError):
    """Generic provider failure."""


class TransientProviderError(DataProviderError):
    """Temporary failure that can be retried."""


class BaseProvider(ABC):
    """Base class for metric backends offering retry helpers."""

    def __init__(
        self,
        name: str,
        *,
        retries: int = 2,
        retry_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.name = name
        self._retries = retries
        self._retry_delay = retry_delay
        self._sleep = sleep
        self.logger = logging.getLogger(f"alertgraph.data.{name}")

    @abstractmethod
    def ping(self) -> bool:
        """Quick connectivity test implemented by concrete providers."""

    def _execute(self, action: str, func: Callable[[], T]) -> T:
        attempt = 0
        attempts = max(1, self._retries)
        while True:
            try:
                return func()
            except TransientProviderError as exc:
                attempt += 1
                self.logger.warning(
                    "[%s] transient error during %s (attempt %s/%s): %s",
                    self.name,
                    action,
                    attempt,
                    attempts,
                    exc,
                )
                if attempt >= attempts:
                    raise
                self._sleep(self._retry_delay)
            except requests.RequestException as exc:
                raise DataProviderError(f"[{self.name}] {action} failed") from exc

    def retry_info(self) -> Mapping[str, float]:
        return {"retries": self._retries, "retry_delay_seconds": self._retry_delay}
