"""Alertmanager webhook payload models."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from alerting.expression import extract_generator_expression
from alerting.models import Alert
from alerting.window import ZERO_TIME

_SUB_MICROSECOND = re.compile(r"(\.\d{6})\d+")


class AlertPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: str = "firing"
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    starts_at: datetime = Field(alias="startsAt")
    ends_at: datetime = Field(default=ZERO_TIME, alias="endsAt")
    generator_url: str = Field(default="", alias="generatorURL")
    fingerprint: str = ""

    @field_validator("starts_at", "ends_at", mode="before")
    @classmethod
    def _trim_nanoseconds(cls, value: Any) -> Any:
        if isinstance(value, str):
            return _SUB_MICROSECOND.sub(r"\1", value)
        return value

    def to_alert(self) -> Alert:
        return Alert(
            labels=dict(self.labels),
            annotations=dict(self.annotations),
            starts_at=self.starts_at,
            ends_at=self.ends_at,
            generator_expression=extract_generator_expression(self.generator_url),
            status=self.status,
            generator_url=self.generator_url,
            fingerprint=self.fingerprint,
        )


class HookMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    version: str = "4"
    group_key: str = Field(default="", alias="groupKey")
    status: str = "firing"
    receiver: str = ""
    group_labels: Dict[str, str] = Field(default_factory=dict, alias="groupLabels")
    common_labels: Dict[str, str] = Field(default_factory=dict, alias="commonLabels")
    common_annotations: Dict[str, str] = Field(default_factory=dict, alias="commonAnnotations")
    external_url: str = Field(default="", alias="externalURL")
    alerts: List[AlertPayload] = Field(default_factory=list)


__all__ = ["AlertPayload", "HookMessage", "ZERO_TIME"]
