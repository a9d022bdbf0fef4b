# Copyright (c) Syntropy Systems
"""Pydantic models for database records."""

from __future__ import annotations

from typing import Optional, cast

from pydantic import Field, TypeAdapter, field_validator

from .base import JSONObject, SolvelogBaseModel

_LIST_STR_ADAPTER = TypeAdapter(list[str])
_JSON_OBJECT_ADAPTER = TypeAdapter(JSONObject)


class JobInfo(SolvelogBaseModel):
    """Solver job as recorded in the job_info table."""

    id: int
    name: str
    queue: str
    num_cpu: int = 0
    nodes: list[str] = Field(default_factory=list)
    parameters: Optional[JSONObject] = None

    @field_validator("nodes", mode="before")
    @classmethod
    def _parse_nodes(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return _LIST_STR_ADAPTER.validate_json(value)
        return cast("list[str]", value)

    @field_validator("parameters", mode="before")
    @classmethod
    def _parse_parameters(cls, value: object) -> Optional[JSONObject]:
        if value is None:
            return None
        if isinstance(value, str):
            return _JSON_OBJECT_ADAPTER.validate_json(value)
        return cast("JSONObject", value)
