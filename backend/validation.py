"""
Shared request-field types and small input normalisers used by routers.
"""
from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, AnyHttpUrl, BeforeValidator, Field, TypeAdapter, ValidationError

Quarter = Literal["Q1", "Q2", "Q3", "Q4"]

InitiativeType = Literal["CAPITALIZABLE", "OPERATIONAL_EFFICIENCY", "KTLO"]
InitiativeStatus = Literal["NOT_STARTED", "IN_PROGRESS", "ON_HOLD", "COMPLETED"]
CostType = Literal["SOFTWARE", "TRAINING", "SALARY", "OTHER"]
TaskStatus = Literal["TODO", "IN_PROGRESS", "COMPLETED", "BLOCKED"]

Title = Annotated[str, Field(min_length=1, max_length=255)]


def _numeric(v):
    """Accept numbers or numeric strings (thousands separators allowed); blank means 0."""
    if v is None or (isinstance(v, str) and not v.strip()):
        return 0
    if isinstance(v, str):
        return float(v.strip().replace(",", ""))
    return v


_http_url = TypeAdapter(AnyHttpUrl)


def _check_url(v: Optional[str]) -> Optional[str]:
    """http(s) URL kept as the submitted string; empty clears the link."""
    if v is None or v == "":
        return v
    try:
        _http_url.validate_python(v)
    except ValidationError:
        raise ValueError("must be a valid URL or empty") from None
    return v


def _check_email(v: str) -> str:
    local, _, domain = v.partition("@")
    if not local or "." not in domain or " " in v:
        raise ValueError("must be a valid email address")
    return v


Amount = Annotated[float, BeforeValidator(_numeric)]
HeadCount = Annotated[int, BeforeValidator(_numeric), Field(ge=0)]
UrlOrEmpty = Annotated[Optional[str], AfterValidator(_check_url)]
Email = Annotated[str, AfterValidator(_check_email)]


def blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_bool(value: Optional[str]) -> bool:
    return (value or "").lower() in ("1", "true", "yes")
