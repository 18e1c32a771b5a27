from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jm_engine.models import JobStatus, SeekerPreferences


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        raise ValueError("expected a list of strings")
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _check_range(low: Optional[int], high: Optional[int], label: str) -> None:
    if low is not None and high is not None and low > high:
        raise ValueError(f"{label} minimum must not exceed maximum")


class JobInput(BaseModel):
    """Body of a job create request."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    about: Optional[str] = None
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    benefits: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None

    @model_validator(mode="after")
    def _validate_salary(self) -> "JobInput":
        _check_range(self.salary_min, self.salary_max, "salary")
        return self

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump()


class JobUpdate(BaseModel):
    """Partial update: only fields present in the request are written."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    about: Optional[str] = None
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    benefits: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[str] = None
    status: Optional[JobStatus] = None

    @model_validator(mode="after")
    def _validate_salary(self) -> "JobUpdate":
        _check_range(self.salary_min, self.salary_max, "salary")
        return self

    def to_fields(self) -> Dict[str, Any]:
        # Like COALESCE: a null value keeps the stored column.
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if v is not None}


class PreferencesInput(BaseModel):
    """Seeker preference body, coerced into a fixed shape."""

    model_config = ConfigDict(extra="ignore")

    preferred_job_titles: List[str] = Field(default_factory=list)
    preferred_industries: List[str] = Field(default_factory=list)
    preferred_locations: List[str] = Field(default_factory=list)
    salary_expectation_min: Optional[int] = Field(default=None, ge=0)
    salary_expectation_max: Optional[int] = Field(default=None, ge=0)
    is_skipped: bool = False

    @field_validator("preferred_job_titles", "preferred_industries", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> List[str]:
        return _as_str_list(value)

    @field_validator("preferred_locations", mode="before")
    @classmethod
    def _coerce_locations(cls, value: Any) -> List[str]:
        seen: set[str] = set()
        out: List[str] = []
        for loc in _as_str_list(value):
            if loc in seen:
                continue
            seen.add(loc)
            out.append(loc)
        return out

    @model_validator(mode="after")
    def _validate_salary(self) -> "PreferencesInput":
        _check_range(self.salary_expectation_min, self.salary_expectation_max, "salary expectation")
        return self

    def to_preferences(self, user_id: str) -> SeekerPreferences:
        return SeekerPreferences(
            user_id=user_id,
            preferred_job_titles=list(self.preferred_job_titles),
            preferred_industries=list(self.preferred_industries),
            preferred_locations=list(self.preferred_locations),
            salary_expectation_min=self.salary_expectation_min,
            salary_expectation_max=self.salary_expectation_max,
            is_skipped=self.is_skipped,
        )
