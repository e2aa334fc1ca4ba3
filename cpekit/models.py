"""
CPEKit Models

Pydantic v2 models for run configuration, attendee seed records and the
rows of the finished credit report.

Example usage:
    from cpekit.models import CpeConfig

    config = CpeConfig(**{
        "max_cpe": 2,
        "start": "2021-04-14 19:00:00",
        "bus_end": "2021-04-14 20:45:00",
        "title": "April chapter meeting",
    })
    print(f"Grace period: {config.start_grace_period} minutes")
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from cpekit.dates import parse_date
from cpekit.errors import DateParseError

OUTPUT_COLUMNS = [
    "(ISC)2 Member #",
    "Member First Name",
    "Member Last Name",
    "Title of Meeting",
    "# CPEs",
    "Date of Activity",
    "CPE qualifying minutes",
]


class CpeConfig(BaseModel):
    """Resolved options for one credit report run."""
    max_cpe: int = Field(
        2,
        ge=0,
        validation_alias=AliasChoices("max_cpe", "cpe"),
        description="Maximum CPEs for the event"
    )
    start_grace_period: int = Field(
        10,
        ge=0,
        validation_alias=AliasChoices("start_grace_period", "grace"),
        description="Minutes after scheduled start that still count as present at the start"
    )
    start: Optional[str] = Field(None, description="Scheduled start time")
    end: Optional[str] = Field(None, description="Scheduled end time (default: start + max_cpe hours)")
    bus_end: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("bus_end", "biz"),
        description="Actual end of business (default: scheduled end)"
    )
    title: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("title", "meeting_title"),
        description="Meeting title printed on every report row"
    )
    output: str = Field("-", description="Output file path, '-' for standard output")
    debug: bool = Field(False, description="Enable debug logging")
    late_join_mode: Literal["reset", "accumulate"] = Field(
        "reset",
        description="How minutes from an entry that joins late but stays to the end combine "
                    "with earlier entries"
    )

    @field_validator('start', 'end', 'bus_end', mode='before')
    @classmethod
    def validate_date_text(cls, v):
        """Reject date options that cannot be parsed before any work starts."""
        if v is None or v == "":
            return None
        v = str(v)
        try:
            parse_date(v)
        except DateParseError as e:
            raise ValueError(str(e)) from e
        return v

    model_config = {
        # Unknown options are configuration errors
        "extra": "forbid",
        "populate_by_name": True,
        "validate_assignment": True,
    }


class AttendeeSeed(BaseModel):
    """
    Manually entered attendee record.

    Used for hosts and speakers who are missing from the export or whose
    certification number is not collected by the registration form. A
    ``cpe`` value bypasses credit computation for that attendee.
    """
    first_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("first name", "first_name")
    )
    last_name: Optional[str] = Field(
        None, validation_alias=AliasChoices("last name", "last_name")
    )
    isc2: Optional[str] = Field(None, description="Certification number text")
    cpe: Optional[float] = Field(None, ge=0, description="Preset CPE value")

    @field_validator('isc2', 'first_name', 'last_name', mode='before')
    @classmethod
    def coerce_text(cls, v):
        """YAML reads bare certification numbers as integers."""
        if v is None:
            return None
        return str(v)

    model_config = {"extra": "forbid", "populate_by_name": True}


class SeedFile(BaseModel):
    """Contents of a YAML meeting file: option overrides plus attendee seeds."""
    config: Dict[str, Any] = Field(default_factory=dict)
    attendee: Dict[str, AttendeeSeed] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}


class CpeRecord(BaseModel):
    """One row of the credit report."""
    member_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    meeting_title: Optional[str] = None
    cpe: float
    activity_date: str
    cpe_minutes: Optional[str] = None

    def as_row(self) -> List[Any]:
        return [
            self.member_id,
            self.first_name or "",
            self.last_name or "",
            self.meeting_title or "",
            format_cpe(self.cpe),
            self.activity_date,
            self.cpe_minutes or "",
        ]


class SkippedAttendee(BaseModel):
    """Attendee left out of the report, with the reason."""
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    reason: str


class CpeReport(BaseModel):
    """Ordered report rows plus the attendees that were skipped."""
    records: List[CpeRecord] = Field(default_factory=list)
    skipped: List[SkippedAttendee] = Field(default_factory=list)

    def rows(self) -> List[List[Any]]:
        return [record.as_row() for record in self.records]


def format_cpe(value: float) -> str:
    """Print credits without trailing zeros: 2, 1.5, 0.75."""
    return f"{value:g}"
