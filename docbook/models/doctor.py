# Doctor profile models with Pydantic v2 syntax

from pydantic import Field, field_validator, model_validator
from typing import Optional

from docbook.models.schemas import APIModel
from docbook.utils.date_utils import is_valid_time


class DayAvailability(APIModel):
    available: bool = False
    start: str = "09:00"
    end: str = "17:00"

    @field_validator("start", "end")
    @classmethod
    def validate_time_format(cls, v):
        if not is_valid_time(v):
            raise ValueError("Time must be in HH:MM (24h) format")
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if self.available and self.start >= self.end:
            raise ValueError("start must be earlier than end on an available day")
        return self


class WeeklyAvailability(APIModel):
    monday: DayAvailability = Field(default_factory=DayAvailability)
    tuesday: DayAvailability = Field(default_factory=DayAvailability)
    wednesday: DayAvailability = Field(default_factory=DayAvailability)
    thursday: DayAvailability = Field(default_factory=DayAvailability)
    friday: DayAvailability = Field(default_factory=DayAvailability)
    saturday: DayAvailability = Field(default_factory=DayAvailability)
    sunday: DayAvailability = Field(default_factory=DayAvailability)


class Location(APIModel):
    city: str = ""
    state: str = ""


class DoctorProfileUpsert(APIModel):
    specialty: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0)
    bio: Optional[str] = None
    education: Optional[str] = None
    consultation_fee: Optional[float] = Field(None, ge=0)
    location: Optional[Location] = None
    availability: Optional[WeeklyAvailability] = None


class DoctorUserSummary(APIModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class DoctorProfileOut(APIModel):
    id: str
    user_id: str
    specialty: str
    experience: int
    bio: Optional[str] = None
    education: Optional[str] = None
    consultation_fee: Optional[float] = None
    location: Location
    availability: WeeklyAvailability
    user: Optional[DoctorUserSummary] = None


class DoctorProfileResponse(APIModel):
    message: str
    profile: DoctorProfileOut


class DoctorSearchFilters(APIModel):
    specialty: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    name: Optional[str] = None
