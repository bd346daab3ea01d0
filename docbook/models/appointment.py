from pydantic import Field
from datetime import date, datetime
from typing import Literal, Optional

from docbook.models.doctor import Location
from docbook.models.schemas import APIModel

AppointmentStatus = Literal["booked", "cancelled"]


class AppointmentCreate(APIModel):
    # Presence is checked by the ledger so missing fields surface as one message
    doctor_id: Optional[str] = None
    appointment_date: Optional[date] = None
    time_slot: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=1000)


class DoctorSummary(APIModel):
    id: str
    name: Optional[str] = None
    specialty: Optional[str] = None
    location: Optional[Location] = None


class PatientSummary(APIModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class AppointmentOut(APIModel):
    id: str
    doctor_id: str
    patient_id: str
    appointment_date: str
    time_slot: str
    notes: Optional[str] = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    cancelled_at: Optional[datetime] = None
    doctor: Optional[DoctorSummary] = None
    patient: Optional[PatientSummary] = None


class AppointmentResponse(APIModel):
    message: str
    appointment: AppointmentOut
