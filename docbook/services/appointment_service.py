# docbook/services/appointment_service.py

from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from docbook.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from docbook.core.logger import logger
from docbook.core.security import DoctorPrincipal, PatientPrincipal, Principal
from docbook.crud import appointment_crud, doctor_crud, user_crud
from docbook.services.notification_service import BookingEvent
from docbook.utils.date_utils import format_date, parse_date, slot_within, weekday_name

# publish(event, appointment, patient, doctor_user, profile)
Publisher = Callable[..., Any]


def check_schedule(profile: dict, appointment_date: str, time_slot: str) -> None:
    """
    Reject slots outside the doctor's published weekly schedule.

    Doctors who have not marked any day available accept any slot, and
    free-form slot labels are only checked against the day, not the hours.
    """
    availability = profile.get("availability") or {}
    if not any(day.get("available") for day in availability.values()):
        return

    day_name = weekday_name(appointment_date)
    day = availability.get(day_name) or {}
    if not day.get("available"):
        raise ValidationError(f"Doctor is not available on {day_name.capitalize()}")

    within = slot_within(time_slot, day.get("start", ""), day.get("end", ""))
    if within is False:
        raise ValidationError(
            f"Time slot {time_slot} is outside the doctor's hours ({day['start']}-{day['end']})"
        )


class AppointmentService:
    """
    The appointment ledger: booking, cancellation and role-dependent listings
    """

    def __init__(self, db, publish: Optional[Publisher] = None):
        if db is None:
            raise ValueError("Database connection is required")
        self.db = db
        self.publish = publish

    def _publish(self, event: BookingEvent, appointment: dict, profile: Optional[dict]) -> None:
        # Runs after the write committed, so nothing here may fail the request
        if self.publish is None:
            return
        try:
            patient = user_crud.get_user_by_id(self.db, appointment["patient_id"])
            doctor_user = user_crud.get_user_by_id(self.db, profile["user_id"]) if profile else None
            self.publish(event, appointment, patient, doctor_user, profile)
        except Exception:
            logger.exception(f"Failed to dispatch {event.value} for appointment {appointment['_id']}")

    def book(
            self,
            principal: Principal,
            doctor_id: Optional[str],
            appointment_date: Optional[date],
            time_slot: Optional[str],
            notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not isinstance(principal, PatientPrincipal):
            raise AuthorizationError("Only patients can book appointments")

        time_slot = (time_slot or "").strip()
        if not doctor_id or not appointment_date or not time_slot:
            raise ValidationError("Please provide doctorId, appointmentDate, and timeSlot")

        if isinstance(appointment_date, str):
            try:
                date_key = format_date(parse_date(appointment_date))
            except ValueError:
                raise ValidationError("appointmentDate must be a valid YYYY-MM-DD date")
        else:
            date_key = format_date(appointment_date)

        profile = doctor_crud.get_profile_by_id(self.db, doctor_id)
        if not profile:
            raise NotFoundError("Doctor not found")
        doctor_key = str(profile["_id"])

        check_schedule(profile, date_key, time_slot)

        if appointment_crud.find_booked_slot(self.db, doctor_key, date_key, time_slot):
            raise ConflictError("This time slot is already booked")

        current_time = datetime.now(timezone.utc)
        appointment = {
            "doctor_id": doctor_key,
            "patient_id": principal.user_id,
            "appointment_date": date_key,
            "time_slot": time_slot,
            "notes": notes,
            "status": "booked",
            "created_at": current_time,
            "updated_at": current_time,
            "cancelled_at": None,
        }

        try:
            appointment_id = appointment_crud.create_appointment(self.db, appointment)
        except DuplicateKeyError:
            # A concurrent booker won between the pre-check and the insert
            logger.info(f"Slot {doctor_key}/{date_key}/{time_slot} taken concurrently")
            raise ConflictError("This time slot is already booked")

        logger.info(
            f"Appointment {appointment_id} booked: doctor {doctor_key} on {date_key} {time_slot} "
            f"by patient {principal.user_id}"
        )

        self._publish(BookingEvent.CREATED, appointment, profile)
        return appointment_crud.serialize_appointment(appointment)

    def cancel(self, principal: Principal, appointment_id: str) -> Dict[str, Any]:
        appointment = appointment_crud.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")

        if appointment["patient_id"] != principal.user_id:
            raise AuthorizationError("Not authorized to cancel this appointment")

        if appointment["status"] == "cancelled":
            raise ConflictError("Appointment is already cancelled")

        current_time = datetime.now(timezone.utc)
        updated = appointment_crud.cancel_if_booked(
            self.db,
            appointment["_id"],
            {"updated_at": current_time, "cancelled_at": current_time},
        )
        if updated is None:
            # Cancelled by a concurrent request after our read
            raise ConflictError("Appointment is already cancelled")

        logger.info(f"Appointment {appointment_id} cancelled by patient {principal.user_id}")

        profile = doctor_crud.get_profile_by_id(self.db, updated["doctor_id"])
        self._publish(BookingEvent.CANCELLED, updated, profile)
        return appointment_crud.serialize_appointment(updated)

    def list_for_user(self, principal: Principal) -> List[Dict[str, Any]]:
        if isinstance(principal, PatientPrincipal):
            return self._list_for_patient(principal)
        if isinstance(principal, DoctorPrincipal):
            return self._list_for_doctor(principal)
        raise AuthorizationError("Access forbidden: insufficient role")

    def _list_for_patient(self, principal: PatientPrincipal) -> List[Dict[str, Any]]:
        appointments = appointment_crud.get_appointments_by_patient(self.db, principal.user_id)

        profiles = {}
        for doctor_id in {a["doctor_id"] for a in appointments}:
            profile = doctor_crud.get_profile_by_id(self.db, doctor_id)
            if profile:
                profiles[doctor_id] = profile
        users = user_crud.get_users_by_ids(self.db, [p["user_id"] for p in profiles.values()])

        result = []
        for appt in appointments:
            item = appointment_crud.serialize_appointment(appt)
            profile = profiles.get(appt["doctor_id"])
            if profile:
                doctor_user = users.get(profile["user_id"]) or {}
                item["doctor"] = {
                    "id": appt["doctor_id"],
                    "name": doctor_user.get("name"),
                    "specialty": profile.get("specialty"),
                    "location": profile.get("location"),
                }
            result.append(item)
        return result

    def _list_for_doctor(self, principal: DoctorPrincipal) -> List[Dict[str, Any]]:
        profile = doctor_crud.get_profile_by_user(self.db, principal.user_id)
        if not profile:
            raise NotFoundError("Doctor profile not found")

        appointments = appointment_crud.get_appointments_by_doctor(self.db, str(profile["_id"]))
        patients = user_crud.get_users_by_ids(self.db, {a["patient_id"] for a in appointments})

        result = []
        for appt in appointments:
            item = appointment_crud.serialize_appointment(appt)
            patient = patients.get(appt["patient_id"])
            if patient:
                item["patient"] = {
                    "id": appt["patient_id"],
                    "name": patient.get("name"),
                    "email": patient.get("email"),
                }
            result.append(item)
        return result
