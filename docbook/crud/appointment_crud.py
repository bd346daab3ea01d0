from typing import List, Optional

from pymongo import ReturnDocument

from docbook.crud.user_crud import to_object_id
from docbook.db.client import APPOINTMENTS


def create_appointment(db, data: dict) -> str:
    return str(db[APPOINTMENTS].insert_one(data).inserted_id)


def get_appointment_by_id(db, appointment_id: str) -> Optional[dict]:
    oid = to_object_id(appointment_id)
    if oid is None:
        return None
    return db[APPOINTMENTS].find_one({"_id": oid})


def find_booked_slot(db, doctor_id: str, appointment_date: str, time_slot: str) -> Optional[dict]:
    return db[APPOINTMENTS].find_one({
        "doctor_id": doctor_id,
        "appointment_date": appointment_date,
        "time_slot": time_slot,
        "status": "booked",
    })


def cancel_if_booked(db, appointment_id, fields: dict) -> Optional[dict]:
    """Flip a booked appointment to cancelled. None when it was not booked any more."""
    return db[APPOINTMENTS].find_one_and_update(
        {"_id": to_object_id(appointment_id), "status": "booked"},
        {"$set": {**fields, "status": "cancelled"}},
        return_document=ReturnDocument.AFTER,
    )


def get_appointments_by_patient(db, patient_id: str) -> List[dict]:
    return list(db[APPOINTMENTS].find({"patient_id": patient_id}).sort(
        [("appointment_date", 1), ("time_slot", 1)]
    ))


def get_appointments_by_doctor(db, doctor_id: str) -> List[dict]:
    return list(db[APPOINTMENTS].find({"doctor_id": doctor_id}).sort(
        [("appointment_date", 1), ("time_slot", 1)]
    ))


def serialize_appointment(appt: dict) -> dict:
    return {
        "id": str(appt["_id"]),
        "doctor_id": appt["doctor_id"],
        "patient_id": appt["patient_id"],
        "appointment_date": appt["appointment_date"],
        "time_slot": appt["time_slot"],
        "notes": appt.get("notes"),
        "status": appt["status"],
        "created_at": appt["created_at"],
        "updated_at": appt["updated_at"],
        "cancelled_at": appt.get("cancelled_at"),
    }
