from pymongo import ASCENDING, MongoClient

from docbook.core.config import MONGO_DB_NAME, MONGO_URI
from docbook.core.logger import logger

USERS = "users"
DOCTOR_PROFILES = "doctor_profiles"
APPOINTMENTS = "appointments"

ACTIVE_SLOT_INDEX = "uniq_active_slot"

_client = None


def get_client() -> MongoClient:
    global _client
    if _client is None:
        if not MONGO_URI:
            raise ValueError("MONGO_URI is not set in the environment")
        _client = MongoClient(MONGO_URI, tz_aware=True)
    return _client


def get_db():
    return get_client()[MONGO_DB_NAME]


def init_db(db):
    """Create the indexes the services rely on. Safe to run on every startup."""
    db[USERS].create_index([("email", ASCENDING)], unique=True, name="uniq_user_email")
    db[DOCTOR_PROFILES].create_index([("user_id", ASCENDING)], unique=True, name="uniq_profile_user")

    # At most one booked appointment per doctor/date/slot. Cancelled rows fall
    # outside the partial filter so the slot can be booked again.
    db[APPOINTMENTS].create_index(
        [("doctor_id", ASCENDING), ("appointment_date", ASCENDING), ("time_slot", ASCENDING)],
        unique=True,
        partialFilterExpression={"status": "booked"},
        name=ACTIVE_SLOT_INDEX,
    )
    db[APPOINTMENTS].create_index([("patient_id", ASCENDING)], name="appointments_by_patient")
    db[APPOINTMENTS].create_index([("doctor_id", ASCENDING)], name="appointments_by_doctor")

    logger.info(f"MongoDB indexes ensured on {db.name}")


def close_db():
    global _client
    if _client is not None:
        _client.close()
        _client = None
