from typing import List, Optional

from docbook.crud.user_crud import to_object_id
from docbook.db.client import DOCTOR_PROFILES


def create_profile(db, data: dict) -> str:
    result = db[DOCTOR_PROFILES].insert_one(data)
    return str(result.inserted_id)


def update_profile(db, profile_id, fields: dict) -> int:
    return db[DOCTOR_PROFILES].update_one({"_id": to_object_id(profile_id)}, {"$set": fields}).modified_count


def get_profile_by_id(db, profile_id: str) -> Optional[dict]:
    oid = to_object_id(profile_id)
    if oid is None:
        return None
    return db[DOCTOR_PROFILES].find_one({"_id": oid})


def get_profile_by_user(db, user_id: str) -> Optional[dict]:
    return db[DOCTOR_PROFILES].find_one({"user_id": user_id})


def find_profiles(db, query: dict) -> List[dict]:
    # Insertion order
    return list(db[DOCTOR_PROFILES].find(query).sort("_id", 1))


def serialize_profile(doc: dict, user: Optional[dict] = None) -> dict:
    profile = {
        "id": str(doc["_id"]),
        "user_id": doc.get("user_id"),
        "specialty": doc.get("specialty"),
        "experience": doc.get("experience"),
        "bio": doc.get("bio"),
        "education": doc.get("education"),
        "consultation_fee": doc.get("consultation_fee"),
        "location": doc.get("location") or {"city": "", "state": ""},
        "availability": doc.get("availability") or {},
    }
    if user is not None:
        profile["user"] = {
            "id": str(user["_id"]),
            "name": user.get("name"),
            "email": user.get("email"),
        }
    return profile
