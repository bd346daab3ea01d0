from typing import Dict, Iterable, List, Optional

from bson import ObjectId

from docbook.db.client import USERS


def to_object_id(value: str) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(value):
        return None
    return ObjectId(value)


def create_user(db, data: dict) -> str:
    result = db[USERS].insert_one(data)
    return str(result.inserted_id)


def get_user_by_email(db, email: str) -> Optional[dict]:
    return db[USERS].find_one({"email": email})


def get_user_by_id(db, user_id: str) -> Optional[dict]:
    oid = to_object_id(user_id)
    if oid is None:
        return None
    return db[USERS].find_one({"_id": oid})


def get_users_by_ids(db, user_ids: Iterable[str]) -> Dict[str, dict]:
    oids = [oid for oid in (to_object_id(uid) for uid in user_ids) if oid is not None]
    if not oids:
        return {}
    return {str(user["_id"]): user for user in db[USERS].find({"_id": {"$in": oids}})}


def find_user_ids_by_name(db, name_pattern: dict, role: str) -> List[str]:
    return [str(user["_id"]) for user in db[USERS].find({"name": name_pattern, "role": role}, {"_id": 1})]


def update_user(db, user_id: str, fields: dict) -> int:
    return db[USERS].update_one({"_id": to_object_id(user_id)}, {"$set": fields}).modified_count


def serialize_user(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
    }
