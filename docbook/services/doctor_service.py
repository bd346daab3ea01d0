# docbook/services/doctor_service.py

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from pymongo.errors import DuplicateKeyError

from docbook.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from docbook.core.logger import logger
from docbook.core.security import DoctorPrincipal, Principal
from docbook.crud import doctor_crud, user_crud
from docbook.models.doctor import DoctorProfileUpsert, DoctorSearchFilters, WeeklyAvailability


def _contains(value: str) -> dict:
    # Case-insensitive substring match, user input taken literally
    return {"$regex": re.escape(value.strip()), "$options": "i"}


class DoctorService:
    """
    Doctor profiles and search
    """

    def __init__(self, db):
        if db is None:
            raise ValueError("Database connection is required")
        self.db = db

    @staticmethod
    def _require_doctor(principal: Principal) -> DoctorPrincipal:
        if not isinstance(principal, DoctorPrincipal):
            raise AuthorizationError("Only doctors can manage a profile")
        return principal

    def upsert_profile(self, principal: Principal, fields: DoctorProfileUpsert) -> Tuple[Dict[str, Any], bool]:
        """
        Create or update the calling doctor's own profile.

        Returns the serialized profile and whether it was newly created.
        """
        doctor = self._require_doctor(principal)

        specialty = (fields.specialty or "").strip()
        if not specialty or fields.experience is None:
            raise ValidationError("Please provide all required fields: specialty, experience")

        current_time = datetime.now(timezone.utc)
        existing = doctor_crud.get_profile_by_user(self.db, doctor.user_id)

        if existing:
            update_fields = {
                "specialty": specialty,
                "experience": fields.experience,
                "updated_at": current_time,
            }
            # Optional fields keep their stored value unless supplied
            if fields.bio is not None:
                update_fields["bio"] = fields.bio
            if fields.education is not None:
                update_fields["education"] = fields.education
            if fields.consultation_fee is not None:
                update_fields["consultation_fee"] = fields.consultation_fee
            if fields.location and fields.location.city and fields.location.state:
                update_fields["location"] = fields.location.model_dump()
            if fields.availability is not None:
                update_fields["availability"] = fields.availability.model_dump()

            doctor_crud.update_profile(self.db, existing["_id"], update_fields)
            logger.info(f"Doctor profile {existing['_id']} updated by {doctor.user_id}")
            profile = doctor_crud.get_profile_by_id(self.db, str(existing["_id"]))
            return doctor_crud.serialize_profile(profile), False

        availability = fields.availability or WeeklyAvailability()
        location = fields.location.model_dump() if fields.location else {"city": "", "state": ""}
        profile_doc = {
            "user_id": doctor.user_id,
            "specialty": specialty,
            "experience": fields.experience,
            "bio": fields.bio,
            "education": fields.education,
            "consultation_fee": fields.consultation_fee,
            "location": location,
            "availability": availability.model_dump(),
            "created_at": current_time,
            "updated_at": current_time,
        }

        try:
            profile_id = doctor_crud.create_profile(self.db, profile_doc)
        except DuplicateKeyError:
            raise ConflictError("Profile already exists for this doctor")

        logger.info(f"Doctor profile {profile_id} created for {doctor.user_id}")
        return doctor_crud.serialize_profile(profile_doc), True

    def get_own_profile(self, principal: Principal) -> Dict[str, Any]:
        doctor = self._require_doctor(principal)
        profile = doctor_crud.get_profile_by_user(self.db, doctor.user_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return doctor_crud.serialize_profile(profile)

    def get_profile_by_id(self, profile_id: str) -> Dict[str, Any]:
        profile = doctor_crud.get_profile_by_id(self.db, profile_id)
        if not profile:
            raise NotFoundError("Doctor profile not found")
        user = user_crud.get_user_by_id(self.db, profile["user_id"])
        return doctor_crud.serialize_profile(profile, user)

    def search(self, filters: DoctorSearchFilters) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}

        if filters.specialty and filters.specialty.strip():
            query["specialty"] = _contains(filters.specialty)
        if filters.city and filters.city.strip():
            query["location.city"] = _contains(filters.city)
        if filters.state and filters.state.strip():
            query["location.state"] = _contains(filters.state)

        # The display name lives on the user record
        if filters.name and filters.name.strip():
            user_ids = user_crud.find_user_ids_by_name(self.db, _contains(filters.name), role="doctor")
            if not user_ids:
                return []
            query["user_id"] = {"$in": user_ids}

        profiles = doctor_crud.find_profiles(self.db, query)
        users = user_crud.get_users_by_ids(self.db, [p["user_id"] for p in profiles])

        results = [doctor_crud.serialize_profile(p, users.get(p["user_id"])) for p in profiles]
        logger.info(f"Doctor search matched {len(results)} profiles")
        return results

