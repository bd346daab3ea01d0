from fastapi import APIRouter, Body, Depends, Query, Response, status
from typing import List, Optional

from docbook.core.security import Principal, require_role
from docbook.db.client import get_db
from docbook.models.doctor import DoctorProfileOut, DoctorProfileResponse, DoctorProfileUpsert, DoctorSearchFilters
from docbook.services.doctor_service import DoctorService

router = APIRouter(prefix="/doctor", tags=["Doctors"])


@router.post("/profile", response_model=DoctorProfileResponse)
def upsert_profile(
        fields: DoctorProfileUpsert,
        response: Response,
        principal: Principal = Depends(require_role("doctor")),
        db=Depends(get_db),
):
    profile, created = DoctorService(db).upsert_profile(principal, fields)
    if created:
        response.status_code = status.HTTP_201_CREATED
        return {"message": "Profile created successfully", "profile": profile}
    return {"message": "Profile updated successfully", "profile": profile}


@router.get("/profile", response_model=DoctorProfileOut)
def get_own_profile(principal: Principal = Depends(require_role("doctor")), db=Depends(get_db)):
    return DoctorService(db).get_own_profile(principal)


@router.get("/search", response_model=List[DoctorProfileOut])
def search_doctors(
        specialty: Optional[str] = Query(None),
        city: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        name: Optional[str] = Query(None),
        db=Depends(get_db),
):
    filters = DoctorSearchFilters(specialty=specialty, city=city, state=state, name=name)
    return DoctorService(db).search(filters)


@router.post("/search", response_model=List[DoctorProfileOut])
def search_doctors_post(
        body: Optional[DoctorSearchFilters] = Body(None),
        specialty: Optional[str] = Query(None),
        city: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        name: Optional[str] = Query(None),
        db=Depends(get_db),
):
    # Query string and body are merged, body values win
    merged = {"specialty": specialty, "city": city, "state": state, "name": name}
    if body is not None:
        merged.update(body.model_dump(exclude_none=True))
    return DoctorService(db).search(DoctorSearchFilters(**merged))


@router.get("/{profile_id}", response_model=DoctorProfileOut)
def get_doctor_profile(profile_id: str, db=Depends(get_db)):
    return DoctorService(db).get_profile_by_id(profile_id)
