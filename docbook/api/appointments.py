# docbook/api/appointments.py

from fastapi import APIRouter, BackgroundTasks, Depends, status
from typing import List

from docbook.core.security import Principal, get_current_principal, require_role
from docbook.db.client import get_db
from docbook.models.appointment import AppointmentCreate, AppointmentOut, AppointmentResponse
from docbook.services.appointment_service import AppointmentService
from docbook.services.notification_service import NotificationDispatcher, get_notification_dispatcher

router = APIRouter(
    prefix="/appointment",
    tags=["Appointments"]
)


def get_appointment_service(
        background_tasks: BackgroundTasks,
        db=Depends(get_db),
        dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> AppointmentService:
    # Notifications go out after the response has been sent
    def publish(event, appointment, patient, doctor_user, profile):
        background_tasks.add_task(dispatcher.notify, event, appointment, patient, doctor_user, profile)

    return AppointmentService(db, publish=publish)


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def book_appointment(
        booking: AppointmentCreate,
        principal: Principal = Depends(require_role("patient")),
        service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.book(
        principal,
        doctor_id=booking.doctor_id,
        appointment_date=booking.appointment_date,
        time_slot=booking.time_slot,
        notes=booking.notes,
    )
    return {"message": "Appointment booked successfully", "appointment": appointment}


@router.get("", response_model=List[AppointmentOut])
def list_appointments(
        principal: Principal = Depends(get_current_principal),
        service: AppointmentService = Depends(get_appointment_service),
):
    return service.list_for_user(principal)


@router.put("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
        appointment_id: str,
        principal: Principal = Depends(require_role("patient")),
        service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.cancel(principal, appointment_id)
    return {"message": "Appointment cancelled successfully", "appointment": appointment}
