"""
Best-effort booking notifications

``notify`` runs after the appointment write has committed. It never raises:
rendering problems fall back to a plain inline body and delivery problems are
logged and dropped.
"""

from enum import Enum
from typing import Dict, Optional

from docbook.core.logger import get_module_logger
from docbook.services.email_service import get_email_transport
from docbook.services.email_templates import SUBJECTS, fallback_html, render, render_text
from docbook.utils.date_utils import humanize_date

logger = get_module_logger(__name__)


class BookingEvent(str, Enum):
    CREATED = "booking_created"
    CANCELLED = "booking_cancelled"


def _location_label(location: Optional[dict]) -> str:
    if not location:
        return "-"
    parts = [p for p in (location.get("city"), location.get("state")) if p]
    return ", ".join(parts) or "-"


def build_template_data(appointment: dict, patient: dict, doctor_user: dict, profile: Optional[dict]) -> dict:
    try:
        date_label = humanize_date(appointment["appointment_date"])
    except (KeyError, ValueError):
        date_label = appointment.get("appointment_date", "")

    return {
        "patient_name": patient.get("name"),
        "patient_email": patient.get("email"),
        "doctor_name": doctor_user.get("name"),
        "specialty": (profile or {}).get("specialty") or "-",
        "location": _location_label((profile or {}).get("location")),
        "date": date_label,
        "time_slot": appointment.get("time_slot"),
        "notes": appointment.get("notes"),
    }


class NotificationDispatcher:
    def __init__(self, transport=None):
        # transport: anything with send(to, subject, text, html)
        self.transport = transport

    def _deliver(self, template_id: str, to: Optional[str], data: dict) -> bool:
        subject = SUBJECTS.get(template_id, "Appointment update")
        text = render_text(template_id, data)

        try:
            html = render(template_id, data)
        except Exception as e:
            logger.warning(f"Template '{template_id}' failed, sending fallback body: {e}")
            html = fallback_html(subject, text)

        if not to:
            logger.warning(f"No recipient address for '{template_id}', skipping")
            return False
        if self.transport is None:
            logger.info(f"Email disabled, skipped '{template_id}' to {to}")
            return False

        try:
            self.transport.send(to, subject, text, html)
        except Exception as e:
            logger.error(f"Failed to send '{template_id}' to {to}: {e}")
            return False
        return True

    def notify(
        self,
        event: BookingEvent,
        appointment: dict,
        patient: Optional[dict],
        doctor_user: Optional[dict],
        profile: Optional[dict] = None,
    ) -> Dict[str, bool]:
        """Email both parties about ``event``. Returns delivery outcome per audience."""
        outcome = {"patient": False, "doctor": False}
        try:
            event = BookingEvent(event)
            patient = patient or {}
            doctor_user = doctor_user or {}
            data = build_template_data(appointment, patient, doctor_user, profile)

            outcome["patient"] = self._deliver(f"{event.value}_patient", patient.get("email"), data)
            outcome["doctor"] = self._deliver(f"{event.value}_doctor", doctor_user.get("email"), data)
        except Exception:
            logger.exception(f"Notification for appointment {appointment.get('_id')} failed")

        logger.info(f"Notification {event} for appointment {appointment.get('_id')}: {outcome}")
        return outcome


def get_notification_dispatcher() -> NotificationDispatcher:
    return NotificationDispatcher(transport=get_email_transport())
