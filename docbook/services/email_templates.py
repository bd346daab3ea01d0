"""
Appointment email templates

Each template turns a flat data dict into an HTML body. Subjects and plain
text bodies live next to them so both audiences get their own wording.
"""

from html import escape
from typing import Callable, Dict

THEME = {
    "primary": "#2563eb",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_muted": "#64748b",
    "danger": "#dc2626",
}

BRAND_NAME = "DoctorSearch"


class TemplateRenderError(Exception):
    pass


def get_base_template(title: str, intro: str, details: Dict[str, str], accent: str = THEME["primary"]) -> str:
    """Base HTML wrapper shared by all appointment emails"""
    rows = "".join(
        f"""
        <tr>
          <td style="padding:6px 12px;color:{THEME['text_muted']};">{escape(label)}</td>
          <td style="padding:6px 12px;color:{THEME['text_primary']};font-weight:600;">{escape(value)}</td>
        </tr>"""
        for label, value in details.items()
    )

    return f"""<!DOCTYPE html>
<html>
  <body style="margin:0;padding:24px;background:{THEME['background']};font-family:Arial,sans-serif;">
    <div style="max-width:560px;margin:0 auto;background:{THEME['card_bg']};border-radius:8px;padding:24px;">
      <h2 style="margin-top:0;color:{accent};">{escape(title)}</h2>
      <p style="color:{THEME['text_primary']};">{escape(intro)}</p>
      <table style="border-collapse:collapse;">{rows}
      </table>
      <p style="color:{THEME['text_muted']};font-size:12px;margin-top:24px;">
        You're receiving this because you have an account with {BRAND_NAME}.
      </p>
    </div>
  </body>
</html>"""


def booking_created_patient_template(data: dict) -> str:
    return get_base_template(
        title="Appointment confirmed",
        intro=f"Hi {data['patient_name']}, your appointment with Dr. {data['doctor_name']} is booked.",
        details={
            "Date": data["date"],
            "Time": data["time_slot"],
            "Specialty": data["specialty"],
            "Location": data["location"],
        },
    )


def booking_created_doctor_template(data: dict) -> str:
    return get_base_template(
        title="New appointment booked",
        intro=f"Dr. {data['doctor_name']}, {data['patient_name']} booked an appointment with you.",
        details={
            "Date": data["date"],
            "Time": data["time_slot"],
            "Patient email": data["patient_email"],
            "Notes": data.get("notes") or "-",
        },
    )


def booking_cancelled_patient_template(data: dict) -> str:
    return get_base_template(
        title="Appointment cancelled",
        intro=f"Hi {data['patient_name']}, your appointment with Dr. {data['doctor_name']} has been cancelled.",
        details={
            "Date": data["date"],
            "Time": data["time_slot"],
        },
        accent=THEME["danger"],
    )


def booking_cancelled_doctor_template(data: dict) -> str:
    return get_base_template(
        title="Appointment cancelled",
        intro=f"Dr. {data['doctor_name']}, {data['patient_name']} cancelled their appointment.",
        details={
            "Date": data["date"],
            "Time": data["time_slot"],
            "Patient email": data["patient_email"],
        },
        accent=THEME["danger"],
    )


TEMPLATES: Dict[str, Callable[[dict], str]] = {
    "booking_created_patient": booking_created_patient_template,
    "booking_created_doctor": booking_created_doctor_template,
    "booking_cancelled_patient": booking_cancelled_patient_template,
    "booking_cancelled_doctor": booking_cancelled_doctor_template,
}

SUBJECTS = {
    "booking_created_patient": "Your appointment is confirmed",
    "booking_created_doctor": "New appointment booked",
    "booking_cancelled_patient": "Your appointment has been cancelled",
    "booking_cancelled_doctor": "An appointment has been cancelled",
}


def render(template_id: str, data: dict) -> str:
    template = TEMPLATES.get(template_id)
    if template is None:
        raise TemplateRenderError(f"Unknown email template '{template_id}'")
    try:
        return template(data)
    except (KeyError, TypeError, ValueError) as e:
        raise TemplateRenderError(f"Failed to render '{template_id}': {e}") from e


def render_text(template_id: str, data: dict) -> str:
    """Plain text body. Uses .get so it still works when rendering HTML failed."""
    patient = data.get("patient_name") or "there"
    doctor = data.get("doctor_name") or "your doctor"
    when = f"{data.get('date', '')} at {data.get('time_slot', '')}".strip()

    if template_id == "booking_created_patient":
        return f"Hi {patient}, your appointment with Dr. {doctor} on {when} is booked."
    if template_id == "booking_created_doctor":
        return f"Dr. {doctor}, {patient} booked an appointment with you on {when}."
    if template_id == "booking_cancelled_patient":
        return f"Hi {patient}, your appointment with Dr. {doctor} on {when} has been cancelled."
    if template_id == "booking_cancelled_doctor":
        return f"Dr. {doctor}, {patient} cancelled their appointment on {when}."
    return f"Appointment update for {when}."


def fallback_html(subject: str, text: str) -> str:
    """Minimal inline body used when the template could not be rendered"""
    return f"<html><body><h3>{escape(subject)}</h3><p>{escape(text)}</p></body></html>"
