import smtplib

import pytest
from bson import ObjectId

from docbook.services import email_service, email_templates
from docbook.services.email_service import EmailDeliveryError, SMTPEmailTransport
from docbook.services.email_templates import TemplateRenderError, render
from docbook.services.notification_service import BookingEvent, NotificationDispatcher

from conftest import FailingTransport, RecordingTransport

APPOINTMENT = {
    "_id": ObjectId(),
    "doctor_id": "d1",
    "patient_id": "p1",
    "appointment_date": "2025-06-15",
    "time_slot": "09:00",
    "notes": "Follow-up <b>visit</b>",
    "status": "booked",
}
PATIENT = {"name": "Pat Patient", "email": "pat@example.com"}
DOCTOR_USER = {"name": "Gregory House", "email": "house@example.com"}
PROFILE = {"specialty": "Cardiology", "location": {"city": "Princeton", "state": "NJ"}}


def test_notify_sends_audience_specific_messages():
    transport = RecordingTransport()

    outcome = NotificationDispatcher(transport).notify(
        BookingEvent.CREATED, APPOINTMENT, PATIENT, DOCTOR_USER, PROFILE
    )

    assert outcome == {"patient": True, "doctor": True}
    by_recipient = {m["to"]: m for m in transport.sent}
    assert by_recipient["pat@example.com"]["subject"] == "Your appointment is confirmed"
    assert by_recipient["house@example.com"]["subject"] == "New appointment booked"
    assert "Princeton, NJ" in by_recipient["pat@example.com"]["html"]
    assert "pat@example.com" in by_recipient["house@example.com"]["html"]
    # User supplied text is escaped
    assert "&lt;b&gt;visit&lt;/b&gt;" in by_recipient["house@example.com"]["html"]


def test_notify_absorbs_transport_failures():
    transport = FailingTransport()

    outcome = NotificationDispatcher(transport).notify(
        BookingEvent.CANCELLED, APPOINTMENT, PATIENT, DOCTOR_USER, PROFILE
    )

    assert outcome == {"patient": False, "doctor": False}
    assert transport.attempts == 2


def test_notify_falls_back_when_template_fails(monkeypatch):
    transport = RecordingTransport()

    def broken(data):
        raise KeyError("patient_name")

    monkeypatch.setitem(email_templates.TEMPLATES, "booking_created_patient", broken)

    NotificationDispatcher(transport).notify(BookingEvent.CREATED, APPOINTMENT, PATIENT, DOCTOR_USER, PROFILE)

    patient_mail = next(m for m in transport.sent if m["to"] == "pat@example.com")
    assert patient_mail["html"].startswith("<html><body><h3>Your appointment is confirmed</h3>")
    assert "Gregory House" in patient_mail["html"]


def test_notify_without_transport_or_address():
    assert NotificationDispatcher(None).notify(
        BookingEvent.CREATED, APPOINTMENT, PATIENT, DOCTOR_USER, PROFILE
    ) == {"patient": False, "doctor": False}

    transport = RecordingTransport()
    outcome = NotificationDispatcher(transport).notify(BookingEvent.CREATED, APPOINTMENT, None, DOCTOR_USER)
    assert outcome == {"patient": False, "doctor": True}


def test_render_errors():
    with pytest.raises(TemplateRenderError):
        render("no_such_template", {})
    with pytest.raises(TemplateRenderError):
        render("booking_created_patient", {"patient_name": "Pat"})


class _FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None, context=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.sent = []
        self.logged_in = None
        self.closed = False
        _FakeSMTP.instances.append(self)

    def starttls(self, context=None):
        self.tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def sendmail(self, from_addr, to_addrs, message):
        self.sent.append((from_addr, to_addrs, message))

    def quit(self):
        self.closed = True


def test_smtp_transport_sends_with_timeout(monkeypatch):
    _FakeSMTP.instances.clear()
    monkeypatch.setattr(email_service.smtplib, "SMTP_SSL", _FakeSMTP)

    transport = SMTPEmailTransport(
        "smtp.example.com", 465, "user", "pw", from_address="Docbook <noreply@example.com>", timeout=3
    )
    result = transport.send("pat@example.com", "Hello", "plain", "<p>html</p>")

    server = _FakeSMTP.instances[0]
    assert result["success"] is True
    assert server.timeout == 3
    assert server.logged_in == ("user", "pw")
    assert server.sent[0][0] == "noreply@example.com"
    assert server.sent[0][1] == ["pat@example.com"]
    assert server.closed


def test_smtp_transport_wraps_failures(monkeypatch):
    def refuse(*args, **kwargs):
        raise smtplib.SMTPConnectError(421, "busy")

    monkeypatch.setattr(email_service.smtplib, "SMTP", refuse)

    with pytest.raises(EmailDeliveryError):
        SMTPEmailTransport("smtp.example.com", 587).send("pat@example.com", "Hello", "plain", "<p>html</p>")


def test_timeout_is_a_delivery_failure(monkeypatch):
    def slow(*args, **kwargs):
        raise TimeoutError("timed out")

    monkeypatch.setattr(email_service.smtplib, "SMTP", slow)
    transport = SMTPEmailTransport("smtp.example.com", 587, timeout=0.1)

    outcome = NotificationDispatcher(transport).notify(BookingEvent.CREATED, APPOINTMENT, PATIENT, DOCTOR_USER)

    assert outcome == {"patient": False, "doctor": False}
