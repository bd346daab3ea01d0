from docbook.db.client import APPOINTMENTS
from docbook.services.notification_service import NotificationDispatcher, get_notification_dispatcher
from docbook.main import app

from conftest import FailingTransport


def _book(client, headers, doctor_id, date="2025-06-15", slot="09:00", **extra):
    return client.post(
        "/appointment",
        json={"doctorId": doctor_id, "appointmentDate": date, "timeSlot": slot, **extra},
        headers=headers,
    )


def test_book_and_double_booking_scenario(client, db, doctor, patient, register):
    doctor_id = doctor["profile"]["id"]
    _, other_headers = register(name="Second Patient", email="p2@example.com")

    first = _book(client, patient["headers"], doctor_id)
    assert first.status_code == 201
    appointment = first.json()["appointment"]
    assert appointment["status"] == "booked"
    assert appointment["appointmentDate"] == "2025-06-15"
    assert appointment["timeSlot"] == "09:00"

    second = _book(client, other_headers, doctor_id)
    assert second.status_code == 409
    assert db[APPOINTMENTS].count_documents({}) == 1

    cancelled = client.put(f"/appointment/{appointment['id']}/cancel", headers=patient["headers"])
    assert cancelled.status_code == 200
    assert cancelled.json()["appointment"]["status"] == "cancelled"

    rebooked = _book(client, other_headers, doctor_id)
    assert rebooked.status_code == 201
    assert db[APPOINTMENTS].count_documents({"status": "booked"}) == 1


def test_book_requires_all_fields(client, doctor, patient):
    response = client.post(
        "/appointment", json={"doctorId": doctor["profile"]["id"], "timeSlot": "09:00"}, headers=patient["headers"]
    )

    assert response.status_code == 400
    assert "appointmentDate" in response.json()["detail"]


def test_book_rejects_malformed_date(client, doctor, patient):
    response = _book(client, patient["headers"], doctor["profile"]["id"], date="15/06/2025")

    assert response.status_code == 400


def test_book_unknown_doctor_writes_nothing(client, db, patient):
    response = _book(client, patient["headers"], "000000000000000000000000")

    assert response.status_code == 404
    assert db[APPOINTMENTS].count_documents({}) == 0


def test_doctor_cannot_book(client, doctor):
    response = _book(client, doctor["headers"], doctor["profile"]["id"])

    assert response.status_code == 403


def test_book_requires_authentication(client, doctor):
    response = _book(client, {}, doctor["profile"]["id"])

    assert response.status_code == 401


def test_book_respects_published_schedule(client, doctor, patient):
    schedule = {
        day: {"available": False, "start": "09:00", "end": "17:00"}
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    }
    schedule["monday"] = {"available": True, "start": "09:00", "end": "12:00"}
    client.post(
        "/doctor/profile",
        json={"specialty": "Cardiology", "experience": 12, "availability": schedule},
        headers=doctor["headers"],
    )
    doctor_id = doctor["profile"]["id"]

    # 2025-06-15 is a Sunday, 2025-06-16 a Monday
    assert _book(client, patient["headers"], doctor_id, date="2025-06-15").status_code == 400
    assert _book(client, patient["headers"], doctor_id, date="2025-06-16", slot="13:00").status_code == 400
    assert _book(client, patient["headers"], doctor_id, date="2025-06-16", slot="11:30").status_code == 201


def test_cancel_twice_conflicts(client, db, doctor, patient):
    appointment = _book(client, patient["headers"], doctor["profile"]["id"]).json()["appointment"]
    client.put(f"/appointment/{appointment['id']}/cancel", headers=patient["headers"])
    before = db[APPOINTMENTS].find_one({})

    response = client.put(f"/appointment/{appointment['id']}/cancel", headers=patient["headers"])

    assert response.status_code == 409
    assert db[APPOINTMENTS].find_one({}) == before


def test_cancel_by_other_patient_forbidden(client, db, doctor, patient, register):
    appointment = _book(client, patient["headers"], doctor["profile"]["id"]).json()["appointment"]
    _, other_headers = register(name="Mallory", email="mallory@example.com")

    response = client.put(f"/appointment/{appointment['id']}/cancel", headers=other_headers)

    assert response.status_code == 403
    assert db[APPOINTMENTS].find_one({})["status"] == "booked"


def test_doctor_cannot_cancel(client, doctor, patient):
    appointment = _book(client, patient["headers"], doctor["profile"]["id"]).json()["appointment"]

    response = client.put(f"/appointment/{appointment['id']}/cancel", headers=doctor["headers"])

    assert response.status_code == 403


def test_cancel_unknown_appointment(client, patient):
    assert client.put("/appointment/000000000000000000000000/cancel", headers=patient["headers"]).status_code == 404
    assert client.put("/appointment/garbage/cancel", headers=patient["headers"]).status_code == 404


def test_listing_round_trip_for_patient(client, doctor, patient):
    appointment = _book(client, patient["headers"], doctor["profile"]["id"], notes="Chest pain").json()["appointment"]

    listed = client.get("/appointment", headers=patient["headers"]).json()
    assert [a["id"] for a in listed] == [appointment["id"]]
    assert listed[0]["status"] == "booked"
    assert listed[0]["notes"] == "Chest pain"
    assert listed[0]["doctor"]["name"] == "Gregory House"
    assert listed[0]["doctor"]["specialty"] == "Cardiology"

    client.put(f"/appointment/{appointment['id']}/cancel", headers=patient["headers"])

    listed = client.get("/appointment", headers=patient["headers"]).json()
    assert [a["id"] for a in listed] == [appointment["id"]]
    assert listed[0]["status"] == "cancelled"


def test_listing_for_doctor_includes_patient(client, doctor, patient):
    _book(client, patient["headers"], doctor["profile"]["id"], slot="10:00")
    _book(client, patient["headers"], doctor["profile"]["id"], slot="09:00")

    listed = client.get("/appointment", headers=doctor["headers"]).json()

    assert [a["timeSlot"] for a in listed] == ["09:00", "10:00"]
    assert listed[0]["patient"] == {"id": patient["user"]["id"], "name": "Pat Patient", "email": "pat@example.com"}


def test_listing_for_doctor_without_profile(client, register):
    _, headers = register(name="No Profile", email="noprofile@example.com", role="doctor")

    assert client.get("/appointment", headers=headers).status_code == 404


def test_booking_emails_both_parties(client, transport, doctor, patient):
    _book(client, patient["headers"], doctor["profile"]["id"])

    recipients = sorted(message["to"] for message in transport.sent)
    assert recipients == ["house@example.com", "pat@example.com"]
    patient_mail = next(m for m in transport.sent if m["to"] == "pat@example.com")
    assert "Sunday, June 15, 2025" in patient_mail["html"]
    assert patient_mail["subject"] == "Your appointment is confirmed"


def test_cancellation_emails_both_parties(client, transport, doctor, patient):
    appointment = _book(client, patient["headers"], doctor["profile"]["id"]).json()["appointment"]
    transport.sent.clear()

    client.put(f"/appointment/{appointment['id']}/cancel", headers=patient["headers"])

    assert {m["subject"] for m in transport.sent} == {
        "Your appointment has been cancelled",
        "An appointment has been cancelled",
    }


def test_transport_failure_does_not_fail_booking(client, db, doctor, patient):
    failing = FailingTransport()
    app.dependency_overrides[get_notification_dispatcher] = lambda: NotificationDispatcher(transport=failing)

    response = _book(client, patient["headers"], doctor["profile"]["id"])

    assert response.status_code == 201
    assert failing.attempts == 2
    assert db[APPOINTMENTS].find_one({})["status"] == "booked"

    cancelled = client.put(f"/appointment/{response.json()['appointment']['id']}/cancel", headers=patient["headers"])
    assert cancelled.status_code == 200
