import smtplib
from datetime import datetime

import pytest

from ketpa.core.config import Settings
from ketpa.core.errors import NotificationFailure
from ketpa.services.notification_service import (
    Notifier,
    SMTPMailer,
    build_calendar_url,
    fill_template,
    format_calendar_date,
    format_calendar_time,
    render_confirmation,
)
from tests.conftest import FakeMailer, FailingMailer


def make_appointment(**overrides):
    appointment = {
        "id": 42,
        "slot_date": "05_09_2025",
        "slot_time": "02:30 PM",
        "user_data": {"name": "Ravi Kumar", "email": "ravi@example.com"},
        "doc_data": {
            "name": "Asha Rao",
            "clinic_name": "Ketpa Indiranagar",
            "address": {"line1": "12, 100 Feet Road", "line2": "Indiranagar"},
            "location": "https://maps.google.com/?q=Ketpa",
        },
    }
    appointment.update(overrides)
    return appointment


class TestCalendarFormatting:

    def test_format_date(self):
        assert format_calendar_date("05_09_2025") == "20250905"

    def test_format_date_does_not_validate(self):
        assert format_calendar_date("31_02_2030") == "20300231"

    @pytest.mark.parametrize("slot_time, expected", [
        ("02:30 PM", ("143000", "153000")),
        ("10:00 AM", ("100000", "110000")),
        ("12:00 PM", ("120000", "130000")),
        ("12:00 AM", ("000000", "010000")),
        ("12:45 am", ("004500", "014500")),
    ])
    def test_format_time(self, slot_time, expected):
        assert format_calendar_time(slot_time) == expected

    def test_format_time_late_evening_wraps_without_date_change(self):
        # End boundary wraps to 00:30 and is paired with the same date
        assert format_calendar_time("11:30 PM") == ("233000", "003000")

        url = build_calendar_url("05_09_2025", "11:30 PM")
        assert "dates=20250905T233000/20250905T003000" in url

    def test_calendar_url(self):
        url = build_calendar_url("05_09_2025", "02:30 PM")

        assert url.startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")
        assert "text=Ketpa%20Appointment" in url
        assert "dates=20250905T143000/20250905T153000" in url
        assert "details=This%20is%20a%20reminder%20to%20your%20pet%20appointment" in url
        assert "location=Event%20Location" in url
        assert " " not in url


class TestTemplate:

    def test_fill_template(self):
        html = fill_template("Hi {{name}}, see you on {{date}}", {"name": "Ravi", "date": "05-09-2025"})
        assert html == "Hi Ravi, see you on 05-09-2025"

    def test_fill_template_none_renders_empty(self):
        html = fill_template("[{{a}}] [{{b}}]", {"a": None, "b": "x"})
        assert html == "[] [x]"

    def test_fill_template_leaves_unknown_placeholders(self):
        html = fill_template("{{known}} {{unknown}}", {"known": 1})
        assert html == "1 {{unknown}}"

    def test_fill_template_replaces_every_occurrence(self):
        assert fill_template("{{x}}-{{x}}", {"x": "y"}) == "y-y"

    def test_render_confirmation(self):
        html = render_confirmation(make_appointment())

        assert "Hello <strong>Ravi Kumar</strong>" in html
        assert "05-09-2025" in html
        assert "02:30 PM" in html
        assert "IST" in html
        assert "Dr. Asha Rao" in html
        assert "Ketpa Indiranagar" in html
        assert "12, 100 Feet Road<br>Indiranagar" in html
        assert "<strong>Booking ID:</strong> 42" in html
        assert "dates=20250905T143000/20250905T153000" in html
        assert "https://maps.google.com/?q=Ketpa" in html
        assert "https://ketpa-frontend.vercel.app/my-appointments" in html
        assert f"{datetime.now().year} Ketpa" in html
        assert "Bangalore" in html
        assert "{{" not in html

    def test_render_confirmation_escapes_text_fields(self):
        appointment = make_appointment(
            user_data={"name": "<a href=\"x\">Ravi</a>", "email": "ravi@example.com"},
        )
        html = render_confirmation(appointment)

        assert "Hello <strong>&lt;a href=&quot;x&quot;&gt;Ravi&lt;/a&gt;</strong>" in html
        assert "<a href=\"x\">" not in html
        assert "https://maps.google.com/?q=Ketpa" in html
        assert "dates=20250905T143000/20250905T153000" in html

    def test_render_confirmation_missing_fields_render_empty(self):
        appointment = make_appointment(doc_data={"name": "Asha Rao"})
        html = render_confirmation(appointment)

        assert "<strong>Clinic:</strong> </div>" in html
        assert "<strong>Location:</strong><br><br></div>" in html
        assert "{{" not in html

    def test_render_confirmation_uses_settings(self):
        config = Settings(TIMEZONE_LABEL="GST", CLINIC_CITY="Dubai", FRONTEND_URL="https://example.org/")
        html = render_confirmation(make_appointment(), config)

        assert "GST" in html
        assert "Dubai" in html
        assert "https://example.org/my-appointments" in html


class TestNotifier:

    def test_send_confirmation(self):
        mailer = FakeMailer()
        sent = Notifier(mailer).send_appointment_confirmation("ravi@example.com", make_appointment())

        assert sent is True
        assert len(mailer.sent) == 1
        assert mailer.sent[0]["to"] == "ravi@example.com"
        assert mailer.sent[0]["subject"] == "Appointment Confirmed"
        assert "Ravi Kumar" in mailer.sent[0]["html"]

    def test_missing_appointment_is_reported(self):
        mailer = FakeMailer()
        assert Notifier(mailer).send_appointment_confirmation("ravi@example.com", None) is False
        assert mailer.sent == []

    def test_transport_failure_is_swallowed(self):
        assert Notifier(FailingMailer()).send_appointment_confirmation(
            "ravi@example.com", make_appointment()
        ) is False

    def test_bad_slot_label_is_swallowed(self):
        mailer = FakeMailer()
        appointment = make_appointment(slot_time="noon")
        assert Notifier(mailer).send_appointment_confirmation("ravi@example.com", appointment) is False
        assert mailer.sent == []

    def test_unconfigured_smtp_mailer(self):
        mailer = SMTPMailer(host="smtp.gmail.com", port=587, username=None, password=None)
        with pytest.raises(NotificationFailure):
            mailer.send("ravi@example.com", "Subject", "<p>hi</p>")

    def test_mailer_from_settings(self):
        config = Settings(SMTP_HOST="mail.ketpa.com", SMTP_PORT=465, SMTP_USER="noreply@ketpa.com")
        mailer = SMTPMailer.from_settings(config)

        assert mailer.host == "mail.ketpa.com"
        assert mailer.port == 465
        assert mailer.from_address == '"Ketpa Appointments" <noreply@ketpa.com>'


class FakeSMTP:
    """Stands in for ``smtplib.SMTP``; STARTTLS is refused by the server."""

    instances = []

    def __init__(self, host, port, timeout=None):
        self.closed = False
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True

    def starttls(self, context=None):
        raise smtplib.SMTPNotSupportedError("STARTTLS extension not supported by server.")

    def login(self, username, password):
        pass

    def sendmail(self, from_addr, to_addrs, msg):
        self.sent.append(to_addrs)


class TestSMTPMailer:

    @pytest.fixture(autouse=True)
    def fake_smtp(self, monkeypatch):
        FakeSMTP.instances = []
        monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)

    def make_mailer(self, use_tls=True):
        return SMTPMailer(
            host="smtp.ketpa.com", port=587, username="noreply@ketpa.com",
            password="secret", use_tls=use_tls,
        )

    def test_starttls_failure_closes_connection(self):
        with pytest.raises(smtplib.SMTPNotSupportedError):
            self.make_mailer().send("ravi@example.com", "Subject", "<p>hi</p>")

        assert len(FakeSMTP.instances) == 1
        assert FakeSMTP.instances[0].closed is True
        assert FakeSMTP.instances[0].sent == []

    def test_starttls_failure_is_swallowed_by_notifier(self):
        sent = Notifier(self.make_mailer()).send_appointment_confirmation(
            "ravi@example.com", make_appointment()
        )

        assert sent is False
        assert FakeSMTP.instances[0].closed is True

    def test_send_without_tls(self):
        self.make_mailer(use_tls=False).send("ravi@example.com", "Subject", "<p>hi</p>")

        assert FakeSMTP.instances[0].sent == [["ravi@example.com"]]
        assert FakeSMTP.instances[0].closed is True
