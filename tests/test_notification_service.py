"""
Tests for notification rendering and SMTP delivery.
"""
from decimal import Decimal

import pytest

from app.schemas.notification import DepartmentGroup, ExpiryNoticeItem, GroupedExpiryNotice
from app.services import notification_service
from app.services.notification_service import (
    EmailNotificationDispatcher,
    NotificationError,
    expiry_subject,
    render_expiry_html,
    render_expiry_text,
    urgency_label,
)


def make_notice(days=3, count=1):
    items = [
        ExpiryNoticeItem(
            name=f"Tool <{i}>",
            price=Decimal("99.00"),
            currency="USD",
            expiry_date_formatted="October 20, 2026",
            url=f"http://localhost:5173/subscriptions/{i}",
        )
        for i in range(count)
    ]
    return GroupedExpiryNotice(
        departments=[DepartmentGroup(name="Engineering", subscriptions=items)],
        days_remaining=days,
        total_subscriptions=count,
    )


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.sent = []
        self.logged_in = None
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        pass

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = user

    def noop(self):
        pass

    def send_message(self, msg):
        self.sent.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(notification_service.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def make_dispatcher(**overrides):
    options = dict(
        host="smtp.example.com",
        port=587,
        username="mailer",
        password="secret",
        sender="noreply@example.com",
        admin_email="admin@example.com",
    )
    options.update(overrides)
    return EmailNotificationDispatcher(**options)


@pytest.mark.parametrize("days, label", [
    (0, "EXPIRING TODAY"),
    (1, "Expiring in 1 Day"),
    (3, "Expiring in 3 Days"),
    (7, "Expiring in 7 Days"),
])
def test_urgency_label(days, label):
    assert urgency_label(days) == label


def test_subject_counts_subscriptions():
    assert expiry_subject(make_notice(days=0, count=1)).endswith("1 Subscription EXPIRING TODAY")
    assert expiry_subject(make_notice(days=7, count=2)).endswith("2 Subscriptions Expiring in 7 Days")


def test_render_escapes_and_lists_items():
    notice = make_notice(count=2)

    html = render_expiry_html(notice)
    text = render_expiry_text(notice)

    assert "Tool &lt;0&gt;" in html
    assert "Engineering" in html
    assert "http://localhost:5173/subscriptions/1" in html
    assert "Tool <1>" in text
    assert "October 20, 2026" in text


def test_grouped_notice_goes_to_admin(fake_smtp):
    make_dispatcher().send_grouped_expiry_notice(make_notice())

    smtp = fake_smtp.instances[0]
    assert smtp.logged_in == "mailer"
    msg = smtp.sent[0]
    assert msg["To"] == "admin@example.com"
    assert msg["From"] == "noreply@example.com"
    assert "Expiring in 3 Days" in msg["Subject"]


def test_missing_admin_email(fake_smtp):
    with pytest.raises(NotificationError):
        make_dispatcher(admin_email=None).send_grouped_expiry_notice(make_notice())
    assert fake_smtp.instances == []


def test_missing_smtp_host():
    with pytest.raises(NotificationError):
        make_dispatcher(host=None).send_otp("a@example.com", "Asha", "123456")


def test_smtp_error_is_wrapped(monkeypatch):
    class RefusingSMTP(FakeSMTP):
        def send_message(self, msg):
            raise OSError("connection reset")

    monkeypatch.setattr(notification_service.smtplib, "SMTP", RefusingSMTP)

    with pytest.raises(NotificationError):
        make_dispatcher().send_otp("a@example.com", "Asha", "123456")


def test_send_otp(fake_smtp):
    make_dispatcher().send_otp("asha@example.com", "Asha", "482913")

    msg = fake_smtp.instances[0].sent[0]
    assert msg["To"] == "asha@example.com"
    assert "482913" in msg.get_body(preferencelist=("html",)).get_content()


def test_send_welcome(fake_smtp):
    make_dispatcher().send_welcome("ravi@example.com", "Ravi", "Tmp9xQ2kLp")

    msg = fake_smtp.instances[0].sent[0]
    assert msg["To"] == "ravi@example.com"
    assert msg["Subject"] == "Your Admin Panel Account"
    html_body = msg.get_body(preferencelist=("html",)).get_content()
    assert "Tmp9xQ2kLp" in html_body
    assert "ravi@example.com" in html_body


def test_send_password_reset(fake_smtp):
    link = "http://localhost:5173/reset-password?token=abc.def.ghi"
    make_dispatcher().send_password_reset("ravi@example.com", "Ravi", link)

    msg = fake_smtp.instances[0].sent[0]
    assert msg["Subject"] == "Reset your admin panel password"
    assert link in msg.get_body(preferencelist=("plain",)).get_content()
    assert f'href="{link}"' in msg.get_body(preferencelist=("html",)).get_content()


def test_check_connection(fake_smtp):
    assert make_dispatcher().check_connection() is True
    assert make_dispatcher(host=None).check_connection() is False
