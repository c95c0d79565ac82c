import logging

from app.core.logging_config import sanitize_log_data, setup_logging


def test_sanitize_redacts_sensitive_keys():
    data = {"user_id": 7, "otp": "123456", "smtp_password": "pw", "timezone": "Asia/Kolkata"}

    sanitized = sanitize_log_data(data)

    assert sanitized["otp"] == "***REDACTED***"
    assert sanitized["smtp_password"] == "***REDACTED***"
    assert sanitized["user_id"] == 7
    assert sanitized["timezone"] == "Asia/Kolkata"
    assert data["otp"] == "123456"


def test_setup_logging_writes_rotating_file(tmp_path):
    root = logging.getLogger()
    previous = list(root.handlers)
    try:
        setup_logging("DEBUG", log_dir=str(tmp_path / "logs"))
        logging.getLogger("app.test").info("hello")
        for handler in root.handlers:
            handler.flush()

        assert root.level == logging.DEBUG
        assert "hello" in (tmp_path / "logs" / "subscriptions.log").read_text()
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers = previous
