"""
One-time code lifecycle for step-up login.

Per user the state is one of: no code, pending, or a terminal outcome
(verified, expired, exhausted) that immediately clears back to no code.
Codes are stored encrypted on the user row together with expiry, attempt
counter and creation time, so all state survives restarts. Clearing a code
keeps the creation time, so the resend cooldown also applies after a
terminal outcome.

Transitions for one user are serialized through a per-user lock held by the
manager. The lock only covers a single process.
"""
import logging
import math
import secrets
import threading
import weakref
from datetime import datetime, timedelta
from typing import Callable

from app.core.crypto import encrypt, decrypt
from app.db.store import UserStore, OtpState
from app.schemas.common import ServiceResult

logger = logging.getLogger(__name__)

OTP_MIN = 100000
OTP_MAX = 999999
OTP_EXPIRY_SECONDS = 120
OTP_MAX_ATTEMPTS = 3
OTP_RESEND_COOLDOWN_SECONDS = 30

MSG_USER_NOT_FOUND = "User not found"
MSG_NO_OTP = "No OTP found. Please request a new one."
MSG_TOO_MANY_ATTEMPTS = "Too many failed attempts. Please request a new OTP."
MSG_EXPIRED = "OTP has expired. Please request a new one."
MSG_VERIFIED = "OTP verified successfully"
MSG_SENT = "OTP sent to your email"
MSG_RESENT = "A new OTP has been sent to your email"


def generate_otp() -> str:
    """Uniformly random 6-digit code in [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def get_remaining_seconds(expires_at: datetime, now: datetime) -> int:
    return max(0, math.floor((expires_at - now).total_seconds()))


class OtpManager:
    """
    Generates, verifies and throttles one-time codes.

    Args:
        users: Store exposing the user OTP columns
        clock: Returns the current naive UTC datetime
    """

    # Entries vanish once no caller holds the lock
    _locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()
    _locks_guard = threading.Lock()

    def __init__(self, users: UserStore, clock: Callable[[], datetime] = datetime.utcnow):
        self.users = users
        self.clock = clock

    @classmethod
    def _lock_for(cls, user_id: int) -> threading.Lock:
        with cls._locks_guard:
            lock = cls._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                cls._locks[user_id] = lock
            return lock

    def _store_new_code(self, user_id: int, message: str) -> ServiceResult:
        now = self.clock()
        otp = generate_otp()
        affected = self.users.update_user_otp_fields(
            user_id,
            {
                "otp_code": encrypt(otp),
                "otp_expires_at": now + timedelta(seconds=OTP_EXPIRY_SECONDS),
                "otp_attempts": 0,
                "otp_created_at": now,
            },
        )
        if not affected:
            return ServiceResult.fail(MSG_USER_NOT_FOUND)

        logger.info(f"OTP generated: user_id={user_id}, expires_in={OTP_EXPIRY_SECONDS}s")
        return ServiceResult.ok(message, otp=otp, expires_in=OTP_EXPIRY_SECONDS)

    def generate(self, user_id: int) -> ServiceResult:
        """
        Create a fresh code for the user, replacing any pending one.

        The plaintext code is returned in data["otp"] for delivery and is
        never logged.
        """
        with self._lock_for(user_id):
            if self.users.find_user_by_id(user_id) is None:
                return ServiceResult.fail(MSG_USER_NOT_FOUND)
            return self._store_new_code(user_id, MSG_SENT)

    def verify(self, user_id: int, code: str) -> ServiceResult:
        with self._lock_for(user_id):
            state = self.users.get_otp_state(user_id)
            if state is None:
                return ServiceResult.fail(MSG_USER_NOT_FOUND)
            if not state.has_code:
                return ServiceResult.fail(MSG_NO_OTP)

            if state.attempts >= OTP_MAX_ATTEMPTS:
                self.users.clear_user_otp(user_id)
                logger.warning(f"OTP attempts exhausted: user_id={user_id}")
                return ServiceResult.fail(MSG_TOO_MANY_ATTEMPTS)

            now = self.clock()
            if self._is_expired(state, now):
                self.users.clear_user_otp(user_id)
                logger.info(f"OTP expired: user_id={user_id}")
                return ServiceResult.fail(MSG_EXPIRED)

            if decrypt(state.code) == str(code).strip():
                self.users.clear_user_otp(user_id)
                logger.info(f"OTP verified: user_id={user_id}")
                return ServiceResult.ok(MSG_VERIFIED)

            self.users.increment_user_otp_attempts(user_id)
            attempts = state.attempts + 1
            if attempts >= OTP_MAX_ATTEMPTS:
                self.users.clear_user_otp(user_id)
                logger.warning(f"OTP attempts exhausted: user_id={user_id}")
                return ServiceResult.fail(MSG_TOO_MANY_ATTEMPTS)

            remaining = OTP_MAX_ATTEMPTS - attempts
            logger.info(f"OTP mismatch: user_id={user_id}, remaining_attempts={remaining}")
            return ServiceResult.fail(
                f"Invalid OTP. {remaining} attempt{'s' if remaining != 1 else ''} remaining.",
                remaining_attempts=remaining,
                expires_in=get_remaining_seconds(state.expires_at, now) if state.expires_at else 0,
            )

    def resend(self, user_id: int) -> ServiceResult:
        """Issue a new code once the cooldown since the previous generation has passed."""
        with self._lock_for(user_id):
            state = self.users.get_otp_state(user_id)
            if state is None:
                return ServiceResult.fail(MSG_USER_NOT_FOUND)

            if state.created_at is not None:
                elapsed = (self.clock() - state.created_at).total_seconds()
                if elapsed < OTP_RESEND_COOLDOWN_SECONDS:
                    wait = math.ceil(OTP_RESEND_COOLDOWN_SECONDS - elapsed)
                    return ServiceResult.fail(
                        f"Please wait {wait} more second{'s' if wait != 1 else ''} before requesting a new OTP.",
                        wait_seconds=wait,
                    )

            return self._store_new_code(user_id, MSG_RESENT)

    def clear(self, user_id: int) -> None:
        with self._lock_for(user_id):
            self.users.clear_user_otp(user_id)

    @staticmethod
    def _is_expired(state: OtpState, now: datetime) -> bool:
        if state.expires_at is not None:
            return now > state.expires_at
        # expires_at missing: fall back to the creation time
        if state.created_at is not None:
            return now > state.created_at + timedelta(seconds=OTP_EXPIRY_SECONDS)
        return True
