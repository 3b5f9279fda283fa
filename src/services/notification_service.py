"""
On-duty notification emails.

This module provides:
- Rendering the on-duty request letter sent to each registrant
- Delivering it through an HTTP email API (Resend-compatible)
- A background dispatcher that decouples delivery from registration,
  writing failed requests to a JSON-lines dead-letter file
"""
import json
import logging
import os
import queue
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from html import escape
from typing import Optional, Protocol, Tuple

import httpx

from src.models.registration import Registration
from src.utils.config import Settings
from src.utils.exceptions import NotificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationRequest:
    """Fields the confirmation email needs."""

    student_name: str
    email: str
    college_name: str
    event_name: str

    @classmethod
    def from_registration(cls, registration: Registration) -> "NotificationRequest":
        return cls(
            student_name=registration.student_name,
            email=registration.email,
            college_name=registration.college_name,
            event_name=registration.event_name,
        )


class Notifier(Protocol):
    def notify(self, request: NotificationRequest) -> None:
        ...


def render_on_duty_email(request: NotificationRequest, settings: Settings) -> Tuple[str, str]:
    """
    Build the on-duty request letter.

    Args:
        request: Registrant details
        settings: Symposium name, date, venue and organizer

    Returns:
        Tuple of (subject, html)
    """
    student = escape(request.student_name)
    college = escape(request.college_name)
    event = escape(request.event_name)
    symposium = escape(settings.symposium_name)
    date = escape(settings.symposium_date)
    venue = escape(settings.symposium_venue)
    organizer = escape(settings.organizer)

    subject = f"On-Duty Request for {settings.symposium_name} Symposium - {request.student_name}"
    html = f"""
<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <p><strong>From</strong><br>Team {symposium},<br>{organizer},<br>{venue}.</p>
  <p><strong>To</strong><br>Head of the department,<br>{college},<br>India.</p>
  <p><strong>Respected Sir/Madam,</strong></p>
  <p style="text-align: center;"><strong>Subject: Requesting "On-Duty" to participate in our Symposium ({symposium}) - reg.</strong></p>
  <p style="text-indent: 50px; text-align: justify;">Your valuable student <strong>{student}</strong>
  is participating in our symposium ({symposium}) that will be held at {venue} on <strong>{date}</strong>.
  We request you to grant "On-Duty" for the same. We hope you consider our request and grant them.</p>
  <p><strong>Thank You</strong></p>
  <p><strong>Yours Truly,</strong><br>Team {symposium}</p>
  <hr style="margin: 40px 0; border: none; border-top: 1px solid #ddd;">
  <div style="background-color: #f8f9fa; padding: 20px; border-radius: 8px;">
    <h3 style="color: #2563eb;">Event Registration Confirmation</h3>
    <p><strong>Student Name:</strong> {student}</p>
    <p><strong>Event:</strong> {event}</p>
    <p><strong>Institution:</strong> {college}</p>
    <p><strong>Event Date:</strong> {date}</p>
    <p><strong>Venue:</strong> {venue}</p>
  </div>
  <div style="margin-top: 30px; padding: 20px; background-color: #fef3c7; border-radius: 8px; border-left: 4px solid #f59e0b;">
    <p style="margin: 0;"><strong>Note:</strong> Please present this email to your department head as an official
    "On-Duty" request letter for the symposium participation.</p>
  </div>
</div>
""".strip()
    return subject, html


class EmailNotificationSender:
    """Sends the on-duty letter through an HTTP email API."""

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        self.settings = settings
        self._client = client
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.email_api_key and self.settings.email_api_url)

    def send(self, request: NotificationRequest) -> bool:
        """
        Deliver one email.

        Returns:
            True if the API accepted the email, False if sending is not configured

        Raises:
            NotificationError: On transport failure or a non-2xx response
        """
        if not self.is_configured:
            logger.warning("Email API not configured, skipping on-duty email to %s", request.email)
            return False

        subject, html = render_on_duty_email(request, self.settings)
        payload = {
            "from": self.settings.email_from,
            "to": [request.email],
            "subject": subject,
            "html": html,
        }
        headers = {"Authorization": f"Bearer {self.settings.email_api_key}"}

        try:
            if self._client is not None:
                response = self._client.post(self.settings.email_api_url, json=payload, headers=headers)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.settings.email_api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise NotificationError(f"Email API request failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"Email API returned {response.status_code}: {response.text[:200]}"
            )

        logger.info("On-duty email sent to %s for %s", request.email, request.event_name)
        return True


class NotificationDispatcher:
    """
    Post-commit hand-off between registration and email delivery.

    ``notify`` only enqueues; a daemon worker thread calls the sender. Any
    request that cannot be delivered (or queued) is logged and appended to
    the dead-letter file.
    """

    def __init__(
        self,
        sender: EmailNotificationSender,
        dead_letter_file: str,
        max_queue_size: int = 256,
    ):
        self.sender = sender
        self.dead_letter_file = dead_letter_file
        self._queue: "queue.Queue[Optional[NotificationRequest]]" = queue.Queue(maxsize=max_queue_size)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._dead_letter_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the worker thread (no-op if already running)."""
        with self._lock:
            if self.is_running:
                return
            self._thread = threading.Thread(
                target=self._worker, name="notification-worker", daemon=True
            )
            self._thread.start()
        logger.info("Notification worker started")

    def stop(self, timeout: float = 5.0) -> None:
        """Ask the worker to finish queued requests and exit."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        try:
            self._queue.put(None, timeout=timeout)
        except queue.Full:
            logger.warning("Notification queue still full, worker left running")
            return
        thread.join(timeout=timeout)
        logger.info("Notification worker stopped")

    def notify(self, request: NotificationRequest) -> None:
        """Queue a request for delivery; never blocks and never raises."""
        if not self.is_running:
            self.start()
        try:
            self._queue.put_nowait(request)
        except queue.Full:
            logger.warning("Notification queue full, dead-lettering email to %s", request.email)
            self._dead_letter(request, "queue full")

    def drain(self) -> None:
        """Block until every queued request has been processed."""
        self._queue.join()

    def _worker(self) -> None:
        while True:
            request = self._queue.get()
            try:
                if request is None:
                    return
                self._deliver(request)
            finally:
                self._queue.task_done()

    def _deliver(self, request: NotificationRequest) -> None:
        try:
            self.sender.send(request)
        except NotificationError as e:
            logger.warning("On-duty email to %s failed: %s", request.email, e)
            self._dead_letter(request, str(e))
        except Exception as e:
            logger.exception("Unexpected error sending on-duty email to %s", request.email)
            self._dead_letter(request, repr(e))

    def _dead_letter(self, request: NotificationRequest, reason: str) -> None:
        record = {
            **asdict(request),
            "reason": reason,
            "failed_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            with self._dead_letter_lock:
                dir_path = os.path.dirname(self.dead_letter_file)
                if dir_path:
                    os.makedirs(dir_path, exist_ok=True)
                with open(self.dead_letter_file, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.error("Could not write dead letter for %s: %s", request.email, e)
