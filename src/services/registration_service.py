"""Registration ledger: the single path through which registrations are created and counted."""
import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional

from src.models.event import EVENT_CATALOG
from src.models.registration import Registration
from src.services.capacity_service import (
    CapacityCounts,
    CapacityPolicy,
    aggregate_counts,
    count_event_names,
)
from src.services.notification_service import (
    EmailNotificationSender,
    NotificationDispatcher,
    NotificationRequest,
    Notifier,
)
from src.services.registration_store import JsonRegistrationStore, Row
from src.utils.config import Settings, get_settings
from src.utils.exceptions import (
    CapacityExceededError,
    DuplicateEmailError,
    RegistrationError,
    StoreUnavailable,
    StoreWriteError,
)
from src.utils.validation import normalize_email, validate_registration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerView:
    """One consistent snapshot of the store, swapped in as a whole."""

    registrations: List[Registration] = field(default_factory=list)
    counts: CapacityCounts = field(default_factory=CapacityCounts)
    load_failed: bool = False
    last_error: Optional[RegistrationError] = None


@dataclass
class SubmitResult:
    """Outcome of ``RegistrationLedger.submit``."""

    registration: Optional[Registration] = None
    error: Optional[RegistrationError] = None

    @property
    def success(self) -> bool:
        return self.error is None and self.registration is not None

    @property
    def message(self) -> str:
        """User-facing text for the result."""
        if self.error is not None:
            return self.error.message
        return f"You have been registered for {self.registration.event_name}."


class RegistrationLedger:
    """
    Enforces capacity and email uniqueness before accepting a registration.

    ``registrations`` and ``counts`` are a cache of the store, rebuilt by
    ``load_all`` on construction and after every accepted submission. They
    are read from one ``LedgerView`` so a reader never mixes two loads.
    """

    def __init__(
        self,
        store: JsonRegistrationStore,
        policy: CapacityPolicy,
        notifier: Optional[Notifier] = None,
        autoload: bool = True,
    ):
        self.store = store
        self.policy = policy
        self.notifier = notifier
        self.view = LedgerView()
        if autoload:
            self.load_all()

    @property
    def registrations(self) -> List[Registration]:
        return self.view.registrations

    @property
    def counts(self) -> CapacityCounts:
        return self.view.counts

    @property
    def load_failed(self) -> bool:
        return self.view.load_failed

    @property
    def last_error(self) -> Optional[RegistrationError]:
        return self.view.last_error

    def load_all(self) -> List[Registration]:
        """
        Reload every registration, newest first, and recount.

        Returns:
            The loaded registrations; an empty list if the store is unavailable

        Behavior:
            - Never raises; a store failure sets ``load_failed``/``last_error``
        """
        try:
            rows = self.store.list()
            registrations = [Registration.from_dict(row) for row in rows]
        except StoreUnavailable as e:
            logger.error("Registration store unavailable: %s", e)
            self._set_view([], failed=True, error=e)
            return []
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("Registration store holds malformed rows: %s", e)
            error = StoreUnavailable()
            self._set_view([], failed=True, error=error)
            return []

        self._set_view(registrations, failed=False, error=None)
        return registrations

    def _set_view(
        self,
        registrations: List[Registration],
        failed: bool,
        error: Optional[RegistrationError],
    ) -> None:
        self.view = LedgerView(
            registrations=registrations,
            counts=self.aggregate_counts(registrations),
            load_failed=failed,
            last_error=error,
        )

    @staticmethod
    def aggregate_counts(registrations: List[Registration]) -> CapacityCounts:
        """Pure recount; see capacity_service.aggregate_counts."""
        return aggregate_counts(registrations)

    def is_event_open(self, event_name: str) -> bool:
        """True iff the configured ceiling for ``event_name`` is not reached."""
        return self.policy.is_event_open(event_name, self.counts)

    def email_registered(self, email: str) -> bool:
        """
        Check the store for an existing registration with ``email``.

        A store failure is logged and reported as False; the locked insert
        still rejects the duplicate.
        """
        try:
            return self.store.find_by_email(email) is not None
        except StoreUnavailable as e:
            logger.error("Email pre-check failed for %s: %s", email, e)
            return False

    def _insert_guard(self, registration: Registration):
        """Re-run the uniqueness and capacity checks on rows read under the store lock."""
        email = normalize_email(registration.email)
        event_name = registration.event_name

        def guard(rows: List[Row]) -> None:
            if any(normalize_email(row.get("email", "")) == email for row in rows):
                raise DuplicateEmailError()
            current = count_event_names(row.get("event_name", "") for row in rows)
            if not self.policy.is_event_open(event_name, current):
                raise CapacityExceededError(self.closed_message(event_name))

        return guard

    def closed_message(self, event_name: str) -> str:
        """User-facing text for a full event under the active policy."""
        ceiling = self.policy.ceiling_for(event_name)
        if self.policy.mode == "global":
            return f"Registration is closed. The maximum capacity of {ceiling} participants has been reached."
        if self.policy.mode == "event":
            return (
                f"Registration is currently closed for {event_name}. "
                f"Maximum capacity of {ceiling} participants has been reached."
            )
        event = EVENT_CATALOG.get(event_name)
        category = event.category.lower() if event else "these"
        return (
            f"Registration is closed for {category} events. "
            f"The maximum capacity of {ceiling} participants has been reached."
        )

    def submit(self, registration: Registration) -> SubmitResult:
        """
        Validate, check and store a registration.

        Args:
            registration: Submitted data (id/created_at are ignored)

        Returns:
            SubmitResult with the stored registration, or with one of
            ValidationError, DuplicateEmailError, CapacityExceededError,
            StoreWriteError

        Behavior:
            - validate -> duplicate check -> capacity check -> locked insert
            - full reload after a successful insert
            - confirmation email handed to the notifier; its failure is
              logged and does not change the result
        """
        try:
            cleaned = validate_registration(registration)
        except RegistrationError as e:
            logger.info("Rejected registration for %s: %s", registration.event_name, e.message)
            return SubmitResult(error=e)

        if self.email_registered(cleaned.email):
            logger.info("Duplicate registration attempt for %s", cleaned.email)
            return SubmitResult(error=DuplicateEmailError())

        if not self.is_event_open(cleaned.event_name):
            logger.info("Capacity reached for %s", cleaned.event_name)
            return SubmitResult(
                error=CapacityExceededError(self.closed_message(cleaned.event_name))
            )

        try:
            stored_row = self.store.insert(
                cleaned.without_store_fields(), guard=self._insert_guard(cleaned)
            )
        except (DuplicateEmailError, CapacityExceededError) as e:
            logger.info("Registration for %s rejected at write time: %s", cleaned.email, e.message)
            self.load_all()
            return SubmitResult(error=e)
        except RegistrationError as e:
            logger.error("Registration write failed for %s: %s", cleaned.email, e)
            error = e if isinstance(e, StoreWriteError) else StoreWriteError()
            return SubmitResult(error=error)

        stored = Registration.from_dict(stored_row)

        self.load_all()
        if self.load_failed:
            logger.warning("Registration %s stored but refresh failed", stored.id)

        if self.notifier is not None:
            try:
                self.notifier.notify(NotificationRequest.from_registration(stored))
            except Exception:
                logger.exception("Failed to hand off confirmation email for %s", stored.email)

        logger.info("Registered %s for %s (id=%s)", stored.email, stored.event_name, stored.id)
        return SubmitResult(registration=stored)


# Process-wide ledger
_ledger: Optional[RegistrationLedger] = None
_LEDGER_LOCK = threading.Lock()


def build_ledger(settings: Settings) -> RegistrationLedger:
    """Wire a ledger from settings: JSON store, capacity policy, email dispatcher."""
    store = JsonRegistrationStore(settings.data_file)
    policy = CapacityPolicy.from_settings(settings)
    dispatcher = NotificationDispatcher(
        EmailNotificationSender(settings),
        dead_letter_file=settings.dead_letter_file,
    )
    return RegistrationLedger(store, policy, notifier=dispatcher)


def get_ledger() -> RegistrationLedger:
    """Return the cached ledger, building it on first use."""
    global _ledger

    if _ledger is None:
        with _LEDGER_LOCK:
            if _ledger is None:
                _ledger = build_ledger(get_settings())
    return _ledger


def reset_ledger() -> None:
    """Drop the cached ledger (stops its notification worker)."""
    global _ledger

    with _LEDGER_LOCK:
        ledger, _ledger = _ledger, None
    if ledger is not None and isinstance(ledger.notifier, NotificationDispatcher):
        ledger.notifier.stop()
