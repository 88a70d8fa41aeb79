import copy
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterable, Iterator, Protocol

from payment_webhooks.exceptions import DuplicatePaymentMethodId, StaleRecordError
from payment_webhooks.models.payment import PaymentRecord, PaymentStatus


class PaymentRepository(Protocol):
    def find(self, payment_id: str) -> PaymentRecord | None:
        ...

    def find_by_method_id(self, method: str, method_id: str) -> PaymentRecord | None:
        ...

    def create(self, record: PaymentRecord, unique_method_id: bool = True) -> PaymentRecord:
        ...

    def save(self, record: PaymentRecord) -> PaymentRecord:
        ...

    def delete_orphans(self, order_exists: Callable[[str], bool] | None = None) -> int:
        ...

    def pending_payments(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
        methods: Iterable[str] = (),
    ) -> Iterator[PaymentRecord]:
        ...

    def cancel_pending_before(
        self, threshold: datetime, status: PaymentStatus, executed_at: datetime
    ) -> int:
        ...


class InMemoryPaymentRepository:
    """Thread-safe payment store.

    Each write runs inside ``transaction()`` so a record's ``status`` and
    ``dt_executed`` always change together. ``save`` is a compare-and-swap on
    ``version``: saving a copy that is older than the stored one raises
    ``StaleRecordError`` instead of silently overwriting it. ``create``
    enforces one payment per ``(method, method_id)`` unless told otherwise.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: dict[str, PaymentRecord] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self):
        with self._lock:
            yield

    def find(self, payment_id: str) -> PaymentRecord | None:
        with self._lock:
            record = self._records.get(str(payment_id))
            return copy.deepcopy(record) if record else None

    def find_by_method_id(self, method: str, method_id: str) -> PaymentRecord | None:
        with self._lock:
            for record in self._records.values():
                if record.method == method and record.method_id == method_id:
                    return copy.deepcopy(record)
            return None

    def create(self, record: PaymentRecord, unique_method_id: bool = True) -> PaymentRecord:
        with self.transaction():
            if unique_method_id and record.method_id is not None:
                for existing in self._records.values():
                    if existing.method == record.method and existing.method_id == record.method_id:
                        raise DuplicatePaymentMethodId("Method id is duplicated")
            now = self._clock()
            stored = copy.deepcopy(record)
            stored.version = 1
            stored.created_at = stored.created_at or now
            stored.updated_at = now
            self._records[stored.payment_id] = stored
            return copy.deepcopy(stored)

    def save(self, record: PaymentRecord) -> PaymentRecord:
        with self.transaction():
            current = self._records.get(record.payment_id)
            if current is None:
                raise StaleRecordError(f"Payment {record.payment_id} no longer exists")
            if current.version != record.version:
                raise StaleRecordError(
                    f"Payment {record.payment_id} changed (version {current.version}, saving {record.version})"
                )
            record.version += 1
            record.updated_at = self._clock()
            self._records[record.payment_id] = copy.deepcopy(record)
            return record

    def delete_orphans(self, order_exists: Callable[[str], bool] | None = None) -> int:
        with self.transaction():
            orphans = [
                payment_id
                for payment_id, record in self._records.items()
                if record.order_id is None or (order_exists is not None and not order_exists(record.order_id))
            ]
            for payment_id in orphans:
                del self._records[payment_id]
            return len(orphans)

    def pending_payments(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
        methods: Iterable[str] = (),
    ) -> Iterator[PaymentRecord]:
        methods = set(methods)
        with self._lock:
            selected = [
                copy.deepcopy(record)
                for record in self._records.values()
                if record.status is PaymentStatus.PENDING
                and (not methods or record.method in methods)
                and (since is None or record.dt_registration >= since)
                and (until is None or record.dt_registration <= until)
            ]
        selected.sort(key=lambda r: r.dt_registration)
        return iter(selected)

    def cancel_pending_before(
        self, threshold: datetime, status: PaymentStatus, executed_at: datetime
    ) -> int:
        with self.transaction():
            count = 0
            for record in self._records.values():
                if record.status is PaymentStatus.PENDING and record.dt_registration < threshold:
                    record.mark(status, executed_at)
                    record.version += 1
                    record.updated_at = self._clock()
                    count += 1
            return count

    def all(self) -> list[PaymentRecord]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values()]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
