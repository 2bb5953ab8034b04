# tests/test_concurrency.py
"""
Concurrent transition requests must produce at most one journal per
(event, purpose).

The simulated race runs on any database: the second request sees a stale
'pending' row, as if it had read before the first committed, and the
unique journal constraint has to stop it. The threaded race needs real
row locks and only runs on PostgreSQL.
"""

import threading

import pytest
from django.db import connection

from accounting.exceptions import DuplicateJournalError, InvalidTransitionError
from accounting.models import Journal
from projects.models import BillableEvent, Billing
from projects.transitions import default_machine


@pytest.mark.django_db
class TestSimulatedRace:

    def test_stale_duplicate_unpaid_posts_one_journal(self, machine, billing, monkeypatch):
        stale = Billing.objects.get(pk=billing.pk)

        machine.transition("billing", billing.pk, "unpaid")

        monkeypatch.setattr(machine, "_load_for_update", lambda model, kind, event_id: stale)
        monkeypatch.setattr(machine, "_journal_exists", lambda event, purpose, active_only: False)

        with pytest.raises(DuplicateJournalError):
            machine.transition("billing", billing.pk, "unpaid")

        billing.refresh_from_db()
        assert billing.status == BillableEvent.Status.UNPAID
        assert billing.status_history.count() == 1
        assert Journal.objects.filter(
            source_type="billing", source_id=billing.pk, purpose=Journal.Purpose.RECOGNITION,
        ).count() == 1

    def test_stale_duplicate_paid_posts_one_payment(self, machine, billing, monkeypatch):
        machine.transition("billing", billing.pk, "unpaid")
        stale = Billing.objects.get(pk=billing.pk)
        machine.transition("billing", billing.pk, "paid")

        monkeypatch.setattr(machine, "_load_for_update", lambda model, kind, event_id: stale)
        monkeypatch.setattr(machine, "_journal_exists", lambda event, purpose, active_only: False)

        with pytest.raises(DuplicateJournalError):
            machine.transition("billing", billing.pk, "paid")

        assert Journal.objects.filter(
            source_type="billing", source_id=billing.pk, purpose=Journal.Purpose.PAYMENT,
        ).count() == 1


@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(connection.vendor != "postgresql", reason="needs row-level locks")
class TestThreadedRace:

    def test_parallel_unpaid_requests(self, billing):
        workers = 4
        barrier = threading.Barrier(workers)
        outcomes = []
        lock = threading.Lock()

        def request_unpaid():
            try:
                barrier.wait()
                default_machine.transition("billing", billing.pk, "unpaid")
                outcome = "ok"
            except (InvalidTransitionError, DuplicateJournalError) as exc:
                outcome = type(exc).__name__
            finally:
                connection.close()
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=request_unpaid) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert len(outcomes) == workers
        assert Journal.objects.filter(
            source_type="billing", source_id=billing.pk, purpose=Journal.Purpose.RECOGNITION,
        ).count() == 1
