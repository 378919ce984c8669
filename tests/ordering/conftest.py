import threading
from uuid import uuid4

import pytest
from protean import current_domain


def _reset_stores():
    for _, provider in current_domain.providers.items():
        provider._data_reset()
    current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed, notifications_bed):
    # Lifecycle tests hand snapshots to the notifications side, so both
    # domains are initialized. Ordering is the active one.
    with notifications_bed.domain_context():
        with ordering_bed.domain_context():
            yield
            _reset_stores()
        _reset_stores()


@pytest.fixture()
def tenant():
    return f"tenant-{uuid4().hex[:8]}"


@pytest.fixture()
def run_concurrently(ordering_bed):
    """Run `fn(index)` on `count` threads released together.

    Returns `(results, errors)`. Each thread pushes its own ordering
    domain context.
    """

    def _run(count, fn):
        start = threading.Barrier(count)
        results, errors = [], []
        guard = threading.Lock()

        def worker(index):
            # The plain domain context: the bed's own context resets every store on exit
            with ordering_bed.domain.domain_context():
                start.wait(timeout=5)
                try:
                    outcome = fn(index)
                except Exception as exc:
                    with guard:
                        errors.append(exc)
                else:
                    with guard:
                        results.append(outcome)

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return results, errors

    return _run
