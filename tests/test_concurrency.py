import threading
import time

import pytest

from intune_app_status.concurrency import execute_concurrent


class TestSequential:
    def test_empty(self):
        assert execute_concurrent(lambda x: x, []) == []

    def test_runs_in_calling_thread(self):
        main = threading.get_ident()
        assert execute_concurrent(lambda x: threading.get_ident() == main, [1, 2, 3]) == [True, True, True]

    def test_stops_at_first_failure(self):
        seen = []

        def work(x):
            seen.append(x)
            if x == 2:
                raise RuntimeError("failed on 2")
            return x

        with pytest.raises(RuntimeError, match="failed on 2"):
            execute_concurrent(work, [1, 2, 3])
        assert seen == [1, 2]


class TestPooled:
    def test_preserves_order(self):
        def slow_first(x):
            time.sleep(0.02 if x == 1 else 0.001)
            return x * 2

        assert execute_concurrent(slow_first, [1, 2, 3, 4], max_workers=4) == [2, 4, 6, 8]

    def test_none_results_kept(self):
        assert execute_concurrent(lambda x: None, [1, 2, 3], max_workers=2) == [None, None, None]

    def test_failure_cancels_pending_items(self):
        started = []

        def work(x):
            started.append(x)
            if x == 0:
                raise ValueError("first item failed")
            time.sleep(0.05)
            return x

        with pytest.raises(ValueError, match="first item failed"):
            execute_concurrent(work, list(range(20)), max_workers=2)
        assert len(started) < 20
