import threading

import pytest

from securelink.domain.secure_links import PeriodicSweeper


class TestPeriodicSweeper:
    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            PeriodicSweeper(lambda: 0, 0)

    def test_runs_until_stopped(self):
        runs = []
        enough = threading.Event()

        def sweep():
            runs.append(1)
            if len(runs) >= 3:
                enough.set()
            return 0

        sweeper = PeriodicSweeper(sweep, 0.01)
        sweeper.start()
        try:
            assert enough.wait(timeout=5)
        finally:
            sweeper.stop()

        assert not sweeper.is_running
        count = len(runs)
        enough.clear()
        assert not enough.wait(timeout=0.05)
        assert len(runs) == count

    def test_start_twice_keeps_one_thread(self):
        sweeper = PeriodicSweeper(lambda: 0, 3600)
        sweeper.start()
        first = sweeper._thread
        sweeper.start()
        try:
            assert sweeper._thread is first
        finally:
            sweeper.stop()

    def test_can_restart_after_stop(self):
        sweeper = PeriodicSweeper(lambda: 0, 3600)
        sweeper.start()
        sweeper.stop()
        sweeper.start()
        try:
            assert sweeper.is_running
        finally:
            sweeper.stop()

    def test_failing_sweep_is_logged_and_loop_continues(self, caplog):
        calls = []
        second_run = threading.Event()

        def sweep():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store offline")
            second_run.set()
            return 0

        sweeper = PeriodicSweeper(sweep, 0.01)
        sweeper.start()
        try:
            assert second_run.wait(timeout=5)
        finally:
            sweeper.stop()

        assert "store offline" in caplog.text

    def test_run_once_returns_zero_on_failure(self):
        def sweep():
            raise RuntimeError("boom")

        assert PeriodicSweeper(sweep, 1).run_once() == 0
        assert PeriodicSweeper(lambda: 4, 1).run_once() == 4
