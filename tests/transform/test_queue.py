"""
Unit Tests for TransformQueue ordering and failure handling.
"""

import threading
import time

import pytest

from photo_sheet.transform.queue import TransformQueue


class TestTransformQueue:

    def test_submit_when_same_key_then_runs_in_submission_order(self):
        # Arrange
        order = []
        lock = threading.Lock()

        def job(label, delay):
            time.sleep(delay)
            with lock:
                order.append(label)
            return label

        # Act
        with TransformQueue(max_workers=4) as queue:
            futures = [
                queue.submit("item", job, "first", 0.05),
                queue.submit("item", job, "second", 0.0),
                queue.submit("item", job, "third", 0.0),
            ]
            results = [f.result(timeout=5) for f in futures]

        # Assert
        assert order == ["first", "second", "third"]
        assert results == ["first", "second", "third"]

    def test_submit_when_different_keys_then_run_concurrently(self):
        started = threading.Event()
        release = threading.Event()

        def blocker():
            started.set()
            release.wait(timeout=5)
            return "blocked"

        with TransformQueue(max_workers=2) as queue:
            slow = queue.submit("a", blocker)
            assert started.wait(timeout=5)
            fast = queue.submit("b", lambda: "free")
            assert fast.result(timeout=5) == "free"
            release.set()
            assert slow.result(timeout=5) == "blocked"

    def test_submit_when_earlier_job_fails_then_later_job_still_runs(self):
        def boom():
            raise RuntimeError("boom")

        with TransformQueue(max_workers=2) as queue:
            failed = queue.submit("item", boom)
            after = queue.submit("item", lambda: 42)
            assert after.result(timeout=5) == 42
            with pytest.raises(RuntimeError, match="boom"):
                failed.result(timeout=5)

    def test_wait_all_when_one_fails_then_counts_successes(self):
        def boom():
            raise ValueError("bad")

        with TransformQueue(max_workers=2) as queue:
            queue.submit("a", lambda: 1)
            queue.submit("b", boom)
            queue.submit("c", lambda: 3)
            assert queue.wait_all(timeout=5) == 2

    def test_disable_when_submitted_then_runs_inline(self):
        queue = TransformQueue(max_workers=1)
        queue.disable()
        caller = threading.current_thread()
        seen = []

        future = queue.submit("item", lambda: seen.append(threading.current_thread()) or "done")

        assert future.done()
        assert future.result() == "done"
        assert seen == [caller]
        assert not queue.is_async
        queue.shutdown()

    def test_disable_when_job_raises_then_future_holds_exception(self):
        queue = TransformQueue(max_workers=1)
        queue.disable()

        def boom():
            raise ValueError("inline")

        future = queue.submit("item", boom)
        assert isinstance(future.exception(), ValueError)
        queue.shutdown()

    def test_pending_for_when_job_finished_then_false(self):
        with TransformQueue(max_workers=1) as queue:
            future = queue.submit("item", lambda: None)
            future.result(timeout=5)
            queue.wait_all()
            assert not queue.pending_for("item")
