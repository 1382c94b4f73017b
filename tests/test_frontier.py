# File: tests/test_frontier.py
from __future__ import annotations

import threading

import pytest

from webmirror.crawler import Frontier


def test_push_pop_fifo_and_no_dedup() -> None:
    frontier = Frontier()
    assert frontier.push_many(["a", "b", "a"]) == 3

    assert [frontier.pop(timeout=0.1) for _ in range(3)] == ["a", "b", "a"]
    assert frontier.pop(timeout=0.01) is None


def test_idle_tracking() -> None:
    frontier = Frontier()
    assert frontier.wait_idle(timeout=0)

    frontier.push("a")
    assert frontier.outstanding == 1
    assert not frontier.wait_idle(timeout=0.01)

    assert frontier.pop(timeout=0.1) == "a"
    # Popped but unfinished work still counts.
    assert not frontier.wait_idle(timeout=0.01)

    frontier.task_done()
    assert frontier.wait_idle(timeout=0)
    assert frontier.snapshot() == {
        "queue_size": 0,
        "outstanding": 0,
        "enqueued": 1,
        "dequeued": 1,
        "completed": 1,
    }


def test_task_done_without_work() -> None:
    with pytest.raises(ValueError):
        Frontier().task_done()


def test_worker_can_feed_links_back_without_blocking() -> None:
    frontier = Frontier()
    frontier.push("seed")
    done = threading.Event()

    def _single_worker() -> None:
        produced = 0
        while True:
            link = frontier.pop(timeout=0.5)
            if link is None:
                break
            if produced < 1000:
                produced += frontier.push_many(f"{link}/{idx}" for idx in range(100))
            frontier.task_done()
        done.set()

    thread = threading.Thread(target=_single_worker, daemon=True)
    thread.start()

    assert frontier.wait_idle(timeout=10)
    assert done.wait(timeout=5)
    assert frontier.snapshot()["enqueued"] == 1001
