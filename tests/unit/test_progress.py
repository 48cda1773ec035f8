"""Unit tests for the job progress tracker."""

import threading

from foosrank.tasks.progress import JobProgress


def test_new_progress_starts_at_zero_of_max():
    progress = JobProgress("ITSF Rankings Download", 1)
    assert progress.get_progress() == (0, 1)
    assert progress.get_log() == []
    assert not progress.has_finished()


def test_set_progress_replaces_both_values():
    progress = JobProgress("job", 1)
    progress.set_progress(3, 12)
    assert progress.get_progress() == (3, 12)


def test_extend_and_advance():
    progress = JobProgress("job", 4)
    progress.extend(10)
    progress.advance(7)
    progress.advance()
    assert progress.get_progress() == (8, 14)


def test_finish_forces_max_max():
    progress = JobProgress("job", 5)
    progress.advance(2)
    progress.finish()
    assert progress.get_progress() == (5, 5)
    assert progress.has_finished()


def test_log_keeps_order_and_get_log_returns_copy():
    progress = JobProgress("job", 1)
    progress.log("first")
    progress.log("second")

    log = progress.get_log()
    log.append("not in the job log")

    assert progress.get_log() == ["first", "second"]


def test_concurrent_writers_do_not_lose_updates():
    progress = JobProgress("job", 0)

    def writer():
        for _ in range(500):
            progress.extend(1)
            progress.advance()
            progress.log("x")

    threads = [threading.Thread(target=writer) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert progress.get_progress() == (2000, 2000)
    assert len(progress.get_log()) == 2000
