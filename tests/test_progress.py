import threading

from core.progress import ProgressTracker


def test_publishes_bounded_percentage():
    seen = []
    tracker = ProgressTracker(200, seen.append)
    tracker.add(50)
    tracker.add(50)
    tracker.add(100)
    assert seen == [25.0, 50.0, 99.9]
    assert tracker.bytes_read == 200


def test_overshoot_is_capped():
    seen = []
    tracker = ProgressTracker(10, seen.append)
    tracker.add(25)
    assert seen == [99.9]


def test_unknown_total_suppresses_updates():
    seen = []
    tracker = ProgressTracker(0, seen.append)
    tracker.add(1024)
    assert seen == []
    assert tracker.bytes_read == 1024


def test_concurrent_writers_count_every_byte():
    seen = []
    tracker = ProgressTracker(2 * 1000 * 7, seen.append)

    def writer():
        for _ in range(1000):
            tracker.add(7)

    threads = [threading.Thread(target=writer) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tracker.bytes_read == 14000
    assert seen == sorted(seen)
    assert seen[-1] == 99.9
