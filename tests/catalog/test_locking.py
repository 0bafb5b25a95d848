"""
Tests for the readers-writer lock.
"""

import threading

from catalog.locking import ReadWriteLock


class TestReadWriteLock:
    """Test cases for ReadWriteLock."""

    def test_readers_share_the_lock(self):
        """Test that two readers can hold the lock at the same time."""
        lock = ReadWriteLock()
        barrier = threading.Barrier(2, timeout=2)
        results = []

        def reader():
            with lock.read_locked():
                # Both readers must be inside for the barrier to release.
                barrier.wait()
                results.append(True)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert results == [True, True]

    def test_writer_excludes_readers(self):
        """Test that a reader waits while a writer holds the lock."""
        lock = ReadWriteLock()
        reader_entered = threading.Event()

        def reader():
            with lock.read_locked():
                reader_entered.set()

        with lock.write_locked():
            thread = threading.Thread(target=reader)
            thread.start()
            assert not reader_entered.wait(timeout=0.2)

        assert reader_entered.wait(timeout=2)
        thread.join(timeout=2)

    def test_writer_excludes_writers(self):
        """Test that a second writer waits for the first."""
        lock = ReadWriteLock()
        second_entered = threading.Event()

        def writer():
            with lock.write_locked():
                second_entered.set()

        with lock.write_locked():
            thread = threading.Thread(target=writer)
            thread.start()
            assert not second_entered.wait(timeout=0.2)

        assert second_entered.wait(timeout=2)
        thread.join(timeout=2)

    def test_lock_released_after_exception(self):
        """Test that an exception inside the block releases the lock."""
        lock = ReadWriteLock()

        try:
            with lock.write_locked():
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        acquired = threading.Event()

        def reader():
            with lock.read_locked():
                acquired.set()

        thread = threading.Thread(target=reader)
        thread.start()
        assert acquired.wait(timeout=2)
        thread.join(timeout=2)
