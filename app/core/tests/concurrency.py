"""
Thread helpers for the PostgreSQL row-locking tests.
"""

import threading

from django.db import connection


def run_concurrently(target, count):
    """Start `count` threads calling target(index) at the same moment."""
    barrier = threading.Barrier(count)
    results = [None] * count

    def worker(index):
        try:
            barrier.wait()
            results[index] = target(index)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results
