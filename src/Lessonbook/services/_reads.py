from concurrent.futures import ThreadPoolExecutor

MAX_READERS = 6


def run_reads(**reads):
    """Run independent repository reads concurrently.

    Each value is a zero-argument callable; each opens its own connection.
    Returns a dict of results under the same names, after every read is done.
    """
    with ThreadPoolExecutor(max_workers=min(MAX_READERS, len(reads)) or 1) as pool:
        futures = {name: pool.submit(fn) for name, fn in reads.items()}
        return {name: f.result() for name, f in futures.items()}
