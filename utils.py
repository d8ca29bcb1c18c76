"""
Utility functions for the paged student roster

Logging setup, the paged resources a cursor can walk (in-memory, flaky and
HTTP-backed), and helpers that traverse a cursor and report on it.
"""

import asyncio
import gc
import logging
import math
import random
import sys
import time
import tracemalloc
from typing import Any, Callable, Dict, Iterable, List, Optional

import aiohttp

from cursor import PaginatedCursor, QueryTimedOut
from lazy import reduce
from models import Student

PASS_MARK = 50.0

# ---------- Logging Setup ----------

def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """Setup structured logging for the cursor and the roster service"""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s',
        handlers=handlers
    )
    return logging.getLogger('paged_cursor')


# ---------- Paged Resources ----------

class InMemoryPagedResource:
    """Serves a list of records as uniform pages; the last page may be short"""

    def __init__(self, records: Iterable[Any], page_size: int = 10):
        if page_size < 1:
            raise ValueError("Page size must be >= 1")
        self.records = list(records)
        self.page_size = page_size
        self.fetches: List[int] = []  # page indices in fetch order
        self.logger = logging.getLogger('paged_cursor.resource')

    def get_num_pages(self) -> int:
        return math.ceil(len(self.records) / self.page_size)

    def get_page(self, page_index: int) -> List[Any]:
        if not 0 <= page_index < self.get_num_pages():
            raise IndexError(f"Page {page_index} out of range (0..{self.get_num_pages() - 1})")
        self.fetches.append(page_index)
        start = page_index * self.page_size
        self.logger.debug(f"Serving page {page_index}")
        return self.records[start:start + self.page_size]


class FlakyPagedResource:
    """
    Wraps another paged resource and makes chosen queries time out.

    `failures` maps a page index to how many fetches of that page fail with
    QueryTimedOut before one is let through; `count_failures` does the same
    for the page-count query.
    """

    def __init__(self, inner, failures: Optional[Dict[int, int]] = None, count_failures: int = 0):
        self.inner = inner
        self.remaining_failures = dict(failures or {})
        self.remaining_count_failures = count_failures
        self.timeouts = 0

    def __getattr__(self, name):
        # page_size, records, fetches... come from the wrapped resource
        return getattr(self.inner, name)

    def get_num_pages(self) -> int:
        if self.remaining_count_failures > 0:
            self.remaining_count_failures -= 1
            self.timeouts += 1
            raise QueryTimedOut("Query for the page count timed out")
        return self.inner.get_num_pages()

    def get_page(self, page_index: int) -> List[Any]:
        if self.remaining_failures.get(page_index, 0) > 0:
            self.remaining_failures[page_index] -= 1
            self.timeouts += 1
            raise QueryTimedOut(f"Query for page {page_index} timed out")
        return self.inner.get_page(page_index)


class HttpPagedResource:
    """Paged resource backed by the roster service's HTTP endpoints"""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._num_pages: Optional[int] = None

    def get_num_pages(self) -> int:
        if self._num_pages is None:
            info = self._request("/students/pages")
            self._num_pages = int(info["num_pages"])
        return self._num_pages

    def get_page(self, page_index: int) -> List[Student]:
        payload = self._request(f"/students/pages/{page_index}")
        return [Student(**record) for record in payload["records"]]

    def _request(self, endpoint: str) -> Dict[str, Any]:
        """Run one GET to completion; timeouts become QueryTimedOut"""
        try:
            return asyncio.run(self._get_json(endpoint))
        except asyncio.TimeoutError as e:
            raise QueryTimedOut(f"GET {endpoint} timed out after {self.timeout}s") from e
        except aiohttp.ClientResponseError as e:
            if e.status == 504:
                raise QueryTimedOut(f"GET {endpoint} returned 504 Gateway Timeout") from e
            raise

    async def _get_json(self, endpoint: str) -> Dict[str, Any]:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(f"{self.base_url}{endpoint}") as response:
                response.raise_for_status()
                return await response.json()


# ---------- Roster Helpers ----------

FIRST_NAMES = ["Ada", "Alan", "Barbara", "Claude", "Edsger", "Grace", "John", "Katherine", "Linus", "Margaret"]
LAST_NAMES = ["Hopper", "Turing", "Liskov", "Shannon", "Dijkstra", "Lovelace", "McCarthy", "Johnson", "Hamilton"]
PROGRAMS = ["Computer Science", "Mathematics", "Physics", "Engineering"]


def sample_students(count: int, seed: int = 7) -> List[Student]:
    """Deterministic roster of `count` students"""
    rng = random.Random(seed)
    return [
        Student(
            student_id=1000 + i,
            name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
            program=rng.choice(PROGRAMS),
            mark=round(rng.uniform(20.0, 100.0), 1)
        )
        for i in range(count)
    ]


def _accumulate(acc, student):
    count, total, best, passed = acc
    if best is None or student.mark > best.mark:
        best = student
    return count + 1, total + student.mark, best, passed + (student.mark >= PASS_MARK)


def compute_stats(students) -> Dict[str, Any]:
    """Fold a sequence of students into summary statistics in one pass"""
    count, total, best, passed = reduce(students, (0, 0.0, None, 0), _accumulate)
    return {
        "count": count,
        "passed": passed,
        "mean_mark": round(total / count, 2) if count else None,
        "max_mark": best.mark if best else None,
        "best_student": best,
    }


def traverse(cursor: PaginatedCursor, directions: Iterable[str]) -> List[Any]:
    """Drive a cursor with an explicit call pattern ("next" / "reverse")"""
    records = []
    for direction in directions:
        if direction == "next":
            records.append(cursor.next())
        elif direction == "reverse":
            records.append(cursor.reverse_next())
        else:
            raise ValueError(f"Unknown traversal direction: {direction}")
    return records


def measure_traversal(operation_name: str, func: Callable, *args, **kwargs) -> Dict[str, Any]:
    """Run a traversal and report its result, wall time and peak memory"""
    tracemalloc.start()
    gc.collect()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        current, peak = tracemalloc.get_traced_memory()
        return {
            "operation": operation_name,
            "result": result,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "result_size": len(result) if hasattr(result, "__len__") else None,
        }
    finally:
        tracemalloc.stop()
