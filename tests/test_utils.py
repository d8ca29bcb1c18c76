import asyncio
from unittest.mock import MagicMock

import aiohttp
import pytest

from cursor import PaginatedCursor, QueryTimedOut, ResourceUnreachable
from lazy import from_list, reverse
from models import Student
from utils import (
    HttpPagedResource, InMemoryPagedResource, compute_stats, measure_traversal,
    sample_students, traverse
)


class TestInMemoryResource:
    """Test the in-memory paged resource"""

    def test_page_sizes(self):
        resource = InMemoryPagedResource(range(7), page_size=3)
        assert resource.get_num_pages() == 3
        assert [len(resource.get_page(i)) for i in range(3)] == [3, 3, 1]

    def test_out_of_range_page(self):
        with pytest.raises(IndexError):
            InMemoryPagedResource(range(3), page_size=3).get_page(1)

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            InMemoryPagedResource([], page_size=0)

    def test_sample_students_are_deterministic(self):
        assert sample_students(5) == sample_students(5)
        assert [s.student_id for s in sample_students(3)] == [1000, 1001, 1002]


class TestStats:
    """Test statistics folded over a cursor"""

    def test_stats_over_cursor(self):
        students = [
            Student(student_id=1, name="A", mark=40.0),
            Student(student_id=2, name="B", mark=90.0),
            Student(student_id=3, name="C", mark=65.0),
        ]
        stats = compute_stats(PaginatedCursor(InMemoryPagedResource(students, page_size=2)))
        assert stats["count"] == 3
        assert stats["passed"] == 2
        assert stats["mean_mark"] == 65.0
        assert stats["best_student"].student_id == 2

    def test_stats_over_empty_sequence(self):
        stats = compute_stats(from_list([]))
        assert stats == {"count": 0, "passed": 0, "mean_mark": None, "max_mark": None, "best_student": None}

    def test_stats_in_reverse(self):
        students = sample_students(11)
        cursor = PaginatedCursor(InMemoryPagedResource(students, page_size=4))
        assert compute_stats(reverse(cursor))["count"] == 11


class TestTraversalHelpers:
    """Test traverse() and measure_traversal()"""

    def test_unknown_direction(self):
        cursor = PaginatedCursor(InMemoryPagedResource([1], page_size=1))
        with pytest.raises(ValueError):
            traverse(cursor, ["sideways"])

    def test_measure_traversal(self):
        cursor = PaginatedCursor(InMemoryPagedResource(range(20), page_size=6))
        info = measure_traversal("forward_walk", list, cursor)
        assert info["operation"] == "forward_walk"
        assert info["result"] == list(range(20))
        assert info["result_size"] == 20
        assert info["execution_time_ms"] >= 0

    def test_measure_traversal_propagates_errors(self):
        def _fail():
            raise ResourceUnreachable(0, 3)

        with pytest.raises(ResourceUnreachable):
            measure_traversal("failing_walk", _fail)


class TestHttpResource:
    """Test the HTTP-backed resource with the network call patched out"""

    def _resource(self, responses):
        resource = HttpPagedResource("http://roster.test/", timeout=1.0)
        requested = []

        async def _fake_get_json(endpoint):
            requested.append(endpoint)
            response = responses[endpoint]
            if isinstance(response, Exception):
                raise response
            return response

        resource._get_json = _fake_get_json
        return resource, requested

    def test_pages_are_parsed_into_students(self):
        record = {"student_id": 5, "name": "Grace Hopper", "program": "Mathematics", "mark": 88.5}
        resource, requested = self._resource({
            "/students/pages": {"num_pages": 1, "page_size": 10, "total_records": 1},
            "/students/pages/0": {"page_index": 0, "size": 1, "records": [record]},
        })
        cursor = PaginatedCursor(resource)
        assert list(cursor) == [Student(**record)]
        assert requested == ["/students/pages", "/students/pages/0"]
        assert resource.base_url == "http://roster.test"

    def test_timeout_becomes_query_timed_out(self):
        resource, _ = self._resource({"/students/pages/0": asyncio.TimeoutError()})
        with pytest.raises(QueryTimedOut):
            resource.get_page(0)

    def test_gateway_timeout_becomes_query_timed_out(self):
        error = aiohttp.ClientResponseError(MagicMock(), (), status=504, message="Gateway Timeout")
        resource, _ = self._resource({"/students/pages/0": error})
        with pytest.raises(QueryTimedOut):
            resource.get_page(0)

    def test_other_http_errors_propagate(self):
        error = aiohttp.ClientResponseError(MagicMock(), (), status=500, message="Server Error")
        resource, _ = self._resource({"/students/pages/0": error})
        with pytest.raises(aiohttp.ClientResponseError):
            resource.get_page(0)
