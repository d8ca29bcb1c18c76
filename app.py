import datetime
import time

from fastapi import Depends, FastAPI, Path
from fastapi.responses import JSONResponse

from cursor import PaginatedCursor, PagedResource, QueryTimedOut, ResourceUnreachable
from lazy import LazySequence, reverse
from models import (
    CursorSettings, PageInfoResponse, PageResponse, StatsResponse, SearchParams,
    SearchResponse, TraversalDirection, TraversalParams, HealthCheckResponse, ErrorResponse
)
from utils import InMemoryPagedResource, compute_stats, sample_students, setup_logging

ROSTER_SIZE = 47
PAGE_SIZE = 10

settings = CursorSettings.from_env()
logger = setup_logging(settings.log_level)
roster = InMemoryPagedResource(sample_students(ROSTER_SIZE), page_size=PAGE_SIZE)

app = FastAPI(title="Paged Student Roster")


def get_resource() -> InMemoryPagedResource:
    """The roster every endpoint serves or walks"""
    return roster


def _timestamp() -> str:
    return datetime.datetime.now(datetime.timezone.utc).isoformat()


def _error(status_code: int, error: str, error_code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, error_code=error_code, timestamp=_timestamp()).model_dump()
    )


def _open_cursor(resource: PagedResource, params: TraversalParams):
    """Cursor over the resource plus the sequence to consume for the requested direction"""
    cursor = PaginatedCursor(resource, retries=params.retries, settings=settings)
    if params.direction == TraversalDirection.REVERSE:
        return cursor, reverse(cursor)
    return cursor, cursor


@app.get("/health", response_model=HealthCheckResponse)
async def health(resource: InMemoryPagedResource = Depends(get_resource)) -> HealthCheckResponse:
    return HealthCheckResponse(status="healthy", timestamp=_timestamp(), total_records=len(resource.records))


@app.get("/students/pages", response_model=PageInfoResponse)
def page_info(resource: InMemoryPagedResource = Depends(get_resource)):
    try:
        num_pages = resource.get_num_pages()
    except QueryTimedOut as e:
        return _error(504, str(e), "QUERY_TIMED_OUT")
    return PageInfoResponse(
        num_pages=num_pages,
        page_size=resource.page_size,
        total_records=len(resource.records)
    )


@app.get("/students/pages/{page_index}", response_model=PageResponse)
def get_page(
    page_index: int = Path(..., ge=0),
    resource: InMemoryPagedResource = Depends(get_resource)
):
    try:
        records = resource.get_page(page_index)
    except IndexError as e:
        return _error(404, str(e), "PAGE_NOT_FOUND")
    except QueryTimedOut as e:
        return _error(504, str(e), "QUERY_TIMED_OUT")
    return PageResponse(page_index=page_index, size=len(records), records=records)


@app.get("/students/stats", response_model=StatsResponse)
def student_stats(
    params: TraversalParams = Depends(),
    resource: PagedResource = Depends(get_resource)
):
    """
    Walk the whole roster with a paginated cursor and summarise it:
      - count, passes, mean and max mark, best student
      - how many pages / attempts / timeouts the walk cost
    """
    start_time = time.perf_counter()
    cursor, students = _open_cursor(resource, params)
    try:
        stats = compute_stats(students)
    except ResourceUnreachable as e:
        logger.error(f"Stats traversal aborted: {e}")
        return _error(503, str(e), "RESOURCE_UNREACHABLE")

    return StatsResponse(
        direction=params.direction,
        fetch_metrics=cursor.metrics.to_dict(),
        processing_time_ms=(time.perf_counter() - start_time) * 1000,
        **stats
    )


@app.get("/students/search", response_model=SearchResponse)
def search_students(
    params: SearchParams = Depends(),
    resource: PagedResource = Depends(get_resource)
):
    """Lazily collect up to `limit` students with at least `min_mark`; stops fetching once satisfied"""
    cursor, students = _open_cursor(resource, params)
    try:
        results = (
            LazySequence(students)
            .filter(lambda s: s.mark >= params.min_mark)
            .take(params.limit)
            .to_list()
        )
    except ResourceUnreachable as e:
        logger.error(f"Search traversal aborted: {e}")
        return _error(503, str(e), "RESOURCE_UNREACHABLE")

    return SearchResponse(direction=params.direction, results=results, fetch_metrics=cursor.metrics.to_dict())
