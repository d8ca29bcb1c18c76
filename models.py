"""
Pydantic Models

Records served by the paged student API, cursor configuration, and the
request/response payloads of the roster service.
"""

import os
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
MAX_RETRIES = 100


class Student(BaseModel):
    """One record of the remote student list"""
    model_config = ConfigDict(frozen=True)

    student_id: int = Field(..., description="Unique student number", ge=0)
    name: str = Field(..., description="Full name", min_length=1)
    program: str = Field("undeclared", description="Degree program")
    mark: float = Field(..., description="Overall mark", ge=0.0, le=100.0)


class CursorSettings(BaseModel):
    """Configuration for a paginated cursor"""
    retries: int = Field(
        3,
        description="Maximum attempts per resource query before the resource is declared unreachable",
        ge=1,
        le=MAX_RETRIES
    )
    log_level: str = Field(
        "INFO",
        description="Logging level name used by setup_logging()"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Normalise and validate the logging level name"""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {list(LOG_LEVELS)}")
        return level

    @classmethod
    def from_env(cls) -> "CursorSettings":
        """Build settings from PAGED_CURSOR_* environment variables"""
        values: Dict[str, Any] = {}
        if os.environ.get('PAGED_CURSOR_RETRIES'):
            values['retries'] = int(os.environ['PAGED_CURSOR_RETRIES'])
        if os.environ.get('PAGED_CURSOR_LOG_LEVEL'):
            values['log_level'] = os.environ['PAGED_CURSOR_LOG_LEVEL']
        return cls(**values)


class TraversalDirection(str, Enum):
    """Which end of the roster a traversal consumes from"""
    FORWARD = "forward"
    REVERSE = "reverse"


class TraversalParams(BaseModel):
    """Query parameters shared by the traversal endpoints"""
    direction: TraversalDirection = Field(
        TraversalDirection.FORWARD,
        description="Consume from the head (forward) or the tail (reverse)"
    )
    retries: Optional[int] = Field(
        None,
        description="Override the configured retry budget for this traversal",
        ge=1,
        le=MAX_RETRIES
    )


class SearchParams(TraversalParams):
    """Parameters for searching students by mark"""
    min_mark: float = Field(0.0, description="Lowest mark to include", ge=0.0, le=100.0)
    limit: int = Field(10, description="Maximum number of students returned", ge=0, le=1000)


class PageInfoResponse(BaseModel):
    num_pages: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    total_records: int = Field(..., ge=0)


class PageResponse(BaseModel):
    page_index: int = Field(..., description="Zero-based page index", ge=0)
    size: int = Field(..., description="Number of records on this page", ge=0)
    records: List[Student] = Field(default_factory=list)


class StatsResponse(BaseModel):
    """Statistics computed by walking the roster with a cursor"""
    direction: TraversalDirection
    count: int = Field(..., ge=0)
    passed: int = Field(..., description="Students with a passing mark", ge=0)
    mean_mark: Optional[float] = None
    max_mark: Optional[float] = None
    best_student: Optional[Student] = None
    fetch_metrics: Dict[str, Any] = Field(default_factory=dict)
    processing_time_ms: float = Field(..., ge=0)


class SearchResponse(BaseModel):
    direction: TraversalDirection
    results: List[Student] = Field(default_factory=list)
    fetch_metrics: Dict[str, Any] = Field(default_factory=dict)


class HealthCheckResponse(BaseModel):
    status: str
    timestamp: str
    total_records: int


class ErrorResponse(BaseModel):
    error: str
    error_code: str
    timestamp: str
