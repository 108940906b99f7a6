"""
API routes for download tracking and download counts.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from backend.core.counters import CounterStore
from backend.core.event_log import EventLog
from backend.core.storage import StorageUnavailable
from backend.core.tracking import (
    ReservedCounterId,
    read_all_counts,
    read_count,
    track_download,
)
from backend.models import (
    DownloadCountResponse,
    TrackDownloadRequest,
    TrackDownloadResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_event_log(request: Request) -> EventLog:
    return request.app.state.event_log


def get_counter_store(request: Request) -> CounterStore:
    return request.app.state.counters


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _client_address(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def _track(request, body, event_log, counters, app_id=None):
    user_agent = body.userAgent if body else None
    try:
        count = track_download(
            event_log,
            counters,
            app_id=app_id,
            user_agent=user_agent,
            client_address=_client_address(request),
        )
    except ReservedCounterId as e:
        return _error(400, str(e))
    except StorageUnavailable:
        logger.exception("Error tracking download (app_id=%s)", app_id)
        return _error(500, "Failed to track download")

    return TrackDownloadResponse(totalDownloadCount=count)


@router.get("")
def get_download_counts(counters: CounterStore = Depends(get_counter_store)):
    """
    Get the download count of every tracked application.

    The global total is not part of this mapping.
    """
    try:
        return read_all_counts(counters)
    except StorageUnavailable:
        logger.exception("Error fetching download counts")
        return _error(500, "Failed to fetch download counts")


@router.post("", response_model=TrackDownloadResponse)
def track_unscoped_download(
    request: Request,
    body: Optional[TrackDownloadRequest] = None,
    event_log: EventLog = Depends(get_event_log),
    counters: CounterStore = Depends(get_counter_store),
):
    """Track a download that is not tied to an application."""
    return _track(request, body, event_log, counters)


@router.get("/{app_id}", response_model=DownloadCountResponse)
def get_download_count(app_id: str, counters: CounterStore = Depends(get_counter_store)):
    """Get one application's download count (0 if never tracked)."""
    try:
        return DownloadCountResponse(totalDownloadCount=read_count(counters, app_id))
    except StorageUnavailable:
        logger.exception("Error fetching download count for %s", app_id)
        return _error(500, "Failed to fetch download count")


@router.post("/{app_id}", response_model=TrackDownloadResponse)
def track_app_download(
    app_id: str,
    request: Request,
    body: Optional[TrackDownloadRequest] = None,
    event_log: EventLog = Depends(get_event_log),
    counters: CounterStore = Depends(get_counter_store),
):
    """Track a download of one application. Increments its counter and the global one."""
    return _track(request, body, event_log, counters, app_id=app_id)
