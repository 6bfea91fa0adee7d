"""FastAPI dependency implementations."""

from __future__ import annotations

import time
from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from loguru import logger
from sqlmodel import Session

from src.product_catalog.api.http.app_data import ApplicationDependencies

REQUEST_TIMEOUT_DETAIL = "Request timed out"


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    """Get the dependencies built during application startup."""
    return request.app.state.app_dependencies


def get_db_session(
    request: Request,
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> Iterator[Session]:
    """Yield a request-scoped session.

    Whatever the handler left uncommitted is rolled back when it fails, and
    the session is closed on every exit path. The request deadline set by the
    logging middleware travels in ``session.info`` for :func:`commit_session`.
    """
    session = app_deps.database_service.get_session()
    session.info["deadline"] = getattr(request.state, "deadline", None)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def commit_session(session: Session) -> None:
    """Commit the request's work unless its deadline has already passed.

    Raises:
        HTTPException: 504 after rolling back, when the request ran out of time.
    """
    deadline = session.info.get("deadline")
    if deadline is not None and time.monotonic() > deadline:
        session.rollback()
        logger.warning("Request deadline exceeded; transaction rolled back")
        raise HTTPException(status_code=504, detail=REQUEST_TIMEOUT_DETAIL)
    session.commit()
