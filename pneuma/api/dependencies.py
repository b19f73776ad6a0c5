"""Dependency injection for FastAPI endpoints"""

from datetime import date
from typing import Optional
from fastapi import Query, Request


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today(
    date_local: Optional[date] = Query(None, alias="date", description="Local date, defaults to today"),
) -> date:
    """Resolve the local date once at the boundary; the domain never reads a clock"""
    return date_local or date.today()
