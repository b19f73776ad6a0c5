"""Translation of domain exceptions into HTTP responses"""

import logging
from contextlib import contextmanager
from typing import Iterator
from fastapi import HTTPException
from sqlalchemy.orm import Session

from pneuma.domain.exceptions import NotFoundError, StoreError, ValidationError
from pneuma.infrastructure.database.repositories import store_errors
from pneuma.infrastructure.observability.metrics import store_failure_counter


@contextmanager
def unit_of_work(db: Session, request_id: str, commit: bool = True) -> Iterator[None]:
    """
    Run one store interaction: commit on success, roll back on any domain error.

    - ValidationError -> 422 with the message verbatim
    - NotFoundError -> 404
    - StoreError -> 503, never retried
    """
    try:
        yield
        if commit:
            with store_errors("commit"):
                db.commit()

    except ValidationError as e:
        db.rollback()
        logging.warning(f"Validation failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except StoreError as e:
        store_failure_counter.inc()
        db.rollback()
        logging.error(f"Store error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Ledger store unavailable")
