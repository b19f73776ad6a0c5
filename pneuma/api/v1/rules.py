"""/v1/config - the three allocation tunables"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from pneuma.api.v1.schemas import ConfigSchema
from pneuma.api.dependencies import get_request_id
from pneuma.api.errors import unit_of_work
from pneuma.infrastructure.database.session import get_db
from pneuma.infrastructure.database.repositories import ConfigRepository
from pneuma.infrastructure.observability.logging import log_ledger_mutation
from pneuma.infrastructure.observability.metrics import record_mutation
from pneuma.domain.models import Configuration

router = APIRouter()


@router.get("/config", response_model=ConfigSchema)
def get_config(request: Request, db: Session = Depends(get_db)):
    with unit_of_work(db, get_request_id(request), commit=False):
        config = ConfigRepository(db).get_config()
    return ConfigSchema.model_validate(config)


@router.put("/config", response_model=ConfigSchema)
def set_config(body: ConfigSchema, request: Request, db: Session = Depends(get_db)):
    """
    Replace the configuration.

    Rejects min_floor > max_ceil with 422 before anything is written.
    """
    request_id = get_request_id(request)
    with unit_of_work(db, request_id):
        config = ConfigRepository(db).set_config(
            Configuration(
                min_floor=body.min_floor,
                max_ceil=body.max_ceil,
                resilience_days=body.resilience_days,
            )
        )

    record_mutation("set_config")
    log_ledger_mutation(request_id, "set_config", 1)
    return ConfigSchema.model_validate(config)
