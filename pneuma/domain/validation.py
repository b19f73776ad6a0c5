"""Boundary checks applied before anything reaches the store or the engine"""

from pneuma.domain.models import Configuration
from pneuma.domain.exceptions import ValidationError


def validate_configuration(config: Configuration) -> Configuration:
    """
    Reject configurations the allocation engine cannot handle.

    Raises:
        ValidationError: min_floor negative, max_ceil below min_floor, or resilience_days < 1
    """
    if config.min_floor < 0:
        raise ValidationError("min_floor must be >= 0")
    if config.max_ceil < config.min_floor:
        raise ValidationError("min_floor must be <= max_ceil")
    if config.resilience_days < 1:
        raise ValidationError("resilience_days must be >= 1")
    return config


def validate_amount(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("amount must be an integer number of minor units")
    if amount <= 0:
        raise ValidationError("amount must be > 0")
    return amount


def validate_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name must not be empty")
    return name
