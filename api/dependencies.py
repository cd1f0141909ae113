from typing import Any, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from config import Settings, settings
from schemas.lender import LenderConfig
from utils.case import snakeize

ModelT = TypeVar("ModelT", bound=BaseModel)


def get_settings() -> Settings:
    return settings


def get_lenders(request: Request) -> list[LenderConfig]:
    """Lender catalog loaded once at startup (see main.lifespan)."""
    return request.app.state.lenders


def parse_body(model_cls: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """Validate a camelCase or snake_case payload; 422 on failure."""
    try:
        return model_cls.model_validate(snakeize(payload))
    except ValidationError as e:
        raise RequestValidationError(e.errors()) from e
