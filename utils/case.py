"""
camelCase <-> snake_case for the HTTP boundary.
Frontend payloads are camelCase; schemas and services are snake_case only.
"""
from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel, to_snake


def camelize(obj: Any) -> Any:
    """Recursively convert dict keys to camelCase."""
    if isinstance(obj, dict):
        return {to_camel(k): camelize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [camelize(x) for x in obj]
    return obj


def snakeize(obj: Any) -> Any:
    """Recursively convert dict keys to snake_case. Already-snake keys pass through unchanged."""
    if isinstance(obj, dict):
        return {to_snake(k): snakeize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [snakeize(x) for x in obj]
    return obj


def to_response(model: BaseModel | list[BaseModel]) -> Any:
    """Dump a model (or list of models) to a camelCase JSON-ready structure."""
    if isinstance(model, list):
        return [to_response(m) for m in model]
    return camelize(model.model_dump(mode="json"))
