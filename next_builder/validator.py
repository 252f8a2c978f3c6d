"""Schema validation for project manifests and emitted route tables."""

from __future__ import annotations

import json
from importlib import resources

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from next_builder.errors import BuildError, ConfigError

# --- Schema loaders ---------------------------------------------------------


def _load_schema(package: str, resource_name: str) -> dict:
    with resources.files(package).joinpath(resource_name).open("r", encoding="utf-8") as f:
        return json.load(f)


def _package_schema() -> dict:
    return _load_schema("next_builder.schema", "package.schema.json")


def _routes_schema() -> dict:
    return _load_schema("next_builder.schema", "routes.schema.json")


# --- Public validators ------------------------------------------------------


def validate_package_json(data: dict) -> None:
    try:
        Draft202012Validator(_package_schema()).validate(data)
    except ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise ConfigError(f'Invalid "package.json" at {location}: {exc.message}') from exc


def validate_routes(routes: list[dict]) -> None:
    try:
        Draft202012Validator(_routes_schema()).validate(routes)
    except ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise BuildError(f"Invalid route table at {location}: {exc.message}") from exc
