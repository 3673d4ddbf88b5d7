"""JSON Schemas describing the contracts of emitted artifacts."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, cast

from jsonschema import Draft202012Validator

CMS_CONFIG_SCHEMA = "cms_config.schema.json"
SITE_DATA_SCHEMA = "site_data.schema.json"


@lru_cache(maxsize=None)
def get_validator(name: str) -> Draft202012Validator:
    return Draft202012Validator(load_schema(name))


def load_schema(name: str) -> dict[str, Any]:
    with resources.files(__name__).joinpath(name).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Schema '{name}' must be a JSON object.")
    return cast(dict[str, Any], payload)


def contract_errors(name: str, instance: Any) -> list[str]:
    """Return human-readable violations of the named contract, first path first."""
    validator = get_validator(name)
    messages: list[str] = []
    for err in sorted(validator.iter_errors(instance), key=lambda err: [str(elem) for elem in err.path]):
        pointer = "/".join(str(elem) for elem in err.path)
        messages.append(f"{err.message} (at {pointer})" if pointer else err.message)
    return messages
