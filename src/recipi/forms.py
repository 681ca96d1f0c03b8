"""Turn incoming write requests into plain dicts for the pydantic DTOs.

Writes arrive as multipart forms (the web client) or JSON bodies. Multipart
lists come either as a JSON-encoded field (``ingredients='["a", "b"]'``) or as
indexed fields (``steps[0]``, ``steps[1]``). Empty values are dropped so that
an absent or blank field means "leave unchanged" on update.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

_INDEXED = re.compile(r"^(?P<name>[A-Za-z_]\w*)\[(?P<index>\d*)\]$")

LIST_FIELDS = ("ingredients", "steps", "tags")


@dataclass
class Payload:
    data: Dict[str, Any]
    file: Optional[UploadFile] = None


def _decode_list_field(value: str):
    value = value.strip()
    if value.startswith("["):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            decoded = None
        if isinstance(decoded, list):
            return decoded
    # newline-separated text, blank lines ignored
    return [line for line in value.splitlines() if line.strip()]


def decode_form(items: Iterable[Tuple[str, Any]]) -> Payload:
    data: Dict[str, Any] = {}
    indexed: Dict[str, list] = {}
    upload = None
    for key, value in items:
        if isinstance(value, UploadFile):
            if key == "file" and value.filename:
                upload = value
            continue
        if key == "file":
            continue
        m = _INDEXED.match(key)
        if m:
            name = m.group("name")
            if name not in LIST_FIELDS:
                continue
            index = m.group("index")
            position = int(index) if index else len(indexed.get(name, []))
            indexed.setdefault(name, []).append((position, value))
            continue
        if value is None or str(value).strip() == "":
            continue
        if key in LIST_FIELDS:
            data[key] = _decode_list_field(str(value))
        else:
            data[key] = value
    for name, pairs in indexed.items():
        data[name] = [v for _, v in sorted(pairs, key=lambda p: p[0])]
    for name in LIST_FIELDS:
        if name in data and not data[name]:
            del data[name]
    return Payload(data=data, file=upload)


def decode_json(body: Any, envelope: str) -> Payload:
    if isinstance(body, dict) and isinstance(body.get(envelope), dict):
        body = body[envelope]
    if not isinstance(body, dict):
        raise RequestValidationError(
            [{"type": "dict_type", "loc": ("body",), "msg": "Expected a JSON object", "input": body}]
        )
    data = {
        k: v for k, v in body.items()
        if v is not None and not (isinstance(v, str) and not v.strip())
    }
    return Payload(data=data)


async def read_payload(request: Request, envelope: str) -> Payload:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except json.JSONDecodeError:
            raise RequestValidationError(
                [{"type": "json_invalid", "loc": ("body",), "msg": "Invalid JSON body", "input": None}]
            )
        return decode_json(body, envelope)
    form = await request.form()
    return decode_form(form.multi_items())


async def recipe_payload(request: Request) -> Payload:
    return await read_payload(request, "recipe")


async def user_payload(request: Request) -> Payload:
    return await read_payload(request, "user")


def validate(schema: type[BaseModel], data: Dict[str, Any]):
    """Validate `data` against `schema`, answering 422 the way FastAPI does."""
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False))
