"""Handlers for the ``/api`` endpoints."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from email.message import Message as _HeaderMessage
from email.utils import collapse_rfc2231_value
from pathlib import Path
from urllib.parse import parse_qsl

from .httpconst import ContentType, Method
from .models import ItemSubmissionData, Message, MessageOk, StatusConfig
from .routing import Request, Response
from .utility import load_config, sanitize_file_name

VERSION = "0.0.1"
CONFIG_PATH = "../../config.toml"
UPLOAD_DIR = Path("../../public/upload")

_JSON_HEADER = ContentType.APPLICATION_JSON.header_line
_PATH_PATTERN_PREFIX = "/api/path/"


def _json(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _log_error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)


# ---------------------------------------------------------------------------
# /api/test/hello


def hello(request: Request, response: Response) -> None:
    """Answer GET with a greeting; any other method gets 405."""
    response.add_header(_JSON_HEADER)
    if request.method == Method.GET:
        response.set_body(Message("hello").to_json())
        response.set_status(200, "ok")
    else:
        response.set_status(405, "not allowed")


# ---------------------------------------------------------------------------
# /api/check/status/config


def _as_i8(value: int) -> int:
    return (value + 128) % 256 - 128


def status_config(request: Request, response: Response) -> None:
    """Answer GET with the configured status, version and release date.

    Raises ValueError when the configuration lacks a valid status or
    release date.
    """
    response.add_header(_JSON_HEADER)
    if request.method != Method.GET:
        response.set_status(405, "not allowed")
        return

    config = load_config(CONFIG_PATH)
    section = config.get("config")
    section = section if isinstance(section, dict) else {}

    status = section.get("status")
    if isinstance(status, bool) or not isinstance(status, int):
        raise ValueError("config status is not right")
    release_date = section.get("release_date")
    if not isinstance(release_date, str):
        raise ValueError("config release_date is not right")

    callback = StatusConfig(
        status=_as_i8(status), version=VERSION, release_date=release_date
    )
    response.set_body(callback.to_json())


# ---------------------------------------------------------------------------
# /api/param


def param_message(request: Request, response: Response) -> None:
    """Echo the method and the ``message`` query parameter, for any method."""
    response.add_header(_JSON_HEADER)

    query = request.query_string()
    if query is None:
        query = "doesn't exists"
    params = dict(parse_qsl(query, keep_blank_values=True))
    message = params.get("message", "default")

    response.set_body(_json({"message": f"{request.method}, {message}"}))
    response.set_status(200, "ok")


# ---------------------------------------------------------------------------
# /api/path/{path1}/{path2}


def _path_segments(base_path: str) -> tuple[str, str]:
    if not base_path.startswith(_PATH_PATTERN_PREFIX):
        return "", ""
    parts = base_path[len(_PATH_PATTERN_PREFIX):].split("/")
    if len(parts) != 2 or not all(parts):
        return "", ""
    return parts[0], parts[1]


def handle_path(request: Request, response: Response) -> None:
    """Return the two path segments after checking them."""
    response.add_header(_JSON_HEADER)

    path1, path2 = _path_segments(request.base_path())

    if not all(c.isalnum() for c in path1):
        response.set_status(400, "bad request").set_body(
            '{"error":"path1 must be alphanumeric"}'
        )
        return
    if len(path2.encode("utf-8")) < 3:
        response.set_status(400, "bad request").set_body('{"error":"path2 too short"}')
        return

    response.set_body(_json({"path1": path1, "path2": path2}))
    response.set_status(200, "ok")


# ---------------------------------------------------------------------------
# /api/submit/item


@dataclass(frozen=True)
class MultipartField:
    """One part of a ``multipart/form-data`` body."""

    name: str | None
    file_name: str | None
    content_type: str | None
    data: bytes


def _parse_part_headers(raw: bytes) -> dict[str, str]:
    headers: dict[str, str] = {}
    text = raw.decode("utf-8", errors="replace")
    for line in text.split("\r\n"):
        if not line:
            continue
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"malformed part header: {line!r}")
        headers[name.strip().lower()] = value.strip()
    return headers


def _field_from(headers: dict[str, str], data: bytes) -> MultipartField:
    name = file_name = None
    disposition = headers.get("content-disposition")
    if disposition is not None:
        holder = _HeaderMessage()
        holder["Content-Disposition"] = disposition
        raw_name = holder.get_param("name", header="content-disposition")
        if raw_name is not None:
            name = collapse_rfc2231_value(raw_name)
        file_name = holder.get_filename()
    return MultipartField(
        name=name,
        file_name=file_name,
        content_type=headers.get("content-type"),
        data=data,
    )


def parse_multipart(body: bytes, boundary: str) -> Iterator[MultipartField]:
    """Yield the parts of a multipart body in order.

    Raises ValueError when the part being read is malformed or the body ends
    before the closing boundary.
    """
    delimiter = b"--" + boundary.encode("utf-8")
    start = body.find(delimiter)
    if start < 0:
        raise ValueError("multipart body has no boundary")
    pos = start + len(delimiter)

    while True:
        if body.startswith(b"--", pos):
            return
        if not body.startswith(b"\r\n", pos):
            raise ValueError("malformed boundary line")
        pos += 2

        if body.startswith(b"\r\n", pos):
            raw_headers, content_start = b"", pos + 2
        else:
            header_end = body.find(b"\r\n\r\n", pos)
            if header_end < 0:
                raise ValueError("incomplete part headers")
            raw_headers, content_start = body[pos:header_end], header_end + 4

        headers = _parse_part_headers(raw_headers)
        end = body.find(b"\r\n" + delimiter, content_start)
        if end < 0:
            raise ValueError("incomplete multipart stream")
        yield _field_from(headers, body[content_start:end])
        pos = end + 2 + len(delimiter)


def _multipart_boundary(content_type: str | None) -> tuple[str, bool]:
    if content_type is None:
        return "", False
    is_multipart = content_type.startswith(ContentType.MULTIPART_FORM_DATA)
    pieces = content_type.split("=")
    boundary = pieces[1].strip('" ') if len(pieces) > 1 else ""
    return boundary, is_multipart


def submit_item(request: Request, response: Response) -> None:
    """Accept a multipart submission of items and their image files.

    The ``data`` part holds the items as JSON; every other part is a file.
    Each item's image must be among the uploaded files, which are then
    written to the upload directory.
    """
    response.add_header(_JSON_HEADER)
    callback = MessageOk()

    if request.method != Method.POST:
        response.set_status(405, "not allowed")
        return

    boundary, is_multipart = _multipart_boundary(request.header("Content-Type"))
    if not is_multipart or not boundary:
        response.set_status(400, "Bad Request").set_body(
            '{"error":"Missing or invalid Content-Type"}'
        )
        return

    items = []
    files: list[tuple[str, bytes]] = []
    fields = parse_multipart(request.body, boundary)
    while True:
        try:
            field = next(fields, None)
        except ValueError as exc:
            _log_error(f'field processing error "{exc}"')
            response.set_status(400, "Bad Request").set_body(
                '{{"error":"Field processing error"}}'
            )
            return
        if field is None:
            break

        if (field.name or "") == "data":
            try:
                items = ItemSubmissionData.from_json(field.data).items
            except ValueError:
                response.set_status(400, "Bad Request").set_body(
                    '{{"error":"Parse json error"}}'
                )
                return
        else:
            filename = sanitize_file_name(field.file_name) if field.file_name else ""
            if not filename:
                response.set_status(400, "Bad Request").set_body(
                    '{"error":"Invalid filename"}'
                )
                return
            files.append((filename, field.data))

    if not items:
        response.set_status(400, "Bad Request").set_body('{"error":"Missing data field"}')
        return

    uploaded = {name for name, _ in files}
    for item in items:
        expected = sanitize_file_name(item.item_image)
        if not expected:
            response.set_status(400, "Bad Request").set_body(
                '{"error":"Invalid image name"}'
            )
            return
        if expected not in uploaded:
            response.set_status(400, "Bad Request").set_body('{{"error":"Missing file"}}')
            return

    for filename, data in files:
        try:
            (UPLOAD_DIR / filename).write_bytes(data)
        except OSError as exc:
            _log_error(f'failed to save file "{exc}"')
            response.set_status(500, "Internal Server Error").set_body(
                '{{"error":"File save failed"}}'
            )
            return

    # The success flag is never raised, so even a completed submission
    # answers 400 with the untouched callback.
    response.set_status(400, "bad request").set_body(callback.to_json())