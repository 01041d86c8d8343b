import json

import pytest

from minibackend import controllers
from minibackend.controllers import (
    MultipartField,
    handle_path,
    hello,
    param_message,
    parse_multipart,
    status_config,
    submit_item,
)
from minibackend.routing import Request, Response
from minibackend.utility import _clear_config_cache, load_config

JSON_HEADER = "content-type: application/json"
BOUNDARY = "XbOuNdArY"


def _call(handler, method="GET", path="/", headers=None, body=b""):
    response = Response()
    handler(Request(method=method, path=path, headers=headers or [], body=body), response)
    return response


def _multipart(parts, boundary=BOUNDARY):
    out = b""
    for name, filename, data in parts:
        disposition = f'form-data; name="{name}"'
        if filename is not None:
            disposition += f'; filename="{filename}"'
        out += f"--{boundary}\r\nContent-Disposition: {disposition}\r\n\r\n".encode()
        out += data + b"\r\n"
    return out + f"--{boundary}--\r\n".encode()


def _submit(parts, content_type=f"multipart/form-data; boundary={BOUNDARY}"):
    return _call(
        submit_item,
        method="POST",
        path="/api/submit/item",
        headers=[("Content-Type", content_type)],
        body=_multipart(parts),
    )


def _data(image="test.png"):
    doc = {"items": [{"item_name": "Test", "item_image": image, "quantity": 42}]}
    return json.dumps(doc).encode()


@pytest.fixture
def config_file(tmp_path):
    _clear_config_cache()
    path = tmp_path / "config.toml"
    path.write_text('[config]\nstatus = 1\nrelease_date = "2024-01-01"\n')
    load_config(path)
    yield path
    _clear_config_cache()


# hello


def test_hello_get():
    response = _call(hello)
    assert response.status == 200
    assert json.loads(response.body) == {"message": "hello"}
    assert JSON_HEADER in response.headers


def test_hello_other_method_not_allowed():
    response = _call(hello, method="POST")
    assert (response.status, response.reason) == (405, "not allowed")
    assert response.body == b""


# status config


def test_status_config_get(config_file):
    response = _call(status_config)
    assert json.loads(response.body) == {
        "status": 1,
        "version": controllers.VERSION,
        "release_date": "2024-01-01",
    }
    assert JSON_HEADER in response.headers


def test_status_config_rejects_post(config_file):
    response = _call(status_config, method="POST")
    assert response.status == 405


def test_status_config_bad_status(tmp_path):
    _clear_config_cache()
    path = tmp_path / "config.toml"
    path.write_text('[config]\nstatus = "up"\nrelease_date = "x"\n')
    load_config(path)
    try:
        with pytest.raises(ValueError, match="status"):
            _call(status_config)
    finally:
        _clear_config_cache()


# param


def test_param_message_from_query():
    response = _call(param_message, path="/api/param?message=hi")
    assert response.status == 200
    assert json.loads(response.body) == {"message": "GET, hi"}


def test_param_message_default_without_query():
    response = _call(param_message, method="PUT", path="/api/param")
    assert json.loads(response.body) == {"message": "PUT, default"}


def test_param_message_decodes_and_last_wins():
    response = _call(param_message, path="/api/param?message=a&message=hello%20there+now")
    assert json.loads(response.body)["message"] == "GET, hello there now"


# path


def test_handle_path_ok():
    response = _call(handle_path, path="/api/path/abc123/defg?x=1")
    assert response.status == 200
    assert json.loads(response.body) == {"path1": "abc123", "path2": "defg"}


def test_handle_path_non_alphanumeric():
    response = _call(handle_path, path="/api/path/a-b/defg")
    assert response.status == 400
    assert response.body == b'{"error":"path1 must be alphanumeric"}'


def test_handle_path_short_second_segment():
    response = _call(handle_path, path="/api/path/abc/de")
    assert response.status == 400
    assert response.body == b'{"error":"path2 too short"}'


def test_handle_path_unmatched_path_is_too_short():
    response = _call(handle_path, path="/somewhere/else")
    assert response.body == b'{"error":"path2 too short"}'


# multipart


def test_parse_multipart_round_trip():
    body = _multipart([("data", None, b"{}"), ("f", "a.png", b"\x00\x01binary")])
    fields = list(parse_multipart(body, BOUNDARY))
    assert [f.name for f in fields] == ["data", "f"]
    assert fields[0].file_name is None
    assert fields[1] == MultipartField("f", "a.png", None, b"\x00\x01binary")


def test_parse_multipart_empty_form():
    assert list(parse_multipart(f"--{BOUNDARY}--\r\n".encode(), BOUNDARY)) == []


def test_parse_multipart_truncated():
    body = f"--{BOUNDARY}\r\nContent-Disposition: form-data; name=\"x\"\r\n\r\nabc".encode()
    with pytest.raises(ValueError):
        list(parse_multipart(body, BOUNDARY))


def test_parse_multipart_missing_boundary():
    with pytest.raises(ValueError):
        list(parse_multipart(b"no parts here", BOUNDARY))


# submit


def test_submit_requires_post():
    response = _call(submit_item, path="/api/submit/item")
    assert (response.status, response.reason) == (405, "not allowed")


def test_submit_requires_multipart_content_type():
    response = _call(submit_item, method="POST", headers=[("Content-Type", "text/plain")])
    assert response.status == 400
    assert response.body == b'{"error":"Missing or invalid Content-Type"}'


def test_submit_missing_data_field():
    response = _submit([("f", "test.png", b"png")])
    assert response.body == b'{"error":"Missing data field"}'


def test_submit_bad_json():
    response = _submit([("data", None, b"{not json")])
    assert response.body == b'{{"error":"Parse json error"}}'


def test_submit_invalid_filename():
    response = _submit([("data", None, _data()), ("f", "///", b"png")])
    assert response.body == b'{"error":"Invalid filename"}'


def test_submit_missing_file():
    response = _submit([("data", None, _data())])
    assert response.body == b'{{"error":"Missing file"}}'


def test_submit_field_error():
    response = _call(
        submit_item,
        method="POST",
        headers=[("content-type", f"multipart/form-data; boundary={BOUNDARY}")],
        body=b"garbage",
    )
    assert response.body == b'{{"error":"Field processing error"}}'


def test_submit_saves_files(tmp_path, monkeypatch):
    workdir = tmp_path / "a" / "b"
    workdir.mkdir(parents=True)
    upload = tmp_path / "public" / "upload"
    upload.mkdir(parents=True)
    monkeypatch.chdir(workdir)

    response = _submit([("data", None, _data()), ("f", "test.png", b"image-bytes")])

    assert (upload / "test.png").read_bytes() == b"image-bytes"
    assert response.status == 400
    assert json.loads(response.body) == {"ok": False, "message": "n/a"}


def test_submit_save_failure(tmp_path, monkeypatch):
    workdir = tmp_path / "a" / "b"
    workdir.mkdir(parents=True)
    monkeypatch.chdir(workdir)

    response = _submit([("data", None, _data()), ("f", "test.png", b"x")])
    assert response.status == 500
    assert response.body == b'{{"error":"File save failed"}}'