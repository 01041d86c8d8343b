# minibackend

minibackend is a small HTTP backend that serves JSON endpoints. It uses only
the Python standard library. It provides:

- a router that matches exact paths and paths with `{name}` placeholder segments,
- a TOML configuration that is loaded once per process and then reused,
- start-up plugins that create the public and upload directories,
- an endpoint that accepts `multipart/form-data` item submissions.

## Installation

```sh
pip install .
```

To run the test suite, install the test extra and run pytest:

```sh
pip install ".[test]"
pytest
```

## Running the server

```sh
minibackend --config config.toml
```

If `--config` is not given, the server reads `../../config.toml`, relative to
the working directory.

Start-up runs these steps in order:

1. Load the configuration.
2. Run `CorePlugin.initialize`, which creates the configured directories.
3. Listen on the first entry of `config.listeners`.

If the configuration cannot be read or parsed, or a plugin fails, or the
listener entry is invalid, the command prints an `ERROR:` line and exits with
status 1. The server runs until it is interrupted.

### Configuration

```toml
[config]
status = 1
release_date = "2025-01-01"
dir_public_path = "public"
dir_public_upload_path = "public/upload"

[[config.listeners]]
address = "127.0.0.1"
port = 8080

[extra]
dir_public_upload_extra_paths = ["images", "documents"]
```

Start-up fails in any of these cases:

- The `[config]` table is missing.
- The `[extra]` table is missing.
- `dir_public_path` is missing or is not a string.
- `dir_public_upload_path` is missing or is not a string.
- `dir_public_upload_extra_paths` is missing.
- `dir_public_upload_extra_paths` is an array and one of its entries is not a string.

The extra paths are created inside the upload directory. `listeners` must be a
non-empty array. Its first table must hold a string `address` and an integer
`port`.

The configuration is cached the first time it is loaded. Later calls to
`load_config`, including the one made by `/api/check/status/config`, return
that cached configuration.

## Endpoints

| Path | Methods | Response |
| --- | --- | --- |
| `/api/test/hello` | GET | `{"message":"hello"}` |
| `/api/check/status/config` | GET | `{"status":...,"version":"0.0.1","release_date":...}` |
| `/api/param?message=...` | any | `{"message":"<METHOD>, <message>"}`. The message is `default` when the parameter is absent |
| `/api/path/{path1}/{path2}` | any | `{"path1":...,"path2":...}` |
| `/api/submit/item` | POST | see below |

Notes on the endpoints:

- **Method not allowed.** An endpoint that limits its methods answers any other method with status 405.
- **No route.** A path that no route matches gets status 404.
- **Handler error.** If a handler raises an exception, the server answers with status 500.
  - For example, this happens when the configuration has no integer `status` or no string `release_date`.
- **Status value.** `/api/check/status/config` takes `status` from the configuration as a signed 8-bit value, so a value outside -128 to 127 wraps around.
- **Path checks.** On `/api/path/...`:
  - `path1` must be alphanumeric, or the endpoint answers 400 with `{"error":"path1 must be alphanumeric"}`.
  - `path2` must be at least three bytes long, or the endpoint answers 400 with `{"error":"path2 too short"}`.

### Submitting items

```sh
curl -X POST \
  -F 'data={"items":[{"item_name":"Test","item_image":"test.png","quantity":42}]}' \
  -F "test.png=@./test.png" \
  http://localhost:8080/api/submit/item
```

The request body has two kinds of part:

- The `data` part holds the items as JSON.
- Every other part is a file.

File names are sanitized: only ASCII letters, digits, `.`, `-` and `_` are kept.

The endpoint answers 400 with a JSON error when any of these is true:

- The Content-Type is not `multipart/form-data` or has no boundary.
- The body is malformed.
- The JSON in `data` is invalid.
- A file part has no usable file name.
- No items were given.
- An item's `item_image` does not match an uploaded file.

Otherwise every uploaded file is written to `../../public/upload`, relative to
the working directory.

**What it does not do.** The endpoint never reports success. After the files
have been written, it still answers 400 with `{"ok":false,"message":"n/a"}`.
Files with the same name as an existing file overwrite it. The configured
upload directory is not used for these writes.

## Limits

The server answers only the API routes above. It does not serve the files in
the public directory. It has no TLS. It has no storage beyond writing uploaded
files.

## Using the pieces from Python

```python
from minibackend.utility import sanitize_file_name, load_config
from minibackend.routing import Request, Response, parse_path_pattern
from minibackend.server import build_router

sanitize_file_name("../../etc/pass wd.png")   # "....etcpasswd.png"

pattern, names = parse_path_pattern("/api/path/{path1}/{path2}")
names                                         # ["path1", "path2"]

router = build_router()
response = Response()
router.handle_request(Request(method="GET", path="/api/test/hello"), response)
response.status, response.body                # (200, b'{"message":"hello"}')
```

Other modules:

- `minibackend.httpconst` provides `ContentType`, `Method` and `status_response(code)`. `status_response` returns the reason phrase of a known status code and raises `ValueError` for an unknown one.
- `minibackend.models` holds the JSON body types.
- `minibackend.controllers.parse_multipart(body, boundary)` yields the parts of a multipart body.