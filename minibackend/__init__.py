"""A small JSON HTTP backend with a path router, TOML configuration and multipart uploads."""

__version__ = "0.0.1"