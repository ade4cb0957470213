"""FileResourceProvider — exposes a directory tree as text resources.

URIs have the shape ``<scheme>://file/<path relative to root>``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from hostmcp.protocol.errors import InvalidParamsError, ResourceNotFoundError
from hostmcp.protocol.models import Resource, ResourceContent

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 500

MIME_TYPES: dict[str, str] = {
    ".py": "text/x-python",
    ".js": "text/javascript",
    ".ts": "text/x-typescript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".yaml": "application/yaml",
    ".yml": "application/yaml",
    ".toml": "application/toml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",
    ".html": "text/html",
    ".css": "text/css",
    ".ini": "text/plain",
    ".cfg": "text/plain",
}

_SKIPPED_DIRS = frozenset({"__pycache__", "node_modules"})


def mime_type_for(path: str | Path) -> str:
    """Return the mime type for *path*, ``text/plain`` when unknown."""
    return MIME_TYPES.get(Path(path).suffix.lower(), "text/plain")


class FileResourceProvider:
    """Lists and reads files below *root*.

    Hidden files and directories (leading ``.``) are not listed.  Listing
    stops after *limit* entries.
    """

    def __init__(self, root: str | Path, *, scheme: str = "host", limit: int = DEFAULT_LIMIT) -> None:
        self._root = Path(root).resolve()
        self._scheme = scheme
        self._limit = limit

    @property
    def root(self) -> Path:
        return self._root

    @property
    def prefix(self) -> str:
        return f"{self._scheme}://file/"

    def uri_for(self, path: Path) -> str:
        return self.prefix + path.relative_to(self._root).as_posix()

    def list_resources(self) -> list[Resource]:
        resources: list[Resource] = []
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith(".") and d not in _SKIPPED_DIRS
            )
            for filename in sorted(filenames):
                if filename.startswith("."):
                    continue
                path = Path(dirpath) / filename
                relative = path.relative_to(self._root).as_posix()
                resources.append(
                    Resource(
                        uri=self.uri_for(path),
                        name=filename,
                        description=f"File: {relative}",
                        mime_type=mime_type_for(path),
                    )
                )
                if len(resources) >= self._limit:
                    logger.debug("Resource listing truncated at %d entries", self._limit)
                    return resources
        return resources

    def read_resource(self, uri: str) -> list[ResourceContent]:
        scheme_prefix = f"{self._scheme}://"
        if not uri.startswith(scheme_prefix):
            raise InvalidParamsError(f"Invalid URI scheme. Expected {scheme_prefix}, got: {uri}")

        kind, sep, relative = uri[len(scheme_prefix) :].partition("/")
        if not sep or not relative:
            raise InvalidParamsError(f"Invalid URI format: {uri}")
        if kind != "file":
            raise InvalidParamsError(f"Unknown resource type: {kind}")

        path = (self._root / relative).resolve()
        if not path.is_relative_to(self._root):
            raise ResourceNotFoundError(uri, "outside resource root")
        if not path.is_file():
            raise ResourceNotFoundError(uri)

        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise ResourceNotFoundError(uri, str(exc)) from exc

        return [ResourceContent(uri=uri, mime_type=mime_type_for(path), text=text)]
