"""Build multipart/form-data parts from file references and form fields."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import IO, Any, Mapping, Sequence, Union

from .exceptions import FileResolutionError
from .request_options import MULTIPART, QUERY

FileSource = Union[str, "os.PathLike[str]", bytes, IO[bytes]]


@dataclass(frozen=True)
class SingleFile:
    source: FileSource


@dataclass(frozen=True)
class FileList:
    sources: Sequence[FileSource]


FileField = Union[SingleFile, FileList]


@dataclass(frozen=True)
class MultipartPart:
    name: str
    contents: Any
    filename: str | None = None
    owned: bool = field(default=False, compare=False, repr=False)

    @property
    def is_file(self) -> bool:
        return self.filename is not None


def coerce_file_field(value: Any) -> FileField:
    if isinstance(value, (SingleFile, FileList)):
        return value
    if isinstance(value, (list, tuple)):
        return FileList(tuple(value))
    return SingleFile(value)


def _open_source(source: FileSource, opened: list[IO[bytes]]) -> tuple[Any, str, bool]:
    if isinstance(source, bytes):
        return source, "upload", False
    if hasattr(source, "read"):
        name = getattr(source, "name", None)
        filename = os.path.basename(name) if isinstance(name, str) else "upload"
        return source, filename, False
    try:
        stream = open(source, "rb")
    except (OSError, TypeError) as exc:
        raise FileResolutionError(f"Unable to open file for upload: {source!r}", path=source, cause=exc) from exc
    opened.append(stream)
    return stream, os.path.basename(os.fspath(source)), True


def build_parts(
    files: Mapping[str, Any] | None = None,
    form: Mapping[str, Any] | None = None,
) -> list[MultipartPart]:
    """Files first in mapping order, then inline form fields.

    A ``FileList`` field yields one ``name[]`` part per element. If any file
    cannot be opened, every stream opened by this call is closed before
    :class:`FileResolutionError` propagates.
    """
    parts: list[MultipartPart] = []
    opened: list[IO[bytes]] = []
    try:
        for name, value in (files or {}).items():
            ref = coerce_file_field(value)
            if isinstance(ref, FileList):
                for source in ref.sources:
                    contents, filename, owned = _open_source(source, opened)
                    parts.append(MultipartPart(f"{name}[]", contents, filename, owned))
            else:
                contents, filename, owned = _open_source(ref.source, opened)
                parts.append(MultipartPart(name, contents, filename, owned))
    except FileResolutionError:
        for stream in opened:
            stream.close()
        raise

    for name, contents in (form or {}).items():
        parts.append(MultipartPart(name, "" if contents is None else str(contents)))
    return parts


def build_upload_options(
    queries: Mapping[str, Any] | None = None,
    files: Mapping[str, Any] | None = None,
    form: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    return {QUERY: dict(queries or {}), MULTIPART: build_parts(files, form)}


def to_httpx_files(parts: Sequence[MultipartPart]) -> list[tuple[str, tuple[str | None, Any]]]:
    # Form fields go in as (None, value) so httpx keeps them in part order.
    return [(part.name, (part.filename, part.contents)) for part in parts]


def close_parts(parts: Sequence[MultipartPart]) -> None:
    """Close the streams that `build_parts` opened itself."""
    for part in parts:
        if part.owned:
            part.contents.close()
