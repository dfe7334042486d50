"""
Embroidery file codecs and the format registry.

Each codec module exposes ``read(stream, **options) -> EmbPattern`` and
``write(pattern, stream, settings=None)``.  The registry below resolves
a format from a name or file extension, opens paths, and routes writes
through an atomic rename so a failed encode never leaves a partial file.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional, Union

from embroidery.codecs import jef, pec, u01
from embroidery.codecs.primitives import (
    MAX_STITCHES,
    CodecError,
    EncodingError,
    ParseError,
    UnsupportedFormatError,
)
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.transcoder.settings import EncoderSettings
from src.utils.fs import atomic_write_bytes
from src.utils.logging_config import log_context

logger = logging.getLogger(__name__)

Source = Union[str, Path, BinaryIO]


@dataclass(frozen=True)
class FormatSpec:
    """Registry entry: codec entry points for one format."""

    name: str
    description: str
    reader: Callable[..., EmbPattern]
    writer: Callable[..., None]


FORMATS: dict[str, FormatSpec] = {
    "pec": FormatSpec("pec", "Brother PEC", pec.read, pec.write),
    "jef": FormatSpec("jef", "Janome JEF", jef.read, jef.write),
    "u01": FormatSpec("u01", "Barudan U01", u01.read, u01.write),
}


def supported_formats() -> list[str]:
    return sorted(FORMATS)


def get_format(fmt: Optional[str], source: Any = None) -> FormatSpec:
    """Resolve a format by name, falling back to the extension of ``source``.

    Raises
    ------
    UnsupportedFormatError
        If no format can be determined or none is registered for it.
    """
    if fmt is None and isinstance(source, (str, Path)):
        fmt = Path(source).suffix
    if not fmt:
        raise UnsupportedFormatError(
            "Cannot determine format: pass fmt= or use a path with an extension"
        )
    key = fmt.strip().lower().lstrip(".")
    try:
        return FORMATS[key]
    except KeyError:
        raise UnsupportedFormatError(
            f"Unsupported format '{fmt}'; supported: {', '.join(supported_formats())}"
        ) from None


def read(
    source: Source,
    fmt: Optional[str] = None,
    settings: Optional[dict[str, Any]] = None,
) -> EmbPattern:
    """Read a pattern from a path or binary stream.

    Parameters
    ----------
    source : str | Path | BinaryIO
        File path, or a seekable binary stream.
    fmt : str, optional
        Format name; defaults to the path's extension.
    settings : dict, optional
        Reader options passed through as keyword arguments
        (``max_stitches``, and for JEF the trim options).

    Raises
    ------
    UnsupportedFormatError
        Unknown format.
    ParseError
        Malformed, truncated or oversized input.
    """
    spec = get_format(fmt, source)
    options = dict(settings or {})
    with log_context(fmt=spec.name, op="read"):
        if isinstance(source, (str, Path)):
            with open(source, "rb") as f:
                pattern = spec.reader(f, **options)
        else:
            pattern = spec.reader(source, **options)
        logger.info(
            "Read %s: %d stitches, %d threads",
            spec.description,
            pattern.count_stitches(),
            pattern.count_threads(),
        )
    return pattern


def write(
    pattern: EmbPattern,
    destination: Source,
    fmt: Optional[str] = None,
    settings: Optional[EncoderSettings] = None,
) -> None:
    """Write ``pattern`` to a path (atomically) or a binary stream.

    Parameters
    ----------
    pattern : EmbPattern
        Pattern to encode; it is not modified.
    destination : str | Path | BinaryIO
        File path or writable binary stream.
    fmt : str, optional
        Format name; defaults to the path's extension.
    settings : EncoderSettings, optional
        Override for the format's configured writer profile.

    Raises
    ------
    UnsupportedFormatError
        Unknown format.
    EncodingError
        The pattern cannot be represented in the format.
    """
    spec = get_format(fmt, destination)
    with log_context(fmt=spec.name, op="write"):
        if isinstance(destination, (str, Path)):
            buf = io.BytesIO()
            spec.writer(pattern, buf, settings)
            atomic_write_bytes(destination, buf.getvalue())
            logger.info("Wrote %s to %s (%d bytes)", spec.description, destination, buf.tell())
        else:
            spec.writer(pattern, destination, settings)


__all__ = [
    "FORMATS",
    "MAX_STITCHES",
    "CodecError",
    "EncodingError",
    "FormatSpec",
    "ParseError",
    "UnsupportedFormatError",
    "get_format",
    "read",
    "supported_formats",
    "write",
]
