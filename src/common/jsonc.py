"""Reader/writer for the manifest and lockfile text format.

Reads are lenient (JSON with comments and trailing commas) everywhere;
writes are always strict, two-space indented JSON.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Union

from errors import ManifestParseError

logger = logging.getLogger(__name__)

# Strings are matched first so comment markers inside them are preserved.
_TOKEN_RE = re.compile(
    r'"(?:\\.|[^"\\])*"'
    r"|//[^\n]*"
    r"|/\*.*?\*/",
    re.DOTALL,
)
_TRAILING_COMMA_RE = re.compile(r'"(?:\\.|[^"\\])*"|,(\s*[}\]])', re.DOTALL)


def _strip_jsonc_comments(content: str) -> str:
    """Strip comments and trailing commas from JSONC content.

    Removes:
    - Single-line comments (// ...)
    - Multi-line comments (/* ... */)
    - Trailing commas before closing brackets/braces

    String literals are left untouched, so URLs such as ``https://...``
    survive.
    """
    def _drop_comment(match: re.Match) -> str:
        token = match.group(0)
        return token if token.startswith('"') else ""

    def _drop_comma(match: re.Match) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return match.group(0)

    content = _TOKEN_RE.sub(_drop_comment, content)
    return _TRAILING_COMMA_RE.sub(_drop_comma, content)


def loads_lenient(text: str, *, source: str = "<string>") -> Any:
    """Parse JSON that may contain comments or trailing commas.

    Raises:
        ManifestParseError: If the text is not valid even after cleanup.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    try:
        return json.loads(_strip_jsonc_comments(text))
    except json.JSONDecodeError as exc:
        raise ManifestParseError(f"cannot parse {source}: {exc}") from exc


def read_json_file(path: Union[str, Path], *, missing_ok: bool = False) -> Dict[str, Any]:
    """Read and leniently parse a JSON object from ``path``.

    Args:
        path: File to read.
        missing_ok: Return an empty dict instead of raising when the file
            does not exist.

    Raises:
        ManifestParseError: On read errors, parse errors or a non-object
            top-level value.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        if missing_ok:
            logger.debug("%s not found; treating as empty", path)
            return {}
        raise ManifestParseError(f"{path} does not exist") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(f"cannot read {path}: {exc}") from exc

    data = loads_lenient(text, source=str(path))
    if not isinstance(data, dict):
        raise ManifestParseError(f"{path} must contain a JSON object")
    return data


def write_json_file(path: Union[str, Path], data: Dict[str, Any]) -> None:
    """Write ``data`` as indented JSON with a trailing newline.

    OSError propagates to the caller, which wraps it in its own error type.
    """
    Path(path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
