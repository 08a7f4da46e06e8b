"""Resolve and load images referenced by a document."""

from __future__ import annotations

import urllib.error
import urllib.request
from io import BytesIO
from pathlib import Path
from typing import Callable
from urllib.parse import unquote, urlparse

from PIL import Image, UnidentifiedImageError

from .errors import ResourceError
from .models import ResourceAccess

Fetcher = Callable[[str], bytes]

INLINE_FORMATS = ("PNG", "JPEG", "GIF")


def resolve_url(url: str, base_dir: Path | str) -> str:
    """Return ``url`` as an absolute URL, treating scheme-less values as paths."""
    parsed = urlparse(url)
    # Single letter "schemes" are Windows drive letters.
    if len(parsed.scheme) > 1:
        return url
    # Parsers hand over percent-encoded destinations.
    path = Path(unquote(url))
    if not path.is_absolute():
        path = Path(base_dir) / path
    return path.resolve().as_uri()


def is_local(url: str) -> bool:
    return urlparse(url).scheme == "file"


def fetch_remote(url: str, timeout_s: int = 30) -> bytes:
    req = urllib.request.Request(url, headers={"User-Agent": "mdtty"})
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            return resp.read()
    except (urllib.error.URLError, OSError, ValueError) as exc:
        raise ResourceError(f"Failed to fetch {url}: {exc}") from exc


def _read_local(url: str) -> bytes:
    path = Path(unquote(urlparse(url).path))
    try:
        return path.read_bytes()
    except OSError as exc:
        raise ResourceError(f"Failed to read {path}: {exc}") from exc


def load_resource(
    url: str,
    access: ResourceAccess,
    fetch: Fetcher | None = None,
) -> bytes:
    """Load the bytes behind an absolute ``url`` under the given access policy."""
    if is_local(url):
        return _read_local(url)
    scheme = urlparse(url).scheme
    if scheme not in ("http", "https"):
        raise ResourceError(f"Unsupported resource scheme: {scheme or '<none>'}")
    if access == ResourceAccess.LOCAL_ONLY:
        raise ResourceError(f"Remote resource not allowed: {url}")
    return (fetch or fetch_remote)(url)


def prepare_image(data: bytes) -> bytes:
    """Validate image data and convert it to a format terminals display inline."""
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ResourceError(f"Cannot decode image: {exc}") from exc

    if image.format in INLINE_FORMATS:
        return data
    if image.mode not in ("RGB", "RGBA"):
        image = image.convert("RGBA")
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
