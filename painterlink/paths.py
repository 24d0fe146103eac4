"""URL and filesystem path normalization shared by the link."""

from __future__ import annotations

import posixpath
from urllib.parse import quote, unquote, urlparse


def normalize_path(path: str) -> str:
    """Return *path* with forward slashes and no trailing separator."""
    normalized = path.replace("\\", "/")
    if len(normalized) > 1 and normalized.endswith("/"):
        normalized = normalized.rstrip("/") or "/"
    return normalized


def url_to_local_path(url: str) -> str:
    """Convert a ``file://`` URL (or a plain path) to a normalized local path."""
    if not url:
        return ""
    parsed = urlparse(url)
    if parsed.scheme != "file":
        return normalize_path(url)
    path = unquote(parsed.path)
    # file:///C:/dir -> /C:/dir
    if len(path) > 2 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    if parsed.netloc and parsed.netloc != "localhost":
        path = f"//{parsed.netloc}{path}"
    return normalize_path(path)


def local_path_to_url(path: str) -> str:
    """Convert a local path to a ``file://`` URL."""
    normalized = normalize_path(path)
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    return "file://" + quote(normalized, safe="/:")


def same_location(first: str, second: str) -> bool:
    """True when two URLs or paths point to the same local file."""
    if not first or not second:
        return False
    return url_to_local_path(first) == url_to_local_path(second)


def join_workspace(workspace_path: str, relative_path: str) -> str:
    """Compose ``workspace/relative`` with forward slashes."""
    return normalize_path(workspace_path) + "/" + normalize_path(relative_path).lstrip("/")


def relative_to_workspace(path: str, workspace_path: str) -> str:
    """Express an absolute map path relative to the workspace root."""
    return posixpath.relpath(normalize_path(path), normalize_path(workspace_path))
