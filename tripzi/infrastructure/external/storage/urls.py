"""Recover object paths from the media URLs stored in Firestore documents.

The mobile app stores Firebase download URLs on messages, e.g.::

    https://firebasestorage.googleapis.com/v0/b/<bucket>/o/chats%2F<chatId>%2Fimages%2Fa.jpg?alt=media&token=...

Also understood: ``https://storage.googleapis.com/<bucket>/<path>``,
``https://<bucket>.storage.googleapis.com/<path>`` and ``gs://<bucket>/<path>``.
"""

from urllib.parse import unquote, urlparse

_FIREBASE_HOST = "firebasestorage.googleapis.com"
_GCS_HOST = "storage.googleapis.com"


def _split_bucket_and_path(url: str) -> tuple[str, str] | None:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if parsed.scheme == "gs":
        path = parsed.path.lstrip("/")
        return (parsed.netloc, unquote(path)) if parsed.netloc and path else None
    if parsed.scheme not in ("http", "https"):
        return None
    if host == _FIREBASE_HOST:
        # /v0/b/<bucket>/o/<percent-encoded path>
        parts = parsed.path.split("/", 5)
        if len(parts) == 6 and parts[1] == "v0" and parts[2] == "b" and parts[4] == "o":
            return parts[3], unquote(parts[5])
        return None
    if host == _GCS_HOST:
        bucket, _, path = parsed.path.lstrip("/").partition("/")
        return (bucket, unquote(path)) if bucket and path else None
    if host.endswith("." + _GCS_HOST):
        bucket = host[: -len(_GCS_HOST) - 1]
        path = parsed.path.lstrip("/")
        return (bucket, unquote(path)) if path else None
    return None


def storage_path_from_url(url: str, bucket: str | None = None) -> str | None:
    """Return the object path encoded in a Firebase/GCS URL.

    Args:
        url: Download URL, public URL or gs:// URI.
        bucket: When given, URLs pointing at another bucket return None.

    Returns:
        Object path (e.g. ``chats/c1/images/a.jpg``) or None if the URL is not
        a recognized storage URL.
    """
    if not url:
        return None
    found = _split_bucket_and_path(url.strip())
    if found is None:
        return None
    url_bucket, path = found
    if bucket is not None and url_bucket != bucket:
        return None
    if not path or path.startswith("/") or ".." in path.split("/"):
        return None
    return path
