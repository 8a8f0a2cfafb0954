"""Poster and playback-source derivation for hosted videos.

Only hosts with a registered resolver get a derived poster. Everything else
returns ``None`` and the gallery shows :data:`PREVIEW_UNAVAILABLE` rather than
an image request that is bound to fail.
"""

from __future__ import annotations

import math
import re
from typing import Callable, Optional
from urllib.parse import urlsplit, urlunsplit

from ..models import Project


PREVIEW_UNAVAILABLE = "preview-unavailable"
DEFAULT_POSTER_SECONDS = 3

CLOUDINARY_HOST = "res.cloudinary.com"
_VIDEO_UPLOAD = "/video/upload/"
_VIDEO_EXTENSION = re.compile(r"\.(mp4|webm|mov|ogg)$", re.IGNORECASE)
_JPG_EXTENSION = re.compile(r"\.jpg$", re.IGNORECASE)
_NON_MP4_EXTENSION = re.compile(r"\.(webm|mov|ogg)$", re.IGNORECASE)
_MP4_EXTENSION = re.compile(r"\.mp4$", re.IGNORECASE)

PosterResolver = Callable[[str, int], Optional[str]]

_resolvers: list[PosterResolver] = []


def register_poster_resolver(resolver: PosterResolver) -> PosterResolver:
    """Add a resolver consulted by :func:`derive_video_poster`.

    Resolvers receive the trimmed video URL and the seek offset in seconds and
    return a poster URL, or ``None`` when they do not recognise the URL. Usable
    as a decorator.
    """

    _resolvers.append(resolver)
    return resolver


def unregister_poster_resolver(resolver: PosterResolver) -> None:
    _resolvers.remove(resolver)


def _cloudinary_parts(video_url: str):
    try:
        parts = urlsplit(video_url)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or CLOUDINARY_HOST not in (parts.hostname or ""):
        return None
    return parts


@register_poster_resolver
def cloudinary_poster(video_url: str, seconds: int) -> Optional[str]:
    """Seek ``seconds`` into a Cloudinary video and request a JPEG frame."""

    parts = _cloudinary_parts(video_url)
    if parts is None:
        return None
    path = parts.path.replace(_VIDEO_UPLOAD, f"/video/upload/so_{seconds},f_jpg,q_auto/", 1)
    if _VIDEO_EXTENSION.search(path):
        path = _VIDEO_EXTENSION.sub(".jpg", path)
    elif not _JPG_EXTENSION.search(path):
        path = f"{path}.jpg"
    return urlunsplit(parts._replace(path=path))


def derive_video_poster(video_url: str | None, seconds: float = DEFAULT_POSTER_SECONDS) -> str | None:
    if not video_url or not video_url.strip():
        return None
    seek = max(0, math.floor(seconds))
    for resolver in _resolvers:
        poster = resolver(video_url.strip(), seek)
        if poster:
            return poster
    return None


def video_poster_url(project: Project) -> str:
    """Cover to show for ``project``: explicit image, derived frame or placeholder."""

    if project.image:
        return project.image
    return derive_video_poster(project.video) or PREVIEW_UNAVAILABLE


def ios_video_source(video_url: str | None) -> str | None:
    """H.264/AAC MP4 rendition of a Cloudinary video, which every iOS build plays."""

    if not video_url or not video_url.strip():
        return None
    parts = _cloudinary_parts(video_url.strip())
    if parts is None:
        return None
    path = parts.path.replace(_VIDEO_UPLOAD, "/video/upload/f_mp4,vc_h264,ac_aac/", 1)
    if _NON_MP4_EXTENSION.search(path):
        path = _NON_MP4_EXTENSION.sub(".mp4", path)
    elif not _MP4_EXTENSION.search(path):
        path = f"{path}.mp4"
    return urlunsplit(parts._replace(path=path))
