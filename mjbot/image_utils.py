"""Image helpers for mjbot.

Downloads images users send for /describe (encoded as data URLs for the MJ
proxy) and prepares result images for delivery into the chat.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from pathlib import Path
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("mjbot.image_utils")


def _normalize_mime_type(content_type: str | None) -> str | None:
    """Normalize a Content-Type header value into a MIME type string."""
    if not content_type:
        return None
    mime_type = content_type.split(";", 1)[0].strip().lower()
    return mime_type or None


def _guess_mime_type_from_url(url: str) -> str | None:
    """Best-effort MIME type guess based on URL path/extension."""
    mime_type, _ = mimetypes.guess_type(url)
    return mime_type


def filename_from_url(url: str) -> str:
    """Last path component of the URL ("image.png" if there is none)."""
    name = Path(urlparse(url).path).name
    return name or "image.png"


async def download_image(
    url: str,
    timeout_seconds: float,
    proxy: str | None = None,
) -> tuple[bytes, str] | None:
    """Download an image and return (raw_bytes, mime_type).

    Returns None on failure.
    """
    try:
        async with httpx.AsyncClient(
            follow_redirects=True, timeout=timeout_seconds, proxy=proxy or None
        ) as client:
            resp = await client.get(url)
            resp.raise_for_status()

            # Prefer the server's Content-Type; fall back to a URL-based guess.
            mime_type = (
                _normalize_mime_type(resp.headers.get("Content-Type"))
                or _guess_mime_type_from_url(url)
                or "image/png"
            )
            return resp.content, mime_type
    except (httpx.RequestError, httpx.HTTPStatusError) as e:
        logger.warning("Failed to download image: %s (%s)", url, e)
        return None


async def download_data_url(url: str, timeout_seconds: float) -> str | None:
    """Download an image and encode it as "data:<mime>;base64,<data>"."""
    downloaded = await download_image(url, timeout_seconds)
    if downloaded is None:
        return None
    data, mime_type = downloaded
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class ImageFetcher:
    """Turns a result image URL into a OneBot image `file` reference.

    Without a proxy the chat client fetches the URL itself. With a proxy the
    image is downloaded here (optionally saved to images_path) and sent as a
    base64 payload.
    """

    def __init__(
        self,
        http_proxy: str = "",
        images_path: str = "",
        timeout_seconds: float = 10.0,
    ) -> None:
        self._http_proxy = http_proxy
        self._images_path = Path(images_path) if images_path else None
        self._timeout = timeout_seconds

    async def fetch(self, url: str) -> str:
        """Return the `file` value for an image segment.

        Raises RuntimeError if a proxied download fails.
        """
        if not self._http_proxy:
            return url

        downloaded = await download_image(url, self._timeout, proxy=self._http_proxy)
        if downloaded is None:
            raise RuntimeError(f"proxy download failed: {url}")
        data, _ = downloaded

        if self._images_path is not None:
            self._images_path.mkdir(parents=True, exist_ok=True)
            target = self._images_path / filename_from_url(url)
            await asyncio.to_thread(target.write_bytes, data)
            logger.debug("Saved image to %s", target)

        return "base64://" + base64.b64encode(data).decode("ascii")
