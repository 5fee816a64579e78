"""LinkPreviewService: best-effort title/description/image for a project URL.

Architecture:
- Every hop's host must resolve to public (globally routable) addresses
- httpx GET with a short timeout; redirects followed by hand, re-checked per hop
- Only the first ``link_preview_max_bytes`` of the body are parsed
- <title>, description, og:* and twitter:* meta tags via html.parser
- Successful previews cached in Redis (optional) keyed by URL hash
- All failures are non-fatal: a placeholder payload is returned instead
"""

import asyncio
import hashlib
import ipaddress
import json
import socket
from collections.abc import Awaitable, Callable
from html.parser import HTMLParser
from urllib.parse import urljoin, urlsplit

import httpx
import structlog

from sidepilot.core.config import get_settings
from sidepilot.core.exceptions import ValidationError
from sidepilot.db.redis import get_optional_redis
from sidepilot.schemas.link_preview import LinkPreviewResponse

logger = structlog.get_logger(__name__)

Resolver = Callable[[str], Awaitable[list[str]]]

CACHE_KEY_PREFIX = "link_preview:"
USER_AGENT = "SidePilotLinkPreview/1.0 (+https://sidepilot.dev)"

_TITLE_KEYS = ("og:title", "twitter:title")
_DESCRIPTION_KEYS = ("og:description", "twitter:description", "description")
_IMAGE_KEYS = ("og:image", "og:image:url", "twitter:image", "twitter:image:src")


class _MetadataParser(HTMLParser):
    """Collects <title> text and <meta name|property=... content=...> pairs."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.meta: dict[str, str] = {}
        self.title_parts: list[str] = []
        self._in_title = False

    def handle_starttag(self, tag, attrs):
        if tag == "title":
            self._in_title = True
        elif tag == "meta":
            values = dict(attrs)
            key = values.get("property") or values.get("name")
            content = values.get("content")
            if key and content:
                # First occurrence wins
                self.meta.setdefault(key.strip().lower(), content.strip())

    def handle_endtag(self, tag):
        if tag == "title":
            self._in_title = False

    def handle_data(self, data):
        if self._in_title:
            self.title_parts.append(data)

    @property
    def title(self) -> str:
        return " ".join("".join(self.title_parts).split())


def parse_metadata(html: str, base_url: str) -> dict[str, str | None]:
    """Extract title, description and absolute image URL from an HTML document."""
    parser = _MetadataParser()
    parser.feed(html)
    parser.close()

    def first(keys: tuple[str, ...]) -> str | None:
        for key in keys:
            if parser.meta.get(key):
                return parser.meta[key]
        return None

    image = first(_IMAGE_KEYS)
    return {
        "title": first(_TITLE_KEYS) or parser.title or None,
        "description": first(_DESCRIPTION_KEYS),
        "image": urljoin(base_url, image) if image else None,
    }


def validate_preview_url(url: str) -> str:
    """Only absolute http(s) URLs are fetched."""
    parts = urlsplit(url.strip())
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError(
            "Validation error",
            errors=[{"path": "url", "message": "Must be an absolute http(s) URL"}],
        )
    return url.strip()


def placeholder_preview(url: str) -> LinkPreviewResponse:
    host = urlsplit(url).hostname or url
    return LinkPreviewResponse(url=url, title=host, placeholder=True)


class BlockedTargetError(Exception):
    """Preview target is not a public http(s) address."""


async def resolve_host(host: str) -> list[str]:
    """All addresses ``host`` resolves to (A and AAAA)."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


async def ensure_public_target(url: str, resolver: Resolver = resolve_host) -> None:
    """Raise BlockedTargetError unless every address behind ``url`` is global.

    Covers loopback, private ranges, link-local (cloud metadata) and
    other reserved blocks, for IP literals and resolved hostnames alike.
    """
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise BlockedTargetError(f"unsupported target: {url}")

    host = parts.hostname
    try:
        addresses = [ipaddress.ip_address(host)]
    except ValueError:
        addresses = [ipaddress.ip_address(addr) for addr in await resolver(host)]

    if not addresses:
        raise BlockedTargetError(f"{host} did not resolve")
    for address in addresses:
        if not address.is_global:
            raise BlockedTargetError(f"{host} resolves to non-public address {address}")


class LinkPreviewService:
    """Fetches page metadata for project cards.

    Public API:
        preview(url) -> LinkPreviewResponse

    Never raises for network/parse/cache failures; only malformed input is
    rejected with ValidationError.
    """

    def __init__(
        self,
        redis: object | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        resolver: Resolver = resolve_host,
    ) -> None:
        self._redis = redis
        self._transport = transport
        self._resolver = resolver

    async def preview(self, url: str) -> LinkPreviewResponse:
        url = validate_preview_url(url)

        cached = await self._cache_get(url)
        if cached is not None:
            return cached

        try:
            preview = await self._fetch(url)
        except BlockedTargetError as exc:
            logger.warning("link_preview_blocked", url=url, reason=str(exc))
            return placeholder_preview(url)
        except Exception as exc:
            logger.warning(
                "link_preview_failed",
                url=url,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return placeholder_preview(url)

        await self._cache_set(url, preview)
        return preview

    async def _fetch(self, url: str) -> LinkPreviewResponse:
        settings = get_settings()
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=settings.link_preview_timeout_seconds,
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml"},
        ) as client:
            target = url
            for _ in range(settings.link_preview_max_redirects + 1):
                await ensure_public_target(target, self._resolver)
                async with client.stream("GET", target) as response:
                    if response.is_redirect:
                        target = str(response.url.join(response.headers["location"]))
                        continue
                    response.raise_for_status()
                    body = bytearray()
                    async for chunk in response.aiter_bytes():
                        body.extend(chunk)
                        if len(body) >= settings.link_preview_max_bytes:
                            break
                    encoding = response.encoding or "utf-8"
                    final_url = str(response.url)
                    break
            else:
                raise httpx.TooManyRedirects(f"More than {settings.link_preview_max_redirects} redirects")

        html = bytes(body[: settings.link_preview_max_bytes]).decode(encoding, errors="replace")
        metadata = parse_metadata(html, final_url)
        image = metadata["image"]

        return LinkPreviewResponse(
            url=url,
            title=metadata["title"] or (urlsplit(final_url).hostname or url),
            description=metadata["description"] or "",
            image=image,
            screenshot=image,
            placeholder=False,
        )

    @staticmethod
    def _cache_key(url: str) -> str:
        return CACHE_KEY_PREFIX + hashlib.sha256(url.encode("utf-8")).hexdigest()

    async def _cache_get(self, url: str) -> LinkPreviewResponse | None:
        if self._redis is None:
            return None
        try:
            raw = await self._redis.get(self._cache_key(url))
            if raw is None:
                return None
            return LinkPreviewResponse.model_validate(json.loads(raw))
        except Exception as exc:
            logger.warning("link_preview_cache_read_failed", url=url, error=str(exc))
            return None

    async def _cache_set(self, url: str, preview: LinkPreviewResponse) -> None:
        if self._redis is None:
            return
        settings = get_settings()
        try:
            await self._redis.set(
                self._cache_key(url),
                preview.model_dump_json(),
                ex=settings.link_preview_cache_ttl_seconds,
            )
        except Exception as exc:
            logger.warning("link_preview_cache_write_failed", url=url, error=str(exc))


def get_link_preview_service() -> LinkPreviewService:
    """FastAPI dependency wiring the shared Redis client when configured."""
    return LinkPreviewService(redis=get_optional_redis())
