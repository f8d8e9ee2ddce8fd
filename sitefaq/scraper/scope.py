"""URL normalisation and crawl-scope rules.

A discovered link is eligible for the frontier when it:

1. resolves to an absolute ``http``/``https`` URL against the page it was
   found on,
2. has the same hostname as the seed,
3. starts with one of ``ScopeRules.path_prefixes`` (when any are given),
4. contains none of ``ScopeRules.exclude_paths``,
5. does not point at a known non-HTML file.

Normalisation removes fragments, lowercases scheme and host and drops a
default port, so ``/page#a``, ``/page#b`` and ``HTTPS://EXAMPLE.com:443/page``
are all the same URL.
"""

from __future__ import annotations

import re
from urllib.parse import urldefrag, urljoin, urlparse

from sitefaq.scraper.models import ScopeRules

_SKIPPED_EXTENSIONS = re.compile(r"\.(pdf|jpg|jpeg|png|gif|mp4|zip|rar)$", re.IGNORECASE)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _canonical_netloc(scheme: str, netloc: str, host: str, port: int | None) -> str:
    userinfo, _, _hostport = netloc.rpartition("@")
    canonical = f"[{host}]" if ":" in host else host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        canonical = f"{canonical}:{port}"
    return f"{userinfo}@{canonical}" if userinfo else canonical


def normalize_url(url: str, base: str | None = None) -> str | None:
    """Return the canonical form of *url*, made absolute against *base*.

    The fragment is removed, scheme and host are lowercased, a default port
    (``:80`` for http, ``:443`` for https) is dropped and an empty path
    becomes ``/``.  Returns ``None`` for empty values and anything that is
    not http(s).
    """
    url = (url or "").strip()
    if not url:
        return None
    absolute = urljoin(base, url) if base else url
    absolute, _fragment = urldefrag(absolute)
    parsed = urlparse(absolute)
    scheme = parsed.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parsed.hostname:
        return None
    try:
        port = parsed.port
    except ValueError:
        return None
    return parsed._replace(
        scheme=scheme,
        netloc=_canonical_netloc(scheme, parsed.netloc, parsed.hostname, port),
        path=parsed.path or "/",
    ).geturl()


def hostname_of(url: str) -> str:
    return (urlparse(url).hostname or "").lower()


def is_skipped_file(path: str) -> bool:
    """``True`` when *path* names a file type the crawler never renders."""
    return bool(_SKIPPED_EXTENSIONS.search(path))


def path_allowed(path: str, rules: ScopeRules) -> bool:
    if rules.path_prefixes and not any(path.startswith(p) for p in rules.path_prefixes):
        return False
    if any(excluded in path for excluded in rules.exclude_paths):
        return False
    return True


def in_scope(url: str, seed_host: str, rules: ScopeRules) -> bool:
    """Return ``True`` if the normalised *url* may be queued for this crawl."""
    parsed = urlparse(url)
    if (parsed.hostname or "").lower() != seed_host:
        return False
    if is_skipped_file(parsed.path):
        return False
    return path_allowed(parsed.path or "/", rules)
