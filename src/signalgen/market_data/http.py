"""Blocking JSON GET over urllib, run off the event loop by the async clients."""

import asyncio
import json
import urllib.parse
import urllib.request
from typing import Any

from signalgen.exceptions import ProviderError

USER_AGENT = "CryptoSignalEngine/0.1"


def build_url(base: str, path: str = "", params: dict[str, Any] | None = None) -> str:
    url = f"{base.rstrip('/')}/{path.lstrip('/')}" if path else base
    if params:
        query = urllib.parse.urlencode({k: v for k, v in params.items() if v is not None})
        url += ("&" if "?" in url else "?") + query
    return url


def get_json(url: str, *, provider: str, timeout: float = 10.0) -> Any:
    """GET ``url`` and decode the JSON body.

    Raises:
        ProviderError: On any transport, HTTP status, or decoding failure.
    """
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    req = urllib.request.Request(url, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return json.loads(resp.read())
    except (OSError, ValueError) as e:
        # HTTPError/URLError/timeouts are OSError; bad JSON is ValueError
        raise ProviderError(provider, str(e)) from e


async def get_json_async(url: str, *, provider: str, timeout: float = 10.0) -> Any:
    return await asyncio.to_thread(get_json, url, provider=provider, timeout=timeout)
