from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Any


class TransportError(Exception):
    """The recognition service could not be reached at all."""


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


def _send_sync(req: urllib.request.Request, timeout_s: float) -> HttpResponse:
    """Blocking send; non-2xx answers are returned, not raised."""
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            return HttpResponse(resp.status, resp.read())
    except urllib.error.HTTPError as e:
        return HttpResponse(e.code, e.read())
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise TransportError(str(getattr(e, "reason", e))) from e


async def post_json(
    url: str, payload: dict, *, headers: dict[str, str] | None = None, timeout_s: float
) -> HttpResponse:
    req = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json", **(headers or {})},
        method="POST",
    )
    return await asyncio.to_thread(_send_sync, req, timeout_s)


async def post_form(
    url: str, fields: dict[str, str], *, headers: dict[str, str] | None = None, timeout_s: float
) -> HttpResponse:
    req = urllib.request.Request(
        url,
        data=urllib.parse.urlencode(fields).encode("ascii"),
        headers={"Content-Type": "application/x-www-form-urlencoded", **(headers or {})},
        method="POST",
    )
    return await asyncio.to_thread(_send_sync, req, timeout_s)
