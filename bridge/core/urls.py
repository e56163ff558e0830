from __future__ import annotations

from urllib.parse import quote, urlparse, urlunparse

RUN_CALLBACK_PATH = "/v2/runs/{job_run_id}"


def build_response_url(base_url: str | None, job_run_id: str) -> str:
    """Return the callback URL an adapter should POST async results to.

    An empty base means the adapter is synchronous-only and gets no callback.
    The run path is appended to whatever path the base already carries.
    """
    raw = (base_url or "").strip()
    if not raw:
        return ""

    parsed = urlparse(raw)
    path = parsed.path + RUN_CALLBACK_PATH.format(job_run_id=quote(job_run_id, safe="/"))
    return urlunparse((parsed.scheme, parsed.netloc, path, parsed.params, parsed.query, parsed.fragment))
