"""Client for the spreadsheet-backed (Google Apps Script) endpoint.

Both calls are best-effort: no retries. Failures raise one of the
``RemoteError`` subclasses and are converted to user-facing outcomes by the
caller (see ``survey.service``).
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import requests

from survey.errors import MalformedResponseError, ServerReportedError, TransportError
from survey.models import Entry, form_fields


logger = logging.getLogger(__name__)


class RemoteSync:
    def __init__(
        self,
        endpoint_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self._session = session
        self._clock = clock

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def fetch_all(self) -> List[Any]:
        """Return the remote entry collection.

        Raises:
            TransportError: network failure, timeout or non-2xx status.
            ServerReportedError: body reports ``status == "error"``.
            MalformedResponseError: body is not JSON or lacks an array ``data``.
        """
        params = {"action": "getData", "t": int(self._clock() * 1000)}
        logger.info("Fetching entries from %s", self.endpoint_url)
        try:
            resp = self.session.get(
                self.endpoint_url,
                params=params,
                headers={"Accept": "application/json", "Cache-Control": "no-cache"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"fetch failed: {exc}") from exc

        body = self._checked_body(resp)
        status = body.get("status")
        data = body.get("data")
        if status == "success" and isinstance(data, list):
            logger.info("Fetched %d entries", len(data))
            return data
        if status == "error":
            raise ServerReportedError(str(body.get("message") or ""))
        raise MalformedResponseError(f"unexpected payload shape (status={status!r})")

    def submit(self, entry: Union[Entry, Mapping[str, Any]]) -> None:
        """Post one entry as form fields. Raises the same errors as ``fetch_all``."""
        record = entry.to_record() if isinstance(entry, Entry) else entry
        try:
            resp = self.session.post(self.endpoint_url, data=form_fields(record), timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"submit failed: {exc}") from exc

        body = self._checked_body(resp)
        status = body.get("status")
        if status == "success":
            logger.info("Entry %s stored remotely", record.get("id"))
            return
        if status == "error":
            raise ServerReportedError(str(body.get("message") or ""))
        raise MalformedResponseError(f"unexpected payload shape (status={status!r})")

    @staticmethod
    def _checked_body(resp: requests.Response) -> Dict[str, Any]:
        if not resp.ok:
            logger.error("Remote responded %s: %s", resp.status_code, (resp.text or "")[:500])
            raise TransportError(f"HTTP {resp.status_code}", status_code=resp.status_code)
        text = resp.text or ""
        try:
            body = json.loads(text)
        except ValueError as exc:
            logger.error("Response is not JSON (first 500 chars): %s", text[:500])
            raise MalformedResponseError("response body is not valid JSON") from exc
        if not isinstance(body, dict):
            raise MalformedResponseError("response body is not a JSON object")
        return body
