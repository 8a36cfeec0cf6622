"""
Kontent.ai Management API client used by the import stages.

This module implements the low-level interactions with the Management API
(v2): project information, binary uploads and asset records, content
items, language variants and their workflow, workflows and collections.
A simple rate limiter keeps the client under the documented limit of 400
requests per minute, and every call goes through :func:`with_retries`,
which retries transient failures according to a :class:`RetryPolicy`.

Errors are translated at this boundary: a 404 becomes
:class:`~content_migrator.utils.errors.NotFoundError`, every other failure
(including transport errors that outlived their retries) becomes
:class:`~content_migrator.utils.errors.ContentManagementError`.

Usage example::

    client = ManagementClient(project_id="...", api_key="...")
    info = client.project_information()
    try:
        item = client.view_content_item("hero_banner")
    except NotFoundError:
        item = client.add_content_item("Hero banner", "hero_banner", "banner", "default")
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import requests

from content_migrator.models import (
    Asset,
    Collection,
    ContentItem,
    LanguageVariant,
    ProjectInformation,
    UploadedFile,
    Workflow,
)
from content_migrator.utils.errors import ContentManagementError, NotFoundError

DEFAULT_BASE_URL = "https://manage.kontent.ai/v2"

RETRYABLE_STATUS = (429, 500, 502, 503, 504)

###############################################################################
# Rate limiting and retry utilities
###############################################################################

class RateLimiter:
    """
    Simple time-based rate limiter.  Ensures that no more than ``rpm``
    requests are dispatched per minute.
    """

    def __init__(self, rpm: int = 400) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / float(self.rpm)
        self._last = 0.0

    def wait(self, time_fn: Callable[[], float] = time.time, sleep_fn: Callable[[float], None] = time.sleep) -> None:
        now = time_fn()
        dt = now - self._last
        if dt < self.interval:
            sleep_fn(self.interval - dt)
        self._last = time_fn()


def is_transient_error(error: BaseException) -> bool:
    """Network failures, throttling and server-side errors are worth retrying."""
    if isinstance(error, requests.HTTPError):
        return error.response is not None and error.response.status_code in RETRYABLE_STATUS
    return isinstance(error, requests.RequestException)


@dataclass
class RetryPolicy:
    """
    How :func:`with_retries` retries a failed request.

    :param max_attempts: Maximum number of attempts, the first one included.
    :param base_delay: Base delay in seconds for exponential backoff.
    :param add_jitter: Randomize each delay between half and the full
                       backoff value.
    :param can_retry: Predicate deciding whether an error is retried.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    add_jitter: bool = True
    can_retry: Callable[[BaseException], bool] = field(default=is_transient_error)

    @classmethod
    def from_config(cls, cfg: Optional[Dict[str, Any]]) -> "RetryPolicy":
        cfg = cfg or {}
        return cls(
            max_attempts=int(cfg.get("max_attempts", 3)),
            base_delay=float(cfg.get("base_delay", 1.0)),
            add_jitter=bool(cfg.get("add_jitter", True)),
        )

    def delay_for(self, attempt: int) -> float:
        delay = self.base_delay * (2 ** attempt)
        if self.add_jitter:
            delay = random.uniform(delay / 2.0, delay)
        return delay


def kontent_headers(api_key: str) -> Dict[str, str]:
    """
    Construct the default headers required for Management API requests.

    :param api_key: Management API key of the target project.
    :return: A dictionary of headers including Authorization.
    """
    return {
        "Authorization": f"Bearer {api_key}",
    }


def with_retries(
    fn: Callable[[], requests.Response],
    policy: Optional[RetryPolicy] = None,
    *,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying the
    errors accepted by ``policy.can_retry``.  A ``Retry-After`` header,
    when present, takes precedence over the policy's backoff.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param policy: Retry policy, defaults to :class:`RetryPolicy()`.
    :return: The successful ``requests.Response``.
    :raises requests.RequestException: if all attempts fail.
    """
    policy = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.RequestException as e:
            if attempt >= policy.max_attempts - 1 or not policy.can_retry(e):
                raise
            retry_after = e.response.headers.get("Retry-After") if e.response is not None else None
            try:
                wait = float(retry_after) if retry_after else policy.delay_for(attempt)
            except ValueError:
                wait = policy.delay_for(attempt)
            sleep_fn(wait)
            attempt += 1


def to_management_error(error: requests.RequestException) -> ContentManagementError:
    response = error.response
    if response is None:
        return ContentManagementError(f"Network error communicating with the Management API: {error}")
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    payload.setdefault("message", response.text or str(error))
    if response.status_code == 404:
        return NotFoundError.from_payload(payload, status_code=404)
    return ContentManagementError.from_payload(payload, status_code=response.status_code)


###############################################################################
# Client
###############################################################################

class ManagementClient:
    """Thin wrapper around the Management API endpoints used by the import."""

    def __init__(
        self,
        project_id: str,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        retry_policy: Optional[RetryPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        timeout: float = 60.0,
    ) -> None:
        self.project_id = project_id
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: Dict[str, Any], *, retry_policy: Optional[RetryPolicy] = None, rpm: int = 400) -> "ManagementClient":
        """
        Build a client from the ``kontent`` section of the configuration.

        :param cfg: Dictionary with ``project_id``, ``api_key`` and
                    optionally ``base_url``.
        """
        return cls(
            cfg.get("project_id", ""),
            cfg.get("api_key", ""),
            base_url=cfg.get("base_url") or DEFAULT_BASE_URL,
            retry_policy=retry_policy,
            rate_limiter=RateLimiter(rpm),
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}/projects/{self.project_id}{path}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        data: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        url = self._url(path)

        def do_request() -> requests.Response:
            self.rate_limiter.wait()
            return requests.request(
                method,
                url,
                headers={**kontent_headers(self.api_key), **(headers or {})},
                json=json_body,
                data=data,
                timeout=self.timeout,
            )

        try:
            resp = with_retries(do_request, self.retry_policy)
        except requests.RequestException as e:
            raise to_management_error(e) from e
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def _variant_path(self, item_codename: str, language_codename: str) -> str:
        return f"/items/codename/{quote(item_codename)}/variants/codename/{quote(language_codename)}"

    # -- project ------------------------------------------------------------

    def project_information(self) -> ProjectInformation:
        return ProjectInformation.model_validate(self._request("GET", ""))

    def list_workflows(self) -> List[Workflow]:
        return [Workflow.model_validate(w) for w in self._request("GET", "/workflows") or []]

    def list_collections(self) -> List[Collection]:
        payload = self._request("GET", "/collections") or {}
        return [Collection.model_validate(c) for c in payload.get("collections", [])]

    # -- assets -------------------------------------------------------------

    def view_asset_by_external_id(self, external_id: str) -> Asset:
        return Asset.model_validate(self._request("GET", f"/assets/external-id/{quote(external_id, safe='')}"))

    def upload_binary_file(self, filename: str, data: bytes, content_type: Optional[str] = None) -> UploadedFile:
        payload = self._request(
            "POST",
            f"/files/{quote(filename, safe='')}",
            data=data,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "Content-Length": str(len(data)),
            },
        )
        return UploadedFile.model_validate(payload)

    def add_asset(self, file_id: str, *, external_id: Optional[str] = None, title: Optional[str] = None) -> Asset:
        body: Dict[str, Any] = {"file_reference": {"id": file_id, "type": "internal"}}
        if external_id:
            body["external_id"] = external_id
        if title:
            body["title"] = title
        return Asset.model_validate(self._request("POST", "/assets", json_body=body))

    # -- content items ------------------------------------------------------

    def view_content_item(self, codename: str) -> ContentItem:
        return ContentItem.model_validate(self._request("GET", f"/items/codename/{quote(codename)}"))

    def add_content_item(self, name: str, codename: str, type_codename: str, collection_codename: str) -> ContentItem:
        body = {
            "name": name,
            "codename": codename,
            "type": {"codename": type_codename},
            "collection": {"codename": collection_codename},
        }
        return ContentItem.model_validate(self._request("POST", "/items", json_body=body))

    def upsert_content_item(self, codename: str, name: str, collection_codename: str) -> ContentItem:
        body = {"name": name, "collection": {"codename": collection_codename}}
        return ContentItem.model_validate(self._request("PUT", f"/items/codename/{quote(codename)}", json_body=body))

    # -- language variants --------------------------------------------------

    def view_language_variant(self, item_codename: str, language_codename: str) -> LanguageVariant:
        return LanguageVariant.model_validate(self._request("GET", self._variant_path(item_codename, language_codename)))

    def upsert_language_variant(
        self, item_codename: str, language_codename: str, elements: List[Dict[str, Any]]
    ) -> LanguageVariant:
        payload = self._request(
            "PUT", self._variant_path(item_codename, language_codename), json_body={"elements": elements}
        )
        return LanguageVariant.model_validate(payload or {})

    def publish_language_variant(self, item_codename: str, language_codename: str) -> None:
        self._request("PUT", self._variant_path(item_codename, language_codename) + "/publish")

    def create_new_version(self, item_codename: str, language_codename: str) -> None:
        self._request("PUT", self._variant_path(item_codename, language_codename) + "/new-version")

    def change_workflow_of_language_variant(
        self, item_codename: str, language_codename: str, *, workflow_codename: str, step_codename: str
    ) -> None:
        body = {
            "workflow_identifier": {"codename": workflow_codename},
            "step_identifier": {"codename": step_codename},
        }
        self._request("PUT", self._variant_path(item_codename, language_codename) + "/change-workflow", json_body=body)
