"""Async GraphQL client for the remote problem catalog and submission feeds."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config import Settings, get_settings
from ..models import (
    AcceptedSubmission,
    CatalogBatch,
    Item,
    SolveResult,
    SubmissionPage,
    SyncProgress,
    TopicTag,
    UserStatus,
)

logger = logging.getLogger(__name__)

ACCEPTED_LABEL = "Accepted"

_REMOTE_STATUS = {"ac": "accepted", "notac": "attempted"}

USER_STATUS_QUERY = "query globalData { userStatus { isSignedIn isPremium username } }"

RECENT_ACCEPTED_QUERY = """query getACSubmissions($username: String!, $limit: Int) {
  recentAcSubmissionList(username: $username, limit: $limit) {
    id
    title
    titleSlug
    timestamp
  }
}"""

SUBMISSION_LIST_QUERY = """query submissionList(
  $offset: Int!
  $limit: Int!
  $lastKey: String
  $questionSlug: String!
) {
  questionSubmissionList(
    offset: $offset
    limit: $limit
    lastKey: $lastKey
    questionSlug: $questionSlug
  ) {
    lastKey
    hasNext
    submissions { timestamp statusDisplay }
  }
}"""

CATALOG_QUERY = """query problemsetQuestionList($categorySlug: String, $limit: Int, $skip: Int, $filters: QuestionListFilterInput) {
  problemsetQuestionList: questionList(categorySlug: $categorySlug limit: $limit skip: $skip filters: $filters) {
    total: totalNum
    questions: data {
      acRate difficulty frontendQuestionId: questionFrontendId paidOnly: isPaidOnly status title titleSlug
      topicTags { name id slug }
    }
  }
}"""


class RemoteFetchError(RuntimeError):
    """Raised when a remote call fails or returns an unexpected payload."""


def parse_item(raw: Dict[str, Any]) -> Item:
    tags = [
        TopicTag(name=tag.get("name") or "", slug=tag["slug"], id=tag.get("id"))
        for tag in raw.get("topicTags") or []
        if isinstance(tag, dict) and tag.get("slug")
    ]
    return Item(
        slug=raw["titleSlug"],
        title=raw.get("title") or "",
        difficulty=raw["difficulty"],
        ac_rate=float(raw.get("acRate") or 0.0),
        paid_only=bool(raw.get("paidOnly")),
        status=_REMOTE_STATUS.get(raw.get("status") or ""),
        topic_tags=tags,
        frontend_id=raw.get("frontendQuestionId"),
    )


class LeetCodeClient:
    """Thin wrapper over `httpx.AsyncClient` speaking the GraphQL endpoint."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client
        self._owns_client = client is None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "content-type": "application/json",
            "Referer": "https://leetcode.com",
        }
        cookies: List[str] = []
        if self.settings.session_cookie:
            cookies.append(f"LEETCODE_SESSION={self.settings.session_cookie}")
        if self.settings.csrf_token:
            cookies.append(f"csrftoken={self.settings.csrf_token}")
            headers["x-csrftoken"] = self.settings.csrf_token
        if cookies:
            headers["Cookie"] = "; ".join(cookies)
        return headers

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout_seconds)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "LeetCodeClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def query(self, operation: str, document: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"operationName": operation, "query": document, "variables": variables}
        try:
            response = await self._http().post(
                self.settings.graphql_url,
                json=payload,
                headers=self._headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteFetchError(f"GraphQL {operation} request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise RemoteFetchError(f"GraphQL {operation} returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise RemoteFetchError(f"GraphQL {operation} returned an unexpected payload")
        if body.get("errors"):
            raise RemoteFetchError(f"GraphQL {operation} returned errors: {body['errors']}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise RemoteFetchError(f"GraphQL {operation} response is missing data")
        return data

    async def fetch_user_status(self) -> UserStatus:
        data = await self.query("globalData", USER_STATUS_QUERY, {})
        raw = data.get("userStatus") or {}
        return UserStatus(
            is_signed_in=bool(raw.get("isSignedIn")),
            is_premium=bool(raw.get("isPremium")),
            username=raw.get("username") or "",
        )

    async def fetch_recent_accepted(self, username: str, limit: int = 20) -> List[AcceptedSubmission]:
        """Most recent accepted submissions, newest first. Order is not checked here."""
        data = await self.query("getACSubmissions", RECENT_ACCEPTED_QUERY, {"username": username, "limit": limit})
        entries = data.get("recentAcSubmissionList")
        if not isinstance(entries, list):
            raise RemoteFetchError("Unexpected recentAcSubmissionList response")
        submissions: List[AcceptedSubmission] = []
        for entry in entries:
            slug = entry.get("titleSlug") if isinstance(entry, dict) else None
            if not slug:
                logger.warning("Skipping recent accepted entry without a slug: %r", entry)
                continue
            submissions.append(
                AcceptedSubmission(
                    id=str(entry.get("id") or ""),
                    title=entry.get("title") or "",
                    slug=slug,
                    timestamp=str(entry.get("timestamp") or ""),
                )
            )
        return submissions

    async def fetch_submission_page(
        self,
        slug: str,
        offset: int,
        limit: int,
        last_key: Optional[str] = None,
    ) -> SubmissionPage:
        data = await self.query(
            "submissionList",
            SUBMISSION_LIST_QUERY,
            {"questionSlug": slug, "offset": offset, "limit": limit, "lastKey": last_key},
        )
        raw = data.get("questionSubmissionList")
        if raw is None:
            return SubmissionPage()
        try:
            return SubmissionPage(
                submissions=[
                    {"timestamp": str(sub["timestamp"]), "status_display": sub["statusDisplay"]}
                    for sub in raw.get("submissions") or []
                ],
                has_next=bool(raw.get("hasNext")),
                last_key=raw.get("lastKey"),
            )
        except (KeyError, TypeError, ValidationError) as exc:
            raise RemoteFetchError(f"Unexpected questionSubmissionList response for {slug}") from exc

    async def fetch_latest_accepted(
        self,
        slug: str,
        max_pages: Optional[int] = None,
        page_size: Optional[int] = None,
    ) -> SolveResult:
        """Timestamp of the most recent accepted submission within `max_pages` pages.

        Submissions come back newest first, so the first accepted one wins.
        """
        pages = max_pages or self.settings.submission_max_pages
        limit = page_size or self.settings.submission_page_size
        offset = 0
        last_key: Optional[str] = None

        for _ in range(pages):
            page = await self.fetch_submission_page(slug, offset, limit, last_key)
            if not page.submissions:
                break
            for submission in page.submissions:
                if submission.status_display == ACCEPTED_LABEL:
                    try:
                        timestamp = int(submission.timestamp)
                    except ValueError as exc:
                        raise RemoteFetchError(
                            f"Invalid submission timestamp for {slug}: {submission.timestamp!r}"
                        ) from exc
                    return SolveResult(solved=True, latest_accepted_timestamp=timestamp)
            if not page.has_next:
                break
            offset += limit
            last_key = page.last_key

        return SolveResult(solved=False, latest_accepted_timestamp=None)

    async def fetch_catalog_batch(self, skip: int, limit: int) -> CatalogBatch:
        data = await self.query(
            "problemsetQuestionList",
            CATALOG_QUERY,
            {"categorySlug": "", "skip": skip, "limit": limit, "filters": {}},
        )
        raw = data.get("problemsetQuestionList")
        if not isinstance(raw, dict) or not isinstance(raw.get("questions"), list):
            raise RemoteFetchError("Unexpected problemsetQuestionList response")
        try:
            items = [parse_item(question) for question in raw["questions"]]
            return CatalogBatch(total=int(raw.get("total") or 0), items=items)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteFetchError(f"Invalid catalog item in batch skip={skip}: {exc}") from exc

    async def fetch_catalog(
        self,
        on_progress: Optional[Callable[[SyncProgress], Any]] = None,
        *,
        batch_size: Optional[int] = None,
        throttle_ms: Optional[int] = None,
    ) -> CatalogBatch:
        """Fetch the whole catalog in batches until the reported total is reached."""
        size = batch_size or self.settings.catalog_batch_size
        delay = (self.settings.catalog_throttle_ms if throttle_ms is None else throttle_ms) / 1000
        items: List[Item] = []
        offset = 0
        total: Optional[int] = None

        while total is None or len(items) < total:
            batch = await self.fetch_catalog_batch(offset, size)
            if total is None:
                total = batch.total
            items.extend(batch.items)
            offset += size
            logger.debug("Fetched catalog items %d/%d", len(items), total)
            if on_progress is not None:
                outcome = on_progress(SyncProgress(fetched=len(items), total=total, phase="catalog"))
                if asyncio.iscoroutine(outcome):
                    await outcome
            if not batch.items:
                break
            if len(items) < total and delay > 0:
                await asyncio.sleep(delay)

        return CatalogBatch(total=total if total is not None else len(items), items=items)


__all__ = [
    "ACCEPTED_LABEL",
    "LeetCodeClient",
    "RemoteFetchError",
    "parse_item",
]
