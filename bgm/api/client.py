from __future__ import annotations
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, Literal, Optional

import requests
from pydantic import BaseModel, Field

from ..utils.season import season_window_start

CLIENT_NAME = "bgm-season"
CLIENT_VERSION = "0.1.0"
REPO_URL = "https://github.com/bgm-season/bgm-season"
USER_AGENT = f"{CLIENT_NAME}/{CLIENT_VERSION} ({REPO_URL})"

API_BASE = "https://api.bgm.tv"
NEXT_BASE = "https://next.bgm.tv"

# Subject type codes
TYPE_BOOK = 1
TYPE_ANIME = 2
TYPE_MUSIC = 3
TYPE_GAME = 4
TYPE_REAL = 6

Sort = Literal["match", "heat", "rank", "score"]


class Host(str, Enum):
    API = API_BASE
    NEXT = NEXT_BASE  # endpoints not yet on the stable host


class ApiError(RuntimeError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(self, status: int, status_text: str):
        self.status = status
        self.status_text = status_text
        super().__init__(f"API Error: {status} {status_text}")


class Page(BaseModel):
    limit: int = Field(20, gt=0)
    offset: int = Field(0, ge=0)

    def params(self) -> Dict[str, int]:
        return {"limit": self.limit, "offset": self.offset}


class SearchFilter(BaseModel):
    type: list[int] = Field(default_factory=lambda: [TYPE_ANIME])
    air_date: list[str] | None = None
    rank: list[str] | None = None


class SearchRequest(BaseModel):
    keyword: str = ""
    sort: Sort = "match"
    filter: SearchFilter = Field(default_factory=SearchFilter)


def build_search_body(
    keyword: str = "",
    sort: Sort = "match",
    types: Iterable[int] = (TYPE_ANIME,),
    air_date: Optional[list[str]] = None,
    rank: Optional[list[str]] = None,
) -> Dict[str, Any]:
    """
    Assemble the POST body for /v0/search/subjects.
    Unset filter keys are left out of the body entirely.
    """
    req = SearchRequest(
        keyword=keyword,
        sort=sort,
        filter=SearchFilter(type=list(types), air_date=air_date, rank=rank),
    )
    return req.model_dump(exclude_none=True)


class BangumiClient:
    def __init__(self, timeout: float = 30):
        self.timeout = timeout

    def _request(
        self,
        method: str,
        path: str,
        base: Host,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{Host(base).value}{path}"
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        if body is not None:
            headers["Content-Type"] = "application/json"
        r = requests.request(method, url, params=params, json=body, headers=headers, timeout=self.timeout)
        if not 200 <= r.status_code < 300:
            raise ApiError(r.status_code, r.reason)
        return r.json()

    def get(self, path: str, base: Host = Host.API, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", path, base, params=params)

    def post(
        self,
        path: str,
        body: Dict[str, Any],
        base: Host = Host.API,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return self._request("POST", path, base, params=params, body=body)

    # Daily broadcast schedule
    def calendar(self) -> Any:
        return self.get("/calendar")

    # Subject details
    def subject(self, subject_id: int) -> Dict[str, Any]:
        return self.get(f"/v0/subjects/{subject_id}")

    # Comments live on the next host only
    def comments(self, subject_id: int, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        page = Page(limit=limit, offset=offset)
        return self.get(f"/p1/subjects/{subject_id}/comments", base=Host.NEXT, params=page.params())

    def search_subjects(
        self,
        keyword: str,
        sort: Sort = "match",
        limit: int = 20,
        offset: int = 0,
        types: Iterable[int] = (TYPE_ANIME,),
    ) -> Dict[str, Any]:
        page = Page(limit=limit, offset=offset)
        body = build_search_body(keyword, sort=sort, types=types)
        return self._search(body, page)

    def popular_anime(self, limit: int = 24, offset: int = 0, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Most-watched anime aired since the start of the previous quarter.
        The window covers two quarters so late catalog additions still show up.
        """
        page = Page(limit=limit, offset=offset)
        body = build_search_body(sort="heat", air_date=[f">={season_window_start(today)}"])
        return self._search(body, page)

    def top_rated_anime(self, limit: int = 24, offset: int = 0) -> Dict[str, Any]:
        # rank >= 1 drops unranked entries
        page = Page(limit=limit, offset=offset)
        body = build_search_body(sort="score", rank=[">=1"])
        return self._search(body, page)

    def _search(self, body: Dict[str, Any], page: Page) -> Dict[str, Any]:
        return self.post("/v0/search/subjects", body, params=page.params())


# Simple pydantic model (subset) for normalization
class SubjectItem(BaseModel):
    id: int
    type: int | None = None
    name: str | None = None
    name_cn: str | None = None
    date: str | None = None
    platform: str | None = None
    eps: int | None = None
    score: float | None = None
    rank: int | None = None
    votes: int | None = None

    @classmethod
    def from_payload(cls, item: Dict[str, Any]) -> "SubjectItem":
        """
        Flatten a subject from any endpoint shape.

        Calendar items carry air_date and rating.total, while v0 subjects
        and search hits carry date and rating.{rank,score,total}.
        """
        rating = item.get("rating") or {}
        return cls(
            id=item["id"],
            type=item.get("type"),
            name=item.get("name"),
            name_cn=item.get("name_cn") or None,
            date=item.get("date") or item.get("air_date") or None,
            platform=item.get("platform") or None,
            eps=item.get("eps"),
            score=rating.get("score", item.get("score")),
            rank=rating.get("rank") or item.get("rank") or None,
            votes=rating.get("total"),
        )
