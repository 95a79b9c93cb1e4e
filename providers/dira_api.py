# providers/dira_api.py
# Fetch subscriber counts for one lottery from the Dira BeHanacha API.
# The response is validated at the boundary; anything unexpected becomes a
# RemoteDataError that names the project/lottery so callers can retry/report.

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

DIRA_API_URL = "https://www.dira.moch.gov.il/api/Invoker"
DEFAULT_TIMEOUT = 10.0

HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "en-US,en;q=0.9,he;q=0.8",
}


class RemoteDataError(Exception):
    """Raised when subscriber counts for a lottery cannot be fetched or read."""

    def __init__(self, message: str, *, project: str, lottery: str):
        super().__init__(f"{message} (project={project}, lottery={lottery})")
        self.reason = message
        self.project = project
        self.lottery = lottery


# ---------- Response schema ----------
# {"ProjectItems": [{"LotteryStageSummery": {"TotalLocalSubscribers": 438,
#                                            "TotalSubscribers": 3526}}, ...]}

class SubscriberCounts(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    total_subscribers: int = Field(alias="TotalSubscribers")
    total_local_subscribers: int = Field(alias="TotalLocalSubscribers")


class ProjectItem(BaseModel):
    # "Summery" is the API's spelling.
    stage_summary: SubscriberCounts = Field(alias="LotteryStageSummery")


class ProjectsResponse(BaseModel):
    project_items: List[ProjectItem] = Field(alias="ProjectItems")


def build_params(project: str, lottery: str) -> dict:
    """
    The Invoker endpoint takes the real query as one URL-encoded 'param' value:
      ?firstApplicantIdentityNumber=&...&ProjectNumber=X&LotteryNumber=Y&
    """
    inner = urlencode([
        ("firstApplicantIdentityNumber", ""),
        ("secondApplicantIdentityNumber", ""),
        ("PageNumber", 1),
        ("PageSize", 12),
        ("ProjectNumber", project),
        ("LotteryNumber", lottery),
    ])
    return {"method": "Projects", "param": f"?{inner}&"}


def parse_subscribers(payload, *, project: str, lottery: str) -> SubscriberCounts:
    """Validate a decoded JSON body and return the first item's counts."""
    try:
        parsed = ProjectsResponse.model_validate(payload)
    except ValidationError as ex:
        raise RemoteDataError(
            f"Unexpected response shape: {ex.error_count()} validation error(s)",
            project=project, lottery=lottery) from ex

    if not parsed.project_items:
        raise RemoteDataError("No ProjectItems in response",
                              project=project, lottery=lottery)
    return parsed.project_items[0].stage_summary


async def fetch_subscribers(
    project: str,
    lottery: str,
    *,
    client: Optional[httpx.AsyncClient] = None,
    url: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> SubscriberCounts:
    """
    GET the project listing for (project, lottery) and return its
    TotalSubscribers / TotalLocalSubscribers. No retries here.
    Pass a shared AsyncClient when fetching many lotteries.
    """
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as own_client:
            return await fetch_subscribers(
                project, lottery, client=own_client, url=url)

    try:
        resp = await client.get(url or DIRA_API_URL,
                                params=build_params(project, lottery),
                                headers=HEADERS)
        resp.raise_for_status()
        payload = resp.json()
    except httpx.HTTPError as ex:
        logger.warning("dira.fetch failed project=%s lottery=%s err=%s",
                       project, lottery, ex)
        raise RemoteDataError(f"Request failed: {ex}",
                              project=project, lottery=lottery) from ex
    except ValueError as ex:
        logger.warning("dira.fetch bad json project=%s lottery=%s err=%s",
                       project, lottery, ex)
        raise RemoteDataError("Response is not valid JSON",
                              project=project, lottery=lottery) from ex

    return parse_subscribers(payload, project=project, lottery=lottery)
