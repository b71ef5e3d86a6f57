"""Async HTTP client for a remote activity history service."""

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any, Optional

import httpx

from src.competitions.schemas import DailyActivitySample, Unit
from src.workouts.exceptions import (
    ActivityProviderException,
    ProviderNotFound,
    ProviderRateLimited,
    ProviderUnauthorized,
)

logger = logging.getLogger(__name__)


class HttpActivityProvider:
    """Activity provider backed by a remote daily-totals API.

    The remote service owns caching and pagination; this client only
    requests one user's totals for a date range.
    """

    def __init__(
        self,
        base_url: str,
        unit: Unit,
        access_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize activity provider client.

        Parameters
        ----------
        base_url : str
            Root URL of the activity service
        unit : Unit
            Unit the totals should be returned in
        access_token : str, optional
            Bearer token sent with every request
        timeout : float
            Per-request timeout in seconds
        transport : httpx.AsyncBaseTransport, optional
            Custom transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.unit = unit
        self.access_token = access_token
        self.timeout = timeout
        self.transport = transport

    async def _request(
        self, method: str, endpoint: str, params: Optional[dict[str, Any]] = None
    ) -> Any:
        """Make a request to the activity service.

        Raises
        ------
        ProviderNotFound
            When the user is unknown (404)
        ProviderUnauthorized
            When credentials are rejected (401, 403)
        ProviderRateLimited
            When rate limit exceeded (429)
        ActivityProviderException
            For other API or transport errors
        """
        url = f"{self.base_url}{endpoint}"
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        logger.debug(f"{method} {url} with params {params}")

        async with httpx.AsyncClient(transport=self.transport) as client:
            try:
                response = await client.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                raise ActivityProviderException(f"Request failed: {e}") from e

            self._handle_errors(response)
            return response.json()

    def _handle_errors(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        try:
            error_msg = response.json().get("message", response.text)
        except Exception:
            error_msg = response.text

        if response.status_code == 404:
            raise ProviderNotFound(f"Not found: {error_msg}")
        elif response.status_code in (401, 403):
            raise ProviderUnauthorized(f"Unauthorized: {error_msg}")
        elif response.status_code == 429:
            raise ProviderRateLimited(f"Rate limit exceeded: {error_msg}")
        elif 400 <= response.status_code < 500:
            raise ActivityProviderException(
                f"Client error {response.status_code}: {error_msg}"
            )
        else:
            raise ActivityProviderException(
                f"Server error {response.status_code}: {error_msg}"
            )

    async def fetch_daily_totals(
        self,
        user_id: str,
        start: date,
        end: Optional[date],
        activities: Sequence[str],
    ) -> list[DailyActivitySample]:
        """Get daily activity totals for a user.

        Parameters
        ----------
        user_id : str
            User ID
        start : date
            First local day (inclusive)
        end : date | None
            Last local day (inclusive)
        activities : Sequence[str]
            Qualifying activity kinds

        Returns
        -------
        list[DailyActivitySample]
            One sample per day returned by the service
        """
        params = {
            "start": start.isoformat(),
            "activities": ",".join(activities),
            "unit": self.unit.value,
        }
        if end is not None:
            params["end"] = end.isoformat()

        data = await self._request(
            "GET", f"/users/{user_id}/daily-totals", params=params
        )
        return [
            DailyActivitySample.model_validate({"user_id": user_id, **item})
            for item in data
        ]
