"""
Page fetching for the Stacker Alert system.

A failed fetch is fatal: there is no retry and no partial result.
"""

import logging
from datetime import datetime
from typing import Optional

import requests

from ..utils.error_handling import FetchError

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetches the listing page over HTTP."""

    def __init__(
        self,
        url: str,
        timeout: int = 30,
        user_agent: str = "Stacker-Alert/0.1 (listing watcher)",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize page fetcher.

        Args:
            url: Page URL to poll
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
            session: Optional preconfigured requests session
        """
        self.url = url
        self.timeout = timeout

        self.last_fetch_time: Optional[datetime] = None
        self.last_status_code: Optional[int] = None

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    def fetch(self) -> str:
        """
        Fetch the page body.

        Returns:
            Page content as text

        Raises:
            FetchError: On transport failure or a non-200 status
        """
        logger.debug(f"Fetching listing page: {self.url}")

        try:
            response = self.session.get(self.url, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Error fetching {self.url}: {e}") from e

        self.last_status_code = response.status_code
        if response.status_code != 200:
            raise FetchError(
                f"Error: status code {response.status_code} for {self.url}",
                status_code=response.status_code,
            )

        self.last_fetch_time = datetime.now()
        return response.text

    def close(self) -> None:
        self.session.close()
