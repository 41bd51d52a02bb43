from __future__ import annotations

import os
from typing import Any, Dict, Optional

import requests
from dotenv import load_dotenv

from iposync.data.benzinga import endpoints


BASE_URL_ENV_VAR = "BENZINGA_BASE_URL"
USER_AGENT = "iposync/0.1"


class BenzingaClient:
    def __init__(
        self,
        base_url: str = endpoints.DEFAULT_BASE_URL,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            }
        )

    @classmethod
    def from_env(cls, base_url: str, timeout: float = 30) -> "BenzingaClient":
        load_dotenv(override=False)
        return cls(base_url=os.getenv(BASE_URL_ENV_VAR) or base_url, timeout=timeout)

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None) -> str:
        url = f"{self.base_url}{path}"
        response = self.session.request(
            method,
            url,
            params=params,
            timeout=self.timeout,
        )
        if not response.ok:
            raise requests.HTTPError(
                f"Benzinga error {response.status_code}: {response.text}",
                response=response,
            )
        return response.text

    def get_ipos(
        self,
        date_from: str,
        date_to: str,
        page_size: int = endpoints.DEFAULT_PAGE_SIZE,
        importance: int = endpoints.DEFAULT_IMPORTANCE,
    ) -> str:
        params = endpoints.ipo_params(date_from, date_to, page_size, importance)
        return self._request("GET", endpoints.IPOS, params=params)

    def close(self) -> None:
        self.session.close()
