from __future__ import annotations

from typing import Dict

IPOS = "/services/webapps/calendar/ipos"

DEFAULT_BASE_URL = "https://www.benzinga.com"
DEFAULT_PAGE_SIZE = 500
DEFAULT_IMPORTANCE = 0


def ipo_params(date_from: str, date_to: str, page_size: int, importance: int) -> Dict[str, str]:
    return {
        "tpagesize": str(page_size),
        "parameters[date_from]": date_from,
        "parameters[date_to]": date_to,
        "parameters[importance]": str(importance),
    }
