#!/usr/bin/env python3
# -*- coding: utf-8 -*-

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from config import get_config

USER_AGENT = "HealthGuard-Dashboard/1.0"

def make_session(total_retries: int = 2) -> requests.Session:
    s = requests.Session()
    s.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
        "Accept-Encoding": "gzip, deflate",
        "Connection": "keep-alive",
    })
    # AQICN answers 200 with {"status": "error"} for unknown feeds, so only transport errors retry
    retries = Retry(
        total=total_retries,
        backoff_factor=0.3,
        status_forcelist=[429, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries, pool_connections=16, pool_maxsize=16)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    return s

SESSION = make_session()
HTTP_TIMEOUT = float(get_config().get("HTTP_TIMEOUT", 5.0))
