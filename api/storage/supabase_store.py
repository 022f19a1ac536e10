from __future__ import annotations

import os
from typing import Any, Dict, Optional

import requests


SUPABASE_URL = os.environ.get("SUPABASE_URL", "").rstrip("/")
SUPABASE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY", "")
SUPABASE_TIMEOUT_SECS = float(os.environ.get("SUPABASE_TIMEOUT_SECS", "5"))


def supabase_enabled() -> bool:
    return bool(SUPABASE_URL and SUPABASE_KEY)


def supabase_headers(prefer: Optional[str] = None) -> Dict[str, str]:
    headers = {
        "apikey": SUPABASE_KEY,
        "Authorization": f"Bearer {SUPABASE_KEY}",
        "Content-Type": "application/json",
    }
    if prefer:
        headers["Prefer"] = prefer
    return headers


def supabase_table_url(table_name: str) -> str:
    return f"{SUPABASE_URL}/rest/v1/{table_name}"


def supabase_rpc_url(fn_name: str) -> str:
    return f"{SUPABASE_URL}/rest/v1/rpc/{fn_name}"


def supabase_get(url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
    return requests.get(
        url,
        params=params,
        headers=headers or supabase_headers(),
        timeout=SUPABASE_TIMEOUT_SECS,
    )


def supabase_post(
    url: str,
    json: Any = None,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
):
    return requests.post(
        url,
        params=params,
        headers=headers or supabase_headers(),
        json=json,
        timeout=SUPABASE_TIMEOUT_SECS,
    )


def supabase_patch(
    url: str,
    json: Any = None,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
):
    return requests.patch(
        url,
        params=params,
        headers=headers or supabase_headers(),
        json=json,
        timeout=SUPABASE_TIMEOUT_SECS,
    )


def supabase_delete(url: str, params: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
    return requests.delete(
        url,
        params=params,
        headers=headers or supabase_headers(),
        timeout=SUPABASE_TIMEOUT_SECS,
    )
