from __future__ import annotations

import datetime as dt


def iso_utc(dt_obj: dt.datetime) -> str:
    """RFC 3339 with a trailing Z; naive datetimes are taken as UTC."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=dt.timezone.utc)
    return dt_obj.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")


def now_iso() -> str:
    return iso_utc(dt.datetime.now(dt.timezone.utc))
