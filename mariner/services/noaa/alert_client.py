"""api.weather.gov active alerts client."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx

from mariner.contracts.alert import Alert, AlertData
from mariner.contracts.enums import AlertSeverity

BASE_URL = "https://api.weather.gov"


class AlertClient:
    """Async HTTP client for active alerts by marine zone."""

    def __init__(self, http_client: httpx.AsyncClient | None = None, user_agent: str = "mariner"):
        self._client = http_client or httpx.AsyncClient(
            timeout=30.0,
            headers={"User-Agent": user_agent, "Accept": "application/geo+json"},
        )

    async def get_active_alerts(self, zone_code: str) -> AlertData:
        resp = await self._client.get(
            f"{BASE_URL}/alerts/active", params={"zone": zone_code.upper()}
        )
        resp.raise_for_status()
        return parse_alerts(resp.json())


def parse_alerts(data: dict) -> AlertData:
    alerts = []
    for feature in data.get("features", []):
        props = feature.get("properties", {})
        alerts.append(
            Alert(
                id=props.get("id") or feature.get("id", ""),
                event=props.get("event", ""),
                headline=props.get("headline") or "",
                description=props.get("description") or "",
                severity=_parse_severity(props.get("severity")),
                urgency=props.get("urgency") or "",
                certainty=props.get("certainty") or "",
                onset=_parse_time(props.get("onset") or props.get("effective")),
                expires=_parse_time(props.get("ends") or props.get("expires")),
                areas=tuple(a.strip() for a in (props.get("areaDesc") or "").split(";") if a.strip()),
                instruction=props.get("instruction") or "",
            )
        )
    return AlertData(alerts=tuple(alerts), updated_at=datetime.now(tz=timezone.utc))


def _parse_severity(raw: str | None) -> AlertSeverity:
    try:
        return AlertSeverity(raw)
    except ValueError:
        return AlertSeverity.UNKNOWN


def _parse_time(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
