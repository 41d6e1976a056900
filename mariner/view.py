"""Plain-text rendering of an :class:`AppModel` snapshot.

Pure functions from snapshot to lines; the curses front-end only paints
them. Nothing here mutates the model.
"""

from __future__ import annotations

from datetime import datetime

from mariner.app.state import AppModel
from mariner.contracts.enums import AppState
from mariner.contracts.tide import TideData
from mariner.contracts.weather import SeaState, WindData

TITLE = "MARINER  -  NOAA marine weather, tides and alerts"

FOOTERS = {
    AppState.SEARCH: "enter: search   tab: saved ports   ctrl+c: quit",
    AppState.ZONE_LIST: "up/down: move   enter: select   esc: back   q: quit",
    AppState.LOADING: "q: quit",
    AppState.DISPLAY: "s: new search   p: saved ports   a: save port   q: quit",
    AppState.PROVISIONING: "q: quit",
    AppState.ERROR: "any key: back to search   q: quit",
    AppState.SAVED_LIST: "up/down: move   enter: open   d: delete   n: new search   q: quit",
    AppState.SAVE_PROMPT: "enter: save   esc: cancel",
    AppState.CONFIRM_DELETE: "y: delete   n: keep",
}


def render_lines(model: AppModel) -> list[str]:
    body = _BODIES[model.state](model)
    lines = [TITLE, ""]
    lines.extend(body)
    if model.notice:
        lines.extend(["", model.notice])
    lines.extend(["", FOOTERS[model.state]])
    return [line[: model.width] for line in lines]


def format_wind(wind: WindData) -> str:
    if not wind.direction:
        return "n/a"
    if wind.speed_min_kt == wind.speed_max_kt:
        text = f"{wind.direction} {wind.speed_max_kt:.0f} kt"
    else:
        text = f"{wind.direction} {wind.speed_min_kt:.0f}-{wind.speed_max_kt:.0f} kt"
    if wind.has_gust:
        text += f", gusts {wind.gust_kt:.0f} kt"
    return text


def format_seas(seas: SeaState) -> str:
    if not seas.raw_text and not seas.components:
        return "n/a"
    if seas.height_min_ft == seas.height_max_ft:
        text = f"{seas.height_max_ft:.0f} ft"
    else:
        text = f"{seas.height_min_ft:.0f}-{seas.height_max_ft:.0f} ft"
    for comp in seas.components:
        text += f"  ({comp.direction} {comp.height_ft:.0f} ft @ {comp.period_s}s)"
    return text


def _search(model: AppModel) -> list[str]:
    return [
        "Enter a zip code or \"City, ST\":",
        f"> {model.search_input}_",
    ]


def _zone_list(model: AppModel) -> list[str]:
    lines = [f"Marine zones near {model.location.display_name if model.location else model.query}:", ""]
    for i, zone in enumerate(model.zones):
        marker = ">" if i == model.zone_cursor else " "
        lines.append(f"{marker} {zone.code:<8} {zone.distance_miles:6.1f} mi  {zone.name}")
    return lines


def _loading(model: AppModel) -> list[str]:
    if model.selected_zone is None:
        return [f"Looking up {model.query}..."]
    flags = model.loading
    lines = [f"Loading {model.selected_zone.code}..."]
    for label, pending in (("weather", flags.weather), ("tides", flags.tides), ("alerts", flags.alerts)):
        if pending:
            lines.append(f"  {label}...")
    return lines


def _display(model: AppModel) -> list[str]:
    zone = model.selected_zone
    lines = []
    place = model.location.display_name if model.location else model.query
    lines.append(f"{zone.code if zone else ''}  {zone.name if zone else ''}  ({place})")
    lines.append("")

    if model.weather is None:
        lines.append("Conditions: unavailable")
    else:
        lines.append(f"Wind:  {format_wind(model.weather.wind)}")
        lines.append(f"Seas:  {format_seas(model.weather.seas)}")
        if model.weather.summary:
            lines.append(model.weather.summary)

    if model.forecast is not None and model.forecast.periods:
        lines.extend(["", "Forecast:"])
        for period in model.forecast.periods:
            lines.append(f"  {period.name:<12} {format_wind(period.wind):<24} {format_seas(period.seas)}")

    lines.extend(["", *_tide_lines(model.tides, model.loading.tides)])

    lines.append("")
    if model.alerts is None:
        lines.append("Alerts: unavailable")
    elif not model.alerts.alerts:
        lines.append("Alerts: none")
    else:
        lines.append("Alerts:")
        for alert in model.alerts.alerts:
            lines.append(f"  ! {alert.event} ({alert.severity.value})  {alert.headline}")
    return lines


def _tide_lines(tides: TideData | None, pending: bool) -> list[str]:
    if pending:
        return ["Tides: loading..."]
    if tides is None:
        return ["Tides: unavailable"]
    lines = [f"Tides ({tides.station_name or tides.station_id}):"]
    today = datetime.now().date()
    for event in tides.events:
        day = "today" if event.time.date() == today else event.time.strftime("%a")
        lines.append(f"  {day:<5} {event.time:%H:%M}  {event.type.name:<4} {event.height_ft:5.1f} ft")
    return lines


def _provisioning(model: AppModel) -> list[str]:
    return ["Building the local index (first run only)...", "", *model.provisioning_status]


def _error(model: AppModel) -> list[str]:
    return ["Error:", model.error or ""]


def _saved_list(model: AppModel) -> list[str]:
    lines = ["Saved ports:", ""]
    for i, port in enumerate(model.saved_ports):
        marker = ">" if i == model.saved_cursor else " "
        lines.append(f"{marker} {port.name:<20} {port.zone_code:<8} {port.station_id}")
    return lines


def _save_prompt(model: AppModel) -> list[str]:
    return ["Save this location as:", f"> {model.port_name_input}_"]


def _confirm_delete(model: AppModel) -> list[str]:
    port = model.highlighted_port
    return [f"Delete saved port {port.name if port else ''}? (y/n)"]


_BODIES = {
    AppState.SEARCH: _search,
    AppState.ZONE_LIST: _zone_list,
    AppState.LOADING: _loading,
    AppState.DISPLAY: _display,
    AppState.PROVISIONING: _provisioning,
    AppState.ERROR: _error,
    AppState.SAVED_LIST: _saved_list,
    AppState.SAVE_PROMPT: _save_prompt,
    AppState.CONFIRM_DELETE: _confirm_delete,
}
