"""The application state machine.

``update(model, message) -> (model, commands)`` is pure: it performs no I/O
and returns a new snapshot plus the commands the dispatcher should run.
Messages are processed strictly one at a time by the runtime loop.

Fetch failures (weather, tides, alerts) never move the app to the error
state: the affected field stays ``None`` and its loading flag clears. The
display is entered as soon as every flag of the active batch is false.
"""

from __future__ import annotations

import logging
from typing import Callable

from mariner.app import commands as cmd
from mariner.app import messages as msg
from mariner.app.startup import open_startup_target
from mariner.app.state import ENTITY_RESET, MAX_STATUS_LINES, AppModel, LoadingFlags
from mariner.contracts.enums import AppState
from mariner.contracts.geo import Location, StationCandidate, ZoneCandidate
from mariner.contracts.port import SavedPort

logger = logging.getLogger(__name__)

Result = tuple[AppModel, list[cmd.Command]]

# States where printable keys are text input, so "q" does not quit.
TEXT_INPUT_STATES = frozenset({AppState.SEARCH, AppState.SAVE_PROMPT})

# Entity fetches only apply while the dashboard for that entity is up.
_FETCH_STATES = frozenset({AppState.LOADING, AppState.DISPLAY, AppState.SAVE_PROMPT})


def update(model: AppModel, message: msg.Message) -> Result:
    if isinstance(message, msg.SessionMessage) and message.session != model.session:
        logger.debug(
            "Dropping %s from session %d (current %d)",
            type(message).__name__, message.session, model.session,
        )
        return model, []

    handler = _HANDLERS.get(type(message))
    if handler is None:
        logger.warning("Unhandled message %r", message)
        return model, []
    return handler(model, message)


# ---------------------------------------------------------------------------
# Transitions shared by several handlers
# ---------------------------------------------------------------------------


def _enter_display_if_settled(model: AppModel) -> AppModel:
    """The only place Loading advances to Display."""
    if model.state is AppState.LOADING and model.selected_zone is not None and not model.loading.pending:
        return model.model_copy(update={"state": AppState.DISPLAY})
    return model


def _fail(model: AppModel, text: str) -> Result:
    return model.model_copy(update={"state": AppState.ERROR, "error": text}), []


def _new_session(model: AppModel, **changes) -> AppModel:
    """Discard every transient entity and open a new session."""
    return model.model_copy(
        update={**ENTITY_RESET, "session": model.session + 1, "notice": "", **changes}
    )


def _select_zone(model: AppModel, zone: ZoneCandidate) -> Result:
    """Clear stale data, raise the flags of the new batch and dispatch it."""
    station = model.selected_station
    fetches: list[cmd.Command] = [
        cmd.FetchWeather(session=model.session, zone_code=zone.code),
        cmd.FetchAlerts(session=model.session, zone_code=zone.code),
    ]
    if station is not None:
        fetches.append(cmd.FetchTides(session=model.session, station_id=station.id))

    model = model.model_copy(
        update={
            "state": AppState.LOADING,
            "selected_zone": zone,
            "weather": None,
            "forecast": None,
            "tides": None,
            "alerts": None,
            "tides_requested": station is not None,
            "loading": LoadingFlags(weather=True, alerts=True, tides=station is not None),
        }
    )
    return model, [cmd.Batch(commands=tuple(fetches))]


def _open_port(model: AppModel, port: SavedPort) -> Result:
    station = None
    if port.station_id:
        station = StationCandidate(
            id=port.station_id, latitude=port.latitude, longitude=port.longitude
        )
    model = _new_session(
        model,
        query=_port_query(port),
        location=Location(latitude=port.latitude, longitude=port.longitude, display_name=port.name),
        selected_station=station,
        stations=(station,) if station else (),
    )
    return _select_zone(model, ZoneCandidate(code=port.zone_code))


def _port_query(port: SavedPort) -> str:
    if port.zipcode:
        return port.zipcode
    if port.city and port.state:
        return f"{port.city}, {port.state}"
    return port.city


def _load_saved_ports(model: AppModel) -> Result:
    return model.model_copy(update={"state": AppState.SAVED_LIST, "notice": ""}), [cmd.LoadSavedPorts()]


def _to_search(model: AppModel, notice: str = "") -> Result:
    return _new_session(model, state=AppState.SEARCH, search_input="", notice=notice), []


def _quit(model: AppModel) -> Result:
    return model.model_copy(update={"quitting": True}), [cmd.Quit()]


def _move(cursor: int, key: str, size: int) -> int:
    if size == 0:
        return 0
    if key in ("up", "k"):
        return max(0, cursor - 1)
    if key in ("down", "j"):
        return min(size - 1, cursor + 1)
    return cursor


def _edit(text: str, key: str) -> str | None:
    """Apply a key to a text field; ``None`` if the key is not an edit."""
    if key == "backspace":
        return text[:-1]
    if len(key) == 1 and key.isprintable():
        return text + key
    return None


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


def _on_key(model: AppModel, message: msg.KeyPressed) -> Result:
    key = message.key
    if key == "ctrl+c" or (key == "q" and model.state not in TEXT_INPUT_STATES):
        return _quit(model)
    handler = _KEY_HANDLERS.get(model.state)
    if handler is None:
        return model, []
    return handler(model, key)


def _key_search(model: AppModel, key: str) -> Result:
    if key == "enter":
        query = model.search_input.strip()
        if not query:
            return model, []
        model = _new_session(model, state=AppState.LOADING, query=query)
        return model, [cmd.Geocode(session=model.session, query=query)]
    if key == "tab":
        return _load_saved_ports(model)
    text = _edit(model.search_input, key)
    if text is None:
        return model, []
    return model.model_copy(update={"search_input": text}), []


def _key_zone_list(model: AppModel, key: str) -> Result:
    if key == "enter":
        zone = model.highlighted_zone
        if zone is None:
            return model, []
        return _select_zone(model, zone)
    if key == "esc":
        return _to_search(model)
    cursor = _move(model.zone_cursor, key, len(model.zones))
    return model.model_copy(update={"zone_cursor": cursor}), []


def _key_display(model: AppModel, key: str) -> Result:
    if key == "s":
        return _to_search(model)
    if key == "p":
        return _load_saved_ports(model)
    if key == "a" and model.location is not None:
        return model.model_copy(
            update={"state": AppState.SAVE_PROMPT, "port_name_input": "", "notice": ""}
        ), []
    return model, []


def _key_save_prompt(model: AppModel, key: str) -> Result:
    if key == "esc":
        return model.model_copy(update={"state": AppState.DISPLAY, "port_name_input": ""}), []
    if key == "enter":
        name = model.port_name_input.strip()
        if not name or model.location is None or model.selected_zone is None:
            return model, []
        command = cmd.SavePort(
            name=name,
            query=model.query,
            location=model.location,
            zone=model.selected_zone,
            station=model.selected_station,
        )
        return model.model_copy(
            update={"state": AppState.DISPLAY, "port_name_input": "", "notice": f"Saving {name}..."}
        ), [command]
    text = _edit(model.port_name_input, key)
    if text is None:
        return model, []
    return model.model_copy(update={"port_name_input": text}), []


def _key_saved_list(model: AppModel, key: str) -> Result:
    if key == "enter":
        port = model.highlighted_port
        if port is None:
            return model, []
        return _open_port(model, port)
    if key == "d":
        if model.highlighted_port is None:
            return model, []
        return model.model_copy(update={"state": AppState.CONFIRM_DELETE}), []
    if key in ("n", "/", "esc"):
        return _to_search(model)
    cursor = _move(model.saved_cursor, key, len(model.saved_ports))
    return model.model_copy(update={"saved_cursor": cursor}), []


def _key_confirm_delete(model: AppModel, key: str) -> Result:
    if key == "y":
        port = model.highlighted_port
        model = model.model_copy(update={"state": AppState.SAVED_LIST})
        if port is None:
            return model, []
        return model, [cmd.DeletePort(name=port.name)]
    if key in ("n", "esc"):
        return model.model_copy(update={"state": AppState.SAVED_LIST}), []
    return model, []


def _key_error(model: AppModel, key: str) -> Result:
    return _to_search(model)


_KEY_HANDLERS: dict[AppState, Callable[[AppModel, str], Result]] = {
    AppState.SEARCH: _key_search,
    AppState.ZONE_LIST: _key_zone_list,
    AppState.DISPLAY: _key_display,
    AppState.SAVE_PROMPT: _key_save_prompt,
    AppState.SAVED_LIST: _key_saved_list,
    AppState.CONFIRM_DELETE: _key_confirm_delete,
    AppState.ERROR: _key_error,
}


# ---------------------------------------------------------------------------
# Process / provisioning
# ---------------------------------------------------------------------------


def _on_resize(model: AppModel, message: msg.WindowResized) -> Result:
    return model.model_copy(update={"width": message.width, "height": message.height}), []


def _on_fatal(model: AppModel, message: msg.FatalError) -> Result:
    return _fail(model, str(message.error))


def _on_provision_status(model: AppModel, message: msg.ProvisionStatus) -> Result:
    if model.state is not AppState.PROVISIONING:
        return model, []
    lines = (*model.provisioning_status, message.text)[-MAX_STATUS_LINES:]
    return model.model_copy(update={"provisioning_status": lines}), [cmd.WaitProvisionStatus()]


def _on_provision_finished(model: AppModel, message: msg.ProvisionFinished) -> Result:
    if message.error is not None:
        return _fail(model, f"Provisioning failed: {message.error}")
    return open_startup_target(model)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _on_geocode(model: AppModel, message: msg.GeocodeCompleted) -> Result:
    if model.state is not AppState.LOADING:
        return model, []
    if message.error is not None or message.location is None:
        return _fail(model, f"Could not find {message.query!r}: {message.error}")

    location = message.location
    model = model.model_copy(update={"location": location})
    if model.direct_zone:
        first: cmd.Command = cmd.LoadZoneByCode(session=model.session, code=model.direct_zone)
    else:
        first = cmd.FindNearbyZones(session=model.session, location=location)
    stations = cmd.FindNearbyStations(session=model.session, location=location)
    return model, [cmd.Batch(commands=(first, stations))]


def _on_zones(model: AppModel, message: msg.ZonesFound) -> Result:
    if model.state is not AppState.LOADING or model.selected_zone is not None:
        return model, []
    if message.error is not None:
        return _fail(model, f"Zone lookup failed: {message.error}")
    if not message.zones:
        return _fail(model, f"No marine zones found near {model.query!r}")
    return model.model_copy(
        update={"state": AppState.ZONE_LIST, "zones": message.zones, "zone_cursor": 0}
    ), []


def _on_zone_loaded(model: AppModel, message: msg.ZoneLoaded) -> Result:
    if model.state is not AppState.LOADING:
        return model, []
    if message.error is not None or message.zone is None:
        return _fail(model, f"Zone lookup failed: {message.error}")
    return _select_zone(model, message.zone)


def _on_stations(model: AppModel, message: msg.StationsFound) -> Result:
    if message.error is not None:
        if message.remote:
            logger.info("Remote station search failed: %s", message.error)
            return model, []
        return _fail(model, f"Station lookup failed: {message.error}")

    if not message.stations:
        if message.remote or not model.query:
            return model, []
        return model, [
            cmd.SearchStations(session=model.session, query=model.query, location=model.location)
        ]

    if model.selected_station is not None:
        return model, []
    station = message.stations[0]
    model = model.model_copy(update={"stations": message.stations, "selected_station": station})

    # Zone already chosen without a station: add the tide fetch to the batch.
    if model.selected_zone is None or model.tides_requested or model.state not in _FETCH_STATES:
        return model, []
    model = model.model_copy(
        update={
            "tides_requested": True,
            "loading": model.loading.model_copy(update={"tides": True}),
        }
    )
    return model, [cmd.FetchTides(session=model.session, station_id=station.id)]


# ---------------------------------------------------------------------------
# Fetches
# ---------------------------------------------------------------------------


def _on_weather(model: AppModel, message: msg.WeatherFetched) -> Result:
    changes: dict[str, object] = {"loading": model.loading.model_copy(update={"weather": False})}
    if message.error is None:
        changes.update(weather=message.conditions, forecast=message.forecast)
    else:
        logger.info("Weather unavailable: %s", message.error)
    return _enter_display_if_settled(model.model_copy(update=changes)), []


def _on_tides(model: AppModel, message: msg.TidesFetched) -> Result:
    changes: dict[str, object] = {"loading": model.loading.model_copy(update={"tides": False})}
    if message.error is None:
        changes["tides"] = message.tides
    else:
        logger.info("Tides unavailable: %s", message.error)
    return _enter_display_if_settled(model.model_copy(update=changes)), []


def _on_alerts(model: AppModel, message: msg.AlertsFetched) -> Result:
    changes: dict[str, object] = {"loading": model.loading.model_copy(update={"alerts": False})}
    if message.error is None:
        changes["alerts"] = message.alerts
    else:
        logger.info("Alerts unavailable: %s", message.error)
    return _enter_display_if_settled(model.model_copy(update=changes)), []


# ---------------------------------------------------------------------------
# Saved ports
# ---------------------------------------------------------------------------


def _on_saved_ports(model: AppModel, message: msg.SavedPortsLoaded) -> Result:
    if message.error is not None:
        notice = f"Could not load saved ports: {message.error}"
        if model.state is AppState.SAVED_LIST:
            return _to_search(model, notice)
        return model.model_copy(update={"notice": notice}), []

    ports = message.ports
    cursor = min(model.saved_cursor, max(len(ports) - 1, 0))
    model = model.model_copy(update={"saved_ports": ports, "saved_cursor": cursor})
    if not ports and model.state is AppState.SAVED_LIST:
        return _to_search(model, "No saved ports yet")
    return model, []


def _on_port_loaded(model: AppModel, message: msg.PortLoaded) -> Result:
    if message.error is not None or message.port is None:
        return _fail(model, f"Could not open port: {message.error}")
    return _open_port(model, message.port)


def _on_port_saved(model: AppModel, message: msg.PortSaved) -> Result:
    if message.error is not None:
        return model.model_copy(update={"notice": f"Could not save {message.name}: {message.error}"}), []
    return model.model_copy(update={"notice": f"Saved port {message.name}"}), []


def _on_port_deleted(model: AppModel, message: msg.PortDeleted) -> Result:
    if message.error is not None:
        return model.model_copy(update={"notice": f"Could not delete {message.name}: {message.error}"}), []
    return model.model_copy(update={"notice": f"Deleted {message.name}"}), [cmd.LoadSavedPorts()]


_HANDLERS: dict[type, Callable[[AppModel, msg.Message], Result]] = {
    msg.KeyPressed: _on_key,
    msg.WindowResized: _on_resize,
    msg.FatalError: _on_fatal,
    msg.ProvisionStatus: _on_provision_status,
    msg.ProvisionFinished: _on_provision_finished,
    msg.GeocodeCompleted: _on_geocode,
    msg.ZonesFound: _on_zones,
    msg.ZoneLoaded: _on_zone_loaded,
    msg.StationsFound: _on_stations,
    msg.WeatherFetched: _on_weather,
    msg.TidesFetched: _on_tides,
    msg.AlertsFetched: _on_alerts,
    msg.SavedPortsLoaded: _on_saved_ports,
    msg.PortLoaded: _on_port_loaded,
    msg.PortSaved: _on_port_saved,
    msg.PortDeleted: _on_port_deleted,
}
