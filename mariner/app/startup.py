"""Initial state from the command line.

Policy, in order: build the local index if it is missing; then open the
saved port named by ``--port``; else geocode ``--location`` and load the
zone given by ``--station`` directly; else search ``--location`` alone;
else show the saved ports (which falls through to search when empty).
"""

from __future__ import annotations

import logging

from mariner.app.commands import Command, Geocode, LoadPort, LoadSavedPorts, StartProvisioning
from mariner.app.state import ENTITY_RESET, AppModel, StartupOptions
from mariner.contracts.enums import AppState
from mariner.errors import InputError, ProvisioningError
from mariner.etl.provisioning import ProvisioningPipeline

logger = logging.getLogger(__name__)


def parse_options(
    port: str | None = None,
    station: str | None = None,
    location: str | None = None,
) -> StartupOptions:
    """Validate the flag combination. ``--station`` needs ``--location``."""
    port = (port or "").strip() or None
    station = (station or "").strip().upper() or None
    location = (location or "").strip() or None
    if station and not location:
        raise InputError("--station requires --location")
    return StartupOptions(port=port, station=station, location=location)


def initial_model(
    options: StartupOptions, needs_provisioning: bool
) -> tuple[AppModel, list[Command]]:
    model = AppModel(startup=options)
    if needs_provisioning:
        return model.model_copy(update={"state": AppState.PROVISIONING}), [StartProvisioning()]
    return open_startup_target(model)


def open_startup_target(model: AppModel) -> tuple[AppModel, list[Command]]:
    """Leave provisioning (or start) on whatever the command line asked for."""
    opts = model.startup
    session = model.session + 1

    if opts.port:
        return (
            model.model_copy(update={**ENTITY_RESET, "state": AppState.LOADING, "session": session}),
            [LoadPort(session=session, name=opts.port)],
        )

    if opts.location:
        return (
            model.model_copy(
                update={
                    **ENTITY_RESET,
                    "state": AppState.LOADING,
                    "session": session,
                    "query": opts.location,
                    "search_input": opts.location,
                    "direct_zone": opts.station,
                }
            ),
            [Geocode(session=session, query=opts.location)],
        )

    return model.model_copy(update={"state": AppState.SAVED_LIST}), [LoadSavedPorts()]


def startup(
    options: StartupOptions, pipeline: ProvisioningPipeline
) -> tuple[AppModel, list[Command]]:
    """Probe the local index, then pick the first screen.

    A database that cannot even be probed starts the app in the error view.
    """
    try:
        needs_provisioning = pipeline.needs_provisioning()
    except ProvisioningError as exc:
        logger.error("Local index unusable: %s", exc)
        model = AppModel(startup=options, state=AppState.ERROR, error=f"Provisioning failed: {exc}")
        return model, []
    return initial_model(options, needs_provisioning)
