"""Tests for plain-text rendering of snapshots."""

from __future__ import annotations

from mariner.app.state import AppModel, LoadingFlags
from mariner.contracts.enums import AppState
from mariner.contracts.geo import ZoneCandidate
from mariner.contracts.weather import SeaState, WaveComponent, WindData
from mariner.view import FOOTERS, format_seas, format_wind, render_lines
from tests.app.fake_clients import ALERTS, CONDITIONS, TIDES


class TestFormatting:
    def test_wind_range_with_gust(self):
        wind = WindData(direction="SW", speed_min_kt=15, speed_max_kt=20, gust_kt=25)
        assert format_wind(wind) == "SW 15-20 kt, gusts 25 kt"

    def test_wind_single_speed(self):
        assert format_wind(WindData(direction="W", speed_min_kt=10, speed_max_kt=10)) == "W 10 kt"

    def test_missing_wind(self):
        assert format_wind(WindData()) == "n/a"

    def test_seas_with_components(self):
        seas = SeaState(
            height_min_ft=4, height_max_ft=6, raw_text="Seas 4 to 6 ft",
            components=(WaveComponent(direction="S", height_ft=5, period_s=7),),
        )
        assert format_seas(seas) == "4-6 ft  (S 5 ft @ 7s)"


class TestRenderLines:
    def test_every_state_renders(self):
        for state in AppState:
            lines = render_lines(AppModel(state=state))
            assert lines[-1] == FOOTERS[state]

    def test_search_echoes_input(self):
        lines = render_lines(AppModel(search_input="0263"))
        assert "> 0263_" in lines

    def test_display_with_partial_data(self):
        model = AppModel(
            state=AppState.DISPLAY,
            selected_zone=ZoneCandidate(code="ANZ254", name="Chatham"),
            weather=CONDITIONS,
            tides=TIDES,
        )
        text = "\n".join(render_lines(model))
        assert "Wind:  SW 15-20 kt" in text
        assert "Tides (Chatham, Lydia Cove):" in text
        assert "Alerts: unavailable" in text

    def test_display_alerts_and_pending_tides(self):
        model = AppModel(
            state=AppState.DISPLAY,
            selected_zone=ZoneCandidate(code="ANZ254"),
            alerts=ALERTS,
            loading=LoadingFlags(tides=True),
        )
        text = "\n".join(render_lines(model))
        assert "Small Craft Advisory" in text
        assert "Tides: loading..." in text
        assert "Conditions: unavailable" in text

    def test_error_and_notice(self):
        lines = render_lines(AppModel(state=AppState.ERROR, error="No marine zones found near '02633'", notice="hi"))
        assert "No marine zones found near '02633'" in lines
        assert "hi" in lines

    def test_lines_clipped_to_width(self):
        lines = render_lines(AppModel(width=10, search_input="x" * 50))
        assert all(len(line) <= 10 for line in lines)
