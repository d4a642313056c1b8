"""Tests for the Dash app helpers, figures and callbacks (called directly, no browser)."""

from datetime import date, datetime

import plotly.graph_objects as go
import pytest
from dash.exceptions import PreventUpdate

import app
from config import DOMAINS, QUESTIONS
from scoring import aggregate, priority_counts, score_ratings
from session import AssessmentSession


# ── helpers ───────────────────────────────────────────────────────────────────


def test_gap_badge():
    assert app.gap_badge(1, 4) == ("Gap: 3", "gap-indicator gap-critical")
    assert app.gap_badge(2, 4) == ("Gap: 2", "gap-indicator gap-high")
    assert app.gap_badge(4, 4) == ("Gap: 0", "gap-indicator gap-low")
    assert app.gap_badge(None, 4)[0] == "Gap: -"


def test_apply_session_event_rating_edit(session):
    code = QUESTIONS[0]["code"]
    data = app.apply_session_event(session.to_dict(), {"type": "current", "code": code}, 0)
    assert AssessmentSession.from_dict(data).get_field(code, "current") == 0


def test_apply_session_event_ignored_edit(session):
    code = QUESTIONS[0]["code"]
    with pytest.raises(PreventUpdate):
        app.apply_session_event(session.to_dict(), {"type": "current", "code": code}, 9)


def test_apply_session_event_save_and_new_cycle(session):
    data = app.apply_session_event(
        session.to_dict(), "save-progress", 1, now=datetime(2026, 1, 15, 8, 0)
    )
    assert data["last_saved"] == "2026-01-15T08:00:00"

    data = app.apply_session_event(data, "new-cycle", 1, today=date(2026, 1, 16))
    assert data["cycle_number"] == 2
    assert data["history"][0]["date"] == "2026-01-16"


def test_apply_session_event_unknown_trigger(session):
    with pytest.raises(PreventUpdate):
        app.apply_session_event(session.to_dict(), None, None)


def test_provider_config_from_inputs():
    cfg = app.provider_config_from_inputs("ollama", " mistral ", "", None, [])
    assert cfg.provider == "ollama"
    assert cfg.model == "mistral"
    assert cfg.effective_base_url == "http://localhost:11434"
    assert cfg.api_key == ""
    assert cfg.use_client_library is False
    assert app.provider_config_from_inputs(None, "", "", "", ["client"]).provider == "llama_cpp"


# ── figures ───────────────────────────────────────────────────────────────────


def test_figures_build_for_default_session(session):
    ratings = session.ratings_frame()
    summary = aggregate(ratings)
    scored = score_ratings(ratings)

    radar = app.radar_figure(summary, "dark")
    assert isinstance(radar, go.Figure)
    assert len(radar.data) == 2
    assert len(radar.data[0].theta) == len(DOMAINS) + 1

    assert len(app.comparison_figure(summary).data) == 2
    assert len(app.domain_gap_figure(summary).data[0].x) == len(DOMAINS)
    assert len(app.gap_detail_figure(scored).data[0].y) == len(QUESTIONS)
    assert isinstance(app.priority_figure(priority_counts(ratings)), go.Figure)


def test_benefit_effort_figure_empty_state(session):
    scored = score_ratings(session.ratings_frame().assign(current=4, target=4))
    fig = app.benefit_effort_figure(scored)
    assert fig.data == ()
    assert fig.layout.annotations[0].text == "No gaps to display"


def test_benefit_effort_figure_plots_open_gaps(session):
    scored = score_ratings(session.ratings_frame())
    fig = app.benefit_effort_figure(scored)
    assert len(fig.data[0].x) == int((scored["gap"] > 0).sum())


# ── callbacks ─────────────────────────────────────────────────────────────────


def test_update_results_outputs(session):
    outputs = app.update_results(session.to_dict(), "light")
    assert len(outputs) == 14
    kpis = outputs[0]
    assert len(kpis) == 4
    gap_rows = outputs[8]
    assert len(gap_rows) == len(QUESTIONS)
    assert gap_rows[0]["gap"] >= gap_rows[-1]["gap"]
    assert outputs[-1] == []


def test_on_provider_change_shows_relevant_fields():
    model, options, url, url_style, key_style, client_style = app.on_provider_change("openai")
    assert model == "gpt-4"
    assert url == ""
    assert url_style == {"display": "none"}
    assert key_style == {}
    assert client_style == {"display": "none"}

    _, _, url, _, _, client_style = app.on_provider_change("ollama")
    assert url == "http://localhost:11434"
    assert client_style == {}


def test_apply_theme():
    assert app.apply_theme(True) == ("page theme-dark", "dark")
    assert app.apply_theme(False) == ("page theme-light", "light")


def test_provider_change_hint_uses_new_provider_defaults():
    hint = app.provider_change_hint("ollama")
    assert "llama3.1:8b" in hint
    assert "http://localhost:11434" in hint
    assert "llama-server" in app.provider_change_hint(None)
