from __future__ import annotations

import sys
from pathlib import Path

import pytest

from zonedebrid import cli, logger
from zonedebrid.availability.types import DownloadAvailability, EpisodeAvailability
from zonedebrid.search.types import FilmLinks, QualityLink, SeasonLinks, SeriesLinks


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text('[debrid]\napi_key = "secret"\n', encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logger, "_logger", None)


def _run_main(monkeypatch: pytest.MonkeyPatch, *argv: str) -> int:
    monkeypatch.setattr(sys, "argv", ["zonedebrid", *argv])
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    return excinfo.value.code


def test_ui_info_warn_error_emit_prefixed_messages(monkeypatch: pytest.MonkeyPatch) -> None:
    lines: list[str] = []
    monkeypatch.setattr(cli.console, "print", lambda msg, *_args, **_kwargs: lines.append(str(msg)))

    cli._ui_info("hello")
    cli._ui_warn("careful")
    cli._ui_error("boom")

    assert lines == [
        "[cyan][INFO][/cyan] hello",
        "[yellow][WARNING][/yellow] careful",
        "[red][ERROR][/red] boom",
    ]


def test_parse_episode_list() -> None:
    assert cli.parse_episode_list(None) is None
    assert cli.parse_episode_list("") is None
    assert cli.parse_episode_list("3, 1,5-7,1") == [1, 3, 5, 6, 7]
    with pytest.raises(ValueError):
        cli.parse_episode_list("one")


def test_format_filesize() -> None:
    assert cli._format_filesize(None) == ""
    assert cli._format_filesize(512) == "512 B"
    assert cli._format_filesize(734003200) == "700.0 MB"


def test_summarize_versions() -> None:
    film = FilmLinks()
    film.add("MULTI", "BLU-RAY_1080P", QualityLink("https://a"))
    film.add("MULTI", "DVDRIP", QualityLink("https://b"))
    series = SeriesLinks(
        seasons={"SAISON_1": SeasonLinks(episodes=10, versions={"VF": {"HD": QualityLink("https://c")}})}
    )

    assert cli.summarize_versions(film) == "MULTI: BLU-RAY_1080P, DVDRIP"
    assert cli.summarize_versions(series) == "SAISON_1 (10 ep): VF HD"
    assert cli.summarize_versions(None) == "-"


def test_render_availability_lists_every_item(monkeypatch: pytest.MonkeyPatch) -> None:
    printed: list[object] = []
    monkeypatch.setattr(cli.console, "print", lambda obj, *_args, **_kwargs: printed.append(obj))
    result = DownloadAvailability(
        session_id="s1",
        content_type="series",
        availability={
            "episode_1": EpisodeAvailability(host="1fichier", available=True, link="https://debrid/1", filesize=2048),
            "episode_2": EpisodeAvailability(host=None, available=False, error="No host available"),
        },
    )

    cli.render_availability(result)

    assert len(printed) == 1
    table = printed[0]
    assert table.row_count == 2
    assert list(table.columns[0].cells) == ["Épisode 1", "Épisode 2"]


def test_resolve_config_path_prefers_explicit_directory(tmp_path: Path) -> None:
    assert cli.resolve_config_path(str(tmp_path)) == tmp_path / "config.toml"
    assert cli.resolve_config_path(str(tmp_path / "custom.toml")) == tmp_path / "custom.toml"


def test_main_help_exits_cleanly(monkeypatch: pytest.MonkeyPatch) -> None:
    assert _run_main(monkeypatch, "--help") == 0


def test_main_rejects_search_and_check_together(monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
    monkeypatch.setattr(cli.console, "print", lambda *_args, **_kwargs: None)

    code = _run_main(monkeypatch, "-c", str(config_file), "-s", "inception", "-k", "https://zt.example/x")

    assert code == 1


def test_main_check_requires_type(monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
    monkeypatch.setattr(cli.console, "print", lambda *_args, **_kwargs: None)

    assert _run_main(monkeypatch, "-c", str(config_file), "-k", "https://zt.example/x") == 1


def test_main_search_dispatches(monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
    calls: list[tuple] = []

    async def _fake_search(config, query, content_type, year, as_json=False):
        calls.append((config.debrid.api_key, query, content_type, year, as_json))
        return []

    monkeypatch.setattr(cli, "run_search", _fake_search)

    code = _run_main(monkeypatch, "-c", str(config_file), "-s", "le roi lion", "-t", "films", "-y", "1994", "--json")

    assert code == 0
    assert calls == [("secret", "le roi lion", "films", 1994, True)]


def test_main_check_passes_parsed_episodes(monkeypatch: pytest.MonkeyPatch, config_file: Path) -> None:
    calls: list[tuple] = []

    async def _fake_check(config, url, content_type, episodes, as_json=False):
        calls.append((url, content_type, episodes))
        return None

    monkeypatch.setattr(cli, "run_availability_check", _fake_check)

    code = _run_main(monkeypatch, "-c", str(config_file), "-k", "https://zt.example/x", "-t", "series", "-e", "1-3")

    assert code == 1
    assert calls == [("https://zt.example/x", "series", [1, 2, 3])]
