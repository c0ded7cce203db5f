from __future__ import annotations

import builtins

from rich.text import Text

import zonedebrid.logger as zd_logger


def test_debug_drops_when_debug_disabled(monkeypatch):
    log = zd_logger.ZoneDebridLogger(debug=False)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))

    log.debug("hidden")
    log.api_request("POST", "https://api.debrid.example/v4/link/unlock", {"link": "x"})
    log.api_response(200, {"status": "success"}, 12.0)

    assert captured == []


def test_api_request_emits_params_in_debug_mode(monkeypatch):
    log = zd_logger.ZoneDebridLogger(debug=True)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))

    log.api_request("POST", "https://api.debrid.example/v4/link/unlock", {"link": "x"})

    assert len(captured) == 2
    assert "API Request: POST https://api.debrid.example/v4/link/unlock" in captured[0][1]
    assert '"link": "x"' in captured[1][1]


def test_api_retry_and_failed_messages(monkeypatch):
    log = zd_logger.ZoneDebridLogger(debug=False)
    captured: list[tuple[str, str]] = []
    monkeypatch.setattr(log, "log", lambda msg, prefix="": captured.append((prefix, msg)))

    log.api_retry("AllDebrid", 2, 2.0, reason="LINK_HOST_UNAVAILABLE: Could not extract links")
    log.api_retry("AllDebrid", 1, 0.5, max_attempts=3)
    log.api_failed("AllDebrid", 3)

    assert captured == [
        (
            "[WARNING] ",
            "AllDebrid transient failure (LINK_HOST_UNAVAILABLE: Could not extract links). Retrying in 2s... (attempt 2)",
        ),
        ("[WARNING] ", "AllDebrid transient failure. Retrying in 0.5s... (attempt 1/3)"),
        ("[ERROR] ", "AllDebrid still failing after 3 attempts. Aborting."),
    ]


def test_status_prints_inline_without_newline(monkeypatch):
    captured: list[tuple[tuple[object, ...], dict]] = []

    def _fake_print(*args, **kwargs):
        captured.append((args, kwargs))

    monkeypatch.setattr(builtins, "print", _fake_print)
    log = zd_logger.ZoneDebridLogger(debug=False)
    captured.clear()  # ignore startup banner

    log.status("[abcd1234]  40% Checking 3 item(s)")

    assert len(captured) == 1
    args, kwargs = captured[0]
    assert args and str(args[0]).startswith("\r[abcd1234]  40% Checking")
    assert kwargs.get("end") == ""


def test_log_clears_inline_status_before_print(monkeypatch):
    captured_print: list[tuple[tuple[object, ...], dict]] = []
    captured_screen: list[tuple[object, dict]] = []

    def _fake_print(*args, **kwargs):
        captured_print.append((args, kwargs))

    monkeypatch.setattr(builtins, "print", _fake_print)
    log = zd_logger.ZoneDebridLogger(debug=False)
    monkeypatch.setattr(log._console, "print", lambda msg, **kwargs: captured_screen.append((msg, kwargs)))
    captured_print.clear()

    log.status("Checking")
    log.info("Done")
    log.info("Again")

    assert len(captured_print) == 2
    assert str(captured_print[1][0][0]).startswith("\r")
    assert [text.plain for text, _ in captured_screen] == ["Done", "Again"]


def test_screen_text_styles_prefixes_and_outcomes(monkeypatch):
    log = zd_logger.ZoneDebridLogger(debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    warning = log._screen_text("[WARNING] 1fichier check failed for episode_2: boom")
    available = log._screen_text("episode_1: available on Uptobox")
    unavailable = log._screen_text("episode_3: Uptobox unavailable (No link could be unlocked)")
    not_available = log._screen_text("This link is not available")
    plain = log._screen_text("[abcd1234] Fetching download links")

    assert any(span.style == "yellow" for span in warning.spans)
    assert any(span.style == "red" for span in warning.spans)
    assert [span.style for span in available.spans] == ["green"]
    assert [span.style for span in unavailable.spans] == ["red"]
    assert [span.style for span in not_available.spans] == ["red"]
    assert plain.spans == []


def test_screen_text_preserves_literal_brackets(monkeypatch):
    log = zd_logger.ZoneDebridLogger(debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    line = "[abcd1234] [INFO] literal text should stay literal"
    rendered = log._screen_text(line)

    assert isinstance(rendered, Text)
    assert rendered.plain == line


def test_log_writes_plain_text_to_file(tmp_path, monkeypatch):
    out = tmp_path / "logs" / "zonedebrid.log"
    log = zd_logger.ZoneDebridLogger(log_file=out, debug=False)
    monkeypatch.setattr(log._console, "print", lambda *_args, **_kwargs: None)

    log.warning("[abcd1234] Check cancelled by user")
    log.close()

    text = out.read_text(encoding="utf-8")
    assert "Started zonedebrid" in text
    assert "[WARNING] [abcd1234] Check cancelled by user" in text
    assert "Ended session" in text


def test_get_logger_returns_configured_instance(monkeypatch):
    log = zd_logger.ZoneDebridLogger(debug=False)
    monkeypatch.setattr(zd_logger, "_logger", None)

    zd_logger.set_logger(log)

    assert zd_logger.get_logger() is log
