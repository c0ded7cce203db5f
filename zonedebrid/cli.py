#!/usr/bin/env python3
"""
cli.py - Entry point for zonedebrid
Search Zone-Téléchargement and check which hosts AllDebrid can unlock.
"""

try:
    import asyncio
    import sys
    import argparse
    import json
    import signal
    import time
    from functools import partial
    from pathlib import Path
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table
    from typing import List, Optional
    import zonedebrid as pkg
    from . import logger
    from .config import ZoneDebridConfig, load_config
    from .api_verification import verify_services
    from .availability import (
        AllDebridClient,
        AvailabilityOrchestrator,
        CheckCancelledError,
        DownloadAvailability,
        LoggingProgressSink,
        SessionRegistry,
        check_link_availability,
        format_episode_name,
    )
    from .search import (
        ALL_CONTENT_TYPES,
        JsonSiteLocationStore,
        SearchCoordinator,
        SearchResult,
        SiteClient,
        SiteLocationTracker,
    )
    from .search.site_location import HEALTHY_RESPONSE_MS
    from .search.types import FilmLinks, SeriesLinks
except ImportError as e:
    print(f"Error: Missing required dependency: {e}")
    print("Please install required dependencies: pip install -e .")
    sys.exit(1)

console = Console()
_CLI_SESSION_START_MONOTONIC = time.monotonic()


def _ui_info(message: str) -> None:
    console.print(f"[cyan][INFO][/cyan] {message}")


def _ui_warn(message: str) -> None:
    console.print(f"[yellow][WARNING][/yellow] {message}")


def _ui_error(message: str) -> None:
    console.print(f"[red][ERROR][/red] {message}")


def _reset_cli_session_timer() -> None:
    global _CLI_SESSION_START_MONOTONIC
    _CLI_SESSION_START_MONOTONIC = time.monotonic()


def _format_elapsed_runtime(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3_600:
        return f"{seconds / 60:.1f}m"
    return f"{seconds / 3_600:.1f}h"


def _ui_goodbye_with_elapsed() -> None:
    elapsed = max(0.0, time.monotonic() - _CLI_SESSION_START_MONOTONIC)
    _ui_info(f"Goodbye! Elapsed {_format_elapsed_runtime(elapsed)}")


def _format_filesize(size: Optional[int]) -> str:
    if size is None:
        return ""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return ""


def parse_episode_list(raw: Optional[str]) -> Optional[List[int]]:
    """Parse '1,2,5-7' into [1, 2, 5, 6, 7]."""
    if not raw:
        return None
    numbers: List[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            start, end = (int(value) for value in part.split("-", 1))
            numbers.extend(range(start, end + 1))
        else:
            numbers.append(int(part))
    return sorted(set(numbers)) or None


def summarize_versions(links) -> str:
    if isinstance(links, FilmLinks):
        return "; ".join(
            f"{language}: {', '.join(qualities)}" for language, qualities in links.languages.items()
        )
    if isinstance(links, SeriesLinks):
        parts = []
        for key, season in links.seasons.items():
            episodes = f" ({season.episodes} ep)" if season.episodes else ""
            versions = ", ".join(
                f"{language} {quality}" for language, qualities in season.versions.items() for quality in qualities
            )
            parts.append(f"{key}{episodes}: {versions}")
        return "; ".join(parts)
    return "-"


def render_search_results(results: List[SearchResult]) -> None:
    for result in results:
        table = Table(title=f"{result.content_type.capitalize()} ({len(result.results)})")
        table.add_column("Score", justify="right", no_wrap=True)
        table.add_column("Title", style="cyan")
        table.add_column("Year", no_wrap=True)
        table.add_column("Versions", style="yellow")
        table.add_column("Link", style="grey50")
        for entry in result.results:
            table.add_row(
                f"{entry.relevance_score:.2f}",
                escape(entry.title),
                entry.release_year or "",
                escape(summarize_versions(entry.links)),
                escape(entry.link),
            )
        console.print(table)


def render_availability(result: DownloadAvailability) -> None:
    table = Table(title=f"Availability ({result.content_type})")
    table.add_column("Item", style="cyan", no_wrap=True)
    table.add_column("Status", style="bold", no_wrap=True)
    table.add_column("Host", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Details", style="yellow")
    for key, episode in result.availability.items():
        status = "[green]✓ Available[/green]" if episode.available else "[red]✗ Unavailable[/red]"
        details = episode.link if episode.available else episode.error
        table.add_row(
            format_episode_name(key),
            status,
            episode.host or "",
            _format_filesize(episode.filesize),
            escape(details or ""),
        )
    console.print(table)


def _site_tracker(config: ZoneDebridConfig) -> tuple[SiteClient, SiteLocationTracker]:
    store = JsonSiteLocationStore(config.state_path(), default_url=config.site.default_url)
    tracker: Optional[SiteLocationTracker] = None

    def _referer() -> str:
        return tracker.current_base_url() if tracker is not None else config.site.default_url

    client = SiteClient(config.site, referer=_referer)
    tracker = SiteLocationTracker(store, client, domain_hint=config.site.domain_hint)
    return client, tracker


async def run_search(
    config: ZoneDebridConfig,
    query: str,
    content_type: Optional[str],
    year: Optional[int],
    as_json: bool = False,
) -> List[SearchResult]:
    client, tracker = _site_tracker(config)
    coordinator = SearchCoordinator(client, tracker, default_type=config.search.default_type)
    try:
        results = await coordinator.search(query, content_type, year)
    finally:
        await client.close()

    if as_json:
        console.print_json(json.dumps([result.to_dict() for result in results], ensure_ascii=False))
    else:
        render_search_results(results)
    return results


async def run_availability_check(
    config: ZoneDebridConfig,
    url: str,
    content_type: str,
    episodes: Optional[List[int]],
    as_json: bool = False,
) -> Optional[DownloadAvailability]:
    client, _tracker = _site_tracker(config)
    debrid = AllDebridClient(config.debrid)
    check = partial(
        check_link_availability,
        debrid,
        retry_delay=config.debrid.retry_delay_seconds,
        max_retries=config.debrid.max_retries,
    )
    orchestrator = AvailabilityOrchestrator(client, check, SessionRegistry(), LoggingProgressSink())
    session_id = f"cli-{int(time.time())}"

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, orchestrator.cancel, session_id)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        handler_installed = False

    try:
        result = await orchestrator.check_availability(url, content_type, episodes, session_id=session_id)
    except CheckCancelledError:
        _ui_warn("Availability check cancelled.")
        return None
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)
        await debrid.close()
        await client.close()

    if as_json:
        console.print_json(json.dumps(result.to_dict(), ensure_ascii=False))
    else:
        render_availability(result)
    return result


async def run_site_status(config: ZoneDebridConfig) -> bool:
    client, tracker = _site_tracker(config)
    try:
        await tracker.refresh()
    finally:
        await client.close()

    record = tracker.record
    healthy = tracker.is_healthy()
    table = Table(title="Site Location")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="yellow")
    table.add_row("Current URL", escape(tracker.current_base_url()))
    table.add_row("Last checked", record.last_checked.strftime("%Y-%m-%d %H:%M:%S") if record.last_checked else "never")
    table.add_row("Response time", f"{record.response_time_ms:.0f}ms")
    table.add_row(
        "Healthy",
        "[green]yes[/green]" if healthy else f"[red]no[/red] (expected under {HEALTHY_RESPONSE_MS}ms)",
    )
    table.add_row("Previous URLs", escape(", ".join(record.url_history)) or "-")
    console.print(table)
    return healthy


def show_help(parser: argparse.ArgumentParser) -> None:
    print(f"ZONEDEBRID v{getattr(pkg, '__version__', '0.0.0')} - Search listings and check debrid availability")
    print()
    parser.print_help()


def resolve_config_path(args_config: Optional[str]) -> Path:
    if args_config:
        p = Path(args_config).expanduser()
        if p.is_dir():
            p = p / "config.toml"
        return p

    cwd_candidate = Path.cwd() / "config.toml"
    if cwd_candidate.exists():
        return cwd_candidate

    repo_root = Path(__file__).resolve().parent.parent
    root_candidate = repo_root / "config.toml"
    if root_candidate.exists() and (repo_root / "pyproject.toml").exists():
        return root_candidate
    return cwd_candidate


def main():
    """Entry point"""
    _reset_cli_session_timer()
    parser = argparse.ArgumentParser(add_help=False)
    for args, kwargs in (
        (("-h", "--help"), {"action": "store_true", "help": "Show help"}),
        (("-s", "--search"), {"metavar": "QUERY", "help": "Search the site for QUERY"}),
        (("-k", "--check"), {"metavar": "URL", "help": "Check host availability for a download page URL"}),
        (("-t", "--type"), {"choices": ALL_CONTENT_TYPES, "help": "Content type (films, series, mangas)"}),
        (("-y", "--year"), {"type": int, "help": "Release year filter for --search"}),
        (("-e", "--episodes"), {"metavar": "LIST", "help": "Episodes for --check, e.g. 1,2,5-7 (default: all)"}),
        (("--verify",), {"action": "store_true", "help": "Verify the AllDebrid key and site reachability, then exit"}),
        (("--site-status",), {"action": "store_true", "help": "Refresh and show the tracked site location"}),
        (("--json",), {"action": "store_true", "help": "Print results as JSON"}),
        (("-c", "--config"), {"metavar": "PATH", "help": "Path to config.toml (file or directory)"}),
        (("-l", "--log-file"), {"metavar": "PATH", "help": "Also write the session log to PATH"}),
        (("-d", "--debug"), {"action": "store_true", "help": "Debug mode with API calls, responses, timestamps"}),
    ):
        parser.add_argument(*args, **kwargs)

    session_log = None
    try:
        args = parser.parse_args()
        if args.help:
            show_help(parser)
            sys.exit(0)

        config = load_config(resolve_config_path(args.config))
        log_file = Path(args.log_file).expanduser() if args.log_file else None
        session_log = logger.ZoneDebridLogger(log_file=log_file, debug=args.debug)
        logger.set_logger(session_log)

        if args.search and args.check:
            _ui_error("Use either --search or --check, not both")
            sys.exit(1)

        if args.search:
            asyncio.run(run_search(config, args.search, args.type, args.year, as_json=args.json))
            sys.exit(0)

        if args.check:
            if not args.type:
                _ui_error("--check needs --type (films, series or mangas)")
                sys.exit(1)
            result = asyncio.run(
                run_availability_check(
                    config,
                    args.check,
                    args.type,
                    parse_episode_list(args.episodes),
                    as_json=args.json,
                )
            )
            sys.exit(0 if result is not None else 1)

        if args.site_status:
            healthy = asyncio.run(run_site_status(config))
            sys.exit(0 if healthy else 1)

        if args.verify:
            _client, tracker = _site_tracker(config)
            result = asyncio.run(verify_services(config, tracker.current_base_url()))
            sys.exit(0 if result else 1)

        show_help(parser)
        sys.exit(0)
    except KeyboardInterrupt:
        _ui_goodbye_with_elapsed()
        sys.exit(0)
    except ValueError as e:
        _ui_error(str(e))
        sys.exit(1)
    except Exception as e:
        _ui_error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        if session_log is not None:
            session_log.close()


if __name__ == "__main__":
    main()
