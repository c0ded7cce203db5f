"""
api_verification.py - AllDebrid key and site reachability checks for zonedebrid
"""

import asyncio
import time

import aiohttp
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import ZoneDebridConfig

UA = f"zonedebrid/{__version__}"

console = Console()


def _invalid_key_msg(detail: str) -> str:
    """Generate standardized invalid API key message"""
    return f"Invalid API key - {detail}"


async def verify_alldebrid(session, api_key: str, base_url: str, timeout=10):
    """Verify the AllDebrid API key and get the username"""
    headers = {
        'Authorization': f'Bearer {api_key}',
        'User-Agent': UA,
    }
    api_url = f"{base_url.rstrip('/')}/user"

    async with session.post(
        api_url,
        headers=headers,
        timeout=timeout
    ) as response:
        if response.status != 200:
            return "AllDebrid", False, _invalid_key_msg(f"{response.status} {response.reason}")

        data = await response.json()
        if data.get('status') != 'success':
            error = data.get('error') or {}
            return "AllDebrid", False, _invalid_key_msg(str(error.get('message', 'request rejected')))
        user = (data.get('data') or {}).get('user') or {}
        if 'username' in user:
            premium = "premium" if user.get('isPremium') else "not premium"
            return "AllDebrid", True, f"Hello {user['username']} ({premium})"
        return "AllDebrid", False, _invalid_key_msg("no user details found")


async def verify_site(session, url: str, user_agent: str, timeout=10):
    """Check that the indexing site answers at its tracked URL"""
    start = time.monotonic()
    async with session.get(
        url,
        headers={'User-Agent': user_agent},
        timeout=timeout
    ) as response:
        elapsed_ms = (time.monotonic() - start) * 1000
        if response.status != 200:
            return "Site", False, f"{url} answered {response.status} {response.reason}"
        return "Site", True, f"{url} answered in {elapsed_ms:.0f}ms"


async def verify_with_retry(verify_func, service_name, *args, max_retries=2, timeout=10):
    """Wrapper to add retry logic with exponential backoff"""
    for attempt in range(max_retries + 1):
        try:
            return await verify_func(*args, timeout=timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError):
            if attempt == max_retries:
                return service_name, False, f"Connection failed after {max_retries + 1} attempts"

            delay = 1 * (2 ** attempt)
            console.print(f"[yellow]Retrying {service_name} in {delay}s...[/yellow]")
            await asyncio.sleep(delay)
        except Exception as e:
            return service_name, False, f"Unexpected error: {type(e).__name__}: {e}"


async def verify_services(config: ZoneDebridConfig, site_url: str) -> bool:
    """Verify the debrid key and site reachability"""
    console.print("[cyan][INFO][/cyan] Verifying services...")

    session_timeout = aiohttp.ClientTimeout(total=40)
    async with aiohttp.ClientSession(headers={"User-Agent": UA}, timeout=session_timeout) as session:
        tasks = [verify_with_retry(verify_site, "Site", session, site_url, config.site.user_agent)]
        if config.debrid.api_key:
            tasks.append(verify_with_retry(
                verify_alldebrid,
                "AllDebrid",
                session,
                config.debrid.api_key,
                config.debrid.base_url,
            ))

        results = await asyncio.gather(*tasks)

        table = Table(title="Service Verification Results")
        table.add_column("Service", style="cyan", no_wrap=True)
        table.add_column("Status", style="bold", no_wrap=True)
        table.add_column("Details", style="yellow")

        for service, status, details in results:
            status_str = "[green]✓ Valid[/green]" if status else "[red]✗ Invalid[/red]"
            if details:
                details = escape(str(details).strip()[:100])
            table.add_row(service, status_str, details or "")

        if not config.debrid.api_key:
            table.add_row("AllDebrid", "[yellow]⚠ Warning[/yellow]", "No API key configured")

        console.print(table)

        return bool(config.debrid.api_key) and all(status for _, status, _ in results)
