# lazuli/cli.py
from __future__ import annotations

"""Command-line interface
------------------------
Ad-hoc checks against a live page: print effective config, run a find, or run
a single wait. Thin wrapper around World and Browser.
"""

import json
import re
import sys
from pathlib import Path
from typing import Optional

import click

from lazuli.browser import Browser
from lazuli.errors import LazuliError
from lazuli.selectors.models import Tag
from lazuli.utils.config import BrowserName, get_settings
from lazuli.utils.logger import set_log_level
from lazuli.world import World


# -------- helpers --------


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, indent=2, ensure_ascii=False, default=str))


def _selector_settings(selector: str, like_attr: Optional[str], like_include: Optional[str]):
    """
    "a"            → Tag("a") when a like filter is given, else name/id/text lookup
    "link=Sign in" → {"link": "Sign in"}
    """
    if like_attr or like_include:
        return {"like": {"element": selector, "attribute": like_attr or "text", "include": like_include or ""}}
    if "=" in selector:
        key, value = selector.split("=", 1)
        return {key.strip(): value}
    return selector


def _open(world: World, url: str, browser_name: Optional[str]) -> Browser:
    browser = Browser(world, browser_name) if browser_name else world.browser
    world.browser = browser
    browser.goto(url)
    return browser


def _describe(element) -> str:
    try:
        text = " ".join(element.text().split())
    except Exception:
        text = ""
    tag = element.tag_name()
    return f"<{tag}> {text[:80]}"


# -------- CLI root --------


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL from settings",
)
@click.version_option(package_name="lazuli")
def cli(log_level: Optional[str]):
    _ = get_settings()
    if log_level:
        set_log_level(log_level.upper())


browser_option = click.option(
    "--browser", "browser_name",
    type=click.Choice([b.value for b in BrowserName], case_sensitive=False),
    default=None,
    help="Override BROWSER from settings",
)


# -------- commands --------


@cli.command("config")
def cmd_config():
    """Print effective configuration (after .env & env vars)."""
    s = get_settings()
    data = {k: (str(v) if isinstance(v, Path) else v) for k, v in s.model_dump(mode="json").items()}
    _echo_json(data)


@cli.command("find")
@click.argument("url")
@click.argument("selector")
@click.option("--like-attr", default=None, help="Attribute (or 'text') for a like query on SELECTOR as tag")
@click.option("--like-include", default=None, help="Substring the like attribute must contain")
@click.option("--present/--all", "present", default=True, show_default=True, help="Only visible elements")
@browser_option
def cmd_find(url: str, selector: str, like_attr: Optional[str], like_include: Optional[str], present: bool,
             browser_name: Optional[str]):
    """
    Open URL and list the elements matching SELECTOR.

    Examples:
      lazuli find https://www.example.com a --like-attr href --like-include iana
      lazuli find https://www.example.com "link=More information..."
    """
    world = World()
    settings = _selector_settings(selector, like_attr, like_include)
    try:
        browser = _open(world, url, browser_name)
        found = browser.find_all_present(settings) if present else browser.find_all(settings)
        click.echo(f"Found {len(found)} element(s):")
        for element in found:
            click.echo(f" - {_describe(element)}")
    except LazuliError as e:
        click.echo(f"ERR {e}")
        sys.exit(1)
    finally:
        if world.has_browser:
            world.browser.close()


@cli.command("wait")
@click.argument("url")
@click.option("--text", default=None, help="Text to wait for")
@click.option("--regex/--literal", default=False, show_default=True, help="Treat --text as a regular expression")
@click.option("--tag", default=None, help="Wait for an element with this tag")
@click.option("--timeout", type=float, default=None, help="Seconds; defaults to WAIT_TIMEOUT")
@click.option("--disappear", is_flag=True, default=False, help="Wait while the text/element is there")
@click.option("--screenshot/--no-screenshot", default=False, show_default=True, help="Screenshot on timeout")
@browser_option
def cmd_wait(url: str, text: Optional[str], regex: bool, tag: Optional[str], timeout: Optional[float],
             disappear: bool, screenshot: bool, browser_name: Optional[str]):
    """Open URL and wait for text or an element to show up (or go away)."""
    if not text and not tag:
        click.echo("Provide --text and/or --tag.")
        sys.exit(2)

    world = World()
    settings: dict = {}
    if tag:
        settings["like"] = Tag(tag)
    if text:
        settings["text"] = re.compile(text) if regex else text

    try:
        browser = _open(world, url, browser_name)
        wait_s = timeout if timeout is not None else world.settings.WAIT_TIMEOUT
        outcome = browser.wait_outcome(
            list=[settings],
            timeout=wait_s,
            condition="while" if disappear else "until",
            screenshot=screenshot,
            groups=["cli"],
        )
        if disappear and outcome.timed_out:
            # timed-out while waits return what is still there instead of raising
            click.echo(f"ERR Still present after {wait_s:g} s")
            sys.exit(1)
        found = outcome.matched[0] if outcome.matched else None
        click.echo("OK" if found is None or disappear else f"OK  {_describe(found) if tag else text}")
    except LazuliError as e:
        click.echo(f"ERR {e}")
        if e.screenshot:
            click.echo(f"Screenshot: {e.screenshot}")
        sys.exit(1)
    finally:
        if world.has_browser:
            world.browser.close()


def main() -> None:
    cli(prog_name="lazuli")


if __name__ == "__main__":
    main()
