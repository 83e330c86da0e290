"""
Product card scraper – async Playwright pipeline.
One browser per request: open session -> prepare page -> navigate, wait for cards,
evaluate leaf selectors per card -> close session (on every exit path).

Usage:
  python scraper.py --url https://example.com/list --card .card --name .name --rating .rating --total-ratings .count
  python scraper.py --request request.json
"""
import argparse
import asyncio
import json
import logging
import random
import sys
from pathlib import Path

from playwright.async_api import (
    Browser,
    Page,
    Playwright,
    async_playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from config import (
    CARD_WAIT_TIMEOUT,
    HEADLESS,
    LAUNCH_ARGS,
    LOG_LEVEL,
    NAVIGATION_TIMEOUT,
    USER_AGENTS,
    VIEWPORT,
)
from errors import (
    ConfigValidationError,
    ExtractionError,
    LaunchError,
    NavigationError,
    ScrapeError,
    SelectorTimeoutError,
)
from models import ProductRecord, ScrapeRequest

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("prodscrape")

# Runs inside the page: receives the leaf selectors, returns plain text (or null) per card
_CARD_FIELDS_JS = """
(cards, [nameSelector, ratingSelector, totalSelector]) => cards.map((card, i) => {
    const text = (selector) => {
        if (!selector) return null;
        const el = card.querySelector(selector);
        return el ? (el.textContent || '').trim() : null;
    };
    const fields = {
        title: text(nameSelector),
        productRating: text(ratingSelector),
        totalRatings: text(totalSelector),
    };
    console.log(`[scraper] card ${i}: name=${fields.title} rating=${fields.productRating} total=${fields.totalRatings}`);
    return fields;
})
"""


# --------------- Session manager ---------------
class BrowserSession:
    """A Playwright driver plus the one Chromium process it launched."""

    def __init__(self, playwright: Playwright, browser: Browser):
        self.playwright = playwright
        self.browser = browser
        self.closed = False


async def open_session(url: str | None = None) -> BrowserSession:
    """Start the driver and one Chromium process. url only labels launch errors."""
    target = f" for URL: {url}" if url else ""
    try:
        p = await async_playwright().start()
    except Exception as e:
        raise LaunchError(f"Failed to start Playwright driver{target}: {e}", url=url) from e
    try:
        browser = await p.chromium.launch(headless=HEADLESS, args=LAUNCH_ARGS)
    except BaseException as e:
        # also on cancellation: the driver must not outlive a launch that never finished
        await p.stop()
        if isinstance(e, Exception):
            raise LaunchError(f"Failed to launch browser{target}: {e}", url=url) from e
        raise
    logger.info("Browser launched.")
    return BrowserSession(p, browser)


async def close_session(session: BrowserSession) -> None:
    """
    Close the browser and stop the driver. A second call is a no-op.
    Teardown failures are logged, never raised, so they cannot mask the pipeline's own error.
    """
    if session.closed:
        return
    session.closed = True
    try:
        await session.browser.close()
    except Exception as e:
        logger.warning("Browser close failed: %s", e)
    try:
        await session.playwright.stop()
    except Exception as e:
        logger.warning("Playwright driver stop failed: %s", e)
    logger.info("Browser closed.")


# --------------- Page setup ---------------
async def prepare_page(session: BrowserSession) -> Page:
    """New context with a random desktop user agent and a fixed 1366x800 viewport."""
    ctx = await session.browser.new_context(
        user_agent=random.choice(USER_AGENTS),
        viewport=VIEWPORT,
    )
    page = await ctx.new_page()
    page.on("console", lambda msg: logger.debug("[page] %s", msg.text))
    return page


# --------------- Navigation & extraction ---------------
async def _navigate(page: Page, url: str, timeout_ms: int) -> None:
    try:
        await page.goto(url, timeout=timeout_ms)
    except PlaywrightError as e:
        logger.error('Error navigating to URL "%s": %s', url, e)
        raise NavigationError(f"Failed to navigate to URL: {url}", url=url) from e
    logger.info("Navigated to URL: %s", url)


async def _wait_for_cards(page: Page, url: str, card_selector: str, timeout_ms: int) -> bool:
    """
    Wait until a card is visible. Returns False when the selector matches nothing at all
    once the wait has run out; raises when cards exist but never became visible.
    """
    logger.debug("Waiting for selector: %s", card_selector)
    try:
        await page.wait_for_selector(card_selector, state="visible", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        try:
            attached = await page.locator(card_selector).count()
        except PlaywrightError as count_err:
            raise ExtractionError(
                f'Failed to query selector "{card_selector}" on page: {url}',
                url=url, selector=card_selector,
            ) from count_err
        if attached == 0:
            return False
        raise SelectorTimeoutError(
            f'Selector "{card_selector}" did not become visible within {timeout_ms} ms on page: {url}',
            url=url, selector=card_selector,
        ) from e
    except PlaywrightError as e:
        raise ExtractionError(
            f'Failed waiting for selector "{card_selector}" on page: {url}: {e}',
            url=url, selector=card_selector,
        ) from e
    logger.debug("Selector %s is visible. Starting evaluation.", card_selector)
    return True


async def extract(
    page: Page,
    url: str,
    selectors: ScrapeRequest,
    nav_timeout_ms: int = NAVIGATION_TIMEOUT,
    wait_timeout_ms: int = CARD_WAIT_TIMEOUT,
) -> list[ProductRecord]:
    """
    Load url, wait for the product cards, and return one ProductRecord per card in
    document order. Zero matching cards is an empty list, not an error, but it is only
    known once the full wait_timeout_ms has run out (15 s by default).
    """
    card_selector = selectors.product_card_selector
    await _navigate(page, url, nav_timeout_ms)
    if not await _wait_for_cards(page, url, card_selector, wait_timeout_ms):
        return []
    try:
        raw_cards = await page.eval_on_selector_all(
            card_selector,
            _CARD_FIELDS_JS,
            [
                selectors.product_name_selector,
                selectors.product_rating_selector,
                selectors.total_ratings_selector,
            ],
        )
    except PlaywrightError as e:
        raise ExtractionError(
            f'Failed to evaluate product cards "{card_selector}" on page: {url}: {e}',
            url=url, selector=card_selector,
        ) from e
    products = [ProductRecord.from_card(raw, selectors.wants_title) for raw in raw_cards]
    logger.debug("Scraped %d product cards.", len(products))
    return products


# --------------- Pipeline entry point ---------------
async def scrape_all_products(request) -> list[ProductRecord]:
    """
    Run the whole pipeline for one request (a ScrapeRequest or a raw mapping).
    The browser session is closed before this returns or raises.
    """
    req = ScrapeRequest.from_input(request)
    logger.info("Starting scraping for URL: %s", req.url)
    try:
        session = await open_session(req.url)
    except LaunchError as e:
        logger.error("Error during scraping all products: %s", e)
        raise
    try:
        try:
            page = await prepare_page(session)
        except PlaywrightError as e:
            raise LaunchError(f"Failed to open a browser page for URL: {req.url}: {e}", url=req.url) from e
        products = await extract(
            page,
            req.url,
            req,
            nav_timeout_ms=req.navigation_timeout_ms or NAVIGATION_TIMEOUT,
        )
    except ScrapeError as e:
        logger.error("Error during scraping all products: %s", e)
        raise
    except Exception:
        logger.exception("Unexpected error while scraping %s", req.url)
        raise
    finally:
        await close_session(session)
    if not products:
        logger.warning(
            'No products found matching selector "%s" on page: %s',
            req.product_card_selector, req.url,
        )
    return products


async def scrape_to_dicts(request) -> list[dict]:
    """Same as scrape_all_products, serialized to {title?, productRating, totalRatings} dicts."""
    return [p.as_dict() for p in await scrape_all_products(request)]


def _request_from_args(args) -> dict:
    if args.request:
        return json.loads(Path(args.request).read_text(encoding="utf-8"))
    data = {
        "pageUrl": args.url,
        "productCardSelector": args.card,
        "productNameSelector": args.name,
        "productRatingSelector": args.rating,
        "totalRatingsSelector": args.total_ratings,
    }
    if args.nav_timeout_ms:
        data["navigationTimeoutMs"] = args.nav_timeout_ms
    return {k: v for k, v in data.items() if v is not None}


def main():
    ap = argparse.ArgumentParser(description="Scrape product cards (name, rating, rating count) from one page")
    ap.add_argument("--request", "-r", help="JSON file with a scrape request (pageUrl, productCardSelector, ...)")
    ap.add_argument("--url", help="Page URL to scrape")
    ap.add_argument("--card", help="CSS selector matching each product card")
    ap.add_argument("--name", help="CSS selector for the product name inside a card (optional)")
    ap.add_argument("--rating", help="CSS selector for the rating inside a card")
    ap.add_argument("--total-ratings", dest="total_ratings", help="CSS selector for the rating count inside a card")
    ap.add_argument("--nav-timeout-ms", type=int, help=f"Navigation timeout in ms (default {NAVIGATION_TIMEOUT})")
    args = ap.parse_args()

    try:
        data = _request_from_args(args)
    except (OSError, json.JSONDecodeError) as e:
        ap.error(f"Could not read request file: {e}")

    try:
        products = asyncio.run(scrape_to_dicts(data))
    except ConfigValidationError as e:
        logger.error("%s", e)
        return 2
    except ScrapeError as e:
        logger.error("Scraping all products failed: %s", e)
        return 1

    json.dump(products, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    if not products:
        logger.info("No products found matching the criteria.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
