"""
Run many independent scrape requests from a CSV, several browsers at a time.
Each row gets its own browser session; at most MAX_CONCURRENT_SESSIONS run at once.
Columns: pageUrl, productCardSelector, productNameSelector (optional),
productRatingSelector, totalRatingsSelector, navigationTimeoutMs (optional).

Usage:
  python scrape_from_csv.py requests.csv
  python scrape_from_csv.py requests.csv --max-sessions 5 > results.json
"""
import argparse
import asyncio
import csv
import json
import sys
from pathlib import Path

from tqdm import tqdm

from config import MAX_CONCURRENT_SESSIONS
from errors import ScrapeError
from scraper import logger, scrape_to_dicts


def _load_requests_csv(csv_path: Path) -> list[dict]:
    """Rows with blank cells dropped, so optional columns may be left empty."""
    rows = []
    with open(csv_path, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            cleaned = {k.strip(): v.strip() for k, v in row.items() if k and v and v.strip()}
            if cleaned:
                rows.append(cleaned)
    return rows


async def _scrape_row(n: int, row: dict, semaphore: asyncio.Semaphore, pbar: tqdm) -> dict:
    entry = {"row": n, "pageUrl": row.get("pageUrl") or row.get("productPageUrl")}
    try:
        async with semaphore:
            entry["products"] = await scrape_to_dicts(row)
    except ScrapeError as e:
        entry["error"] = str(e)
    except Exception as e:
        logger.exception("Row %d: %s", n, e)
        entry["error"] = str(e)
    finally:
        pbar.update(1)
    return entry


async def run_scrape_from_csv(csv_path: Path, max_sessions: int = MAX_CONCURRENT_SESSIONS) -> list[dict]:
    """Scrape every row; one failing row does not stop the others. Results keep CSV order."""
    rows = _load_requests_csv(csv_path)
    logger.info("Loaded %d scrape requests from %s", len(rows), csv_path)
    semaphore = asyncio.Semaphore(max(1, max_sessions))
    with tqdm(total=len(rows), desc="Scraping", unit="page") as pbar:
        results = await asyncio.gather(
            *(_scrape_row(n, row, semaphore, pbar) for n, row in enumerate(rows, start=1))
        )
    return list(results)


def main():
    ap = argparse.ArgumentParser(description="Scrape product cards for every request row in a CSV")
    ap.add_argument("csv_file", help="CSV file with one scrape request per row")
    ap.add_argument("--max-sessions", type=int, default=MAX_CONCURRENT_SESSIONS, help="Max browsers running at once")
    args = ap.parse_args()

    results = asyncio.run(run_scrape_from_csv(Path(args.csv_file).resolve(), max_sessions=args.max_sessions))
    json.dump(results, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    failed = sum(1 for r in results if "error" in r)
    logger.info("Done. %d requests, %d failed.", len(results), failed)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
