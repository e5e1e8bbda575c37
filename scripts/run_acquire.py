"""Manual acquisition runner for debugging fetch behaviour.

Runs the retry orchestrator (and, if needed, the browser fallback) against
one real URL, classifies the result and prints the extracted record.

Usage:
    python scripts/run_acquire.py --url https://shop.example.jp/items/123
    python scripts/run_acquire.py --url https://shop.example.jp/items/123 --attempts 2
"""

import asyncio
import argparse
import sys
import os

# Add backend to path so we can import productqa modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from productqa.core.exceptions import AcquisitionError, RenderError
from productqa.scrapers.orchestrator import RetryOrchestrator
from productqa.scrapers.utils.normalizer import CategoryClassifier


async def run_acquire(url: str, attempts: int = None):
    """Acquire a page and display the extracted record.

    Args:
        url: Product page URL
        attempts: Direct-fetch budget (default: FETCH_MAX_ATTEMPTS)
    """
    print(f"\n{'='*70}")
    print(f"  Acquiring {url}")
    print(f"{'='*70}\n")

    orchestrator = RetryOrchestrator()

    try:
        record = await orchestrator.acquire(url, max_attempts=attempts)
    except AcquisitionError as e:
        print(f"\n❌ Acquisition failed ({e.kind.value}): {e.message}")
        if e.status_code:
            print(f"   HTTP status: {e.status_code}")
        if isinstance(e, RenderError) and e.original_error is not None:
            print(f"   Direct fetch: {e.original_error.kind.value}: {e.original_error.message}")
        for attempt in e.attempts:
            print(f"   - attempt {attempt.index}: {attempt.outcome.value} "
                  f"status={attempt.status_code} timeout={attempt.timeout:.0f}s "
                  f"error={attempt.error}")
        print()
        return

    category = CategoryClassifier.classify(record)

    print(f"✅ Acquired via {record.acquisition_method.value}")
    if record.warning:
        print(f"⚠️  {record.warning}")
    print()
    print(f"  Title:       {record.title}")
    print(f"  Category:    {category.value}")
    print(f"  Price:       {record.price or '-'}")
    print(f"  Description: {record.description[:120] or '-'}")
    print(f"  Images:      {len(record.images)}")
    for image in record.images:
        print(f"    - {image[:100]}")
    print(f"  Details:     {len(record.details)} chars")
    print(f"  Body text:   {len(record.body_text)} chars")
    print(f"\n{'='*70}\n")


def main():
    """Parse arguments and run the acquisition."""
    parser = argparse.ArgumentParser(
        description="Fetch and extract one product page for debugging",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_acquire.py --url https://shop.example.jp/items/123
  python scripts/run_acquire.py --url https://shop.example.jp/items/123 --attempts 2
        """,
    )

    parser.add_argument(
        "--url",
        required=True,
        help="Product page URL",
    )

    parser.add_argument(
        "--attempts",
        type=int,
        default=None,
        help="Direct-fetch attempts before the browser fallback (default: 5)",
    )

    args = parser.parse_args()

    asyncio.run(run_acquire(args.url, args.attempts))


if __name__ == "__main__":
    main()
