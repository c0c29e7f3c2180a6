"""Protean Engine runner for the Reviews domain.

Starts the Engine that consumes Catalogue and Ordering events asynchronously:
- ProductCreated makes a product reviewable
- OrderDelivered records verified purchases

Usage:
    python src/server.py
    python src/server.py --env production
"""

import argparse
import asyncio
import os

from protean.server.engine import Engine


def _get_domain():
    """Import and initialize the reviews domain."""
    from reviews.domain import reviews

    reviews.init()
    return reviews


async def run():
    await Engine(_get_domain()).run()


def main():
    parser = argparse.ArgumentParser(description="ShopStream Reviews engine runner")
    parser.add_argument(
        "--env",
        help="Protean config environment (sets PROTEAN_ENV)",
    )
    args = parser.parse_args()

    if args.env:
        os.environ["PROTEAN_ENV"] = args.env

    asyncio.run(run())


if __name__ == "__main__":
    main()
