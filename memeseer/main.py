"""Entry point: scan one token and print the analysis as JSON."""

import argparse
import asyncio
import json
import random
import sys

from loguru import logger

from config.settings import settings
from memeseer.exceptions import InvalidAddressError
from memeseer.parsers.blockscout.client import BlockscoutClient
from memeseer.parsers.scanner import TokenScanner
from memeseer.utils.logger import setup_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Composite risk scan for an EVM token")
    parser.add_argument("address", help="Token contract address (0x + 40 hex)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    parser.add_argument("--seed", type=int, default=None, help="Seed for synthetic social metrics")
    return parser.parse_args(argv)


async def run(address: str, seed: int | None = None) -> dict:
    rng = random.Random(seed) if seed is not None else None
    async with BlockscoutClient() as gateway:
        scanner = TokenScanner(gateway, rng=rng)
        analysis = await scanner.scan(address)
    return analysis.to_dict()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logger(
        json_logs=args.json_logs or settings.json_logs,
        level=settings.log_level,
        log_file=settings.log_file,
    )

    try:
        result = asyncio.run(run(args.address, args.seed))
    except InvalidAddressError as e:
        logger.error(str(e))
        return 2

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
