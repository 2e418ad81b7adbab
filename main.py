#!/usr/bin/env python3
"""Entry point for the Burn Relayer service.

Runs the relay loop in either production (ROFL) or local signing mode, or
audits the burn history with ``--scan``.
"""

import argparse
import asyncio
import logging
import os
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    # Request URLs are logged by the indexer client without the API key
    logging.getLogger("httpx").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

from burn_relayer.config import RelayerConfig
from burn_relayer.indexer_client import IndexerClient
from burn_relayer.relayer import BurnRelayer
from burn_relayer.scanner import scan_burns


async def scan(config: RelayerConfig) -> None:
    """Audit the burn history without submitting anything."""
    source = config.source_chain
    async with IndexerClient(
        api_key=source.api_key,
        endpoint=source.indexer_api_base,
        proxy=source.proxy,
        timeout=config.monitoring.request_timeout
    ) as client:
        await scan_burns(
            client,
            contract=source.contract_address,
            contract_height=source.contract_height,
            burn_address=source.burn_address,
            page_size=config.monitoring.page_size
        )


async def main() -> None:
    """Main entry point for the Burn Relayer.

    Raises:
        SystemExit: On configuration or runtime errors
    """
    parser = argparse.ArgumentParser(
        description="Burn Relayer - record ERC-20 burns on Oasis Sapphire",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  NETWORK              - Source network preset (mainnet, kovan)
  ETHERSCAN_API_KEY    - Indexer API key
  HTTP_PROXY           - Optional proxy for indexer requests
  TARGET_NETWORK       - Destination network (default: sapphire-testnet)
  CONTRACT_ADDRESS     - Claims contract on Sapphire
  LOCAL_PRIVATE_KEY    - Private key for local mode (required with --local)
  COOLDOWN_INTERVAL    - Seconds between iterations (default: 60)
  PAGE_SIZE            - Indexer page size (default: 500)
  AMOUNT_SCALE         - Source/destination amount divisor (default: 100)
  LOG_LEVEL            - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--local",
        action="store_true",
        default=False,
        help="Sign transactions with LOCAL_PRIVATE_KEY instead of ROFL"
    )
    parser.add_argument(
        "--scan",
        action="store_true",
        default=False,
        help="Only list burn transactions from the indexer, submit nothing"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    logger.info(f"Starting in {'LOCAL' if args.local else 'ROFL'} mode{' (scan only)' if args.scan else ''}")

    relayer: BurnRelayer | None = None
    try:
        config = RelayerConfig.from_env(local_mode=args.local)
        config.log_config()

        if args.scan:
            await scan(config)
            return

        relayer = BurnRelayer.create(config)
        await relayer.run()

    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Required environment variables:")
        logger.error("  - NETWORK: Source network preset")
        logger.error("  - ETHERSCAN_API_KEY: Indexer API key")
        logger.error("  - CONTRACT_ADDRESS: Claims contract on Sapphire")
        if args.local:
            logger.error("  - LOCAL_PRIVATE_KEY: Private key for signing transactions")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
        if relayer:
            relayer.stop()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
