#!/usr/bin/env python3
"""
Bootstrap a deployment from the command line.

Checks the storage environment variables, then initializes the system
(default admin, site config, metadata round trip) against the configured
buckets. The same steps run behind POST /initialize.

Usage:
    python scripts/initialize_system.py            # initialize if needed
    python scripts/initialize_system.py --status   # only report
    python scripts/initialize_system.py --force    # re-run every step
    python scripts/initialize_system.py --reset    # delete bootstrap documents (non-production)

Requires:
    - .env file with WASABI_* variables (or WASABI_MOCK_MODE=true for a dry run)
"""

import asyncio
import json
import sys
from pathlib import Path

# Add the project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


async def run(args) -> int:
    from vipaccess.config.settings import Settings
    from vipaccess.core.bootstrap.coordinator import BootstrapCoordinator
    from vipaccess.core.documents.models import DEFAULT_ADMIN_EMAIL
    from vipaccess.core.documents.serialization import to_document
    from vipaccess.infrastructure.metadata.backends import DirectBackend
    from vipaccess.infrastructure.metadata.repositories import AuthRepository, SiteConfigRepository
    from vipaccess.infrastructure.metadata.store import MetadataStore
    from vipaccess.infrastructure.storage.client import create_storage_client
    from vipaccess.main import storage_config_from_settings

    settings = Settings()

    print("Checking environment variables...")
    missing = settings.validate_required_fields()
    if missing:
        print("ERROR: Missing required environment variables:")
        for name in missing:
            print(f"  - {name}")
        print("\nSet them in .env or the process environment.")
        return 1
    print("Environment OK\n")

    storage = create_storage_client(
        config=storage_config_from_settings(settings),
        mock_mode=settings.wasabi_mock_mode,
    )
    store = MetadataStore(DirectBackend(storage, settings.wasabi_metadata_bucket_name))
    bootstrap = BootstrapCoordinator(
        store,
        AuthRepository(store),
        SiteConfigRepository(store),
        is_production=settings.is_production,
    )

    if args.reset:
        await bootstrap.reset_system()
        print("System reset. Run again without --reset to initialize.")
        return 0

    if args.status:
        status = await bootstrap.get_status()
        print(f"State: {(await bootstrap.state()).value}")
        print(json.dumps(to_document(status), indent=2))
        return 0

    if args.force:
        await bootstrap.initialize_system()
        ran = True
    else:
        ran = await bootstrap.ensure_initialized()

    if ran:
        print("System initialized.")
        print(f"Log in with: {DEFAULT_ADMIN_EMAIL} (change the default password)")
    else:
        print("System already initialized; nothing to do.")

    status = await bootstrap.get_status()
    print(json.dumps(to_document(status), indent=2))
    return 0


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Initialize the VipAccess metadata bucket')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--status', action='store_true', help='Report bootstrap status only')
    group.add_argument('--force', action='store_true', help='Re-run every bootstrap step')
    group.add_argument('--reset', action='store_true', help='Delete bootstrap documents (not in production)')
    args = parser.parse_args()

    try:
        exit_code = asyncio.run(run(args))
    except Exception as e:
        print(f"ERROR: {e}")
        exit_code = 1

    sys.exit(exit_code)


if __name__ == '__main__':
    main()
