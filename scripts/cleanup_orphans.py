#!/usr/bin/env python3
"""
CLI utility to delete blobs left behind by failed deletions.

Usage:
    python scripts/cleanup_orphans.py --limit 500
"""

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.documents.services.cleanup import OrphanRegistry
from app.documents.services.storage import get_storage_backend
from vault_core.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Purge orphaned storage blobs")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of orphans to process",
    )
    args = parser.parse_args()

    setup_logging()
    result = OrphanRegistry().purge(get_storage_backend(), limit=args.limit)
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
