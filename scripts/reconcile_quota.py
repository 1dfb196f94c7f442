#!/usr/bin/env python3
"""
CLI utility to recompute storage_used from the documents table.

Usage:
    python scripts/reconcile_quota.py              # every registered user
    python scripts/reconcile_quota.py --user-id ID
"""

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.documents.services.quota import QuotaLedger
from vault_core.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Reconcile per-user storage counters")
    parser.add_argument("--user-id", default=None, help="Only reconcile this user")
    args = parser.parse_args()

    setup_logging()
    ledger = QuotaLedger()
    user_ids = [args.user_id] if args.user_id else ledger.list_user_ids()

    result = {user_id: ledger.reconcile(user_id) for user_id in user_ids}
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
