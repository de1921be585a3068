#!/usr/bin/env python3
"""
Backfill script for the ai_documents.embedding_vector column.

Copies JSON-encoded embeddings into the pgvector column for rows ingested
before the native-vector strategy was enabled. Assumes the migration adding
embedding_vector and the match_ai_documents function has been applied.

Usage:
    python scripts/backfill_vector_column.py [--batch-size 5000] [--all]

Options:
    --batch-size: Rows converted per batch (default: 5000)
    --all: Keep running batches until no convertible rows remain
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from press_engine.core.config import get_settings
from press_engine.core.logging import get_logger
from press_engine.services.backfill import backfill_vector_column

logger = get_logger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Backfill ai_documents.embedding_vector")
    parser.add_argument("--batch-size", type=int, default=5000, help="Rows per batch")
    parser.add_argument("--all", action="store_true", help="Run batches until done")
    args = parser.parse_args()

    expected_dim = get_settings().EMBEDDING_DIM
    total = 0
    while True:
        stats = backfill_vector_column(batch_size=args.batch_size, expected_dim=expected_dim)
        total += stats["converted"]
        # Skipped rows stay unconverted, so stop once a batch makes no progress
        if not args.all or stats["converted"] == 0:
            break

    logger.info(f"Backfill complete: {total} rows converted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
