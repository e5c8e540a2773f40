#!/usr/bin/env python3
"""
Bulk Import Script

Pushes customer, product and order rows to the import endpoints of one
tenant. Rows are read from JSON (a list, or an object holding the list
under the entity name), NDJSON or CSV files and sent in batches.

Usage:
    python bulk_import.py --api-key <key> --customers customers.csv
    python bulk_import.py --api-key <key> --products products.json --orders orders.ndjson
    python bulk_import.py --api-key <key> --orders orders.csv --batch-size 200 --dry-run
"""

import argparse
import csv
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Dict, Iterator, List

import requests

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Import order matters: orders reference customers by email and products by name.
IMPORT_ORDER = ['customers', 'products', 'orders']


class BulkImportClient:
    """Client for the /api/v1/<entity>/import endpoints."""

    def __init__(self, api_key: str, api_base_url: str = "http://localhost:8000", timeout: int = 120):
        self.api_base_url = api_base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'X-API-Key': api_key,
            'Content-Type': 'application/json',
        })

    def import_batch(self, entity: str, rows: List[Dict]) -> Dict:
        """Send one batch and return the import summary."""
        url = f"{self.api_base_url}/api/v1/{entity}/import"
        while True:
            response = self.session.post(url, json={entity: rows}, timeout=self.timeout)
            if response.status_code == 429:
                retry_after = int(response.headers.get('Retry-After', '60'))
                logger.warning(f"Rate limited on {entity} import, retrying in {retry_after}s")
                time.sleep(retry_after)
                continue
            response.raise_for_status()
            return response.json()


def read_rows(filepath: str) -> List[Dict]:
    """Read rows from a .json, .ndjson/.jsonl or .csv file."""
    path = Path(filepath)
    if not path.exists():
        raise ValueError(f"File not found: {filepath}")

    suffix = path.suffix.lower()
    with open(path, 'r', encoding='utf-8') as f:
        if suffix == '.csv':
            return [
                {key: value for key, value in row.items() if value not in (None, '')}
                for row in csv.DictReader(f)
            ]
        if suffix in ('.ndjson', '.jsonl'):
            return [json.loads(line) for line in f if line.strip()]
        data = json.load(f)

    if isinstance(data, dict):
        # {"customers": [...]} as produced by an export
        for value in data.values():
            if isinstance(value, list):
                return value
        raise ValueError(f"No row list found in {filepath}")
    return data


def batched(rows: List[Dict], size: int) -> Iterator[List[Dict]]:
    for start in range(0, len(rows), size):
        yield rows[start:start + size]


def import_file(client: BulkImportClient, entity: str, filepath: str,
                batch_size: int, dry_run: bool = False) -> Dict:
    """Import one file in batches and return the combined summary."""
    results = {
        'entity': entity,
        'file': os.path.basename(filepath),
        'rows': 0,
        'success': 0,
        'failed': 0,
        'errors': []
    }

    rows = read_rows(filepath)
    results['rows'] = len(rows)

    if dry_run:
        logger.info(f"[DRY RUN] Would import {len(rows)} {entity} rows from {filepath} "
                    f"in batches of {batch_size}")
        return results

    for batch_num, batch in enumerate(batched(rows, batch_size), 1):
        try:
            summary = client.import_batch(entity, batch)
            results['success'] += summary.get('successCount', 0)
            results['failed'] += summary.get('failureCount', 0)
            results['errors'].extend(summary.get('errors', []))
            logger.info(f"{entity} batch {batch_num}: {summary.get('message')}")
        except requests.RequestException as e:
            results['failed'] += len(batch)
            error_msg = f"Batch {batch_num} of {filepath} failed: {e}"
            results['errors'].append(error_msg)
            logger.error(error_msg)

    return results


def main():
    """Main function for bulk import."""
    parser = argparse.ArgumentParser(description='Bulk import script')

    parser.add_argument('--api-key', default=os.environ.get('BREWDESK_API_KEY'),
                        help='Tenant API key (or BREWDESK_API_KEY)')
    parser.add_argument('--api-url', default='http://localhost:8000', help='API base URL')
    parser.add_argument('--customers', help='Customer rows file')
    parser.add_argument('--products', help='Product rows file')
    parser.add_argument('--orders', help='Order rows file')
    parser.add_argument('--batch-size', type=int, default=500, help='Rows per request (default: 500)')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be imported without importing')
    parser.add_argument('--verbose', action='store_true', help='Verbose output')

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.api_key:
        parser.error('an API key is required (--api-key or BREWDESK_API_KEY)')

    files = {entity: getattr(args, entity) for entity in IMPORT_ORDER if getattr(args, entity)}
    if not files:
        parser.error('nothing to import: pass --customers, --products and/or --orders')

    client = BulkImportClient(args.api_key, args.api_url)
    start_time = time.time()
    all_results = []

    for entity, filepath in files.items():
        logger.info(f"Importing {entity} from {filepath}")
        all_results.append(import_file(client, entity, filepath, args.batch_size, args.dry_run))

    duration = time.time() - start_time

    logger.info("=" * 60)
    logger.info("BULK IMPORT SUMMARY")
    logger.info("=" * 60)
    for result in all_results:
        logger.info(f"{result['entity']}: {result['rows']} rows, "
                    f"{result['success']} imported, {result['failed']} failed")
    logger.info(f"Processing time: {duration:.2f} seconds")

    all_errors = [error for result in all_results for error in result['errors']]
    if all_errors:
        logger.error(f"Errors encountered ({len(all_errors)}):")
        for error in all_errors:
            logger.error(f"  {error}")
        sys.exit(1)


if __name__ == '__main__':
    main()
