"""
Enrich the scraped catalog and persist the result.

This script:
1) Loads scraped products from data/canon-products-scraped.json (or RAW_DATA_PATH)
2) Runs the enrichment pipeline over every product
3) Summarizes what was extracted
4) Saves the enriched corpus to data/canon-products-smart.json (or ENRICHED_DATA_PATH)

Usage:
    python -m scripts.enrich_catalog [raw_path] [enriched_path]

The API picks up the new file on its next corpus reload (within the cache TTL).
"""

import sys  # command-line arguments and log sink
import time  # measure step timings
from pathlib import Path  # filesystem-safe paths

from loguru import logger  # console logging

from camera_search import config  # default paths and log level
from camera_search.data_loader import DataLoader  # raw input and persistence
from camera_search.enrichment import enrich_all, summarize_enrichment  # enrichment core


def main(argv=None):
	argv = sys.argv[1:] if argv is None else argv
	logger.remove()
	logger.add(sys.stderr, level=config.LOG_LEVEL)

	# Headline banner for visibility in console
	logger.info("=" * 60)
	logger.info("Enrich Camera Catalog")
	logger.info("=" * 60)

	raw_path = Path(argv[0]) if len(argv) > 0 else Path(config.RAW_DATA_PATH)  # input dataset
	enriched_path = Path(argv[1]) if len(argv) > 1 else Path(config.ENRICHED_DATA_PATH)  # output file

	# 1) Load data
	logger.info("[1/4] Loading scraped products...")
	loader = DataLoader()  # loader instance
	products = loader.load_raw_products(str(raw_path))  # read dataset
	logger.info(f"[OK] Loaded {len(products)} products across {len(loader.get_all_categories(products))} categories")

	# 2) Enrich
	logger.info("[2/4] Enriching products...")
	t0 = time.time()  # start timer
	records = enrich_all(products)  # pure per-record transform
	logger.info(f"[OK] Enriched {len(records)} products in {time.time() - t0:.2f}s")

	# 3) Summarize
	logger.info("[3/4] Summarizing extraction coverage...")
	summary = summarize_enrichment(records)
	logger.info(f"   Products with megapixels: {summary.megapixel_products}")
	logger.info(f"   Products with sensor info: {summary.sensor_products}")
	logger.info(f"   Products with lens specs: {summary.lens_products}")
	logger.info(f"   Categories: {', '.join(summary.categories)}")
	top_sensors = sorted(summary.sensor_size_distribution.items(), key=lambda item: -item[1])[:5]
	for sensor, count in top_sensors:
		logger.info(f"   {sensor}: {count} products")

	# 4) Save
	logger.info("[4/4] Saving enriched corpus...")
	loader.save_enriched(records, str(enriched_path), summary=summary, source_file=raw_path.name)
	logger.info(f"[OK] Saved to {enriched_path}")

	logger.info("=" * 60)
	return 0


if __name__ == '__main__':
	sys.exit(main())  # invoke enrichment run
