"""
Data loading and persistence module.
Loads scraped products from JSON/JSONL and saves/loads the enriched corpus.
"""

# Standard libs for JSON parsing, typing, timestamps and paths
import json  # read/write JSON documents and JSON lines
import os  # atomic file replace
import tempfile  # temporary file next to the target
from dataclasses import asdict  # summary serialization
from datetime import datetime, timezone  # document timestamp
from typing import Any, Dict, Iterable, List, Optional  # type hints
from pathlib import Path  # filesystem-safe paths

# Import our data classes used across the project
from .models import EnrichedRecord, RawProduct  # structured records
from .enrichment import EnrichmentSummary  # batch statistics written with the corpus

# Console logging
from loguru import logger  # console logger


class DataLoader:
	"""
	Handles loading raw scraped products and reading/writing the enriched corpus.
	"""

	# Scraper field names (camelCase) -> our snake_case names
	FIELD_ALIASES = {
		'categoryCode': 'category_code',
		'marketedDate': 'marketed_date',
		'productUrl': 'product_url',
		'releaseDate': 'release_date',
		'discontinuedDate': 'discontinued_date',
		'isDiscontinued': 'is_discontinued',
		'scrapedAt': 'scraped_at',
		'dataQuality': 'data_quality',
	}

	def __init__(self):
		"""Initialize the loader and expose the alias mapping."""
		self.field_aliases = self.FIELD_ALIASES  # store mapping for reuse

	def load_raw_products(self, filepath: str) -> List[RawProduct]:
		"""
		Load scraped products from a JSON Lines file (one product per line) or a JSON
		document (a list, or an object with a "products" list).
		Returns a list of RawProduct objects; malformed entries are skipped.
		"""
		filepath = Path(filepath)  # normalize path

		# Validate the file presence early to give clear error messages
		if not filepath.exists():
			raise FileNotFoundError(f"Product data file not found: {filepath}")

		logger.info(f"[DataLoader] Loading raw products from {filepath}...")  # log action

		if filepath.suffix.lower() == '.jsonl':
			entries = list(self._read_jsonl(filepath))  # line-by-line for large datasets
		else:
			entries = list(enumerate(self._read_json_products(filepath), 1))  # whole document

		products = []  # accumulator for parsed RawProduct objects
		for position, data in entries:
			try:
				products.append(self._parse_raw_product(data))  # convert dict -> RawProduct
			except (KeyError, TypeError, ValueError, AttributeError) as e:
				logger.warning(f"[DataLoader] Skipping malformed product at entry {position}: {e}")  # unusable entry
				continue  # move on

		logger.info(f"[DataLoader] Successfully loaded {len(products)} raw products.")  # summary
		return products  # return list

	def _read_jsonl(self, filepath: Path):
		"""Yield (line number, dict) pairs, skipping blank and invalid lines."""
		with open(filepath, 'r', encoding='utf-8') as f:
			for line_num, line in enumerate(f, 1):  # keep track of line number for diagnostics
				if not line.strip():  # tolerate trailing blank lines
					continue
				try:
					yield line_num, json.loads(line.strip())  # parse JSON object per line
				except json.JSONDecodeError as e:
					logger.warning(f"[DataLoader] Skipping invalid JSON at line {line_num}: {e}")  # malformed line
					continue  # move on

	def _read_json_products(self, filepath: Path) -> List[Dict[str, Any]]:
		"""Read a JSON document and return its product list."""
		with open(filepath, 'r', encoding='utf-8') as f:
			try:
				document = json.load(f)  # whole document
			except json.JSONDecodeError as e:
				raise ValueError(f"Invalid JSON in {filepath}: {e}") from e
		if isinstance(document, dict):
			document = document.get('products', [])  # scraper output wraps the list
		if not isinstance(document, list):
			raise ValueError(f"Expected a product list in {filepath}")
		return document

	def _parse_raw_product(self, data: Dict[str, Any]) -> RawProduct:
		"""
		Convert a raw dictionary (from file) into a RawProduct.
		Accepts both the scraper's camelCase keys and snake_case keys.
		"""
		if not isinstance(data, dict):
			raise TypeError(f"product entry must be an object, got {type(data).__name__}")
		normalized = {self.field_aliases.get(k, k): v for k, v in data.items()}  # unify key style
		if not normalized.get('id'):
			raise ValueError("product has no id")

		# Free-form maps may arrive with non-string values; keep only text
		normalized['specifications'] = self._string_map(normalized.get('specifications'))
		normalized['names'] = self._string_map(normalized.get('names'))
		normalized['images'] = [str(url) for url in (normalized.get('images') or []) if url]
		return RawProduct.from_dict(normalized)

	def _string_map(self, value) -> Dict[str, str]:
		"""Keep string-keyed, non-empty textual entries of a mapping."""
		if not isinstance(value, dict):  # missing or wrong shape
			return {}
		return {str(k): str(v).strip() for k, v in value.items() if v is not None and str(v).strip()}

	def save_enriched(
		self,
		records: Iterable[EnrichedRecord],
		filepath: str,
		summary: Optional[EnrichmentSummary] = None,
		source_file: Optional[str] = None,
	) -> Path:
		"""
		Persist the enriched corpus as a single JSON document.
		Written to a temporary file first and moved into place, so readers never see a partial file.
		"""
		filepath = Path(filepath)  # coerce to Path
		filepath.parent.mkdir(parents=True, exist_ok=True)  # ensure directory exists
		records = list(records)  # materialize once
		document = {
			'created_at': datetime.now(timezone.utc).isoformat(),  # when this batch ran
			'source_file': source_file,  # raw input it came from
			'total_products': len(records),  # quick count without parsing products
			'statistics': asdict(summary) if summary else None,  # batch summary
			'products': [r.to_dict() for r in records],  # full records
		}
		fd, tmp_path = tempfile.mkstemp(dir=str(filepath.parent), prefix=filepath.name, suffix='.tmp')
		try:
			with os.fdopen(fd, 'w', encoding='utf-8') as f:
				json.dump(document, f, ensure_ascii=False, indent=2)
			os.replace(tmp_path, filepath)  # atomic on the same filesystem
		except BaseException:
			Path(tmp_path).unlink(missing_ok=True)  # do not leave partial files around
			raise
		logger.info(f"[DataLoader] Saved {len(records)} enriched products to {filepath}")
		return filepath

	def load_enriched(self, filepath: str) -> List[EnrichedRecord]:
		"""
		Load an enriched corpus written by `save_enriched`.
		Raises FileNotFoundError / ValueError so callers can keep their previous data.
		"""
		filepath = Path(filepath)  # normalize path
		if not filepath.exists():
			raise FileNotFoundError(f"Enriched data file not found: {filepath}")

		products = self._read_json_products(filepath)  # list of record dicts
		try:
			records = [EnrichedRecord.from_dict(item) for item in products]
		except (KeyError, TypeError, AttributeError) as e:
			raise ValueError(f"Malformed enriched record in {filepath}: {e}") from e

		logger.info(f"[DataLoader] Loaded {len(records)} enriched products from {filepath}")
		return records

	def get_all_categories(self, products: Iterable[RawProduct]) -> List[str]:
		"""Return a sorted list of all unique category labels in the dataset."""
		return sorted({p.category for p in products if p.category})  # sorted for stable display
