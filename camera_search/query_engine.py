"""
Query engine module.
Evaluates a FilterSpec against the corpus snapshot, then builds facet counts
and summary statistics for the filtered set.
"""

import math  # half-up rounding for averages
import random  # sampler for featured products
import time  # measure query latency
from collections import Counter  # facet counting
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np  # megapixel statistics

# Import project modules for data structures and components
from .config import RANDOM_PRODUCTS_DEFAULT, TOP_CATEGORIES_LIMIT
from .corpus import Corpus
from .models import (
	EnrichedRecord,
	FilterOption,
	FilterSpec,
	MegapixelFilter,
	SearchResult,
	SearchStatistics,
)
from .normalizer import extract_year

# Import loguru for console logging
from loguru import logger  # simple structured logger


Predicate = Callable[[EnrichedRecord], bool]

TEXT_OPERATORS = ('contains', 'exact', 'startsWith', 'endsWith')
MEGAPIXEL_OPERATORS = ('equals', 'greater', 'less', 'between')
SENSOR_OPERATORS = ('contains', 'exact')

FACET_NAMES = ('categories', 'megapixels', 'sensor_sizes', 'sensor_types', 'eras', 'device_types', 'features')


def megapixel_label(value: float) -> str:
	return f"{value:g}MP"


def round_half_up(value: float, digits: int = 1) -> float:
	"""Round with halves going up (12.25 -> 12.3)."""
	scale = 10 ** digits
	return math.floor(value * scale + 0.5) / scale


class QueryEngine:
	"""
	Filtering and aggregation over a Corpus.
	Every present clause of a FilterSpec becomes an independent predicate and a
	record is kept only when all of them hold. Records are never modified;
	each call builds its own result structures.
	"""

	def __init__(self, corpus: Corpus):
		self.corpus = corpus  # shared, read-only snapshot source

	def search(self, spec: Optional[FilterSpec] = None) -> SearchResult:
		"""Apply all present clauses (logical AND) and assemble products, facets and statistics."""
		spec = spec or FilterSpec()
		start = time.time()
		all_products = self.corpus.all()
		predicates = self._build_predicates(spec)
		logger.debug(f"[QueryEngine] Evaluating {len(predicates)} clauses over {len(all_products)} products")

		products: List[EnrichedRecord] = []
		for record in all_products:
			rejected_by = next((name for name, predicate in predicates if not predicate(record)), None)
			if rejected_by is not None:
				logger.trace(f"[QueryEngine] Filtered out by {rejected_by} | product={record.name} ({record.id})")
				continue
			products.append(record)

		result = SearchResult(
			products=products,
			total=len(products),
			filters=self.generate_filter_options(products),
			statistics=self.generate_statistics(all_products, products),
		)
		elapsed_ms = (time.time() - start) * 1000
		logger.info(f"[QueryEngine] {result.total} of {len(all_products)} products matched in {elapsed_ms:.2f} ms")
		return result

	def filter_options(self) -> Dict[str, List[FilterOption]]:
		"""Facets over the unfiltered corpus, for populating filter controls."""
		return self.search(FilterSpec()).filters

	def get_product(self, product_id: str) -> Optional[EnrichedRecord]:
		return self.corpus.get(product_id)

	def statistics(self) -> SearchStatistics:
		products = self.corpus.all()
		return self.generate_statistics(products, products)

	def random_products(self, count: int = RANDOM_PRODUCTS_DEFAULT, seed: Optional[int] = None) -> List[EnrichedRecord]:
		"""A random sample of products (e.g. for a landing page)."""
		products = list(self.corpus.all())
		rng = random.Random(seed)
		return rng.sample(products, min(max(count, 0), len(products)))

	# ------------------------------------------------------------------ clauses

	def _build_predicates(self, spec: FilterSpec) -> List[tuple]:
		ops = spec.operators
		predicates = []
		if spec.search and spec.search.strip():
			predicates.append(('search', self._text_predicate(spec.search, ops.text_operator)))
		if spec.categories:
			wanted = set(spec.categories)
			predicates.append(('categories', lambda r: r.category in wanted))
		if spec.device_types:
			wanted_devices = set(spec.device_types)
			predicates.append(('device_types', lambda r: r.smart_specs.device_type in wanted_devices))
		if spec.eras:
			wanted_eras = set(spec.eras)
			predicates.append(('eras', lambda r: r.smart_specs.era in wanted_eras))
		if spec.megapixels is not None and not spec.megapixels.is_empty():
			predicates.append(('megapixels', self._megapixel_predicate(spec.megapixels, ops.megapixels_operator)))
		if spec.sensor_sizes:
			predicates.append(('sensor_sizes', self._sensor_size_predicate(spec.sensor_sizes, ops.sensor_operator)))
		wanted_types = [t.lower() for t in spec.sensor_types if t]
		if wanted_types:
			# substring match, so "cmos" also finds "stacked cmos"
			predicates.append(('sensor_types', lambda r: any(w in t for t in r.smart_specs.sensor_type for w in wanted_types)))
		if spec.search_tags:
			wanted_tags = set(spec.search_tags)
			predicates.append(('search_tags', lambda r: any(t in wanted_tags for t in r.smart_specs.search_tags)))
		if spec.focal_length_min is not None or spec.focal_length_max is not None:
			predicates.append(('focal_length', self._focal_length_predicate(spec.focal_length_min, spec.focal_length_max)))
		if spec.aperture_min is not None or spec.aperture_max is not None:
			predicates.append(('aperture', self._aperture_predicate(spec.aperture_min, spec.aperture_max)))
		if spec.has_zoom is not None:
			expected = bool(spec.has_zoom)
			predicates.append(('has_zoom', lambda r: r.has_zoom() == expected))
		if spec.marketed_after or spec.marketed_before:
			predicates.append(('marketed', self._marketed_predicate(spec.marketed_after, spec.marketed_before)))
		if spec.data_quality:
			wanted_quality = set(spec.data_quality)
			predicates.append(('data_quality', lambda r: r.data_quality in wanted_quality))
		return predicates

	@staticmethod
	def _text_predicate(term: str, operator: str) -> Predicate:
		term = term.strip().lower()

		def matches(record: EnrichedRecord) -> bool:
			name = (record.name or '').lower()
			if operator == 'exact':
				return name == term or term in record.searchable_text
			if operator == 'startsWith':
				return name.startswith(term)
			if operator == 'endsWith':
				return name.endswith(term)
			return term in record.searchable_text or term in name

		return matches

	@staticmethod
	def _megapixel_predicate(mp_filter: MegapixelFilter, operator: str) -> Predicate:
		values = set(mp_filter.values)

		def matches(record: EnrichedRecord) -> bool:
			mp = record.smart_specs.megapixels.primary
			if mp is None:
				return False
			if mp_filter.exact is not None and operator != 'between':
				if operator == 'greater':
					return mp > mp_filter.exact
				if operator == 'less':
					return mp < mp_filter.exact
				return mp == mp_filter.exact
			# "between" (or no exact value): bounds and value set must all hold
			if mp_filter.min is not None and mp < mp_filter.min:
				return False
			if mp_filter.max is not None and mp > mp_filter.max:
				return False
			if values and mp not in values:
				return False
			return True

		return matches

	@staticmethod
	def _sensor_size_predicate(sizes: Sequence[str], operator: str) -> Predicate:
		wanted = [s for s in sizes if s]
		lowered = [s.lower() for s in wanted]

		def matches(record: EnrichedRecord) -> bool:
			sensor = record.smart_specs.sensor_size
			if sensor.primary is None:
				return False
			if operator == 'exact':
				return sensor.primary in wanted
			primary = sensor.primary.lower()
			detected = [d.lower() for d in sensor.detected]
			return any(w in primary or any(w in d for d in detected) for w in lowered)

		return matches

	@staticmethod
	def _focal_length_predicate(low: Optional[float], high: Optional[float]) -> Predicate:
		def matches(record: EnrichedRecord) -> bool:
			for lens in record.smart_specs.lens_specs.focal_length:
				lens_min, lens_max = lens.effective_range()
				if low is not None and lens_max < low:
					continue
				if high is not None and lens_min > high:
					continue
				return True
			return False

		return matches

	@staticmethod
	def _aperture_predicate(low: Optional[float], high: Optional[float]) -> Predicate:
		def matches(record: EnrichedRecord) -> bool:
			for aperture in record.smart_specs.lens_specs.aperture:
				wide, tele = aperture.effective_range()
				if wide is None or tele is None:
					continue
				if low is not None and max(wide, tele) < low:
					continue
				if high is not None and min(wide, tele) > high:
					continue
				return True
			return False

		return matches

	@staticmethod
	def _marketed_predicate(after: Optional[str], before: Optional[str]) -> Predicate:
		after_year = extract_year(after)
		before_year = extract_year(before)

		def matches(record: EnrichedRecord) -> bool:
			year = extract_year(record.marketed_date)
			if year is None:
				return False
			if after_year is not None and year < after_year:
				return False
			if before_year is not None and year > before_year:
				return False
			return True

		return matches

	# ------------------------------------------------------------------ facets & statistics

	def generate_filter_options(self, products: Sequence[EnrichedRecord]) -> Dict[str, List[FilterOption]]:
		megapixels = [p.smart_specs.megapixels.primary for p in products if p.smart_specs.megapixels.primary is not None]
		facets = {
			'categories': self._options(p.category for p in products),
			'megapixels': self._megapixel_options(megapixels),
			'sensor_sizes': self._options(p.smart_specs.sensor_size.primary for p in products),
			'sensor_types': self._options(t for p in products for t in p.smart_specs.sensor_type),
			'eras': self._options(p.smart_specs.era for p in products),
			'device_types': self._options(p.smart_specs.device_type for p in products),
			'features': self._options(t for p in products for t in p.smart_specs.search_tags),
		}
		return {name: facets[name] for name in FACET_NAMES}

	@staticmethod
	def _options(values: Iterable) -> List[FilterOption]:
		counts = Counter(v for v in values if v is not None and v != '')
		ordered = sorted(counts.items(), key=lambda item: (-item[1], str(item[0])))
		return [FilterOption(value=value, label=str(value), count=count) for value, count in ordered]

	@staticmethod
	def _megapixel_options(values: Iterable[float]) -> List[FilterOption]:
		counts = Counter(values)
		return [
			FilterOption(value=mp, label=megapixel_label(mp), count=count)
			for mp, count in sorted(counts.items(), key=lambda item: -item[0])
		]

	def generate_statistics(
		self,
		all_products: Sequence[EnrichedRecord],
		filtered: Sequence[EnrichedRecord],
	) -> SearchStatistics:
		megapixels = np.array(
			[p.smart_specs.megapixels.primary for p in filtered if p.smart_specs.megapixels.primary is not None],
			dtype=float,
		)
		if megapixels.size:
			average = round_half_up(float(megapixels.mean()))
			mp_range = {'min': float(megapixels.min()), 'max': float(megapixels.max())}
		else:
			average = 0.0
			mp_range = {'min': 0.0, 'max': 0.0}
		return SearchStatistics(
			total_products=len(all_products),
			filtered_count=len(filtered),
			average_megapixels=average,
			megapixel_range=mp_range,
			top_categories=self._options(p.category for p in filtered)[:TOP_CATEGORIES_LIMIT],
		)
