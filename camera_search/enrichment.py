"""
Enrichment pipeline.
Turns a RawProduct into an EnrichedRecord: builds the searchable text, runs
the Extractor for every field group, normalizes sensor labels, classifies
device type and era, and infers feature tags.
"""

from collections import Counter  # distributions for the batch summary
import copy  # records own a copy of the raw product
from dataclasses import dataclass, field  # summary record
import math  # floor for megapixel buckets
from typing import Dict, Iterable, List, Optional

from loguru import logger  # console logging

from .config import PROGRESS_EVERY
from .extractor import Extractor
from .models import (
	DATA_QUALITY_LEVELS,
	EnrichedRecord,
	ExtractedField,
	LensSpecs,
	PhysicalSpecs,
	Provenance,
	RawProduct,
	SensorSize,
	SmartSpecs,
	VideoSpecs,
)
from .normalizer import (
	categorize_device,
	classify_video_resolution,
	determine_era,
	standardize_sensor_size,
	standardize_sensor_type,
)


# Category label fragments -> tag
CATEGORY_TAGS = (
	('digital', 'digital'),
	('film', 'film'),
	('dslr', 'dslr'),
	('compact', 'compact'),
)


def build_searchable_text(product: RawProduct) -> str:
	"""Lower-cased concatenation of name, description, spec values, regional names and marketed date."""
	parts = [
		product.name or '',
		product.description or '',
		' '.join(str(v) for v in (product.specifications or {}).values()),
		' '.join(str(v) for v in (product.names or {}).values()),
		product.marketed_date or '',
	]
	return ' '.join(parts).lower()


def generate_search_tags(product: RawProduct, searchable_text: str) -> List[str]:
	"""Feature flags from independent keyword checks; order is fixed so output is deterministic."""
	text = searchable_text or ''
	category = (product.category or '').lower()
	tags: List[str] = []

	def add(tag: str):
		if tag not in tags:
			tags.append(tag)

	for fragment, tag in CATEGORY_TAGS:
		if fragment in category:
			add(tag)

	if 'zoom' in text:
		add('zoom')
	if 'macro' in text:
		add('macro')
	if 'stabilization' in text or ('image' in text and 'stabilizer' in text):
		add('stabilization')
	if 'touch' in text and 'screen' in text:
		add('touchscreen')
	if 'wifi' in text or 'wi-fi' in text or 'wireless' in text:
		add('wifi')
	if 'bluetooth' in text:
		add('bluetooth')
	if '4k' in text:
		add('4k')
	if 'full hd' in text or '1080' in text:
		add('full-hd')
	return tags


class EnrichmentBuilder:
	"""Builds EnrichedRecords; holds only the (immutable) extractor configuration."""

	def __init__(self, extractor: Optional[Extractor] = None):
		self.extractor = extractor or Extractor()

	def build(self, product: RawProduct) -> EnrichedRecord:
		searchable_text = build_searchable_text(product)
		specs = {str(k): v for k, v in (product.specifications or {}).items() if isinstance(v, str)}
		fields = self.extractor.extract_all(searchable_text, specs)

		smart = SmartSpecs(
			megapixels=self._megapixels(fields['megapixels']),
			sensor_size=self._sensor_size(fields['sensor_size']),
			sensor_type=_unique(standardize_sensor_type(v) for v in fields['sensor_type'].values),
			lens_specs=LensSpecs(
				focal_length=list(fields['focal_length'].values),
				aperture=list(fields['aperture'].values),
			),
			iso_range=list(fields['iso'].values),
			video_specs=self._video(fields['video_resolution']),
			physical_specs=PhysicalSpecs(
				dimensions=fields['dimensions'].primary,
				weight=fields['weight'].primary,
			),
			device_type=categorize_device(product.category, product.name),
			era=determine_era(product.marketed_date),
			search_tags=generate_search_tags(product, searchable_text),
		)
		quality = product.data_quality if product.data_quality in DATA_QUALITY_LEVELS else 'medium'
		return EnrichedRecord(
			product=copy.deepcopy(product),
			smart_specs=smart,
			searchable_text=searchable_text,
			data_quality=quality,
		)

	@staticmethod
	def _megapixels(extracted: ExtractedField) -> ExtractedField:
		# keep the rule's primary; list values largest first
		return ExtractedField(
			values=sorted(extracted.values, reverse=True),
			primary=extracted.primary,
			details=list(extracted.details),
		)

	@staticmethod
	def _sensor_size(extracted: ExtractedField) -> SensorSize:
		details = [
			Provenance(value=standardize_sensor_size(d.value), source=d.source, context=d.context, raw=d.raw)
			for d in extracted.details
		]
		primary = standardize_sensor_size(extracted.primary) if extracted.primary is not None else None
		return SensorSize(
			detected=_unique(d.value for d in details),
			primary=primary,
			details=details,
		)

	@staticmethod
	def _video(extracted: ExtractedField) -> VideoSpecs:
		formats = list(extracted.values)
		return VideoSpecs(max_resolution=classify_video_resolution(formats), formats=formats)


_default_builder = EnrichmentBuilder()


def build(product: RawProduct) -> EnrichedRecord:
	"""Enrich one product with the default rule table."""
	return _default_builder.build(product)


def enrich_all(products: Iterable[RawProduct], builder: Optional[EnrichmentBuilder] = None) -> List[EnrichedRecord]:
	"""
	Batch entry point: enrich every product, preserving input order.
	A product that cannot be processed is kept as a bare record instead of aborting the batch.
	"""
	builder = builder or _default_builder
	products = list(products)
	records: List[EnrichedRecord] = []
	logger.info(f"[Enrichment] Processing {len(products)} products...")
	for i, product in enumerate(products, 1):
		try:
			records.append(builder.build(product))
		except Exception as e:
			logger.warning(f"[Enrichment] Failed to enrich product {product.id}: {e}")
			records.append(EnrichedRecord(
				product=product,
				smart_specs=SmartSpecs(),
				searchable_text=build_searchable_text(product),
				data_quality='failed',
			))
		if i % PROGRESS_EVERY == 0:
			logger.info(f"[Enrichment] Processed {i}/{len(products)} products...")
	logger.info(f"[Enrichment] Enriched {len(records)} products")
	return records


@dataclass
class EnrichmentSummary:
	total_products: int = 0
	megapixel_products: int = 0
	sensor_products: int = 0
	lens_products: int = 0
	categories: List[str] = field(default_factory=list)
	eras: List[str] = field(default_factory=list)
	megapixel_distribution: Dict[int, int] = field(default_factory=dict)  # floored MP -> count
	sensor_size_distribution: Dict[str, int] = field(default_factory=dict)


def summarize_enrichment(records: Iterable[EnrichedRecord]) -> EnrichmentSummary:
	summary = EnrichmentSummary()
	mp_counts: Counter = Counter()
	sensor_counts: Counter = Counter()
	for record in records:
		smart = record.smart_specs
		summary.total_products += 1
		if smart.megapixels.primary is not None:
			summary.megapixel_products += 1
			mp_counts[math.floor(smart.megapixels.primary)] += 1
		if smart.sensor_size.primary is not None:
			summary.sensor_products += 1
			sensor_counts[smart.sensor_size.primary] += 1
		if smart.lens_specs.focal_length:
			summary.lens_products += 1
		if record.category not in summary.categories:
			summary.categories.append(record.category)
		if smart.era not in summary.eras:
			summary.eras.append(smart.era)
	summary.megapixel_distribution = dict(mp_counts)
	summary.sensor_size_distribution = dict(sensor_counts)
	return summary


def _unique(items: Iterable[str]) -> List[str]:
	seen: List[str] = []
	for item in items:
		if item and item not in seen:
			seen.append(item)
	return seen
