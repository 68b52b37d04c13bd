"""
Data models for the Camera Catalog Search engine.
Defines the raw scraped product, the enriched record built from it, and the
filter/result structures used by the query engine.
"""

# Import dataclass helpers to define simple "record-like" classes without boilerplate
from dataclasses import dataclass, field, asdict  # auto-generates __init__, __repr__, etc.
# Import typing helpers for precise and self-documenting types
from typing import Any, Dict, List, Optional  # containers and optional values


DATA_QUALITY_LEVELS = ('high', 'medium', 'low', 'failed')  # allowed data quality labels


@dataclass
class RawProduct:
	"""
	A single product as produced by the scraping collaborator.
	Treated as immutable input: enrichment copies it and never writes back.
	"""
	id: str  # unique identifier of the product
	name: str  # display name as scraped
	category: str = ''  # category label (e.g., "Digital SLR Cameras")
	category_code: str = ''  # category code from the catalog URL
	images: List[str] = field(default_factory=list)  # image URLs
	description: str = ''  # free-text description
	specifications: Dict[str, str] = field(default_factory=dict)  # spec label -> spec value
	marketed_date: Optional[str] = None  # e.g. "Marketed November 1985"
	names: Dict[str, str] = field(default_factory=dict)  # regional names (japan/americas/europe)
	model: Optional[str] = None  # optional model code
	product_url: Optional[str] = None  # source page
	release_date: Optional[str] = None
	discontinued_date: Optional[str] = None
	is_discontinued: Optional[bool] = None
	scraped_at: Optional[str] = None  # ISO timestamp set by the scraper
	data_quality: str = 'medium'  # high | medium | low | failed

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'RawProduct':
		return cls(
			id=str(data['id']),
			name=data.get('name') or '',
			category=data.get('category') or '',
			category_code=data.get('category_code') or '',
			images=list(data.get('images') or []),
			description=data.get('description') or '',
			specifications=dict(data.get('specifications') or {}),
			marketed_date=data.get('marketed_date'),
			names=dict(data.get('names') or {}),
			model=data.get('model'),
			product_url=data.get('product_url'),
			release_date=data.get('release_date'),
			discontinued_date=data.get('discontinued_date'),
			is_discontinued=data.get('is_discontinued'),
			scraped_at=data.get('scraped_at'),
			data_quality=data.get('data_quality') or 'medium',
		)


@dataclass(frozen=True)
class Provenance:
	"""Where an extracted value came from: field key, literal match and a short surrounding snippet."""
	value: Any  # parsed (or canonical) value
	source: str  # "spec.<label>" or "searchable_text"
	context: str  # bounded snippet around the match
	raw: str  # literal matched text


@dataclass(frozen=True)
class ExtractedField:
	"""
	Candidates found for one field.
	`primary` is always a member of `values`, or None when nothing was found.
	"""
	values: List[Any] = field(default_factory=list)
	primary: Any = None
	details: List[Provenance] = field(default_factory=list)


@dataclass(frozen=True)
class SensorSize:
	detected: List[str] = field(default_factory=list)  # unique canonical tokens, encounter order
	primary: Optional[str] = None  # canonical token of the first match
	details: List[Provenance] = field(default_factory=list)


@dataclass(frozen=True)
class FocalLength:
	"""A focal length entry: either a prime (`value`) or a zoom (`min`..`max`), in mm."""
	kind: str  # "prime" | "zoom"
	value: Optional[float] = None
	min: Optional[float] = None
	max: Optional[float] = None

	@classmethod
	def prime(cls, value: float) -> 'FocalLength':
		return cls(kind='prime', value=value)

	@classmethod
	def zoom(cls, low: float, high: float) -> 'FocalLength':
		return cls(kind='zoom', min=low, max=high)

	@property
	def is_zoom(self) -> bool:
		return self.kind == 'zoom'

	def effective_range(self):
		low = self.min if self.min is not None else (self.value if self.value is not None else 0.0)
		high = self.max if self.max is not None else (self.value if self.value is not None else float('inf'))
		return low, high


@dataclass(frozen=True)
class Aperture:
	"""An aperture entry: a fixed f-number (`value`) or a variable wide/tele pair."""
	kind: str  # "fixed" | "variable"
	value: Optional[float] = None
	wide: Optional[float] = None
	tele: Optional[float] = None

	@classmethod
	def fixed(cls, value: float) -> 'Aperture':
		return cls(kind='fixed', value=value)

	@classmethod
	def variable(cls, wide: float, tele: float) -> 'Aperture':
		return cls(kind='variable', wide=wide, tele=tele)

	def effective_range(self):
		low = self.wide if self.wide is not None else self.value
		high = self.tele if self.tele is not None else self.value
		return low, high


@dataclass(frozen=True)
class LensSpecs:
	focal_length: List[FocalLength] = field(default_factory=list)
	aperture: List[Aperture] = field(default_factory=list)


@dataclass(frozen=True)
class IsoSetting:
	min: Optional[int] = None  # range start
	max: Optional[int] = None  # range end
	value: Optional[int] = None  # single ISO value


@dataclass(frozen=True)
class VideoSpecs:
	max_resolution: Optional[str] = None  # None | "HD" | "Full HD" | "4K"
	formats: List[str] = field(default_factory=list)  # lower-cased matched format strings


@dataclass(frozen=True)
class Dimensions:
	width: float
	height: float
	depth: float
	unit: str = 'mm'


@dataclass(frozen=True)
class Weight:
	value: float
	unit: str = 'g'


@dataclass(frozen=True)
class PhysicalSpecs:
	dimensions: Optional[Dimensions] = None
	weight: Optional[Weight] = None


@dataclass(frozen=True)
class SmartSpecs:
	"""Everything the enrichment pipeline derives from a RawProduct."""
	megapixels: ExtractedField = field(default_factory=ExtractedField)
	sensor_size: SensorSize = field(default_factory=SensorSize)
	sensor_type: List[str] = field(default_factory=list)
	lens_specs: LensSpecs = field(default_factory=LensSpecs)
	iso_range: List[IsoSetting] = field(default_factory=list)
	video_specs: VideoSpecs = field(default_factory=VideoSpecs)
	physical_specs: PhysicalSpecs = field(default_factory=PhysicalSpecs)
	device_type: str = 'Unknown'
	era: str = 'Unknown'
	search_tags: List[str] = field(default_factory=list)  # unique tags, deterministic order


@dataclass(frozen=True)
class EnrichedRecord:
	"""
	A RawProduct plus its smart specifications and aggregated search text.
	Built once per product and never mutated afterwards.
	"""
	product: RawProduct  # copy of the scraped fields
	smart_specs: SmartSpecs  # derived attributes
	searchable_text: str  # lower-cased concatenation used for text search
	data_quality: str = 'medium'  # high | medium | low | failed

	@property
	def id(self) -> str:
		return self.product.id

	@property
	def name(self) -> str:
		return self.product.name

	@property
	def category(self) -> str:
		return self.product.category

	@property
	def marketed_date(self) -> Optional[str]:
		return self.product.marketed_date

	def has_zoom(self) -> bool:
		"""True when any focal length entry is a zoom or the text mentions zoom."""
		if any(lens.is_zoom for lens in self.smart_specs.lens_specs.focal_length):
			return True
		return 'zoom' in self.smart_specs.search_tags

	def to_dict(self) -> Dict[str, Any]:
		return {
			'product': self.product.to_dict(),
			'smart_specs': asdict(self.smart_specs),
			'searchable_text': self.searchable_text,
			'data_quality': self.data_quality,
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'EnrichedRecord':
		return cls(
			product=RawProduct.from_dict(data['product']),
			smart_specs=_smart_specs_from_dict(data.get('smart_specs') or {}),
			searchable_text=data.get('searchable_text') or '',
			data_quality=data.get('data_quality') or 'medium',
		)


def _provenance_list(items) -> List[Provenance]:
	return [Provenance(**item) for item in (items or [])]


def _smart_specs_from_dict(data: Dict[str, Any]) -> SmartSpecs:
	"""Rebuild the nested frozen dataclasses written by `asdict`."""
	mp = data.get('megapixels') or {}
	sensor = data.get('sensor_size') or {}
	lens = data.get('lens_specs') or {}
	video = data.get('video_specs') or {}
	physical = data.get('physical_specs') or {}
	dims = physical.get('dimensions')
	weight = physical.get('weight')
	return SmartSpecs(
		megapixels=ExtractedField(
			values=list(mp.get('values') or []),
			primary=mp.get('primary'),
			details=_provenance_list(mp.get('details')),
		),
		sensor_size=SensorSize(
			detected=list(sensor.get('detected') or []),
			primary=sensor.get('primary'),
			details=_provenance_list(sensor.get('details')),
		),
		sensor_type=list(data.get('sensor_type') or []),
		lens_specs=LensSpecs(
			focal_length=[FocalLength(**item) for item in (lens.get('focal_length') or [])],
			aperture=[Aperture(**item) for item in (lens.get('aperture') or [])],
		),
		iso_range=[IsoSetting(**item) for item in (data.get('iso_range') or [])],
		video_specs=VideoSpecs(
			max_resolution=video.get('max_resolution'),
			formats=list(video.get('formats') or []),
		),
		physical_specs=PhysicalSpecs(
			dimensions=Dimensions(**dims) if dims else None,
			weight=Weight(**weight) if weight else None,
		),
		device_type=data.get('device_type') or 'Unknown',
		era=data.get('era') or 'Unknown',
		search_tags=list(data.get('search_tags') or []),
	)


@dataclass
class MegapixelFilter:
	exact: Optional[float] = None
	min: Optional[float] = None
	max: Optional[float] = None
	values: List[float] = field(default_factory=list)

	def is_empty(self) -> bool:
		return self.exact is None and self.min is None and self.max is None and not self.values


@dataclass
class Operators:
	text_operator: str = 'contains'  # contains | exact | startsWith | endsWith
	megapixels_operator: str = 'equals'  # equals | greater | less | between
	sensor_operator: str = 'contains'  # contains | exact


@dataclass
class FilterSpec:
	"""
	Structured search request. Every clause is optional; an absent (None or
	empty) clause imposes no restriction and present clauses are AND-ed.
	"""
	search: Optional[str] = None
	categories: List[str] = field(default_factory=list)
	device_types: List[str] = field(default_factory=list)
	eras: List[str] = field(default_factory=list)
	sensor_types: List[str] = field(default_factory=list)
	sensor_sizes: List[str] = field(default_factory=list)
	search_tags: List[str] = field(default_factory=list)
	megapixels: Optional[MegapixelFilter] = None
	focal_length_min: Optional[float] = None
	focal_length_max: Optional[float] = None
	aperture_min: Optional[float] = None
	aperture_max: Optional[float] = None
	has_zoom: Optional[bool] = None
	marketed_after: Optional[str] = None  # year string, inclusive
	marketed_before: Optional[str] = None  # year string, inclusive
	data_quality: List[str] = field(default_factory=list)
	operators: Operators = field(default_factory=Operators)


@dataclass(frozen=True)
class FilterOption:
	value: Any  # facet value (string, or MP number for megapixels)
	label: str  # display label
	count: int  # occurrences within the filtered set


@dataclass(frozen=True)
class SearchStatistics:
	total_products: int
	filtered_count: int
	average_megapixels: float
	megapixel_range: Dict[str, float]
	top_categories: List[FilterOption]


@dataclass(frozen=True)
class SearchResult:
	products: List[EnrichedRecord]
	total: int
	filters: Dict[str, List[FilterOption]]
	statistics: SearchStatistics

	def to_dict(self) -> Dict[str, Any]:
		return {
			'products': [p.to_dict() for p in self.products],
			'total': self.total,
			'filters': {name: [asdict(o) for o in options] for name, options in self.filters.items()},
			'statistics': asdict(self.statistics),
		}
