"""
FastAPI server exposing the camera catalog search API.
Endpoints:
- GET /health: basic health check
- GET /search?search=...&categories=a,b&megapixelsMin=20: filtered products, facets and statistics
- POST /search: same filters as a JSON body
- GET /filters: facet options over the whole catalog
- GET /statistics: corpus-wide statistics
- GET /products/random?count=6: random sample
- GET /products/{id}: one enriched product

Startup builds the Corpus over the enriched dataset written by scripts/enrich_catalog.py.
Run: uvicorn api:app --reload
"""

# Import standard libraries for timing and stderr logging
import sys  # log sink
import time  # measure startup and request latencies
from dataclasses import asdict  # dataclass -> JSON-able dict
from typing import Any, Dict, List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
from fastapi import FastAPI, HTTPException, Query  # FastAPI primitives
from pydantic import BaseModel, Field  # request/response schema definitions

# Import our internal modules for data loading and search
from camera_search import config  # paths, TTL, log level
from camera_search.corpus import Corpus  # cached enriched records
from camera_search.data_loader import DataLoader  # reads the enriched dataset
from camera_search.models import FilterSpec, MegapixelFilter, Operators  # typed filters
from camera_search.query_engine import (  # core search engine
	MEGAPIXEL_OPERATORS,
	SENSOR_OPERATORS,
	TEXT_OPERATORS,
	QueryEngine,
)

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

logger.remove()  # replace the default sink so LOG_LEVEL applies
logger.add(sys.stderr, level=config.LOG_LEVEL)

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Camera Catalog Search API", version="1.0.0")  # web app

# Globals that hold the query engine instance and measured startup time
ENGINE: Optional[QueryEngine] = None  # will point to the initialized engine
STARTUP_TIME_S: float = 0.0  # measures how long startup took


# Pydantic models describing the JSON body accepted by POST /search
class MegapixelFilterIn(BaseModel):
	exact: Optional[float] = None
	min: Optional[float] = None
	max: Optional[float] = None
	values: List[float] = Field(default_factory=list)


class OperatorsIn(BaseModel):
	textOperator: str = 'contains'
	megapixelsOperator: str = 'equals'
	sensorOperator: str = 'contains'


class SearchRequest(BaseModel):
	search: Optional[str] = None
	categories: List[str] = Field(default_factory=list)
	deviceTypes: List[str] = Field(default_factory=list)
	eras: List[str] = Field(default_factory=list)
	megapixels: Optional[MegapixelFilterIn] = None
	sensorSizes: List[str] = Field(default_factory=list)
	sensorTypes: List[str] = Field(default_factory=list)
	focalLengthMin: Optional[float] = None
	focalLengthMax: Optional[float] = None
	apertureMin: Optional[float] = None
	apertureMax: Optional[float] = None
	hasZoom: Optional[bool] = None
	features: List[str] = Field(default_factory=list)
	searchTags: List[str] = Field(default_factory=list)
	marketedAfter: Optional[str] = None
	marketedBefore: Optional[str] = None
	dataQuality: List[str] = Field(default_factory=list)
	operators: OperatorsIn = Field(default_factory=OperatorsIn)


# Pydantic models for the response payloads
class FilterOptionOut(BaseModel):
	value: Any  # facet value
	label: str  # display label
	count: int  # occurrences


class StatisticsOut(BaseModel):
	total_products: int
	filtered_count: int
	average_megapixels: float
	megapixel_range: Dict[str, float]
	top_categories: List[FilterOptionOut]


class SearchResponse(BaseModel):
	products: List[Dict[str, Any]]  # enriched records
	total: int  # number of matches
	filters: Dict[str, List[FilterOptionOut]]  # facets of the filtered set
	statistics: StatisticsOut  # summary numbers
	elapsed_ms: float  # server-side search time in ms


# FastAPI startup hook to initialize the query engine once
@app.on_event("startup")
async def startup_event():
	"""Build the corpus over the enriched dataset and log how long it took."""
	global ENGINE, STARTUP_TIME_S  # refer to module-level globals
	start = time.time()  # start timer for startup latency

	logger.info(f"[API] Startup: loading enriched catalog from {config.ENRICHED_DATA_PATH}...")  # log intent

	loader = DataLoader()  # create loader instance
	corpus = Corpus(lambda: loader.load_enriched(config.ENRICHED_DATA_PATH), ttl_seconds=config.CORPUS_TTL_SECONDS)
	try:
		corpus.load()  # first load happens eagerly so errors show at startup
	except (FileNotFoundError, ValueError) as e:
		logger.error(f"[API] Could not load enriched catalog: {e}. Run 'python -m scripts.enrich_catalog' first.")
		return  # engine stays None; endpoints answer 503
	ENGINE = QueryEngine(corpus)  # create engine

	STARTUP_TIME_S = time.time() - start  # elapsed seconds
	logger.info(f"[API] Startup complete in {STARTUP_TIME_S:.2f}s with {len(corpus)} products.")  # summary log


def _require_engine() -> QueryEngine:
	if ENGINE is None:  # engine must be ready to serve
		logger.warning("[API] Request received but engine not initialized")  # guard log
		raise HTTPException(status_code=503, detail="Catalog not loaded")
	return ENGINE


def _split(value: Optional[str]) -> List[str]:
	"""Comma-separated query parameter -> list of trimmed, non-empty items."""
	if not value:
		return []
	return [item.strip() for item in value.split(',') if item.strip()]


def _to_float(name: str, value: Optional[str]) -> Optional[float]:
	if value is None or value == '':
		return None
	try:
		return float(value)
	except ValueError:
		raise HTTPException(status_code=422, detail=f"Parameter '{name}' must be a number, got '{value}'")


def _to_bool(name: str, value: Optional[str]) -> Optional[bool]:
	if value is None or value == '':
		return None
	lowered = value.lower()
	if lowered in ('true', '1', 'yes'):
		return True
	if lowered in ('false', '0', 'no'):
		return False
	raise HTTPException(status_code=422, detail=f"Parameter '{name}' must be true or false, got '{value}'")


def _check_choice(name: str, value: str, allowed) -> str:
	if value not in allowed:
		raise HTTPException(status_code=422, detail=f"Parameter '{name}' must be one of {list(allowed)}, got '{value}'")
	return value


def _operators(text_op: str, mp_op: str, sensor_op: str) -> Operators:
	return Operators(
		text_operator=_check_choice('textOperator', text_op, TEXT_OPERATORS),
		megapixels_operator=_check_choice('megapixelsOperator', mp_op, MEGAPIXEL_OPERATORS),
		sensor_operator=_check_choice('sensorOperator', sensor_op, SENSOR_OPERATORS),
	)


def request_to_filter_spec(body: SearchRequest) -> FilterSpec:
	"""Translate the JSON body into the engine's typed FilterSpec."""
	megapixels = None
	if body.megapixels is not None:
		megapixels = MegapixelFilter(
			exact=body.megapixels.exact,
			min=body.megapixels.min,
			max=body.megapixels.max,
			values=list(body.megapixels.values),
		)
	return FilterSpec(
		search=body.search,
		categories=body.categories,
		device_types=body.deviceTypes,
		eras=body.eras,
		sensor_types=body.sensorTypes,
		sensor_sizes=body.sensorSizes,
		search_tags=body.searchTags or body.features,
		megapixels=megapixels,
		focal_length_min=body.focalLengthMin,
		focal_length_max=body.focalLengthMax,
		aperture_min=body.apertureMin,
		aperture_max=body.apertureMax,
		has_zoom=body.hasZoom,
		marketed_after=body.marketedAfter,
		marketed_before=body.marketedBefore,
		data_quality=body.dataQuality,
		operators=_operators(
			body.operators.textOperator,
			body.operators.megapixelsOperator,
			body.operators.sensorOperator,
		),
	)


def _run_search(spec: FilterSpec) -> SearchResponse:
	engine = _require_engine()
	start = time.time()  # start timer
	result = engine.search(spec)  # run search
	elapsed_ms = (time.time() - start) * 1000  # compute ms
	logger.info(f"[API] /search served {result.total} products in {elapsed_ms:.2f} ms")  # summary
	payload = result.to_dict()
	return SearchResponse(**payload, elapsed_ms=round(elapsed_ms, 2))


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	return {
		"status": "ok",  # constant indicator
		"engine_ready": ENGINE is not None,  # True if engine initialized
		"startup_seconds": round(STARTUP_TIME_S, 2)  # startup latency
	}


# Main search endpoint driven by query-string parameters
@app.get("/search", response_model=SearchResponse)
def search(
	search: Optional[str] = Query(None, description="Free-text search term"),
	categories: Optional[str] = None,
	deviceTypes: Optional[str] = None,
	eras: Optional[str] = None,
	megapixels: Optional[str] = Query(None, description="Exact megapixel value"),
	megapixelsMin: Optional[str] = None,
	megapixelsMax: Optional[str] = None,
	megapixelValues: Optional[str] = None,
	sensorSizes: Optional[str] = None,
	sensorTypes: Optional[str] = None,
	focalLengthMin: Optional[str] = None,
	focalLengthMax: Optional[str] = None,
	apertureMin: Optional[str] = None,
	apertureMax: Optional[str] = None,
	hasZoom: Optional[str] = None,
	features: Optional[str] = None,
	marketedAfter: Optional[str] = None,
	marketedBefore: Optional[str] = None,
	dataQuality: Optional[str] = None,
	textOperator: str = 'contains',
	megapixelsOperator: str = 'equals',
	sensorOperator: str = 'contains',
):
	"""Parse query-string filters into a FilterSpec and run the search."""
	logger.debug(f"[API] /search search='{search}' categories='{categories}'")  # debug log of input

	mp_filter = None
	if megapixels or megapixelsMin or megapixelsMax or megapixelValues:
		mp_filter = MegapixelFilter(
			exact=_to_float('megapixels', megapixels),
			min=_to_float('megapixelsMin', megapixelsMin),
			max=_to_float('megapixelsMax', megapixelsMax),
			values=[_to_float('megapixelValues', v) for v in _split(megapixelValues)],
		)

	spec = FilterSpec(
		search=search,
		categories=_split(categories),
		device_types=_split(deviceTypes),
		eras=_split(eras),
		sensor_types=_split(sensorTypes),
		sensor_sizes=_split(sensorSizes),
		search_tags=_split(features),
		megapixels=mp_filter,
		focal_length_min=_to_float('focalLengthMin', focalLengthMin),
		focal_length_max=_to_float('focalLengthMax', focalLengthMax),
		aperture_min=_to_float('apertureMin', apertureMin),
		aperture_max=_to_float('apertureMax', apertureMax),
		has_zoom=_to_bool('hasZoom', hasZoom),
		marketed_after=marketedAfter or None,
		marketed_before=marketedBefore or None,
		data_quality=_split(dataQuality),
		operators=_operators(textOperator, megapixelsOperator, sensorOperator),
	)
	return _run_search(spec)


@app.post("/search", response_model=SearchResponse)
def search_post(body: SearchRequest):
	"""Run a search described by a JSON body."""
	return _run_search(request_to_filter_spec(body))


@app.get("/filters")
def filters():
	"""Facet options over the whole catalog for populating filter controls."""
	engine = _require_engine()
	options = engine.filter_options()
	return {name: [asdict(o) for o in items] for name, items in options.items()}


@app.get("/statistics")
def statistics():
	engine = _require_engine()
	return asdict(engine.statistics())


@app.get("/products/random")
def random_products(count: int = Query(config.RANDOM_PRODUCTS_DEFAULT, ge=0, le=100)):
	engine = _require_engine()
	return {"products": [p.to_dict() for p in engine.random_products(count)]}


@app.get("/products/{product_id}")
def get_product(product_id: str):
	engine = _require_engine()
	product = engine.get_product(product_id)
	if product is None:
		raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")
	return product.to_dict()
