"""
Normalization helpers.
Maps raw matched strings to canonical labels and classifies products by
device type and era. Every function here is total: any input yields a value.
"""

import re  # year extraction
from typing import Iterable, Optional

# Ordered substring -> canonical label table; first match wins
SENSOR_SIZE_SYNONYMS = (
	('1/2.3', '1/2.3"'),
	('1/1.7', '1/1.7"'),
	('1/1.8', '1/1.8"'),
	('2/3', '2/3"'),
	('full frame', 'Full Frame'),
	('full-frame', 'Full Frame'),
	('fullframe', 'Full Frame'),
	('aps-c', 'APS-C'),
	('aps-h', 'APS-H'),
	('micro four thirds', 'Micro Four Thirds'),
	('micro four third', 'Micro Four Thirds'),
	('super 35', 'Super 35mm'),
)

SENSOR_TYPE_SYNONYMS = {
	'back illuminated': 'bsi',
	'back-illuminated': 'bsi',
	'backilluminated': 'bsi',
}

# Era buckets as (exclusive upper bound year, label)
ERA_BUCKETS = (
	(1980, 'Vintage (Pre-1980)'),
	(1990, '1980s'),
	(2000, '1990s'),
	(2010, '2000s'),
	(2020, '2010s'),
)
LATEST_ERA = '2020s'
UNKNOWN_ERA = 'Unknown'
ERA_ORDER = tuple(label for _, label in ERA_BUCKETS) + (LATEST_ERA, UNKNOWN_ERA)

RE_YEAR = re.compile(r'\d{4}')  # first 4-digit run
RE_FRAME_SIZE = re.compile(r'(\d{3,4})\s*x\s*(\d{3,4})')


def standardize_sensor_size(raw: Optional[str]) -> str:
	"""Canonical sensor-size token, or the raw string unchanged when unknown."""
	if raw is None:
		return ''
	size = raw.lower()
	for key, canonical in SENSOR_SIZE_SYNONYMS:
		if key in size:
			return canonical
	return raw


def standardize_sensor_type(raw: Optional[str]) -> str:
	token = (raw or '').strip().lower()
	return SENSOR_TYPE_SYNONYMS.get(token, token)


def categorize_device(category: Optional[str], name: Optional[str] = None) -> str:
	"""
	Derive a device type from the category label.
	Priority: DSLR > compact digital > camcorder > cinema > film > raw category.
	The product name is only probed when the category is blank.
	"""
	label = (category or '').strip()
	probe = (label or name or '').lower()
	if 'dslr' in probe:
		return 'DSLR Camera'
	if 'compact' in probe and 'digital' in probe:
		return 'Compact Digital Camera'
	if 'camcorder' in probe:
		return 'Camcorder'
	if 'cinema' in probe:
		return 'Cinema Camera'
	if 'film' in probe:
		return 'Film Camera'
	return label or 'Unknown'


def extract_year(text: Optional[str]) -> Optional[int]:
	"""First 4-digit year in `text`, or None when absent or zero."""
	if not text:
		return None
	m = RE_YEAR.search(str(text))
	if not m:
		return None
	year = int(m.group(0))
	return year or None


def determine_era(marketed_date: Optional[str]) -> str:
	year = extract_year(marketed_date)
	if year is None:
		return UNKNOWN_ERA
	for upper, label in ERA_BUCKETS:
		if year < upper:
			return label
	return LATEST_ERA


def classify_video_resolution(formats: Iterable[str]) -> Optional[str]:
	"""Highest resolution class among the matched video formats."""
	best = 0
	for fmt in formats:
		fmt = fmt.lower()
		if '4k' in fmt or 'uhd' in fmt or 'ultra hd' in fmt:
			rank = 3
		elif '1080' in fmt or 'full hd' in fmt:
			rank = 2
		elif '720' in fmt or 'hd' in fmt:
			rank = 1
		else:
			rank = _rank_frame_size(fmt)
		best = max(best, rank)
	return {3: '4K', 2: 'Full HD', 1: 'HD'}.get(best)


def _rank_frame_size(fmt: str) -> int:
	m = RE_FRAME_SIZE.search(fmt)
	if not m:
		return 0
	width = int(m.group(1))
	if width >= 3840:
		return 3
	if width >= 1920:
		return 2
	if width >= 1280:
		return 1
	return 0
