"""
Field extraction rules.
Maps each semantic field to its ordered regex patterns, a group parser, a
plausibility check and a primary-value strategy. Adding a field or a pattern
is a data change here; the Extractor itself stays generic.
"""

import re  # compiled patterns
from dataclasses import dataclass, replace  # immutable rule records
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from .models import Aperture, Dimensions, FocalLength, IsoSetting, Weight


# Primary-value strategies. Each receives the distinct values in encounter order.

def select_first(values: List[Any]) -> Optional[Any]:
	return values[0] if values else None


def select_max(values: List[Any]) -> Optional[Any]:
	return max(values) if values else None


def select_min(values: List[Any]) -> Optional[Any]:
	return min(values) if values else None


def _always(value: Any) -> bool:
	return True


@dataclass(frozen=True)
class FieldRule:
	name: str  # semantic field name
	patterns: Tuple[Pattern, ...]  # tried in priority order; all contribute
	parse: Callable[[re.Match], Any]  # raises ValueError on malformed groups
	plausible: Callable[[Any], bool] = _always  # rejects false positives
	primary: Callable[[List[Any]], Optional[Any]] = select_first  # tie-break policy

	def with_primary(self, selector: Callable[[List[Any]], Optional[Any]]) -> 'FieldRule':
		"""Return a copy of this rule using a different primary-value strategy."""
		return replace(self, primary=selector)


def _compile(*sources: str) -> Tuple[Pattern, ...]:
	return tuple(re.compile(s, re.IGNORECASE) for s in sources)


# Group parsers

def _first_float(m: re.Match) -> float:
	return float(m.group(1))


def _matched_text(m: re.Match) -> str:
	return m.group(0).strip()


def _first_group_lower(m: re.Match) -> str:
	return m.group(1).lower()


def _video_format(m: re.Match) -> str:
	return re.sub(r'\s+', ' ', m.group(0).strip().lower())


def _focal_length(m: re.Match) -> FocalLength:
	if m.lastindex and m.lastindex >= 2 and m.group(2):
		low, high = float(m.group(1)), float(m.group(2))
		return FocalLength.zoom(min(low, high), max(low, high))
	return FocalLength.prime(float(m.group(1)))


def _aperture(m: re.Match) -> Aperture:
	if m.lastindex and m.lastindex >= 2 and m.group(2):
		return Aperture.variable(float(m.group(1)), float(m.group(2)))
	return Aperture.fixed(float(m.group(1)))


def _iso(m: re.Match) -> IsoSetting:
	if m.lastindex and m.lastindex >= 2 and m.group(2):
		low, high = int(m.group(1)), int(m.group(2))
		return IsoSetting(min=min(low, high), max=max(low, high))
	return IsoSetting(value=int(m.group(1)))


def _dimensions(m: re.Match) -> Dimensions:
	return Dimensions(width=float(m.group(1)), height=float(m.group(2)), depth=float(m.group(3)), unit='mm')


def _weight_grams(m: re.Match) -> Weight:
	return Weight(value=float(m.group(1)), unit='g')


def _weight_kilograms(m: re.Match) -> Weight:
	return Weight(value=float(m.group(1)), unit='kg')


def _weight(m: re.Match) -> Weight:
	if 'kg' in m.group(0).lower():
		return _weight_kilograms(m)
	return _weight_grams(m)


# Plausibility checks

def _plausible_megapixels(value: float) -> bool:
	return 0 < value < 200


def _plausible_sensor_size(raw: str) -> bool:
	# "W x H mm" captures must fit a camera sensor, not a large body
	m = re.search(r'(\d+(?:\.\d+)?)\s*x\s*(\d+(?:\.\d+)?)\s*mm', raw, re.IGNORECASE)
	if not m:
		return True
	return 0 < float(m.group(1)) <= 70 and 0 < float(m.group(2)) <= 70


def _plausible_focal_length(lens: FocalLength) -> bool:
	low, high = lens.effective_range()
	return 0 < low and high <= 2000


def _plausible_aperture(aperture: Aperture) -> bool:
	low, high = aperture.effective_range()
	return 0.7 <= low <= 64 and 0.7 <= high <= 64


def _plausible_iso(iso: IsoSetting) -> bool:
	numbers = [n for n in (iso.min, iso.max, iso.value) if n is not None]
	return all(1 <= n <= 10_000_000 for n in numbers)


def _plausible_video_format(fmt: str) -> bool:
	# bare "WxH" captures must look like a frame size, not a box dimension
	m = re.fullmatch(r'(\d+)\s*x\s*(\d+)(?:\s*pixels?)?', fmt, re.IGNORECASE)
	if not m:
		return True
	return int(m.group(1)) >= 240 and int(m.group(2)) >= 240


def _plausible_dimensions(dims: Dimensions) -> bool:
	return dims.width > 0 and dims.height > 0 and dims.depth > 0


def _plausible_weight(weight: Weight) -> bool:
	return weight.value > 0


_NUM = r'(\d+(?:\.\d+)?)'  # integer or decimal number
_DASH = r'\s*(?:-|–|to)\s*'  # range separator
_NOT_DIMENSION = r'(?<![\d.])(?<!x)(?<!x )'  # not mid-number, not a later term of "W x H x D"

FIELD_RULES: Dict[str, FieldRule] = {
	'megapixels': FieldRule(
		name='megapixels',
		patterns=_compile(
			_NUM + r'\s*megapixels?',
			r'approx\.?\s*' + _NUM + r'\s*megapixels?',
			_NUM + r'\s*million\s+(?:effective\s+)?pixels?',
			r'approximately\s+' + _NUM + r'\s+million\s+(?:effective\s+)?pixels?',
		),
		parse=_first_float,
		plausible=_plausible_megapixels,
		primary=select_max,  # higher resolution wins when marketing text lists several
	),
	'sensor_size': FieldRule(
		name='sensor_size',
		patterns=_compile(
			r'(?<![\d.])(\d/\d{1,2}(?:\.\d+)?)(?:\s*-?\s*(?:inch|type)|-in\b|\s*in\.|\s*")',
			r'\b(full[\s-]*frame|aps-c|aps-h|micro\s*four\s*thirds?)\b',
			r'\b(super\s*35\s*mm)',
			_NOT_DIMENSION + r'(\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*mm)',
		),
		parse=_matched_text,
		plausible=_plausible_sensor_size,
	),
	'sensor_type': FieldRule(
		name='sensor_type',
		patterns=_compile(
			r'\b(ccd|cmos|saticon|tube)\b',
			r'\b(back[\s-]?illuminated|bsi)\b',
		),
		parse=_first_group_lower,
	),
	'focal_length': FieldRule(
		name='focal_length',
		patterns=_compile(
			_NOT_DIMENSION + _NUM + r'\s*(?:mm)?' + _DASH + _NUM + r'\s*mm',
			_NOT_DIMENSION + _NUM + r'\s*mm\b(?!\s*(?:film|slr|format))',
		),
		parse=_focal_length,
		plausible=_plausible_focal_length,
	),
	'aperture': FieldRule(
		name='aperture',
		patterns=_compile(
			r'\bf(?:/\s*|(?=\d))' + _NUM + _DASH + r'(?:f/?\s*)?' + _NUM,
			r'\bf/\s*' + _NUM,
		),
		parse=_aperture,
		plausible=_plausible_aperture,
	),
	'iso': FieldRule(
		name='iso',
		patterns=_compile(
			r'\biso\s*(\d+)' + _DASH + r'(\d+)',
			r'\biso\s*(\d+)',
			r'sensitivity[^.\n]*?(\d+)' + _DASH + r'(\d+)',
		),
		parse=_iso,
		plausible=_plausible_iso,
	),
	'video_resolution': FieldRule(
		name='video_resolution',
		patterns=_compile(
			r'\b(4k|uhd|ultra\s*hd)\b',
			r'\b(full\s*hd|1080[pi]?|1920\s*x\s*1080)\b',
			r'\b(hd|720p?|1280\s*x\s*720)\b',
			r'\b(\d{3,4})\s*x\s*(\d{3,4})\s*(?:pixels?)?',
		),
		parse=_video_format,
		plausible=_plausible_video_format,
	),
	'dimensions': FieldRule(
		name='dimensions',
		patterns=_compile(
			_NUM + r'\s*(?:mm)?\s*x\s*' + _NUM + r'\s*(?:mm)?\s*x\s*' + _NUM + r'\s*mm',
			_NUM + r'\s*\(\s*w\s*\)\s*x\s*' + _NUM + r'\s*\(\s*h\s*\)\s*x\s*' + _NUM + r'\s*(?:\(\s*d\s*\)\s*)?mm',
		),
		parse=_dimensions,
		plausible=_plausible_dimensions,
	),
	'weight': FieldRule(
		name='weight',
		patterns=_compile(
			_NUM + r'\s*g(?:rams?)?\b',
			_NUM + r'\s*kg\b',
			r'weight[^.\n]*?' + _NUM + r'\s*(?:kg|g)\b',
		),
		parse=_weight,
		plausible=_plausible_weight,
	),
}
