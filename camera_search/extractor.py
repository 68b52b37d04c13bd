"""
Rule-based field extraction.
Applies the FIELD_RULES patterns to a product's specification entries and to
its flattened searchable text, producing deduplicated candidates with
provenance and a primary value per field.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from loguru import logger  # console logging

from .models import ExtractedField, Provenance
from .patterns import FIELD_RULES, FieldRule


SEARCHABLE_TEXT_SOURCE = 'searchable_text'  # provenance label for the flattened text
CONTEXT_BEFORE = 20  # snippet chars kept before a match
CONTEXT_AFTER = 50  # snippet chars kept after the match start


def spec_source(label: str) -> str:
	return f"spec.{label}"


class Extractor:
	"""
	Generic extraction engine over a table of FieldRules.
	Every pattern of a field contributes candidates (union, not first-match-wins);
	a later pattern cannot claim text already matched by an earlier one in the
	same source.
	"""

	def __init__(self, rules: Optional[Mapping[str, FieldRule]] = None):
		self.rules: Dict[str, FieldRule] = dict(rules if rules is not None else FIELD_RULES)

	def with_primary(self, field_name: str, selector) -> 'Extractor':
		"""Return an extractor whose `field_name` rule uses another primary strategy."""
		rules = dict(self.rules)
		rules[field_name] = rules[field_name].with_primary(selector)
		return Extractor(rules)

	def extract(
		self,
		field_name: str,
		text: Optional[str],
		labeled_texts: Optional[Mapping[str, str]] = None,
	) -> ExtractedField:
		"""
		Extract one field.
		- text: full body (unscoped, lower confidence)
		- labeled_texts: specification label -> value (field-scoped, scanned first)
		"""
		rule = self.rules[field_name]
		sources = self._sources(text, labeled_texts)
		if not sources:
			return ExtractedField()

		claimed: Dict[str, List[Tuple[int, int]]] = {name: [] for name, _ in sources}
		values: List[Any] = []
		details: List[Provenance] = []

		for pattern in rule.patterns:
			for source_name, body in sources:
				for match in pattern.finditer(body):
					span = match.span()
					if _overlaps(span, claimed[source_name]):
						continue
					try:
						value = rule.parse(match)
					except (ValueError, TypeError, IndexError) as e:
						logger.debug(f"[Extractor] {field_name}: skipped malformed match '{match.group(0)}' in {source_name}: {e}")
						continue
					claimed[source_name].append(span)
					if value is None or not rule.plausible(value):
						logger.debug(f"[Extractor] {field_name}: rejected implausible '{match.group(0)}' in {source_name}")
						continue
					details.append(Provenance(
						value=value,
						source=source_name,
						context=_snippet(body, span[0]),
						raw=match.group(0),
					))
					if value not in values:
						values.append(value)

		return ExtractedField(values=values, primary=rule.primary(values), details=details)

	def extract_all(
		self,
		text: Optional[str],
		labeled_texts: Optional[Mapping[str, str]] = None,
	) -> Dict[str, ExtractedField]:
		"""Run every rule against the same inputs."""
		return {name: self.extract(name, text, labeled_texts) for name in self.rules}

	@staticmethod
	def _sources(text: Optional[str], labeled_texts: Optional[Mapping[str, str]]) -> List[Tuple[str, str]]:
		sources: List[Tuple[str, str]] = []
		for label, value in (labeled_texts or {}).items():
			if isinstance(value, str) and value.strip():
				sources.append((spec_source(label), value))
		if text and text.strip():
			sources.append((SEARCHABLE_TEXT_SOURCE, text))
		return sources


def _overlaps(span: Tuple[int, int], claimed: List[Tuple[int, int]]) -> bool:
	start, end = span
	return any(start < c_end and c_start < end for c_start, c_end in claimed)


def _snippet(body: str, start: int) -> str:
	return body[max(0, start - CONTEXT_BEFORE):start + CONTEXT_AFTER]
