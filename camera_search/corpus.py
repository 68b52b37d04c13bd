"""
In-memory corpus of enriched records.
Loads the persisted dataset through an injected loader, keeps an immutable
snapshot with a load timestamp, and reloads it when older than the TTL.
"""

import threading  # single-writer reload lock
import time  # default monotonic clock
from dataclasses import dataclass, replace  # snapshot container
from types import MappingProxyType  # read-only id index
from typing import Callable, Iterable, List, Mapping, Optional, Tuple

from loguru import logger  # console logging

from .config import CORPUS_TTL_SECONDS
from .models import EnrichedRecord


@dataclass(frozen=True)
class CorpusSnapshot:
	records: Tuple[EnrichedRecord, ...]  # insertion order
	by_id: Mapping[str, EnrichedRecord]  # read-only index
	loaded_at: float  # clock value at load time


class Corpus:
	"""
	Read-mostly collection of EnrichedRecords.
	The loader is the single writer; readers always get a complete snapshot
	because a reload builds the new snapshot fully before swapping the reference.
	"""

	def __init__(
		self,
		loader: Callable[[], Iterable[EnrichedRecord]],
		ttl_seconds: float = CORPUS_TTL_SECONDS,
		clock: Callable[[], float] = time.monotonic,
	):
		self._loader = loader  # returns the persisted enriched records
		self.ttl_seconds = ttl_seconds  # freshness window
		self._clock = clock  # injectable for tests
		self._snapshot: Optional[CorpusSnapshot] = None  # nothing loaded yet
		self._lock = threading.Lock()  # one reload at a time
		self._invalidated = False  # set by invalidate(), cleared by a successful load

	@classmethod
	def from_records(cls, records: Iterable[EnrichedRecord], ttl_seconds: float = float('inf')) -> 'Corpus':
		"""Corpus over a fixed in-memory list (never goes stale by default)."""
		records = list(records)
		corpus = cls(lambda: records, ttl_seconds=ttl_seconds)
		corpus.load()
		return corpus

	def load(self) -> CorpusSnapshot:
		"""
		Read the records and swap them in.
		Errors propagate to the caller and leave the previous snapshot untouched.
		"""
		with self._lock:
			return self._load_locked()

	def _load_locked(self) -> CorpusSnapshot:
		start = self._clock()
		records = tuple(self._loader())
		index = {}
		for record in records:
			if record.id in index:
				logger.warning(f"[Corpus] Duplicate product id '{record.id}', keeping first occurrence")
				continue
			index[record.id] = record
		unique = tuple(index.values()) if len(index) != len(records) else records
		snapshot = CorpusSnapshot(records=unique, by_id=MappingProxyType(index), loaded_at=self._clock())
		self._snapshot = snapshot  # atomic reference swap
		self._invalidated = False
		logger.info(f"[Corpus] Loaded {len(unique)} products in {(snapshot.loaded_at - start) * 1000:.1f} ms")
		return snapshot

	def invalidate(self):
		"""Mark the current snapshot stale so the next read reloads."""
		self._invalidated = True
		logger.debug("[Corpus] Snapshot invalidated")

	def is_stale(self) -> bool:
		return self._is_stale(self._snapshot)

	def _is_stale(self, snapshot: Optional[CorpusSnapshot]) -> bool:
		if snapshot is None or self._invalidated:
			return True
		return (self._clock() - snapshot.loaded_at) > self.ttl_seconds

	def snapshot(self) -> CorpusSnapshot:
		"""
		Current snapshot, reloading first when it is older than the TTL.
		A failed automatic reload keeps serving the previous snapshot if there is one.
		"""
		if not self.is_stale():
			return self._snapshot
		with self._lock:
			# another reader may have reloaded while we waited
			current = self._snapshot
			if not self._is_stale(current):
				return current
			try:
				return self._load_locked()
			except Exception as e:
				if current is None:
					raise
				# retry only after another TTL instead of on every read
				self._snapshot = replace(current, loaded_at=self._clock())
				self._invalidated = False
				logger.warning(f"[Corpus] Reload failed, serving previous snapshot ({len(current.records)} products): {e}")
				return self._snapshot

	@property
	def loaded_at(self) -> Optional[float]:
		snapshot = self._snapshot
		return snapshot.loaded_at if snapshot else None

	def all(self) -> Tuple[EnrichedRecord, ...]:
		return self.snapshot().records

	def get(self, product_id: str) -> Optional[EnrichedRecord]:
		return self.snapshot().by_id.get(product_id)

	def ids(self) -> List[str]:
		return [r.id for r in self.all()]

	def __len__(self) -> int:
		return len(self.all())
