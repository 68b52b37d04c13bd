"""
Tests for loading scraped products and persisting the enriched corpus.
Run: python tests/test_data_loader.py
"""

import json
import tempfile
from pathlib import Path

from catalog_fixtures import assert_equal, assert_true, sample_products

from camera_search.data_loader import DataLoader
from camera_search.enrichment import enrich_all, summarize_enrichment
from camera_search.models import EnrichedRecord


SCRAPED = [
	{
		'id': 'eos-650',
		'name': 'EOS 650',
		'category': 'Film Cameras',
		'categoryCode': 'film',
		'marketedDate': 'Marketed March 1987',
		'specifications': {'Type': '35mm AF SLR', 'Weight': 650, 'Notes': None},
		'names': {'japan': 'EOS 650'},
		'images': ['https://example.com/650.jpg', ''],
		'dataQuality': 'high',
	},
	{'name': 'no id here'},
	'not an object',
	{'id': 'ixus-1', 'name': 'IXUS'},
]


def write(tmp, name, content):
	path = Path(tmp) / name
	path.write_text(content, encoding='utf-8')
	return str(path)


def test_load_json_document():
	with tempfile.TemporaryDirectory() as tmp:
		path = write(tmp, 'products.json', json.dumps({'products': SCRAPED}))
		products = DataLoader().load_raw_products(path)

	assert_equal([p.id for p in products], ['eos-650', 'ixus-1'], "malformed entries skipped")
	first = products[0]
	assert_equal(first.marketed_date, 'Marketed March 1987', "camelCase alias")
	assert_equal(first.category_code, 'film', "camelCase alias")
	assert_equal(first.data_quality, 'high', "quality read from input")
	assert_equal(first.specifications, {'Type': '35mm AF SLR', 'Weight': '650'}, "spec values coerced to text")
	assert_equal(first.images, ['https://example.com/650.jpg'], "empty image urls dropped")
	assert_equal(products[1].data_quality, 'medium', "default quality")


def test_load_jsonl():
	lines = [json.dumps(SCRAPED[0]), '', '{broken json', json.dumps(SCRAPED[3])]
	with tempfile.TemporaryDirectory() as tmp:
		path = write(tmp, 'products.jsonl', '\n'.join(lines) + '\n')
		products = DataLoader().load_raw_products(path)
	assert_equal([p.id for p in products], ['eos-650', 'ixus-1'], "bad lines skipped")


def test_missing_and_invalid_files():
	loader = DataLoader()
	with tempfile.TemporaryDirectory() as tmp:
		for call in (loader.load_raw_products, loader.load_enriched):
			try:
				call(str(Path(tmp) / 'missing.json'))
				raise AssertionError("missing file should raise")
			except FileNotFoundError:
				pass

		path = write(tmp, 'broken.json', '{"products": [')
		try:
			loader.load_enriched(path)
			raise AssertionError("invalid JSON should raise")
		except ValueError:
			pass

		path = write(tmp, 'wrong.json', json.dumps({'products': [{'smart_specs': {}}]}))
		try:
			loader.load_enriched(path)
			raise AssertionError("record without product should raise")
		except ValueError:
			pass


def test_enriched_round_trip():
	records = enrich_all(sample_products())
	loader = DataLoader()
	with tempfile.TemporaryDirectory() as tmp:
		path = Path(tmp) / 'nested' / 'smart.json'
		loader.save_enriched(records, str(path), summary=summarize_enrichment(records), source_file='scraped.json')
		document = json.loads(path.read_text(encoding='utf-8'))
		loaded = loader.load_enriched(str(path))
		leftovers = [p.name for p in path.parent.iterdir() if p.name != 'smart.json']

	assert_equal(document['total_products'], len(records), "count in header")
	assert_equal(document['source_file'], 'scraped.json', "source in header")
	assert_equal(document['statistics']['megapixel_products'], 6, "summary in header")
	assert_equal(loaded, records, "records survive save and load")
	assert_equal(leftovers, [], "no temporary files left behind")


def test_record_dict_round_trip():
	for record in enrich_all(sample_products()):
		assert_equal(EnrichedRecord.from_dict(record.to_dict()), record, f"dict round trip for {record.id}")


def test_categories():
	categories = DataLoader().get_all_categories(sample_products())
	assert_equal(categories, ['Camcorders', 'DSLR Cameras', 'Digital Compact Cameras', 'Film Cameras'], "sorted unique")
	assert_true(DataLoader().get_all_categories([]) == [], "empty input")


def main():
	print("Running DataLoader tests...")
	test_load_json_document()
	test_load_jsonl()
	test_missing_and_invalid_files()
	print(" - raw loading ok")
	test_enriched_round_trip()
	test_record_dict_round_trip()
	test_categories()
	print(" - persistence ok")
	print("All DataLoader tests passed!")


if __name__ == '__main__':
	main()
