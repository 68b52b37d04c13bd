"""
Unit tests for QueryEngine: clause semantics, operators, facets and statistics.
Run: python tests/test_query_engine.py
"""

from catalog_fixtures import assert_equal, assert_true, ids, make_engine, raw

from camera_search.models import FilterSpec, MegapixelFilter, Operators
from camera_search.query_engine import FACET_NAMES, megapixel_label, round_half_up


def test_end_to_end_megapixels_and_marketed():
	engine = make_engine([
		raw('a', specs={'resolution': '12.1 megapixels'}, marketed_date='May 2009'),
		raw('b', specs={'resolution': '24.2 megapixels'}, marketed_date='October 2012'),
	])
	result = engine.search(FilterSpec(megapixels=MegapixelFilter(exact=12.1)))
	assert_equal(ids(result), ['a'], "exact megapixels")
	assert_equal(result.total, 1, "total of exact match")

	result = engine.search(FilterSpec(marketed_after='2010'))
	assert_equal(ids(result), ['b'], "marketed after 2010")


def test_empty_filter_returns_everything():
	engine = make_engine()
	result = engine.search(FilterSpec())
	assert_equal(result.total, 8, "identity filter keeps all products")
	assert_equal(ids(result)[0], 'eos-5d', "corpus order preserved")
	assert_equal(ids(engine.search()), ids(result), "missing spec behaves like an empty one")


def test_conjunction_is_intersection():
	engine = make_engine()
	dslr = set(ids(engine.search(FilterSpec(categories=['DSLR Cameras']))))
	high_res = set(ids(engine.search(FilterSpec(megapixels=MegapixelFilter(min=20)))))
	both = engine.search(FilterSpec(categories=['DSLR Cameras'], megapixels=MegapixelFilter(min=20)))
	assert_equal(dslr, {'eos-5d', 'eos-r5', 'eos-300d'}, "category clause")
	assert_equal(high_res, {'eos-5d', 'eos-r5', 'g1x'}, "megapixel lower bound")
	assert_equal(set(ids(both)), dslr & high_res, "combined clauses intersect")


def test_text_operators():
	engine = make_engine()

	def search(term, operator='contains'):
		return ids(engine.search(FilterSpec(search=term, operators=Operators(text_operator=operator))))

	assert_equal(search('eos'), ['eos-5d', 'eos-r5', 'eos-300d'], "contains")
	assert_equal(search('EOS'), ['eos-5d', 'eos-r5', 'eos-300d'], "case-insensitive")
	assert_equal(search('bluetooth'), ['eos-r5', 'g1x'], "contains searches spec text")
	assert_equal(search('ae-1', 'exact'), ['ae-1'], "exact name")
	assert_equal(search('powershot', 'startsWith'), ['powershot-sx', 'g1x'], "startsWith")
	assert_equal(search(' is', 'endsWith'), ['powershot-sx', 'ixus'], "endsWith")
	assert_equal(search('bluetooth', 'startsWith'), [], "anchored operators only look at the name")
	assert_equal(len(search('   ')), 8, "blank search term is ignored")


def test_megapixel_operators():
	engine = make_engine()

	def search(mp_filter, operator='equals'):
		spec = FilterSpec(megapixels=mp_filter, operators=Operators(megapixels_operator=operator))
		return ids(engine.search(spec))

	assert_equal(search(MegapixelFilter(exact=12.1)), ['ixus'], "equals")
	assert_equal(search(MegapixelFilter(exact=24.2), 'greater'), ['eos-r5'], "greater")
	assert_equal(search(MegapixelFilter(exact=12.1), 'less'), ['eos-300d'], "less")
	assert_equal(
		search(MegapixelFilter(min=12, max=22), 'between'),
		['eos-5d', 'powershot-sx', 'ixus'],
		"between bounds are inclusive",
	)
	assert_equal(search(MegapixelFilter(values=[14.1, 45])), ['eos-r5', 'powershot-sx'], "value set")
	assert_equal(search(MegapixelFilter(min=10, values=[6.3, 12.1])), ['ixus'], "bounds and set both apply")
	assert_true('ae-1' not in search(MegapixelFilter(max=1000)), "products without megapixels never match")
	assert_equal(len(search(MegapixelFilter())), 8, "empty megapixel filter is ignored")


def test_sensor_clauses():
	engine = make_engine()

	def sizes(values, operator='contains'):
		spec = FilterSpec(sensor_sizes=values, operators=Operators(sensor_operator=operator))
		return ids(engine.search(spec))

	assert_equal(sizes(['aps']), ['eos-300d', 'g1x'], "substring of primary")
	assert_equal(sizes(['36 x 24']), ['eos-5d'], "substring of a detected size")
	assert_equal(sizes(['aps'], 'exact'), [], "exact needs the full label")
	assert_equal(sizes(['1/2.3"', 'APS-C'], 'exact'), ['eos-300d', 'powershot-sx', 'ixus', 'g1x'], "exact, any of")

	types = ids(engine.search(FilterSpec(sensor_types=['CCD'])))
	assert_equal(types, ['powershot-sx', 'ixus'], "sensor types compare case-insensitively")
	types = ids(engine.search(FilterSpec(sensor_types=['cm'])))
	assert_equal(types, ['eos-5d', 'eos-r5', 'eos-300d', 'g1x', 'legria'], "sensor types match on substrings")


def test_lens_clauses():
	engine = make_engine()
	assert_equal(ids(engine.search(FilterSpec(focal_length_min=60))), ['powershot-sx'], "lens reaching 60mm")
	assert_equal(
		ids(engine.search(FilterSpec(focal_length_max=16))),
		['powershot-sx', 'ixus', 'g1x'],
		"lens starting at or below 16mm",
	)
	assert_equal(ids(engine.search(FilterSpec(focal_length_min=50, focal_length_max=50))), ['eos-300d', 'powershot-sx', 'ae-1'], "range overlap")
	assert_equal(ids(engine.search(FilterSpec(aperture_max=2.0))), ['ae-1'], "fast aperture")
	assert_equal(ids(engine.search(FilterSpec(aperture_min=5.8))), ['powershot-sx'], "slow tele aperture")


def test_has_zoom():
	engine = make_engine()
	assert_equal(
		ids(engine.search(FilterSpec(has_zoom=True))),
		['eos-300d', 'powershot-sx', 'ixus', 'g1x', 'legria'],
		"zoom lens or zoom tag",
	)
	assert_equal(ids(engine.search(FilterSpec(has_zoom=False))), ['eos-5d', 'eos-r5', 'ae-1'], "no zoom")


def test_categorical_clauses():
	engine = make_engine()
	assert_equal(ids(engine.search(FilterSpec(eras=['2000s']))), ['eos-5d', 'eos-300d', 'ixus'], "era")
	assert_equal(ids(engine.search(FilterSpec(device_types=['Camcorder']))), ['legria'], "device type")
	assert_equal(ids(engine.search(FilterSpec(search_tags=['wifi']))), ['eos-r5', 'g1x'], "feature tag")
	assert_equal(ids(engine.search(FilterSpec(data_quality=['high']))), ['eos-5d', 'eos-r5'], "data quality")
	assert_equal(ids(engine.search(FilterSpec(categories=['Nope']))), [], "unknown category")


def test_marketed_range():
	engine = make_engine()
	after = ids(engine.search(FilterSpec(marketed_after='2010')))
	assert_equal(after, ['eos-r5', 'powershot-sx', 'g1x', 'legria'], "after is inclusive")
	before = ids(engine.search(FilterSpec(marketed_before='Marketed 1999')))
	assert_equal(before, ['ae-1'], "year is taken from free text")
	window = ids(engine.search(FilterSpec(marketed_after='2009', marketed_before='2010')))
	assert_equal(window, ['powershot-sx', 'ixus'], "closed window")


def test_facets():
	engine = make_engine()
	facets = engine.filter_options()
	assert_equal(list(facets), list(FACET_NAMES), "facets in a fixed order")
	assert_equal(sum(o.count for o in facets['categories']), 8, "every product has a category")
	assert_equal(sum(o.count for o in facets['device_types']), 8, "every product has a device type")
	assert_equal(sum(o.count for o in facets['megapixels']), 6, "one count per product with megapixels")
	assert_equal(sum(o.count for o in facets['sensor_sizes']), 7, "one count per product with a sensor size")

	megapixels = [o.value for o in facets['megapixels']]
	assert_equal(megapixels, [45.0, 24.2, 21.1, 14.1, 12.1, 6.3], "megapixels sorted descending")
	assert_equal(facets['megapixels'][0].label, '45MP', "megapixel label")

	categories = [(o.value, o.count) for o in facets['categories']]
	assert_equal(
		categories,
		[('DSLR Cameras', 3), ('Digital Compact Cameras', 3), ('Camcorders', 1), ('Film Cameras', 1)],
		"categories by count",
	)
	assert_equal(sum(o.count for o in facets['eras']), 8, "every product has an era")
	assert_equal(facets['sensor_sizes'][-1].value, '1/2.84 type', "unknown size labels are kept")

	filtered = engine.search(FilterSpec(categories=['Film Cameras'])).filters
	assert_equal([o.value for o in filtered['categories']], ['Film Cameras'], "facets follow the filtered set")
	assert_equal(filtered['megapixels'], [], "no megapixel facet without values")


def test_statistics():
	engine = make_engine()
	stats = engine.statistics()
	assert_equal(stats.total_products, 8, "total")
	assert_equal(stats.filtered_count, 8, "filtered")
	assert_equal(stats.average_megapixels, 20.5, "average rounded to one decimal")
	assert_equal(stats.megapixel_range, {'min': 6.3, 'max': 45.0}, "range")

	empty = engine.search(FilterSpec(categories=['Film Cameras'])).statistics
	assert_equal(empty.total_products, 8, "total is corpus-wide")
	assert_equal(empty.average_megapixels, 0.0, "no megapixels -> zero average")
	assert_equal(empty.megapixel_range, {'min': 0.0, 'max': 0.0}, "no megapixels -> zero range")


def test_average_rounds_half_up():
	assert_equal(round_half_up(12.25), 12.3, "half goes up")
	assert_equal(round_half_up(12.24), 12.2, "below half goes down")
	engine = make_engine([
		raw('low', specs={'Resolution': '12.2 megapixels'}),
		raw('high', specs={'Resolution': '12.3 megapixels'}),
	])
	assert_equal(engine.statistics().average_megapixels, 12.3, "12.25 average shown as 12.3")


def test_lookup_and_random():
	engine = make_engine()
	assert_equal(engine.get_product('ixus').name, 'IXUS 120 IS', "lookup by id")
	assert_true(engine.get_product('missing') is None, "unknown id")

	sample = engine.random_products(3, seed=7)
	assert_equal(len(sample), 3, "sample size")
	assert_equal(len({p.id for p in sample}), 3, "sample without repeats")
	assert_equal([p.id for p in engine.random_products(3, seed=7)], [p.id for p in sample], "seeded sample is stable")
	assert_equal(len(engine.random_products(100)), 8, "sample capped at corpus size")


def test_megapixel_label():
	assert_equal(megapixel_label(12.1), '12.1MP', "decimal label")
	assert_equal(megapixel_label(24.0), '24MP', "integral label")


def main():
	print("Running QueryEngine tests...")
	test_end_to_end_megapixels_and_marketed()
	test_empty_filter_returns_everything()
	test_conjunction_is_intersection()
	print(" - core clauses ok")
	test_text_operators()
	test_megapixel_operators()
	test_sensor_clauses()
	test_lens_clauses()
	test_has_zoom()
	test_categorical_clauses()
	test_marketed_range()
	print(" - operators ok")
	test_facets()
	test_statistics()
	test_average_rounds_half_up()
	test_lookup_and_random()
	test_megapixel_label()
	print(" - facets and statistics ok")
	print("All QueryEngine tests passed!")


if __name__ == '__main__':
	main()
