from unittest import TestCase

from shapely.geometry import Point, Polygon

from ElasticTiles import Core
from ElasticTiles.Config import LayerConfig
from ElasticTiles.Features import materialize
from ElasticTiles.Records import Record, Job

from . import utils


class RecordTests(TestCase):
    '''Reading geometries and fields out of search hits'''

    def test_geometry_values(self):
        '''Every Elasticsearch point and shape format is understood'''

        geographic = [
            ({"lat": 52.52, "lon": 13.41}, Point(13.41, 52.52)),
            ([13.41, 52.52], Point(13.41, 52.52)),
            ("52.52,13.41", Point(13.41, 52.52)),
            ("52.52, 13.41", Point(13.41, 52.52)),
            ("POINT (13.41 52.52)", Point(13.41, 52.52)),
            ({"type": "Point", "coordinates": [13.41, 52.52]}, Point(13.41, 52.52)),
            ({"type": "envelope", "coordinates": [[0, 2], [2, 0]]}, Polygon([(0, 0), (2, 0), (2, 2), (0, 2)])),
        ]

        for (value, expected) in geographic:
            geometry = Record.parseGeometry(value, True)
            self.assertTrue(geometry.equals(expected), value)

        projected = [
            ({"x": 10, "y": 20}, Point(10, 20)),
            ("10,20", Point(10, 20)),
            ("1e5,2", Point(100000, 2)),
            ([10, 20], Point(10, 20)),
        ]

        for (value, expected) in projected:
            geometry = Record.parseGeometry(value, False)
            self.assertTrue(geometry.equals(expected), value)

    def test_bad_geometry_values(self):
        '''Unreadable geometries raise errors'''

        for value in (42, "nowhere", {"lat": 52.52}, [13.41], "POINT EMPTY", {"type": "Blob", "coordinates": []}):
            with self.assertRaises(Exception):
                Record.parseGeometry(value, True)

    def test_non_finite_geometry_values(self):
        '''NaN and infinite coordinates are refused in any SRID'''

        for value in ({"type": "Point", "coordinates": [float('nan'), 0]}, [float('inf'), 0], {"x": 0, "y": float('nan')}):
            with self.assertRaises(ValueError):
                Record.parseGeometry(value, False)

    def test_from_hit(self):
        '''Identifier and properties are split from geometry'''

        layer = LayerConfig('jobs', 'jobs', id_field='job_id', geometry_field='location', srid=4326)
        record = Record.fromHit(utils.hit('abc', job_id=12, location="52.52,13.41", user="acme"), layer)

        self.assertEqual(record.id, 12)
        self.assertTrue(record.geometry.equals(Point(13.41, 52.52)))
        self.assertEqual(record.properties, {"user": "acme"})

        # hit _id stands in for a missing identifier field
        record = Record.fromHit(utils.hit('abc', location="52.52,13.41"), layer)
        self.assertEqual(record.id, 'abc')

    def test_bad_hits(self):
        '''Hits without a usable document or geometry are refused'''

        layer = LayerConfig('jobs', 'jobs', geometry_field='location', srid=4326)

        for bad_hit in ("hit", {"_id": "1"}, {"_id": "1", "_source": []},
                        utils.hit(1, user="acme"), utils.hit(1, location=None),
                        utils.hit(1, location="somewhere over the rainbow")):
            with self.assertRaises(Core.RecordDeserializationFailed):
                Record.fromHit(bad_hit, layer)

    def test_job(self):
        '''Job fields must be strings'''

        layer = LayerConfig('jobs', 'jobs', geometry_field='location', srid=4326, record_class=Job)

        job = Job.fromHit(utils.hit(1, user="acme", location="52.52,13.41", profession="welder", salary=50000), layer)
        self.assertEqual(job.properties, {"user": "acme", "profession": "welder", "salary": 50000})

        with self.assertRaises(Core.RecordDeserializationFailed):
            Job.fromHit(utils.hit(1, user=["acme"], location="52.52,13.41"), layer)

        with self.assertRaises(Core.RecordDeserializationFailed):
            Job.fromHit(utils.hit(1, location={"lat": 52.52, "lon": 13.41}), layer)


class MaterializeTests(TestCase):
    '''Folding hits into tile layers'''

    def test_properties(self):
        '''Attributes are kept, dropped or encoded by type'''

        layer = LayerConfig('things', 'things')
        hits = [utils.hit(1, geom="POINT (0 0)", name="one", count=3, ratio=0.5, ok=True,
                          missing=None, tags=["a", "b"], owner={"name": "acme"})]

        tile_layer = materialize(layer, hits)
        geometry, properties, fid = tile_layer.features[0]

        self.assertEqual(fid, 1)
        self.assertEqual(properties, {"name": "one", "count": 3, "ratio": 0.5, "ok": True,
                                      "tags": '["a", "b"]', "owner": '{"name": "acme"}'})

    def test_identifiers(self):
        '''Integer-like identifiers become feature ids, others attributes'''

        layer = LayerConfig('things', 'things')
        hits = [utils.hit('x', gid="17", geom="POINT (0 0)"),
                utils.hit('y', gid="AB-12", geom="POINT (0 0)"),
                utils.hit('z', gid=-4, geom="POINT (0 0)")]

        tile_layer = materialize(layer, hits)
        ids = [(fid, properties.get('gid')) for (geometry, properties, fid) in tile_layer.features]

        self.assertEqual(ids, [(17, None), (None, "AB-12"), (None, -4)])

    def test_fields(self):
        '''Only configured fields become attributes'''

        layer = LayerConfig('things', 'things', fields=['name'])
        tile_layer = materialize(layer, [utils.hit(1, geom="POINT (0 0)", name="one", secret="two")])

        self.assertEqual(tile_layer.features[0][1], {"name": "one"})

    def test_skips(self):
        '''Bad hits are logged and skipped, good ones kept in order'''

        layer = LayerConfig('things', 'things')
        hits = [utils.hit(1, geom="POINT (1 1)"), {"_id": "2"}, utils.hit(3, geom="POINT (3 3)"), utils.hit(4, other=1)]

        with self.assertLogs(level='WARNING') as logs:
            tile_layer = materialize(layer, hits)

        self.assertEqual(len(logs.output), 2)
        self.assertEqual([fid for (g, p, fid) in tile_layer.features], [1, 3])

    def test_polar_records(self):
        '''Records with no mercator position are skipped, not fatal'''

        layer = LayerConfig('jobs', 'jobs', geometry_field='location', srid=4326)
        hits = [utils.hit(1, location="52.52,13.41"), utils.hit(2, location="-90,0"), utils.hit(3, location={"lat": 100, "lon": 0})]

        with self.assertLogs(level='WARNING') as logs:
            tile_layer = materialize(layer, hits)

        self.assertEqual(len(logs.output), 2)
        self.assertEqual([fid for (g, p, fid) in tile_layer.features], [1])

    def test_empty(self):
        '''No hits, empty layer'''

        tile_layer = materialize(LayerConfig('things', 'things'), [])

        self.assertEqual(tile_layer.name, 'things')
        self.assertEqual(tile_layer.features, [])
