from unittest import TestCase
import json

from ModestMaps.Core import Point

from ElasticTiles.Config import LayerConfig
from ElasticTiles.Query import buildEnvelopeQuery, BBOX


class QueryTests(TestCase):

    def test_geographic(self):
        '''Layers in SRID 4326 get a geo_bounding_box filter'''

        layer = LayerConfig('jobs', 'jobs', geometry_field='location', srid=4326)
        query = buildEnvelopeQuery(layer, Point(-0.2, 51.4), Point(0.1, 51.6), size=100)

        self.assertEqual(query.index, 'jobs')
        self.assertEqual(query.size, 100)
        self.assertEqual(query.fields, None)

        bbox = query.body['bool']['filter'][0]['geo_bounding_box']['location']
        self.assertEqual(bbox['bottom_left'], {'lat': 51.4, 'lon': -0.2})
        self.assertEqual(bbox['top_right'], {'lat': 51.6, 'lon': 0.1})

    def test_projected(self):
        '''Layers in other SRIDs get a shape filter with an envelope'''

        layer = LayerConfig('parcels', 'cadastre', srid=3857)
        query = buildEnvelopeQuery(layer, Point(-100, -50), Point(200, 300))

        self.assertEqual(query.index, 'cadastre')

        shape = query.body['bool']['filter'][0]['shape']['geom']
        self.assertEqual(shape['relation'], 'intersects')
        self.assertEqual(shape['shape']['type'], 'envelope')
        self.assertEqual(shape['shape']['coordinates'], [[-100, 300], [200, -50]])

    def test_template(self):
        '''The bounding box filter replaces the template token'''

        template = '{"bool": {"must": [{"term": {"category": "it"}}, %s]}}' % BBOX
        layer = LayerConfig('jobs', 'jobs', template=template, geometry_field='location', srid=4326)
        query = buildEnvelopeQuery(layer, Point(1, 2), Point(3, 4))

        term, bbox = query.body['bool']['must']
        self.assertEqual(term, {'term': {'category': 'it'}})
        self.assertEqual(bbox['geo_bounding_box']['location']['top_right'], {'lat': 4, 'lon': 3})

        # query bodies are plain JSON-able data
        self.assertEqual(json.loads(json.dumps(query.body)), query.body)

    def test_fields(self):
        '''Restricted fields still fetch geometry and identifier'''

        layer = LayerConfig('jobs', 'jobs', fields=['profession', 'gid'], srid=4326)
        query = buildEnvelopeQuery(layer, Point(1, 2), Point(3, 4))

        self.assertEqual(query.fields, ['profession', 'gid', 'geom'])
        self.assertEqual(layer.fields, ['profession', 'gid'])
