""" Bounding box queries for Elasticsearch.

A tile becomes a query in two steps: its corners are converted to the layer's
storage SRID by ElasticTiles.Geography, and then buildEnvelopeQuery() wraps them
in a spatial filter over the layer's geometry field.

Geographic layers (SRID 4326) are assumed to keep geo_point or geo_shape
fields, and get a geo_bounding_box filter:

    {"geo_bounding_box": {"location": {"bottom_left": {"lat": 51.4, "lon": -0.2},
                                       "top_right": {"lat": 51.6, "lon": 0.1}}}}

Layers stored in any other SRID are assumed to keep Cartesian point or shape
fields, and get a shape filter with an envelope in storage units:

    {"shape": {"geom": {"shape": {"type": "envelope",
                                  "coordinates": [[-22263.8, 6711573.0], [11131.9, 6679196.6]]},
                        "relation": "intersects"}}}

A layer's query template, if any, has its !BBOX! token replaced with the filter.
Without a template the filter is used on its own.
"""

import json

# Token replaced by the bounding box filter in a layer query template.
BBOX = '!BBOX!'

class Query:
    """ One search against one index, not yet executed.

        Attributes:

          index:
            Name of the Elasticsearch index.

          body:
            Query DSL dictionary, what goes under "query" in a search request.

          fields:
            List of _source fields to return, or None for everything.

          size:
            Maximum number of hits.
    """
    def __init__(self, index, body, fields=None, size=10000):
        self.index = index
        self.body = body
        self.fields = fields
        self.size = size

    def __repr__(self):
        return '<Query %s: %s>' % (self.index, json.dumps(self.body))

def bboxFilter(layer, lower_left, upper_right):
    """ Return a spatial filter over the layer's geometry field for two storage-CRS Points.
    """
    if layer.isGeographic():
        corners = {'bottom_left': {'lat': lower_left.y, 'lon': lower_left.x},
                   'top_right': {'lat': upper_right.y, 'lon': upper_right.x}}

        return {'geo_bounding_box': {layer.geometry_field: corners}}

    # envelope coordinates are upper-left then lower-right
    envelope = {'type': 'envelope',
                'coordinates': [[lower_left.x, upper_right.y], [upper_right.x, lower_left.y]]}

    return {'shape': {layer.geometry_field: {'shape': envelope, 'relation': 'intersects'}}}

def buildEnvelopeQuery(layer, lower_left, upper_right, size=10000):
    """ Build a Query for everything in a layer between two storage-CRS Points.

        lower_left is the south-west corner and upper_right the north-east.
    """
    bbox = bboxFilter(layer, lower_left, upper_right)

    if layer.template:
        body = json.loads(layer.template.replace(BBOX, json.dumps(bbox)))
    else:
        body = {'bool': {'filter': [bbox]}}

    fields = None

    if layer.fields is not None:
        # geometry and identifier are needed whatever attributes are kept
        fields = list(layer.fields)
        fields += [f for f in (layer.geometry_field, layer.id_field) if f not in fields]

    return Query(layer.index, body, fields, size)
