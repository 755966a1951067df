""" Records read from search hits.

Each hit returned by Elasticsearch is a dictionary whose "_source" holds the
indexed document. A Record class turns one such hit into an identifier, a
shapely geometry in the layer's storage SRID, and a dictionary of remaining
document fields. Layers pick their record class with the "record" setting,
see ElasticTiles.Config.

Record accepts any document. Job is stricter, it declares the string fields
of a job posting and refuses documents where one of them has another type.
Subclasses can override validate() for their own documents, or parseGeometry()
for layers that keep geometry some other way.

Hits that can't be read raise Core.RecordDeserializationFailed.

Recognized geometry values, the same ones Elasticsearch accepts for points
and shapes:

- {"lat": 51.5, "lon": -0.1}, or {"x": 10, "y": 20} for projected layers.
- [-0.1, 51.5], longitude first.
- "51.5,-0.1", latitude first, or "10,20" x first for projected layers.
- WKT strings like "POINT (-0.1 51.5)".
- GeoJSON geometry dictionaries, including the Elasticsearch "envelope" type.
"""

from math import isfinite
from re import compile

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point, box, shape

from . import Core

pair_pat = compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*,\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")

class Record:
    """ One document from a search hit.

        Attributes:

          id:
            Identifier value from the layer's id field, or the hit "_id".

          geometry:
            Shapely geometry in the layer's storage SRID.

          properties:
            Dictionary of the other document fields.
    """
    def __init__(self, id, geometry, properties):
        self.id = id
        self.geometry = geometry
        self.properties = properties

    @classmethod
    def fromHit(cls, hit, layer):
        """ Make a new record from a raw hit for a layer.
        """
        source = hit.get('_source') if isinstance(hit, dict) else None

        if not isinstance(source, dict):
            raise Core.RecordDeserializationFailed('Hit %r has no _source document' % _hitId(hit))

        cls.validate(source)

        if source.get(layer.geometry_field) is None:
            raise Core.RecordDeserializationFailed('Hit %r is missing geometry field "%s"' % (_hitId(hit), layer.geometry_field))

        try:
            geometry = cls.parseGeometry(source[layer.geometry_field], layer.isGeographic())
        except (ValueError, TypeError, KeyError, IndexError, ShapelyError) as e:
            raise Core.RecordDeserializationFailed('Hit %r has an unreadable "%s" geometry: %s' % (_hitId(hit), layer.geometry_field, e))

        ident = source.get(layer.id_field, hit.get('_id'))
        skipped = layer.geometry_field, layer.id_field

        properties = dict([(k, v) for (k, v) in source.items()
                           if k not in skipped and (layer.fields is None or k in layer.fields)])

        return cls(ident, geometry, properties)

    @classmethod
    def validate(cls, source):
        """ Check a _source document, raise RecordDeserializationFailed if it won't do.
        """
        pass

    @staticmethod
    def parseGeometry(value, geographic=True):
        """ Convert a document geometry value to a shapely geometry.

            Raise ValueError if the value isn't recognized.
        """
        if isinstance(value, dict) and 'type' in value:
            if str(value['type']).lower() == 'envelope':
                (minx, maxy), (maxx, miny) = value['coordinates']
                geometry = box(minx, miny, maxx, maxy)
            else:
                geometry = shape(value)

        elif isinstance(value, dict):
            if geographic:
                geometry = Point(float(value['lon']), float(value['lat']))
            else:
                geometry = Point(float(value['x']), float(value['y']))

        elif isinstance(value, (list, tuple)):
            geometry = Point(float(value[0]), float(value[1]))

        elif isinstance(value, str) and pair_pat.match(value):
            a, b = [float(v) for v in value.split(',')]
            geometry = Point(b, a) if geographic else Point(a, b)

        elif isinstance(value, str):
            geometry = wkt.loads(value)

        else:
            raise ValueError('Unrecognized geometry value %r' % (value, ))

        if geometry.is_empty:
            raise ValueError('Empty geometry')

        if not all(isfinite(b) for b in geometry.bounds):
            raise ValueError('Geometry has non-finite coordinates')

        return geometry

class Job(Record):
    """ A job posting.

        Expected documents look like this, with "location" being a geo_point:

          {
            "user": "acme",
            "location": "52.52,13.40",
            "created_at": "2017-06-01T10:00:00Z",
            "updated_at": "2017-06-02T08:30:00Z",
            "contract_type": "permanent",
            "profession": "welder",
            "category": "manufacturing"
          }
    """
    fields = 'user', 'location', 'created_at', 'updated_at', 'contract_type', 'profession', 'category'

    @classmethod
    def validate(cls, source):
        for field in cls.fields:
            if source.get(field) is not None and not isinstance(source[field], str):
                raise Core.RecordDeserializationFailed('Job field "%s" should be a string, not %r' % (field, source[field]))

builtin = {'record': Record, 'job': Job}

def _hitId(hit):
    return hit.get('_id') if isinstance(hit, dict) else hit
