""" The geography bits of ElasticTiles.

Tiles are always addressed and bounded in spherical mercator, the projection
used by most web maps. Documents in a search index may be stored in some other
spatial reference, identified by an integer SRID in each layer configuration:

    "layers": [
      {"name": "jobs", "srid": 4326, ...}
    ]

Functions here convert single points between the two, in both directions.
Known SRIDs:
- 3857, 900913, 3785, 102100, 102113: spherical mercator, no conversion.
- 4326: WGS84 longitude and latitude, using the same mercator math as ModestMaps.
- anything else pyproj knows about as an EPSG code.

Points are ModestMaps.Core.Point instances with x and y attributes. A point
that comes back from a conversion as anything other than one finite (x, y)
pair raises Core.GeometryShapeMismatch.
"""

from math import isfinite, log as _log, pi as _pi

import shapely
from ModestMaps.Core import Point, Coordinate
from ModestMaps.Geo import deriveTransformation, MercatorProjection, Location
from pyproj import Transformer
from pyproj.exceptions import CRSError

from . import Core

DEFAULT_SRID = 3857
WGS84_SRID = 4326
MERCATOR_SRIDS = (3857, 900913, 3785, 102100, 102113)

# pyproj transformers keyed by storage SRID, created on first use.
_transformers = {}

class SphericalMercator(MercatorProjection):
    """ Spherical mercator projection for most commonly-used web map tile scheme.

        The simplified projection used here is described in greater detail at:
        http://trac.openlayers.org/wiki/SphericalMercator
    """
    srs = '+proj=merc +a=6378137 +b=6378137 +lat_ts=0.0 +lon_0=0.0 +x_0=0.0 +y_0=0 +k=1.0 +units=m +nadgrids=@null +wktext +no_defs +over'

    def __init__(self):
        pi = _pi

        # Transform from raw mercator projection to tile coordinates
        t = deriveTransformation(-pi, pi, 0, 0, pi, pi, 1, 0, -pi, -pi, 0, 1)

        MercatorProjection.__init__(self, 0, t)

    def coordinateProj(self, coord):
        """ Convert from Coordinate object to a Point object in EPSG:3857
        """
        # the zoom at which we're dealing with meters on the ground
        diameter = 2 * _pi * 6378137
        zoom = _log(diameter) / _log(2)
        coord = coord.zoomTo(zoom)

        # global offsets
        point = Point(coord.column, coord.row)
        point.x = point.x - diameter/2
        point.y = diameter/2 - point.y

        return point

    def projCoordinate(self, point):
        """ Convert from Point object in EPSG:3857 to a Coordinate object
        """
        diameter = 2 * _pi * 6378137
        zoom = _log(diameter) / _log(2)

        coord = Coordinate(point.y, point.x, zoom)
        coord.column = coord.column + diameter/2
        coord.row = diameter/2 - coord.row

        return coord

    def locationProj(self, location):
        """ Convert from Location object to a Point object in EPSG:3857
        """
        return self.coordinateProj(self.locationCoordinate(location))

    def projLocation(self, point):
        """ Convert from Point object in EPSG:3857 to a Location object
        """
        return self.coordinateLocation(self.projCoordinate(point))

_mercator = SphericalMercator()

class Extent:
    """ Bounding box of one tile in spherical mercator meters.
    """
    def __init__(self, minx, miny, maxx, maxy):
        self.minx, self.miny = float(minx), float(miny)
        self.maxx, self.maxy = float(maxx), float(maxy)

    def lowerLeft(self):
        return Point(self.minx, self.miny)

    def upperRight(self):
        return Point(self.maxx, self.maxy)

    def bounds(self):
        return self.minx, self.miny, self.maxx, self.maxy

    def __repr__(self):
        return 'Extent(%.6f, %.6f, %.6f, %.6f)' % self.bounds()

def extentForCoordinate(coord):
    """ Return the Extent of a ModestMaps tile Coordinate.
    """
    ll = _mercator.coordinateProj(coord.down())
    ur = _mercator.coordinateProj(coord.right())

    return Extent(ll.x, ll.y, ur.x, ur.y)

def isGeographic(srid):
    return srid == WGS84_SRID

def toStorageCRS(srid, point):
    """ Convert a spherical mercator Point to a Point in the given SRID.
    """
    return _checkedPoint(srid, _attempt(srid, point, False))

def fromStorageCRS(srid, point):
    """ Convert a Point in the given SRID to a spherical mercator Point.
    """
    return _checkedPoint(srid, _attempt(srid, point, True))

def fromStorageGeometry(srid, shape):
    """ Convert every coordinate of a shapely geometry from the SRID to spherical mercator.
    """
    if srid in MERCATOR_SRIDS:
        return shape

    def project(coords):
        points = [fromStorageCRS(srid, Point(x, y)) for (x, y) in coords]
        return [(p.x, p.y) for p in points]

    return shapely.transform(shape, project)

def _attempt(srid, point, inverse):
    """ Run _transform() for a Point, turning math errors into GeometryShapeMismatch.

        Latitudes of -90 or past either pole have no mercator y and fail this way.
    """
    try:
        return _transform(srid, point.x, point.y, inverse)
    except (ValueError, ZeroDivisionError, OverflowError) as e:
        raise Core.GeometryShapeMismatch('Point (%r, %r) has no SRID %s transformation: %s' % (point.x, point.y, srid, e)) from e

def _transform(srid, x, y, inverse):
    """ Return an (x, y) pair for a point, from mercator to SRID or the reverse.
    """
    if srid in MERCATOR_SRIDS:
        return x, y

    if srid == WGS84_SRID:
        if inverse:
            point = _mercator.locationProj(Location(y, x))
            return point.x, point.y

        location = _mercator.projLocation(Point(x, y))
        return location.lon, location.lat

    return _transformer(srid).transform(x, y, direction=('INVERSE' if inverse else 'FORWARD'))

def _transformer(srid):
    """ Get a pyproj Transformer from spherical mercator to the SRID.
    """
    if srid not in _transformers:
        try:
            _transformers[srid] = Transformer.from_crs(DEFAULT_SRID, srid, always_xy=True)
        except CRSError as e:
            raise Core.UnsupportedProjection('No known transformation for SRID %s: %s' % (srid, e))

    return _transformers[srid]

def _checkedPoint(srid, result):
    """ Return a Point for a transformation result, or complain about its shape.
    """
    try:
        x, y = result
        if isfinite(x) and isfinite(y):
            return Point(x, y)
    except (TypeError, ValueError):
        pass

    raise Core.GeometryShapeMismatch('Expected a single finite point from SRID %s transformation, got %r' % (srid, result))
