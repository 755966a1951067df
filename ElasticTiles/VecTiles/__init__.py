''' VecTiles encodes ElasticTiles TileLayers for the wire.

Two formats are available: Mapbox vector tiles in pbf.py, for map renderers,
and GeoJSON in geojson.py, mostly handy for looking at data in a browser.
'''

from . import pbf, geojson
from ..Core import KnownUnknown

def getTypeByExtension(extension):
    ''' Get mime-type and format by file extension, one of "pbf", "mvt" or "json".
    '''
    if extension.lower() in ('pbf', 'mvt'):
        return 'application/x-protobuf', 'PBF'

    elif extension.lower() in ('json', 'geojson'):
        return 'application/json', 'JSON'

    raise KnownUnknown('ElasticTiles only makes .pbf, .mvt and .json tiles, not "%s"' % extension)

def save(out, format, tile_layers, extent):
    ''' Write a list of TileLayers covering an extent to a file-like object.
    '''
    if format == 'PBF':
        pbf.encode(out, tile_layers, extent)

    elif format == 'JSON':
        geojson.encode(out, tile_layers)

    else:
        raise ValueError(format)
