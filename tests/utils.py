from tempfile import mkstemp
import json
import os

from ModestMaps.Core import Coordinate
from werkzeug.test import Client

from ElasticTiles import getTile, parseConfig, WSGITileServer

def request(provider, layer_name, format, row, column, zoom):
    '''
    Helper method to render one tile from a provider, or
    from a configuration dictionary with a fake index.
    '''
    coord = Coordinate(int(row), int(column), int(zoom))
    mime_type, tile_content = getTile(provider, layer_name, coord, format)

    return mime_type, tile_content

def wsgi_client(provider):
    '''
    Helper method to make a werkzeug test client for a provider.
    '''
    return Client(WSGITileServer(provider))

def create_temp_file(buffer):
    '''
    Helper method to create temp file on disk. Caller is responsible
    for deleting file once done
    '''
    fd, absolute_file_name = mkstemp(text=True)
    file = os.fdopen(fd, 'w')
    file.write(buffer)
    file.close()
    return absolute_file_name

def provider_from_file(config_content, client):
    '''
    Helper method to write config_content to disk and parse it
    '''
    absolute_file_name = create_temp_file(json.dumps(config_content))

    try:
        return parseConfig(absolute_file_name, client)
    finally:
        os.remove(absolute_file_name)

def hit(_id, **source):
    '''
    Helper method to make one raw search hit
    '''
    return {'_index': 'test', '_id': str(_id), '_source': source}

class FakeIndex:
    '''
    Stand-in for ElasticTiles.Search.Client, keeping hits for each index
    in memory and remembering every query it was asked to execute.

    geo_bounding_box filters are applied to "lat,lon" and {"lat", "lon"}
    geometry values, anything else is returned whatever the query.
    '''
    def __init__(self, indexes=None, error=None):
        self.indexes = indexes or {}
        self.error = error
        self.queries = []

    def execute(self, query, timeout=None):
        self.queries.append((query, timeout))

        if self.error is not None:
            raise self.error

        bbox = find_geo_bounding_box(query.body)
        hits = self.indexes.get(query.index, [])

        return [h for h in hits if bbox is None or inside(h, *bbox)]

def find_geo_bounding_box(body):
    if isinstance(body, dict):
        if 'geo_bounding_box' in body:
            (field, corners), = body['geo_bounding_box'].items()
            return field, corners['bottom_left'], corners['top_right']

        values = body.values()

    elif isinstance(body, list):
        values = body

    else:
        return None

    for value in values:
        found = find_geo_bounding_box(value)

        if found:
            return found

    return None

def inside(hit, field, bottom_left, top_right):
    value = hit.get('_source', {}).get(field)

    try:
        if isinstance(value, dict):
            lat, lon = float(value['lat']), float(value['lon'])
        else:
            lat, lon = [float(v) for v in value.split(',')]
    except (AttributeError, KeyError, TypeError, ValueError):
        return True

    return bottom_left['lat'] <= lat <= top_right['lat'] \
       and bottom_left['lon'] <= lon <= top_right['lon']
