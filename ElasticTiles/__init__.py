""" Vector tiles from Elasticsearch.

ElasticTiles is a data provider for map tile servers. It turns geospatial
documents stored in Elasticsearch indexes into vector tile layers: for each
tile it queries the index for documents inside the tile's bounding box, and
hands back their geometries and attributes as features.

A provider is built from a configuration dictionary or JSON file, described
in ElasticTiles.Config. Tile servers can use it directly:

    provider = ElasticTiles.parseConfig('elastictiles.cfg')
    mimetype, body = ElasticTiles.getTile(provider, 'jobs', Coordinate(1361, 2200, 12), 'pbf')

Or serve it over WSGI, see WSGITileServer and scripts/elastictiles-server.py.
"""
import os.path

__version__ = open(os.path.join(os.path.dirname(__file__), 'VERSION')).read().strip()

import re
import json
import logging

from io import BytesIO
from os.path import realpath
from http.client import responses
from urllib.parse import urlparse
from urllib.request import urlopen
from wsgiref.headers import Headers

from ModestMaps.Core import Coordinate

from . import Core
from . import Config
from . import Geography
from . import VecTiles

# regular expression for PATH_INFO
_pathinfo_pat = re.compile(r'^/?(?P<l>\w[^/]*)/(?P<z>\d+)/(?P<x>-?\d+)/(?P<y>-?\d+)\.(?P<e>\w+)$')

def parseConfig(configHandle, client=None):
    """ Parse a configuration file and return a Provider object.

        Configuration could be a Python dictionary or a file formatted as JSON,
        given as a local path or URL. See ElasticTiles.Config for its contents.

        A top-level "logging" key sets the log level, to one of "debug",
        "info", "warning", "error" or "critical".

        Optional client is passed on to Config.buildProvider().
    """
    if isinstance(configHandle, dict):
        config_dict = configHandle
    else:
        scheme, host, path, p, q, f = urlparse(configHandle)

        if scheme == '':
            scheme = 'file'
            path = realpath(path)

        if scheme == 'file':
            with open(path) as file:
                config_dict = json.load(file)
        else:
            config_dict = json.load(urlopen(configHandle))

    if 'logging' in config_dict:
        level = str(config_dict['logging']).upper()

        if hasattr(logging, level):
            logging.basicConfig(level=getattr(logging, level))

    return Config.buildProvider(config_dict, client)

def splitPathInfo(pathinfo):
    """ Converts a PATH_INFO string to layer names, coordinate, and extension parts.

        Example: "/layer/0/0/0.pbf", leading "/" optional. Several layers may
        be given separated by commas, as in "/jobs,companies/0/0/0.pbf".
    """
    path = _pathinfo_pat.match(pathinfo or '')

    if not path:
        raise Core.KnownUnknown('Bad path: "{}". I was expecting something more like "/example/0/0/0.pbf"'.format(pathinfo))

    layers, row, column, zoom, extension = [path.group(p) for p in 'lyxze']
    coord = Coordinate(int(row), int(column), int(zoom))

    return layers.split(','), coord, extension

def getTile(provider, layer_names, coord, extension, timeout=None):
    ''' Get a type string and tile binary for a given request layer tile.

        Arguments:
        - provider: instance of Providers.Provider.
        - layer_names: one layer name, or a list of them for a combined tile.
        - coord: one ModestMaps.Core.Coordinate corresponding to a single tile.
        - extension: filename extension to choose response type, e.g. "pbf" or "json".
        - timeout: optional search timeout in seconds for each layer.
    '''
    if isinstance(layer_names, str):
        layer_names = [layer_names]

    mimetype, format = VecTiles.getTypeByExtension(extension)
    extent = Geography.extentForCoordinate(coord)
    tile_layers = [provider.tileLayer(name, extent, timeout) for name in layer_names]

    buff = BytesIO()
    VecTiles.save(buff, format, tile_layers, extent)

    return mimetype, buff.getvalue()

def requestHandler(provider, path_info, timeout=None):
    """ Generate a status code, set of headers and response body for a given request.

        Requires a Provider and PATH_INFO (e.g. "/example/0/0/0.pbf").

        Unknown layers are 404s, bad paths or extensions are 400s, and any
        other known failure, for example a search timeout, is a 500.
    """
    path_info = '/' + (path_info or '').lstrip('/')

    #
    # Special case for index page.
    #
    if path_info == '/':
        content = 'ElasticTiles bellows hello. Layers: %s\n' % ', '.join(sorted(provider.layerNames()))
        return 200, Headers([('Content-Type', 'text/plain')]), content.encode('utf8')

    try:
        layer_names, coord, extension = splitPathInfo(path_info)
        VecTiles.getTypeByExtension(extension)

    except Core.KnownUnknown as e:
        return _error(400, e)

    try:
        mimetype, content = getTile(provider, layer_names, coord, extension, timeout)

    except Core.UnknownLayer as e:
        return _error(404, e)

    except Core.KnownUnknown as e:
        logging.error('ElasticTiles.requestHandler() failed on %s: %s', path_info, e)
        return _error(500, e)

    return 200, Headers([('Content-Type', mimetype)]), content

def _error(status_code, error):
    return status_code, Headers([('Content-Type', 'text/plain')]), ('%s\n' % error).encode('utf8')

class WSGITileServer:
    """ Create a WSGI application that can handle requests from any server that talks WSGI.

        The WSGI application is an instance of this class. Example:

          app = WSGITileServer('/path/to/elastictiles.cfg')
          werkzeug.serving.run_simple('localhost', 8080, app)
    """

    def __init__(self, config, autoreload=False, timeout=None):
        """ Initialize a callable WSGI instance.

            Config parameter can be a file path string for a JSON configuration
            file, a configuration dictionary, or a Provider object.

            Optional autoreload boolean parameter causes config to be re-read
            on each request, applicable only when config is a JSON file.

            Optional timeout in seconds bounds each search.
        """
        self.timeout = timeout

        if isinstance(config, str):
            self.autoreload = autoreload
            self.config_path = config
            self.provider = parseConfig(config)

        elif isinstance(config, dict):
            self.autoreload = False
            self.config_path = None
            self.provider = parseConfig(config)

        else:
            assert hasattr(config, 'tileLayer'), 'Provider object must have a tileLayer() method.'
            assert hasattr(config, 'layerNames'), 'Provider object must have a layerNames() method.'

            self.autoreload = False
            self.config_path = None
            self.provider = config

    def __call__(self, environ, start_response):
        """
        """
        if self.autoreload: # re-parse the config file on every request
            try:
                self.provider = parseConfig(self.config_path)
            except Exception as e:
                raise Core.KnownUnknown("Error loading ElasticTiles config file:\n%s" % str(e))

        path_info = environ.get('PATH_INFO', None)

        status_code, headers, content = requestHandler(self.provider, path_info, self.timeout)

        return self._response(start_response, status_code, content, headers)

    def _response(self, start_response, code, content=b'', headers=None):
        """
        """
        headers = headers or Headers([])

        if content:
            headers.setdefault('Content-Length', str(len(content)))

        start_response('%d %s' % (code, responses[code]), headers.items())
        return [content]
