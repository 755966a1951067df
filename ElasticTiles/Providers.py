""" The provider bits of ElasticTiles.

A Provider is the part of ElasticTiles a tile server talks to. It knows a set
of named layers, and for a layer name and a tile extent it returns a TileLayer
of features found in Elasticsearch:

    provider = ElasticTiles.Config.buildProvider(config_dict)
    extent = ElasticTiles.Geography.extentForCoordinate(Coordinate(1361, 2200, 12))
    tile_layer = provider.tileLayer('jobs', extent, timeout=5)

One request goes like this:

1. The layer name is looked up, Core.UnknownLayer if it's not there.
2. The extent's lower-left and upper-right corners are converted from
   spherical mercator to the layer's storage SRID.
3. A bounding box query is built from the corners and run by the search
   client, bounded by the request timeout. Failures become Core.QueryFailed.
4. Hits are materialized into a TileLayer, skipping any bad records.

Nothing here retries; that's the search client's business. Providers are not
modified after construction and may be shared by concurrent requests.

Tile servers find providers through a Registry they own. This module's
register() function adds the Elasticsearch provider to one:

    registry = ElasticTiles.Providers.Registry()
    ElasticTiles.Providers.register(registry)
    provider = registry.getProviderByName('elasticsearch')(config_dict)
"""

import logging

from . import Core
from . import Geography
from . import Features
from .Query import buildEnvelopeQuery

class Provider:
    """ Elasticsearch data provider for vector tile layers.

        Usually made by ElasticTiles.Config.buildProvider().

        Arguments:

          layers:
            Dictionary of Config.LayerConfig objects keyed by layer name.

          client:
            Search client with an execute(query, timeout) method, see
            ElasticTiles.Search.

          srid:
            Default storage SRID of the provider's layers.

          timeout:
            Default search timeout in seconds for tileLayer(), or None.

          max_features:
            Most hits fetched for one tile.
    """
    def __init__(self, layers, client, srid=Geography.DEFAULT_SRID, timeout=None, max_features=10000):
        self.layers = layers
        self.client = client
        self.srid = srid
        self.timeout = timeout
        self.max_features = max_features

    def layerNames(self):
        """ Return the set of configured layer names.
        """
        return set(self.layers.keys())

    def tileLayer(self, layer_name, extent, timeout=None):
        """ Return a Features.TileLayer for a layer name and Geography.Extent.

            Optional timeout in seconds overrides the provider default.
        """
        if layer_name not in self.layers:
            raise Core.UnknownLayer(layer_name, self.layers.keys())

        layer = self.layers[layer_name]

        lower_left = self._corner(layer, 'lower-left', extent.lowerLeft())
        upper_right = self._corner(layer, 'upper-right', extent.upperRight())

        query = buildEnvelopeQuery(layer, lower_left, upper_right, self.max_features)

        try:
            hits = self.client.execute(query, self.timeout if timeout is None else timeout)
        except Core.QueryFailed as e:
            raise Core.QueryFailed('For layer %s: %s' % (layer_name, e)) from e

        logging.debug('ElasticTiles.Providers.Provider.tileLayer() got %d hits for layer %s in %s', len(hits), layer_name, extent)

        return Features.materialize(layer, hits)

    def _corner(self, layer, which, point):
        """ Convert one extent corner to the layer's storage SRID, with context in errors.
        """
        try:
            return Geography.toStorageCRS(layer.srid, point)

        except Core.UnsupportedProjection as e:
            raise Core.UnsupportedProjection('For layer %s %s corner: %s' % (layer.name, which, e)) from e

        except Core.GeometryShapeMismatch as e:
            raise Core.GeometryShapeMismatch('For layer %s %s corner: %s' % (layer.name, which, e)) from e

class Registry:
    """ Table of provider factories by name, owned by a tile server.

        A factory is a callable accepting a configuration dictionary and
        returning a provider.
    """
    def __init__(self):
        self.factories = {}

    def register(self, name, factory):
        if name in self.factories:
            raise Core.KnownUnknown('A provider named "%s" is already registered' % name)

        self.factories[name] = factory

    def names(self):
        return sorted(self.factories.keys())

    def getProviderByName(self, name):
        """ Retrieve a provider factory by name.

            Raise an exception if the name doesn't work out.
        """
        if name not in self.factories:
            raise Core.KnownUnknown('Unknown provider name: "%s"' % name)

        return self.factories[name]

def register(registry):
    """ Add the Elasticsearch provider to a Registry under its name.
    """
    from . import Config

    registry.register(Config.Name, Config.buildProvider)
