""" The configuration bits of ElasticTiles.

ElasticTiles configuration is a dictionary, usually read from a JSON file by
ElasticTiles.parseConfig(). It describes one Elasticsearch connection and a
list of layers served from it:

    {
      "host": "localhost",
      "port": 9200,
      "user": "elastic",
      "password": "secret",
      "max_connection": 5,
      "srid": 3857,
      "layers": [
        {
          "name": "jobs",
          "tablename": "jobs",
          "geometry_fieldname": "location",
          "id_fieldname": "job_id",
          "fields": ["profession", "category"],
          "record": "job",
          "srid": 4326
        }
      ]
    }

Connection settings, all optional:

- "host" and "port" locate Elasticsearch, default localhost:9200.
- "user" and "password" are used for HTTP basic authentication when given.
- "max_connection" caps connections per node, default 5.
- "database" is accepted for compatibility with other tile server providers
  and otherwise unused; the index searched is each layer's "tablename".
- "timeout" is a default per-request search timeout in seconds.
- "max_features" is the most hits fetched for one tile, default 10000.
- "srid" is the storage SRID for layers that don't name their own, default
  3857 (spherical mercator).

Each layer has a required, unique "name" and these optional settings:

- "tablename" is the index to search, defaults to the layer name.
- "sql" is a query template: JSON query DSL containing the token !BBOX!,
  which is replaced with the tile's bounding box filter. For example:
  {"bool": {"must": [{"term": {"category": "it"}}, !BBOX!]}}
  When a "tablename" other than the layer name is also given, the template
  is ignored with a warning and a plain bounding box query is used.
- "fields" limits feature attributes to a list of document fields.
- "geometry_fieldname" and "id_fieldname" name the document fields holding
  geometry and feature identifier, defaulting to "geom" and "gid". They may
  not be the same.
- "srid" overrides the provider storage SRID.
- "record" picks how documents are read: "record" (any document, default),
  "job", or a "Module:Class" path to a Records.Record subclass.
"""

import json
import logging

from . import Core
from . import Geography
from . import Records
from . import Search
from .Providers import Provider
from .Query import BBOX

Name = 'elasticsearch'
DefaultHost = 'localhost'
DefaultPort = 9200
DefaultSRID = Geography.DEFAULT_SRID
DefaultMaxConn = 5
DefaultMaxFeatures = 10000

ConfigKeyHost = 'host'
ConfigKeyPort = 'port'
ConfigKeyDB = 'database'
ConfigKeyUser = 'user'
ConfigKeyPassword = 'password'
ConfigKeyMaxConn = 'max_connection'
ConfigKeySRID = 'srid'
ConfigKeyTimeout = 'timeout'
ConfigKeyMaxFeatures = 'max_features'
ConfigKeyLayers = 'layers'
ConfigKeyLayerName = 'name'
ConfigKeyTablename = 'tablename'
ConfigKeySQL = 'sql'
ConfigKeyFields = 'fields'
ConfigKeyGeomField = 'geometry_fieldname'
ConfigKeyGeomIDField = 'id_fieldname'
ConfigKeyRecord = 'record'

class LayerConfig:
    """ Everything needed to query and materialize one layer.

        Attributes:

          name:
            Layer name, unique within a provider.

          index:
            Name of the Elasticsearch index searched for this layer.

          template:
            Query template with a !BBOX! token, or empty string for the
            plain bounding box query.

          fields:
            List of document fields kept as feature attributes, or None for all.

          id_field, geometry_field:
            Document fields for the feature identifier and geometry.

          srid:
            Integer spatial reference the geometry field is stored in.

          record_class:
            Records.Record subclass used to read hits.
    """
    def __init__(self, name, index, template='', fields=None, id_field='gid',
                 geometry_field='geom', srid=DefaultSRID, record_class=Records.Record):
        self.name = name
        self.index = index
        self.template = template
        self.fields = fields
        self.id_field = id_field
        self.geometry_field = geometry_field
        self.srid = srid
        self.record_class = record_class

    def isGeographic(self):
        return Geography.isGeographic(self.srid)

    def __repr__(self):
        return '<LayerConfig %s: index=%s, srid=%d>' % (self.name, self.index, self.srid)

def buildProvider(config_dict, client=None):
    """ Build a configuration dictionary into a Provider object.

        The optional client is the search client to use, anything with an
        execute(query, timeout) method. When absent, a Search.Client is made
        from the connection settings.

        Raises a Core.KnownUnknown subclass for anything wrong in the
        configuration; a partial provider is never returned.
    """
    if not isinstance(config_dict, dict):
        raise Core.ConfigShape('Expected provider configuration to be a dictionary, not %s' % type(config_dict).__name__)

    layer_dicts = config_dict.get(ConfigKeyLayers)

    if not isinstance(layer_dicts, list) or not all(isinstance(ld, dict) for ld in layer_dicts):
        raise Core.ConfigShape('Expected %s to be a list of dictionaries' % ConfigKeyLayers)

    srid = _integer(config_dict, ConfigKeySRID, DefaultSRID, 'provider')
    timeout = _number(config_dict, ConfigKeyTimeout, None, 'provider')
    max_features = _integer(config_dict, ConfigKeyMaxFeatures, DefaultMaxFeatures, 'provider')

    layers = {}
    seen = {}

    for (i, layer_dict) in enumerate(layer_dicts):
        layer = _parseConfigLayer(layer_dict, i, seen, srid)
        layers[layer.name] = layer

    if client is None:
        client = Search.connect(_connectionSettings(config_dict))

    return Provider(layers, client, srid, timeout, max_features)

def _parseConfigLayer(layer_dict, i, seen, default_srid):
    """ Used by buildProvider() to parse just one layer of a config.

        The seen dictionary maps names of already-parsed layers to their
        indexes, and is updated here.
    """
    if ConfigKeyLayerName not in layer_dict or layer_dict[ConfigKeyLayerName] in ('', None):
        raise Core.MissingField('For layer(%d) the required %s field is missing' % (i, ConfigKeyLayerName))

    lname = _string(layer_dict, ConfigKeyLayerName, None, 'layer(%d)' % i)
    context = 'layer(%d) %s' % (i, lname)

    if lname in seen:
        raise Core.DuplicateLayer(lname, seen[lname], i)

    seen[lname] = i

    geomfld = _string(layer_dict, ConfigKeyGeomField, 'geom', context)
    idfld = _string(layer_dict, ConfigKeyGeomIDField, 'gid', context)

    if idfld == geomfld:
        raise Core.ConflictingFields('For %s: %s (%s) and %s (%s) are the same!' % (context, ConfigKeyGeomField, geomfld, ConfigKeyGeomIDField, idfld))

    tblname = _string(layer_dict, ConfigKeyTablename, lname, context)
    sql = _string(layer_dict, ConfigKeySQL, '', context)

    if tblname != lname and sql != '':
        logging.warning('ElasticTiles.Config._parseConfigLayer() Both %s and %s fields are specified for %s, using only %s field.', ConfigKeyTablename, ConfigKeySQL, context, ConfigKeyTablename)
        sql = ''

    if sql:
        if BBOX not in sql:
            raise Core.ConfigShape('For %s, %s must contain a %s token' % (context, ConfigKeySQL, BBOX))

        try:
            body = json.loads(sql.replace(BBOX, '{}'))
        except ValueError as e:
            raise Core.ConfigShape('For %s, %s must be a JSON query with a %s token: %s' % (context, ConfigKeySQL, BBOX, e))

        if not isinstance(body, dict):
            raise Core.ConfigShape('For %s, %s must be a JSON object, not %s' % (context, ConfigKeySQL, type(body).__name__))

    fields = layer_dict.get(ConfigKeyFields)

    if fields is not None:
        if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
            raise Core.ConfigShape('For %s, expected %s to be a list of strings' % (context, ConfigKeyFields))

    srid = _integer(layer_dict, ConfigKeySRID, default_srid, context)
    record_class = _recordClass(_string(layer_dict, ConfigKeyRecord, 'record', context), context)

    return LayerConfig(lname, tblname, sql, fields, idfld, geomfld, srid, record_class)

def _recordClass(record, context):
    """ Resolve a "record" configuration value to a Records.Record subclass.
    """
    if record.lower() in Records.builtin:
        return Records.builtin[record.lower()]

    _class = Core.loadClassPath(record)

    if not (isinstance(_class, type) and issubclass(_class, Records.Record)):
        raise Core.ConfigShape('For %s, %s must name a Record class, not "%s"' % (context, ConfigKeyRecord, record))

    return _class

def _connectionSettings(config_dict):
    """ Gather Search.connect() keyword arguments from a provider config.
    """
    settings = dict(
        host=_string(config_dict, ConfigKeyHost, DefaultHost, 'provider'),
        port=_integer(config_dict, ConfigKeyPort, DefaultPort, 'provider'),
        user=_string(config_dict, ConfigKeyUser, None, 'provider'),
        password=_string(config_dict, ConfigKeyPassword, None, 'provider'),
        max_connection=_integer(config_dict, ConfigKeyMaxConn, DefaultMaxConn, 'provider')
        )

    if ConfigKeyDB in config_dict:
        logging.debug('ElasticTiles.Config._connectionSettings() ignoring %s setting "%s"', ConfigKeyDB, config_dict[ConfigKeyDB])

    return settings

def _string(d, key, default, context):
    value = d.get(key, default)

    if value is not None and not isinstance(value, str):
        raise Core.ConfigShape('For %s, expected %s to be a string, not %r' % (context, key, value))

    return value

def _integer(d, key, default, context):
    value = d.get(key, default)

    if isinstance(value, bool) or not isinstance(value, int):
        raise Core.ConfigShape('For %s, expected %s to be an integer, not %r' % (context, key, value))

    return value

def _number(d, key, default, context):
    value = d.get(key, default)

    if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
        raise Core.ConfigShape('For %s, expected %s to be a number, not %r' % (context, key, value))

    return value
