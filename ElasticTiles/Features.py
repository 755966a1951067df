""" Tile layers built from search hits.

materialize() reads a list of raw hits with a layer's record class and folds
each into a TileLayer feature: a shapely geometry in spherical mercator, a
dictionary of attributes, and an identifier. Hits that can't be read are
logged and left out, so a tile with a few bad documents still renders.

Attribute values are kept when they are strings, numbers or booleans, dropped
when null, and JSON-encoded otherwise. Identifiers that look like integers
become feature ids; any other identifier is kept as an attribute.
"""

import json
import logging

from . import Core
from . import Geography

class TileLayer:
    """ Named list of features for one tile, ready for a vector tile encoder.

        Each feature is a tuple of (shapely geometry, properties dict, id),
        with id None when the record had no integer identifier.
    """
    def __init__(self, name):
        self.name = name
        self.features = []

    def append(self, geometry, properties, fid=None):
        self.features.append((geometry, properties, fid))

    def __len__(self):
        return len(self.features)

    def __repr__(self):
        return '<TileLayer %s: %d features>' % (self.name, len(self.features))

def materialize(layer, hits):
    """ Return a TileLayer for a LayerConfig and a list of raw search hits.

        The result is never None, and is empty when there were no usable hits.
    """
    tile_layer = TileLayer(layer.name)
    skipped = 0

    for hit in hits:
        try:
            record = layer.record_class.fromHit(hit, layer)
            geometry = _tileGeometry(layer, record)

        except Core.RecordDeserializationFailed as e:
            logging.warning('ElasticTiles.Features.materialize() skipped a hit in layer %s: %s', layer.name, e)
            skipped += 1
            continue

        properties, fid = featureProperties(layer, record)
        tile_layer.append(geometry, properties, fid)

    logging.debug('ElasticTiles.Features.materialize() made %d features for layer %s, skipped %d', len(tile_layer), layer.name, skipped)

    return tile_layer

def featureProperties(layer, record):
    """ Return attributes dictionary and feature id for a record.
    """
    properties = dict([(str(k), _attribute(v)) for (k, v) in record.properties.items() if v is not None])
    fid = _featureId(record.id)

    if fid is None and record.id is not None:
        properties[layer.id_field] = _attribute(record.id)

    return properties, fid

def _tileGeometry(layer, record):
    """ Return a record's geometry converted from storage SRID to spherical mercator.
    """
    try:
        return Geography.fromStorageGeometry(layer.srid, record.geometry)
    except Core.GeometryShapeMismatch as e:
        raise Core.RecordDeserializationFailed('Record %r geometry could not be converted: %s' % (record.id, e))

def _attribute(value):
    if isinstance(value, (str, bool, int, float)):
        return value

    return json.dumps(value, sort_keys=True)

def _featureId(value):
    """ Return a non-negative integer feature id, or None.
    """
    if isinstance(value, bool):
        return None

    try:
        fid = int(value)
    except (TypeError, ValueError):
        return None

    if fid < 0 or str(fid) != str(value).strip():
        return None

    return fid
