''' GeoJSON encoding for TileLayers.

Geometries are converted from spherical mercator back to longitude and
latitude, and every feature gets a "layer" property naming its TileLayer.
Floating point precision in the output is truncated to six digits.
'''
from re import compile

import json

import shapely
from shapely.geometry import mapping

from ..Geography import WGS84_SRID, toStorageCRS
from ModestMaps.Core import Point

float_pat = compile(r'^-?\d+\.\d+(e-?\d+)?$')
charfloat_pat = compile(r'^[\[,\,]-?\d+\.\d+(e-?\d+)?$')

flt_fmt = '%.6f'

def unproject(coords):
    ''' Convert spherical mercator coordinates to lon, lat pairs.
    '''
    points = [toStorageCRS(WGS84_SRID, Point(x, y)) for (x, y) in coords]
    return [(p.x, p.y) for p in points]

def encode(file, tile_layers):
    ''' Encode a list of Features.TileLayer objects into a GeoJSON stream.
    '''
    features = []

    for tile_layer in tile_layers:
        for (geometry, props, fid) in tile_layer.features:
            props = dict(props, layer=tile_layer.name)
            geometry = mapping(shapely.transform(geometry, unproject))
            feature = dict(type='Feature', properties=props, geometry=geometry)

            if fid is not None:
                feature.update(id=fid)

            features.append(feature)

    geojson = dict(type='FeatureCollection', features=features)
    encoder = json.JSONEncoder(separators=(',', ':'))
    encoded = encoder.iterencode(geojson)

    for token in encoded:
        if charfloat_pat.match(token):
            # a character followed by a float literal
            piece = token[0] + flt_fmt % float(token[1:])
        elif float_pat.match(token):
            piece = flt_fmt % float(token)
        else:
            piece = token
        file.write(piece.encode('utf8'))
