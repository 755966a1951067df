''' Mapbox vector tile encoding for TileLayers.

Features are handed to mapbox_vector_tile with their spherical mercator
geometries, quantized into the tile's extent.
'''
import mapbox_vector_tile

# coordinates are scaled to this range within tile
extents = 4096


def encode(file, tile_layers, extent):
    ''' Encode a list of Features.TileLayer objects into one vector tile.

        Extent is the Geography.Extent of the tile, in spherical mercator.
    '''
    layers = [get_feature_layer(tile_layer) for tile_layer in tile_layers]
    options = dict(quantize_bounds=extent.bounds(), extents=extents)

    data = mapbox_vector_tile.encode(layers, default_options=options)
    file.write(data)


def decode(file):
    tile = file.read()
    data = mapbox_vector_tile.decode(tile)
    return data


def get_feature_layer(tile_layer):
    _features = []

    for (geometry, props, fid) in tile_layer.features:
        feature = {'geometry': geometry, 'properties': props}

        if fid is not None:
            feature['id'] = fid

        _features.append(feature)

    return {
        'name': tile_layer.name or '',
        'features': _features
    }
