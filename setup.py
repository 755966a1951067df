#!/usr/bin/env python

from setuptools import setup


version = open('ElasticTiles/VERSION', 'r').read().strip()


requires = [
    'ModestMaps >=1.4.7',
    'Werkzeug',
    'Pillow',
    'elasticsearch >=8.0',
    'pyproj >=3.1',
    'shapely >=2.0',
    'mapbox-vector-tile >=2.0'
    ]


setup(name='ElasticTiles',
      version=version,
      description='Vector tiles from geospatial documents in Elasticsearch.',
      install_requires=requires,
      extras_require={'test': ['pytest']},
      packages=['ElasticTiles',
                'ElasticTiles.VecTiles'],
      scripts=['scripts/elastictiles-server.py'],
      package_data={'ElasticTiles': ['VERSION']},
      license='BSD')
