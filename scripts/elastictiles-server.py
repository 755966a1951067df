#!/usr/bin/env python
"""elastictiles-server.py will serve your Elasticsearch layers as vector tiles.

This script is intended to be run directly from the command line.

It is intended for direct use only during development or for debugging ElasticTiles.

To use this built-in server, install werkzeug and then run elastictiles-server.py:

    elastictiles-server.py

By default the script looks for a config file named elastictiles.cfg in the current
directory and then serves tiles on http://127.0.0.1:8080/.

You can then open your browser and view a url like:

    http://localhost:8080/jobs/0/0/0.json

The above layer of 'jobs' (defined in the elastictiles.cfg) will display every
document of the layer's index as GeoJSON.

Check elastictiles-server.py --help to change these defaults.
"""

if __name__ == '__main__':
    from optparse import OptionParser
    import os, sys

    parser = OptionParser()
    parser.add_option("-c", "--config", dest="file", default="elastictiles.cfg",
        help="the path to the elastictiles config")
    parser.add_option("-i", "--ip", dest="ip", default="127.0.0.1",
        help="the IP address to listen on")
    parser.add_option("-p", "--port", dest="port", type="int", default=8080,
        help="the port number to listen on")
    parser.add_option("-t", "--timeout", dest="timeout", type="float", default=None,
        help="the search timeout in seconds for each tile layer")
    (options, args) = parser.parse_args()

    from werkzeug.serving import run_simple
    import ElasticTiles

    if not os.path.exists(options.file):
        print("Config file not found. Use -c to pick an elastictiles config file.", file=sys.stderr)
        sys.exit(1)

    app = ElasticTiles.WSGITileServer(config=options.file, autoreload=True, timeout=options.timeout)
    run_simple(options.ip, options.port, app)
