""" The search bits of ElasticTiles.

Providers never talk to Elasticsearch directly. They are handed a client with
one method, execute(query, timeout), which runs an ElasticTiles.Query.Query and
returns a list of raw hits, each a dictionary with "_id" and "_source" keys.
Anything that goes wrong comes back as Core.QueryFailed.

Client is that object for a real Elasticsearch cluster, and connect() makes one
from connection settings. Connection pooling, retries and authentication are
left to the elasticsearch package.
"""

import logging

from elasticsearch import Elasticsearch, ApiError, TransportError

from . import Core

class Client:
    """ Search client for one Elasticsearch cluster.

        Wraps an elasticsearch.Elasticsearch instance.
    """
    def __init__(self, es):
        self.es = es

    def execute(self, query, timeout=None):
        """ Run a Query, return a list of hit dictionaries.

            Optional timeout is in seconds, and bounds this one request.
        """
        kwargs = dict(index=query.index, query=query.body, size=query.size)

        if query.fields is not None:
            kwargs['source_includes'] = query.fields

        es = self.es if timeout is None else self.es.options(request_timeout=timeout)

        logging.debug('ElasticTiles.Search.Client.execute() searching %s', query)

        try:
            response = es.search(**kwargs)
        except (ApiError, TransportError) as e:
            raise Core.QueryFailed('Got the following error (%s) running query on index %s' % (_describe(e), query.index)) from e

        return list(response['hits']['hits'])

def connect(settings):
    """ Return a Client for connection settings.

        Settings is a dictionary with host, port, user, password and
        max_connection keys, as prepared by ElasticTiles.Config. Host may
        include a scheme, e.g. "https://search.example.com".
    """
    host = settings['host'] if '://' in settings['host'] else 'http://' + settings['host']
    url = '%s:%d' % (host.rstrip('/'), settings['port'])
    kwargs = dict(connections_per_node=settings.get('max_connection', 5))

    if settings.get('user'):
        kwargs['basic_auth'] = settings['user'], settings.get('password') or ''

    logging.info('ElasticTiles.Search.connect() using Elasticsearch at %s', url)

    return Client(Elasticsearch(url, **kwargs))

def _describe(error):
    """ Error text including the underlying message.

        Transport errors print as a generic "Connection error", their cause is in .message.
    """
    message = getattr(error, 'message', None)

    if message is None or str(message) in str(error):
        return str(error)

    return '%s: %s' % (error, message)
