""" The core class bits of ElasticTiles.

Most of what lives here are the exceptions raised by the rest of the package.
Each failure has its own class so that callers can tell a broken configuration
from a broken request, and a broken request from a single broken record:

- ConfigShape, MissingField, DuplicateLayer, ConflictingFields are raised while
  a provider is built from its configuration. No provider is returned.
- UnknownLayer is raised for a tile request naming a layer nobody configured.
- UnsupportedProjection and GeometryShapeMismatch come out of the coordinate
  transformations in ElasticTiles.Geography.
- QueryFailed wraps anything that went wrong talking to Elasticsearch.
- RecordDeserializationFailed describes one bad search hit. It is logged and
  the hit skipped, it never fails a tile.

All of them are KnownUnknowns, so a host that only cares about "something
configured or requested wrongly" can catch just that.
"""

from sys import modules


class KnownUnknown(Exception):
    """ There are known unknowns. That is to say, there are things that we now know we don't know.

        This exception gets thrown in a couple places where common mistakes are made.
    """
    pass

class ConfigShape(KnownUnknown):
    """ A configuration value has the wrong type.
    """
    pass

class MissingField(KnownUnknown):
    """ A required configuration value is absent.
    """
    pass

class DuplicateLayer(KnownUnknown):
    """ Two layers in one configuration share a name.
    """
    def __init__(self, name, first, second):
        self.name, self.first, self.second = name, first, second
        KnownUnknown.__init__(self, '"%s" layer name is duplicated in both layer %d and layer %d' % (name, first, second))

class ConflictingFields(KnownUnknown):
    """ A layer uses the same field for its identifier and its geometry.
    """
    pass

class UnknownLayer(KnownUnknown):
    """ A tile was requested for a layer that isn't configured.
    """
    def __init__(self, name, known=()):
        self.name = name
        KnownUnknown.__init__(self, '"%s" is not a layer I know about. Here are some that I do know about: %s.' % (name, ', '.join(sorted(known))))

class UnsupportedProjection(KnownUnknown):
    """ No transformation is known for a spatial reference identifier.
    """
    pass

class GeometryShapeMismatch(KnownUnknown):
    """ A point transformation came back with something other than one finite point.
    """
    pass

class QueryFailed(KnownUnknown):
    """ The search backend failed to answer a query.
    """
    pass

class RecordDeserializationFailed(KnownUnknown):
    """ One search hit could not be turned into a record.
    """
    pass

def loadClassPath(classpath):
    """ Load external class based on a path.

        Example classpath: "Module.Submodule:Classname".

        Equivalent dotted classpath: "Module.Submodule.Classname".
    """
    if ':' in classpath:
        modname, objname = classpath.split(':', 1)
    else:
        modname, objname = classpath.rsplit('.', 1) if '.' in classpath else ('', classpath)

    try:
        __import__(modname)
        module = modules[modname]
        _class = getattr(module, objname)

    except Exception as e:
        raise KnownUnknown('Tried to import %s, but: %s' % (classpath, e))

    return _class
