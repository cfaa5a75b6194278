""" Per-session memoization of destination handles.
"""

from .enums import DestinationKind, decode_destination_kind


class Cache:
    """ The :class:`Cache` hands out destination handles for a single
        provider session. The first reference to a given (name, kind)
        asks the provider to create the handle; every later reference
        returns that same instance. Entries are never invalidated one at
        a time, the whole cache is cleared when the session closes.

        This class is not thread-safe; neither is the session that owns it.
    """

    def __init__(self, session):

        self.session = session
        self._handles = dict()


    def __len__(self):
        return len(self._handles)


    def __contains__(self, key):
        name, kind = key
        return (name, decode_destination_kind(kind)) in self._handles


    def resolve(self, name, kind):

        kind = decode_destination_kind(kind)
        key = (name, kind)

        try:
            handle = self._handles[key]
        except KeyError:
            pass
        else:
            return handle

        if kind == DestinationKind.QUEUE:
            handle = self.session.create_queue(name)
        else:
            handle = self.session.create_topic(name)

        self._handles[key] = handle
        return handle


    def queue(self, name):
        return self.resolve(name, DestinationKind.QUEUE)


    def topic(self, name):
        return self.resolve(name, DestinationKind.TOPIC)


    def clear(self):
        self._handles.clear()


# end of class Cache


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
