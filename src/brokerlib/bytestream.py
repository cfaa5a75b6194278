""" File I/O for bytes message bodies. Reads and writes go through a fixed
    size buffer so that large files are handled the same way as small ones.
"""

from . import config


def read_file(filename, buffer_size=None):
    """ Return the complete contents of *filename* as bytes.
    """

    if buffer_size is None:
        buffer_size = config.BUFFER_SIZE

    chunks = list()

    with open(filename, 'rb') as stream:
        while True:
            chunk = stream.read(buffer_size)
            if chunk:
                chunks.append(chunk)
            else:
                break

    return b''.join(chunks)


def write_file(filename, data, append=False, buffer_size=None):
    """ Write *data* to *filename*, truncating it first unless *append* is
        True. Returns the number of bytes written.
    """

    if buffer_size is None:
        buffer_size = config.BUFFER_SIZE

    if append:
        mode = 'ab'
    else:
        mode = 'wb'

    view = memoryview(data)
    count = 0

    with open(filename, mode) as stream:
        while count < len(view):
            count += stream.write(view[count:count + buffer_size])

    return count


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
