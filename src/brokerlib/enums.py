""" Conversion between the symbolic names callers use for acknowledgment
    and delivery modes ('AUTO_ACKNOWLEDGE', 'PERSISTENT', ...) and the
    native integer constants providers expect. Decoding accepts either
    representation, including the native constant in string form, since
    test data frequently arrives as text.
"""

import enum

from .errors import InvalidEnumeration


class AckMode(enum.IntEnum):
    SESSION_TRANSACTED = 0
    AUTO_ACKNOWLEDGE = 1
    CLIENT_ACKNOWLEDGE = 2
    DUPS_OK_ACKNOWLEDGE = 3


class DeliveryMode(enum.IntEnum):
    NON_PERSISTENT = 1
    PERSISTENT = 2


class DestinationKind(str, enum.Enum):
    QUEUE = 'queue'
    TOPIC = 'topic'


def _decode(enumeration, field, value):

    if isinstance(value, enumeration):
        return value

    # bool is an int subclass; True would otherwise decode as a mode.
    if isinstance(value, bool):
        raise InvalidEnumeration(field, value)

    if isinstance(value, int):
        try:
            return enumeration(value)
        except ValueError:
            raise InvalidEnumeration(field, value)

    try:
        text = value.strip()
    except AttributeError:
        raise InvalidEnumeration(field, value)

    try:
        return enumeration[text.upper()]
    except KeyError:
        pass

    try:
        number = int(text)
    except ValueError:
        raise InvalidEnumeration(field, value)

    try:
        return enumeration(number)
    except ValueError:
        raise InvalidEnumeration(field, value)


def decode_ack_mode(value):
    """ Return the :class:`AckMode` for *value*, which may be a symbolic
        name, a native constant, or a native constant in string form.
    """

    return _decode(AckMode, 'acknowledgment mode', value)


def encode_ack_mode(mode):
    """ Return the symbolic name for the acknowledgment *mode*.
    """

    return decode_ack_mode(mode).name


def decode_delivery_mode(value):
    """ Return the :class:`DeliveryMode` for *value*, which may be a symbolic
        name, a native constant, or a native constant in string form.
    """

    return _decode(DeliveryMode, 'delivery mode', value)


def encode_delivery_mode(mode):
    """ Return the symbolic name for the delivery *mode*.
    """

    return decode_delivery_mode(mode).name


def decode_destination_kind(value):

    if isinstance(value, DestinationKind):
        return value

    try:
        return DestinationKind(str(value).lower())
    except ValueError:
        raise InvalidEnumeration('destination kind', value)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
