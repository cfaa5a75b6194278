import pytest

from brokerlib import enums
from brokerlib.enums import AckMode, DeliveryMode
from brokerlib.errors import InvalidEnumeration


def test_ack_mode_round_trip():

    for mode in AckMode:
        name = enums.encode_ack_mode(mode)
        assert enums.decode_ack_mode(name) is mode
        assert enums.decode_ack_mode(str(int(mode))) is enums.decode_ack_mode(name)
        assert enums.decode_ack_mode(int(mode)) is mode


def test_delivery_mode_round_trip():

    for mode in DeliveryMode:
        name = enums.encode_delivery_mode(mode)
        assert enums.decode_delivery_mode(name) is mode
        assert enums.decode_delivery_mode(str(int(mode))) is enums.decode_delivery_mode(name)
        assert enums.decode_delivery_mode(int(mode)) is mode


def test_native_constants():

    assert enums.decode_ack_mode('0') == AckMode.SESSION_TRANSACTED
    assert enums.decode_ack_mode('1') == AckMode.AUTO_ACKNOWLEDGE
    assert enums.decode_ack_mode('2') == AckMode.CLIENT_ACKNOWLEDGE
    assert enums.decode_ack_mode('3') == AckMode.DUPS_OK_ACKNOWLEDGE

    assert enums.decode_delivery_mode('1') == DeliveryMode.NON_PERSISTENT
    assert enums.decode_delivery_mode('2') == DeliveryMode.PERSISTENT

    assert enums.encode_delivery_mode(2) == 'PERSISTENT'
    assert enums.encode_delivery_mode(1) == 'NON_PERSISTENT'


def test_symbolic_names():

    assert enums.decode_ack_mode('SESSION_TRANSACTED') == AckMode.SESSION_TRANSACTED
    assert enums.decode_ack_mode('AUTO_ACKNOWLEDGE') == AckMode.AUTO_ACKNOWLEDGE
    assert enums.decode_ack_mode('CLIENT_ACKNOWLEDGE') == AckMode.CLIENT_ACKNOWLEDGE
    assert enums.decode_ack_mode('DUPS_OK_ACKNOWLEDGE') == AckMode.DUPS_OK_ACKNOWLEDGE

    # Surrounding whitespace and case are forgiven.
    assert enums.decode_ack_mode(' client_acknowledge ') == AckMode.CLIENT_ACKNOWLEDGE
    assert enums.decode_delivery_mode('non_persistent') == DeliveryMode.NON_PERSISTENT


def test_invalid():

    with pytest.raises(InvalidEnumeration):
        enums.decode_ack_mode('4')

    with pytest.raises(InvalidEnumeration):
        enums.decode_ack_mode('WRONG')

    with pytest.raises(InvalidEnumeration):
        enums.decode_delivery_mode('WRONG')

    with pytest.raises(InvalidEnumeration):
        enums.decode_delivery_mode(123)

    with pytest.raises(InvalidEnumeration):
        enums.encode_delivery_mode(0)

    with pytest.raises(InvalidEnumeration):
        enums.decode_delivery_mode(None)

    with pytest.raises(InvalidEnumeration):
        enums.decode_ack_mode(True)


def test_invalid_carries_context():

    with pytest.raises(InvalidEnumeration) as caught:
        enums.decode_delivery_mode('SOMETIMES')

    error = caught.value
    assert error.field == 'delivery mode'
    assert error.value == 'SOMETIMES'
    assert 'SOMETIMES' in str(error)
    assert 'delivery mode' in str(error)

    # Also usable wherever a ValueError is expected.
    assert isinstance(error, ValueError)


def test_destination_kind():

    assert enums.decode_destination_kind('queue') == enums.DestinationKind.QUEUE
    assert enums.decode_destination_kind('TOPIC') == enums.DestinationKind.TOPIC

    with pytest.raises(InvalidEnumeration):
        enums.decode_destination_kind('exchange')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
