import errno

import pytest
from lktest.wire import encode_done, encode_error, encode_link, encode_nsid
from pyroute2.netlink import NLMSG_DONE, NLMSG_ERROR, nlmsg, nlmsgerr
from pyroute2.netlink.exceptions import NetlinkError, NetlinkHeaderDecodeError
from pyroute2.netlink.rtnl import RTM_NEWLINK
from pyroute2.netlink.rtnl.ifinfmsg import ifinfmsg
from pyroute2.netlink.rtnl.nsidmsg import nsidmsg

from iplink.iprsocket import RTM_NEWNSID, MarshalRtnl
from iplink.nlsocket import Marshal


@pytest.fixture
def data():
    return (
        encode_link(index=1, ifname='lo', ifi_type=772, sequence_number=5)
        + encode_link(
            index=2,
            ifname='eth0',
            attrs=[('IFLA_MTU', 1500)],
            sequence_number=5,
        )
        + encode_nsid(3, sequence_number=6)
        + encode_done(5)
    )


def test_parse(data):
    parsed = tuple(MarshalRtnl().parse(data))
    assert [type(x) for x in parsed] == [ifinfmsg, ifinfmsg, nsidmsg, nlmsg]
    assert [x['header']['type'] for x in parsed] == [
        RTM_NEWLINK,
        RTM_NEWLINK,
        RTM_NEWNSID,
        NLMSG_DONE,
    ]
    assert [x['header']['sequence_number'] for x in parsed] == [5, 5, 6, 5]
    assert all(x['header']['error'] is None for x in parsed)
    assert parsed[0]['index'] == 1
    assert parsed[0]['ifi_type'] == 772
    assert parsed[0].get_attr('IFLA_IFNAME') == 'lo'
    assert parsed[1].get_attr('IFLA_MTU') == 1500
    assert parsed[2].get_attr('NETNSA_NSID') == 3
    assert parsed[3]['event'] == 'NLMSG_DONE'


def test_parse_generic(data):
    # no message map: every message is a plain nlmsg
    parsed = tuple(Marshal().parse(data))
    assert len(parsed) == 4
    assert all(type(x) is nlmsg for x in parsed)


def test_error():
    parsed = tuple(MarshalRtnl().parse(encode_error(errno.ENODEV, 3)))
    assert len(parsed) == 1
    assert isinstance(parsed[0], nlmsgerr)
    assert parsed[0]['header']['type'] == NLMSG_ERROR
    error = parsed[0]['header']['error']
    assert isinstance(error, NetlinkError)
    assert error.code == errno.ENODEV


def test_ack():
    parsed = tuple(MarshalRtnl().parse(encode_error(0, 3)))
    assert parsed[0]['header']['error'] is None


@pytest.mark.parametrize('cut', (17, 20, 27))
def test_truncated(data, cut):
    with pytest.raises(NetlinkHeaderDecodeError):
        tuple(MarshalRtnl().parse(data[: len(data) - cut]))


def test_short_tail():
    # less than a header left: nothing more to parse
    parsed = tuple(MarshalRtnl().parse(encode_done(1) + b'\x00' * 8))
    assert len(parsed) == 1


def test_is_enough(data):
    marshal = MarshalRtnl()
    parsed = tuple(marshal.parse(data))
    assert [marshal.is_enough(x) for x in parsed] == [
        False,
        False,
        False,
        True,
    ]
