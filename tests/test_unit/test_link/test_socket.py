import errno
import struct

import pytest
from lktest.fake_socket import FakeSocket
from lktest.wire import (
    NLM_F_DUMP_INTR,
    NLM_F_MULTI,
    dump_responses,
    encode_done,
    encode_error,
    encode_link,
    encode_nsid,
    request_seq,
)
from pyroute2.netlink import NLM_F_DUMP
from pyroute2.netlink.exceptions import (
    NetlinkDumpInterrupted,
    NetlinkError,
    NetlinkHeaderDecodeError,
)
from pyroute2.netlink.rtnl import RTM_GETLINK
from pyroute2.netlink.rtnl.nsidmsg import nsidmsg

from iplink import config
from iplink.iproute import IPLink
from iplink.iprsocket import RTM_GETNSID, IPRSocket


def request_header(data):
    return struct.unpack_from('IHHII', data)


def test_dump_links():
    sock = FakeSocket(
        dump_responses(
            {'index': 1, 'ifname': 'lo', 'ifi_type': 772},
            {'index': 2, 'ifname': 'eth0'},
        )
    )
    with IPRSocket(use_socket=sock) as iprsock:
        iprsock.bind()
        links = list(iprsock.dump_links())
    assert sock.bound == (0, 0)
    assert sock.closed
    assert [x.get_attr('IFLA_IFNAME') for x in links] == ['lo', 'eth0']
    (length, mtype, flags, seq, _) = request_header(sock.sent[0])
    assert length == len(sock.sent[0])
    assert mtype == RTM_GETLINK
    assert flags & NLM_F_DUMP == NLM_F_DUMP
    assert seq == 1


def test_dump_split_buffers():
    # the dump may come in several datagrams
    sock = FakeSocket(
        [
            encode_link(index=1, ifname='lo', sequence_number=1),
            encode_link(index=2, ifname='eth0', sequence_number=1),
            encode_done(1),
        ]
    )
    iprsock = IPRSocket(use_socket=sock)
    assert [x['index'] for x in iprsock.dump_links()] == [1, 2]


def test_skip_foreign_seq():
    sock = FakeSocket(
        [
            encode_link(index=9, ifname='old0', sequence_number=77)
            + encode_link(index=2, ifname='eth0', sequence_number=1)
            + encode_done(77)
            + encode_done(1)
        ]
    )
    iprsock = IPRSocket(use_socket=sock)
    assert [x['index'] for x in iprsock.dump_links()] == [2]


def test_sequence_numbers():
    sock = FakeSocket(
        lambda request: [encode_done(request_seq(request))]
    )
    iprsock = IPRSocket(use_socket=sock)
    for _ in range(3):
        assert list(iprsock.dump_links()) == []
    assert [request_seq(x) for x in sock.sent] == [1, 2, 3]


def test_error():
    sock = FakeSocket([encode_error(errno.EPERM, 1)])
    iprsock = IPRSocket(use_socket=sock)
    with pytest.raises(NetlinkError) as e:
        list(iprsock.dump_links())
    assert e.value.code == errno.EPERM


def test_dump_interrupted():
    sock = FakeSocket(
        [
            encode_link(
                sequence_number=1,
                header_flags=NLM_F_MULTI | NLM_F_DUMP_INTR,
            )
            + encode_done(1)
        ]
    )
    iprsock = IPRSocket(use_socket=sock)
    with pytest.raises(NetlinkDumpInterrupted):
        list(iprsock.dump_links())


def test_truncated():
    data = encode_link(sequence_number=1)
    sock = FakeSocket([data[: len(data) - 8]])
    iprsock = IPRSocket(use_socket=sock)
    with pytest.raises(NetlinkHeaderDecodeError):
        list(iprsock.dump_links())


def test_get_netnsid():
    sock = FakeSocket(
        lambda request: [encode_nsid(5, request_seq(request))]
    )
    iprsock = IPRSocket(use_socket=sock)
    assert iprsock.get_netnsid(42) == 5
    (_, mtype, flags, _, _) = request_header(sock.sent[0])
    assert mtype == RTM_GETNSID
    assert not flags & NLM_F_DUMP
    request = nsidmsg(sock.sent[0])
    request.decode()
    assert request.get_attr('NETNSA_FD') == 42


def test_get_netnsid_unassigned():
    sock = FakeSocket(
        lambda request: [encode_nsid(-1, request_seq(request))]
    )
    assert IPRSocket(use_socket=sock).get_netnsid(42) is None


def test_netns_ids(netns_dir):
    for name in ('red', 'blue', 'green'):
        (netns_dir / name).touch()
    answers = iter(
        [
            encode_nsid(1, 1),
            encode_error(errno.EINVAL, 2),
            encode_nsid(0, 3),
        ]
    )
    sock = FakeSocket(lambda request: [next(answers)])
    iprsock = IPRSocket(use_socket=sock)
    # sorted: blue, green, red; green fails and is skipped
    assert iprsock.netns_ids() == {1: 'blue', 0: 'red'}
    assert len(sock.sent) == 3


def test_netns_ids_no_directory(monkeypatch, tmp_path):
    monkeypatch.setattr(config, 'netns_path', [str(tmp_path / 'missing')])
    sock = FakeSocket()
    assert IPRSocket(use_socket=sock).netns_ids() == {}
    assert sock.sent == []


def links():
    return dump_responses(
        {'index': 1, 'ifname': 'lo', 'ifi_type': 772},
        {
            'index': 2,
            'ifname': 'eth0',
            'attrs': [
                ('IFLA_MTU', 1500),
                ('IFLA_GROUP', 3),
                ('IFLA_PROP_LIST', [('IFLA_ALT_IFNAME', 'enp0s31f6')]),
            ],
        },
        {
            'index': 3,
            'ifname': 'eth1',
            'attrs': [('IFLA_MASTER', 4)],
        },
        {'index': 4, 'ifname': 'br0'},
    )


def test_iplink_show(rt_dirs):
    (etc, _) = rt_dirs
    (etc / 'group').write_text('0\tdefault\n3\tuplinks\n')
    ipl = IPLink(IPRSocket(use_socket=FakeSocket(links())))
    records = ipl.show()
    assert [x.ifname for x in records] == ['lo', 'eth0', 'eth1', 'br0']
    assert records[0].link_type == 'loopback'
    assert records[1].group == 'uplinks'
    assert records[2].controller.name == 'br0'
    assert all(x.details is None for x in records)
    assert ipl.show(details=True)[1].details.linkinfo is None


@pytest.mark.parametrize('name', ('eth0', 'enp0s31f6'))
def test_iplink_show_filter(rt_dirs, name):
    ipl = IPLink(IPRSocket(use_socket=FakeSocket(links())))
    (record,) = ipl.show(name)
    assert record.ifname == 'eth0'
    assert record.mtu == 1500


def test_iplink_show_filter_resolves_first(rt_dirs):
    ipl = IPLink(IPRSocket(use_socket=FakeSocket(links())))
    (record,) = ipl.show('eth1')
    assert record.controller.name == 'br0'


def test_iplink_show_no_device(rt_dirs):
    ipl = IPLink(IPRSocket(use_socket=FakeSocket(links())))
    with pytest.raises(NetlinkError) as e:
        ipl.show('nope0')
    assert e.value.code == errno.ENODEV
    assert e.value.args[1] == 'Device "nope0" does not exist.'


def test_iplink_socket_ownership():
    sock = FakeSocket()
    with IPLink(IPRSocket(use_socket=sock)):
        pass
    # the socket was passed in, the caller closes it
    assert not sock.closed
