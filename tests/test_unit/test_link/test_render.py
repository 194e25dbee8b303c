import json

import pytest
import yaml
from lktest.wire import bridge_port_linkinfo, make_link

from iplink.link.record import ExtendedDetails, LinkRecord, build_link
from iplink.link.render import (
    record_to_dict,
    render_json,
    render_text,
    render_yaml,
)
from iplink.link.resolve import resolve

MAC = '52:54:00:12:34:56'


@pytest.fixture
def lo():
    return LinkRecord(
        ifindex=1,
        ifname='lo',
        flags=['LOOPBACK', 'UP', 'LOWER_UP'],
        mtu=65536,
        qdisc='noqueue',
        txqlen=1000,
        link_type='loopback',
        address='00:00:00:00:00:00',
        broadcast='00:00:00:00:00:00',
    )


@pytest.fixture
def eth0():
    return LinkRecord(
        ifindex=2,
        ifname='eth0',
        flags=['BROADCAST', 'MULTICAST', 'UP', 'LOWER_UP'],
        mtu=1500,
        qdisc='fq_codel',
        operstate='UP',
        txqlen=1000,
        link_type='ether',
        address=MAC,
        broadcast='ff:ff:ff:ff:ff:ff',
        altnames=['enp0s31f6'],
    )


@pytest.fixture
def details():
    return ExtendedDetails(
        min_mtu=68,
        max_mtu=9000,
        inet6_addr_gen_mode='eui64',
        num_tx_queues=1,
        num_rx_queues=1,
        gso_max_size=65536,
        gso_max_segs=65535,
        tso_max_size=65536,
        tso_max_segs=65535,
        gro_max_size=65536,
        gso_ipv4_max_size=65536,
        gro_ipv4_max_size=65536,
        parentbus='pci',
        parentdev='0000:00:1f.6',
    )


lo_text = (
    '1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue '
    'state UNKNOWN mode DEFAULT group default qlen 1000'
    '\n    link/loopback 00:00:00:00:00:00 brd 00:00:00:00:00:00'
)

eth0_text = (
    '2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel '
    'state UP mode DEFAULT group default qlen 1000'
    '\n    link/ether 52:54:00:12:34:56 brd ff:ff:ff:ff:ff:ff'
    '\n    altname enp0s31f6'
)

eth0_details_text = (
    '2: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel '
    'state UP mode DEFAULT group default qlen 1000'
    '\n    link/ether 52:54:00:12:34:56 brd ff:ff:ff:ff:ff:ff '
    'promiscuity 0 allmulti 0 minmtu 68 maxmtu 9000 addrgenmode eui64 '
    'numtxqueues 1 numrxqueues 1 gso_max_size 65536 gso_max_segs 65535 '
    'tso_max_size 65536 tso_max_segs 65535 gro_max_size 65536 '
    'gso_ipv4_max_size 65536 gro_ipv4_max_size 65536 '
    'parentbus pci parentdev 0000:00:1f.6 '
    '\n    altname enp0s31f6'
)


def test_text(lo, eth0):
    assert render_text(lo) == lo_text
    assert render_text(eth0) == eth0_text
    assert render_text([lo, eth0]) == lo_text + '\n' + eth0_text
    assert render_text([]) == ''


def test_text_details(eth0, details):
    eth0.details = details
    assert render_text(eth0) == eth0_details_text


def test_text_details_empty_strings(eth0):
    eth0.details = ExtendedDetails()
    text = render_text(eth0)
    assert 'addrgenmode' not in text
    assert 'parentbus' not in text
    assert 'parentdev' not in text


def test_text_optional(lo):
    lo.qdisc = ''
    lo.txqlen = None
    lo.address = None
    lo.broadcast = None
    assert render_text(lo) == (
        '1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 '
        'state UNKNOWN mode DEFAULT group default '
        '\n    link/loopback '
    )


def test_text_pointtopoint():
    record = LinkRecord(
        ifindex=9,
        ifname='tun0',
        flags=['POINTOPOINT', 'UP'],
        link_type='none',
        broadcast='10.0.0.2',
        pointtopoint=True,
    )
    assert render_text(record).endswith('\n    link/none  peer 10.0.0.2')


def test_color(eth0):
    text = render_text(eth0, color=True)
    assert text.startswith(
        '2: \x1b[36meth0: \x1b[0m<BROADCAST,MULTICAST,UP,LOWER_UP>'
    )
    assert ' state \x1b[32mUP \x1b[0mmode DEFAULT ' in text
    assert (
        'link/ether \x1b[33m52:54:00:12:34:56\x1b[0m '
        'brd \x1b[33mff:ff:ff:ff:ff:ff\x1b[0m'
    ) in text
    eth0.operstate = 'DOWN'
    assert ' state \x1b[31mDOWN \x1b[0mmode ' in render_text(eth0, True)
    eth0.operstate = 'UNKNOWN'
    assert ' state UNKNOWN mode ' in render_text(eth0, True)


def test_idempotence(eth0, details):
    eth0.details = details
    assert render_text(eth0) == render_text(eth0)
    assert render_json(eth0) == render_json(eth0)
    assert render_yaml(eth0) == render_yaml(eth0)


def test_permaddr_suppression():
    msg = make_link(
        attrs=[('IFLA_ADDRESS', MAC), ('IFLA_PERM_ADDRESS', MAC)]
    )
    record = build_link(msg)
    assert 'permaddr' not in render_text(record)
    assert 'permaddr' not in record_to_dict(record)
    msg = make_link(
        attrs=[
            ('IFLA_ADDRESS', MAC),
            ('IFLA_PERM_ADDRESS', '52:54:00:12:34:57'),
        ]
    )
    record = build_link(msg)
    assert render_text(record).endswith(' permaddr 52:54:00:12:34:57')
    assert record_to_dict(record)['permaddr'] == '52:54:00:12:34:57'


def test_json(lo):
    assert render_json(lo) == (
        '[{"ifindex":1,"ifname":"lo",'
        '"flags":["LOOPBACK","UP","LOWER_UP"],'
        '"mtu":65536,"qdisc":"noqueue","operstate":"UNKNOWN",'
        '"linkmode":"DEFAULT","group":"default","txqlen":1000,'
        '"link_type":"loopback","address":"00:00:00:00:00:00",'
        '"broadcast":"00:00:00:00:00:00"}]'
    )
    assert render_json([]) == '[]'


def test_json_details(eth0, details):
    eth0.details = details
    (dump,) = json.loads(render_json(eth0))
    assert list(dump) == [
        'ifindex',
        'ifname',
        'flags',
        'mtu',
        'qdisc',
        'operstate',
        'linkmode',
        'group',
        'txqlen',
        'link_type',
        'address',
        'broadcast',
        'promiscuity',
        'allmulti',
        'min_mtu',
        'max_mtu',
        'inet6_addr_gen_mode',
        'num_tx_queues',
        'num_rx_queues',
        'gso_max_size',
        'gso_max_segs',
        'tso_max_size',
        'tso_max_segs',
        'gro_max_size',
        'gso_ipv4_max_size',
        'gro_ipv4_max_size',
        'parentbus',
        'parentdev',
        'altnames',
    ]
    assert dump['altnames'] == ['enp0s31f6']


def test_json_omits_empty(lo):
    lo.qdisc = ''
    lo.txqlen = None
    lo.address = None
    lo.details = ExtendedDetails()
    dump = record_to_dict(lo)
    for key in (
        'qdisc',
        'txqlen',
        'address',
        'permaddr',
        'master',
        'link',
        'link_index',
        'inet6_addr_gen_mode',
        'parentbus',
        'parentdev',
        'linkinfo',
        'altnames',
    ):
        assert key not in dump
    assert dump['promiscuity'] == 0


def test_yaml(lo, eth0, details):
    eth0.details = details
    records = [lo, eth0]
    text = render_yaml(records)
    assert text.startswith('- ifindex: 1\n  ifname: lo\n')
    assert yaml.safe_load(text) == json.loads(render_json(records))


def test_bridge_port_json():
    msg = make_link(
        index=3,
        attrs=[
            ('IFLA_MASTER', 4),
            bridge_port_linkinfo(
                ('IFLA_BRPORT_STATE', 3),
                ('IFLA_BRPORT_PRIORITY', 32),
                ('IFLA_BRPORT_COST', 100),
            ),
        ],
    )
    br0 = make_link(index=4, ifname='br0')
    records = [build_link(x, details=True) for x in (msg, br0)]
    resolve(records)
    (dump, _) = json.loads(render_json(records))
    assert dump['master'] == 'br0'
    linkinfo = dump['linkinfo']
    assert list(linkinfo) == ['info_slave_kind', 'info_slave_data']
    assert linkinfo['info_slave_kind'] == 'bridge'
    assert linkinfo['info_slave_data']['state'] == 'forwarding'
    assert linkinfo['info_slave_data']['priority'] == 32
    assert linkinfo['info_slave_data']['cost'] == 100
    assert yaml.safe_load(render_yaml(records)) == json.loads(
        render_json(records)
    )
