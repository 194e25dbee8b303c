import json

import pytest
from lktest.wire import make_link, vlan_linkinfo
from pyroute2.netlink.exceptions import NetlinkNLADecodeError

from iplink.link.record import build_link
from iplink.link.render import render_json, render_text
from iplink.link.resolve import resolve
from iplink.link.vlan import VlanInfo, vlan_flags2names


def vlan_msg(*attrs):
    return make_link(
        index=5,
        ifname='eth0.100',
        attrs=[('IFLA_LINK', 2), vlan_linkinfo(*attrs)],
    )


def vlan_info(msg):
    linkinfo = msg.get_attr('IFLA_LINKINFO')
    return VlanInfo.from_attrs(linkinfo.get_attr('IFLA_INFO_DATA')['attrs'])


def test_flags():
    assert vlan_flags2names(0) == []
    assert vlan_flags2names(1) == ['REORDER_HDR']
    assert vlan_flags2names(0x1F) == [
        'REORDER_HDR',
        'GVRP',
        'LOOSE_BINDING',
        'MVRP',
        'BRIDGE_BINDING',
    ]


def test_vlan():
    info = vlan_info(
        vlan_msg(
            ('IFLA_VLAN_PROTOCOL', 0x8100),
            ('IFLA_VLAN_ID', 100),
            ('IFLA_VLAN_FLAGS', (1, 0xFFFFFFFF)),
        )
    )
    assert info.text() == 'protocol 802.1Q id 100 <REORDER_HDR>'
    assert info.dump() == {
        'protocol': '802.1Q',
        'id': 100,
        'flags': ['REORDER_HDR'],
    }


def test_vlan_no_flags():
    info = vlan_info(
        vlan_msg(('IFLA_VLAN_PROTOCOL', 0x88A8), ('IFLA_VLAN_ID', 7))
    )
    assert info.text() == 'protocol 802.1ad id 7 '
    assert info.dump() == {'protocol': '802.1ad', 'id': 7, 'flags': []}


def test_vlan_qos():
    info = vlan_info(
        vlan_msg(
            ('IFLA_VLAN_PROTOCOL', 0x8100),
            ('IFLA_VLAN_ID', 100),
            ('IFLA_VLAN_FLAGS', (1, 0xFFFFFFFF)),
            (
                'IFLA_VLAN_EGRESS_QOS',
                [
                    ('IFLA_VLAN_QOS_MAPPING', (1, 2)),
                    ('IFLA_VLAN_QOS_MAPPING', (3, 4)),
                ],
            ),
        )
    )
    assert info.egress_qos == [(1, 2), (3, 4)]
    assert info.ingress_qos == []
    assert info.text() == (
        'protocol 802.1Q id 100 <REORDER_HDR> '
        '\n      egress-qos-map { 1:2 3:4 } '
    )
    assert info.dump()['egress_qos'] == [
        {'from': 1, 'to': 2},
        {'from': 3, 'to': 4},
    ]
    assert 'ingress_qos' not in info.dump()


def test_vlan_scenario():
    lower = make_link(index=2, ifname='eth0')
    upper = vlan_msg(
        ('IFLA_VLAN_PROTOCOL', 0x8100),
        ('IFLA_VLAN_ID', 100),
        ('IFLA_VLAN_FLAGS', (1, 0xFFFFFFFF)),
    )
    records = [build_link(x, details=True) for x in (lower, upper)]
    resolve(records)
    text = render_text(records[1])
    assert text.startswith('5: eth0.100@eth0: <')
    assert '\n    vlan protocol 802.1Q id 100 <REORDER_HDR> ' in text
    (dump,) = json.loads(render_json(records[1]))
    assert dump['link'] == 'eth0'
    assert dump['linkinfo'] == {
        'info_kind': 'vlan',
        'info_data': {
            'protocol': '802.1Q',
            'id': 100,
            'flags': ['REORDER_HDR'],
        },
    }


def test_vlan_gvrp():
    info = vlan_info(
        vlan_msg(
            ('IFLA_VLAN_PROTOCOL', 0x8100),
            ('IFLA_VLAN_ID', 10),
            ('IFLA_VLAN_FLAGS', (3, 0xFFFFFFFF)),
        )
    )
    assert info.text() == 'protocol 802.1Q id 10 <REORDER_HDR,GVRP>'


def test_vlan_protocol_fallback():
    info = vlan_info(
        vlan_msg(('IFLA_VLAN_PROTOCOL', 0x9100), ('IFLA_VLAN_ID', 1))
    )
    assert info.protocol == '0x9100'


def test_vlan_flags_short():
    msg = vlan_msg(('IFLA_VLAN_ID', 1), (2, b'\x01\x00\x00\x00'))
    with pytest.raises(NetlinkNLADecodeError):
        vlan_info(msg)
