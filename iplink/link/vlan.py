'''
802.1Q / 802.1ad link details, IFLA_INFO_DATA of kind 'vlan'.
'''

import struct
from dataclasses import dataclass, field
from typing import Any, Iterable

from pyroute2.netlink.exceptions import NetlinkNLADecodeError

from iplink.common import map_namespace
from iplink.link import nla
from iplink.link.bridge import protocol_name

# vlan flags
VLAN_FLAG_REORDER_HDR = 0x1
VLAN_FLAG_GVRP = 0x2
VLAN_FLAG_LOOSE_BINDING = 0x4
VLAN_FLAG_MVRP = 0x8
VLAN_FLAG_BRIDGE_BINDING = 0x10
(VLAN_FLAG_NAMES, VLAN_FLAG_VALUES) = map_namespace(
    'VLAN_FLAG_', globals(), normalize=lambda x: x[10:]
)


def vlan_flags2names(flags: int) -> list[str]:
    return [
        name for (bit, name) in sorted(VLAN_FLAG_VALUES.items()) if flags & bit
    ]


def _pair(data: bytes) -> tuple[int, int]:
    # struct ifla_vlan_flags, struct ifla_vlan_qos_mapping
    try:
        return struct.unpack_from('=II', data)
    except struct.error as e:
        raise NetlinkNLADecodeError(e)


def qos_map(attr) -> list[tuple[int, int]]:
    return [
        _pair(nla.payload(slot))
        for slot in attr['attrs']
        if slot[0] == 'IFLA_VLAN_QOS_MAPPING'
    ]


@dataclass
class VlanInfo:
    protocol: str = ''
    id: int = 0
    flags: list[str] = field(default_factory=list)
    ingress_qos: list[tuple[int, int]] = field(default_factory=list)
    egress_qos: list[tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_attrs(cls, attrs: Iterable) -> 'VlanInfo':
        self = cls()
        for slot in attrs:
            name = slot[0]
            if name == 'IFLA_VLAN_ID':
                self.id = slot[1]
            elif name == 'IFLA_VLAN_PROTOCOL':
                self.protocol = protocol_name(slot[1])
            elif name == 'IFLA_VLAN_FLAGS':
                # (flags, mask); the kernel reports the mask all set
                self.flags = vlan_flags2names(_pair(nla.payload(slot))[0])
            elif name == 'IFLA_VLAN_INGRESS_QOS':
                self.ingress_qos = qos_map(slot[1])
            elif name == 'IFLA_VLAN_EGRESS_QOS':
                self.egress_qos = qos_map(slot[1])
        return self

    def text(self) -> str:
        ret = 'protocol %s id %i ' % (self.protocol, self.id)
        if self.flags:
            ret += '<%s>' % ','.join(self.flags)
        for direction, mapping in (
            ('ingress', self.ingress_qos),
            ('egress', self.egress_qos),
        ):
            if mapping:
                if not ret.endswith(' '):
                    ret += ' '
                ret += '\n      %s-qos-map { %s } ' % (
                    direction,
                    ' '.join('%i:%i' % x for x in mapping),
                )
        return ret

    def dump(self) -> dict[str, Any]:
        ret = {'protocol': self.protocol, 'id': self.id, 'flags': self.flags}
        if self.ingress_qos:
            ret['ingress_qos'] = [
                {'from': x, 'to': y} for (x, y) in self.ingress_qos
            ]
        if self.egress_qos:
            ret['egress_qos'] = [
                {'from': x, 'to': y} for (x, y) in self.egress_qos
            ]
        return ret
