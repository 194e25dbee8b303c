'''
IFLA_LINKINFO decoder
=====================

IFLA_LINKINFO carries two independent pairs of attributes:

* IFLA_INFO_KIND and IFLA_INFO_DATA -- the link type, like
  'bridge' or 'vlan', and its parameters
* IFLA_INFO_SLAVE_KIND and IFLA_INFO_SLAVE_DATA -- the type of
  the controller the link is enslaved to, and the port parameters

Each pair is decoded in its own pass over the nested attrs, so
a port of a bridge with no IFLA_INFO_KIND still gets its port
data. Only the kinds listed in `kind_data` and `port_data` get
structured data, the rest keep the kind name only.
'''

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from iplink.link import nla
from iplink.link.bridge import BridgeInfo, BridgePortInfo
from iplink.link.vlan import VlanInfo

log = logging.getLogger(__name__)

KindData = Union[BridgeInfo, VlanInfo]
PortData = BridgePortInfo

kind_data = {'bridge': BridgeInfo, 'vlan': VlanInfo}
port_data = {'bridge': BridgePortInfo}


@dataclass
class LinkInfo:
    kind: Optional[str] = None
    data: Optional[KindData] = None
    slave_kind: Optional[str] = None
    slave_data: Optional[PortData] = None

    def text(self) -> str:
        ret = ''
        if self.kind is not None:
            ret += '\n    %s ' % self.kind
            if self.data is not None:
                ret += '%s ' % self.data.text()
        if self.slave_kind is not None:
            ret += '\n    %s_slave ' % self.slave_kind
            if self.slave_data is not None:
                ret += '%s ' % self.slave_data.text()
        return ret

    def dump(self) -> dict[str, Any]:
        ret = {}
        if self.kind is not None:
            ret['info_kind'] = self.kind
            if self.data is not None:
                ret['info_data'] = self.data.dump()
        if self.slave_kind is not None:
            ret['info_slave_kind'] = self.slave_kind
            if self.slave_data is not None:
                ret['info_slave_data'] = self.slave_data.dump()
        return ret


def _decode_pair(linkinfo, kind_nla, data_nla, registry):
    kind = None
    data = None
    for slot in linkinfo['attrs']:
        if slot[0] == kind_nla:
            kind = nla.string(slot)
        elif slot[0] == data_nla and kind in registry:
            data = registry[kind].from_attrs(slot[1]['attrs'])
    if kind is not None and kind not in registry:
        log.debug('no %s decoder for kind %s', data_nla, kind)
    return kind, data


def decode_linkinfo(linkinfo) -> Optional[LinkInfo]:
    '''
    Decode IFLA_LINKINFO value; return None if there is
    neither IFLA_INFO_KIND nor IFLA_INFO_SLAVE_KIND.
    '''
    kind, data = _decode_pair(
        linkinfo, 'IFLA_INFO_KIND', 'IFLA_INFO_DATA', kind_data
    )
    slave_kind, slave_data = _decode_pair(
        linkinfo, 'IFLA_INFO_SLAVE_KIND', 'IFLA_INFO_SLAVE_DATA', port_data
    )
    if kind is None and slave_kind is None:
        return None
    return LinkInfo(kind, data, slave_kind, slave_data)
