'''
Bridge and bridge port details
==============================

`BridgeInfo` is built from the IFLA_INFO_DATA attrs of a link
with IFLA_INFO_KIND == 'bridge', `BridgePortInfo` -- from the
IFLA_INFO_SLAVE_DATA attrs of a link enslaved to a bridge::

    info = BridgeInfo.from_attrs(linkinfo.get_attr('IFLA_INFO_DATA')['attrs'])
    info.text()  # 'forward_delay 1500 hello_time 200 ...'
    info.dump()  # {'forward_delay': 1500, 'hello_time': 200, ...}

The attrs are processed in the list order, a repeated attribute
overrides the previous value. Both the text and the dict keep
the field order of `ip -d link show`.

Timers are stored as integers, in centiseconds, as the kernel
reports them; `format_timer()` and `json_timer()` convert them
for the output.
'''

import logging
import struct
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pyroute2.netlink.exceptions import NetlinkNLADecodeError

from iplink.common import hexdump, strip_hex
from iplink.link import extension, nla

log = logging.getLogger(__name__)

ETH_P_8021Q = 0x8100
ETH_P_8021AD = 0x88A8

# enum br_boolopt_id
BR_BOOLOPT_NO_LL_LEARN = 0
BR_BOOLOPT_MCAST_VLAN_SNOOPING = 1
BR_BOOLOPT_MST_ENABLE = 2

port_states = {
    0: 'disabled',
    1: 'listening',
    2: 'learning',
    3: 'forwarding',
    4: 'blocking',
}

# iproute2 names for the group_fwd_mask bits
fwd_mask_bits = {0: 'stp', 2: 'lacp', 14: 'lldp'}

boolopts = {
    BR_BOOLOPT_NO_LL_LEARN: 'no_linklocal_learn',
    BR_BOOLOPT_MCAST_VLAN_SNOOPING: 'mcast_vlan_snooping',
    BR_BOOLOPT_MST_ENABLE: 'mst_enabled',
}


def protocol_name(value: int) -> str:
    if value == ETH_P_8021Q:
        return '802.1Q'
    if value == ETH_P_8021AD:
        return '802.1ad'
    return '0x%x' % value


def format_timer(centis: int) -> str:
    '''
    Centiseconds -> seconds, right aligned::

        >>> format_timer(1234)
        '  12.34'
    '''
    return '%7.2f' % (centis / 100.0)


def json_timer(centis: int) -> float:
    return round(centis / 100.0, 2)


def format_mask(mask: int) -> str:
    if mask == 0:
        return '0'
    return '0x%x' % mask


def group_fwd_mask_str(mask: int) -> str:
    '''
    Name the mask bits the way iproute2 does::

        >>> group_fwd_mask_str(0x4005)
        'stp,lacp,lldp'
        >>> group_fwd_mask_str(0x2)
        '0x2'
    '''
    ret = []
    for bit in range(16):
        if mask & (1 << bit):
            ret.append(fwd_mask_bits.get(bit, '0x%x' % (1 << bit)))
    return ','.join(ret) or '0x0'


def on_off(value: bool) -> str:
    return 'on' if value else 'off'


@dataclass(frozen=True)
class BridgeId:
    '''
    struct ifla_bridge_id: priority and MAC address
    '''

    prio: int
    address: str

    @classmethod
    def from_payload(cls, data: bytes) -> 'BridgeId':
        # the priority bytes go in the network order
        if len(data) < 8:
            raise NetlinkNLADecodeError(
                ValueError('bridge id: %i bytes, need 8' % len(data))
            )
        (prio,) = struct.unpack_from('>H', data)
        return cls(prio, hexdump(data[2:8]))

    def __str__(self):
        return '%04x.%s' % (self.prio, strip_hex(self.address))


def _bridge_id(value):
    if value is None:
        return None
    return str(value)


@dataclass
class BridgeInfo:
    forward_delay: int = 0
    hello_time: int = 0
    max_age: int = 0
    ageing_time: int = 0
    stp_state: int = 0
    priority: int = 0
    vlan_filtering: int = 0
    vlan_protocol: str = ''
    bridge_id: Optional[BridgeId] = None
    root_id: Optional[BridgeId] = None
    root_port: int = 0
    root_path_cost: int = 0
    topology_change: int = 0
    topology_change_detected: int = 0
    hello_timer: int = 0
    tcn_timer: int = 0
    topology_change_timer: int = 0
    gc_timer: int = 0
    fdb_n_learned: Optional[int] = None
    fdb_max_learned: Optional[int] = None
    vlan_default_pvid: int = 0
    vlan_stats_enabled: Optional[int] = None
    vlan_stats_per_port: Optional[int] = None
    group_fwd_mask: int = 0
    group_addr: str = ''
    mcast_snooping: int = 0
    no_linklocal_learn: int = 0
    mcast_vlan_snooping: int = 0
    mst_enabled: int = 0
    mcast_router: int = 0
    mcast_query_use_ifaddr: int = 0
    mcast_querier: int = 0
    mcast_hash_elasticity: int = 0
    mcast_hash_max: int = 0
    mcast_last_member_cnt: int = 0
    mcast_startup_query_cnt: int = 0
    mcast_last_member_intvl: int = 0
    mcast_membership_intvl: int = 0
    mcast_querier_intvl: int = 0
    mcast_query_intvl: int = 0
    mcast_query_response_intvl: int = 0
    mcast_startup_query_intvl: int = 0
    mcast_stats_enabled: Optional[int] = None
    mcast_igmp_version: Optional[int] = None
    mcast_mld_version: Optional[int] = None
    nf_call_iptables: int = 0
    nf_call_ip6tables: int = 0
    nf_call_arptables: int = 0

    # IFLA_BR_* -> field, the values go as is
    nla_fields = {
        'IFLA_BR_FORWARD_DELAY': 'forward_delay',
        'IFLA_BR_HELLO_TIME': 'hello_time',
        'IFLA_BR_MAX_AGE': 'max_age',
        'IFLA_BR_AGEING_TIME': 'ageing_time',
        'IFLA_BR_STP_STATE': 'stp_state',
        'IFLA_BR_PRIORITY': 'priority',
        'IFLA_BR_VLAN_FILTERING': 'vlan_filtering',
        'IFLA_BR_ROOT_PORT': 'root_port',
        'IFLA_BR_ROOT_PATH_COST': 'root_path_cost',
        'IFLA_BR_TOPOLOGY_CHANGE': 'topology_change',
        'IFLA_BR_TOPOLOGY_CHANGE_DETECTED': 'topology_change_detected',
        'IFLA_BR_HELLO_TIMER': 'hello_timer',
        'IFLA_BR_TCN_TIMER': 'tcn_timer',
        'IFLA_BR_TOPOLOGY_CHANGE_TIMER': 'topology_change_timer',
        'IFLA_BR_GC_TIMER': 'gc_timer',
        'IFLA_BR_GROUP_FWD_MASK': 'group_fwd_mask',
        'IFLA_BR_MCAST_ROUTER': 'mcast_router',
        'IFLA_BR_MCAST_SNOOPING': 'mcast_snooping',
        'IFLA_BR_MCAST_QUERY_USE_IFADDR': 'mcast_query_use_ifaddr',
        'IFLA_BR_MCAST_QUERIER': 'mcast_querier',
        'IFLA_BR_MCAST_HASH_ELASTICITY': 'mcast_hash_elasticity',
        'IFLA_BR_MCAST_HASH_MAX': 'mcast_hash_max',
        'IFLA_BR_MCAST_LAST_MEMBER_CNT': 'mcast_last_member_cnt',
        'IFLA_BR_MCAST_STARTUP_QUERY_CNT': 'mcast_startup_query_cnt',
        'IFLA_BR_MCAST_LAST_MEMBER_INTVL': 'mcast_last_member_intvl',
        'IFLA_BR_MCAST_MEMBERSHIP_INTVL': 'mcast_membership_intvl',
        'IFLA_BR_MCAST_QUERIER_INTVL': 'mcast_querier_intvl',
        'IFLA_BR_MCAST_QUERY_INTVL': 'mcast_query_intvl',
        'IFLA_BR_MCAST_QUERY_RESPONSE_INTVL': 'mcast_query_response_intvl',
        'IFLA_BR_MCAST_STARTUP_QUERY_INTVL': 'mcast_startup_query_intvl',
        'IFLA_BR_NF_CALL_IPTABLES': 'nf_call_iptables',
        'IFLA_BR_NF_CALL_IP6TABLES': 'nf_call_ip6tables',
        'IFLA_BR_NF_CALL_ARPTABLES': 'nf_call_arptables',
        'IFLA_BR_VLAN_DEFAULT_PVID': 'vlan_default_pvid',
    }

    def set_boolopt(self, optval: int, optmask: int):
        for bit, field in boolopts.items():
            if optmask & (1 << bit):
                setattr(self, field, 1 if optval & (1 << bit) else 0)

    @classmethod
    def from_attrs(cls, attrs: Iterable) -> 'BridgeInfo':
        '''
        The named attributes first, then the ones from the
        'bridge' table of `iplink.link.extension`, each pass
        in the list order.
        '''
        attrs = list(attrs)
        self = cls()
        for slot in attrs:
            name = slot[0]
            if name in cls.nla_fields:
                setattr(self, cls.nla_fields[name], slot[1])
            elif name == 'IFLA_BR_VLAN_PROTOCOL':
                self.vlan_protocol = protocol_name(slot[1])
            elif name == 'IFLA_BR_BRIDGE_ID':
                self.bridge_id = BridgeId.from_payload(nla.payload(slot))
            elif name == 'IFLA_BR_ROOT_ID':
                self.root_id = BridgeId.from_payload(nla.payload(slot))
            elif name == 'IFLA_BR_GROUP_ADDR':
                self.group_addr = hexdump(nla.payload(slot))
        for field, value in extension.decode_attrs(attrs, family='bridge'):
            if field == 'multi_boolopt':
                self.set_boolopt(*value)  # type: ignore[misc]
            else:
                setattr(self, field, value)
        return self

    def text(self) -> str:
        ret = [
            'forward_delay %i ' % self.forward_delay,
            'hello_time %i ' % self.hello_time,
            'max_age %i ' % self.max_age,
            'ageing_time %i ' % self.ageing_time,
            'stp_state %i ' % self.stp_state,
            'priority %i ' % self.priority,
            'vlan_filtering %i ' % self.vlan_filtering,
            'vlan_protocol %s ' % self.vlan_protocol,
        ]
        if self.bridge_id is not None:
            ret.append('bridge_id %s ' % self.bridge_id)
        if self.root_id is not None:
            ret.append('designated_root %s ' % self.root_id)
        ret.extend(
            (
                'root_port %i ' % self.root_port,
                'root_path_cost %i ' % self.root_path_cost,
                'topology_change %i ' % self.topology_change,
                'topology_change_detected %i '
                % self.topology_change_detected,
                'hello_timer %s ' % format_timer(self.hello_timer),
                'tcn_timer %s ' % format_timer(self.tcn_timer),
                'topology_change_timer %s '
                % format_timer(self.topology_change_timer),
                'gc_timer %s ' % format_timer(self.gc_timer),
            )
        )
        if self.fdb_n_learned is not None:
            ret.append('fdb_n_learned %i ' % self.fdb_n_learned)
        if self.fdb_max_learned is not None:
            ret.append('fdb_max_learned %i ' % self.fdb_max_learned)
        ret.append('vlan_default_pvid %i ' % self.vlan_default_pvid)
        if self.vlan_stats_enabled is not None:
            ret.append('vlan_stats_enabled %i ' % self.vlan_stats_enabled)
        if self.vlan_stats_per_port is not None:
            ret.append('vlan_stats_per_port %i ' % self.vlan_stats_per_port)
        ret.append('group_fwd_mask %s ' % format_mask(self.group_fwd_mask))
        if self.group_addr:
            ret.append('group_address %s ' % self.group_addr)
        ret.extend(
            (
                'mcast_snooping %i ' % self.mcast_snooping,
                'no_linklocal_learn %i ' % self.no_linklocal_learn,
                'mcast_vlan_snooping %i ' % self.mcast_vlan_snooping,
                'mst_enabled %i ' % self.mst_enabled,
                'mcast_router %i ' % self.mcast_router,
                'mcast_query_use_ifaddr %i ' % self.mcast_query_use_ifaddr,
                'mcast_querier %i ' % self.mcast_querier,
                'mcast_hash_elasticity %i ' % self.mcast_hash_elasticity,
                'mcast_hash_max %i ' % self.mcast_hash_max,
                'mcast_last_member_count %i ' % self.mcast_last_member_cnt,
                'mcast_startup_query_count %i '
                % self.mcast_startup_query_cnt,
                'mcast_last_member_interval %i '
                % self.mcast_last_member_intvl,
                'mcast_membership_interval %i '
                % self.mcast_membership_intvl,
                'mcast_querier_interval %i ' % self.mcast_querier_intvl,
                'mcast_query_interval %i ' % self.mcast_query_intvl,
                'mcast_query_response_interval %i '
                % self.mcast_query_response_intvl,
                'mcast_startup_query_interval %i '
                % self.mcast_startup_query_intvl,
            )
        )
        if self.mcast_stats_enabled is not None:
            ret.append('mcast_stats_enabled %i ' % self.mcast_stats_enabled)
        if self.mcast_igmp_version is not None:
            ret.append('mcast_igmp_version %i ' % self.mcast_igmp_version)
        if self.mcast_mld_version is not None:
            ret.append('mcast_mld_version %i ' % self.mcast_mld_version)
        ret.extend(
            (
                'nf_call_iptables %i ' % self.nf_call_iptables,
                'nf_call_ip6tables %i ' % self.nf_call_ip6tables,
                'nf_call_arptables %i' % self.nf_call_arptables,
            )
        )
        return ''.join(ret)

    def dump(self) -> dict[str, Any]:
        ret = {
            'forward_delay': self.forward_delay,
            'hello_time': self.hello_time,
            'max_age': self.max_age,
            'ageing_time': self.ageing_time,
            'stp_state': self.stp_state,
            'priority': self.priority,
            'vlan_filtering': self.vlan_filtering,
            'vlan_protocol': self.vlan_protocol,
            'bridge_id': _bridge_id(self.bridge_id),
            'root_id': _bridge_id(self.root_id),
            'root_port': self.root_port,
            'root_path_cost': self.root_path_cost,
            'topology_change': self.topology_change,
            'topology_change_detected': self.topology_change_detected,
            'hello_timer': json_timer(self.hello_timer),
            'tcn_timer': json_timer(self.tcn_timer),
            'topology_change_timer': json_timer(self.topology_change_timer),
            'gc_timer': json_timer(self.gc_timer),
            'fdb_n_learned': self.fdb_n_learned,
            'fdb_max_learned': self.fdb_max_learned,
            'vlan_default_pvid': self.vlan_default_pvid,
            'vlan_stats_enabled': self.vlan_stats_enabled,
            'vlan_stats_per_port': self.vlan_stats_per_port,
            'group_fwd_mask': format_mask(self.group_fwd_mask),
            'group_addr': self.group_addr or None,
            'mcast_snooping': self.mcast_snooping,
            'no_linklocal_learn': self.no_linklocal_learn,
            'mcast_vlan_snooping': self.mcast_vlan_snooping,
            'mst_enabled': self.mst_enabled,
            'mcast_router': self.mcast_router,
            'mcast_query_use_ifaddr': self.mcast_query_use_ifaddr,
            'mcast_querier': self.mcast_querier,
            'mcast_hash_elasticity': self.mcast_hash_elasticity,
            'mcast_hash_max': self.mcast_hash_max,
            'mcast_last_member_cnt': self.mcast_last_member_cnt,
            'mcast_startup_query_cnt': self.mcast_startup_query_cnt,
            'mcast_last_member_intvl': self.mcast_last_member_intvl,
            'mcast_membership_intvl': self.mcast_membership_intvl,
            'mcast_querier_intvl': self.mcast_querier_intvl,
            'mcast_query_intvl': self.mcast_query_intvl,
            'mcast_query_response_intvl': self.mcast_query_response_intvl,
            'mcast_startup_query_intvl': self.mcast_startup_query_intvl,
            'mcast_stats_enabled': self.mcast_stats_enabled,
            'mcast_igmp_version': self.mcast_igmp_version,
            'mcast_mld_version': self.mcast_mld_version,
            'nf_call_iptables': self.nf_call_iptables,
            'nf_call_ip6tables': self.nf_call_ip6tables,
            'nf_call_arptables': self.nf_call_arptables,
        }
        return {k: v for k, v in ret.items() if v is not None}


@dataclass
class BridgePortInfo:
    state: str = ''
    priority: int = 0
    cost: int = 0
    hairpin: bool = False
    guard: bool = False
    root_block: bool = False
    fastleave: bool = False
    learning: bool = False
    flood: bool = False
    id: str = ''
    no: str = ''
    designated_port: int = 0
    designated_cost: int = 0
    bridge_id: Optional[BridgeId] = None
    root_id: Optional[BridgeId] = None
    hold_timer: int = 0
    message_age_timer: int = 0
    forward_delay_timer: int = 0
    topology_change_ack: int = 0
    config_pending: int = 0
    proxy_arp: bool = False
    proxy_arp_wifi: bool = False
    multicast_router: int = 0
    mcast_flood: bool = False
    bcast_flood: bool = False
    mcast_to_unicast: bool = False
    neigh_suppress: bool = False
    neigh_vlan_suppress: Optional[bool] = None
    group_fwd_mask: int = 0
    vlan_tunnel: bool = False
    isolated: bool = False
    locked: bool = False
    mab: Optional[bool] = None

    # IFLA_BRPORT_* -> (field, type)
    nla_fields = {
        'IFLA_BRPORT_PRIORITY': ('priority', int),
        'IFLA_BRPORT_COST': ('cost', int),
        'IFLA_BRPORT_MODE': ('hairpin', bool),
        'IFLA_BRPORT_GUARD': ('guard', bool),
        'IFLA_BRPORT_PROTECT': ('root_block', bool),
        'IFLA_BRPORT_FAST_LEAVE': ('fastleave', bool),
        'IFLA_BRPORT_LEARNING': ('learning', bool),
        'IFLA_BRPORT_UNICAST_FLOOD': ('flood', bool),
        'IFLA_BRPORT_DESIGNATED_PORT': ('designated_port', int),
        'IFLA_BRPORT_DESIGNATED_COST': ('designated_cost', int),
        'IFLA_BRPORT_HOLD_TIMER': ('hold_timer', int),
        'IFLA_BRPORT_MESSAGE_AGE_TIMER': ('message_age_timer', int),
        'IFLA_BRPORT_FORWARD_DELAY_TIMER': ('forward_delay_timer', int),
        'IFLA_BRPORT_TOPOLOGY_CHANGE_ACK': ('topology_change_ack', int),
        'IFLA_BRPORT_CONFIG_PENDING': ('config_pending', int),
        'IFLA_BRPORT_PROXYARP': ('proxy_arp', bool),
        'IFLA_BRPORT_PROXYARP_WIFI': ('proxy_arp_wifi', bool),
        'IFLA_BRPORT_MULTICAST_ROUTER': ('multicast_router', int),
        'IFLA_BRPORT_MCAST_FLOOD': ('mcast_flood', bool),
        'IFLA_BRPORT_BCAST_FLOOD': ('bcast_flood', bool),
        'IFLA_BRPORT_MCAST_TO_UCAST': ('mcast_to_unicast', bool),
        'IFLA_BRPORT_VLAN_TUNNEL': ('vlan_tunnel', bool),
    }

    # fields from the 'bridge_port' table of `iplink.link.extension`
    flag_fields = {
        'neigh_suppress',
        'neigh_vlan_suppress',
        'isolated',
        'locked',
        'mab',
    }

    @classmethod
    def from_attrs(cls, attrs: Iterable) -> 'BridgePortInfo':
        attrs = list(attrs)
        self = cls()
        for slot in attrs:
            name = slot[0]
            if name in cls.nla_fields:
                field, convert = cls.nla_fields[name]
                setattr(self, field, convert(slot[1]))
            elif name == 'IFLA_BRPORT_STATE':
                self.state = port_states.get(slot[1], str(slot[1]))
            elif name == 'IFLA_BRPORT_ID':
                self.id = '0x%x' % slot[1]
            elif name == 'IFLA_BRPORT_NO':
                self.no = '0x%x' % slot[1]
            elif name == 'IFLA_BRPORT_BRIDGE_ID':
                self.bridge_id = BridgeId.from_payload(nla.payload(slot))
            elif name == 'IFLA_BRPORT_ROOT_ID':
                self.root_id = BridgeId.from_payload(nla.payload(slot))
        for field, value in extension.decode_attrs(attrs, 'bridge_port'):
            if field in cls.flag_fields:
                value = bool(value)
            setattr(self, field, value)
        return self

    def text(self) -> str:
        ret = [
            'state %s ' % self.state,
            'priority %i ' % self.priority,
            'cost %i ' % self.cost,
            'hairpin %s ' % on_off(self.hairpin),
            'guard %s ' % on_off(self.guard),
            'root_block %s ' % on_off(self.root_block),
            'fastleave %s ' % on_off(self.fastleave),
            'learning %s ' % on_off(self.learning),
            'flood %s ' % on_off(self.flood),
            'port_id %s ' % self.id,
            'port_no %s ' % self.no,
            'designated_port %i ' % self.designated_port,
            'designated_cost %i ' % self.designated_cost,
        ]
        if self.bridge_id is not None:
            ret.append('designated_bridge %s ' % self.bridge_id)
        if self.root_id is not None:
            ret.append('designated_root %s ' % self.root_id)
        ret.extend(
            (
                'hold_timer %s ' % format_timer(self.hold_timer),
                'message_age_timer %s '
                % format_timer(self.message_age_timer),
                'forward_delay_timer %s '
                % format_timer(self.forward_delay_timer),
                'topology_change_ack %i ' % self.topology_change_ack,
                'config_pending %i ' % self.config_pending,
                'proxy_arp %s ' % on_off(self.proxy_arp),
                'proxy_arp_wifi %s ' % on_off(self.proxy_arp_wifi),
                'mcast_router %i ' % self.multicast_router,
                'mcast_fast_leave %s ' % on_off(self.fastleave),
                'mcast_flood %s ' % on_off(self.mcast_flood),
                'bcast_flood %s ' % on_off(self.bcast_flood),
                'mcast_to_unicast %s ' % on_off(self.mcast_to_unicast),
                'neigh_suppress %s ' % on_off(self.neigh_suppress),
                'neigh_vlan_suppress %s '
                % on_off(bool(self.neigh_vlan_suppress)),
                'group_fwd_mask %s ' % format_mask(self.group_fwd_mask),
                'group_fwd_mask_str %s '
                % group_fwd_mask_str(self.group_fwd_mask),
                'vlan_tunnel %s ' % on_off(self.vlan_tunnel),
                'isolated %s ' % on_off(self.isolated),
                'locked %s ' % on_off(self.locked),
                'mab %s' % on_off(bool(self.mab)),
            )
        )
        return ''.join(ret)

    def dump(self) -> dict[str, Any]:
        ret = {
            'state': self.state,
            'priority': self.priority,
            'cost': self.cost,
            'hairpin': self.hairpin,
            'guard': self.guard,
            'root_block': self.root_block,
            'fastleave': self.fastleave,
            'learning': self.learning,
            'flood': self.flood,
            'id': self.id,
            'no': self.no,
            'designated_port': self.designated_port,
            'designated_cost': self.designated_cost,
            'bridge_id': _bridge_id(self.bridge_id),
            'root_id': _bridge_id(self.root_id),
            'hold_timer': json_timer(self.hold_timer),
            'message_age_timer': json_timer(self.message_age_timer),
            'forward_delay_timer': json_timer(self.forward_delay_timer),
            'topology_change_ack': self.topology_change_ack,
            'config_pending': self.config_pending,
            'proxy_arp': self.proxy_arp,
            'proxy_arp_wifi': self.proxy_arp_wifi,
            'multicast_router': self.multicast_router,
            'mcast_flood': self.mcast_flood,
            'bcast_flood': self.bcast_flood,
            'mcast_to_unicast': self.mcast_to_unicast,
            'neigh_suppress': self.neigh_suppress,
            'neigh_vlan_suppress': self.neigh_vlan_suppress,
            'group_fwd_mask': format_mask(self.group_fwd_mask),
            'group_fwd_mask_str': group_fwd_mask_str(self.group_fwd_mask),
            'vlan_tunnel': self.vlan_tunnel,
            'isolated': self.isolated,
            'locked': self.locked,
            'mab': self.mab,
        }
        return {k: v for k, v in ret.items() if v is not None}
