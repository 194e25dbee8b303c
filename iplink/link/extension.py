'''
Attributes by code
==================

The kernel adds new link attributes faster than the pyroute2
NLA maps follow, so the same attribute may come with a name
from one pyroute2 release and as `UNKNOWN` from another. The
attributes listed here are read by their numeric code instead,
whatever name the slot carries.

Every attribute family has its own table: the same code means
different things at the top level of RTM_NEWLINK and inside
IFLA_INFO_DATA of a bridge::

    >>> decode(58, b'\\x00\\x00\\x01\\x00')
    65536
    >>> decode(48, b'\\x05\\x00\\x00\\x00', family='bridge')
    5
    >>> decode(99, b'') is None
    True

Malformed payloads raise `NetlinkNLADecodeError`, unknown codes
are skipped.
'''

import logging
import struct
from typing import Iterable, Iterator, Optional, Union

from pyroute2.netlink.exceptions import NetlinkNLADecodeError

from iplink.link import nla

log = logging.getLogger(__name__)

Value = Union[int, str, tuple[int, int]]


def decode_boolopt(data: bytes) -> tuple[int, int]:
    # struct br_boolopt_multi
    try:
        return struct.unpack_from('=II', data)
    except struct.error as e:
        raise NetlinkNLADecodeError(e)


rules = {
    'u32': nla.decode_u32,
    'u16': nla.decode_u16,
    'u8': nla.decode_u8,
    'string': nla.decode_string,
    'boolopt': decode_boolopt,
}

# IFLA_*
link = {
    56: ('parentdev', 'string'),  # IFLA_PARENT_DEV_NAME
    57: ('parentbus', 'string'),  # IFLA_PARENT_DEV_BUS_NAME
    58: ('gro_max_size', 'u32'),  # IFLA_GRO_MAX_SIZE
    59: ('tso_max_size', 'u32'),  # IFLA_TSO_MAX_SIZE
    60: ('tso_max_segs', 'u32'),  # IFLA_TSO_MAX_SEGS
    61: ('allmulti', 'u32'),  # IFLA_ALLMULTI
    63: ('gso_ipv4_max_size', 'u32'),  # IFLA_GSO_IPV4_MAX_SIZE
    64: ('gro_ipv4_max_size', 'u32'),  # IFLA_GRO_IPV4_MAX_SIZE
}

# IFLA_BR_*
bridge = {
    41: ('vlan_stats_enabled', 'u8'),  # IFLA_BR_VLAN_STATS_ENABLED
    42: ('mcast_stats_enabled', 'u8'),  # IFLA_BR_MCAST_STATS_ENABLED
    43: ('mcast_igmp_version', 'u8'),  # IFLA_BR_MCAST_IGMP_VERSION
    44: ('mcast_mld_version', 'u8'),  # IFLA_BR_MCAST_MLD_VERSION
    45: ('vlan_stats_per_port', 'u8'),  # IFLA_BR_VLAN_STATS_PER_PORT
    46: ('multi_boolopt', 'boolopt'),  # IFLA_BR_MULTI_BOOLOPT
    48: ('fdb_n_learned', 'u32'),  # IFLA_BR_FDB_N_LEARNED
    49: ('fdb_max_learned', 'u32'),  # IFLA_BR_FDB_MAX_LEARNED
    51: ('no_linklocal_learn', 'u8'),  # IFLA_BR_NO_LL_LEARN
    52: ('mcast_vlan_snooping', 'u8'),  # IFLA_BR_VLAN_MCAST_SNOOPING
    53: ('mst_enabled', 'u8'),  # IFLA_BR_MST_ENABLED
}

# IFLA_BRPORT_*
bridge_port = {
    31: ('group_fwd_mask', 'u16'),  # IFLA_BRPORT_GROUP_FWD_MASK
    32: ('neigh_suppress', 'u8'),  # IFLA_BRPORT_NEIGH_SUPPRESS
    33: ('isolated', 'u8'),  # IFLA_BRPORT_ISOLATED
    39: ('locked', 'u8'),  # IFLA_BRPORT_LOCKED
    40: ('mab', 'u8'),  # IFLA_BRPORT_MAB
    43: ('neigh_vlan_suppress', 'u8'),  # IFLA_BRPORT_NEIGH_VLAN_SUPPRESS
}

tables = {'link': link, 'bridge': bridge, 'bridge_port': bridge_port}


def decode_one(
    kind: int, payload: bytes, family: str = 'link'
) -> Optional[tuple[str, Value]]:
    '''
    Return (name, value) for a known code, None otherwise
    '''
    try:
        name, rule = tables[family][kind]
    except KeyError:
        log.debug('skip %s attribute %i', family, kind)
        return None
    return (name, rules[rule](bytes(payload)))


def decode(
    kind: int, payload: bytes, family: str = 'link'
) -> Optional[Value]:
    ret = decode_one(kind, payload, family)
    if ret is not None:
        return ret[1]
    return None


def decode_attrs(
    attrs: Iterable, family: str = 'link'
) -> Iterator[tuple[str, Value]]:
    '''
    Walk the slots of a decoded NLA list and yield (name, value)
    for every attribute with a code from the family table, in
    the list order.
    '''
    table = tables[family]
    for slot in attrs:
        kind = nla.code(slot)
        if kind in table:
            name, rule = table[kind]
            yield (name, rules[rule](nla.payload(slot)))
        elif slot[0] == 'UNKNOWN':
            log.debug('skip %s attribute %i', family, kind)
