'''
Link records
============

`build_link()` turns one decoded RTM_NEWLINK message into a
`LinkRecord`, a flat structure with the values `ip link show`
prints. The builder does no I/O: the link group names are
passed in as a mapping, and the references to other links
and network namespaces are left numeric, as `Unresolved`.
See `iplink.link.resolve` to name them.

.. code::

    from iplink.link.record import build_link

    with IPRSocket() as iprsock:
        iprsock.bind()
        records = [build_link(msg) for msg in iprsock.dump_links()]

The NLA slots are decoded lazily, so the builder only pays for
the attributes it reads: the basic pass reads the attributes
of the main output, the details pass (with `details=True`)
walks the same list once more for the `ip -d` part.
'''

import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional, Union

from pyroute2.netlink.rtnl.ifinfmsg import (
    IFF_ALLMULTI,
    IFF_AUTOMEDIA,
    IFF_BROADCAST,
    IFF_DEBUG,
    IFF_DORMANT,
    IFF_DYNAMIC,
    IFF_ECHO,
    IFF_LOOPBACK,
    IFF_LOWER_UP,
    IFF_MASTER,
    IFF_MULTICAST,
    IFF_NOARP,
    IFF_NOTRAILERS,
    IFF_POINTOPOINT,
    IFF_PORTSEL,
    IFF_PROMISC,
    IFF_RUNNING,
    IFF_SLAVE,
    IFF_UP,
    ifinfmsg,
)

from iplink.common import ll_addr_n2a
from iplink.link import extension, nla
from iplink.link.info import LinkInfo, decode_linkinfo

log = logging.getLogger(__name__)

# the flags `ip link` prints, in its order; IFF_RUNNING is never
# printed, but IFF_UP without IFF_RUNNING adds NO-CARRIER
IFF_SHOW_ORDER = (
    (IFF_LOOPBACK, 'LOOPBACK'),
    (IFF_BROADCAST, 'BROADCAST'),
    (IFF_POINTOPOINT, 'POINTOPOINT'),
    (IFF_MULTICAST, 'MULTICAST'),
    (IFF_NOARP, 'NOARP'),
    (IFF_ALLMULTI, 'ALLMULTI'),
    (IFF_PROMISC, 'PROMISC'),
    (IFF_NOTRAILERS, 'NOTRAILERS'),
    (IFF_DEBUG, 'DEBUG'),
    (IFF_DYNAMIC, 'DYNAMIC'),
    (IFF_AUTOMEDIA, 'AUTOMEDIA'),
    (IFF_PORTSEL, 'PORTSEL'),
    (IFF_SLAVE, 'SLAVE'),
    (IFF_MASTER, 'MASTER'),
    (IFF_UP, 'UP'),
    (IFF_LOWER_UP, 'LOWER_UP'),
    (IFF_DORMANT, 'DORMANT'),
    (IFF_ECHO, 'ECHO'),
)

# IF_OPER_*
operstates = (
    'UNKNOWN',
    'NOTPRESENT',
    'DOWN',
    'LOWERLAYERDOWN',
    'TESTING',
    'DORMANT',
    'UP',
)

# IN6_ADDR_GEN_MODE_*
addr_gen_modes = ('eui64', 'none', 'stable_secret', 'random')

# iproute2 ll_types.c
ARPHRD_NAMES = {
    0: 'netrom',
    1: 'ether',
    2: 'eether',
    3: 'ax25',
    4: 'pronet',
    5: 'chaos',
    6: 'ieee802',
    7: 'arcnet',
    8: 'atalk',
    15: 'dlci',
    19: 'atm',
    23: 'metricom',
    24: 'ieee1394',
    27: 'eui64',
    32: 'infiniband',
    256: 'slip',
    257: 'cslip',
    258: 'slip6',
    259: 'cslip6',
    260: 'rsrvd',
    264: 'adapt',
    270: 'rose',
    271: 'x25',
    272: 'hwx25',
    280: 'can',
    290: 'mctp',
    512: 'ppp',
    513: 'hdlc',
    516: 'lapb',
    517: 'ddcmp',
    518: 'rawhdlc',
    519: 'rawip',
    768: 'ipip',
    769: 'tunnel6',
    770: 'frad',
    771: 'skip',
    772: 'loopback',
    773: 'ltalk',
    774: 'fddi',
    775: 'bif',
    776: 'sit',
    777: 'ip/ddp',
    778: 'gre',
    779: 'pimreg',
    780: 'hippi',
    781: 'ash',
    782: 'econet',
    783: 'irda',
    784: 'fcpp',
    785: 'fcal',
    786: 'fcpl',
    787: 'fcfb0',
    800: 'tr',
    801: 'ieee802.11',
    802: 'ieee802.11/prism',
    803: 'ieee802.11/radiotap',
    804: 'ieee802.15.4',
    805: 'ieee802.15.4/monitor',
    820: 'phonet',
    821: 'phonet_pipe',
    822: 'caif',
    823: 'gre6',
    824: 'netlink',
    825: '6lowpan',
    826: 'vsockmon',
    0xFFFE: 'none',
    0xFFFF: 'void',
}

link_modes = {0: 'DEFAULT', 1: 'DORMANT', 2: 'TESTING'}


def ll_type_n2a(ifi_type: int) -> str:
    return ARPHRD_NAMES.get(ifi_type, '[%i]' % ifi_type)


@dataclass(frozen=True)
class Unresolved:
    '''
    A reference by number: interface index for the links,
    nsid for the network namespaces.
    '''

    index: int


@dataclass(frozen=True)
class Resolved:
    name: str


LinkRef = Union[Unresolved, Resolved]
NetnsRef = Union[Unresolved, Resolved]


@dataclass
class ExtendedDetails:
    promiscuity: int = 0
    allmulti: int = 0
    min_mtu: int = 0
    max_mtu: int = 0
    linkinfo: Optional[LinkInfo] = None
    inet6_addr_gen_mode: str = ''
    num_tx_queues: int = 0
    num_rx_queues: int = 0
    gso_max_size: int = 0
    gso_max_segs: int = 0
    tso_max_size: int = 0
    tso_max_segs: int = 0
    gro_max_size: int = 0
    gso_ipv4_max_size: int = 0
    gro_ipv4_max_size: int = 0
    parentbus: str = ''
    parentdev: str = ''


@dataclass
class LinkRecord:
    ifindex: int
    ifname: str = ''
    flags: list[str] = field(default_factory=list)
    mtu: int = 0
    qdisc: str = ''
    controller: Optional[LinkRef] = None
    operstate: str = 'UNKNOWN'
    linkmode: str = 'DEFAULT'
    group: str = 'default'
    txqlen: Optional[int] = None
    link_type: str = ''
    address: Optional[str] = None
    broadcast: Optional[str] = None
    permaddr: Optional[str] = None
    link: Optional[LinkRef] = None
    netns: Optional[NetnsRef] = None
    altnames: list[str] = field(default_factory=list)
    details: Optional[ExtendedDetails] = None
    pointtopoint: bool = False


# IFLA_* -> ExtendedDetails field
detail_fields = {
    'IFLA_PROMISCUITY': 'promiscuity',
    'IFLA_MIN_MTU': 'min_mtu',
    'IFLA_MAX_MTU': 'max_mtu',
    'IFLA_NUM_TX_QUEUES': 'num_tx_queues',
    'IFLA_NUM_RX_QUEUES': 'num_rx_queues',
    'IFLA_GSO_MAX_SIZE': 'gso_max_size',
    'IFLA_GSO_MAX_SEGS': 'gso_max_segs',
}


def group_name(group: int, names: Optional[Mapping[int, str]] = None) -> str:
    if group == 0:
        return 'default'
    if names and group in names:
        return names[group]
    return str(group)


def flags2names(flags: int) -> list[str]:
    '''
    Return the flag names in the `ip link` order
    '''
    ret = []
    if flags & IFF_UP and not flags & IFF_RUNNING:
        ret.append('NO-CARRIER')
    ret.extend(name for (flag, name) in IFF_SHOW_ORDER if flags & flag)
    return ret


def operstate_name(state: int) -> str:
    if 0 <= state < len(operstates):
        return operstates[state]
    return '0x%x' % state


def addr_gen_mode(af_spec) -> str:
    # IFLA_AF_SPEC is decoded only for AF_UNSPEC messages
    if not hasattr(af_spec, 'get_attr'):
        return ''
    inet6 = af_spec.get_attr('AF_INET6')
    if inet6 is None:
        return ''
    for slot in inet6['attrs']:
        if slot[0] == 'IFLA_INET6_ADDR_GEN_MODE':
            mode = nla.decode_u8(nla.payload(slot))
            if mode < len(addr_gen_modes):
                return addr_gen_modes[mode]
            return '%#.2x' % mode
    return ''


def build_details(msg) -> ExtendedDetails:
    ret = ExtendedDetails()
    for slot in msg['attrs']:
        name = slot[0]
        if name in detail_fields:
            setattr(ret, detail_fields[name], slot[1])
        elif name == 'IFLA_AF_SPEC':
            ret.inet6_addr_gen_mode = addr_gen_mode(slot[1])
        elif name == 'IFLA_LINKINFO':
            ret.linkinfo = decode_linkinfo(slot[1])
    for field_name, value in extension.decode_attrs(msg['attrs'], 'link'):
        setattr(ret, field_name, value)
    return ret


def build_link(
    msg: ifinfmsg,
    details: bool = False,
    group_names: Optional[Mapping[int, str]] = None,
) -> LinkRecord:
    '''
    Build a `LinkRecord` from an RTM_NEWLINK message.

    * details -- build `ExtendedDetails` as well, like `ip -d`
    * group_names -- group id -> name, see `iplink.rt_files`

    Malformed attributes raise `NetlinkNLADecodeError`.
    '''
    ifi_type = msg['ifi_type']
    ret = LinkRecord(
        ifindex=msg['index'],
        flags=flags2names(msg['flags']),
        link_type=ll_type_n2a(ifi_type),
        pointtopoint=bool(msg['flags'] & IFF_POINTOPOINT),
    )
    permaddr = None
    for slot in msg['attrs']:
        name = slot[0]
        if name == 'IFLA_IFNAME':
            ret.ifname = nla.string(slot)
        elif name == 'IFLA_MTU':
            ret.mtu = slot[1]
        elif name == 'IFLA_QDISC':
            ret.qdisc = nla.string(slot)
        elif name == 'IFLA_OPERSTATE':
            ret.operstate = operstate_name(nla.decode_u8(nla.payload(slot)))
        elif name == 'IFLA_LINKMODE':
            ret.linkmode = link_modes.get(slot[1], str(slot[1]))
        elif name == 'IFLA_GROUP':
            ret.group = group_name(slot[1], group_names)
        elif name == 'IFLA_TXQLEN':
            if slot[1] > 0:
                ret.txqlen = slot[1]
        elif name == 'IFLA_ADDRESS':
            ret.address = ll_addr_n2a(nla.payload(slot), ifi_type)
        elif name == 'IFLA_BROADCAST':
            ret.broadcast = ll_addr_n2a(nla.payload(slot), ifi_type)
        elif name == 'IFLA_PERM_ADDRESS':
            permaddr = ll_addr_n2a(nla.payload(slot), ifi_type)
        elif name == 'IFLA_LINK':
            if slot[1] != 0:
                ret.link = Unresolved(slot[1])
        elif name == 'IFLA_LINK_NETNSID':
            nsid = nla.decode_s32(nla.payload(slot))
            if nsid >= 0:
                ret.netns = Unresolved(nsid)
        elif name == 'IFLA_MASTER':
            ret.controller = Unresolved(slot[1])
        elif name == 'IFLA_PROP_LIST':
            ret.altnames.extend(
                nla.string(x)
                for x in slot[1]['attrs']
                if x[0] == 'IFLA_ALT_IFNAME'
            )
    if permaddr is not None and permaddr != ret.address:
        ret.permaddr = permaddr
    if details:
        ret.details = build_details(msg)
    return ret
