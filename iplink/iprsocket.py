'''
rtnetlink socket
================

The two requests `ip link show` runs: the link dump and the
nsid lookup for the named network namespaces. The messages
are pyroute2 `ifinfmsg` and `nsidmsg`.
'''

import logging
import os
from typing import Generator, Optional

from pyroute2.netlink import NETLINK_ROUTE, NLM_F_DUMP, NLM_F_REQUEST
from pyroute2.netlink.exceptions import NetlinkError
from pyroute2.netlink.rtnl import RTM_GETLINK, RTM_NEWLINK
from pyroute2.netlink.rtnl.ifinfmsg import ifinfmsg
from pyroute2.netlink.rtnl.nsidmsg import nsidmsg

from iplink import config
from iplink.link import nla
from iplink.netns import netns_handles
from iplink.nlsocket import Marshal, NetlinkSocket

log = logging.getLogger(__name__)

RTM_NEWNSID = 88
RTM_GETNSID = 90

# IFLA_EXT_MASK bits
RTEXT_FILTER_VF = 1 << 0
RTEXT_FILTER_SKIP_STATS = 1 << 3


class MarshalRtnl(Marshal):
    msg_map = {RTM_NEWLINK: ifinfmsg, RTM_NEWNSID: nsidmsg}


class IPRSocket(NetlinkSocket):
    '''
    Synchronous rtnetlink socket for the link dumps.

    .. code::

        from iplink.iprsocket import IPRSocket

        with IPRSocket() as iprsock:
            iprsock.bind()
            for msg in iprsock.dump_links():
                print(msg.get_attr('IFLA_IFNAME'))
    '''

    marshal_class = MarshalRtnl

    def __init__(self, *argv, **kwarg):
        kwarg['family'] = NETLINK_ROUTE
        super().__init__(*argv, **kwarg)

    def dump_links(self) -> Generator[ifinfmsg, None, None]:
        '''
        Dump all the links, skipping the statistics the same
        way `ip link show` does.
        '''
        msg = ifinfmsg()
        msg['family'] = 0
        msg['attrs'] = [
            ('IFLA_EXT_MASK', RTEXT_FILTER_VF | RTEXT_FILTER_SKIP_STATS)
        ]
        yield from self.nlm_request(
            msg, RTM_GETLINK, NLM_F_REQUEST | NLM_F_DUMP
        )

    def get_netnsid(self, fd: int) -> Optional[int]:
        '''
        Return the nsid for the netns file descriptor, or None
        if the netns has no id assigned.
        '''
        msg = nsidmsg()
        msg['rtgen_family'] = 0
        msg['attrs'] = [('NETNSA_FD', fd)]
        for response in self.nlm_request(msg, RTM_GETNSID, NLM_F_REQUEST):
            for slot in response['attrs']:
                # NETNSA_NSID is signed, -1 is "not assigned"
                if slot[0] == 'NETNSA_NSID':
                    nsid = nla.decode_s32(nla.payload(slot))
                    if nsid >= 0:
                        return nsid
        return None

    def netns_ids(self) -> dict[int, str]:
        '''
        Map nsid -> netns name for the namespaces under
        `config.netns_path`. The requests run one by one.
        '''
        ret = {}
        for name, path in netns_handles(config.netns_path):
            try:
                fd = os.open(path, os.O_RDONLY)
            except OSError as e:
                log.debug('netns %s: %s', name, e)
                continue
            try:
                nsid = self.get_netnsid(fd)
            except NetlinkError as e:
                log.debug('netns %s: RTM_GETNSID failed: %s', name, e)
                continue
            finally:
                os.close(fd)
            if nsid is not None:
                ret[nsid] = name
        return ret
