'''
IPLink
======

The query API, the same as `ip link show` does::

    from iplink import IPLink

    with IPLink() as ipl:
        for record in ipl.show(details=True):
            print(record.ifname, record.operstate)

        # raises NetlinkError(ENODEV) if there is no such link
        lo = ipl.show('lo')

One `show()` call runs one link dump, then the nsid requests
if some links refer to other network namespaces. The requests
run one by one on the same socket.
'''

import errno
import logging
from typing import Optional

from pyroute2.netlink.exceptions import NetlinkError

from iplink.iprsocket import IPRSocket
from iplink.link.record import LinkRecord, build_link
from iplink.link.resolve import resolve
from iplink.rt_files import RtGroupFile

log = logging.getLogger(__name__)


class IPLink:
    '''
    Link dump over an `IPRSocket`.

    * socket -- an `IPRSocket` to use; if not set, a new one is
      created and bound, and `close()` closes it
    '''

    def __init__(self, socket: Optional[IPRSocket] = None):
        if socket is None:
            socket = IPRSocket()
            socket.bind()
            self.own_socket = True
        else:
            self.own_socket = False
        self.socket = socket

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self):
        if self.own_socket:
            self.socket.close()

    def show(
        self, ifname: Optional[str] = None, details: bool = False
    ) -> list[LinkRecord]:
        '''
        Return the link records, all or only the one with the
        name or the alternative name `ifname`.
        '''
        group_names = RtGroupFile().id2name
        records = [
            build_link(msg, details=details, group_names=group_names)
            for msg in self.socket.dump_links()
        ]
        log.debug('got %i links', len(records))
        # the references are resolved over the full set
        resolve(records, self.socket.netns_ids)
        if ifname is None:
            return records
        ret = [
            x for x in records if x.ifname == ifname or ifname in x.altnames
        ]
        if not ret:
            raise NetlinkError(
                errno.ENODEV, 'Device "%s" does not exist.' % ifname
            )
        return ret
