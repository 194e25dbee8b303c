'''
Netns handles
=============

Named network namespaces are files in the netns run directory,
usually `/var/run/netns`, created by `ip netns add`. The link
dump refers to the namespaces by nsid only; to print the name,
open each file and ask the kernel for its nsid, see
`iplink.iprsocket.IPRSocket.netns_ids()`.

The directories are listed in `iplink.config.netns_path`.
'''

import os

from pyroute2.netns import listnetns

from iplink import config


def netns_handles(paths=None):
    '''
    Yield (name, path) for every netns file under the given
    directories, `config.netns_path` by default, sorted by name
    within a directory. A missing directory is the same as an
    empty one. If the same name appears in several directories,
    the first one wins.
    '''
    seen = set()
    for nsdir in paths or config.netns_path:
        for name in sorted(listnetns(nsdir)):
            if name in seen:
                continue
            seen.add(name)
            yield (name, os.path.join(nsdir, name))
