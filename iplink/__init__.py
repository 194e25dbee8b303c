##
#
# This module contains all the public symbols from the library.
#

##
#
# Version
#
from iplink.config.version import __version__

##
#
# Logging setup: the library logger gets a NullHandler,
# the root logger is left as is
#
from iplink.config import log

from pyroute2.netlink.exceptions import (
    NetlinkDecodeError,
    NetlinkDumpInterrupted,
    NetlinkError,
)

from iplink.iproute import IPLink
from iplink.iprsocket import IPRSocket
from iplink.link.record import LinkRecord, build_link
from iplink.link.render import (
    record_to_dict,
    render_json,
    render_text,
    render_yaml,
)
from iplink.link.resolve import resolve

__all__ = [
    'IPLink',
    'IPRSocket',
    'LinkRecord',
    'NetlinkDecodeError',
    'NetlinkDumpInterrupted',
    'NetlinkError',
    '__version__',
    'build_link',
    'log',
    'record_to_dict',
    'render_json',
    'render_text',
    'render_yaml',
    'resolve',
]
