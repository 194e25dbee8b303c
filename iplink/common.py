# -*- coding: utf-8 -*-
'''
Common utilities
'''
import socket
import types
from functools import partial
from typing import Any, Callable, Literal, Union


def _no_change(s: str) -> str:
    return s


def _default_normalize(s: str, prefix: str) -> str:
    return s[len(prefix) :].lower()


def map_namespace(
    prefix: str,
    ns: dict[str, Any],
    normalize: Union[None, Literal[True], Callable[[str], str]] = None,
) -> tuple[dict[str, int], dict[int, str]]:
    '''
    Take the namespace prefix, list all constants and build two
    dictionaries -- straight and reverse mappings. E.g.:

    ## vlan flags
    VLAN_FLAG_REORDER_HDR = 0x1
    VLAN_FLAG_GVRP = 0x2
    (VLAN_FLAG_NAMES, VLAN_FLAG_VALUES) = map_namespace('VLAN_FLAG_', ns)

    Will lead to::

        VLAN_FLAG_NAMES = {'VLAN_FLAG_REORDER_HDR': 1,
                           'VLAN_FLAG_GVRP': 2}
        VLAN_FLAG_VALUES = {1: 'VLAN_FLAG_REORDER_HDR',
                            2: 'VLAN_FLAG_GVRP'}

    The `normalize` parameter can be:

        - None -- no name transformation will be done
        - True -- cut the prefix and `lower()` the rest
        - lambda x: ... -- apply the function to every name
    '''
    transform: Callable[[str], str]

    if normalize is None:
        transform = _no_change
    elif normalize is True:
        transform = partial(_default_normalize, prefix=prefix)
    elif isinstance(normalize, types.FunctionType):
        transform = normalize
    else:
        raise ValueError("Invalid value for `normalize` parameter")

    by_name = {transform(i): ns[i] for i in ns.keys() if i.startswith(prefix)}
    by_value = {ns[i]: transform(i) for i in ns.keys() if i.startswith(prefix)}
    return (by_name, by_value)


def hexdump(payload: bytes, length: int = 0) -> str:
    '''
    Represent byte string as hex -- for debug purposes
    '''
    return ':'.join('{0:02x}'.format(c) for c in payload[:length] or payload)


def ll_addr_n2a(payload: bytes, ifi_type: int = 0) -> str:
    '''
    Format a link layer address the way iproute2 does: IPv4
    and IPv6 tunnels carry IP addresses in IFLA_ADDRESS, all
    the rest is a colon separated hex string.
    '''
    if ifi_type in IP4_TUNNELS and len(payload) == 4:
        return socket.inet_ntop(socket.AF_INET, payload)
    if ifi_type in IP6_TUNNELS and len(payload) == 16:
        return socket.inet_ntop(socket.AF_INET6, payload)
    return hexdump(payload)


def strip_hex(addr: str) -> str:
    '''
    Drop leading zeros from every byte of a MAC string::

        02:03:04:05:06:07 -> 2:3:4:5:6:7
    '''
    return ':'.join('%x' % int(x, 16) for x in addr.split(':'))


# ARPHRD_TUNNEL, ARPHRD_SIT, ARPHRD_IPGRE
IP4_TUNNELS = (768, 776, 778)
# ARPHRD_TUNNEL6, ARPHRD_IP6GRE
IP6_TUNNELS = (769, 823)
