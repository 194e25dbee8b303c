'''
Raw NLA payloads
================

pyroute2 decodes the attribute values with its NLA maps, and
the maps differ between pyroute2 releases: new attributes get
names, some atoms change their value format. The values that
`ip link show` formats in its own way are read here from the
raw payload of the slot instead:

* strings -- NUL terminated UTF-8, checked
* link layer addresses and bridge ids
* the attributes of `iplink.link.extension`, looked up by code

The functions take the slots of a decoded message, the same
as they are in `msg['attrs']`::

    for slot in msg['attrs']:
        if slot[0] == 'IFLA_IFNAME':
            ifname = nla.string(slot)

Malformed payloads raise `NetlinkNLADecodeError`.
'''

import struct

from pyroute2.netlink import NLA_F_NESTED, NLA_F_NET_BYTEORDER
from pyroute2.netlink.exceptions import NetlinkNLADecodeError

NLA_TYPE_MASK = ~(NLA_F_NESTED | NLA_F_NET_BYTEORDER) & 0xFFFF


def header(slot) -> tuple[int, int]:
    '''
    Return (length, code) of the slot; the flag bits of the
    code are masked out.
    '''
    attr = slot.cell[1]
    try:
        length, code = struct.unpack_from('HH', attr.data, attr.offset)
    except struct.error as e:
        raise NetlinkNLADecodeError(e)
    code &= NLA_TYPE_MASK
    if length < 4 or attr.offset + length > len(attr.data):
        raise NetlinkNLADecodeError(
            ValueError('NLA %i: bad length %i' % (code, length))
        )
    return length, code


def code(slot) -> int:
    return header(slot)[1]


def payload(slot) -> bytes:
    attr = slot.cell[1]
    length = header(slot)[0]
    return bytes(attr.data[attr.offset + 4 : attr.offset + length])


def _unpack(fmt: str, data: bytes) -> int:
    try:
        return struct.unpack_from(fmt, data)[0]
    except struct.error as e:
        raise NetlinkNLADecodeError(e)


def decode_u8(data: bytes) -> int:
    return _unpack('B', data)


def decode_u16(data: bytes) -> int:
    return _unpack('=H', data)


def decode_u32(data: bytes) -> int:
    return _unpack('=I', data)


def decode_s32(data: bytes) -> int:
    return _unpack('=i', data)


def decode_string(data: bytes) -> str:
    # exactly one NUL, at the end
    if not data or data.find(b'\0') != len(data) - 1:
        raise NetlinkNLADecodeError(
            ValueError('string attribute is not NUL terminated')
        )
    try:
        return data[:-1].decode('utf-8')
    except UnicodeDecodeError as e:
        raise NetlinkNLADecodeError(e)


def string(slot) -> str:
    return decode_string(payload(slot))
