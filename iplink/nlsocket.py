'''
Base netlink socket
===================

A synchronous AF_NETLINK datagram socket. It sends one request
at a time and yields the parsed response messages in the order
the kernel delivers them::

    from pyroute2.netlink import NETLINK_ROUTE, NLM_F_DUMP, NLM_F_REQUEST
    from iplink.nlsocket import NetlinkSocket

    with NetlinkSocket(NETLINK_ROUTE) as nl:
        nl.bind()
        for msg in nl.nlm_request(msg, msg_type, NLM_F_REQUEST | NLM_F_DUMP):
            ...

The messages are pyroute2 `nlmsg` objects. The socket does no
retries and keeps no background threads. Any error the kernel
reports is raised as `NetlinkError`, a dump that the kernel
marks as interrupted raises `NetlinkDumpInterrupted`.

For testing, any object with `bind()`, `sendto()`, `recv()` and
`close()` can be passed as `use_socket`.
'''

import itertools
import logging
import socket
import struct
from socket import SO_RCVBUF, SO_SNDBUF, SOCK_DGRAM, SOL_SOCKET
from typing import Generator

from pyroute2.netlink import (
    NETLINK_ROUTE,
    NLM_F_DUMP,
    NLM_F_REQUEST,
    NLMSG_DONE,
    NLMSG_ERROR,
    mtypes,
    nlmsg,
    nlmsgerr,
)
from pyroute2.netlink.exceptions import (
    NetlinkDecodeError,
    NetlinkDumpInterrupted,
    NetlinkError,
    NetlinkHeaderDecodeError,
)

from iplink import config

log = logging.getLogger(__name__)

# the dump was inconsistent due to a sequence change
NLM_F_DUMP_INTR = 0x10


class Marshal:
    '''
    Split a netlink buffer into messages and decode them with
    the classes from `msg_map`, by the message type.
    '''

    msg_map: dict = {}
    default_message_class = nlmsg
    error_type = NLMSG_ERROR

    def __init__(self):
        self.msg_map = self.msg_map.copy()

    def parse_one_message(self, key, data, offset):
        error = None
        if key == self.error_type:
            msg = nlmsgerr(data, offset=offset)
        else:
            msg_class = self.msg_map.get(key, self.default_message_class)
            msg = msg_class(data, offset=offset)

        try:
            msg.decode()
        except NetlinkHeaderDecodeError:
            raise
        except NetlinkDecodeError as e:
            msg['header']['error'] = e
            return msg

        if isinstance(msg, nlmsgerr) and msg['error'] != 0:
            error = NetlinkError(abs(msg['error']))

        msg['header']['error'] = error
        return msg

    def parse(self, data: bytes) -> Generator[nlmsg, None, None]:
        '''
        Parse the buffer and yield messages one by one, in the
        order they are placed in the buffer.

        The buffer must contain only complete messages; a message
        that claims to be longer than the rest of the buffer
        raises `NetlinkHeaderDecodeError`.
        '''
        offset = 0
        # there must be at least one header in the buffer,
        # 'IHHII' == 16 bytes
        while offset <= len(data) - 16:
            # pick type and length
            (length, key) = struct.unpack_from('IH', data, offset)
            if not 16 <= length <= len(data) - offset:
                raise NetlinkHeaderDecodeError(
                    ValueError(
                        'truncated message: length %i, %i bytes left'
                        % (length, len(data) - offset)
                    )
                )
            msg = self.parse_one_message(key, data, offset)
            offset += (length + 4 - 1) & ~(4 - 1)

            mtype = msg['header'].get('type', None)
            if mtype in mtypes and 'event' not in msg:
                msg['event'] = mtypes[mtype]
            yield msg

    def is_enough(self, msg):
        return msg['header']['type'] == NLMSG_DONE


class NetlinkSocket:
    '''
    Netlink socket
    '''

    marshal_class = Marshal

    def __init__(
        self,
        family=NETLINK_ROUTE,
        sndbuf=None,
        rcvbuf=None,
        rcvsize=None,
        use_socket=None,
    ):
        self.family = family
        self.rcvsize = rcvsize or config.rcvsize
        self.marshal = self.marshal_class()
        self.seq = itertools.count(1)
        self.pid = 0
        if use_socket is not None:
            self.socket = use_socket
        else:
            self.socket = socket.socket(
                config.AF_NETLINK, SOCK_DGRAM, self.family
            )
            self.socket.setsockopt(
                SOL_SOCKET, SO_SNDBUF, sndbuf or config.sndbuf
            )
            self.socket.setsockopt(
                SOL_SOCKET, SO_RCVBUF, rcvbuf or config.rcvbuf
            )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def bind(self, groups=0, pid=0):
        '''
        Bind the socket. With pid == 0 the kernel assigns
        the port id.
        '''
        self.socket.bind((pid, groups))
        self.pid = pid
        log.debug('bound netlink socket family %s', self.family)

    def close(self):
        self.socket.close()

    def sendto(self, data):
        # (pid, groups) == (0, 0) is the kernel
        return self.socket.sendto(data, (0, 0))

    def recv_messages(self) -> Generator[nlmsg, None, None]:
        data = self.socket.recv(self.rcvsize)
        yield from self.marshal.parse(data)

    def nlm_request(
        self, msg, msg_type, msg_flags=NLM_F_REQUEST | NLM_F_DUMP
    ) -> Generator[nlmsg, None, None]:
        '''
        Send the request and yield response messages.

        For dump requests the generator runs until NLMSG_DONE,
        otherwise it stops after the first response message.
        '''
        msg_seq = next(self.seq)
        msg['header']['type'] = msg_type
        msg['header']['flags'] = msg_flags
        msg['header']['sequence_number'] = msg_seq
        msg['header']['pid'] = self.pid
        msg.encode()
        log.debug('request seq %i type %i', msg_seq, msg_type)
        self.sendto(msg.data)

        dump = (msg_flags & NLM_F_DUMP) == NLM_F_DUMP
        while True:
            for response in self.recv_messages():
                header = response['header']
                if header['sequence_number'] != msg_seq:
                    log.debug(
                        'skip seq %i, waiting for %i',
                        header['sequence_number'],
                        msg_seq,
                    )
                    continue
                if header['error'] is not None:
                    raise header['error']
                if header['flags'] & NLM_F_DUMP_INTR:
                    raise NetlinkDumpInterrupted()
                if self.marshal.is_enough(response):
                    log.debug('response seq %i done', msg_seq)
                    return
                if header['type'] < NLMSG_DONE:
                    # NOOP and ACK
                    continue
                yield response
                if not dump:
                    return
