'''
Output formats
==============

The same set of records can be rendered as:

* `render_text()` -- `ip link show` text, optionally colored
* `render_json()` -- `ip -j link show` compact JSON
* `render_yaml()` -- the same structure as YAML

Every function accepts one record or a list of records. The
JSON and YAML structure is built by `record_to_dict()` and
follows the iproute2 key names and order; `None` values and
empty strings are omitted.

.. code::

    from iplink import IPLink, render_text

    with IPLink() as ipl:
        print(render_text(ipl.show(details=True), color=True))
'''

import json
from typing import Any, Iterable, Union

import yaml

from iplink.link.record import LinkRecord, Resolved

COLOR_IFNAME = '\x1b[36m'
COLOR_MAC = '\x1b[33m'
COLOR_UP = '\x1b[32m'
COLOR_DOWN = '\x1b[31m'
COLOR_RESET = '\x1b[0m'

state_colors = {'UP': COLOR_UP, 'DOWN': COLOR_DOWN}


def _records(records: Union[LinkRecord, Iterable[LinkRecord]]):
    if isinstance(records, LinkRecord):
        return [records]
    return list(records)


def ref_name(ref) -> str:
    # iproute2 ll_index_to_name() falls back to if%d
    if isinstance(ref, Resolved):
        return ref.name
    return 'if%i' % ref.index


class Painter:
    def __init__(self, color=False):
        self.color = color

    def __call__(self, text, code):
        if self.color:
            return '%s%s%s' % (code, text, COLOR_RESET)
        return text


def details_text(details) -> str:
    ret = ' promiscuity %i allmulti %i minmtu %i maxmtu %i ' % (
        details.promiscuity,
        details.allmulti,
        details.min_mtu,
        details.max_mtu,
    )
    if details.linkinfo is not None:
        ret += details.linkinfo.text()
    if details.inet6_addr_gen_mode:
        ret += 'addrgenmode %s ' % details.inet6_addr_gen_mode
    ret += (
        'numtxqueues %i numrxqueues %i '
        'gso_max_size %i gso_max_segs %i '
        'tso_max_size %i tso_max_segs %i '
        'gro_max_size %i '
        'gso_ipv4_max_size %i gro_ipv4_max_size %i '
    ) % (
        details.num_tx_queues,
        details.num_rx_queues,
        details.gso_max_size,
        details.gso_max_segs,
        details.tso_max_size,
        details.tso_max_segs,
        details.gro_max_size,
        details.gso_ipv4_max_size,
        details.gro_ipv4_max_size,
    )
    if details.parentbus:
        ret += 'parentbus %s ' % details.parentbus
    if details.parentdev:
        ret += 'parentdev %s ' % details.parentdev
    return ret


def record_text(record: LinkRecord, color: bool = False) -> str:
    paint = Painter(color)
    name = record.ifname
    if record.link is not None:
        name += '@%s' % ref_name(record.link)
    ret = '%i: %s<%s> mtu %i' % (
        record.ifindex,
        paint('%s: ' % name, COLOR_IFNAME),
        ','.join(record.flags),
        record.mtu,
    )
    if record.qdisc:
        ret += ' qdisc %s' % record.qdisc
    if record.controller is not None:
        ret += ' master %s' % ref_name(record.controller)
    state = '%s ' % record.operstate
    if record.operstate in state_colors:
        state = paint(state, state_colors[record.operstate])
    ret += ' state %smode %s group %s ' % (
        state,
        record.linkmode,
        record.group,
    )
    if record.txqlen:
        ret += 'qlen %i' % record.txqlen

    ret += '\n    link/%s ' % record.link_type
    if record.address:
        ret += paint(record.address, COLOR_MAC)
    if record.broadcast:
        ret += ' peer ' if record.pointtopoint else ' brd '
        ret += paint(record.broadcast, COLOR_MAC)
    if record.permaddr:
        ret += ' permaddr %s' % paint(record.permaddr, COLOR_MAC)
    if isinstance(record.netns, Resolved):
        ret += ' link-netns %s' % record.netns.name
    elif record.netns is not None:
        ret += ' link-netnsid %i' % record.netns.index

    if record.details is not None:
        ret += details_text(record.details)
    for altname in record.altnames:
        ret += '\n    altname %s' % altname
    return ret


def render_text(records, color: bool = False) -> str:
    return '\n'.join(record_text(x, color) for x in _records(records))


def record_to_dict(record: LinkRecord) -> dict[str, Any]:
    '''
    Represent the record as a dict, the way `ip -j` does
    '''
    ret = {'ifindex': record.ifindex, 'ifname': record.ifname}
    if isinstance(record.link, Resolved):
        ret['link'] = record.link.name
    elif record.link is not None:
        ret['link_index'] = record.link.index
    ret['flags'] = record.flags
    ret['mtu'] = record.mtu
    ret['qdisc'] = record.qdisc
    if record.controller is not None:
        ret['master'] = ref_name(record.controller)
    ret.update(
        {
            'operstate': record.operstate,
            'linkmode': record.linkmode,
            'group': record.group,
            'txqlen': record.txqlen,
            'link_type': record.link_type,
            'address': record.address,
            'broadcast': record.broadcast,
            'permaddr': record.permaddr,
        }
    )
    if isinstance(record.netns, Resolved):
        ret['link_netns'] = record.netns.name
    elif record.netns is not None:
        ret['link_netnsid'] = record.netns.index

    details = record.details
    if details is not None:
        ret.update(
            {
                'promiscuity': details.promiscuity,
                'allmulti': details.allmulti,
                'min_mtu': details.min_mtu,
                'max_mtu': details.max_mtu,
            }
        )
        if details.linkinfo is not None:
            ret['linkinfo'] = details.linkinfo.dump()
        ret.update(
            {
                'inet6_addr_gen_mode': details.inet6_addr_gen_mode,
                'num_tx_queues': details.num_tx_queues,
                'num_rx_queues': details.num_rx_queues,
                'gso_max_size': details.gso_max_size,
                'gso_max_segs': details.gso_max_segs,
                'tso_max_size': details.tso_max_size,
                'tso_max_segs': details.tso_max_segs,
                'gro_max_size': details.gro_max_size,
                'gso_ipv4_max_size': details.gso_ipv4_max_size,
                'gro_ipv4_max_size': details.gro_ipv4_max_size,
                'parentbus': details.parentbus,
                'parentdev': details.parentdev,
            }
        )
    if record.altnames:
        ret['altnames'] = record.altnames
    return {k: v for k, v in ret.items() if v is not None and v != ''}


def render_json(records) -> str:
    return json.dumps(
        [record_to_dict(x) for x in _records(records)], separators=(',', ':')
    )


def render_yaml(records) -> str:
    return yaml.safe_dump(
        [record_to_dict(x) for x in _records(records)],
        sort_keys=False,
        default_flow_style=False,
    )
