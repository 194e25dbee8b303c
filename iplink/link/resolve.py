'''
Resolve the link references
===========================

The link dump refers to other links by the interface index
and to other network namespaces by nsid. `resolve()` replaces
those references with names, where it can:

1. `controller` and `link` are looked up in the same set of
   records by ifindex. The link of a record that lives in
   another network namespace (has `netns`) is not looked up:
   its index belongs to that namespace.
2. `netns` is looked up in the nsid -> name map, returned by
   the `nsid_lookup` callable. The callable is called at most
   once, and only if there is something to look up.

References that can not be resolved keep the numeric form.
'''

import logging
from typing import Callable, Iterable, Mapping, Optional

from iplink.link.record import LinkRecord, Resolved, Unresolved

log = logging.getLogger(__name__)


def resolve(
    records: Iterable[LinkRecord],
    nsid_lookup: Optional[Callable[[], Mapping[int, str]]] = None,
) -> None:
    '''
    Resolve the references in place
    '''
    records = list(records)
    names = {x.ifindex: x.ifname for x in records}

    for record in records:
        if isinstance(record.controller, Unresolved):
            if record.controller.index in names:
                record.controller = Resolved(names[record.controller.index])
            else:
                log.debug(
                    '%s: master %i not found',
                    record.ifname,
                    record.controller.index,
                )
        if isinstance(record.link, Unresolved) and record.netns is None:
            if record.link.index in names:
                record.link = Resolved(names[record.link.index])
            else:
                log.debug(
                    '%s: link %i not found', record.ifname, record.link.index
                )

    pending = [x for x in records if isinstance(x.netns, Unresolved)]
    if not pending or nsid_lookup is None:
        return
    nsids = nsid_lookup()
    for record in pending:
        if record.netns.index in nsids:
            record.netns = Resolved(nsids[record.netns.index])
        else:
            log.debug(
                '%s: netnsid %i not found', record.ifname, record.netns.index
            )
