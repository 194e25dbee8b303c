'''
Link dump processing: records, references and output formats.
'''

from iplink.link.record import (
    ExtendedDetails,
    LinkRecord,
    Resolved,
    Unresolved,
    build_link,
)
from iplink.link.render import (
    record_to_dict,
    render_json,
    render_text,
    render_yaml,
)
from iplink.link.resolve import resolve

__all__ = [
    'ExtendedDetails',
    'LinkRecord',
    'Resolved',
    'Unresolved',
    'build_link',
    'record_to_dict',
    'render_json',
    'render_text',
    'render_yaml',
    'resolve',
]
