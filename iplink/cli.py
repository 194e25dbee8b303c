import errno
import logging
import sys
from argparse import ArgumentDefaultsHelpFormatter, ArgumentParser
from typing import Optional

from pyroute2.netlink.exceptions import (
    NetlinkDecodeError,
    NetlinkDumpInterrupted,
    NetlinkError,
)

from iplink.config.version import __version__
from iplink.iproute import IPLink
from iplink.link.render import render_json, render_text, render_yaml

LOG = logging.getLogger(__name__)


def get_psr() -> ArgumentParser:
    psr = ArgumentParser(
        prog='iplink',
        description='Show network links, like `ip link show`.',
        formatter_class=ArgumentDefaultsHelpFormatter,
    )
    psr.add_argument(
        'args',
        nargs='*',
        metavar='[show] [dev] IFNAME',
        help='Show only the link with this name or altname.',
    )
    psr.add_argument(
        '-d',
        '--details',
        default=False,
        action='store_true',
        help='Show the link details.',
    )
    fmt = psr.add_mutually_exclusive_group()
    fmt.add_argument(
        '-j',
        '--json',
        default=False,
        action='store_true',
        help='Print JSON.',
    )
    fmt.add_argument(
        '-y',
        '--yaml',
        default=False,
        action='store_true',
        help='Print YAML.',
    )
    psr.add_argument(
        '-c',
        '--color',
        choices=('always', 'auto', 'never'),
        default='auto',
        help='Color the text output; auto: only on a terminal.',
    )
    psr.add_argument(
        '--debug',
        default=False,
        action='store_true',
        help='Log debug messages to stderr.',
    )
    psr.add_argument(
        '--version', action='version', version=f'%(prog)s {__version__}'
    )
    return psr


def parse_ifname(psr: ArgumentParser, args: list[str]) -> Optional[str]:
    '''Pick IFNAME out of `[show] [dev] [IFNAME]`.'''
    args = list(args)
    if args and args[0] == 'show':
        args.pop(0)
    if args and args[0] == 'dev':
        args.pop(0)
        if not args:
            psr.error('dev requires an interface name')
    if len(args) > 1:
        psr.error(f'unexpected arguments: {" ".join(args[1:])}')
    return args[0] if args else None


def use_color(mode: str) -> bool:
    if mode == 'auto':
        return sys.stdout.isatty()
    return mode == 'always'


def main(argv: Optional[list[str]] = None) -> int:
    psr = get_psr()
    args = psr.parse_args(argv)
    ifname = parse_ifname(psr, args.args)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    try:
        with IPLink() as ipl:
            records = ipl.show(ifname=ifname, details=args.details)
    except NetlinkError as err:
        print(f'Error: {err.args[1]}', file=sys.stderr)
        return err.code
    except NetlinkDumpInterrupted:
        print('Error: Dump was interrupted, try again.', file=sys.stderr)
        return errno.EINTR
    except NetlinkDecodeError as err:
        LOG.debug('decode error', exc_info=True)
        print(f'Error: failed to decode the link dump: {err}', file=sys.stderr)
        return 1
    except OSError as err:
        print(f'Error: {err}', file=sys.stderr)
        return err.errno or 1

    if args.json:
        print(render_json(records))
    elif args.yaml:
        print(render_yaml(records), end='')
    else:
        print(render_text(records, color=use_color(args.color)))
    return 0


def run():
    # for the setup.py entry point
    sys.exit(main())


if __name__ == '__main__':  # pragma: no cover
    run()
