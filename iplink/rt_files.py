"""Rt files parser

iproute2 got lot of "map" files, like `group` or `rt_tables`, that
translate numeric ids to names. `ip link show` uses the `group`
file to print the link group name::

    >>> RtGroupFile(directories=[]).id2name
    {}

The files are looked up in `config.rt_dirs`; the main file and
then `*.conf` from the `.d` directory next to it are loaded.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from iplink import config


@dataclass
class IPRouteRtFile:
    filename: str

    id2name: dict[int, str] = field(default_factory=dict)
    directories: Optional[list[Path]] = None

    def __post_init__(self):
        if self.directories is None:
            self.directories = [Path(x) for x in config.rt_dirs]
        self.load_files()

    def _iter_files(self, filepath: Path) -> Iterator[Path]:
        d_folder = Path(f'{filepath}.d')
        if filepath.exists():
            yield filepath
        if d_folder.exists():
            yield from sorted(
                p for p in d_folder.iterdir() if p.suffix == '.conf'
            )

    def iter_files(self) -> Iterator[Path]:
        # like iproute2 stop at first directory with the files
        for folder in self.directories:
            found = False
            for filepath in self._iter_files(Path(folder) / self.filename):
                found = True
                yield filepath
            if found:
                return

    def load_files(self):
        self.id2name = {}

        for filename in self.iter_files():
            with filename.open(encoding='utf-8') as fp:
                for line in fp:
                    line = line.strip()
                    if not line or line[0] == '#':
                        continue
                    try:
                        rt_id_as_str, rt_name = line.split()[:2]
                        rt_id = int(rt_id_as_str, 0)
                    except ValueError:
                        # iproute2 skips malformed lines too
                        continue

                    if rt_id in self.id2name:
                        continue  # Accept only one rt_name by rt_id
                    self.id2name[rt_id] = rt_name


@dataclass
class RtGroupFile(IPRouteRtFile):
    filename: str = 'group'
