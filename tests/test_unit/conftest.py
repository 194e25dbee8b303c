import pytest

from iplink import config


@pytest.fixture
def netns_dir(tmp_path, monkeypatch):
    '''
    An empty netns run directory instead of /var/run/netns
    '''
    nsdir = tmp_path / 'netns'
    nsdir.mkdir()
    monkeypatch.setattr(config, 'netns_path', [str(nsdir)])
    yield nsdir


@pytest.fixture
def rt_dirs(tmp_path, monkeypatch):
    '''
    Empty iproute2 map directories instead of /etc/iproute2
    and /usr/share/iproute2
    '''
    etc = tmp_path / 'etc'
    usr = tmp_path / 'usr'
    etc.mkdir()
    usr.mkdir()
    monkeypatch.setattr(config, 'rt_dirs', [str(etc), str(usr)])
    yield etc, usr
