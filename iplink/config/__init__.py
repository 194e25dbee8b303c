import socket

AF_NETLINK = getattr(socket, 'AF_NETLINK', 16)

# socket buffers
sndbuf = 32768
rcvbuf = 1048576
rcvsize = 65536

# netns run directories; the first one is used by iproute2
# for `ip netns add` and is scanned when resolving nsid
netns_path = ['/var/run/netns']

# iproute2 map files (group, rt_tables, ...); like iproute2,
# stop at the first directory that holds the file
rt_dirs = ['/etc/iproute2', '/usr/share/iproute2']
