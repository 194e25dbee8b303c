#!/usr/bin/env python
from setuptools import setup

# do not import the package: it needs the install_requires
release = {}
with open('iplink/config/version.py', 'r') as version:
    exec(version.read(), release)

with open('README.md', 'r') as readme:
    long_description = readme.read()


setup(
    name='iplink',
    version=release['__version__'],
    description='ip link show: netlink link dump in Python',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='dual license GPLv2+ and Apache v2',
    packages=[
        'iplink',
        'iplink.config',
        'iplink.link',
    ],
    python_requires='>=3.9',
    install_requires=['pyroute2>=0.7.10', 'PyYAML'],
    extras_require={'test': ['pytest', 'pytest-timeout']},
    entry_points={'console_scripts': ['iplink = iplink.cli:run']},
    classifiers=[
        'License :: OSI Approved :: GNU General Public '
        + 'License v2 or later (GPLv2+)',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python',
        'Topic :: System :: Networking',
        'Topic :: System :: Systems Administration',
        'Operating System :: POSIX :: Linux',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'Programming Language :: Python :: 3',
        'Development Status :: 4 - Beta',
    ],
)
