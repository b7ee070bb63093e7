#!/usr/bin/env python
import os
from setuptools import setup, find_packages


# Figure out the version. This could also be done by importing the
# module, the parsing takes place for historical reasons.
import re
here = os.path.dirname(os.path.abspath(__file__))
version_re = re.compile(
    r'__version__ = (\(.*?\))')
fp = open(os.path.join(here, 'src/minassets', '__init__.py'))
version = None
for line in fp:
    match = version_re.search(line)
    if match:
        version = eval(match.group(1))
        break
else:
    raise Exception("Cannot find version in __init__.py")
fp.close()


setup(
    name='minassets',
    version=".".join(map(str, version)),
    description='Asset template tag for Jinja2 and an UglifyJS filter '
        'running the external minifier',
    long_description='Provides an {% assets %} tag for Jinja2 which '
        'exposes the url of a compiled asset to its body, and a filter '
        'which minifies Javascript by staging it in temporary files for '
        'the uglifyjs command line tool.',
    license='BSD',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Web Environment',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Internet :: WWW/HTTP',
        'Topic :: Software Development :: Libraries',
        ],
    python_requires='>=3.7',
    install_requires=['Jinja2>=3.0'],
    extras_require={
        'yaml': ['PyYAML'],
        'test': ['pytest', 'mock', 'PyYAML'],
    },
    entry_points="""[console_scripts]\nminassets = minassets.script:run\n""",
    packages=find_packages('src'),
    package_dir={'': 'src'},
)
