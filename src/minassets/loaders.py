"""Loaders are helper classes which read configuration or templates
from a source, like a configuration file.

This can be used as an alternative to an imperative setup.
"""

import os
import glob, fnmatch
import logging
try:
    import yaml
except ImportError:
    pass

from minassets.exceptions import LoaderError


__all__ = ('LoaderError', 'YAMLLoader', 'GlobLoader',)


log = logging.getLogger(__name__)


class YAMLLoader(object):
    """Will load filter settings from a YAML configuration file.

    The document is expected to be a mapping of setting names to values,
    for example::

        UGLIFYJS_BIN: /opt/node/bin/uglifyjs
        UGLIFYJS_DEFINES:
            - DEBUG=false
    """

    def __init__(self, file_or_filename):
        try:
            yaml
        except NameError:
            raise EnvironmentError('PyYAML is not installed')
        else:
            self.yaml = yaml
        self.file_or_filename = file_or_filename

    def _open(self):
        """Returns a (fileobj, filename) tuple.

        The filename can be False if it is unknown.
        """
        if isinstance(self.file_or_filename, str):
            return open(self.file_or_filename), self.file_or_filename

        file = self.file_or_filename
        return file, getattr(file, 'name', False)

    def load_settings(self):
        """Load a dict of settings, suitable to be passed to a filter.
        """
        f, filename = self._open()
        try:
            obj = self.yaml.safe_load(f) or {}
        finally:
            if filename and isinstance(self.file_or_filename, str):
                f.close()

        if not isinstance(obj, dict):
            raise LoaderError('%s: expected a mapping of settings, got %s' % (
                filename or 'YAML document', type(obj).__name__))
        return obj


def recursive_glob(treeroot, pattern):
    """
    From:
    http://stackoverflow.com/questions/2186525/2186639#2186639
    """
    results = []
    for base, dirs, files in os.walk(treeroot):
        goodfiles = fnmatch.filter(files, pattern)
        results.extend(os.path.join(base, f) for f in goodfiles)
    return sorted(results)


class GlobLoader(object):
    """Base class with some helpers for loaders which need to search
    for files.
    """

    def glob_files(self, f, recursive=False):
        if isinstance(f, tuple):
            if recursive:
                return iter(recursive_glob(f[0], f[1]))
            return iter(sorted(glob.glob(os.path.join(f[0], f[1]))))
        else:
            return iter(sorted(glob.glob(f)))

    def with_file(self, filename, then_run):
        """Call ``then_run`` with the file contents.
        """
        with open(filename, 'rb') as file:
            contents = file.read()
        try:
            return then_run(filename, contents)
        except LoaderError as e:
            # We can't handle this file.
            log.warning('Skipping %s: %s', filename, e)
