import os
import stat
import shutil
import tempfile
from contextlib import contextmanager


__all__ = ('TempDirHelper', 'os_environ_sandbox', 'POSIX')


POSIX = os.name == 'posix'


@contextmanager
def os_environ_sandbox():
    backup = os.environ.copy()
    try:
        yield
    finally:
        os.environ.clear()
        os.environ.update(backup)


class TempDirHelper(object):
    """Base-class for tests which provides a temporary directory
    (which is properly deleted after the test is done), and various
    helper methods to do filesystem operations within that directory.
    """

    default_files = {}

    def setup_method(self):
        self._tempdir_created = tempfile.mkdtemp()
        self.create_files(self.default_files)

    def teardown_method(self):
        shutil.rmtree(self._tempdir_created)

    @property
    def tempdir(self):
        # Use a read-only property here, so the user is
        # less likely to modify the attribute, and have
        # his data deleted on teardown.
        return self._tempdir_created

    def path(self, name):
        return os.path.join(self._tempdir_created, name)

    def create_files(self, files):
        """Helper that allows to quickly create a bunch of files in
        the media directory of the current test run.
        """
        for name, data in files.items():
            dirs = os.path.dirname(self.path(name))
            if not os.path.exists(dirs):
                os.makedirs(dirs)
            mode = 'wb' if isinstance(data, bytes) else 'w'
            with open(self.path(name), mode) as f:
                f.write(data)

    def create_tool(self, name, script):
        """Create an executable shell script ``name``, with ``script``
        as its body. Returns the full path.
        """
        self.create_files({name: '#!/bin/sh\n' + script})
        filename = self.path(name)
        os.chmod(filename, os.stat(filename).st_mode | stat.S_IXUSR)
        return filename

    def get(self, name):
        with open(self.path(name), 'rb') as f:
            return f.read()

    def exists(self, name):
        return os.path.exists(self.path(name))
