import os
import shlex
import tempfile


__all__ = ('smartsplit', 'parse_bool', 'tempfile_on_demand')


def smartsplit(string, sep=','):
    """Split while allowing escaping.

    So far, this seems to do what I expect - split at the separator,
    allow escaping via \\, and allow the backslash itself to be escaped.

    One problem is that it can raise a ValueError when given a backslash
    without a character to escape.
    """
    assert string is not None   # or shlex will read from stdin
    l = shlex.shlex(string, posix=True)
    l.whitespace += sep
    l.whitespace_split = True
    l.quotes = ''
    return list(l)


_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off')


def parse_bool(value):
    """Parse a boolean as it would be written in an environment variable.

    Returns ``None`` for values that mean neither.
    """
    if isinstance(value, bool):
        return value
    value = value.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return None


class tempfile_on_demand(object):
    """A temporary filename that is only allocated once somebody asks
    for it, e.g. by formatting it into a command line.

    With ``create=False`` the name is reserved, but the file itself does
    not exist until somebody else writes it.
    """

    def __init__(self, prefix='tmp', create=True):
        self.prefix = prefix
        self.create = create

    def __repr__(self):
        if not hasattr(self, 'filename'):
            fd, self.filename = tempfile.mkstemp(prefix=self.prefix)
            os.close(fd)
            if not self.create:
                os.unlink(self.filename)
        return self.filename

    @property
    def created(self):
        return hasattr(self, 'filename')

    def exists(self):
        return self.created and os.path.exists(self.filename)

    def remove(self):
        if self.exists():
            os.unlink(self.filename)
