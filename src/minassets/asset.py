"""The unit of content a filter works on."""

import io


__all__ = ('Asset',)


class Asset(object):
    """A piece of content (a script, a stylesheet) on its way to being
    published at ``output``.

    ``content`` is always stored as bytes; text is encoded as UTF-8.
    Filters replace the content in place.
    """

    def __init__(self, content=b'', output=None, source_path=None):
        self.content = content
        self.output = output
        self.source_path = source_path

    def __repr__(self):
        return '<%s output=%s, source=%s, %d bytes>' % (
            self.__class__.__name__, self.output, self.source_path,
            len(self.content))

    def _get_content(self):
        return self._content
    def _set_content(self, value):
        if isinstance(value, str):
            value = value.encode('utf-8')
        self._content = bytes(value)
    content = property(_get_content, _set_content, doc="""
    The current content of the asset, as a byte string.
    """)

    @classmethod
    def from_file(cls, filename, output=None):
        with io.open(filename, 'rb') as f:
            return cls(f.read(), output=output, source_path=filename)

    def save(self, filename):
        with io.open(filename, 'wb') as f:
            f.write(self.content)
