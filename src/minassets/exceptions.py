__all__ = ('AssetError', 'ConfigurationError', 'FilterError',
           'ToolNotFoundError', 'ExecutionError', 'LoaderError',)


class AssetError(Exception):
    pass


class ConfigurationError(AssetError):
    pass


class LoaderError(AssetError):
    """Loaders should raise this when they can't deal with a given file.
    """


class FilterError(AssetError):
    pass


class ToolNotFoundError(FilterError):
    """The external program, or the interpreter it runs under, could
    not be found.
    """


class ExecutionError(FilterError):
    """An external program ran, but did not produce a result.

    Carries whatever the process printed, as well as the content that
    was given to it, so that the failure can be reported properly.
    """

    def __init__(self, message, returncode=None, stdout=None, stderr=None,
                 input=None):
        super(ExecutionError, self).__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.input = input

    @classmethod
    def from_process(cls, name, returncode, stdout, stderr, input=None):
        message = '%s: subprocess returned a non-success result code: ' \
                  '%s, stdout=%s, stderr=%s' % (
                      name, returncode,
                      _decode(stdout).strip(), _decode(stderr).strip())
        return cls(message, returncode=returncode, stdout=stdout,
                   stderr=stderr, input=input)


def _decode(value):
    if value is None:
        return ''
    if isinstance(value, bytes):
        return value.decode('utf-8', 'replace')
    return value
