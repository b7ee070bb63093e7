"""Assets can be filtered through one or multiple filters, modifying their
contents (think minification, compression).
"""

import os
import errno
import inspect
import logging
import subprocess
import warnings
from collections.abc import Mapping
from importlib import import_module
from io import BytesIO

from minassets.exceptions import (
    ConfigurationError, ExecutionError, FilterError, ToolNotFoundError)
from minassets.utils import smartsplit, parse_bool, tempfile_on_demand


__all__ = ('Filter', 'ExternalTool', 'NodeMixin', 'FilterConfig', 'option',
           'get_filter', 'register_filter',)


log = logging.getLogger(__name__)


def freeze(obj):
    """Recursively iterate over ``obj``, supporting dicts, tuples
    and lists, and freeze them such that ``obj`` can be used with
    hash().
    """
    if isinstance(obj, (list, tuple)):
        return tuple([freeze(sub) for sub in obj])
    if isinstance(obj, Mapping):
        return frozenset((k, freeze(v)) for k, v in obj.items())
    return obj


class option(tuple):
    """Micro option system. I want this to remain small and simple,
    which is why this class is lower-case.

    See ``parse_options()`` and ``Filter.options``.
    """
    def __new__(cls, configvar, type=None, default=None):
        return tuple.__new__(cls, (configvar, type, default))


def parse_options(options):
    """Parses the filter ``options`` dict attribute.
    The result is a dict of ``option`` tuples.
    """
    # Normalize different ways to specify the dict items:
    #    attribute: option()
    #    attribute: ('config variable', type, default)
    #    attribute: 'config variable'
    result = {}
    for internal, external in options.items():
        if not isinstance(external, option):
            if not isinstance(external, (list, tuple)):
                external = (external,)
            external = option(*external)
        result[internal] = external
    return result


class FilterConfig(Mapping):
    """The options of a filter instance, resolved once when the filter
    is created. Values can be read as attributes or items, but not
    changed; use :meth:`replace` to derive a modified copy.
    """

    __slots__ = ('_values',)

    def __init__(self, values=None, **kwargs):
        values = dict(values or {})
        values.update(kwargs)
        object.__setattr__(self, '_values', values)

    def __getattr__(self, name):
        if name.startswith('_'):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        raise AttributeError('%s is immutable' % self.__class__.__name__)

    def __delattr__(self, name):
        raise AttributeError('%s is immutable' % self.__class__.__name__)

    def __getitem__(self, key):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __hash__(self):
        return hash(freeze(self._values))

    def __repr__(self):
        return '%s(%s)' % (self.__class__.__name__, ', '.join(
            '%s=%r' % item for item in sorted(self._values.items())))

    def replace(self, **changes):
        unknown = set(changes) - set(self._values)
        if unknown:
            raise TypeError('unknown option: %s' % sorted(unknown)[0])
        values = dict(self._values)
        values.update(changes)
        return self.__class__(values)


class Filter(object):
    """Base class for a filter.

    Subclasses should allow the creation of an instance without any
    arguments, i.e. no required arguments for __init__(), so that the
    filter can be specified by name only.

    All options are resolved when the filter is created, and are then
    available, read-only, as ``self.config``. For each option the value
    is taken from, in this order: a keyword argument, the ``settings``
    mapping, the OS environment, and finally the declared default.
    """

    # Name by which this filter can be referred to.
    name = None

    # Options the filter supports. Can look like this:
    #    options = {
    #        'binary': 'UGLIFYJS_BIN',
    #        'defines': option('UGLIFYJS_DEFINES', type=list),
    #        'mangle': option('UGLIFYJS_MANGLE', type=bool),
    #    }
    options = {}

    def __init__(self, settings=None, **kwargs):
        # Settings are case-insensitive.
        self.settings = dict(
            (key.lower(), value) for key, value in (settings or {}).items())
        self._options = parse_options(self.__class__.options)

        values = {}
        for attribute, (configvar, type, default) in self._options.items():
            if attribute in kwargs:
                value = kwargs.pop(attribute)
            elif configvar:
                value = self.get_config(setting=configvar, require=False,
                                        type=type)
            else:
                value = None
            values[attribute] = default if value is None else value
        if kwargs:
            raise TypeError('got an unexpected keyword argument: %s' %
                            list(kwargs.keys())[0])
        self.config = FilterConfig(values)

    def __repr__(self):
        return '<%s %r>' % (self.__class__.__name__, self.name)

    def __hash__(self):
        return self.id()

    def __eq__(self, other):
        if isinstance(other, Filter):
            return self.id() == other.id()
        return NotImplemented

    def get_config(self, setting=False, env=None, require=True,
                   what='dependency', type=None):
        """Helper function that subclasses can use if they have
        dependencies which they cannot automatically resolve, like
        an external binary.

        Using this function will give the user the ability to resolve
        these dependencies in a common way through either a setting,
        or an environment variable.

        You may specify different names for ``setting`` and ``env``.
        If only the former is given, the latter is considered to use
        the same name. If either argument is ``False``, the respective
        source is not used.

        By default, if the value is not found, an error is raised. If
        ``required`` is ``False``, then ``None`` is returned instead.

        ``what`` is a string that is used in the exception message;
        you can use it to give the user an idea what he is lacking,
        i.e. 'xyz filter binary'.

        If you are expecting a special type, you may set the ``type``
        argument and a string value will be parsed into that type.
        ``list`` and ``bool`` are supported.
        """
        assert type in (None, list, bool), "%s not supported for type" % type

        if env is None:
            env = setting

        assert setting or env

        value = None
        if not setting is False:
            value = self.settings.get(setting.lower(), None)

        if value is None and not env is False:
            value = os.environ.get(env)

        if value is None:
            if require:
                err_msg = '%s was not found. Define a ' % what
                options = []
                if setting:
                    options.append('%s setting' % setting)
                if env:
                    options.append('%s environment variable' % env)
                err_msg += ' or '.join(options)
                raise EnvironmentError(err_msg)
            return None
        return self._convert(value, type, setting or env)

    @staticmethod
    def _convert(value, type, name):
        if not isinstance(value, str):
            return value
        if type == list:
            return smartsplit(value, ',')
        if type == bool:
            result = parse_bool(value)
            if result is None:
                raise ConfigurationError(
                    '%s: expected a boolean, got %r' % (name, value))
            return result
        return value

    def unique(self):
        """This function is used to determine if two filter instances
        represent the same filter.

        By default all of the options take part; the result must be
        hashable.
        """
        return self.config

    def id(self):
        """Unique identifier for the filter instance.

        It should not depend on anything but the filter's options, and
        yield the same result across multiple python invocations.
        """
        return hash((self.name or self.__class__.__name__,
                     freeze(self.unique()),))

    def filter_load(self, asset):
        """Called when the asset is loaded. Most filters will want to
        do their work in :meth:`filter_dump` instead.
        """

    def filter_dump(self, asset):
        """Run the content of ``asset`` through :meth:`output`.

        The asset is only modified once the filter has run successfully;
        if an error is raised, the content stays as it was.
        """
        out = BytesIO()
        self.output(BytesIO(asset.content), out, asset=asset)
        asset.content = out.getvalue()

    def output(self, _in, out, **kw):
        """Implement your actual filter here.

        Reads the current content of the asset from ``_in`` and writes
        the new content to ``out``; both operate on bytes.
        """

    # We just declared this for demonstration purposes
    del output


class ExternalTool(Filter):
    """Subclass that helps creating filters that need to run an external
    program.

    Subclasses implement ``output()`` and call :meth:`subprocess` with
    the command line to run.
    """

    @classmethod
    def subprocess(cls, argv, out, data=None, env=None, cwd=None):
        """Execute the commandline given by the list in ``argv``.

        If a bytestring is given via ``data``, it is piped into the
        process.

        ``argv`` may contain two placeholders:

        ``{input}``
            If given, ``data`` will be written to a temporary file instead
            of being piped. The placeholder is replaced with that file,
            which is deleted again as soon as the process exits.

        ``{output}``
            Will be replaced by a temporary filename which does not exist
            yet. The program is expected to create it; its content is
            then written to ``out`` rather than stdout.

        Raises :class:`ToolNotFoundError` if the program cannot be found
        (including the shell convention of exit code 127), and
        :class:`ExecutionError` for any other failure.
        """
        name = cls.name or cls.__name__.lower()
        input_file = tempfile_on_demand('%s_in' % name)
        output_file = tempfile_on_demand('%s_out' % name, create=False)

        def substitute(item):
            # Only touching the placeholders creates the files.
            if '{input}' in item:
                item = item.replace('{input}', str(input_file))
            if '{output}' in item:
                item = item.replace('{output}', str(output_file))
            return item
        argv = [substitute(item) for item in argv]

        try:
            data = (data.read() if hasattr(data, 'read') else data)
            if isinstance(data, str):
                data = data.encode('utf-8')
            original = data

            if input_file.created:
                if data is None:
                    raise ValueError(
                        '{input} placeholder given, but no data passed')
                with open(input_file.filename, 'wb') as f:
                    f.write(data)
                # No longer pass to stdin
                data = None

            log.debug('%s: running %s', name, subprocess.list2cmdline(argv))
            try:
                try:
                    proc = subprocess.Popen(
                        argv,
                        stdout=subprocess.PIPE,
                        stdin=subprocess.PIPE,
                        stderr=subprocess.PIPE,
                        env=env,
                        cwd=cwd)
                except OSError as e:
                    if e.errno == errno.ENOENT:
                        raise ToolNotFoundError(
                            '%s: program file not found: %s' % (name, argv[0]))
                    raise FilterError(
                        '%s: unable to run %s: %s' % (name, argv[0], e))
                stdout, stderr = proc.communicate(data)
            finally:
                input_file.remove()
            log.debug('%s: exited with %s', name, proc.returncode)

            if proc.returncode == 127:
                raise ToolNotFoundError(
                    '%s: path to %s could not be resolved' % (name, argv[0]))
            if proc.returncode:
                raise ExecutionError.from_process(
                    name, proc.returncode, stdout, stderr, input=original)

            if output_file.created:
                if not output_file.exists():
                    raise ExecutionError(
                        '%s: output file was not produced: %s' % (
                            name, output_file.filename),
                        returncode=proc.returncode, stdout=stdout,
                        stderr=stderr, input=original)
                with open(output_file.filename, 'rb') as f:
                    out.write(f.read())
            else:
                out.write(stdout)
        finally:
            input_file.remove()
            output_file.remove()


class NodeMixin(object):
    """Mixin for filters which run a NodeJS program.

    Expects the ``node_binary`` and ``node_paths`` options.
    """

    def node_argv(self, binary):
        # Without an explicit interpreter, the program is run directly
        # and has to find node by itself.
        if self.config.node_binary:
            return [self.config.node_binary, binary]
        return [binary]

    def node_environ(self):
        if not self.config.node_paths:
            return None
        env = os.environ.copy()
        env['NODE_PATH'] = os.pathsep.join(self.config.node_paths)
        return env


_FILTERS = {}

def register_filter(f):
    """Add the given filter to the list of know filters.
    """
    if not inspect.isclass(f) or not issubclass(f, Filter):
        raise ValueError("Must be a subclass of 'Filter'")
    if not f.name:
        raise ValueError('Must have a name')
    if f.name in _FILTERS:
        raise KeyError('Filter with name %s already registered' % f.name)
    _FILTERS[f.name] = f


def get_filter(f, *args, **kwargs):
    """Resolves ``f`` to a filter instance.

    Different ways of specifying a filter are supported, for example by
    giving the class, or a filter name.

    *args and **kwargs are passed along to the filter when it's
    instantiated.
    """
    if isinstance(f, Filter):
        # Don't need to do anything.
        assert not args and not kwargs
        return f
    elif isinstance(f, str):
        if f in _FILTERS:
            klass = _FILTERS[f]
        else:
            raise ValueError('No filter \'%s\'' % f)
    elif inspect.isclass(f) and issubclass(f, Filter):
        klass = f
    else:
        raise ValueError('Unable to resolve to a filter: %s' % f)

    return klass(*args, **kwargs)


def load_builtin_filters():
    from os import path

    current_dir = path.dirname(__file__)
    for entry in sorted(os.listdir(current_dir)):
        if entry.endswith('.py'):
            name = path.splitext(entry)[0]
        elif path.exists(path.join(current_dir, entry, '__init__.py')):
            name = entry
        else:
            continue
        if name == '__init__':
            continue

        module_name = 'minassets.filter.%s' % name
        try:
            module = import_module(module_name)
        except Exception as e:
            warnings.warn('Error while loading builtin filter '
                          'module \'%s\': %s' % (module_name, e))
        else:
            for attr_name in dir(module):
                attr = getattr(module, attr_name)
                if inspect.isclass(attr) and issubclass(attr, Filter):
                    if not attr.name:
                        # Skip if filter has no name; those are
                        # considered abstract base classes.
                        continue
                    if attr.name in _FILTERS:
                        continue
                    register_filter(attr)
load_builtin_filters()
