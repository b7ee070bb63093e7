from minassets.filter import ExternalTool, NodeMixin, option
from minassets.utils import parse_bool


__all__ = ('UglifyJS',)


class UglifyJS(NodeMixin, ExternalTool):
    """
    Minify Javascript using `UglifyJS <https://github.com/mishoo/UglifyJS/>`_.

    UglifyJS is an external tool written for NodeJS; this filter assumes
    the ``uglifyjs`` executable is at ``/usr/bin/uglifyjs``. Otherwise, you
    may define a ``UGLIFYJS_BIN`` setting. If the executable cannot start
    node by itself, point ``NODE_BIN`` at the node interpreter; it will
    then be used to run ``uglifyjs``. Additional module directories can be
    given with ``NODE_PATHS``.

    The remaining options map to ``uglifyjs`` command line flags:

    ``no_copyright``
        Also remove the first block of comments.
    ``comments``
        Keep comments; ``True`` keeps all of them, a string is passed
        through to ``--comments`` as is. Boolean words in a string
        (``true``, ``off``, ...) count as ``True``/``False``, so
        ``UGLIFYJS_COMMENTS=true`` keeps all comments.
    ``beautify``
        Output indented code.
    ``unsafe``
        Enable optimizations that are known to be unsafe in some
        situations.
    ``mangle``
        Left to the tool unless set to ``False``, which disables name
        mangling.
    ``defines``
        A list of ``NAME=VALUE`` strings, each passed via ``-d``.

    Additional options may be passed to ``uglifyjs`` using the setting
    ``UGLIFYJS_EXTRA_ARGS``, which expects a list of strings.
    """

    name = 'uglifyjs'
    options = {
        'binary': option('UGLIFYJS_BIN', default='/usr/bin/uglifyjs'),
        'node_binary': 'NODE_BIN',
        'node_paths': option('NODE_PATHS', type=list),
        'no_copyright': option('UGLIFYJS_NO_COPYRIGHT', type=bool),
        'comments': 'UGLIFYJS_COMMENTS',
        'beautify': option('UGLIFYJS_BEAUTIFY', type=bool),
        'unsafe': option('UGLIFYJS_UNSAFE', type=bool),
        'mangle': option('UGLIFYJS_MANGLE', type=bool),
        'defines': option('UGLIFYJS_DEFINES', type=list),
        'extra_args': option('UGLIFYJS_EXTRA_ARGS', type=list),
    }

    def argv(self):
        config = self.config
        args = self.node_argv(config.binary)

        if config.no_copyright:
            args.append('--no-copyright')
        comments = config.comments
        if isinstance(comments, str) and parse_bool(comments) is not None:
            comments = parse_bool(comments)
        if comments:
            args.extend(['--comments',
                         'all' if comments is True else comments])
        if config.beautify:
            args.append('--beautify')
        if config.unsafe:
            args.append('--unsafe')
        if config.mangle is False:
            args.append('--no-mangle')
        for define in config.defines or ():
            args.extend(['-d', define])
        if config.extra_args:
            args.extend(config.extra_args)

        # UglifyJS doesn't properly read data from stdin.
        args.extend(['-o', '{output}', '{input}'])
        return args

    def output(self, _in, out, **kw):
        self.subprocess(self.argv(), out, _in, env=self.node_environ())
