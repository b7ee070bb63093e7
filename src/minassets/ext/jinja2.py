import logging

import jinja2
from jinja2.ext import Extension
from jinja2 import nodes
from minassets.exceptions import ConfigurationError, LoaderError
from minassets.loaders import GlobLoader


__all__ = ('assets', 'AssetNode', 'AssetsExtension', 'Jinja2Loader',
           'ASSET_URL',)


log = logging.getLogger(__name__)


# The context variable that holds the url of the asset inside the tag.
ASSET_URL = 'asset_url'


class AssetNode(object):
    """The ``{% assets %}`` tag, as it comes out of the parser.

    The following attributes are required:

     * output: The asset output string
     * name:   A name of the asset

    ``debug`` defaults to ``False``; ``inputs`` and ``filters`` always
    come from the respective arguments. None of them except ``output``
    affect the generated code, they are kept for whoever builds the
    asset.
    """

    required_attributes = ('output', 'name')

    def __init__(self, body, inputs, filters, attributes=None, lineno=0,
                 tag=None):
        attrs = {'debug': False}
        attrs.update(attributes or {})
        attrs.update(inputs=list(inputs), filters=list(filters))

        missing = [a for a in self.required_attributes if a not in attrs]
        if missing:
            raise ConfigurationError(
                '%s requires the following attribute(s): %s' % (
                    self.__class__.__name__, ', '.join(missing)))

        self.body = list(body)
        self.attributes = attrs
        self.lineno = lineno
        self.tag = tag

    def __repr__(self):
        return '<%s name=%r output=%r>' % (
            self.__class__.__name__, self.name, self.output)

    def get_attribute(self, name):
        return self.attributes[name]

    output = property(lambda self: self.attributes['output'])
    name = property(lambda self: self.attributes['name'])
    debug = property(lambda self: self.attributes['debug'])
    inputs = property(lambda self: self.attributes['inputs'])
    filters = property(lambda self: self.attributes['filters'])

    def compile(self):
        """Return the Jinja2 nodes that render this tag.

        ``asset_url`` is assigned before the body runs, and goes away
        when it is done; outside the body, any value the enclosing
        template had for it is visible again.
        """
        node = nodes.With(
            [nodes.Name(ASSET_URL, 'store')],
            [self.asset_url_node()],
            self.body)
        node.set_lineno(self.lineno)
        return [node]

    def asset_url_node(self):
        lineno = self.body[0].lineno if self.body else self.lineno
        return nodes.Const(self.get_attribute('output'), lineno=lineno)


class AssetsExtension(Extension):
    """
    Adds the ``{% assets %}`` tag:

        {% assets "src1.js", "src2.js", filters="uglifyjs",
                  output="gen/packed.js", name="packed" %}
            <script src="{{ asset_url }}"></script>
        {% endassets %}

    All arguments must be constants, since they are needed when the
    template is compiled. Every tag parsed is recorded by name in
    ``environment.asset_nodes``, and in parse order in
    ``environment.asset_node_list``, which keeps tags sharing a name.
    """

    tags = set(['assets'])

    NodeClass = AssetNode   # Helpful for mocking during tests.

    def __init__(self, environment):
        super(AssetsExtension, self).__init__(environment)

        # add the defaults to the environment
        environment.extend(
            asset_nodes={},
            asset_node_list=[],
        )

    def parse(self, parser):
        lineno = next(parser.stream).lineno

        inputs = []
        filters = []
        attributes = {}

        # parse the arguments
        first = True
        while parser.stream.current.type != 'block_end':
            if not first:
                parser.stream.expect('comma')
            first = False

            # lookahead to see if this is an assignment (an option)
            if parser.stream.current.test('name') and parser.stream.look().test('assign'):
                name = next(parser.stream).value
                parser.stream.skip()
                value = self._parse_const(parser, name)
                if name == 'filters':
                    filters = self._split_filters(value)
                elif name in ('output', 'name', 'debug'):
                    attributes[name] = value
                else:
                    parser.fail('Invalid keyword argument: %s' % name, lineno)
            # otherwise assume a source file is given, either as a
            # string or a list of strings
            else:
                value = self._parse_const(parser, 'input')
                if isinstance(value, (list, tuple)):
                    inputs.extend(value)
                else:
                    inputs.append(value)

        if 'output' in attributes and not (
                isinstance(attributes['output'], str) and attributes['output']):
            parser.fail('The output of an asset must be a non-empty string',
                        lineno)

        # parse the contents of this tag
        body = parser.parse_statements(['name:endassets'], drop_needle=True)

        try:
            node = self.NodeClass(body, inputs, filters, attributes,
                                  lineno=lineno, tag='assets')
        except ConfigurationError as e:
            parser.fail(str(e), lineno)

        self.environment.asset_nodes[node.name] = node
        self.environment.asset_node_list.append(node)
        return node.compile()

    def _parse_const(self, parser, what):
        expr = parser.parse_expression()
        try:
            return expr.as_const(nodes.EvalContext(self.environment))
        except nodes.Impossible:
            parser.fail('The %s argument of {%% assets %%} must be a '
                        'constant' % what, expr.lineno)

    @staticmethod
    def _split_filters(value):
        if not value:
            return []
        if isinstance(value, str):
            return [f.strip() for f in value.split(',') if f.strip()]
        return list(value)


assets = AssetsExtension  # nicer import name


class Jinja2Loader(GlobLoader):
    """Parse all the Jinja2 templates in the given directory, and collect
    the ``{% assets %}`` tags in them.

    Try all the given environments to parse the template, until we
    succeed. Environments without the ``AssetsExtension`` are skipped.
    Every tag is returned, including several with the same name.
    """

    def __init__(self, directories, jinja2_envs, charset='utf8'):
        self.directories = directories
        self.jinja2_envs = jinja2_envs
        self.charset = charset

    def load_assets(self):
        result = []
        for template_dir in self.directories:
            for filename in self.glob_files((template_dir, '*.html'),
                                            recursive=True):
                result.extend(self.with_file(filename, self._parse) or [])
        return result

    def _parse(self, filename, contents):
        for env in self.jinja2_envs:
            previous_list = getattr(env, 'asset_node_list', None)
            if previous_list is None:
                log.debug('Skipping %r for %s, it lacks the assets tag',
                          env, filename)
                continue

            # Collect the tags of this template only.
            previous = env.asset_nodes
            env.asset_nodes = {}
            env.asset_node_list = found = []
            try:
                env.parse(contents.decode(self.charset))
            except jinja2.exceptions.TemplateSyntaxError:
                continue
            finally:
                env.asset_nodes = previous
                env.asset_node_list = previous_list
            for node in found:
                previous[node.name] = node
            previous_list.extend(found)
            return found
        raise LoaderError('Jinja parser failed on %s, tried %d environments' % (
            filename, len(self.jinja2_envs)))
