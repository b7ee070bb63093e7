import sys
import argparse
import logging

from minassets.asset import Asset
from minassets.exceptions import AssetError
from minassets.filter import get_filter
from minassets.loaders import YAMLLoader


__all__ = ('CommandError', 'CommandLineEnvironment', 'main')


class CommandError(Exception):
    pass


class CommandLineEnvironment(object):
    """Implements the core functionality for a command line frontend
    to ``minassets``, abstracted in a way to allow frameworks to
    integrate the functionality into their own tools.
    """

    def __init__(self, settings, log, stdout=None):
        self.settings = settings or {}
        self.log = log
        self.stdout = stdout

    def invoke(self, command, args):
        """Invoke ``command``, or throw a CommandError.

        This is essentially a simple validation mechanism. Feel free
        to call the individual command methods manually.
        """
        try:
            function = self.Commands[command]
        except KeyError as e:
            raise CommandError('unknown command: %s' % e)
        else:
            return function(self, **args)

    def uglify(self, input, output=None, **options):
        """Minify the Javascript file ``input`` using UglifyJS, and
        write the result to ``output``, or stdout.

        ``options`` are passed to the filter; those that are ``None``
        are left to the settings.
        """
        options = dict((k, v) for k, v in options.items() if v is not None)
        try:
            asset = Asset.from_file(input, output=output)
        except IOError as e:
            raise CommandError('unable to read %s: %s' % (input, e))

        filter = get_filter('uglifyjs', self.settings, **options)
        self.log.info('Minifying: %s', input)
        filter.filter_dump(asset)

        if output:
            try:
                asset.save(output)
            except IOError as e:
                raise CommandError('unable to write %s: %s' % (output, e))
            self.log.info('Written: %s (%d bytes)', output, len(asset.content))
        else:
            stdout = self.stdout if self.stdout is not None else sys.stdout.buffer
            stdout.write(asset.content)
            stdout.flush()
        return 0

    # List of command methods
    Commands = {
        'uglify': uglify,
    }


class GenericArgparseImplementation(object):
    """Generic command line utility to interact with ``minassets``.

    Implementers may find it feasible to simply base their own command
    line utility on this, rather than implementing something custom on
    top of ``CommandLineEnvironment``.
    """

    def __init__(self, settings=None, log=None, prog=None, stdout=None):
        self.settings = settings
        self.log = log
        self.stdout = stdout
        self._construct_parser(prog)

    def _construct_parser(self, prog=None):
        self.parser = parser = argparse.ArgumentParser(
            description="Minify assets.",
            prog=prog)

        # Start with the base arguments that are valid for any command.
        parser.add_argument("-v", dest="verbose", action="store_true",
            help="be verbose")
        parser.add_argument("-q", action="store_true", dest="quiet",
            help="be quiet")
        parser.add_argument("-c", "--config", dest="config",
            help="read settings from a YAML file")

        # Add subparsers.
        subparsers = parser.add_subparsers(dest='command')
        subparsers.required = True
        for command in CommandLineEnvironment.Commands.keys():
            command_parser = subparsers.add_parser(command)
            maker = getattr(self, 'make_%s_parser' % command, False)
            if maker:
                maker(command_parser)

    @staticmethod
    def make_uglify_parser(parser):
        parser.add_argument('input', metavar='INPUT',
            help='The Javascript file to minify.')
        parser.add_argument('--output', '-o', metavar='FILE',
            help='Write the result to this file, rather than stdout.')
        parser.add_argument('--binary', help='Path to uglifyjs.')
        parser.add_argument('--node-binary', dest='node_binary',
            help='Run uglifyjs using this node interpreter.')
        parser.add_argument('--no-copyright', dest='no_copyright',
            action='store_const', const=True,
            help='Also remove the first block of comments.')
        parser.add_argument('--comments', nargs='?', const=True,
            help='Keep comments; optionally, which ones.')
        parser.add_argument('--beautify', action='store_const', const=True,
            help='Output indented code.')
        parser.add_argument('--unsafe', action='store_const', const=True,
            help='Enable unsafe optimizations.')
        parser.add_argument('--no-mangle', dest='mangle',
            action='store_const', const=False,
            help='Do not mangle names.')
        parser.add_argument('-d', '--define', dest='defines',
            action='append', metavar='NAME=VALUE',
            help='Define a global symbol. Can be given multiple times.')

    def run_with_argv(self, argv):
        try:
            ns = self.parser.parse_args(argv)
        except SystemExit:
            # We do not want the main() function to exit the program.
            # See run() instead.
            return 1

        # Setup logging
        if self.log:
            log = self.log
        else:
            log = logging.getLogger('minassets')
            log.setLevel(logging.DEBUG if ns.verbose else (
                logging.WARNING if ns.quiet else logging.INFO))
            if not log.handlers:
                log.addHandler(logging.StreamHandler())

        settings = self.settings
        if settings is None and ns.config:
            try:
                settings = YAMLLoader(ns.config).load_settings()
            except (EnvironmentError, AssetError) as e:
                raise CommandError('unable to load %s: %s' % (ns.config, e))

        # Prepare a dict of arguments cleaned of values that are not
        # command-specific, and which the command method would not accept.
        args = vars(ns).copy()
        for name in ('verbose', 'quiet', 'config', 'command'):
            if name in args:
                del args[name]

        # Run the selected command
        cmd = CommandLineEnvironment(settings, log, stdout=self.stdout)
        try:
            return cmd.invoke(ns.command, args)
        except AssetError as e:
            log.error("Failed, error was: %s", e)
            return 1

    def main(self, argv):
        """Parse the given command line.

        The command line is expected to NOT include what would be
        sys.argv[0].
        """
        try:
            return self.run_with_argv(argv)
        except CommandError as e:
            print(e, file=sys.stderr)
            return 1


def main(argv=None, settings=None):
    """Execute the generic version of the command line interface.

    You only need to work directly with ``GenericArgparseImplementation``
    if you desire to customize things.
    """
    if argv is None:
        argv = sys.argv[1:]
    return GenericArgparseImplementation(settings).main(argv)


def run():
    """Runs the command line interface via ``main``, then exits the
    process with the proper return code."""
    sys.exit(main(sys.argv[1:]) or 0)


if __name__ == '__main__':
    run()
