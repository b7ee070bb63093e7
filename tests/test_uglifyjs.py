import os
import shutil

import pytest
from mock import patch, Mock, DEFAULT

from minassets.asset import Asset
from minassets.exceptions import ExecutionError, ToolNotFoundError
from minassets.filter import get_filter
from minassets.filter.uglifyjs import UglifyJS
from .helpers import TempDirHelper, os_environ_sandbox, POSIX


UGLIFYJS_VARS = ('UGLIFYJS_BIN', 'NODE_BIN', 'NODE_PATHS',
                 'UGLIFYJS_NO_COPYRIGHT', 'UGLIFYJS_COMMENTS',
                 'UGLIFYJS_BEAUTIFY', 'UGLIFYJS_UNSAFE', 'UGLIFYJS_MANGLE',
                 'UGLIFYJS_DEFINES', 'UGLIFYJS_EXTRA_ARGS')


@pytest.fixture(autouse=True)
def clean_environ():
    with os_environ_sandbox():
        for name in UGLIFYJS_VARS:
            os.environ.pop(name, None)
        yield


class TestArguments(object):
    """Test the command line the filter builds."""

    def test_defaults(self):
        assert UglifyJS().argv() == [
            '/usr/bin/uglifyjs', '-o', '{output}', '{input}']

    def test_flag_order(self):
        f = UglifyJS(binary='uglifyjs', no_copyright=True, comments='all',
                     unsafe=True, mangle=False, defines=['FOO=1', 'BAR=2'])
        assert f.argv() == [
            'uglifyjs', '--no-copyright', '--comments', 'all', '--unsafe',
            '--no-mangle', '-d', 'FOO=1', '-d', 'BAR=2',
            '-o', '{output}', '{input}']

    def test_all_flags(self):
        f = UglifyJS(binary='uglifyjs', node_binary='/usr/bin/node',
                     no_copyright=True, comments=True, beautify=True,
                     unsafe=True, mangle=False, defines=['DEBUG=false'],
                     extra_args=['--lint'])
        assert f.argv() == [
            '/usr/bin/node', 'uglifyjs', '--no-copyright', '--comments',
            'all', '--beautify', '--unsafe', '--no-mangle',
            '-d', 'DEBUG=false', '--lint', '-o', '{output}', '{input}']

    def test_comments(self):
        assert UglifyJS(comments=True).argv()[1:3] == ['--comments', 'all']
        assert UglifyJS(comments='/@license/').argv()[1:3] == [
            '--comments', '/@license/']
        assert '--comments' not in UglifyJS(comments=False).argv()

    def test_comments_boolean_words(self):
        os.environ['UGLIFYJS_COMMENTS'] = 'true'
        assert UglifyJS().argv()[1:3] == ['--comments', 'all']
        assert UglifyJS({'UGLIFYJS_COMMENTS': 'yes'}).argv()[1:3] == [
            '--comments', 'all']
        assert '--comments' not in UglifyJS({'UGLIFYJS_COMMENTS': 'off'}).argv()

    def test_mangle(self):
        """Only disabling mangling is passed on, the rest is up to the
        tool."""
        assert '--no-mangle' not in UglifyJS().argv()
        assert '--no-mangle' not in UglifyJS(mangle=True).argv()
        assert '--no-mangle' in UglifyJS(mangle=False).argv()

    def test_from_settings(self):
        f = UglifyJS({
            'UGLIFYJS_BIN': '/opt/uglifyjs',
            'NODE_BIN': '/opt/node',
            'UGLIFYJS_BEAUTIFY': True,
            'UGLIFYJS_DEFINES': ['A=1'],
        })
        assert f.argv() == ['/opt/node', '/opt/uglifyjs', '--beautify',
                            '-d', 'A=1', '-o', '{output}', '{input}']

    def test_from_environ(self):
        os.environ['UGLIFYJS_BIN'] = '/env/uglifyjs'
        os.environ['UGLIFYJS_MANGLE'] = 'false'
        os.environ['UGLIFYJS_DEFINES'] = 'A=1,B=2'
        assert UglifyJS().argv() == [
            '/env/uglifyjs', '--no-mangle', '-d', 'A=1', '-d', 'B=2',
            '-o', '{output}', '{input}']

    def test_node_environ(self):
        assert UglifyJS().node_environ() is None
        env = UglifyJS(node_paths=['/a', '/b']).node_environ()
        assert env['NODE_PATH'] == os.pathsep.join(['/a', '/b'])

    def test_placeholders_replaced(self):
        """The final command line names the temporary files, output
        first, input last."""
        with patch('subprocess.Popen') as popen:
            intercepted = {}
            def fake_tool(argv, **kw):
                intercepted['argv'] = list(argv)
                with open(argv[-2], 'wb') as f:
                    f.write(b'min')
                return DEFAULT
            popen.side_effect = fake_tool
            popen.return_value = Mock(returncode=0)
            popen.return_value.communicate.return_value = (b'', b'')

            f = get_filter('uglifyjs', binary='uglifyjs', no_copyright=True,
                           comments='all', unsafe=True, mangle=False,
                           defines=['FOO=1', 'BAR=2'])
            asset = Asset(b'var a;')
            f.filter_dump(asset)

        argv = intercepted['argv']
        out_path, in_path = argv[-2], argv[-1]
        assert argv == [
            'uglifyjs', '--no-copyright', '--comments', 'all', '--unsafe',
            '--no-mangle', '-d', 'FOO=1', '-d', 'BAR=2',
            '-o', out_path, in_path]
        assert os.path.basename(in_path).startswith('uglifyjs_in')
        assert os.path.basename(out_path).startswith('uglifyjs_out')
        assert not os.path.exists(in_path)
        assert not os.path.exists(out_path)
        assert asset.content == b'min'


@pytest.mark.skipif(not POSIX, reason='stub tools are shell scripts')
class TestStubTool(TempDirHelper):
    """Run the filter against small shell scripts standing in for
    uglifyjs.
    """

    # Remembers its arguments, then runs $ACTION on the input file,
    # which is always the last argument.
    TOOL = """
printf '%%s\\n' "$@" > %(log)s
out=
while [ $# -gt 1 ]; do
    if [ "$1" = "-o" ]; then out="$2"; shift; fi
    shift
done
%(action)s
"""

    def tool(self, action, name='uglifyjs'):
        return self.create_tool(name, self.TOOL % {
            'log': self.path('args.log'), 'action': action})

    def logged_args(self):
        return self.get('args.log').decode('utf-8').splitlines()

    def test_success(self):
        binary = self.tool('tr "a-z" "A-Z" < "$1" > "$out"')
        asset = Asset(b'var foo = 1;', output='gen/foo.js')
        UglifyJS(binary=binary).filter_dump(asset)
        assert asset.content == b'VAR FOO = 1;'
        assert asset.output == 'gen/foo.js'

        # Neither of the temporary files is left behind
        args = self.logged_args()
        assert args[0] == '-o'
        assert not os.path.exists(args[1])
        assert not os.path.exists(args[2])

    def test_binary_content(self):
        binary = self.tool('cat "$1" > "$out"')
        data = b'\x00\xff\xfe\r\n\xc3\xb1'
        asset = Asset(data)
        UglifyJS(binary=binary).filter_dump(asset)
        assert asset.content == data

    def test_empty_content(self):
        binary = self.tool('cat "$1" > "$out"; echo "// empty" >> "$out"')
        asset = Asset(b'')
        UglifyJS(binary=binary).filter_dump(asset)
        assert asset.content == b'// empty\n'

    def test_interpreter(self):
        """With an interpreter given, the tool is passed to it, and does
        not need to be executable itself."""
        binary = self.tool('cat "$1" > "$out"')
        os.chmod(binary, 0o644)
        asset = Asset(b'content')
        UglifyJS(binary=binary, node_binary='/bin/sh').filter_dump(asset)
        assert asset.content == b'content'

    def test_node_paths(self):
        binary = self.tool('printf "%s" "$NODE_PATH" > "$out"')
        asset = Asset(b'content')
        UglifyJS(binary=binary, node_paths=['/a', '/b']).filter_dump(asset)
        assert asset.content == os.pathsep.join(['/a', '/b']).encode('utf-8')

    def test_missing_interpreter(self):
        binary = self.tool('cat "$1" > "$out"')
        asset = Asset(b'original')
        f = UglifyJS(binary=binary, node_binary=self.path('no/such/node'))
        pytest.raises(ToolNotFoundError, f.filter_dump, asset)
        assert asset.content == b'original'

    def test_missing_tool(self):
        asset = Asset(b'original')
        f = UglifyJS(binary=self.path('no/such/uglifyjs'))
        pytest.raises(ToolNotFoundError, f.filter_dump, asset)
        assert asset.content == b'original'

    def test_exit_code_127(self):
        binary = self.tool('echo garbage > "$out"; exit 127')
        asset = Asset(b'original')
        pytest.raises(ToolNotFoundError, UglifyJS(binary=binary).filter_dump,
                      asset)
        assert asset.content == b'original'
        args = self.logged_args()
        assert not os.path.exists(args[1])
        assert not os.path.exists(args[2])

    def test_no_output(self):
        binary = self.tool('exit 0')
        asset = Asset(b'original')
        with pytest.raises(ExecutionError) as excinfo:
            UglifyJS(binary=binary).filter_dump(asset)
        assert 'output file was not produced' in str(excinfo.value)
        assert asset.content == b'original'

    def test_failure(self):
        binary = self.tool('echo "Unexpected token" >&2; exit 1')
        asset = Asset(b'var = ;')
        with pytest.raises(ExecutionError) as excinfo:
            UglifyJS(binary=binary).filter_dump(asset)
        e = excinfo.value
        assert e.returncode == 1
        assert b'Unexpected token' in e.stderr
        assert 'Unexpected token' in str(e)
        assert e.input == b'var = ;'
        assert asset.content == b'var = ;'
        args = self.logged_args()
        assert not os.path.exists(args[2])


@pytest.mark.skipif(not shutil.which('uglifyjs'),
                    reason='uglifyjs is not installed')
class TestRealUglifyJS(object):

    def test_minify(self):
        asset = Asset(b'function foo(bar) {\n    return   bar + 1;\n}\n')
        UglifyJS(binary=shutil.which('uglifyjs')).filter_dump(asset)
        assert asset.content
        assert len(asset.content) < len(b'function foo(bar) {\n    return   bar + 1;\n}\n')
