"""
Tests for TileSmith CLI

These tests verify the command structure, option handling and exit codes.
"""

from click.testing import CliRunner

from tilesmith import __version__
from tilesmith.cli import cli


class TestCLI:
    """Test CLI command structure and basic functionality"""

    def test_cli_help(self):
        """Test that CLI help works"""
        runner = CliRunner()
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'TileSmith' in result.output
        assert 'INPUT' in result.output
        assert 'OUTPUT' in result.output
        assert '--overwrite' in result.output
        assert '--srs' in result.output
        assert 'EPSG:3857' in result.output

    def test_cli_version(self):
        """Test that version flag works"""
        runner = CliRunner()
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_arguments(self):
        """Test that both positional arguments are required"""
        runner = CliRunner()
        result = runner.invoke(cli, ['only-input.slpk'])
        assert result.exit_code != 0
        assert 'OUTPUT' in result.output

    def test_missing_input(self, tmp_path):
        """Test that a missing archive is reported"""
        runner = CliRunner()
        result = runner.invoke(cli, [str(tmp_path / 'nonexistent.slpk'), str(tmp_path / 'out')])
        assert result.exit_code == 1
        assert 'not found' in result.output

    def test_invalid_workers(self, plain_slpk, tmp_path):
        """Test that worker count is validated"""
        runner = CliRunner()
        result = runner.invoke(cli, [str(plain_slpk), str(tmp_path / 'out'), '--workers', '0'])
        assert result.exit_code != 0

    def test_invalid_srs(self, plain_slpk, tmp_path):
        """Test that an unknown destination SRS fails cleanly"""
        runner = CliRunner()
        result = runner.invoke(cli, [str(plain_slpk), str(tmp_path / 'out'), '--srs', 'EPSG:999999'])
        assert result.exit_code == 1
        assert 'Projection Error' in result.output


class TestConvertCommand:
    """Test full conversions through the CLI"""

    def test_convert(self, atlased_slpk, tmp_path):
        """Test a full conversion through the command"""
        out = tmp_path / 'out'
        runner = CliRunner()
        result = runner.invoke(cli, [str(atlased_slpk), str(out), '--workers', '2'])
        assert result.exit_code == 0, result.output
        assert 'Success' in result.output
        assert '3 meshes' in result.output
        assert (out / 'nodes' / 'root' / 'geometries' / '0.obj').is_file()

    def test_existing_output_needs_overwrite(self, plain_slpk, tmp_path):
        """Test that an existing output directory needs --overwrite"""
        out = tmp_path / 'out'
        out.mkdir()
        runner = CliRunner()

        result = runner.invoke(cli, [str(plain_slpk), str(out)])
        assert result.exit_code == 1
        assert '--overwrite' in result.output

        result = runner.invoke(cli, [str(plain_slpk), str(out), '--overwrite'])
        assert result.exit_code == 0, result.output

    def test_verbose(self, plain_slpk, tmp_path):
        """Test that -v reports progress"""
        runner = CliRunner()
        result = runner.invoke(cli, [str(plain_slpk), str(tmp_path / 'out'), '-v'])
        assert result.exit_code == 0, result.output
        assert 'Converting:' in result.output

    def test_corrupt_texture(self, tmp_path):
        """Test that an undecodable texture exits with a decode error"""
        from conftest import atlased_builder
        builder = atlased_builder()
        builder.nodes['root']['texture'] = b'not an image'
        root = builder.write_dir(tmp_path / 'scene')

        runner = CliRunner()
        result = runner.invoke(cli, [str(root), str(tmp_path / 'out')])
        assert result.exit_code == 1
        assert 'Decode Error' in result.output
