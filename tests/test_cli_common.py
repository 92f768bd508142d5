"""Tests for CLI common utilities."""

import argparse

from backup_coordinator.cli.common import (
    add_progress_args,
    add_verbosity_args,
    create_global_parser,
    get_log_level,
    load_cli_config,
)


class TestCreateGlobalParser:
    """Tests for create_global_parser function."""

    def test_returns_parser(self):
        parser = create_global_parser()
        assert isinstance(parser, argparse.ArgumentParser)

    def test_has_verbosity_args(self):
        parser = create_global_parser()
        args = parser.parse_args(["--verbose"])
        assert args.verbose is True


class TestAddVerbosityArgs:
    """Tests for add_verbosity_args function."""

    def test_defaults(self):
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args([])
        assert args.verbose is False
        assert args.quiet is False
        assert args.debug is False

    def test_short_flags(self):
        parser = argparse.ArgumentParser()
        add_verbosity_args(parser)
        args = parser.parse_args(["-v", "-q"])
        assert args.verbose is True
        assert args.quiet is True


class TestAddProgressArgs:
    """Tests for add_progress_args function."""

    def _parse(self, argv):
        parser = argparse.ArgumentParser()
        add_progress_args(parser)
        return parser.parse_args(argv)

    def test_unset_defers_to_config(self):
        assert self._parse([]).progress is None

    def test_progress(self):
        assert self._parse(["--progress"]).progress is True

    def test_no_progress(self):
        assert self._parse(["--no-progress"]).progress is False


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_default_info(self):
        args = argparse.Namespace(verbose=False, quiet=False, debug=False)
        assert get_log_level(args) == "INFO"

    def test_debug_wins(self):
        args = argparse.Namespace(verbose=False, quiet=True, debug=True)
        assert get_log_level(args) == "DEBUG"

    def test_quiet(self):
        args = argparse.Namespace(verbose=False, quiet=True, debug=False)
        assert get_log_level(args) == "WARNING"

    def test_verbose(self):
        args = argparse.Namespace(verbose=True, quiet=False, debug=False)
        assert get_log_level(args) == "DEBUG"

    def test_missing_attributes(self):
        assert get_log_level(argparse.Namespace()) == "INFO"


class TestLoadCliConfig:
    """Tests for load_cli_config function."""

    def test_loads_config(self, config_file):
        args = argparse.Namespace(config=str(config_file))
        config = load_cli_config(args)
        assert config is not None
        assert len(config.backups) == 3

    def test_missing_explicit_file(self, tmp_path):
        args = argparse.Namespace(config=str(tmp_path / "nope.toml"))
        assert load_cli_config(args) is None

    def test_no_config_anywhere(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(
            "backup_coordinator.config.loader.CONFIG_PATHS", [tmp_path / "missing.toml"]
        )
        assert load_cli_config(argparse.Namespace(config=None)) is None
        assert "config init" in capsys.readouterr().out

    def test_log_file(self, tmp_path, sample_config_toml):
        log_file = tmp_path / "coordinator.log"
        path = tmp_path / "c.toml"
        path.write_text(sample_config_toml.replace(
            "[global]", f'[global]\nlog_file = "{log_file}"'
        ))

        config = load_cli_config(argparse.Namespace(config=str(path)))

        assert config.global_config.log_file == str(log_file)
        assert log_file.exists()
