import types

import pytest

from uniconvert import cli
from uniconvert.convert import config as convert_config
from uniconvert.core import config_templates


@pytest.fixture(autouse=True)
def reset_metadata(monkeypatch):
    """Ensure metadata.version is controllable during tests."""

    def fake_version(name: str) -> str:
        assert name == "uniconvert"
        return "0.0-test"

    monkeypatch.setattr(cli.metadata, "version", fake_version)
    yield


def test_version_command_handles_missing_package(monkeypatch, capsys):
    monkeypatch.setattr(
        cli.metadata,
        "version",
        lambda name: (_ for _ in ()).throw(cli.metadata.PackageNotFoundError()),
    )
    code = cli.main(["version"])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "unknown"


def test_no_args_prints_usage_and_returns_error(capsys):
    code = cli.main([])
    captured = capsys.readouterr()
    assert code == 2
    assert "Usage: uniconvert" in captured.out
    assert "Available commands:" in captured.out


@pytest.mark.parametrize("argv", [["--help"], ["-h"], ["help"]])
def test_help_shows_usage(argv, capsys):
    code = cli.main(argv)
    captured = capsys.readouterr()
    assert code == 0
    assert "Usage: uniconvert" in captured.out


def test_list_outputs_command_table(capsys):
    code = cli.main(["list"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Available commands:" in captured.out
    assert "init" in captured.out
    assert "convert" in captured.out


def test_help_known_command(capsys):
    code = cli.main(["help", "convert"])
    captured = capsys.readouterr()
    assert code == 0
    assert "Run `uniconvert convert --help`" in captured.out


def test_help_unknown_command(capsys):
    code = cli.main(["help", "does-not-exist"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err
    assert "Available commands:" in captured.err


@pytest.mark.parametrize("flag", ["version", "--version", "-V"])
def test_version_variants(flag, capsys):
    code = cli.main([flag])
    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.strip() == "0.0-test"


def test_unknown_command_errors(capsys):
    code = cli.main(["bogus"])
    captured = capsys.readouterr()
    assert code == 2
    assert "Unknown command" in captured.err


def _stub_module(monkeypatch, behaviour):
    def fake_import(module_name: str):
        assert module_name == "uniconvert.convert.cli"
        return types.SimpleNamespace(main=behaviour)

    monkeypatch.setattr(cli, "import_module", fake_import)


def test_dispatch_invokes_module_main_with_passthrough(monkeypatch):
    captured = {}

    def stub_main(argv):
        captured["argv"] = argv
        return 7

    _stub_module(monkeypatch, stub_main)
    code = cli.main(["convert", "--to", "csv", "a.pdf"])
    assert code == 7
    assert captured["argv"] == ["--to", "csv", "a.pdf"]


def test_dispatch_propagates_system_exit_code(monkeypatch):
    def stub_main(argv):
        raise SystemExit(5)

    _stub_module(monkeypatch, stub_main)
    assert cli.main(["convert"]) == 5


def test_dispatch_handles_system_exit_message(monkeypatch, capsys):
    def stub_main(argv):
        raise SystemExit("boom")

    _stub_module(monkeypatch, stub_main)
    code = cli.main(["convert"])
    captured = capsys.readouterr()
    assert code == 1
    assert captured.err.strip() == "boom"


def test_dispatch_treats_system_exit_none_as_success(monkeypatch):
    def stub_main(argv):
        raise SystemExit()

    _stub_module(monkeypatch, stub_main)
    assert cli.main(["convert"]) == 0


def test_dispatch_normalizes_non_int_return(monkeypatch):
    _stub_module(monkeypatch, lambda argv: "done")
    assert cli.main(["convert"]) == 0


def test_uniconvert_cli_runs_init_end_to_end(tmp_path, capsys):
    target = tmp_path / "workspace"

    code = cli.main(["init", "--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    for entry in ("config", "logs", "converted"):
        assert (target / entry).is_dir()


def test_uniconvert_cli_runs_convert_config_init(tmp_path, capsys):
    code = cli.main(
        ["convert", "config", "init", "--workspace", str(tmp_path)]
    )

    captured = capsys.readouterr()
    target = tmp_path / "config" / convert_config.CONFIG_FILENAME
    assert code == 0
    template = config_templates.get_template("convert")
    assert target.read_text(encoding="utf-8") == template.read_text()
    assert str(target) in captured.out


def test_convert_usage_error_is_normalized(capsys):
    code = cli.main(["convert"])

    captured = capsys.readouterr()
    assert code == 2
    assert "Nothing to convert" in captured.err
