from pathlib import Path

from click.testing import CliRunner

from microssg import __version__
from microssg.cli import cli


def create_project(root: Path) -> Path:
    (root / "pages").mkdir(parents=True)
    (root / "data").mkdir()
    (root / "pages" / "index.hbs").write_text("Hello {{who}}", encoding="utf-8")
    (root / "pages" / "draft.hbs").write_text("draft", encoding="utf-8")
    (root / "data" / "index.json").write_text('{"who": "world"}', encoding="utf-8")
    return root


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_build(tmp_path):
    src = create_project(tmp_path / "src")
    dest = tmp_path / "out"
    result = CliRunner().invoke(
        cli, ["build", "-d", str(src), "-o", str(dest), "-e", "draft"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert "Built 1 pages" in result.output
    assert (dest / "index.html").read_text(encoding="utf-8") == "Hello world"
    assert not (dest / "draft.html").exists()


def test_cli_build_defaults_to_src_in_working_directory(tmp_path, monkeypatch):
    create_project(tmp_path / "src")
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (tmp_path / "src" / "dist" / "index.html").exists()


def test_cli_build_relative_dest_uses_working_directory(tmp_path, monkeypatch):
    create_project(tmp_path / "src")
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build", "-o", "public"], catch_exceptions=False)
    assert result.exit_code == 0
    assert (tmp_path / "public" / "index.html").exists()


def test_cli_build_failure_exits_nonzero(tmp_path):
    src = create_project(tmp_path / "src")
    dest = tmp_path / "out"
    runner = CliRunner()
    assert runner.invoke(cli, ["build", "-d", str(src), "-o", str(dest)]).exit_code == 0

    result = runner.invoke(cli, ["build", "-d", str(src), "-o", str(dest)])
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "file exists" in result.output

    result = runner.invoke(cli, ["build", "-d", str(src), "-o", str(dest), "-f"])
    assert result.exit_code == 0


def test_cli_passes_options(monkeypatch, tmp_path):
    seen = {}

    class FakeResult:
        pages = []
        output_dir = tmp_path / "out"

    def fake_build_site(root, options):
        seen["root"] = root
        seen["options"] = options
        return FakeResult()

    monkeypatch.setattr("microssg.compiler.build_site", fake_build_site)
    monkeypatch.setenv("HOME", str(tmp_path))
    result = CliRunner().invoke(
        cli,
        ["build", "-d", "~/site", "-v", "-m", "-f", "-t", "~/mypy.ini", "-e", "a", "-e", "b.hbs"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert seen["root"] == tmp_path / "site"
    options = seen["options"]
    assert options["log"] is True
    assert options["minify"] is True
    assert options["overwrite"] is True
    assert options["dest"] is None
    assert options["typecheck_config"] == tmp_path / "mypy.ini"
    assert options["exclude"] == ["a", "b.hbs"]


def test_module_main_entrypoint():
    from microssg.__main__ import main

    assert callable(main)


def test_main_invokes_cli(monkeypatch):
    import microssg.cli as cli_mod

    called = {}

    def fake_cli():
        called["ran"] = True

    monkeypatch.setattr(cli_mod, "cli", fake_cli)
    cli_mod.main()
    assert called == {"ran": True}
