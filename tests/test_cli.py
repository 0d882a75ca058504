import io
import subprocess
import tomllib
from unittest import mock

import pytest

from mdshelf.cli import build_parser, get_author_name, main


def _git_result(returncode, stdout=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


@mock.patch("mdshelf.cli.subprocess.run")
def test_get_author_name_trims_output(run):
    run.return_value = _git_result(0, "Jane Doe\n")
    assert get_author_name() == "Jane Doe"


@mock.patch("mdshelf.cli.subprocess.run")
def test_get_author_name_none_on_failure(run):
    run.return_value = _git_result(1)
    assert get_author_name() is None


@mock.patch("mdshelf.cli.subprocess.run", side_effect=FileNotFoundError("git"))
def test_get_author_name_none_without_git(run):
    assert get_author_name() is None


def test_parser_rejects_unknown_ignore_choice():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["init", "--ignore", "svn"])


def test_parser_reads_clean_options(tmp_path):
    args = build_parser().parse_args(["clean", "-d", str(tmp_path), "root"])
    assert args.dest_dir == tmp_path
    assert str(args.dir) == "root"


@mock.patch("mdshelf.cli.subprocess.run")
def test_init_forced(run, tmp_path, capsys):
    run.return_value = _git_result(0, "Jane Doe\n")
    code = main(["init", str(tmp_path), "--force", "--ignore", "git", "--title", "My Book"])
    assert code == 0
    assert "All done, no errors..." in capsys.readouterr().out
    with (tmp_path / "book.toml").open("rb") as handle:
        config = tomllib.load(handle)
    assert config["book"]["title"] == "My Book"
    assert config["book"]["authors"] == ["Jane Doe"]
    assert (tmp_path / ".gitignore").exists()
    assert (tmp_path / "src" / "SUMMARY.md").exists()


@mock.patch("mdshelf.cli.subprocess.run")
def test_init_forced_without_title(run, tmp_path):
    run.return_value = _git_result(1)
    assert main(["init", str(tmp_path), "--force"]) == 0
    with (tmp_path / "book.toml").open("rb") as handle:
        config = tomllib.load(handle)
    assert "title" not in config["book"]
    assert config["book"]["authors"] == []
    assert not (tmp_path / ".gitignore").exists()


@mock.patch("mdshelf.cli.subprocess.run")
def test_init_interactive(run, tmp_path, monkeypatch):
    run.return_value = _git_result(1)
    monkeypatch.setattr("sys.stdin", io.StringIO("y\nAsked Title\n"))
    assert main(["init", str(tmp_path)]) == 0
    with (tmp_path / "book.toml").open("rb") as handle:
        assert tomllib.load(handle)["book"]["title"] == "Asked Title"
    assert (tmp_path / ".gitignore").exists()


@mock.patch("mdshelf.cli.subprocess.run")
def test_init_interactive_declined(run, tmp_path, monkeypatch):
    run.return_value = _git_result(1)
    monkeypatch.setattr("sys.stdin", io.StringIO("n\n\n"))
    assert main(["init", str(tmp_path)]) == 0
    with (tmp_path / "book.toml").open("rb") as handle:
        assert "title" not in tomllib.load(handle)["book"]
    assert not (tmp_path / ".gitignore").exists()


@mock.patch("mdshelf.cli.subprocess.run")
def test_clean_removes_build_dir(run, tmp_path, capsys):
    run.return_value = _git_result(1)
    main(["init", str(tmp_path), "--force"])
    (tmp_path / "book" / "index.html").write_text("abc", encoding="utf-8")
    capsys.readouterr()
    assert main(["clean", str(tmp_path)]) == 0
    assert capsys.readouterr().out.startswith("Removed 1 file")
    assert not (tmp_path / "book").exists()


def test_clean_missing_dir_reports_nothing(tmp_path, capsys):
    assert main(["clean", str(tmp_path)]) == 0
    assert capsys.readouterr().out.strip() == "Removed 0 files"


def test_clean_uses_dest_dir(tmp_path, capsys):
    target = tmp_path / "elsewhere"
    (target / "sub").mkdir(parents=True)
    assert main(["clean", str(tmp_path), "--dest-dir", str(target)]) == 0
    assert capsys.readouterr().out.startswith("Removed 2 directories")
    assert not target.exists()


def test_clean_uses_configured_build_dir(tmp_path):
    (tmp_path / "book.toml").write_text('[build]\nbuild-dir = "out"\n', encoding="utf-8")
    (tmp_path / "out").mkdir()
    (tmp_path / "book").mkdir()
    assert main(["clean", str(tmp_path)]) == 0
    assert not (tmp_path / "out").exists()
    assert (tmp_path / "book").exists()


def test_clean_bad_config_is_an_error(tmp_path, capsys):
    (tmp_path / "book.toml").write_text("[build\n", encoding="utf-8")
    assert main(["clean", str(tmp_path)]) == 1
    assert capsys.readouterr().err.startswith("Error:")