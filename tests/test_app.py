"""
Tests for the command-line interface.
"""

import sys

import pytest

from talentrank.app import main


@pytest.fixture
def run(monkeypatch, tmp_path, capsys):
    db = tmp_path / "cli.db"
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TALENTRANK_DEFAULT_WEIGHTS", raising=False)

    def _run(*argv):
        monkeypatch.setattr(sys, "argv", ["talentrank", "--db", str(db), *argv])
        main()
        return capsys.readouterr().out

    return _run


class TestCli:
    """End-to-end CLI flow."""

    def test_full_flow(self, run, tmp_path):
        run("init-db")
        assert "Job: 1" in run("add-job", "--title", "Platform Engineer", "--skills", "go, kubernetes",
                               "--experience", "2+", "--education", "bachelor")
        run("add-candidate", "--name", "Lin Chen", "--email", "lin@example.com", "--skills", "go, kubernetes",
            "--years", "6", "--education", "bachelor")
        run("add-candidate", "--name", "Sam Roe", "--email", "sam@example.com", "--skills", "java", "--years", "1")

        assert "Processed: 2" in run("match-all", "--job", "1")
        assert "Ranked 2 candidates (generation 1)" in run("rank", "--job", "1")
        assert "#1" in run("show", "--job", "1", "--top", "1")

        out = run("export", "--job", "1", "--out", str(tmp_path / "exports"))
        exported = tmp_path / "exports" / "rankings_job_1_Platform_Engineer.csv"
        assert str(exported) in out
        assert exported.read_text().startswith("Rank, Candidate Name")

    def test_validate_weights(self, run):
        assert "Weights are valid" in run("validate-weights", "--weights", "60,20,20")
        with pytest.raises(SystemExit):
            run("validate-weights", "--weights", "60,30,20")

    def test_engine_errors_exit(self, run):
        run("init-db")
        with pytest.raises(SystemExit, match="Job not found with id: 3"):
            run("rank", "--job", "3")
