"""Tests for the archive command-line interface."""

import pytest
from typer.testing import CliRunner

from family_archive.cli.main import app
from family_archive.storage import ArchiveDatabase, FamilyRelationship, PersonRepository

runner = CliRunner()


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'archive.db'}"


def invoke(*args):
    return runner.invoke(app, list(args))


class TestDatabaseCommands:
    """init-db, seed and stats."""

    def test_init_db(self, db_url):
        result = invoke("init-db", "--db", db_url)

        assert result.exit_code == 0
        assert "Database ready" in result.output

    def test_seed_then_stats(self, db_url):
        seeded = invoke("seed", "--db", db_url)
        assert seeded.exit_code == 0
        assert "Relationships: 12" in seeded.output

        result = invoke("stats", "--db", db_url)
        assert result.exit_code == 0
        assert "Persons" in result.output
        assert "spouse" in result.output

    def test_reset_clears_data(self, db_url):
        invoke("seed", "--db", db_url)
        invoke("init-db", "--db", db_url, "--reset")

        with ArchiveDatabase(db_url) as db:
            assert PersonRepository(db).count() == 0


class TestTreeCommand:
    """Rendering the family tree."""

    def test_full_tree_shows_roots_and_children(self, db_url):
        invoke("seed", "--db", db_url)

        result = invoke("tree", "--db", db_url)

        assert result.exit_code == 0
        assert result.output.count("Sara Ahmed Al-Ali") == 2
        assert "2 descendant(s)" in result.output

    def test_tree_for_person(self, db_url):
        invoke("seed", "--db", db_url)

        result = invoke("tree", "--person", "Sara", "--db", db_url)

        assert result.exit_code == 0
        assert "0 descendant(s)" in result.output

    def test_unknown_person(self, db_url):
        invoke("init-db", "--db", db_url)

        result = invoke("tree", "--person", "Nobody", "--db", db_url)

        assert result.exit_code == 1
        assert "No person found" in result.output


class TestReconcileCommand:
    """Reporting and repairing missing reverse edges."""

    def test_reports_then_fixes(self, db_url):
        with ArchiveDatabase(db_url) as db:
            repo = PersonRepository(db)
            a = repo.create(full_name="Hana Nasser").id
            b = repo.create(full_name="Karim Nasser").id
            with db.session_scope() as session:
                session.add(FamilyRelationship(person_id=a, relative_id=b, relation_type="sibling"))

        report = invoke("reconcile", "--db", db_url)
        assert report.exit_code == 1
        assert "1 inconsistent" in report.output

        fixed = invoke("reconcile", "--fix", "--db", db_url)
        assert fixed.exit_code == 0
        assert "Repaired 1" in fixed.output

        clean = invoke("reconcile", "--db", db_url)
        assert clean.exit_code == 0

    def test_version(self):
        result = invoke("version")

        assert result.exit_code == 0
        assert "Family Archive" in result.output
