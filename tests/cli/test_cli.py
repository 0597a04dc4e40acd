"""End-to-end tests for the operator CLI."""

import json

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typer.testing import CliRunner

from anicatalog.cli.commands import catalog as catalog_commands
from anicatalog.cli.main import app
from anicatalog.domain.entities import Record, Series, SeriesReview
from anicatalog.shared.types import ReviewStatus
from anicatalog.usecases.catalog_import import import_record
from anicatalog.usecases.import_checkpoint import ImportCheckpoint

runner = CliRunner()


@pytest.fixture
def gintama(seed_series):
    """Two series that the merge pass groups together, plus an unrelated one."""
    first = seed_series("Gintama", [(918, "Gintama", 201, 2006)], total_episodes=201)
    second = seed_series("Gintama°", [(28977, "Gintama°", 51, 2015)], total_episodes=51)
    seed_series("Cowboy Bebop", [(1, "Cowboy Bebop", 26, 1998)], total_episodes=26)
    return first, second


class TestSeriesCommands:
    def test_list_json(self, gintama):
        result = runner.invoke(app, ["series", "list", "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        assert payload["total"] == 3
        assert [s["title"] for s in payload["series"]] == ["Cowboy Bebop", "Gintama", "Gintama°"]

    def test_list_search(self, gintama):
        result = runner.invoke(app, ["series", "list", "--search", "bebop", "--json"])

        assert [s["title"] for s in json.loads(result.stdout)["series"]] == ["Cowboy Bebop"]

    def test_list_empty(self):
        result = runner.invoke(app, ["series", "list"])

        assert result.exit_code == 0
        assert "No series found" in result.stdout

    def test_show(self, gintama):
        result = runner.invoke(app, ["series", "show", str(gintama[0]), "--json"])

        assert result.exit_code == 0
        detail = json.loads(result.stdout)["series"]
        assert detail["title"] == "Gintama"
        assert [m["external_id"] for m in detail["members"]] == [918]

    def test_show_missing_series(self):
        result = runner.invoke(app, ["series", "show", "404"])

        assert result.exit_code == 1
        assert "Series not found" in result.output

    def test_merge_dry_run_changes_nothing(self, db_session, gintama):
        result = runner.invoke(app, ["series", "merge", "--dry-run"])

        assert result.exit_code == 0
        assert "GROUP 1: 2 possibly related series" in result.stdout
        assert "Gintama° (2015) - 51 episodes - tv" in result.stdout
        assert db_session.scalar(select(func.count()).select_from(Series)) == 3

    def test_merge_interactive_choice(self, db_session, gintama):
        first, second = gintama

        result = runner.invoke(app, ["series", "merge", "--json"], input="1\n")

        assert result.exit_code == 0
        report = json.loads(result.stdout[result.stdout.index("{"):])["report"]
        assert report["merged"] == [
            {"survivor_id": first, "absorbed_ids": [second], "reassigned_records": 1, "total_episodes": 252}
        ]
        assert db_session.get(Series, second) is None

    def test_merge_reprompts_on_invalid_answer(self, db_session, gintama):
        first, second = gintama

        result = runner.invoke(app, ["series", "merge"], input="7\n2\n")

        assert result.exit_code == 0
        assert "Enter a number between 1 and 2" in result.stdout
        assert f"merged [{first}] into {second}" in result.stdout

    def test_merge_skip(self, db_session, gintama):
        result = runner.invoke(app, ["series", "merge"], input="s\n")

        assert result.exit_code == 0
        assert "Skipped group" in result.stdout
        assert db_session.scalar(select(func.count()).select_from(Series)) == 3


class TestReviewCommands:
    @pytest.fixture
    def review_id(self, db_session, make_catalog_record):
        import_record(make_catalog_record(21, "One Piece", episodes=1000, year=1999))
        import_record(make_catalog_record(44000, "One Piece Fan Letter", kind="TV Special", episodes=1))
        return db_session.scalar(select(SeriesReview.id))

    def test_list(self, review_id):
        result = runner.invoke(app, ["review", "list"])

        assert result.exit_code == 0
        assert "One Piece Fan Letter  ->  One Piece" in result.stdout

    def test_accept(self, db_session, review_id):
        result = runner.invoke(app, ["review", "accept", str(review_id)])

        assert result.exit_code == 0
        assert f"Review {review_id} accepted" in result.stdout
        series_ids = set(db_session.scalars(select(Record.series_id)))
        assert len(series_ids) == 1

    def test_dismiss_twice_fails(self, db_session, review_id):
        assert runner.invoke(app, ["review", "dismiss", str(review_id)]).exit_code == 0

        result = runner.invoke(app, ["review", "dismiss", str(review_id)])

        assert result.exit_code == 1
        assert "already dismissed" in result.output
        assert db_session.get(SeriesReview, review_id).status == ReviewStatus.DISMISSED

    def test_accept_reports_datastore_failure(self, db_session, review_id, monkeypatch):
        def failing_commit(session):
            raise IntegrityError("COMMIT", {}, Exception("constraint failed"))

        monkeypatch.setattr(Session, "commit", failing_commit)

        result = runner.invoke(app, ["review", "accept", str(review_id)])

        assert result.exit_code == 1
        assert f"review {review_id} was not resolved" in result.output
        db_session.expire_all()
        assert db_session.get(SeriesReview, review_id).status == ReviewStatus.PENDING


class TestCatalogCommands:
    @pytest.fixture
    def checkpoint_path(self, tmp_path):
        return tmp_path / "progress.json"

    @pytest.fixture
    def source(self, fake_catalog_source, make_catalog_record, monkeypatch):
        source = fake_catalog_source(
            [[1, 2]],
            {1: make_catalog_record(1, "Cowboy Bebop"), 2: make_catalog_record(2, "Trigun")},
        )
        monkeypatch.setattr(catalog_commands, "JikanClient", lambda: source)
        return source

    def test_import_json(self, db_session, source, checkpoint_path):
        result = runner.invoke(
            app, ["catalog", "import", "--checkpoint", str(checkpoint_path), "--json"]
        )

        assert result.exit_code == 0
        summary = json.loads(result.stdout)["summary"]
        assert summary["imported"] == 2
        assert summary["stopped_reason"] == "completed"
        assert db_session.scalar(select(func.count()).select_from(Record)) == 2

    def test_import_limit(self, source, checkpoint_path):
        result = runner.invoke(
            app, ["catalog", "import", "--checkpoint", str(checkpoint_path), "--limit", "1"]
        )

        assert result.exit_code == 0
        assert "Import limit reached" in result.stdout
        assert source.fetched == [1]

    def test_import_with_corrupt_checkpoint(self, source, checkpoint_path):
        checkpoint_path.write_text("garbage")

        result = runner.invoke(app, ["catalog", "import", "--checkpoint", str(checkpoint_path)])

        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_retry_failed(self, source, checkpoint_path):
        ImportCheckpoint(failed_ids={2}).save(checkpoint_path)

        result = runner.invoke(
            app, ["catalog", "retry-failed", "--checkpoint", str(checkpoint_path), "--json"]
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["summary"]["imported"] == 1
        assert source.fetched == [2]

    def test_status(self, checkpoint_path):
        checkpoint = ImportCheckpoint(current_page=3, total_pages=10, failed_ids={9})
        checkpoint.mark_processed(5)
        checkpoint.save(checkpoint_path)

        result = runner.invoke(app, ["catalog", "status", "--checkpoint", str(checkpoint_path)])

        assert result.exit_code == 0
        assert "Page: 3/10" in result.stdout
        assert "Processed: 1" in result.stdout
        assert "Failed ids: 9" in result.stdout

    def test_status_without_checkpoint(self, checkpoint_path):
        result = runner.invoke(app, ["catalog", "status", "--checkpoint", str(checkpoint_path)])

        assert result.exit_code == 0
        assert "No import checkpoint found" in result.stdout

    def test_reset_requires_confirmation(self, checkpoint_path):
        ImportCheckpoint().save(checkpoint_path)

        result = runner.invoke(
            app, ["catalog", "reset", "--checkpoint", str(checkpoint_path)], input="n\n"
        )

        assert "Reset cancelled" in result.stdout
        assert checkpoint_path.exists()

    def test_reset_yes(self, checkpoint_path):
        ImportCheckpoint().save(checkpoint_path)

        result = runner.invoke(app, ["catalog", "reset", "--checkpoint", str(checkpoint_path), "--yes"])

        assert result.exit_code == 0
        assert not checkpoint_path.exists()
