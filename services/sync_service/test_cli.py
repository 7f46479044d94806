"""Tests for the command line entry point."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from services.sync_service import cli
from shared.config import ConfigurationError
from shared.models import DocumentSummary, SyncPlan, SyncResult


@pytest.fixture
def mock_orchestrator():
    orchestrator = Mock()
    orchestrator.execute_sync = AsyncMock(return_value=SyncResult(new=1, skipped=2, total=3))
    orchestrator.check_updates = AsyncMock(return_value=SyncPlan())
    orchestrator.migrate_images = AsyncMock(return_value=2)
    orchestrator.aclose = AsyncMock()
    with patch.object(cli, "create_orchestrator", return_value=orchestrator):
        yield orchestrator


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_sync_command(mock_orchestrator, capsys):
    assert cli.main(["sync"]) == 0

    mock_orchestrator.execute_sync.assert_awaited_once_with(full_sync=False)
    mock_orchestrator.aclose.assert_awaited_once()
    output = capsys.readouterr().out
    assert "new:     1" in output
    assert "skipped: 2" in output


def test_full_sync_command(mock_orchestrator):
    assert cli.main(["sync", "--full"]) == 0

    mock_orchestrator.execute_sync.assert_awaited_once_with(full_sync=True)


def test_check_command(mock_orchestrator, capsys):
    mock_orchestrator.check_updates.return_value = SyncPlan(
        new=[DocumentSummary(id="p1", title="Hi", last_edited_time=datetime(2025, 1, 1, tzinfo=timezone.utc))],
    )

    assert cli.main(["check"]) == 0

    output = capsys.readouterr().out
    assert "New pages (1):" in output
    assert "Hi" in output


def test_check_up_to_date(mock_orchestrator, capsys):
    assert cli.main(["check"]) == 0

    assert "All articles are up to date." in capsys.readouterr().out


def test_migrate_images_command(mock_orchestrator, capsys):
    assert cli.main(["migrate-images"]) == 0

    assert "2 articles updated" in capsys.readouterr().out


def test_failed_run_exits_nonzero(mock_orchestrator):
    mock_orchestrator.execute_sync.side_effect = httpx.ConnectError("down")

    assert cli.main(["sync"]) == 1
    mock_orchestrator.aclose.assert_awaited_once()


def test_configuration_error_exits_nonzero():
    with patch.object(cli, "create_orchestrator", side_effect=ConfigurationError("NOTION_TOKEN is not set")):
        assert cli.main(["sync"]) == 1
