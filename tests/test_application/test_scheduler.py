"""
Tests for the background sync drain job
"""
from unittest.mock import Mock, patch

from communityfund.application import scheduler as scheduler_module
from communityfund.domain.sync import DrainResult


def test_drain_job_swallows_and_logs_errors(caplog):
    queue = Mock()
    queue.drain.side_effect = RuntimeError("disk full")
    with patch("communityfund.application.sync_queue.get_offline_queue", return_value=queue):
        scheduler_module._run_sync_drain()
    assert "Sync drain job failed" in caplog.text


def test_drain_job_reports_leftovers(caplog):
    queue = Mock()
    queue.drain.return_value = DrainResult(success=1, failed=2)
    with patch("communityfund.application.sync_queue.get_offline_queue", return_value=queue):
        scheduler_module._run_sync_drain()
    assert "left 2 item(s)" in caplog.text


def test_start_registers_drain_job_when_configured():
    settings = Mock(SYNC_QUEUE_PATH="/tmp/queue.json", SYNC_DRAIN_INTERVAL_MINUTES=3)
    fake_scheduler = Mock()
    fake_scheduler.get_jobs.return_value = [Mock()]
    with patch("communityfund.config.get_settings", return_value=settings), \
            patch.object(scheduler_module, "scheduler", fake_scheduler):
        scheduler_module.start_scheduler()

    kwargs = fake_scheduler.add_job.call_args.kwargs
    assert kwargs["id"] == "sync_drain"
    assert kwargs["minutes"] == 3
    assert kwargs["max_instances"] == 1
    fake_scheduler.start.assert_called_once()


def test_start_without_queue_path_has_no_jobs():
    settings = Mock(SYNC_QUEUE_PATH="", SYNC_DRAIN_INTERVAL_MINUTES=5)
    fake_scheduler = Mock()
    fake_scheduler.get_jobs.return_value = []
    with patch("communityfund.config.get_settings", return_value=settings), \
            patch.object(scheduler_module, "scheduler", fake_scheduler):
        scheduler_module.start_scheduler()

    fake_scheduler.add_job.assert_not_called()
    fake_scheduler.start.assert_called_once()
