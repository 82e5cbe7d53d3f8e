"""
Unit tests for SyncJobStore — price_sync_jobs bookkeeping.

Version: 1.0.0
"""
import pytest

from app.db.sync_job_store import SyncJobStore


pytestmark = pytest.mark.unit


@pytest.fixture
def mock_table(mock_supabase_client):
    return mock_supabase_client.client.table.return_value


@pytest.fixture
def store(mock_supabase_client):
    return SyncJobStore(supabase_client=mock_supabase_client)


class TestSyncJobStore:

    @pytest.mark.asyncio
    async def test_create_job_inserts_running_row(self, store, mock_table):
        job_id = await store.create_job(12, triggered_by="cron")

        row = mock_table.insert.call_args[0][0][0]
        assert row["id"] == job_id
        assert row["status"] == "running"
        assert row["total_products"] == 12
        assert row["triggered_by"] == "cron"

    @pytest.mark.asyncio
    async def test_update_job_terminal_status_sets_completed_at(self, store, mock_table):
        await store.update_job("job-1", status="completed", processed=3)

        payload = mock_table.update.call_args[0][0]
        assert payload["status"] == "completed"
        assert "completed_at" in payload
        mock_table.eq.assert_called_once_with("id", "job-1")

    @pytest.mark.asyncio
    async def test_update_job_progress_has_no_completed_at(self, store, mock_table):
        await store.update_job("job-1", processed=1)

        assert "completed_at" not in mock_table.update.call_args[0][0]

    @pytest.mark.asyncio
    async def test_update_job_without_fields_is_noop(self, store, mock_table):
        await store.update_job("job-1")
        mock_table.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_log_run_goes_to_logs_table(self, store, mock_table, mock_supabase_client):
        await store.log_run({"job_id": "job-1", "total": 2})

        mock_supabase_client.client.table.assert_called_with("price_sync_logs")
        assert mock_table.insert.call_args[0][0][0]["job_id"] == "job-1"
