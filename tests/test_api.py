"""
API layer tests.

Tests for job and per-user endpoints.
"""
import pytest

from briefcast.models.job import JobStatus
from briefcast.schemas.job import JobResult


async def create(client, user_id='user-1', **fields):
    response = await client.post('/jobs', json={'user_id': user_id, **fields})
    assert response.status_code == 201
    return response.json()


async def finish(registry, user_id, job_id, status=JobStatus.completed):
    result = None
    if status == JobStatus.completed:
        result = JobResult(audio_url=f'https://cdn.example/{job_id}.mp3', transcript='SARAH: Hi', duration=300)
    await registry.get(user_id).update_status(job_id, status=status, result=result, error='boom')


class TestJobEndpoints:
    """Tests for /jobs endpoints."""

    @pytest.mark.asyncio
    async def test_create_job_returns_position(self, client, dispatcher):
        """Test POST /jobs accepts a job and queues it for processing."""
        first = await create(client, payload={'content_ids': ['119-hr-1']})
        second = await create(client, type='weekly')

        assert first['queue_position'] == 1
        assert first['estimated_seconds'] == 45
        assert second['queue_position'] == 2
        assert second['estimated_seconds'] == 90
        assert first['job_id'] != second['job_id']
        assert dispatcher.pending_count == 2

    @pytest.mark.asyncio
    async def test_create_job_with_client_id(self, client):
        data = await create(client, job_id='brief-001')

        assert data['job_id'] == 'brief-001'

    @pytest.mark.asyncio
    async def test_create_job_duplicate_id_conflicts(self, client):
        await create(client, job_id='brief-001')

        response = await client.post('/jobs', json={'user_id': 'user-2', 'job_id': 'brief-001'})

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_create_job_queue_full(self, client, monkeypatch):
        monkeypatch.setattr('briefcast.services.job_store.MAX_QUEUE_LENGTH', 2)
        await create(client)
        await create(client)

        response = await client.post('/jobs', json={'user_id': 'user-1'})

        assert response.status_code == 429

    @pytest.mark.asyncio
    async def test_create_job_requires_user_id(self, client):
        """Test POST /jobs validates required fields."""
        response = await client.post('/jobs', json={})

        assert response.status_code == 422  # Validation error

    @pytest.mark.asyncio
    async def test_create_job_rejects_unknown_type(self, client):
        response = await client.post('/jobs', json={'user_id': 'user-1', 'type': 'hourly'})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_get_single_job(self, client):
        """Test GET /jobs/{id} returns job details."""
        job_id = (await create(client, payload={'content_ids': ['119-hr-1']}))['job_id']

        response = await client.get(f'/jobs/{job_id}')

        assert response.status_code == 200
        data = response.json()
        assert data['id'] == job_id
        assert data['status'] == 'queued'
        assert data['progress'] == 0
        assert data['queue_position'] == 1
        assert data['payload']['content_ids'] == ['119-hr-1']
        assert data['result'] is None

    @pytest.mark.asyncio
    async def test_get_completed_job_includes_result(self, client, registry):
        job_id = (await create(client))['job_id']
        await finish(registry, 'user-1', job_id)

        data = (await client.get(f'/jobs/{job_id}')).json()

        assert data['status'] == 'completed'
        assert data['queue_position'] is None
        assert data['result']['audio_url'].endswith(f'{job_id}.mp3')
        assert data['completed_at'] is not None

    @pytest.mark.asyncio
    async def test_get_job_not_found(self, client):
        """Test GET /jobs/{id} returns 404 for invalid ID."""
        response = await client.get('/jobs/nonexistent-id')

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_cancel_queued_job(self, client):
        """Test DELETE /jobs/{id} cancels a queued job."""
        job_id = (await create(client))['job_id']

        response = await client.delete(f'/jobs/{job_id}')

        assert response.status_code == 200
        assert response.json() == {'job_id': job_id, 'cancelled': True}

        data = (await client.get(f'/jobs/{job_id}')).json()
        assert data['status'] == 'failed'
        assert data['error'] == 'cancelled by user'

    @pytest.mark.asyncio
    async def test_cancel_processing_job_refused(self, client, registry):
        job_id = (await create(client))['job_id']
        await registry.get('user-1').update_status(job_id, status=JobStatus.processing)

        response = await client.delete(f'/jobs/{job_id}')

        assert response.json()['cancelled'] is False
        assert (await client.get(f'/jobs/{job_id}')).json()['status'] == 'processing'

    @pytest.mark.asyncio
    async def test_cancel_job_not_found(self, client):
        """Test DELETE /jobs/{id} returns 404 for invalid ID."""
        response = await client.delete('/jobs/nonexistent-id')

        assert response.status_code == 404


class TestUserEndpoints:
    """Tests for /users/{user_id} endpoints."""

    @pytest.mark.asyncio
    async def test_queue_in_processing_order(self, client):
        ids = [(await create(client))['job_id'] for _ in range(3)]

        response = await client.get('/users/user-1/queue')

        assert response.status_code == 200
        data = response.json()
        assert data['user_id'] == 'user-1'
        assert [j['id'] for j in data['jobs']] == ids

    @pytest.mark.asyncio
    async def test_history_newest_first(self, client, registry):
        """Test GET /users/{id}/history returns finished jobs newest first."""
        first = (await create(client))['job_id']
        second = (await create(client))['job_id']
        await finish(registry, 'user-1', first)
        await finish(registry, 'user-1', second, status=JobStatus.failed)

        data = (await client.get('/users/user-1/history')).json()

        assert [j['id'] for j in data['jobs']] == [second, first]
        assert (await client.get('/users/user-1/queue')).json()['jobs'] == []

    @pytest.mark.asyncio
    async def test_history_is_per_user(self, client, registry):
        job_id = (await create(client, user_id='user-2'))['job_id']
        await finish(registry, 'user-2', job_id)

        assert (await client.get('/users/user-1/history')).json()['jobs'] == []
        assert len((await client.get('/users/user-2/history')).json()['jobs']) == 1

    @pytest.mark.asyncio
    async def test_clear_history(self, client, registry):
        """Test DELETE /users/{id}/history clears history."""
        job_id = (await create(client))['job_id']
        await finish(registry, 'user-1', job_id)

        response = await client.delete('/users/user-1/history')
        assert response.status_code == 204

        data = (await client.get('/users/user-1/history')).json()
        assert data['jobs'] == []

    @pytest.mark.asyncio
    async def test_stats(self, client, registry):
        ids = [(await create(client))['job_id'] for _ in range(4)]
        await finish(registry, 'user-1', ids[0])
        await finish(registry, 'user-1', ids[1])
        await finish(registry, 'user-1', ids[2], status=JobStatus.failed)

        data = (await client.get('/users/user-1/stats')).json()

        assert data == {'queue_length': 1, 'total_generated': 3, 'success_rate': 66.7}

    @pytest.mark.asyncio
    async def test_stats_for_new_user(self, client):
        data = (await client.get('/users/nobody/stats')).json()

        assert data == {'queue_length': 0, 'total_generated': 0, 'success_rate': 100.0}

    @pytest.mark.asyncio
    async def test_latest_returns_most_recent_completed(self, client, registry):
        done = (await create(client))['job_id']
        failed = (await create(client))['job_id']
        await finish(registry, 'user-1', done)
        await finish(registry, 'user-1', failed, status=JobStatus.failed)

        response = await client.get('/users/user-1/latest')

        assert response.status_code == 200
        assert response.json()['id'] == done

    @pytest.mark.asyncio
    async def test_latest_not_found(self, client):
        response = await client.get('/users/user-1/latest')

        assert response.status_code == 404
