import pytest
from fastapi.testclient import TestClient

from coherence_field.engine import CoherenceFieldEngine
from coherence_field.errors import (
    InvalidAmplitude,
    NoParticipantRecord,
    ReserveDepleted,
)
from coherence_field.server import create_app, status_code_for

from conftest import AMPLITUDE


@pytest.fixture
def client(config):
    engine = CoherenceFieldEngine(config=config)
    return TestClient(create_app(engine))


def _enter(client, pid, phase=1.0, cycle='quarter'):
    return client.post('/participants', json={
        'participant_id': pid, 'amplitude': AMPLITUDE, 'cycle': cycle, 'phase': phase,
    })


class TestErrorMapping:
    def test_status_codes(self):
        assert status_code_for(NoParticipantRecord('x')) == 404
        assert status_code_for(ReserveDepleted('x')) == 409
        assert status_code_for(InvalidAmplitude('x')) == 422


class TestParticipantRoutes:
    def test_enter_and_get(self, client):
        response = _enter(client, 'a')
        assert response.status_code == 200
        assert response.json()['state'] == 'attuning'
        assert client.get('/participants/a').json()['amplitude'] == AMPLITUDE
        assert client.get('/participants').json() == ['a']

    def test_duplicate_conflicts(self, client):
        _enter(client, 'a')
        response = _enter(client, 'a')
        assert response.status_code == 409
        assert response.json()['error'] == 'participant_already_entered'

    def test_unknown_participant(self, client):
        response = client.get('/participants/ghost')
        assert response.status_code == 404
        assert response.json()['error'] == 'no_participant_record'

    def test_amplitude_too_small(self, client):
        response = client.post('/participants', json={
            'participant_id': 'a', 'amplitude': 5, 'cycle': 'full',
        })
        assert response.status_code == 422

    def test_bad_cycle_rejected(self, client):
        response = client.post('/participants', json={
            'participant_id': 'a', 'amplitude': AMPLITUDE, 'cycle': 'fortnight',
        })
        assert response.status_code == 422

    def test_claim_and_governance(self, client):
        _enter(client, 'a')
        client.post('/field/step', json={'epochs': 3})
        receipt = client.post('/participants/a/claim').json()
        assert receipt['amount'] > 0
        weight = client.get('/participants/a/governance').json()
        assert weight['governance_weight'] == AMPLITUDE // 2

    def test_decohere(self, client):
        _enter(client, 'a')
        assert client.post('/participants/a/decohere', json={}).status_code == 409
        response = client.post('/participants/a/decohere', json={'force': True})
        assert response.status_code == 200
        assert response.json()['returned_amplitude'] == AMPLITUDE
        assert client.get('/participants/a').status_code == 404

    def test_queued_exit(self, client):
        _enter(client, 'a')
        assert client.post('/participants/a/exit', json={'force': True}).json()['queued']
        client.post('/field/step', json={})
        assert client.get('/participants').json() == []


class TestFieldRoutes:
    def test_phase_update_and_advance(self, client):
        _enter(client, 'a')
        first = client.post('/participants/a/phase', json={}).json()
        second = client.post('/participants/a/phase', json={}).json()
        assert first['phase'] == second['phase']
        field = client.post('/field/advance', json={'epoch_index': 1}).json()
        assert field['epoch'] == 1
        assert field['global_phase'] == first['phase']

    def test_stale_epoch(self, client):
        response = client.post('/field/advance', json={'epoch_index': 0})
        assert response.status_code == 409
        assert response.json()['error'] == 'stale_epoch'

    def test_skipped_epoch(self, client):
        response = client.post('/field/advance', json={'epoch_index': 5})
        assert response.status_code == 422

    def test_step_and_status(self, client):
        _enter(client, 'a')
        _enter(client, 'b', phase=1.2)
        field = client.post('/field/step', json={'epochs': 4, 'dt': 0.5}).json()
        assert field['epoch'] == 4
        status = client.get('/status').json()
        assert status['participant_count'] == 2
        assert client.get('/snapshot').json()['field']['epoch'] == 4
        assert len(client.get('/events', params={'limit': 3}).json()) == 3

    def test_events_limit_must_be_positive(self, client):
        _enter(client, 'a')
        assert client.get('/events', params={'limit': 0}).status_code == 422
        assert client.get('/events', params={'limit': -2}).status_code == 422
        events = client.get('/events', params={'limit': 1}).json()
        assert [e['type'] for e in events] == ['participant_entered']


class TestCouplingRoutes:
    def test_couple_and_uncouple(self, client):
        _enter(client, 'a')
        _enter(client, 'b')
        response = client.post('/couplings', json={
            'source_id': 'a', 'target_id': 'b', 'strength': 0.5, 'locked_amplitude': 10,
        })
        assert response.status_code == 200
        assert response.json()['strength'] == 500_000_000
        assert client.delete('/couplings/a/b').status_code == 200
        assert client.delete('/couplings/a/b').status_code == 404

    def test_self_coupling(self, client):
        _enter(client, 'a')
        response = client.post('/couplings', json={
            'source_id': 'a', 'target_id': 'a', 'strength': 0.5, 'locked_amplitude': 0,
        })
        assert response.status_code == 422
        assert response.json()['error'] == 'self_coupling'


class TestReserveRoutes:
    def test_fund(self, client):
        before = client.get('/status').json()['golden_reserve_balance']
        response = client.post('/reserve/fund', json={'amount': 7, 'golden': True})
        assert response.json()['balance'] == before + 7
