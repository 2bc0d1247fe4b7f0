"""Tests for Triage Service HTTP handler."""
import json
import threading
import time
from unittest.mock import patch

import pytest

from safehaven.services.triage_service import handler
from safehaven.services.triage_service.classifier import TriageClassifier
from safehaven.services.triage_service.config import TriageConfig
from safehaven.services.triage_service.quick_prompts import lookup_quick_prompt
from safehaven.services.triage_service.scheduler import ClockScheduler, ManualClock


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def client(clock):
    """Create Flask test client on virtual time with no leftover sessions."""
    handler.app.config['TESTING'] = True
    with patch.object(handler, "scheduler", ClockScheduler(clock)), \
            patch.dict(handler._sessions, clear=True), \
            patch.dict(handler._last_seen, clear=True):
        with handler.app.test_client() as client:
            yield client


def open_session(client):
    response = client.post('/sessions')
    assert response.status_code == 201
    return json.loads(response.data)


class TestHealthEndpoint:

    def test_health_returns_200(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert data['service'] == 'triage-service'
        assert 'lexicon_version' in data

    def test_ready_returns_200(self, client):
        response = client.get('/ready')
        assert response.status_code == 200
        assert json.loads(response.data)['status'] == 'ready'


class TestStaticEndpoints:

    def test_resources(self, client):
        data = json.loads(client.get('/resources').data)
        assert len(data['resources']) == 3
        assert data['resources'][0]['dial_uri'] == 'tel:988'

    def test_quick_prompts(self, client):
        data = json.loads(client.get('/quick-prompts').data)
        labels = [p['label'] for p in data['quick_prompts']]
        assert labels == ['Relaxation', 'Motivation', 'Talk to Someone']


class TestSessionEndpoints:

    def test_open_session_seeds_greeting(self, client):
        data = open_session(client)
        assert len(data['transcript']) == 1
        assert data['transcript'][0]['author'] == 'agent'
        assert data['composing'] is False
        assert data['emergency']['emphasized'] is False

    def test_message_turn(self, client, clock):
        session_id = open_session(client)['session_id']

        response = client.post(
            f'/sessions/{session_id}/messages',
            json={'message': "I'm so stressed about work"},
        )
        assert response.status_code == 202
        data = json.loads(response.data)
        assert data['composing'] is True
        assert len(data['transcript']) == 2

        response = client.post(
            f'/sessions/{session_id}/messages',
            json={'message': 'are you there?'},
        )
        assert response.status_code == 409

        clock.advance(1.5)
        data = json.loads(client.get(f'/sessions/{session_id}').data)
        assert data['composing'] is False
        assert len(data['transcript']) == 3
        assert data['last_tier'] == 'distress'

    def test_crisis_turn_emphasizes_resources(self, client, clock):
        session_id = open_session(client)['session_id']
        client.post(
            f'/sessions/{session_id}/messages',
            json={'message': 'I want to kill myself'},
        )

        clock.advance(1.5)
        data = json.loads(client.get(f'/sessions/{session_id}').data)
        assert data['last_tier'] == 'crisis'
        assert data['emergency']['emphasized'] is True

    @pytest.mark.parametrize("body", [{}, {'message': '   '}, {'message': 42}])
    def test_invalid_message_returns_400(self, client, body):
        session_id = open_session(client)['session_id']
        response = client.post(f'/sessions/{session_id}/messages', json=body)
        assert response.status_code == 400

    def test_unknown_session_returns_404(self, client):
        assert client.get('/sessions/sess_missing').status_code == 404
        response = client.post('/sessions/sess_missing/messages', json={'message': 'hi'})
        assert response.status_code == 404

    def test_quick_prompt_turn(self, client, clock):
        session_id = open_session(client)['session_id']

        response = client.post(
            f'/sessions/{session_id}/quick-prompts',
            json={'label': 'Relaxation'},
        )
        assert response.status_code == 202

        clock.advance(1.0)
        data = json.loads(client.get(f'/sessions/{session_id}').data)
        assert data['transcript'][-1]['text'] == lookup_quick_prompt(
            'Relaxation'
        ).scripted_response

    def test_unknown_quick_prompt_returns_400(self, client):
        session_id = open_session(client)['session_id']
        response = client.post(
            f'/sessions/{session_id}/quick-prompts',
            json={'label': 'Meditation'},
        )
        assert response.status_code == 400
        data = json.loads(response.data)
        assert data['error'] == 'unknown_quick_prompt'
        assert 'Relaxation' in data['known_labels']

    def test_close_session_while_composing(self, client, clock):
        session_id = open_session(client)['session_id']
        client.post(f'/sessions/{session_id}/messages', json={'message': 'hello'})

        assert client.delete(f'/sessions/{session_id}').status_code == 204
        clock.advance(5)
        assert client.get(f'/sessions/{session_id}').status_code == 404
        assert handler.scheduler.pending_count == 0


class TestConcurrentRequests:
    """The threaded dev server must not break one-reply-at-a-time."""

    def test_concurrent_messages_leave_one_pending_reply(self, client):
        session_id = open_session(client)['session_id']
        classify = TriageClassifier.classify_with_matches
        codes = []

        def slow_classify(self, text):
            time.sleep(0.2)
            return classify(self, text)

        def post(text):
            with handler.app.test_client() as thread_client:
                response = thread_client.post(
                    f'/sessions/{session_id}/messages',
                    json={'message': text},
                )
                codes.append(response.status_code)

        with patch.object(TriageClassifier, 'classify_with_matches', slow_classify):
            threads = [
                threading.Thread(target=post, args=(text,))
                for text in ("I'm scared", "I'm angry")
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert sorted(codes) == [202, 409]
        assert handler.scheduler.pending_count == 1
        data = json.loads(client.get(f'/sessions/{session_id}').data)
        assert [e['author'] for e in data['transcript']] == ['agent', 'user']


class TestIdleExpiry:

    def test_idle_session_is_evicted(self, client, clock):
        with patch.object(handler, 'session_idle_ttl_seconds', 60.0):
            session_id = open_session(client)['session_id']
            client.post(f'/sessions/{session_id}/messages', json={'message': 'hello'})

            clock.advance(30)
            assert client.get(f'/sessions/{session_id}').status_code == 200

            clock.advance(61)
            assert client.get(f'/sessions/{session_id}').status_code == 404
            assert session_id not in handler._sessions
            assert session_id not in handler._last_seen

    def test_active_session_is_kept(self, client, clock):
        with patch.object(handler, 'session_idle_ttl_seconds', 60.0):
            idle_id = open_session(client)['session_id']
            active_id = open_session(client)['session_id']

            for _ in range(3):
                clock.advance(40)
                assert client.get(f'/sessions/{active_id}').status_code == 200

            assert active_id in handler._sessions
            assert idle_id not in handler._sessions

    def test_expiry_cancels_pending_reply(self, client, clock):
        slow = TriageConfig(reply_delay_seconds=600)
        with patch.object(handler, 'session_idle_ttl_seconds', 60.0), \
                patch.object(handler, 'config', slow):
            session_id = open_session(client)['session_id']
            session = handler._sessions[session_id]
            client.post(f'/sessions/{session_id}/messages', json={'message': 'hello'})
            assert handler.scheduler.pending_count == 1

            clock.advance(61)
            open_session(client)

            assert session.is_live is False
            assert handler.scheduler.pending_count == 0
            assert [e.author.value for e in session.get_transcript()] == ['agent', 'user']
