"""
Integration tests for /api/margins — rule CRUD, alerts, rule application.
Version: 1.0.0
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from app.container import get_margin_service, get_margin_store
from app.core.auth import get_current_user


@pytest.fixture
def margin_service():
    service = MagicMock()
    service.apply_margin_rule = AsyncMock(return_value={"product_id": "prod-1", "changed": True, "new_price": 14.5})
    return service


@pytest.fixture
def margins_client(app, client, mock_margin_store, margin_service):
    app.dependency_overrides[get_margin_store] = lambda: mock_margin_store
    app.dependency_overrides[get_margin_service] = lambda: margin_service
    return client


@pytest.mark.integration
class TestRules:

    def test_list_rules(self, margins_client, mock_margin_store, sample_rule):
        mock_margin_store.list_rules.return_value = [sample_rule]
        assert margins_client.get("/api/margins/rules").json() == {"rules": [sample_rule]}

    def test_create_rule(self, margins_client, mock_margin_store, sample_rule):
        mock_margin_store.create_rule.return_value = sample_rule

        response = margins_client.post("/api/margins/rules", json={"name": "Kitchen", "min_margin": 30, "category": "Kitchen"})

        assert response.status_code == 201
        assert response.json()["id"] == "rule-1"
        stored = mock_margin_store.create_rule.call_args[0][0]
        assert stored["action"] == "alert"
        assert stored["is_active"] is True

    def test_create_rule_bad_action(self, margins_client):
        response = margins_client.post("/api/margins/rules", json={"name": "x", "action": "delete-everything"})
        assert response.status_code == 422

    def test_create_rule_store_returned_nothing(self, margins_client, mock_margin_store):
        mock_margin_store.create_rule.return_value = None
        assert margins_client.post("/api/margins/rules", json={"name": "x"}).status_code == 500

    def test_update_rule_partial(self, margins_client, mock_margin_store, sample_rule):
        mock_margin_store.update_rule.return_value = dict(sample_rule, priority=50)

        response = margins_client.put("/api/margins/rules/rule-1", json={"priority": 50})

        assert response.status_code == 200
        mock_margin_store.update_rule.assert_awaited_once_with("rule-1", {"priority": 50})

    def test_update_rule_empty(self, margins_client):
        assert margins_client.put("/api/margins/rules/rule-1", json={}).status_code == 400

    def test_update_rule_missing(self, margins_client, mock_margin_store):
        mock_margin_store.update_rule.return_value = None
        assert margins_client.put("/api/margins/rules/nope", json={"priority": 1}).status_code == 404

    def test_delete_requires_admin(self, margins_client):
        assert margins_client.delete("/api/margins/rules/rule-1").status_code == 403

    def test_delete_as_admin(self, app, margins_client, mock_admin_user):
        app.dependency_overrides[get_current_user] = lambda: mock_admin_user

        response = margins_client.delete("/api/margins/rules/rule-1")

        assert response.json() == {"deleted": True, "id": "rule-1"}


@pytest.mark.integration
class TestAlertsAndApply:

    def test_list_alerts(self, margins_client, mock_margin_store):
        margins_client.get("/api/margins/alerts?resolved=true&limit=10")
        mock_margin_store.list_alerts.assert_awaited_once_with(resolved=True, limit=10)

    def test_resolve_alert_missing(self, margins_client, mock_margin_store):
        mock_margin_store.resolve_alert.return_value = False
        assert margins_client.post("/api/margins/alerts/a-1/resolve").status_code == 404

    def test_apply_best_match(self, margins_client, margin_service):
        response = margins_client.post("/api/margins/apply/prod-1")
        assert response.json()["new_price"] == 14.5
        margin_service.apply_margin_rule.assert_awaited_once_with("prod-1", None)

    def test_apply_named_rule(self, margins_client, margin_service, mock_margin_store, sample_rule):
        mock_margin_store.get_rule.return_value = sample_rule
        margins_client.post("/api/margins/apply/prod-1?rule_id=rule-1")
        margin_service.apply_margin_rule.assert_awaited_once_with("prod-1", sample_rule)

    def test_apply_unknown_rule(self, margins_client):
        assert margins_client.post("/api/margins/apply/prod-1?rule_id=nope").status_code == 404
