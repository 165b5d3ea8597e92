# Overview: Pytest coverage for the HTTP adapter: identity, status codes, payloads.

from stockyard.services import (
    allocation_service,
    project_service,
    reconciliation_service,
    reporting_service,
    stock_service,
    transfer_service,
)

from conftest import SKU, actor_headers


class TestIdentity:

    def test_write_without_actor_is_401(self, client, stocked_item):
        response = client.post('/api/transfers', json={
            "sku": SKU, "quantity": 5, "from_location": "FARM-WS", "to_location": "MKE-SHOP",
        })
        assert response.status_code == 401

    def test_reads_do_not_need_actor(self, client, stocked_item):
        assert client.get('/api/inventory').status_code == 200
        assert client.get('/api/health').status_code == 200


class TestTransferRoutes:

    def test_full_lifecycle(self, client, stocked_item):
        response = client.post('/api/transfers', headers=actor_headers(), json={
            "sku": SKU, "quantity": 40, "from_location": "FARM-WS", "to_location": "MKE-SHOP",
        })
        assert response.status_code == 201
        transfer_id = response.json["id"]
        assert response.json["status"] == "Requested"

        response = client.post(f'/api/transfers/{transfer_id}/ship', headers=actor_headers())
        assert response.status_code == 200
        assert response.json["status"] == "In Transit"

        response = client.post(f'/api/transfers/{transfer_id}/receive', headers=actor_headers(), json={})
        assert response.status_code == 200
        assert response.json["quantity_received"] == 40

        response = client.post(f'/api/transfers/{transfer_id}/cancel', headers=actor_headers())
        assert response.status_code == 409
        assert response.json["kind"] == "invalid_state"

    def test_insufficient_stock_payload(self, client, stocked_item):
        response = client.post('/api/transfers', headers=actor_headers(), json={
            "sku": SKU, "quantity": 400, "from_location": "FARM-WS", "to_location": "MKE-SHOP",
        })
        assert response.status_code == 400
        assert response.json["kind"] == "insufficient_stock"
        assert response.json["available"] == 100
        assert response.json["requested"] == 400

    def test_missing_transfer_is_404(self, client, item):
        assert client.get('/api/transfers/999').status_code == 404

    def test_actor_is_recorded(self, client, stocked_item):
        client.post('/api/transfers', headers=actor_headers("Shipper@Example.com"), json={
            "sku": SKU, "quantity": 1, "from_location": "FARM-WS", "to_location": "MKE-SHOP",
        })
        [transfer] = transfer_service.list_transfers()
        assert transfer.requested_by == "shipper@example.com"


class TestInventoryRoutes:

    def test_create_item_conflict(self, client, item):
        response = client.post('/api/inventory', headers=actor_headers(), json={
            "sku": SKU, "description": "dup",
        })
        assert response.status_code == 409

    def test_adjust_and_audit_log(self, client, stocked_item):
        response = client.post('/api/stock/adjust', headers=actor_headers(), json={
            "sku": SKU, "location_id": "FARM-WS", "new_quantity": 90, "reason": "Recount",
        })
        assert response.status_code == 200
        assert response.json["quantity"] == 90

        response = client.get('/api/audit-log?limit=1')
        assert response.status_code == 200
        [entry] = response.json
        assert entry["action_type"] == "Stock Adjustment"
        assert (entry["quantity_before"], entry["quantity_after"]) == (100, 90)

    def test_bad_limit(self, client, item):
        assert client.get('/api/audit-log?limit=abc').status_code == 400

    def test_par_levels_route(self, client, item):
        response = client.patch(f'/api/inventory/{SKU}/par-levels', headers=actor_headers(), json={
            "farm_par_level": 5, "mke_par_level": 7,
        })
        assert response.status_code == 200
        assert response.json["mke_par_level"] == 7


class TestProjectRoutes:

    def test_allocate_pick_confirm(self, client, stocked_item, project):
        pid = project.project_id
        response = client.post(f'/api/projects/{pid}/allocations', headers=actor_headers(), json={
            "sku": SKU, "quantity": 90, "source_location": "FARM-WS",
        })
        assert response.status_code == 201

        response = client.post(f'/api/projects/{pid}/allocations', headers=actor_headers(), json={
            "sku": SKU, "quantity": 20, "source_location": "FARM-WS",
        })
        assert response.status_code == 400

        response = client.post(f'/api/projects/{pid}/generate-pick-list', headers=actor_headers())
        assert response.status_code == 201
        [pick] = response.json

        response = client.post(f'/api/pick-lists/{pick["id"]}/confirm', headers=actor_headers(), json={
            "quantity_picked": 90,
        })
        assert response.status_code == 200
        assert response.json["status"] == "Completed"

        response = client.post(f'/api/projects/{pid}/generate-pick-list', headers=actor_headers())
        assert response.status_code == 409
        assert response.json["kind"] == "no_reservations"

    def test_bulk_requires_list(self, client, project):
        response = client.post(f'/api/projects/{project.project_id}/allocations/bulk',
                               headers=actor_headers(), json={"allocations": "nope"})
        assert response.status_code == 400

    def test_pull_batch_route(self, client, stocked_item, project, actor):
        allocation = allocation_service.allocate(actor, project.project_id, SKU, 10, "FARM-WS")
        response = client.post(f'/api/projects/{project.project_id}/allocations/pull-batch',
                               headers=actor_headers(), json={"allocation_ids": [allocation.id]})
        assert response.status_code == 200
        assert response.json[0]["status"] == "Pulled"

    def test_clients_and_dashboard(self, client, project):
        assert client.get('/api/clients').json[0]["name"] == "Lakeview Homes"
        assert client.get('/api/dashboard').json["active_projects"] == 1


class TestReconciliationRoutes:

    def test_submit_and_fetch(self, client, stocked_item):
        response = client.post('/api/reconciliation-reports', headers=actor_headers(), json={
            "location_id": "FARM-WS",
            "items": [{"sku": SKU, "system_qty": 10, "counted_qty": 8}],
        })
        assert response.status_code == 201
        assert response.json["discrepancy_count"] == 1
        assert response.json["items"][0]["difference"] == -2

        report_id = response.json["id"]
        assert client.get(f'/api/reconciliation-reports/{report_id}').status_code == 200
        assert client.get('/api/reports/par-levels').json == []


class TestUnexpectedFailures:
    """Read endpoints answer with a JSON 500, not an HTML error page."""

    @staticmethod
    def _boom(*args, **kwargs):
        raise RuntimeError("database went away")

    def test_list_projects(self, client, monkeypatch):
        monkeypatch.setattr(project_service, "list_projects", self._boom)
        response = client.get('/api/projects')
        assert response.status_code == 500
        assert response.json == {"error": "Failed to list projects"}

    def test_par_level_report(self, client, monkeypatch):
        monkeypatch.setattr(reconciliation_service, "below_par_alerts", self._boom)
        response = client.get('/api/reports/par-levels')
        assert response.status_code == 500
        assert response.json["error"] == "Failed to build par level report"

    def test_dashboard(self, client, monkeypatch):
        monkeypatch.setattr(reporting_service, "dashboard_summary", self._boom)
        response = client.get('/api/dashboard')
        assert response.status_code == 500
        assert response.is_json

    def test_inventory_summary(self, client, monkeypatch):
        monkeypatch.setattr(stock_service, "inventory_summary", self._boom)
        response = client.get('/api/inventory')
        assert response.status_code == 500
        assert response.json == {"error": "Failed to load inventory"}
