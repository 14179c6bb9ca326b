"""
Tests for supplier analytics.
"""

from analytics import calculate_supplier_analytics, get_top_suppliers


class TestSupplierAnalytics:
    def test_ranked_by_spend(self, suppliers, purchase_orders):
        report = calculate_supplier_analytics(suppliers, purchase_orders)
        assert [s.name for s in report.suppliers] == ["Bolt", "Acme", "Ghost", "Idle"]

    def test_counts_and_reliability(self, suppliers, purchase_orders):
        report = calculate_supplier_analytics(suppliers, purchase_orders)
        acme = next(s for s in report.suppliers if s.supplier_id == "1")
        assert acme.total_orders == 3
        assert acme.total_spend == 180.0
        assert acme.received_orders == 2
        assert acme.pending_orders == 1
        assert acme.cancelled_orders == 0
        # 2 of 3 received
        assert acme.reliability == 67

    def test_last_order_date_is_latest_not_last_seen(self, suppliers, purchase_orders):
        report = calculate_supplier_analytics(suppliers, purchase_orders)
        acme = next(s for s in report.suppliers if s.supplier_id == "1")
        assert acme.last_order_date == "2024-03-10"

    def test_supplier_without_orders_is_zeroed(self, suppliers, purchase_orders):
        report = calculate_supplier_analytics(suppliers, purchase_orders)
        idle = next(s for s in report.suppliers if s.supplier_id == "3")
        assert idle.total_orders == 0
        assert idle.total_spend == 0.0
        assert idle.reliability == 0
        assert idle.last_order_date is None

    def test_orders_for_unknown_supplier_are_reported_and_counted(self, suppliers, purchase_orders):
        report = calculate_supplier_analytics(suppliers, purchase_orders)
        ghost = next(s for s in report.suppliers if s.supplier_id == "9")
        assert ghost.name == "Ghost"
        assert ghost.total_spend == 10.0
        assert report.unmatched_orders == 1

    def test_reliability_rounds_half_up(self):
        orders = [
            {"supplier_id": "1", "status": "received", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
            {"supplier_id": "1", "status": "cancelled", "total_amount": 1},
        ]
        # 1/8 = 12.5%
        report = calculate_supplier_analytics([{"id": "1", "name": "Acme"}], orders)
        assert report.suppliers[0].reliability == 13
        assert report.suppliers[0].cancelled_orders == 7

    def test_string_amounts_are_parsed(self):
        orders = [{"supplier_id": "1", "status": "received", "total_amount": "12.50"}]
        report = calculate_supplier_analytics([{"id": 1, "name": "Acme"}], orders)
        assert report.suppliers[0].total_spend == 12.5
        assert report.unmatched_orders == 0

    def test_empty(self):
        report = calculate_supplier_analytics([], [])
        assert report.suppliers == []
        assert report.unmatched_orders == 0


class TestTopSuppliers:
    def test_limit(self, suppliers, purchase_orders):
        report = calculate_supplier_analytics(suppliers, purchase_orders)
        top = get_top_suppliers(report, limit=2)
        assert [s.name for s in top] == ["Bolt", "Acme"]

    def test_default_limit_is_five(self):
        suppliers = [{"id": str(i), "name": f"S{i}"} for i in range(8)]
        report = calculate_supplier_analytics(suppliers, [])
        assert len(get_top_suppliers(report)) == 5
