"""
HTTP API: checkout, sale lookup and the daily summary.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import func

from app.models import PaymentMethodType, Product, Sale


class TestCreateSale:
    """POST /api/sales"""

    def payload(self, product, payment_methods, amount='200.00', **extra):
        data = {
            'items': [{'productId': product.id, 'quantity': 2}],
            'payments': [{'paymentMethodId': payment_methods[PaymentMethodType.CASH].id, 'amount': amount}],
        }
        data.update(extra)
        return data

    def test_requires_operator(self, client, product, payment_methods):
        response = client.post('/api/sales', json=self.payload(product, payment_methods))

        assert response.status_code == 401
        assert response.get_json()['kind'] == 'UNAUTHORIZED'

    def test_checkout_returns_receipt(self, logged_client, session, operator, product, payment_methods):
        response = logged_client.post('/api/sales', json=self.payload(product, payment_methods))

        assert response.status_code == 201
        body = response.get_json()
        assert body['code'].startswith('V')
        assert body['status'] == 'COMPLETED'
        assert body['userId'] == operator.id
        assert Decimal(body['total']) == Decimal('200.00')
        assert Decimal(body['netProfit']) == Decimal('80.00')
        assert body['items'][0]['productId'] == product.id
        assert body['items'][0]['quantity'] == 2
        assert body['payments'][0]['paymentMethodType'] == 'CASH'
        assert Decimal(body['payments'][0]['netAmount']) == Decimal('200.00')

        assert session.get(Product, product.id, populate_existing=True).stock == 8

    def test_mismatch_is_unprocessable(self, logged_client, session, product, payment_methods):
        response = logged_client.post('/api/sales', json=self.payload(product, payment_methods, '199.98'))

        assert response.status_code == 422
        body = response.get_json()
        assert body['kind'] == 'PAYMENT_MISMATCH'
        assert body['status'] == 'error'
        assert session.query(func.count(Sale.id)).scalar() == 0

    def test_insufficient_stock_is_conflict(self, logged_client, product, payment_methods):
        data = self.payload(product, payment_methods, '1100.00')
        data['items'][0]['quantity'] = 11
        response = logged_client.post('/api/sales', json=data)

        assert response.status_code == 409
        body = response.get_json()
        assert body['kind'] == 'INSUFFICIENT_STOCK'
        assert body['product_id'] == product.id

    def test_malformed_payload(self, logged_client, product, payment_methods):
        response = logged_client.post('/api/sales', json={'items': [], 'payments': []})

        assert response.status_code == 400
        body = response.get_json()
        assert body['kind'] == 'VALIDATION_ERROR'
        assert body['errors']

    def test_missing_body(self, logged_client):
        response = logged_client.post('/api/sales', data='not json', content_type='text/plain')
        assert response.status_code == 400

    def test_unknown_product_is_not_found(self, logged_client, payment_methods):
        response = logged_client.post('/api/sales', json={
            'items': [{'productId': 12345, 'quantity': 1}],
            'payments': [{'paymentMethodId': payment_methods[PaymentMethodType.CASH].id, 'amount': '1.00'}],
        })

        assert response.status_code == 404
        assert response.get_json()['kind'] == 'PRODUCT_NOT_FOUND'


class TestReadSales:
    """GET /api/sales and /api/sales/<id>"""

    def checkout(self, client, product, payment_methods):
        response = client.post('/api/sales', json={
            'items': [{'productId': product.id, 'quantity': 1}],
            'payments': [{'paymentMethodId': payment_methods[PaymentMethodType.PIX].id, 'amount': '100.00'}],
        })
        assert response.status_code == 201
        return response.get_json()

    def test_detail(self, logged_client, product, payment_methods):
        created = self.checkout(logged_client, product, payment_methods)

        response = logged_client.get(f"/api/sales/{created['id']}")

        assert response.status_code == 200
        assert response.get_json() == created

    def test_detail_not_found(self, logged_client):
        response = logged_client.get('/api/sales/999')
        assert response.status_code == 404
        assert response.get_json()['kind'] == 'NOT_FOUND'

    def test_list_newest_first_with_filters(self, logged_client, product, payment_methods):
        first = self.checkout(logged_client, product, payment_methods)
        second = self.checkout(logged_client, product, payment_methods)

        response = logged_client.get('/api/sales?status=completed&startDate=2000-01-01')
        assert [sale['id'] for sale in response.get_json()] == [second['id'], first['id']]

        response = logged_client.get('/api/sales?endDate=2000-01-01')
        assert response.get_json() == []

    def test_list_rejects_bad_filters(self, logged_client):
        assert logged_client.get('/api/sales?status=LOST').status_code == 400
        assert logged_client.get('/api/sales?startDate=yesterday').status_code == 400


class TestFinancialSummary:
    """GET /api/financeiro/resumo"""

    def test_summary(self, logged_client, product, payment_methods):
        logged_client.post('/api/sales', json={
            'items': [{'productId': product.id, 'quantity': 2}],
            'payments': [{'paymentMethodId': payment_methods[PaymentMethodType.CASH].id, 'amount': '200.00'}],
        })
        today = datetime.now(timezone.utc).date().isoformat()

        response = logged_client.get(f'/api/financeiro/resumo?date={today}')

        assert response.status_code == 200
        body = response.get_json()
        assert body['sales_count'] == 1
        assert Decimal(body['revenue']) == Decimal('200.00')
        assert Decimal(body['profit']) == Decimal('80.00')

    def test_bad_date(self, logged_client):
        assert logged_client.get('/api/financeiro/resumo?date=ontem').status_code == 400


class TestMetrics:
    """GET /metrics"""

    def test_checkout_counters_exposed(self, logged_client, product, payment_methods):
        logged_client.post('/api/sales', json={'items': [], 'payments': []})

        response = logged_client.get('/metrics')

        assert response.status_code == 200
        text = response.get_data(as_text=True)
        assert 'sales_completed_total' in text
        assert 'checkout_failures_total{kind="VALIDATION_ERROR"}' in text
