"""Sales blueprint - JSON checkout API for the POS terminals."""
from datetime import date, datetime
from typing import Optional, Tuple, Union

from flask import Blueprint, current_app, g, jsonify, request, Response

from app.database import get_session
from app.exceptions import NotFoundError, ValidationError
from app.middleware import require_login
from app.models import SaleStatus
from app.schemas import parse_checkout_request, serialize_sale
from app.services.ledger_service import get_income_summary
from app.services.sales_service import SaleTransactionEngine, get_sale, list_sales

sales_bp = Blueprint('sales', __name__, url_prefix='/api')


def get_engine() -> SaleTransactionEngine:
    """Checkout engine bound to the current app's database."""
    engine = current_app.extensions.get('sale_engine')
    if engine is None:
        engine = SaleTransactionEngine.from_app(current_app)
        current_app.extensions['sale_engine'] = engine
    return engine


def _parse_datetime_arg(name: str) -> Optional[datetime]:
    raw = request.args.get(name, '').strip()
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f'Parâmetro "{name}" inválido: {raw}')


@sales_bp.route('/sales', methods=['POST'])
@require_login
def create_sale() -> Tuple[Response, int]:
    """Checkout: turn the posted cart into a completed sale."""
    checkout_request = parse_checkout_request(request.get_json(silent=True))

    sale = get_engine().checkout(checkout_request, g.user_id)

    current_app.logger.info(
        f"[SALE] create_sale: code={sale.code}, user_id={g.user_id}, total={sale.total}"
    )
    return jsonify(serialize_sale(sale)), 201


@sales_bp.route('/sales/<int:sale_id>', methods=['GET'])
@require_login
def detail_sale(sale_id: int) -> Union[Response, Tuple[Response, int]]:
    """Sale with items and payments (receipt data)."""
    sale = get_sale(get_session(), sale_id)
    if sale is None:
        raise NotFoundError(f'Venda {sale_id} não encontrada')
    return jsonify(serialize_sale(sale))


@sales_bp.route('/sales', methods=['GET'])
@require_login
def list_sales_view() -> Response:
    """Latest sales, filtered by ?startDate=&endDate=&status=."""
    status_raw = request.args.get('status', '').strip().upper()
    status = None
    if status_raw:
        try:
            status = SaleStatus(status_raw)
        except ValueError:
            raise ValidationError(f'Status inválido: {status_raw}')

    sales = list_sales(
        get_session(),
        start=_parse_datetime_arg('startDate'),
        end=_parse_datetime_arg('endDate'),
        status=status,
    )
    return jsonify([serialize_sale(sale) for sale in sales])


@sales_bp.route('/financeiro/resumo', methods=['GET'])
@require_login
def financial_summary() -> Response:
    """Daily totals (?date=YYYY-MM-DD, defaults to today)."""
    raw = request.args.get('date', '').strip()
    try:
        day = date.fromisoformat(raw) if raw else date.today()
    except ValueError:
        raise ValidationError(f'Data inválida: {raw}')

    return jsonify(get_income_summary(get_session(), day))
