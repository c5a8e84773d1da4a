"""Custom exceptions for the SmartLoja POS application."""
from decimal import Decimal

from app.utils.money import money_br


class SmartLojaError(Exception):
    """Base exception for all application errors."""
    kind = 'INTERNAL_ERROR'

    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['kind'] = self.kind
        rv['status'] = 'error'
        return rv


class ValidationError(SmartLojaError):
    """Malformed or inconsistent checkout data, detected before any write."""
    kind = 'VALIDATION_ERROR'

    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(SmartLojaError):
    """Exception raised when a resource is not found."""
    kind = 'NOT_FOUND'

    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ProductNotFoundError(NotFoundError):
    kind = 'PRODUCT_NOT_FOUND'

    def __init__(self, product_id):
        super().__init__(f'Produto {product_id} não encontrado', {'product_id': product_id})


class ProductInactiveError(ValidationError):
    kind = 'PRODUCT_INACTIVE'

    def __init__(self, product_id, product_name):
        super().__init__(
            f'O produto "{product_name}" não está ativo',
            payload={'product_id': product_id},
        )


class PaymentMethodNotFoundError(NotFoundError):
    kind = 'PAYMENT_METHOD_NOT_FOUND'

    def __init__(self, payment_method_id):
        super().__init__(
            f'Forma de pagamento {payment_method_id} não encontrada ou inativa',
            {'payment_method_id': payment_method_id},
        )


class CustomerNotFoundError(NotFoundError):
    kind = 'CUSTOMER_NOT_FOUND'

    def __init__(self, customer_id):
        super().__init__(f'Cliente {customer_id} não encontrado', {'customer_id': customer_id})


class InvalidDiscountError(ValidationError):
    kind = 'INVALID_DISCOUNT'


class InvalidInstallmentsError(ValidationError):
    kind = 'INVALID_INSTALLMENTS'


class InsufficientStockError(SmartLojaError):
    """Raised when an operation fails due to lack of stock."""
    kind = 'INSUFFICIENT_STOCK'

    def __init__(self, product_id, product_name, required, available=None):
        if available is None:
            message = f"Estoque insuficiente para {product_name}: solicitado {required}"
        else:
            message = (
                f"Estoque insuficiente para {product_name}: "
                f"solicitado {required}, disponível {available}"
            )
        super().__init__(message, 409, {
            'product_id': product_id,
            'required': required,
            'available': available,
        })
        self.product_id = product_id


class PaymentMismatchError(SmartLojaError):
    """Payments do not add up to the computed sale total."""
    kind = 'PAYMENT_MISMATCH'

    def __init__(self, payments_total: Decimal, sale_total: Decimal):
        message = (
            f'A soma dos pagamentos (R$ {money_br(payments_total)}) '
            f'não confere com o total da venda (R$ {money_br(sale_total)})'
        )
        super().__init__(message, 422, {
            'payments_total': str(payments_total),
            'sale_total': str(sale_total),
        })


class StorageError(SmartLojaError):
    """Persistence failure (connection loss, constraint violation, deadlock)."""
    kind = 'STORAGE_ERROR'

    def __init__(self, message='Erro ao registrar a venda', payload=None):
        super().__init__(message, 500, payload)


class UnauthorizedError(SmartLojaError):
    """Raised when no authenticated operator is attached to the request."""
    kind = 'UNAUTHORIZED'

    def __init__(self, message="Não autorizado"):
        super().__init__(message, 401)
