"""Custom exceptions for the bizdesk application."""


class BizdeskError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(BizdeskError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class InvalidAmountError(BusinessLogicError):
    """Raised for negative, zero or exceeds-due monetary amounts."""
    def __init__(self, message="Invalid amount", payload=None):
        super().__init__(message, 400, payload)


class InsufficientStockError(BusinessLogicError):
    """Raised when a sale line requests more boxes than are on hand."""
    def __init__(self, product_id, available, requested, product_name=None):
        label = product_name or f'product {product_id}'
        message = f"Not enough stock for {label}. Available: {available}, Requested: {requested}"
        super().__init__(message, status_code=409, payload={
            'product_id': product_id,
            'available': available,
            'requested': requested,
        })
        self.product_id = product_id
        self.available = available
        self.requested = requested


class NotFoundError(BizdeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not found", {'product_id': product_id})
        self.product_id = product_id


class CustomerNotFoundError(NotFoundError):
    def __init__(self, customer_id):
        super().__init__(f"Customer {customer_id} not found", {'customer_id': customer_id})
        self.customer_id = customer_id


class SaleNotFoundError(NotFoundError):
    def __init__(self, sale_id):
        super().__init__(f"Sale {sale_id} not found", {'sale_id': sale_id})
        self.sale_id = sale_id


class TransactionConflictError(BizdeskError):
    """Raised when concurrent writers exhausted the transaction retry budget."""
    def __init__(self, message="The record was modified concurrently, please resubmit", attempts=None):
        super().__init__(message, 409, {'attempts': attempts} if attempts else None)
        self.attempts = attempts


class UnauthorizedError(BizdeskError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access", payload=None):
        super().__init__(message, 403, payload)


class AuthenticationError(BizdeskError):
    """Raised when a request needs a logged-in user."""
    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)


class TextGenerationError(BizdeskError):
    """Raised when the text generation service fails or answers garbage."""
    def __init__(self, message="Text generation service failed"):
        super().__init__(message, 502)

