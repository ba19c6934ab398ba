# ============================================
# FILE: fulfillz/core/exceptions.py
# ============================================

"""
All fulfillment-related exceptions

Collaborators raise these; the orchestrator turns every step failure into an
OrderResult, so none of them escape place_order().
"""


class FulfillmentError(Exception):
    """Base fulfillment error"""


class OrderStepError(FulfillmentError):
    """Error executing an order step"""

    def __init__(self, step: str, message: str):
        self.step = step
        super().__init__(message)


class StepTimeoutError(OrderStepError):
    """Collaborator call exceeded its timeout"""

    def __init__(self, step: str, timeout: float):
        self.timeout = timeout
        super().__init__(step, f"timed out after {timeout}s")


class CompensationError(FulfillmentError):
    """Error executing a compensation action"""

    def __init__(self, action: str, cause: BaseException):
        self.action = action
        self.cause = cause
        super().__init__(f"Compensation '{action}' failed: {cause}")


class InventoryError(FulfillmentError):
    """Inventory ledger rejected an operation"""


class PaymentError(FulfillmentError):
    """Payment gateway rejected an operation"""


class ShippingError(FulfillmentError):
    """Shipping scheduler rejected an operation"""


class NotificationError(FulfillmentError):
    """Notification could not be delivered"""


class ConfigurationError(FulfillmentError):
    """Invalid orchestrator configuration"""
