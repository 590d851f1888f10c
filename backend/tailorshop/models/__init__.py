from .customers import Customer
from .catalog import Fabric, Garment
from .orders import Order, ORDER_STATUSES
from .auth import User, SessionToken, ROLE_ADMIN, ROLE_CUSTOMER, VALID_ROLES
from .security import SecurityEvent

# Tables reachable through the record store, keyed by table name.
TABLE_MODELS = {
    "customers": Customer,
    "fabrics": Fabric,
    "garments": Garment,
    "orders": Order,
}

__all__ = [
    'Customer',
    'Fabric', 'Garment',
    'Order', 'ORDER_STATUSES',
    'User', 'SessionToken', 'ROLE_ADMIN', 'ROLE_CUSTOMER', 'VALID_ROLES',
    'SecurityEvent',
    'TABLE_MODELS',
]
