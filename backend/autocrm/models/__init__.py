from .auth import User, SessionToken, ROLE_USER, ROLE_ADMIN, VALID_ROLES
from .fleet import Car, Rental, Part, CAR_STATUSES, RENTAL_STATUSES, PART_STATUSES
from .ledger import Transaction, TRANSACTION_TYPES

__all__ = [
    'User', 'SessionToken', 'ROLE_USER', 'ROLE_ADMIN', 'VALID_ROLES',
    'Car', 'Rental', 'Part', 'CAR_STATUSES', 'RENTAL_STATUSES', 'PART_STATUSES',
    'Transaction', 'TRANSACTION_TYPES',
]
