from .locations import Location, LocationConfig
from .registers import CashRegister, PaymentMethod
from .shifts import Shift, CashMovement, ShiftAnnotation

__all__ = [
    'Location', 'LocationConfig',
    'CashRegister', 'PaymentMethod',
    'Shift', 'CashMovement', 'ShiftAnnotation',
]
