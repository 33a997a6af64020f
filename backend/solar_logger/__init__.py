"""Daily power station recovery logging: parsing, record computation, storage and API."""
from .services.recovery_parser import InvalidRecoveryInput, parse_recovery_input
from .services.records import compute_record, reconcile

__all__ = ['InvalidRecoveryInput', 'parse_recovery_input', 'compute_record', 'reconcile']
