"""
Reglas de Movimiento de Stock
=============================

Tabla canónica: tipo de movimiento -> contador(es) afectados, signo y
estrategia de reversión.

- SINGLE: un contador; aplicar y revertir mueven el mismo contador.
- PAIRED: "repair" registra UNA sola entrada (ganancia de terminados) pero
  mueve dos contadores: terminados +q y defectuosos -q. La reversión invierte
  ambos a partir de esa única entrada.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .enums import CounterField, MovementType, ShipmentType


class ReversalStrategy(str, Enum):
    SINGLE = "single"
    PAIRED = "paired"


# Convención de signo de quantity_change
POSITIVE = 1
NEGATIVE = -1
ANY = 0


@dataclass(frozen=True)
class MovementRule:
    counter: CounterField
    sign: int
    strategy: ReversalStrategy = ReversalStrategy.SINGLE
    paired_counter: Optional[CounterField] = None


MOVEMENT_RULES = {
    MovementType.RECEIVING: MovementRule(CounterField.RAW, POSITIVE),
    MovementType.PRODUCTION_RAW: MovementRule(CounterField.RAW, NEGATIVE),
    MovementType.PRODUCTION_FINISHED: MovementRule(CounterField.FINISHED, POSITIVE),
    MovementType.PRODUCTION_DEFECTIVE: MovementRule(CounterField.DEFECTIVE, POSITIVE),
    MovementType.SHIPPING: MovementRule(CounterField.FINISHED, NEGATIVE),
    MovementType.RETURN_BILLABLE: MovementRule(CounterField.DEFECTIVE, NEGATIVE),
    MovementType.RETURN_FREE: MovementRule(CounterField.DEFECTIVE, NEGATIVE),
    MovementType.REPAIR: MovementRule(
        CounterField.FINISHED, POSITIVE,
        strategy=ReversalStrategy.PAIRED,
        paired_counter=CounterField.DEFECTIVE,
    ),
    MovementType.DISPOSE: MovementRule(CounterField.DEFECTIVE, NEGATIVE),
    MovementType.SHIPPING_CANCEL: MovementRule(CounterField.FINISHED, POSITIVE),
    MovementType.RETURN_CANCEL: MovementRule(CounterField.DEFECTIVE, POSITIVE),
    MovementType.ADJUSTMENT_RAW: MovementRule(CounterField.RAW, ANY),
    MovementType.ADJUSTMENT_FINISHED: MovementRule(CounterField.FINISHED, ANY),
    MovementType.ADJUSTMENT_DEFECTIVE: MovementRule(CounterField.DEFECTIVE, ANY),
}

ADJUSTMENT_BY_COUNTER = {
    CounterField.RAW: MovementType.ADJUSTMENT_RAW,
    CounterField.FINISHED: MovementType.ADJUSTMENT_FINISHED,
    CounterField.DEFECTIVE: MovementType.ADJUSTMENT_DEFECTIVE,
}

# Tipo de envío -> movimiento que descuenta stock
SHIPMENT_MOVEMENT = {
    ShipmentType.STANDARD: MovementType.SHIPPING,
    ShipmentType.RETURN_BILLABLE: MovementType.RETURN_BILLABLE,
    ShipmentType.RETURN_FREE: MovementType.RETURN_FREE,
}

# Movimiento de envío -> marca de anulación que devuelve el stock
CANCEL_MARKER = {
    MovementType.SHIPPING: MovementType.SHIPPING_CANCEL,
    MovementType.RETURN_BILLABLE: MovementType.RETURN_CANCEL,
    MovementType.RETURN_FREE: MovementType.RETURN_CANCEL,
}


def rule_for(movement_type: str) -> Optional[MovementRule]:
    """Regla del tipo, o None si el tipo no tiene mapeo (p.ej. datos heredados)."""
    try:
        return MOVEMENT_RULES.get(MovementType(movement_type))
    except ValueError:
        return None


def sign_matches(rule: MovementRule, quantity_change: int) -> bool:
    if quantity_change == 0:
        return False
    if rule.sign == ANY:
        return True
    return (quantity_change > 0) == (rule.sign == POSITIVE)


def apply_effects(rule: MovementRule, quantity_change: int) -> List[Tuple[CounterField, int]]:
    """Deltas por contador al aplicar una entrada."""
    effects = [(rule.counter, quantity_change)]
    if rule.strategy == ReversalStrategy.PAIRED:
        effects.append((rule.paired_counter, -quantity_change))
    return effects


def reversal_effects(rule: MovementRule, quantity_change: int) -> List[Tuple[CounterField, int]]:
    """Deltas por contador al revertir una entrada."""
    if rule.strategy == ReversalStrategy.PAIRED:
        return [(rule.counter, -quantity_change), (rule.paired_counter, quantity_change)]
    return [(rule.counter, -quantity_change)]
