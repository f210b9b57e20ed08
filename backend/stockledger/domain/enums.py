from enum import Enum

class CounterField(str, Enum):
    RAW = "stock_raw"
    FINISHED = "stock_finished"
    DEFECTIVE = "stock_defective"

class MovementType(str, Enum):
    RECEIVING = "receiving"
    PRODUCTION_RAW = "production_raw"
    PRODUCTION_FINISHED = "production_finished"
    PRODUCTION_DEFECTIVE = "production_defective"
    SHIPPING = "shipping"
    RETURN_BILLABLE = "return_billable"
    RETURN_FREE = "return_free"
    REPAIR = "repair"
    DISPOSE = "dispose"
    SHIPPING_CANCEL = "shipping_cancel"
    RETURN_CANCEL = "return_cancel"  # Marca de anulación de una devolución
    ADJUSTMENT_RAW = "adjustment_raw"
    ADJUSTMENT_FINISHED = "adjustment_finished"
    ADJUSTMENT_DEFECTIVE = "adjustment_defective"

class ShipmentType(str, Enum):
    STANDARD = "standard"
    RETURN_BILLABLE = "return_billable"
    RETURN_FREE = "return_free"

class ShipmentStatus(str, Enum):
    CONFIRMED = "confirmed"

class InvoiceStatus(str, Enum):
    CONFIRMED = "confirmed"

class PriceStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"

class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"
