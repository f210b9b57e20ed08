from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal

from ..domain.enums import MovementType, ShipmentType, UserRole

# ===== RESULTADOS =====

class OperationResult(BaseModel):
    success: bool = True
    message: str
    error: Optional[str] = None  # kind del LedgerError cuando success=False

class MovementResult(OperationResult):
    movement_id: Optional[int] = None

class BulkResult(OperationResult):
    success_count: int = 0
    error_count: int = 0

class AdjustmentResult(OperationResult):
    adjusted_count: int = 0

class ShipmentResult(OperationResult):
    shipment_ids: List[int] = []

class InvoiceResult(OperationResult):
    invoice_id: Optional[int] = None
    subtotal: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    claimed_shipments: int = 0

class PriceBulkResult(OperationResult):
    inserted_count: int = 0
    updated_count: int = 0

# ===== LIBRO DE MOVIMIENTOS =====

class MovementMetadata(BaseModel):
    reason: Optional[str] = None
    defect_reason: Optional[str] = None
    due_date: Optional[date] = None
    created_at: Optional[datetime] = None  # Permite fechar hacia atrás (recepciones)

class MovementIn(MovementMetadata):
    product_id: int
    movement_type: MovementType
    quantity_change: int  # Delta con signo

class BulkReverseIn(BaseModel):
    ids: List[int]

class BulkApplyIn(BaseModel):
    items: List[MovementIn]

class ReceivingIn(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    due_date: Optional[date] = None
    received_at: Optional[datetime] = None

class ProductionIn(BaseModel):
    product_id: int
    raw_used: int = Field(default=0, ge=0)
    finished: int = Field(default=0, ge=0)
    defective: int = Field(default=0, ge=0)
    defect_reason: Optional[str] = None
    source_date: Optional[date] = None  # Fecha de la recepción de origen

class DefectiveProcessingIn(BaseModel):
    product_id: int
    repair_qty: int = Field(default=0, ge=0)
    dispose_qty: int = Field(default=0, ge=0)
    reason: Optional[str] = None

class AdjustmentLine(BaseModel):
    product_id: int
    stock_raw: int
    stock_finished: int
    stock_defective: int

class AdjustmentIn(BaseModel):
    adjustments: List[AdjustmentLine]
    reason: Optional[str] = None

# ===== ENVÍOS =====

class ShipmentLineIn(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)

class ShipmentIn(BaseModel):
    partner_id: Optional[int] = None  # Solo referencial, el cliente se resuelve por producto
    shipment_date: date
    shipment_type: ShipmentType = ShipmentType.STANDARD
    items: List[ShipmentLineIn] = []
    reason: Optional[str] = None

class RemarksIn(BaseModel):
    remarks: Optional[str] = None

# ===== FACTURACIÓN =====

class PartnerRef(BaseModel):
    id: int
    name: str

class InvoiceCandidate(BaseModel):
    partner: PartnerRef
    shipment_count: int
    total_amount_excl_tax: Decimal

class InvoiceConfirmIn(BaseModel):
    partner_id: int
    period_start: date
    period_end: date
    total_excl_tax: Decimal

class InvoiceOut(BaseModel):
    id: int
    partner_id: int
    partner_name: Optional[str] = None
    period_start: date
    period_end: date
    issue_date: date
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    status: str

# ===== CATÁLOGO =====

class PartnerIn(BaseModel):
    id: Optional[int] = None  # Si viene, actualiza
    name: str
    code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    memo: Optional[str] = None
    closing_date: Optional[int] = None

class PartnerOut(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    memo: Optional[str] = None
    closing_date: int

    class Config:
        from_attributes = True

class ProductIn(BaseModel):
    partner_id: int
    name: str
    product_code: Optional[str] = None
    color: Optional[str] = None
    memo: Optional[str] = None
    unit_weight: Optional[Decimal] = None
    surface_area: Optional[Decimal] = None

class ProductUpdate(BaseModel):
    id: int
    product_code: Optional[str] = None
    name: str
    color: Optional[str] = None
    memo: Optional[str] = None
    is_discontinued: bool = False

class ProductOut(BaseModel):
    id: int
    partner_id: Optional[int] = None
    product_code: Optional[str] = None
    name: str
    color: Optional[str] = None
    memo: Optional[str] = None
    is_discontinued: bool

    class Config:
        from_attributes = True

class PriceIn(BaseModel):
    product_id: int
    unit_price: Decimal = Field(..., ge=0)
    valid_from: date
    reason: Optional[str] = None

class PriceUpdateIn(BaseModel):
    id: int
    unit_price: Decimal = Field(..., ge=0)
    valid_from: date
    reason: Optional[str] = None

class PriceOut(BaseModel):
    id: int
    product_id: int
    unit_price: Decimal
    valid_from: date
    reason: Optional[str] = None
    status: str

    class Config:
        from_attributes = True

class UserRoleIn(BaseModel):
    role: UserRole

# ===== CONSULTAS (una forma por join) =====

class ProductRef(BaseModel):
    id: int
    name: str
    product_code: Optional[str] = None
    color: Optional[str] = None

class StockProductOut(ProductRef):
    stock_finished: int

class ArrivalOption(BaseModel):
    label: str
    value: date

class RawStockProductOut(ProductRef):
    stock_raw: int
    arrivals: List[ArrivalOption] = []

class DefectNote(BaseModel):
    reason: str
    date: str

class ArrivalNote(BaseModel):
    date: str
    qty: int

class DefectiveProductOut(ProductRef):
    stock_defective: int
    recent_defects: List[DefectNote] = []
    recent_arrivals: List[ArrivalNote] = []

class MovementOut(BaseModel):
    id: int
    product_id: int
    movement_type: str
    quantity_change: int
    reason: Optional[str] = None
    defect_reason: Optional[str] = None
    due_date: Optional[date] = None
    created_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class GlobalMovementOut(MovementOut):
    product_name: Optional[str] = None
    product_code: Optional[str] = None
    color: Optional[str] = None
    partner_name: Optional[str] = None

class InventoryRowOut(BaseModel):
    product_id: int
    product_code: Optional[str] = None
    name: str
    color: Optional[str] = None
    stock_raw: int
    stock_finished: int
    stock_defective: int

class ShipmentSummaryOut(BaseModel):
    id: int
    partner_id: int
    partner_name: Optional[str] = None
    shipment_date: date
    total_amount: Decimal
    invoice_id: Optional[int] = None
    remarks: Optional[str] = None
    created_at: datetime

class ShipmentItemOut(BaseModel):
    id: int
    product_id: int
    product_name: Optional[str] = None
    product_code: Optional[str] = None
    color: Optional[str] = None
    unit_weight: Optional[Decimal] = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    movement_type: str

class ShipmentDetailOut(ShipmentSummaryOut):
    partner_address: Optional[str] = None
    partner_phone: Optional[str] = None
    items: List[ShipmentItemOut] = []

class InvoiceDetailOut(InvoiceOut):
    partner_address: Optional[str] = None
    partner_phone: Optional[str] = None
    shipments: List[ShipmentDetailOut] = []
