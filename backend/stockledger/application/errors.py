"""
Errores del Libro de Inventario
===============================

Cada error lleva:
- kind: identificador estable para máquinas
- status_code: código HTTP con el que lo expone la API
- message: texto para mostrar directamente al usuario
"""


class LedgerError(Exception):
    """Excepción base del libro de inventario"""
    kind = "LedgerError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthenticatedError(LedgerError):
    """No hay usuario (actor) para firmar la operación"""
    kind = "Unauthenticated"
    status_code = 401


class ForbiddenError(LedgerError):
    """El usuario no tiene el rol requerido"""
    kind = "Forbidden"
    status_code = 403


class NotFoundError(LedgerError):
    """La entidad referenciada no existe"""
    kind = "NotFound"
    status_code = 404


class UnreversibleError(LedgerError):
    """El tipo de movimiento no tiene reversión definida"""
    kind = "Unreversible"
    status_code = 409


class PartnerNotFoundError(LedgerError):
    """Un producto no tiene cliente propietario resoluble"""
    kind = "PartnerNotFound"
    status_code = 422


class NoItemsError(LedgerError):
    """Solicitud de envío sin líneas"""
    kind = "NoItems"
    status_code = 422


class InvalidQuantityError(LedgerError):
    """Cantidad nula o con signo contrario a la convención del tipo"""
    kind = "InvalidQuantity"
    status_code = 422


class StoreFailureError(LedgerError):
    """Fallo de la capa de persistencia; conserva el texto original"""
    kind = "StoreFailure"
    status_code = 500


class ConflictError(LedgerError):
    """La operación chocaría con datos dependientes (productos del cliente, envío ya facturado)"""
    kind = "Conflict"
    status_code = 409
