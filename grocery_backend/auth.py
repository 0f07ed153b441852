from typing import Optional

from fastapi import Header

from .errors import AuthError


def get_current_customer_id(x_customer_id: Optional[str] = Header(None)) -> int:
    """
    Obtiene el id del cliente autenticado del header X-Customer-Id.
    La existencia del cliente la valida cada operación (404 si no existe).
    """
    if not x_customer_id:
        raise AuthError("Authentication required")
    try:
        customer_id = int(x_customer_id)
    except ValueError:
        raise AuthError("Invalid customer identity", f"X-Customer-Id must be an integer, got {x_customer_id!r}")
    if customer_id <= 0:
        raise AuthError("Invalid customer identity")
    return customer_id
