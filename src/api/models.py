"""
Pydantic models for request bodies.

Fields are optional so that missing data is reported with the endpoint's own
localized message rather than a schema error. Cell-bound values are ``Any``
because the client sends numbers and numeric strings interchangeably.
"""
from typing import Any, List, Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Login request body."""
    username: Optional[str] = None
    password: Optional[str] = None


class OrderItemIn(BaseModel):
    """One line of a submitted order."""
    productCode: Any = None
    productName: Any = None
    unitPrice: Any = None
    quantity: Any = None
    subtotal: Any = None
    category: Any = None


class SubmitOrderRequest(BaseModel):
    branchName: Optional[str] = None
    orderItems: Optional[List[OrderItemIn]] = None
    username: Optional[str] = None
    userType: Optional[str] = None


class QuantityUpdate(BaseModel):
    """New quantity for a line addressed by product code (and optionally row index)."""
    productCode: Any = None
    quantity: Any = None
    rowIndex: Any = None


class UpdatePreviousOrdersRequest(BaseModel):
    branchName: Optional[str] = None
    updatedOrders: Optional[List[QuantityUpdate]] = None
    username: Optional[str] = None
    userType: Optional[str] = None


class BranchActionRequest(BaseModel):
    username: Optional[str] = None
    branchName: Optional[str] = None


class OrderActionRequest(BaseModel):
    """Approve / cancel body: ``orderId`` ("AA13__waiting") or a bare ``serial``."""
    username: Optional[str] = None
    orderId: Optional[str] = None
    serial: Optional[str] = None


class UpdateWaitingOrderRequest(BaseModel):
    username: Optional[str] = None
    orderId: Optional[str] = None
    items: Optional[List[QuantityUpdate]] = None
