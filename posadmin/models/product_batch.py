"""
Product batch model - one inventory lot per receipt
Supports:
- per-batch cost (every delivery can arrive at a different price)
- landed cost (extra expenses spread over the batch quantity)
- source tracing (supplier, purchase or stock transfer)
- FIFO consumption (one sale line can draw from several batches)
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL, Boolean
from sqlalchemy.orm import relationship
from posadmin.db.base import Base
from posadmin.services.pricing import to_money, margin_percent, markup_percent


class ProductBatch(Base):
    """Product batch - a lot of one product in one warehouse"""
    __tablename__ = "product_batches"

    id = Column(Integer, primary_key=True, index=True)

    # BN + date + sequence, e.g. BN20250604-001; transfers use TR-<transfer number>-<sku>
    batch_number = Column(String(80), unique=True, nullable=False, index=True, comment="Batch number")

    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id"), nullable=False, index=True, comment="Stored in")
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), index=True, comment="Supplier")

    # Origin, both optional
    purchase_id = Column(Integer, ForeignKey("purchases.id"), index=True, comment="Source purchase")
    transfer_id = Column(Integer, ForeignKey("stock_transfers.id"), index=True, comment="Source stock transfer")

    # === Cost & price ===
    unit_cost = Column(DECIMAL(12, 2), nullable=False, comment="Unit cost")
    additional_expenses = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="Extra expenses for the whole batch")
    selling_price = Column(DECIMAL(12, 2), nullable=False, comment="Unit selling price")

    # === Quantity ===
    quantity = Column(Integer, nullable=False, comment="Received quantity")
    remaining = Column(Integer, nullable=False, comment="Remaining quantity")

    # in_stock / depleted / expired
    status = Column(String(20), default="in_stock", index=True, comment="Status")
    is_depleted = Column(Boolean, default=False, index=True, comment="Fully consumed")
    depleted_at = Column(DateTime, comment="Consumed at")
    expiry_date = Column(DateTime, comment="Expiry date")

    notes = Column(Text, comment="Notes")

    created_by = Column(Integer, ForeignKey("staff.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product", lazy="joined")
    warehouse = relationship("Warehouse", lazy="joined")
    supplier = relationship("Supplier", lazy="joined")

    def __repr__(self):
        return f"<ProductBatch {self.batch_number}: {self.remaining}/{self.quantity}>"

    @property
    def landed_unit_cost(self) -> Decimal:
        """Unit cost including the batch's share of extra expenses"""
        cost = Decimal(str(self.unit_cost or 0))
        extra = Decimal(str(self.additional_expenses or 0))
        if not self.quantity or extra <= 0:
            return to_money(cost)
        return to_money(cost + extra / Decimal(self.quantity))

    @property
    def margin_percent(self) -> Decimal:
        return margin_percent(self.landed_unit_cost, self.selling_price)

    @property
    def markup_percent(self) -> Decimal:
        return markup_percent(self.landed_unit_cost, self.selling_price)

    @property
    def stock_value(self) -> Decimal:
        """Remaining stock at landed cost"""
        return to_money(self.landed_unit_cost * Decimal(self.remaining or 0))

    @property
    def is_expired(self) -> bool:
        return bool(self.expiry_date and self.expiry_date < datetime.utcnow())

    @property
    def status_display(self) -> str:
        status_map = {
            "in_stock": "In stock",
            "depleted": "Depleted",
            "expired": "Expired",
        }
        return status_map.get(self.status, self.status)

    def update_status(self):
        """Sync status with the remaining quantity"""
        if (self.remaining or 0) <= 0:
            self.remaining = 0
            if not self.is_depleted:
                self.depleted_at = datetime.utcnow()
            self.is_depleted = True
            self.status = "depleted"
        else:
            self.is_depleted = False
            self.depleted_at = None
            self.status = "expired" if self.is_expired else "in_stock"


class SaleItemBatch(Base):
    """Sale line <-> batch link - which batches a sale line consumed"""
    __tablename__ = "sale_item_batches"

    id = Column(Integer, primary_key=True, index=True)
    sale_item_id = Column(Integer, ForeignKey("sale_items.id"), nullable=False, index=True)
    batch_id = Column(Integer, ForeignKey("product_batches.id"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False, comment="Quantity taken from the batch")
    unit_cost = Column(DECIMAL(12, 2), comment="Landed unit cost at sale time")
    cost_amount = Column(DECIMAL(12, 2), comment="quantity x unit_cost")

    created_at = Column(DateTime, default=datetime.utcnow)

    batch = relationship("ProductBatch", lazy="joined")

    def __repr__(self):
        return f"<SaleItemBatch item:{self.sale_item_id} batch:{self.batch_id} qty:{self.quantity}>"

    def calculate_cost(self):
        if self.unit_cost is not None and self.quantity:
            self.cost_amount = to_money(Decimal(str(self.unit_cost)) * self.quantity)
