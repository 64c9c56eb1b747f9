# shopdesk/db/schema.py

from sqlalchemy import (
    MetaData, Table, Column, Integer, String, Enum,
    Numeric, Date, DateTime, ForeignKey, CheckConstraint, Text, func
)

from shopdesk.enums import (
    CheckStatus,
    InstallmentPaymentStatus,
    ItemType,
    PaymentMethod,
    PhoneStatus,
    RepairStatus,
)

metadata = MetaData()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("full_name", String, nullable=False),
    Column("phone_number", String, nullable=True, unique=True),
    Column("address", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column("date_added", DateTime, nullable=False, server_default=func.current_timestamp()),
)

customer_ledger = Table(
    "customer_ledger",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=False),
    Column("transaction_date", DateTime, nullable=False),
    Column("description", Text, nullable=False),
    Column("debit", Numeric(18, 2), nullable=False, default=0),
    Column("credit", Numeric(18, 2), nullable=False, default=0),
    Column("balance", Numeric(18, 2), nullable=False),
)

partners = Table(
    "partners",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("partner_name", String, nullable=False),
    Column("partner_type", String, nullable=False, default="Supplier"),
    Column("contact_person", String, nullable=True),
    Column("phone_number", String, nullable=True, unique=True),
    Column("email", String, nullable=True),
    Column("address", Text, nullable=True),
    Column("notes", Text, nullable=True),
    Column("date_added", DateTime, nullable=False, server_default=func.current_timestamp()),
)

partner_ledger = Table(
    "partner_ledger",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("partner_id", Integer, ForeignKey("partners.id", ondelete="CASCADE"), nullable=False),
    Column("transaction_date", DateTime, nullable=False),
    Column("description", Text, nullable=False),
    Column("debit", Numeric(18, 2), nullable=False, default=0),
    Column("credit", Numeric(18, 2), nullable=False, default=0),
    Column("balance", Numeric(18, 2), nullable=False),
    # 'phone_purchase', 'product_purchase', 'repair_fee', 'manual', ...
    Column("reference_type", String, nullable=True),
    Column("reference_id", Integer, nullable=True),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("purchase_price", Numeric(18, 2), nullable=False, default=0),
    Column("selling_price", Numeric(18, 2), nullable=False, default=0),
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("supplier_id", Integer, ForeignKey("partners.id", ondelete="SET NULL"), nullable=True),
    Column("date_added", DateTime, nullable=False, server_default=func.current_timestamp()),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonneg"),
)

phones = Table(
    "phones",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("model", String, nullable=False),
    Column("imei", String, nullable=False, unique=True),
    Column("color", String, nullable=True),
    Column("storage", String, nullable=True),
    Column("ram", String, nullable=True),
    Column("condition", String, nullable=True),
    Column("purchase_price", Numeric(18, 2), nullable=False),
    Column("sale_price", Numeric(18, 2), nullable=True),
    Column("purchase_date", Date, nullable=True),
    Column("sale_date", Date, nullable=True),
    Column("register_date", DateTime, nullable=False),
    Column(
        "status",
        Enum(PhoneStatus, name="phone_status", native_enum=False,
             values_callable=_enum_values),
        nullable=False,
        default=PhoneStatus.IN_STOCK,
    ),
    Column("notes", Text, nullable=True),
    Column("supplier_id", Integer, ForeignKey("partners.id", ondelete="SET NULL"), nullable=True),
)

sales_orders = Table(
    "sales_orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True),
    Column(
        "payment_method",
        Enum(PaymentMethod, name="payment_method", native_enum=False,
             values_callable=_enum_values),
        nullable=False,
        default=PaymentMethod.CASH,
    ),
    Column("discount", Numeric(18, 2), nullable=False, default=0),
    Column("tax", Numeric(9, 2), nullable=False, default=0),  # percent, e.g. 9
    Column("subtotal", Numeric(18, 2), nullable=False),
    Column("grand_total", Numeric(18, 2), nullable=False),
    Column("transaction_date", Date, nullable=False),
    Column("notes", Text, nullable=True),
)

sales_order_items = Table(
    "sales_order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False),
    Column(
        "item_type",
        Enum(ItemType, name="item_type", native_enum=False,
             values_callable=_enum_values),
        nullable=False,
    ),
    Column("item_id", Integer, nullable=False),
    Column("description", Text, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("unit_price", Numeric(18, 2), nullable=False),
    Column("discount_per_item", Numeric(18, 2), nullable=False, default=0),
    Column("total_price", Numeric(18, 2), nullable=False),  # quantity * unit_price - discount_per_item
    CheckConstraint("quantity > 0", name="ck_sales_order_items_quantity_pos"),
)

settings = Table(
    "settings",
    metadata,
    Column("key", String, primary_key=True),
    Column("value", Text, nullable=True),
)

installment_sales = Table(
    "installment_sales",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False),
    Column("phone_id", Integer, ForeignKey("phones.id", ondelete="RESTRICT"), nullable=False, unique=True),
    Column("actual_sale_price", Numeric(18, 2), nullable=False),
    Column("down_payment", Numeric(18, 2), nullable=False, default=0),
    Column("number_of_installments", Integer, nullable=False),
    Column("installment_amount", Numeric(18, 2), nullable=False),
    Column("installments_start_date", Date, nullable=False),
    Column("date_created", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("notes", Text, nullable=True),
    CheckConstraint("number_of_installments > 0", name="ck_installment_sales_count_pos"),
)

installment_payments = Table(
    "installment_payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sale_id", Integer, ForeignKey("installment_sales.id", ondelete="CASCADE"), nullable=False),
    Column("installment_number", Integer, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("amount_due", Numeric(18, 2), nullable=False),
    Column("payment_date", Date, nullable=True),
    Column(
        "status",
        Enum(InstallmentPaymentStatus, name="installment_payment_status", native_enum=False,
             values_callable=_enum_values),
        nullable=False,
        default=InstallmentPaymentStatus.UNPAID,
    ),
)

installment_transactions = Table(
    "installment_transactions",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("payment_id", Integer, ForeignKey("installment_payments.id", ondelete="CASCADE"), nullable=False),
    Column("amount_paid", Numeric(18, 2), nullable=False),
    Column("payment_date", Date, nullable=False),
    Column("notes", Text, nullable=True),
    CheckConstraint("amount_paid > 0", name="ck_installment_transactions_amount_pos"),
)

installment_checks = Table(
    "installment_checks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("sale_id", Integer, ForeignKey("installment_sales.id", ondelete="CASCADE"), nullable=False),
    Column("check_number", String, nullable=False),
    Column("bank_name", String, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("amount", Numeric(18, 2), nullable=False),
    Column(
        "status",
        Enum(CheckStatus, name="check_status", native_enum=False,
             values_callable=_enum_values),
        nullable=False,
        default=CheckStatus.WITH_CUSTOMER,
    ),
)

repairs = Table(
    "repairs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False),
    Column("device_model", String, nullable=False),
    Column("device_color", String, nullable=True),
    Column("serial_number", String, nullable=True),
    Column("problem_description", Text, nullable=False),
    Column("technician_notes", Text, nullable=True),
    Column(
        "status",
        Enum(RepairStatus, name="repair_status", native_enum=False,
             values_callable=_enum_values),
        nullable=False,
        default=RepairStatus.RECEIVED,
    ),
    Column("estimated_cost", Numeric(18, 2), nullable=True),
    Column("final_cost", Numeric(18, 2), nullable=True),
    Column("labor_fee", Numeric(18, 2), nullable=True),
    Column("technician_id", Integer, ForeignKey("partners.id", ondelete="SET NULL"), nullable=True),
    Column("date_received", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("date_completed", DateTime, nullable=True),
)

repair_parts = Table(
    "repair_parts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("repair_id", Integer, ForeignKey("repairs.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False),
    Column("quantity_used", Integer, nullable=False),
    CheckConstraint("quantity_used > 0", name="ck_repair_parts_quantity_pos"),
)
