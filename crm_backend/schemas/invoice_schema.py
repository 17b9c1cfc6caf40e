from marshmallow import EXCLUDE, fields, validate
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from crm_backend.models.invoice import Invoice, InvoiceItem, InvoiceStatus

INVOICE_STATUSES = [s.value for s in InvoiceStatus]


class InvoiceItemSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = InvoiceItem
        include_fk = True
        unknown = EXCLUDE
        exclude = ('position',)
    id = auto_field(dump_only=True)
    invoice_id = auto_field(dump_only=True)
    description = auto_field()
    quantity = fields.Float(load_default=1)
    unit_price = fields.Float(load_default=0)
    amount = fields.Float(load_default=None, allow_none=True)


class InvoiceSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Invoice
        include_fk = True
        unknown = EXCLUDE
    id = auto_field(dump_only=True)
    invoice_number = auto_field(dump_only=True)
    customer_id = auto_field()
    customer_name = fields.String(dump_only=True)
    booking_id = auto_field()
    total_amount = fields.Float(allow_none=True)
    status = auto_field(validate=validate.OneOf(INVOICE_STATUSES))
    issue_date = auto_field()
    due_date = auto_field()
    items = fields.Nested(InvoiceItemSchema, many=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)


class InvoiceStatusSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Invoice
        fields = ('status',)
        unknown = EXCLUDE
    status = auto_field(required=True, validate=validate.OneOf(INVOICE_STATUSES))
