from marshmallow import EXCLUDE, fields
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from crm_backend.models.order import Order, OrderItem


class OrderItemSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = OrderItem
        include_fk = True
        unknown = EXCLUDE
    price = fields.Float()


class OrderSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Order
        include_fk = True
        unknown = EXCLUDE
    total_amount = fields.Float()
    items = fields.Nested(OrderItemSchema, many=True, dump_only=True)
