from marshmallow import EXCLUDE, fields
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from crm_backend.models.customer import Customer, Contact, Activity


class CustomerSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Customer
        unknown = EXCLUDE
    id = auto_field(dump_only=True)
    company_name = auto_field()
    contact_person = auto_field()
    email = auto_field()
    phone = auto_field()
    status = auto_field()
    address = auto_field()
    city = auto_field()
    state = auto_field()
    zipcode = auto_field()
    country = auto_field()
    total_spent = fields.Float()
    total_orders = auto_field()
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)


class ContactSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Contact
        include_fk = True
        unknown = EXCLUDE


class ActivitySchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Activity
        include_fk = True
        unknown = EXCLUDE
