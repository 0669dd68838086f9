"""
Input forms for flat request bodies (JSON or form-encoded).

Nested inputs (sale lines) are validated by the sales service instead.
"""
from decimal import Decimal

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField, DateField, DecimalField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import InputRequired, DataRequired, NumberRange, Length, Optional, ValidationError

from bizdesk.exceptions import BusinessLogicError

CURRENCY_CHOICES = [('USD', 'US Dollar'), ('EUR', 'Euro'), ('PKR', 'Pakistani Rupee'),
                    ('GBP', 'British Pound'), ('JPY', 'Japanese Yen')]


class ProductForm(FlaskForm):
    """Product create/update."""

    name = StringField('Name', validators=[Optional(), Length(max=200)])
    sku = StringField('SKU', validators=[Optional(), Length(max=64)])
    pieces_per_box = IntegerField('Pieces per box', validators=[
        Optional(), NumberRange(min=1, message='Pieces per box must be at least 1')
    ])
    stock = IntegerField('Stock (boxes)', validators=[
        Optional(), NumberRange(min=0, message='Stock cannot be negative')
    ])
    cost_price = DecimalField('Cost price', places=2, validators=[
        Optional(), NumberRange(min=Decimal('0'), message='Cost price cannot be negative')
    ])
    sale_price = DecimalField('Sale price', places=2, validators=[
        Optional(), NumberRange(min=Decimal('0'), message='Sale price cannot be negative')
    ])
    expiry_date = DateField('Expiry date', validators=[Optional()], format='%Y-%m-%d')


class CustomerForm(FlaskForm):
    name = StringField('Name', validators=[DataRequired(message='Customer name is required'), Length(max=200)])
    phone = StringField('Phone', validators=[DataRequired(message='Customer phone is required'), Length(max=50)])
    address = TextAreaField('Address', validators=[DataRequired(message='Customer address is required')])


class ExpenseForm(FlaskForm):
    category = StringField('Category', validators=[DataRequired(message='Expense category is required'), Length(max=100)])
    description = TextAreaField('Description', validators=[DataRequired(message='Expense description is required')])
    amount = DecimalField('Amount', places=2, validators=[
        InputRequired(message='Expense amount is required'),
        NumberRange(min=Decimal('0.01'), message='Expense amount must be greater than 0')
    ])
    date = DateField('Date', validators=[Optional()], format='%Y-%m-%d')


class PaymentForm(FlaskForm):
    """Receive payment against one sale of a customer."""

    sale_id = IntegerField('Sale', validators=[InputRequired(message='Please select a sale')])
    # Zero, negative and over-due amounts are rejected by apply_payment
    amount = DecimalField('Amount', places=2, validators=[InputRequired(message='Payment amount is required')])


class ReportRangeForm(FlaskForm):
    start_date = DateField('Start date', validators=[InputRequired(message='Please select a start date')], format='%Y-%m-%d')
    end_date = DateField('End date', validators=[InputRequired(message='Please select an end date')], format='%Y-%m-%d')

    def validate_end_date(self, field):
        if self.start_date.data and field.data and self.start_date.data > field.data:
            raise ValidationError('Start date must be on or before the end date')


class SettingsForm(FlaskForm):
    app_name = StringField('App name', validators=[Optional(), Length(max=100)])
    currency = SelectField('Currency', choices=CURRENCY_CHOICES, validators=[Optional()])
    signup_visible = BooleanField('Show signup page')
    logo_url_light = StringField('Logo (light)', validators=[Optional(), Length(max=500)])
    logo_url_dark = StringField('Logo (dark)', validators=[Optional(), Length(max=500)])
    auth_logo_url_light = StringField('Auth logo (light)', validators=[Optional(), Length(max=500)])
    auth_logo_url_dark = StringField('Auth logo (dark)', validators=[Optional(), Length(max=500)])
    favicon_url = StringField('Favicon', validators=[Optional(), Length(max=500)])


def _to_formdata(data):
    formdata = MultiDict()
    for key, value in (data or {}).items():
        if value is None or isinstance(value, (list, dict)):
            continue
        if isinstance(value, bool):
            value = 'true' if value else 'false'
        formdata.add(key, str(value))
    return formdata


def validate_form(form_cls, data, partial=False):
    """
    Validate a flat mapping with ``form_cls``.

    Args:
        form_cls: FlaskForm subclass
        data: request body (dict or MultiDict)
        partial: only return the fields present in ``data`` (PATCH-style updates)

    Returns:
        dict of cleaned field values (None values dropped)

    Raises:
        BusinessLogicError: first validation message; all errors in payload['errors']
    """
    if isinstance(data, MultiDict):
        data = data.to_dict()
    form = form_cls(formdata=_to_formdata(data), meta={'csrf': False})
    if not form.validate():
        first = next(iter(form.errors.values()))[0]
        raise BusinessLogicError(first, payload={'errors': form.errors})

    cleaned = {}
    for name, value in form.data.items():
        if partial and name not in data:
            continue
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
        cleaned[name] = value
    return cleaned
