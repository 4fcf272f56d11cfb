from wtforms import (
    Form,
    Field,
    StringField,
    TextAreaField,
    IntegerField,
    SelectField
)
from wtforms.validators import DataRequired, Length, NumberRange, ValidationError

from app.errors import ValidationFailed
from app.models.transfer_request import RequestStatus


def strip_text(value):
    """Normalise JSON scalars to trimmed strings, keeping None."""
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value.strip()


class IdListField(Field):
    """A JSON array of integer ids."""

    def process_data(self, value):
        if value is None:
            self.data = None
            return
        if not isinstance(value, (list, tuple)):
            self.data = None
            raise ValueError('Must be a list of ids.')
        try:
            self.data = [int(v) for v in value]
        except (TypeError, ValueError):
            self.data = None
            raise ValueError('Not a valid id.')


class OptionalIdField(IntegerField):
    """Integer id that may be absent or null."""

    def process_data(self, value):
        if value in (None, ''):
            self.data = None
            return
        super().process_data(value)


class TransferDetailsForm(Form):
    """
    Fields shared by create and resubmit.
    """
    title = StringField('Title', filters=[strip_text], validators=[
        DataRequired(message='Title is required'),
        Length(min=3, max=200)
    ])
    from_location = StringField('From Location', filters=[strip_text], validators=[
        DataRequired(message='From location is required'),
        Length(min=1, max=200)
    ])
    to_location = StringField('To Location', filters=[strip_text], validators=[
        DataRequired(message='To location is required'),
        Length(min=1, max=200)
    ])
    purpose = TextAreaField('Purpose', filters=[strip_text], validators=[
        Length(max=2000)
    ])
    attachment_ids = IdListField('Attachments', validators=[
        Length(max=10, message='At most 10 attachments are allowed')
    ])


class TransferRequestForm(TransferDetailsForm):
    supervisor_id = OptionalIdField('Supervisor')


class ResubmitForm(TransferDetailsForm):
    pass


class ApproveForm(Form):
    comment = TextAreaField('Comment', filters=[strip_text], validators=[
        Length(max=2000)
    ])


class DecisionCommentForm(Form):
    """Reject and request-changes both need a reason."""
    comment = TextAreaField('Comment', filters=[strip_text], validators=[
        DataRequired(message='Comment is required'),
        Length(min=3, max=2000)
    ])


class AssignManagerForm(Form):
    manager_id = IntegerField('Manager', validators=[
        DataRequired(message='Manager is required')
    ])


class ListQueryForm(Form):
    tab = SelectField('Tab', default='all', choices=[
        ('all', 'All'),
        ('new', 'New'),
        ('completed', 'Completed')
    ])
    page = IntegerField('Page', default=1, validators=[
        NumberRange(min=1, message='Page must be at least 1')
    ])
    limit = IntegerField('Limit', default=10, validators=[
        NumberRange(min=1, max=100, message='Limit must be between 1 and 100')
    ])
    search = StringField('Search', filters=[strip_text])
    status = StringField('Status', filters=[strip_text])

    def validate_status(self, field):
        if field.data:
            try:
                RequestStatus(field.data)
            except ValueError:
                raise ValidationError('Not a valid status')


def load_form(form_class, data):
    """Validate a JSON payload or query mapping with ``form_class``.

    Args:
        form_class: WTForms form describing the expected fields
        data: Mapping of raw values, or None for an empty body

    Returns:
        Form: The validated form

    Raises:
        ValidationFailed: With the per-field error messages
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationFailed('Invalid body', details={'body': ['Expected a JSON object']})

    form = form_class(data=data)
    if not form.validate():
        raise ValidationFailed(details=form.errors)
    return form
