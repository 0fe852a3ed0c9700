# apps/core/forms.py

"""
Forms de validação da API

Os nomes dos campos são as chaves do JSON (camelCase), assim os erros
voltam no formato [{'field': 'dueDate', 'message': ...}].
"""

import re

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator, URLValidator

from .models import BoardMember

NAME_VALIDATOR = RegexValidator(
    r'^[a-zA-Z\s]+$',
    message='Name can only contain letters and spaces',
)

PASSWORD_VALIDATOR = RegexValidator(
    r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)',
    message='Password must contain at least one uppercase letter, one lowercase letter, and one number',
)

HEX_COLOR_RE = re.compile(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$')


def validate_background(valor):
    """Cor hex, gradiente CSS ou URL de imagem"""
    if HEX_COLOR_RE.match(valor):
        return
    if valor.startswith(('linear-gradient', 'radial-gradient')):
        return
    if valor.startswith(('http://', 'https://')):
        return
    raise ValidationError('Background must be a valid hex color, gradient, or image URL')


def name_field(required=True):
    return forms.CharField(
        required=required,
        min_length=2,
        max_length=50,
        validators=[NAME_VALIDATOR],
        error_messages={
            'required': 'Name must be between 2 and 50 characters',
            'min_length': 'Name must be between 2 and 50 characters',
            'max_length': 'Name must be between 2 and 50 characters',
        },
    )


def email_field(required=True, message='Please provide a valid email address'):
    return forms.EmailField(
        required=required,
        error_messages={'required': message, 'invalid': message},
    )


def title_field(max_length, required=True):
    mensagem = f'Title must be between 1 and {max_length} characters'
    return forms.CharField(
        required=required,
        max_length=max_length,
        error_messages={'required': mensagem, 'max_length': mensagem},
    )


def description_field(max_length):
    return forms.CharField(
        required=False,
        max_length=max_length,
        error_messages={
            'max_length': f'Description cannot be more than {max_length} characters',
        },
    )


def id_field(message):
    return forms.IntegerField(
        min_value=1,
        error_messages={'required': message, 'invalid': message, 'min_value': message},
    )


def position_field():
    mensagem = 'Position must be a non-negative integer'
    return forms.IntegerField(
        min_value=0,
        error_messages={'required': mensagem, 'invalid': mensagem, 'min_value': mensagem},
    )


class JsonBooleanField(forms.Field):
    """Aceita apenas true, false ou null do JSON; strings como "yes" são erro"""

    default_error_messages = {'invalid': 'Enter a boolean value.'}

    def to_python(self, value):
        if value is None or isinstance(value, bool):
            return value
        raise ValidationError(self.error_messages['invalid'], code='invalid')


def boolean_field(nome):
    return JsonBooleanField(
        required=False,
        error_messages={'invalid': f'{nome} must be a boolean value'},
    )


class PartialUpdateForm(forms.Form):
    """
    Base para updates parciais

    Campos opcionais podem faltar, mas os listados em ``non_blank``
    não podem ser enviados vazios.
    """

    non_blank = ()
    blank_messages = {}

    def clean(self):
        cleaned_data = super().clean()
        for campo in self.non_blank:
            if campo in self.data and campo not in self.errors and not cleaned_data.get(campo):
                self.add_error(campo, self.blank_messages.get(campo, 'This field cannot be empty'))
        return cleaned_data


# =================== AUTH E USUÁRIOS ===================

class RegisterForm(forms.Form):
    name = name_field()
    email = email_field()
    password = forms.CharField(
        min_length=6,
        strip=False,
        validators=[PASSWORD_VALIDATOR],
        error_messages={
            'required': 'Password must be at least 6 characters',
            'min_length': 'Password must be at least 6 characters',
        },
    )
    useCookies = forms.BooleanField(required=False)


class LoginForm(forms.Form):
    email = email_field()
    password = forms.CharField(
        strip=False,
        error_messages={'required': 'Password is required'},
    )
    useCookies = forms.BooleanField(required=False)


class ProfileForm(PartialUpdateForm):
    """PUT /api/auth/profile"""

    name = name_field(required=False)
    email = email_field(required=False)


class UserProfileForm(PartialUpdateForm):
    """PUT /api/users/profile"""

    name = name_field(required=False)
    avatar = forms.CharField(
        required=False,
        max_length=500,
        validators=[URLValidator(message='Avatar must be a valid URL')],
        error_messages={'max_length': 'Avatar must be a valid URL'},
    )


class PreferencesForm(forms.Form):
    theme = forms.CharField(required=False, max_length=20)
    notifications = forms.JSONField(required=False)
    language = forms.CharField(required=False, max_length=10)
    timezone = forms.CharField(required=False, max_length=64)


# =================== BOARDS ===================

class BoardForm(PartialUpdateForm):
    """Criação e atualização de board"""

    title = title_field(100, required=False)
    description = description_field(500)
    background = forms.CharField(
        required=False,
        max_length=500,
        validators=[validate_background],
    )
    isPrivate = boolean_field('isPrivate')
    isStarred = boolean_field('isStarred')
    isArchived = boolean_field('isArchived')

    non_blank = ('title', 'background')
    blank_messages = {
        'title': 'Title must be between 1 and 100 characters',
        'background': 'Background must be a valid hex color, gradient, or image URL',
    }


class BoardCreateForm(BoardForm):
    title = title_field(100)


class AddMemberForm(forms.Form):
    email = email_field(message='Please provide a valid email')
    role = forms.ChoiceField(
        required=False,
        choices=BoardMember.ROLE_CHOICES,
        error_messages={'invalid_choice': 'Invalid role'},
    )

    def clean_role(self):
        return self.cleaned_data.get('role') or BoardMember.ROLE_EDITOR


# =================== LISTAS ===================

class ListCreateForm(forms.Form):
    title = title_field(100)
    board = id_field('Valid board ID is required')


class ListUpdateForm(PartialUpdateForm):
    title = title_field(100, required=False)
    isArchived = boolean_field('isArchived')

    non_blank = ('title',)
    blank_messages = {'title': 'Title must be between 1 and 100 characters'}


class ReorderListForm(forms.Form):
    position = position_field()


# =================== CARDS ===================

class LabelsMixin:
    """Labels são uma lista de {name, color}"""

    def clean_labels(self):
        labels = self.cleaned_data.get('labels')
        if labels is None:
            return []
        if not isinstance(labels, list):
            raise ValidationError('Labels must be a list')

        normalizados = []
        for label in labels:
            if not isinstance(label, dict) or not isinstance(label.get('name'), str):
                raise ValidationError('Each label must have a name')
            normalizados.append({
                'name': label['name'].strip(),
                'color': str(label.get('color') or ''),
            })
        return normalizados


class IsoDateTimeField(forms.DateTimeField):
    """Data ISO 8601 em string; números, listas e objetos são inválidos"""

    def to_python(self, value):
        if value is not None and not isinstance(value, str):
            raise ValidationError(self.error_messages['invalid'], code='invalid')
        return super().to_python(value)


def due_date_field():
    return IsoDateTimeField(
        required=False,
        error_messages={'invalid': 'Due date must be a valid date'},
    )


class CardCreateForm(LabelsMixin, forms.Form):
    title = title_field(200)
    list = id_field('Valid list ID is required')
    description = description_field(2000)
    dueDate = due_date_field()
    labels = forms.JSONField(required=False)


class CardUpdateForm(LabelsMixin, PartialUpdateForm):
    title = title_field(200, required=False)
    description = description_field(2000)
    dueDate = due_date_field()
    labels = forms.JSONField(required=False)
    members = forms.JSONField(required=False)
    completed = boolean_field('completed')
    isArchived = boolean_field('isArchived')

    non_blank = ('title',)
    blank_messages = {'title': 'Title must be between 1 and 200 characters'}

    def clean_members(self):
        membros = self.cleaned_data.get('members')
        if membros is None:
            return []
        if not isinstance(membros, list) or not all(
            isinstance(m, int) and not isinstance(m, bool) for m in membros
        ):
            raise ValidationError('Members must be a list of user IDs')
        return membros


class MoveCardForm(forms.Form):
    listId = id_field('Valid list ID is required')
    position = position_field()


class CommentForm(forms.Form):
    text = forms.CharField(
        max_length=1000,
        error_messages={
            'required': 'Comment must be between 1 and 1000 characters',
            'max_length': 'Comment must be between 1 and 1000 characters',
        },
    )
