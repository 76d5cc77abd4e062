# app/api/forms.py
"""Request forms for the JSON API.

Forms are fed from the request's JSON body rather than from HTML form posts.
CSRF is checked once for the whole app by CSRFProtect, so the per-form token
is switched off.
"""

from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import StringField, TextAreaField, IntegerField, PasswordField
from wtforms.validators import DataRequired, Length, Optional, NumberRange, AnyOf, Regexp, ValidationError
from app.exceptions import ValidationFailed
from app.security import InputSanitizer

USERNAME_PATTERN = r'^[A-Za-z0-9_.-]+$'
CATEGORY_NAME_PATTERN = r'^[A-Za-z0-9\s\-&]+$'
FEATURE_NAME_PATTERN = r'^[a-z][a-z0-9_]*$'

ARTICLE_STATUSES = ['draft', 'published', 'archived']


# --- Custom Validators ---
class ValidEmail:
    """Validator using the same normalization the services apply."""

    def __init__(self, message=None):
        self.message = message or 'Please provide a valid email address.'

    def __call__(self, form, field):
        if not field.data:
            return
        try:
            field.data = InputSanitizer.sanitize_email(field.data)
        except ValueError:
            raise ValidationError(self.message)


class SanitizedInput:
    """Validator that sanitizes input and replaces field data."""

    def __init__(self, sanitizer_func):
        self.sanitizer_func = sanitizer_func

    def __call__(self, form, field):
        if field.data:
            field.data = self.sanitizer_func(field.data)


def _to_formdata(data):
    formdata = MultiDict()
    for key, value in (data or {}).items():
        if value is None:
            continue
        if isinstance(value, bool):
            formdata.add(key, 'true' if value else 'false')
        elif isinstance(value, (list, tuple)):
            for item in value:
                formdata.add(key, str(item))
        else:
            formdata.add(key, str(value))
    return formdata


class ApiForm(FlaskForm):
    """Base form populated from a JSON object."""

    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, data=None):
        if data is None:
            data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            raise ValidationFailed('Request body must be a JSON object')
        form = cls(formdata=_to_formdata(data))
        form.raw = data
        return form

    def validate_or_raise(self):
        """Run validators; raise ValidationFailed (400) carrying the field errors."""
        if not self.validate():
            raise ValidationFailed('Validation failed', details=self.errors)
        return self

    def provided(self, name):
        """True if the JSON body carried the key, even with an empty value."""
        return name in getattr(self, 'raw', {})


# --- Auth Forms ---
class RegisterForm(ApiForm):
    username = StringField('Username', validators=[
        DataRequired(message='Username is required.'),
        Length(min=3, max=50, message='Username must be between 3 and 50 characters.'),
        Regexp(USERNAME_PATTERN, message='Username may only contain letters, numbers, dots, dashes and underscores.')
    ])
    email = StringField('Email', validators=[
        DataRequired(message='Email is required.'),
        ValidEmail()
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Password is required.'),
        Length(min=8, max=128, message='Password must be between 8 and 128 characters.')
    ])


class LoginForm(ApiForm):
    login = StringField('Username or email', validators=[DataRequired(message='Username or email is required.')])
    password = PasswordField('Password', validators=[DataRequired(message='Password is required.')])


# --- Article Forms ---
class ArticleForm(ApiForm):
    title = StringField('Title', validators=[
        DataRequired(message='Title is required.'),
        Length(max=255, message='Title must not exceed 255 characters.')
    ])
    content = TextAreaField('Content', validators=[DataRequired(message='Content is required.')])
    excerpt = TextAreaField('Excerpt', validators=[
        Optional(),
        Length(max=1000, message='Excerpt must not exceed 1000 characters.')
    ])
    slug = StringField('Slug', validators=[Optional(), Length(max=255)])
    featured_image = StringField('Featured image', validators=[Optional(), Length(max=500)])
    status = StringField('Status', validators=[
        Optional(),
        AnyOf(ARTICLE_STATUSES, message='Status must be one of: draft, published, archived.')
    ])


class ArticleUpdateForm(ArticleForm):
    title = StringField('Title', validators=[
        Optional(),
        Length(max=255, message='Title must not exceed 255 characters.')
    ])
    content = TextAreaField('Content', validators=[Optional()])


class TagForm(ApiForm):
    name = StringField('Name', validators=[
        DataRequired(message='Tag name is required.'),
        Length(max=50, message='Tag name must not exceed 50 characters.')
    ])
    description = TextAreaField('Description', validators=[
        Optional(),
        Length(max=500, message='Description must not exceed 500 characters.')
    ])


class TagUpdateForm(TagForm):
    name = StringField('Name', validators=[
        Optional(),
        Length(max=50, message='Tag name must not exceed 50 characters.')
    ])


# --- Comment Forms ---
class CommentForm(ApiForm):
    article_id = IntegerField('Article', validators=[
        DataRequired(message='Article is required.'),
        NumberRange(min=1, message='Invalid article ID.')
    ])
    parent_id = IntegerField('Parent comment', validators=[
        Optional(),
        NumberRange(min=1, message='Invalid parent comment ID.')
    ])
    content = TextAreaField('Comment', validators=[
        DataRequired(message='Comment content is required.'),
        Length(min=1, max=5000, message='Comment must be between 1 and 5000 characters.')
    ])


class CommentUpdateForm(ApiForm):
    content = TextAreaField('Comment', validators=[
        DataRequired(message='Comment content is required.'),
        Length(min=1, max=5000, message='Comment must be between 1 and 5000 characters.')
    ])


class ReportForm(ApiForm):
    reason = TextAreaField('Reason', validators=[
        DataRequired(message='A reason is required.'),
        Length(max=500, message='Reason must not exceed 500 characters.')
    ])


# --- Forum Forms ---
class CategoryForm(ApiForm):
    name = StringField('Name', validators=[
        DataRequired(message='Category name is required.'),
        Length(min=3, max=100, message='Category name must be between 3 and 100 characters.'),
        Regexp(CATEGORY_NAME_PATTERN,
               message='Category name can only contain letters, numbers, spaces, hyphens, and ampersands.')
    ])
    description = TextAreaField('Description', validators=[
        Optional(),
        Length(max=500, message='Description must not exceed 500 characters.')
    ])
    slug = StringField('Slug', validators=[Optional(), Length(max=150)])


class CategoryUpdateForm(CategoryForm):
    name = StringField('Name', validators=[
        Optional(),
        Length(min=3, max=100, message='Category name must be between 3 and 100 characters.'),
        Regexp(CATEGORY_NAME_PATTERN,
               message='Category name can only contain letters, numbers, spaces, hyphens, and ampersands.')
    ])


class ThreadForm(ApiForm):
    title = StringField('Title', validators=[
        DataRequired(message='Thread title is required.'),
        Length(min=5, max=255, message='Thread title must be between 5 and 255 characters.')
    ])
    content = TextAreaField('Content', validators=[
        DataRequired(message='Thread content is required.'),
        Length(min=10, max=10000, message='Thread content must be between 10 and 10000 characters.')
    ])
    category_id = IntegerField('Category', validators=[
        DataRequired(message='Category is required.'),
        NumberRange(min=1, message='Invalid category ID.')
    ])
    slug = StringField('Slug', validators=[Optional(), Length(max=300)])


class ThreadUpdateForm(ApiForm):
    title = StringField('Title', validators=[
        Optional(),
        Length(min=5, max=255, message='Thread title must be between 5 and 255 characters.')
    ])
    content = TextAreaField('Content', validators=[
        Optional(),
        Length(min=10, max=10000, message='Thread content must be between 10 and 10000 characters.')
    ])


class ForumCommentForm(ApiForm):
    thread_id = IntegerField('Thread', validators=[
        DataRequired(message='Thread ID is required.'),
        NumberRange(min=1, message='Invalid thread ID.')
    ])
    parent_comment_id = IntegerField('Parent comment', validators=[
        Optional(),
        NumberRange(min=1, message='Invalid parent comment ID.')
    ])
    content = TextAreaField('Comment', validators=[
        DataRequired(message='Comment content is required.'),
        Length(min=1, max=5000, message='Comment content must not exceed 5000 characters.')
    ])


class ForumCommentUpdateForm(ApiForm):
    content = TextAreaField('Comment', validators=[
        DataRequired(message='Comment content is required.'),
        Length(min=1, max=5000, message='Comment content must not exceed 5000 characters.')
    ])


class MoveThreadForm(ApiForm):
    category_id = IntegerField('Target category', validators=[
        DataRequired(message='Target category is required.'),
        NumberRange(min=1, message='Invalid category ID.')
    ])


# --- Newsletter / Contact Forms ---
class NewsletterForm(ApiForm):
    email = StringField('Email', validators=[
        DataRequired(message='Email is required.'),
        ValidEmail()
    ])


class ContactForm(ApiForm):
    name = StringField('Name', validators=[
        DataRequired(message='Name is required.'),
        Length(min=2, max=100, message='Name must be between 2 and 100 characters.')
    ])
    email = StringField('Email', validators=[
        DataRequired(message='Email is required.'),
        ValidEmail()
    ])
    subject = StringField('Subject', validators=[
        DataRequired(message='Subject is required.'),
        Length(min=5, max=200, message='Subject must be between 5 and 200 characters.')
    ])
    message = TextAreaField('Message', validators=[
        DataRequired(message='Message is required.'),
        Length(min=10, max=5000, message='Message must be between 10 and 5000 characters.')
    ])

    def validate_name(self, field):
        field.data = InputSanitizer.sanitize_description(field.data, max_length=100)
        if len(field.data) < 2:
            raise ValidationError('Name must be between 2 and 100 characters.')


# --- Feature Forms ---
class FeatureForm(ApiForm):
    name = StringField('Name', validators=[
        DataRequired(message='Feature name is required.'),
        Length(max=50, message='Feature name must not exceed 50 characters.'),
        Regexp(FEATURE_NAME_PATTERN, message='Feature name must be lower-case letters, digits and underscores.')
    ])
    description = TextAreaField('Description', validators=[
        Optional(),
        Length(max=255, message='Description must not exceed 255 characters.'),
        SanitizedInput(InputSanitizer.sanitize_description)
    ])


def json_bool(data, key, default=None):
    """Read a boolean from a JSON body, accepting true/false, 1/0 and their string forms."""
    if key not in data or data[key] is None:
        if default is None:
            raise ValidationFailed(f'{key} is required')
        return default
    try:
        return InputSanitizer.sanitize_boolean(data[key])
    except ValueError:
        raise ValidationFailed(f'{key} must be a boolean value')


def json_tags(data, key='tags'):
    """Tag names from a JSON body: a list of strings or a comma-separated string; None if absent."""
    if key not in data or data[key] is None:
        return None
    value = data[key]
    if isinstance(value, str):
        value = value.split(',')
    if not isinstance(value, (list, tuple)):
        raise ValidationFailed('tags must be a list of names')
    return [str(item).strip() for item in value if str(item).strip()]
