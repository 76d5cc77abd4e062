"""Tag Routes - public tag listing and admin tag management."""

from flask import request
from app.api import bp
from app.api.forms import TagForm, TagUpdateForm
from app.api_auth import api_admin_required, api_success, api_error
from app.extensions import db
from app.exceptions import ResourceNotFound
from app.models import Tag
from app.security import InputSanitizer
from app.services import TagService


@bp.route('/tags', methods=['GET'])
def list_tags():
    return api_success(TagService.list_with_counts(search=request.args.get('search') or None))


@bp.route('/tags/popular', methods=['GET'])
def popular_tags():
    try:
        limit = InputSanitizer.sanitize_positive_integer(request.args.get('limit', 10), max_val=50)
    except ValueError:
        return api_error('limit must be a positive integer up to 50', 400)
    return api_success(TagService.popular(limit))


@bp.route('/tags/<slug>', methods=['GET'])
def get_tag(slug):
    return api_success(TagService.get_by_slug(slug).to_dict())


@bp.route('/tags', methods=['POST'])
@api_admin_required
def create_tag():
    form = TagForm.from_json().validate_or_raise()
    tag = TagService.create(form.name.data, form.description.data)
    db.session.commit()
    return api_success(tag.to_dict(), 'Tag created successfully', 201)


@bp.route('/tags/<int:tag_id>', methods=['PUT'])
@api_admin_required
def update_tag(tag_id):
    tag = db.session.get(Tag, tag_id)
    if tag is None:
        raise ResourceNotFound('Tag not found')

    form = TagUpdateForm.from_json().validate_or_raise()
    TagService.update(
        tag,
        name=form.name.data if form.provided('name') else None,
        description=(form.description.data or '') if form.provided('description') else None,
    )
    db.session.commit()
    return api_success(tag.to_dict(), 'Tag updated successfully')


@bp.route('/tags/<int:tag_id>', methods=['DELETE'])
@api_admin_required
def delete_tag(tag_id):
    tag = db.session.get(Tag, tag_id)
    if tag is None:
        raise ResourceNotFound('Tag not found')

    TagService.delete(tag)
    db.session.commit()
    return api_success(message='Tag deleted successfully')
