"""
Tests for slug and excerpt helpers in app.utils, and article slug de-duplication.
"""

import pytest

from app.extensions import db
from app.models import Article, ArticleStatus
from app.services import ArticleService
from app.utils import (
    slugify, forum_slugify, resolve_slug, make_excerpt, CATEGORY_SLUG_LENGTH, THREAD_SLUG_LENGTH
)


def test_slugify_collapses_punctuation_and_spaces():
    assert slugify('Hello, World!  Bees & Honey') == 'hello-world-bees-honey'


def test_slugify_is_idempotent_on_normalized_input():
    assert slugify('already-a-slug') == 'already-a-slug'
    assert slugify(slugify('Spring Hive Inspection')) == 'spring-hive-inspection'


@pytest.mark.parametrize('text, expected', [
    ('  --Leading and trailing--  ', 'leading-and-trailing'),
    ('snake_case_title', 'snake-case-title'),
    ('Queen #2 (marked)', 'queen-2-marked'),
    ('Crème Brûlée', 'creme-brulee'),
])
def test_article_slug_edge_cases(text, expected):
    assert slugify(text) == expected


@pytest.mark.parametrize('text, expected', [
    ('Hello, World!  Bees & Honey', 'hello-world-bees-honey'),
    ('already-a-slug', 'already-a-slug'),
    ('  --Leading and trailing--  ', 'leading-and-trailing'),
    ('snake_case_title', 'snake-case-title'),
    ("Don't Panic", 'don-t-panic'),
    ('Crème Brûlée', 'cr-me-br-l-e'),
    ('1,000 bees', '1-000-bees'),
    ('Bees &amp; Honey', 'bees-amp-honey'),
    ('Hive &#35;2', 'hive-35-2'),
])
def test_forum_slug_edge_cases(text, expected):
    assert forum_slugify(text, CATEGORY_SLUG_LENGTH) == expected


def test_slugify_empty_input():
    assert slugify('') == ''
    assert slugify(None) == ''
    assert slugify('!!!') == ''
    assert forum_slugify('', CATEGORY_SLUG_LENGTH) == ''
    assert forum_slugify('!!!', CATEGORY_SLUG_LENGTH) == ''


def test_slugify_truncates_without_trailing_hyphen():
    slug = slugify('word ' * 100, CATEGORY_SLUG_LENGTH)
    assert len(slug) <= CATEGORY_SLUG_LENGTH
    assert not slug.endswith('-')

    assert len(slugify('a' * 400, THREAD_SLUG_LENGTH)) == THREAD_SLUG_LENGTH


def test_forum_slug_cut_on_a_hyphen_drops_it():
    # The 150th character of the slug is the hyphen before 'tail'
    assert forum_slugify('a' * 149 + ' tail', CATEGORY_SLUG_LENGTH) == 'a' * 149
    assert forum_slugify('b' * 299 + '!!tail', THREAD_SLUG_LENGTH) == 'b' * 299

    # A cut inside a word keeps the partial word
    assert forum_slugify('a' * 148 + ' tail', CATEGORY_SLUG_LENGTH) == 'a' * 148 + '-t'


def test_resolve_slug_prefers_caller_slug():
    assert resolve_slug('My Custom Slug', 'Some Title', CATEGORY_SLUG_LENGTH) == 'my-custom-slug'
    assert resolve_slug(None, 'Some Title', CATEGORY_SLUG_LENGTH) == 'some-title'
    assert resolve_slug('', '', CATEGORY_SLUG_LENGTH) == ''
    assert resolve_slug(None, 'Crème de la Ruche', CATEGORY_SLUG_LENGTH) == 'cr-me-de-la-ruche'


def test_make_excerpt_only_marks_truncation():
    assert make_excerpt('Short text', length=200) == 'Short text'

    excerpt = make_excerpt('x' * 250, length=200)
    assert excerpt == 'x' * 200 + '...'


def test_article_slug_gets_numeric_suffix_on_collision(ctx, author):
    for _ in range(3):
        db.session.add(Article(
            title='Swarm Season', slug=ArticleService.unique_slug('swarm-season'),
            content='Body', status=ArticleStatus.DRAFT, user_id=author.id
        ))
        db.session.flush()

    slugs = sorted(db.session.scalars(db.select(Article.slug)).all())
    assert slugs == ['swarm-season', 'swarm-season-1', 'swarm-season-2']
