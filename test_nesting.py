"""
Tests for parent validation of threaded comments.
"""

import pytest
from sqlalchemy import update

from app.exceptions import InvalidParent, NestingCycleError
from app.extensions import db
from app.models import Article, ArticleStatus, Comment
from app.services import NestingService


def _article(user_id, slug):
    article = Article(title=slug.title(), slug=slug, content='Body', status=ArticleStatus.PUBLISHED,
                      user_id=user_id)
    db.session.add(article)
    db.session.flush()
    return article


def _comment(article_id, user_id, parent_id=None):
    comment = Comment(content='Text', article_id=article_id, user_id=user_id, parent_id=parent_id)
    db.session.add(comment)
    db.session.flush()
    return comment


def _resolve(article_id, parent_id):
    return NestingService.resolve_parent(Comment, parent_id, 'article_id', article_id, 'parent_id')


@pytest.fixture
def chain(ctx, author):
    """An article with a three-level reply chain: root <- middle <- leaf."""
    article = _article(author.id, 'queen-rearing')
    root = _comment(article.id, author.id)
    middle = _comment(article.id, author.id, root.id)
    leaf = _comment(article.id, author.id, middle.id)
    db.session.commit()
    return article.id, root.id, middle.id, leaf.id


def test_top_level_comment_has_no_parent(chain):
    article_id = chain[0]
    assert _resolve(article_id, None) is None


def test_parent_in_same_article_is_returned(chain):
    article_id, root_id = chain[0], chain[1]
    assert _resolve(article_id, root_id).id == root_id


def test_missing_parent_rejected(chain):
    with pytest.raises(InvalidParent) as exc:
        _resolve(chain[0], 9999)
    assert exc.value.message == 'Invalid parent comment'


def test_parent_from_another_article_rejected(chain, author):
    other = _article(author.id, 'swarm-traps')
    db.session.commit()

    with pytest.raises(InvalidParent):
        _resolve(other.id, chain[1])


def test_ancestor_walk_goes_up_to_the_root(chain):
    _, root_id, middle_id, leaf_id = chain
    assert list(NestingService.ancestor_ids(Comment, 'parent_id', leaf_id)) == [leaf_id, middle_id, root_id]


def test_reply_to_comment_in_looping_chain_rejected(chain):
    article_id, root_id, middle_id, leaf_id = chain

    # Corrupt the stored chain so root points back at leaf
    db.session.execute(update(Comment).where(Comment.id == root_id).values(parent_id=leaf_id))
    db.session.commit()
    db.session.expire_all()

    with pytest.raises(NestingCycleError):
        _resolve(article_id, middle_id)


def test_depth_limit(chain, monkeypatch):
    article_id, leaf_id = chain[0], chain[3]
    monkeypatch.setattr('app.services.nesting_service.MAX_NESTING_DEPTH', 2)

    with pytest.raises(NestingCycleError):
        _resolve(article_id, leaf_id)
