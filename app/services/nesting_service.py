"""
Nesting Service - parent checks for threaded comments.

Comments reference their parent by id. A parent must be an existing row of
the same table under the same container (article or thread). New rows get
ids above every existing row, so a fresh reply cannot close a loop; the
ancestor walk below rejects a parent whose stored chain already loops or
runs deeper than MAX_NESTING_DEPTH.
"""

import logging
from app.extensions import db
from app.exceptions import InvalidParent, NestingCycleError

logger = logging.getLogger(__name__)

# Upper bound on the ancestor walk; deeper chains are treated as corrupt
MAX_NESTING_DEPTH = 1000


class NestingService:

    @staticmethod
    def ancestor_ids(model, parent_attr, start_id):
        """
        Yield the ids from `start_id` up to the root by following `parent_attr`.

        Raises:
            NestingCycleError: if an id repeats or the chain exceeds MAX_NESTING_DEPTH
        """
        seen = set()
        current_id = start_id
        parent_column = getattr(model, parent_attr)

        while current_id is not None:
            if current_id in seen or len(seen) >= MAX_NESTING_DEPTH:
                logger.error(f"{model.__name__} parent chain from {start_id} loops or is too deep")
                raise NestingCycleError()
            seen.add(current_id)
            yield current_id
            current_id = db.session.scalar(db.select(parent_column).where(model.id == current_id))

    @staticmethod
    def resolve_parent(model, parent_id, scope_attr, scope_id, parent_attr):
        """
        Load and validate the parent for a new reply.

        Args:
            model: Comment model class (Comment or ForumComment)
            parent_id: Requested parent id, or None for a top-level comment
            scope_attr: Name of the container column ('article_id' / 'thread_id')
            scope_id: Container id the reply belongs to
            parent_attr: Name of the self-reference column

        Returns:
            The parent instance, or None for a top-level comment

        Raises:
            InvalidParent: parent missing or in a different container
            NestingCycleError: the parent's own chain loops or is too deep
        """
        if parent_id is None:
            return None

        parent = db.session.get(model, parent_id)
        if parent is None or getattr(parent, scope_attr) != scope_id:
            raise InvalidParent()

        # Raises before returning if the chain above the parent is broken
        for _ in NestingService.ancestor_ids(model, parent_attr, parent.id):
            pass

        return parent
