"""Timeline assembly from a user's own posts and their connections' posts."""

from __future__ import annotations

from typing import List, Optional

from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.posts.schemas import PostView
from unlinked.domain.posts.store import PostStore
from unlinked.domain.posts.views import render_posts
from unlinked.infra.auth import AuthenticatedUser


class FeedComposer:
	def __init__(self, *, posts: PostStore | None = None, identity: IdentityStore | None = None) -> None:
		self.posts = posts or PostStore()
		self.identity = identity or IdentityStore()

	async def get_feed(self, auth_user: AuthenticatedUser, *, limit: Optional[int] = None) -> List[PostView]:
		"""Posts by the viewer and direct connections, newest first.

		Recomputed from the stores on every call; an empty connection set yields
		the viewer's own posts only.
		"""
		user_id = str(auth_user.id)
		authors = [user_id, *sorted(await self.identity.get_connection_ids(user_id))]
		rows = await self.posts.ids_by_authors(authors)
		rows.sort(key=lambda row: (row[1], row[0]), reverse=True)
		if limit is not None:
			rows = rows[: max(0, limit)]
		posts = await self.posts.get_many(post_id for post_id, _ in rows)
		return await render_posts(self.identity, posts)


__all__ = ["FeedComposer"]
