"""Render post documents into API views with resolved user summaries."""

from __future__ import annotations

from typing import Iterable, List

from unlinked.domain.identity.store import IdentityStore
from unlinked.domain.posts.models import Post
from unlinked.domain.posts.schemas import CommentView, PostView


async def render_posts(identity: IdentityStore, posts: Iterable[Post]) -> List[PostView]:
	posts = list(posts)
	user_ids = {post.author_id for post in posts}
	user_ids.update(comment.user_id for post in posts for comment in post.comments)
	summaries = await identity.get_summaries(user_ids)
	return [
		PostView(
			id=post.id,
			author=summaries.get(post.author_id),
			author_id=post.author_id,
			content=post.content,
			image=post.image,
			likes=sorted(post.likes),
			like_count=len(post.likes),
			comments=[
				CommentView(
					user=summaries.get(comment.user_id),
					user_id=comment.user_id,
					content=comment.content,
					created_at=comment.created_at,
				)
				for comment in post.comments
			],
			created_at=post.created_at,
		)
		for post in posts
	]


async def render_post(identity: IdentityStore, post: Post) -> PostView:
	views = await render_posts(identity, [post])
	return views[0]
