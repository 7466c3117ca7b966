"""Redis-backed post documents.

A post is the hash `post:{id}` plus the set `post:{id}:likes` and the list
`post:{id}:comments`. Likes and comments are mutated with single set or list
commands inside a MULTI that watches only the post hash, so concurrent
engagement never loses an update and nothing lands on a deleted post; the
per-author index `posts:author:{author_id}` is a zset scored by creation time.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from redis.exceptions import WatchError

from unlinked.domain.common.exceptions import NotFound
from unlinked.domain.posts.models import Comment, LikeChange, Post
from unlinked.domain.posts.schemas import PostPreview
from unlinked.infra.redis import redis_client


def _post_key(post_id: str) -> str:
	return f"post:{post_id}"


def _likes_key(post_id: str) -> str:
	return f"post:{post_id}:likes"


def _comments_key(post_id: str) -> str:
	return f"post:{post_id}:comments"


def _author_index_key(author_id: str) -> str:
	return f"posts:author:{author_id}"


class PostStore:
	async def create(
		self,
		*,
		author_id: str,
		content: str,
		image: Optional[str] = None,
		created_at: Optional[datetime] = None,
	) -> Post:
		post_id = str(uuid4())
		created = created_at or datetime.now(timezone.utc)
		record = {
			"author_id": author_id,
			"content": content,
			"image": image or "",
			"created_at": created.isoformat(),
		}
		async with redis_client.pipeline(transaction=True) as pipe:
			pipe.hset(_post_key(post_id), mapping=record)
			pipe.zadd(_author_index_key(author_id), {post_id: created.timestamp()})
			await pipe.execute()
		return Post.from_record(post_id, record)

	async def get(self, post_id: str) -> Optional[Post]:
		posts = await self.get_many([post_id])
		return posts[0] if posts else None

	async def get_many(self, post_ids: Iterable[str]) -> List[Post]:
		"""Load posts in the given order, skipping ids that no longer exist."""
		ids = list(post_ids)
		if not ids:
			return []
		pipe = redis_client.pipeline(transaction=False)
		for post_id in ids:
			pipe.hgetall(_post_key(post_id))
			pipe.smembers(_likes_key(post_id))
			pipe.lrange(_comments_key(post_id), 0, -1)
		results = await pipe.execute()
		posts: List[Post] = []
		for idx, post_id in enumerate(ids):
			record, likes, comments = results[idx * 3 : idx * 3 + 3]
			if not record:
				continue
			posts.append(Post.from_record(post_id, record, set(likes), comments))
		return posts

	async def delete(self, post: Post) -> None:
		async with redis_client.pipeline(transaction=True) as pipe:
			pipe.delete(_post_key(post.id), _likes_key(post.id), _comments_key(post.id))
			pipe.zrem(_author_index_key(post.author_id), post.id)
			await pipe.execute()

	async def toggle_like(self, post_id: str, user_id: str) -> LikeChange:
		"""Flip `user_id`'s like while the post exists; raise NotFound once it is gone.

		Only the post hash is watched, so likes by different users never
		conflict. A same-user race lands as UNCHANGED for the loser.
		"""
		likes_key = _likes_key(post_id)
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(_post_key(post_id))
				if not await pipe.exists(_post_key(post_id)):
					raise NotFound("post_missing")
				was_liked = bool(await pipe.sismember(likes_key, user_id))
				pipe.multi()
				if was_liked:
					pipe.srem(likes_key, user_id)
				else:
					pipe.sadd(likes_key, user_id)
				(changed,) = await pipe.execute()
			except WatchError:
				# The hash is written once at creation, so only a delete trips the watch
				raise NotFound("post_missing") from None
		if not changed:
			return LikeChange.UNCHANGED
		return LikeChange.UNLIKED if was_liked else LikeChange.LIKED

	async def append_comment(self, post_id: str, comment: Comment) -> int:
		"""RPUSH the comment unless the post has been deleted."""
		async with redis_client.pipeline(transaction=True) as pipe:
			try:
				await pipe.watch(_post_key(post_id))
				if not await pipe.exists(_post_key(post_id)):
					raise NotFound("post_missing")
				pipe.multi()
				pipe.rpush(_comments_key(post_id), comment.to_json())
				(length,) = await pipe.execute()
			except WatchError:
				raise NotFound("post_missing") from None
		return int(length)

	async def ids_by_authors(self, author_ids: Iterable[str]) -> List[Tuple[str, float]]:
		"""Return `(post_id, created_ts)` pairs for every post by the given authors."""
		authors = list(dict.fromkeys(author_ids))
		if not authors:
			return []
		pipe = redis_client.pipeline(transaction=False)
		for author_id in authors:
			pipe.zrange(_author_index_key(author_id), 0, -1, withscores=True)
		rows = await pipe.execute()
		return [(member, float(score)) for entries in rows for member, score in entries]

	async def previews(self, post_ids: Iterable[str]) -> Dict[str, PostPreview]:
		ids = list(dict.fromkeys(post_ids))
		if not ids:
			return {}
		pipe = redis_client.pipeline(transaction=False)
		for post_id in ids:
			pipe.hmget(_post_key(post_id), "content", "image", "author_id")
		rows = await pipe.execute()
		previews: Dict[str, PostPreview] = {}
		for post_id, (content, image, author_id) in zip(ids, rows):
			if author_id is None:
				continue
			previews[post_id] = PostPreview(id=post_id, content=content or "", image=image or None)
		return previews


__all__ = ["PostStore"]
