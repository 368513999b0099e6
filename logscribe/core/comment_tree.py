"""Mapping between raw comment trees and translated comment trees.

All functions here are pure. Child order is always preserved.
"""

from typing import Any, Optional

from logscribe.core.exceptions import MalformedResponseError
from logscribe.core.types import (
    CommentDTO,
    PostDTO,
    TranslatedCommentDTO,
    TranslatedPostDTO,
)

MAX_TOP_LEVEL_COMMENTS = 10
MAX_COMMENT_DEPTH = 3


def simplify_comment(comment: CommentDTO, depth: int, max_depth: int) -> Optional[dict]:
    """Reduce a comment to {author, body[, replies]} bounded by max_depth.

    Returns None when depth is already at or past max_depth. The "replies"
    key is present only if at least one child survived.
    """
    if depth >= max_depth:
        return None

    simplified: dict[str, Any] = {"author": comment.author, "body": comment.body}

    if comment.children and depth + 1 < max_depth:
        replies = [
            r for r in (
                simplify_comment(child, depth + 1, max_depth)
                for child in comment.children
            )
            if r is not None
        ]
        if replies:
            simplified["replies"] = replies

    return simplified


def simplify_comments(
    comments: list[CommentDTO],
    limit: int = MAX_TOP_LEVEL_COMMENTS,
    max_depth: int = MAX_COMMENT_DEPTH,
) -> list[dict]:
    """Simplify the first `limit` top-level comments."""
    result = []
    for comment in comments[:limit]:
        simplified = simplify_comment(comment, 0, max_depth)
        if simplified is not None:
            result.append(simplified)
    return result


def mirror_comments(comments: list[CommentDTO]) -> list[TranslatedCommentDTO]:
    """Untruncated identity mapping into the translated shape."""
    return [
        TranslatedCommentDTO(
            author=c.author,
            body=c.body,
            replies=mirror_comments(c.children),
        )
        for c in comments
    ]


def mirror_post(post: PostDTO, comments: list[CommentDTO]) -> TranslatedPostDTO:
    return TranslatedPostDTO(
        title=post.title,
        selftext=post.selftext,
        comments=mirror_comments(comments),
    )


def copy_translated(post: TranslatedPostDTO) -> TranslatedPostDTO:
    """Independent snapshot of a translated post."""
    return TranslatedPostDTO(
        title=post.title,
        selftext=post.selftext,
        comments=_copy_comments(post.comments),
    )


def _copy_comments(comments: list[TranslatedCommentDTO]) -> list[TranslatedCommentDTO]:
    return [
        TranslatedCommentDTO(author=c.author, body=c.body, replies=_copy_comments(c.replies))
        for c in comments
    ]


def parse_translated_post(data: Any) -> TranslatedPostDTO:
    """Validate a decoded JSON object and convert it to TranslatedPostDTO.

    Expected shape: {"title": str, "selftext": str, "comments": [comment]}
    where comment is {"author": str, "body": str, "replies": [comment]}.
    "selftext", "comments" and "replies" may be omitted.

    Raises:
        MalformedResponseError: The object does not match the shape.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError("Translation response is not a JSON object")

    title = data.get("title")
    if not isinstance(title, str):
        raise MalformedResponseError("Translation response has no string 'title'")

    selftext = data.get("selftext", "")
    if selftext is None:
        selftext = ""
    if not isinstance(selftext, str):
        raise MalformedResponseError("'selftext' must be a string")

    return TranslatedPostDTO(
        title=title,
        selftext=selftext,
        comments=_parse_comments(data.get("comments"), "comments"),
    )


def _parse_comments(raw: Any, path: str) -> list[TranslatedCommentDTO]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedResponseError(f"'{path}' must be a list")

    comments = []
    for i, item in enumerate(raw):
        item_path = f"{path}[{i}]"
        if not isinstance(item, dict):
            raise MalformedResponseError(f"'{item_path}' must be an object")
        author = item.get("author", "")
        body = item.get("body")
        if not isinstance(author, str) or not isinstance(body, str):
            raise MalformedResponseError(f"'{item_path}' needs string 'author' and 'body'")
        comments.append(TranslatedCommentDTO(
            author=author,
            body=body,
            replies=_parse_comments(item.get("replies"), f"{item_path}.replies"),
        ))
    return comments


def clamp_to_source(
    translated: list[TranslatedCommentDTO],
    source: list[CommentDTO],
) -> list[TranslatedCommentDTO]:
    """Drop translated nodes that have no positional counterpart in the source.

    Keeps a translated tree a truncation of its source even when a provider
    invents extra comments or replies. Authors always come from the source.
    """
    clamped = []
    for t, s in zip(translated, source):
        clamped.append(TranslatedCommentDTO(
            author=s.author,
            body=t.body,
            replies=clamp_to_source(t.replies, s.children),
        ))
    return clamped
