"""Plain-dict serialisation helpers shared by the services."""
from app.models import Article, Tag, User


def _iso(value):
    return value.isoformat() if value else None


def user_to_dict(user: User) -> dict:
    """Serialise an account; the password digest is never included."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "bio": user.bio,
        "avatar": user.avatar,
        "created_at": _iso(user.created_at),
    }


def tag_to_dict(tag: Tag) -> dict:
    return {"id": tag.id, "name": tag.name, "description": tag.description}


def article_summary_to_dict(article: Article) -> dict:
    """
    Lightweight article form embedded in account detail and tag
    back-reference listings; author and tags are omitted.
    """
    return {
        "id": article.id,
        "title": article.title,
        "user_id": article.user_id,
        "created_at": _iso(article.created_at),
        "updated_at": _iso(article.updated_at),
    }


def article_to_dict(article: Article) -> dict:
    data = article_summary_to_dict(article)
    data["content"] = article.content
    data["author"] = user_to_dict(article.author) if article.author else None
    data["tags"] = [tag_to_dict(t) for t in article.tags]
    return data
