"""
База знаний: статьи, категории, теги, счётчики просмотров и оценок.

Статусы DRAFT / PUBLISHED / ARCHIVED. Публикация допускается из любого
статуса, в том числе повторная публикация архивной статьи.
"""
from flask import current_app
from sqlalchemy import func, or_

from portal.core import get_db
from portal.enums import ArticleStatus
from portal.errors import BadRequestError, NotFoundError
from portal.models import KnowledgeArticle, KnowledgeCategory, ArticleTag
from portal.pagination import paginate
from portal.utils import utcnow, iso
from portal.validation import Validator

db = get_db()

ARTICLE_SORT_FIELDS = ('id', 'title', 'created_at', 'updated_at', 'published_at', 'view_count', 'helpful_count')


def _helpful_ratio(a):
    votes = a.helpful_count + a.not_helpful_count
    return round(a.helpful_count / votes * 100, 2) if votes else 0.0


def article_to_dict(a):
    return {
        'id': a.id,
        'title': a.title,
        'content': a.content,
        'category_id': a.category_id,
        'category_name': a.category.name if a.category else None,
        'tags': a.tags,
        'status': a.status,
        'author_id': a.author_id,
        'author_name': a.author.full_name if a.author else None,
        'view_count': a.view_count,
        'helpful_count': a.helpful_count,
        'not_helpful_count': a.not_helpful_count,
        'helpful_percentage': _helpful_ratio(a),
        'is_featured': a.is_featured,
        'created_at': iso(a.created_at),
        'updated_at': iso(a.updated_at),
        'published_at': iso(a.published_at),
    }


def category_to_dict(c, article_count=None):
    if article_count is None:
        article_count = c.articles.filter_by(status=ArticleStatus.PUBLISHED.value).count()
    return {
        'id': c.id,
        'name': c.name,
        'description': c.description,
        'display_order': c.display_order,
        'article_count': article_count,
        'created_at': iso(c.created_at),
    }


def _published():
    return KnowledgeArticle.query.filter(KnowledgeArticle.status == ArticleStatus.PUBLISHED.value)


def _featured_first(query):
    return query.order_by(KnowledgeArticle.is_featured.desc(), KnowledgeArticle.created_at.desc(),
                          KnowledgeArticle.id.desc())


def get_article(article_id):
    article = db.session.get(KnowledgeArticle, article_id)
    if not article:
        raise NotFoundError("KnowledgeArticle", "id", article_id)
    return article


def get_category(category_id):
    category = db.session.get(KnowledgeCategory, category_id)
    if not category:
        raise NotFoundError("KnowledgeCategory", "id", category_id)
    return category


# ============================================================================
# ЧТЕНИЕ
# ============================================================================

def published_articles(page_request=None):
    """Опубликованные статьи: сначала избранные, затем новые"""
    if page_request is not None:
        query = _published().order_by(KnowledgeArticle.is_featured.desc())
        return paginate(query, KnowledgeArticle, page_request, article_to_dict)
    return [article_to_dict(a) for a in _featured_first(_published()).all()]


def articles_by_category(category_id):
    get_category(category_id)
    query = _published().filter(KnowledgeArticle.category_id == category_id)
    return [article_to_dict(a) for a in _featured_first(query).all()]


def articles_by_tag(tag):
    tag = (tag or '').strip().lower()
    query = _published().join(ArticleTag).filter(func.lower(ArticleTag.tag) == tag).distinct()
    return [article_to_dict(a) for a in _featured_first(query).all()]


def search_articles(q):
    q = (q or '').strip()
    if not q:
        raise BadRequestError("Search query must not be empty")
    pattern = f"%{q}%"
    query = _published().filter(or_(KnowledgeArticle.title.ilike(pattern), KnowledgeArticle.content.ilike(pattern)))
    return [article_to_dict(a) for a in _featured_first(query).all()]


def featured_articles():
    query = _published().filter(KnowledgeArticle.is_featured.is_(True))
    return [article_to_dict(a) for a in query.order_by(KnowledgeArticle.created_at.desc(), KnowledgeArticle.id.desc()).all()]


def drafts():
    query = KnowledgeArticle.query.filter_by(status=ArticleStatus.DRAFT.value)
    return [article_to_dict(a) for a in query.order_by(KnowledgeArticle.updated_at.desc(), KnowledgeArticle.id.desc()).all()]


def view_article(actor, article_id):
    """Открытие статьи увеличивает счётчик просмотров"""
    article = get_article(article_id)
    if article.status != ArticleStatus.PUBLISHED.value and not actor.is_admin:
        raise NotFoundError("KnowledgeArticle", "id", article_id)
    article.view_count = KnowledgeArticle.view_count + 1
    db.session.commit()
    return article


def vote(article_id, helpful):
    article = get_article(article_id)
    if article.status != ArticleStatus.PUBLISHED.value:
        raise BadRequestError("Only published articles can be rated")
    if helpful:
        article.helpful_count = KnowledgeArticle.helpful_count + 1
    else:
        article.not_helpful_count = KnowledgeArticle.not_helpful_count + 1
    db.session.commit()
    return article


# ============================================================================
# АДМИНИСТРИРОВАНИЕ СТАТЕЙ
# ============================================================================

def _read_article(data, partial):
    v = Validator(data)
    title = v.string('title', required=not partial, min_len=5, max_len=200)
    content = v.string('content', required=not partial, min_len=20)
    category_id = v.integer('category_id')
    tags = v.str_list('tags')
    is_featured = v.boolean('is_featured')
    v.check()
    return title, content, category_id, tags, is_featured


def create_article(actor, data):
    title, content, category_id, tags, is_featured = _read_article(data, partial=False)
    article = KnowledgeArticle(
        title=title,
        content=content,
        status=ArticleStatus.DRAFT.value,
        author=actor,
        is_featured=bool(is_featured),
    )
    if category_id is not None:
        article.category = get_category(category_id)
    article.set_tags(tags or [])
    db.session.add(article)
    db.session.commit()
    current_app.logger.info(f"KB article {article.id} created by user {actor.id}")
    return article


def update_article(actor, article_id, data):
    article = get_article(article_id)
    title, content, category_id, tags, is_featured = _read_article(data, partial=True)
    if title is not None:
        article.title = title
    if content is not None:
        article.content = content
    if 'category_id' in data:
        article.category = get_category(category_id) if category_id is not None else None
    if tags is not None:
        article.set_tags(tags)
    if is_featured is not None:
        article.is_featured = is_featured
    db.session.commit()
    return article


def publish_article(actor, article_id):
    article = get_article(article_id)
    article.status = ArticleStatus.PUBLISHED.value
    article.published_at = utcnow()
    db.session.commit()
    current_app.logger.info(f"KB article {article.id} published by user {actor.id}")
    return article


def archive_article(actor, article_id):
    article = get_article(article_id)
    article.status = ArticleStatus.ARCHIVED.value
    db.session.commit()
    current_app.logger.info(f"KB article {article.id} archived by user {actor.id}")
    return article


def set_featured(article_id, featured):
    article = get_article(article_id)
    article.is_featured = featured
    db.session.commit()
    return article


def delete_article(actor, article_id):
    article = get_article(article_id)
    db.session.delete(article)
    db.session.commit()
    current_app.logger.info(f"KB article {article_id} deleted by user {actor.id}")


# ============================================================================
# КАТЕГОРИИ
# ============================================================================

def list_categories():
    counts = dict(
        db.session.query(KnowledgeArticle.category_id, func.count(KnowledgeArticle.id))
        .filter(KnowledgeArticle.status == ArticleStatus.PUBLISHED.value)
        .group_by(KnowledgeArticle.category_id)
        .all()
    )
    categories = KnowledgeCategory.query.order_by(KnowledgeCategory.display_order.asc(), KnowledgeCategory.id.asc()).all()
    return [category_to_dict(c, counts.get(c.id, 0)) for c in categories]


def create_category(actor, data):
    v = Validator(data)
    name = v.string('name', required=True, min_len=3, max_len=100)
    description = v.string('description', max_len=1000)
    display_order = v.integer('display_order')
    v.check()

    if KnowledgeCategory.query.filter(func.lower(KnowledgeCategory.name) == name.lower()).first():
        raise BadRequestError(f"Category with name '{name}' already exists")
    category = KnowledgeCategory(
        name=name,
        description=description,
        display_order=999 if display_order is None else display_order,
    )
    db.session.add(category)
    db.session.commit()
    current_app.logger.info(f"KB category {category.id} '{category.name}' created by user {actor.id}")
    return category


def delete_category(actor, category_id):
    category = get_category(category_id)
    db.session.delete(category)
    db.session.commit()
    current_app.logger.info(f"KB category {category_id} deleted by user {actor.id}")
