"""
Модели базы знаний
"""
from portal.core import get_db
from portal.enums import ArticleStatus
from portal.utils import utcnow

db = get_db()


class KnowledgeCategory(db.Model):
    """Категория статей"""
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=999)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class KnowledgeArticle(db.Model):
    """Статья базы знаний"""
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('knowledge_category.id', ondelete='SET NULL'), nullable=True)
    category = db.relationship('KnowledgeCategory', backref=db.backref('articles', lazy='dynamic'))
    status = db.Column(db.String(20), nullable=False, default=ArticleStatus.DRAFT.value, index=True)
    author_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    author = db.relationship('User')
    view_count = db.Column(db.Integer, nullable=False, default=0)
    helpful_count = db.Column(db.Integer, nullable=False, default=0)
    not_helpful_count = db.Column(db.Integer, nullable=False, default=0)
    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    published_at = db.Column(db.DateTime, nullable=True)

    tag_rows = db.relationship('ArticleTag', lazy='selectin', cascade='all, delete-orphan',
                               order_by='ArticleTag.id', backref='article')

    @property
    def tags(self):
        return [t.tag for t in self.tag_rows]

    def set_tags(self, tags):
        self.tag_rows = [ArticleTag(tag=t) for t in tags]


class ArticleTag(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('knowledge_article.id', ondelete='CASCADE'), nullable=False, index=True)
    tag = db.Column(db.String(50), nullable=False, index=True)
