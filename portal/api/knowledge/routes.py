"""
API эндпоинты базы знаний

Чтение (любой авторизованный):
- GET /api/kb/articles - Опубликованные статьи (постранично)
- GET /api/kb/articles/<id> - Статья (+1 просмотр)
- GET /api/kb/articles/category/<id>, /api/kb/articles/tag/<tag>
- GET /api/kb/articles/search?q= - Поиск по заголовку и тексту
- GET /api/kb/articles/featured - Избранные
- POST /api/kb/articles/<id>/helpful, /api/kb/articles/<id>/not-helpful
- GET /api/kb/categories, /api/kb/categories/<id>

Администрирование:
- POST /api/kb/articles, PUT/DELETE /api/kb/articles/<id>
- PUT /api/kb/articles/<id>/publish, /archive, /feature, /unfeature
- GET /api/kb/articles/drafts
- POST /api/kb/categories, DELETE /api/kb/categories/<id>
"""

from flask import jsonify, request

from portal.core import get_app
from portal.auth import login_required, admin_required
from portal.pagination import PageRequest
from portal.validation import get_json
from portal import knowledge

app = get_app()


# ============================================================================
# ARTICLES (READ)
# ============================================================================

@app.route('/api/kb/articles', methods=['GET'])
@login_required
def kb_published_articles(current_user):
    page_request = PageRequest.from_request(knowledge.ARTICLE_SORT_FIELDS)
    return jsonify(knowledge.published_articles(page_request)), 200


@app.route('/api/kb/articles/<int:article_id>', methods=['GET'])
@login_required
def kb_get_article(current_user, article_id):
    article = knowledge.view_article(current_user, article_id)
    return jsonify(knowledge.article_to_dict(article)), 200


@app.route('/api/kb/articles/category/<int:category_id>', methods=['GET'])
@login_required
def kb_articles_by_category(current_user, category_id):
    return jsonify(knowledge.articles_by_category(category_id)), 200


@app.route('/api/kb/articles/tag/<tag>', methods=['GET'])
@login_required
def kb_articles_by_tag(current_user, tag):
    return jsonify(knowledge.articles_by_tag(tag)), 200


@app.route('/api/kb/articles/search', methods=['GET'])
@login_required
def kb_search(current_user):
    return jsonify(knowledge.search_articles(request.args.get('q', ''))), 200


@app.route('/api/kb/articles/featured', methods=['GET'])
@login_required
def kb_featured(current_user):
    return jsonify(knowledge.featured_articles()), 200


@app.route('/api/kb/articles/<int:article_id>/helpful', methods=['POST'])
@login_required
def kb_mark_helpful(current_user, article_id):
    return jsonify(knowledge.article_to_dict(knowledge.vote(article_id, True))), 200


@app.route('/api/kb/articles/<int:article_id>/not-helpful', methods=['POST'])
@login_required
def kb_mark_not_helpful(current_user, article_id):
    return jsonify(knowledge.article_to_dict(knowledge.vote(article_id, False))), 200


# ============================================================================
# ARTICLES (ADMIN)
# ============================================================================

@app.route('/api/kb/articles', methods=['POST'])
@admin_required
def kb_create_article(current_user):
    article = knowledge.create_article(current_user, get_json())
    return jsonify(knowledge.article_to_dict(article)), 201


@app.route('/api/kb/articles/<int:article_id>', methods=['PUT'])
@admin_required
def kb_update_article(current_user, article_id):
    article = knowledge.update_article(current_user, article_id, get_json())
    return jsonify(knowledge.article_to_dict(article)), 200


@app.route('/api/kb/articles/<int:article_id>', methods=['DELETE'])
@admin_required
def kb_delete_article(current_user, article_id):
    knowledge.delete_article(current_user, article_id)
    return jsonify({"message": "Article deleted successfully"}), 200


@app.route('/api/kb/articles/<int:article_id>/publish', methods=['PUT'])
@admin_required
def kb_publish_article(current_user, article_id):
    return jsonify(knowledge.article_to_dict(knowledge.publish_article(current_user, article_id))), 200


@app.route('/api/kb/articles/<int:article_id>/archive', methods=['PUT'])
@admin_required
def kb_archive_article(current_user, article_id):
    return jsonify(knowledge.article_to_dict(knowledge.archive_article(current_user, article_id))), 200


@app.route('/api/kb/articles/<int:article_id>/feature', methods=['PUT'])
@admin_required
def kb_feature_article(current_user, article_id):
    return jsonify(knowledge.article_to_dict(knowledge.set_featured(article_id, True))), 200


@app.route('/api/kb/articles/<int:article_id>/unfeature', methods=['PUT'])
@admin_required
def kb_unfeature_article(current_user, article_id):
    return jsonify(knowledge.article_to_dict(knowledge.set_featured(article_id, False))), 200


@app.route('/api/kb/articles/drafts', methods=['GET'])
@admin_required
def kb_drafts(current_user):
    return jsonify(knowledge.drafts()), 200


# ============================================================================
# CATEGORIES
# ============================================================================

@app.route('/api/kb/categories', methods=['GET'])
@login_required
def kb_categories(current_user):
    return jsonify(knowledge.list_categories()), 200


@app.route('/api/kb/categories/<int:category_id>', methods=['GET'])
@login_required
def kb_get_category(current_user, category_id):
    return jsonify(knowledge.category_to_dict(knowledge.get_category(category_id))), 200


@app.route('/api/kb/categories', methods=['POST'])
@admin_required
def kb_create_category(current_user):
    category = knowledge.create_category(current_user, get_json())
    return jsonify(knowledge.category_to_dict(category, 0)), 201


@app.route('/api/kb/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def kb_delete_category(current_user, category_id):
    knowledge.delete_category(current_user, category_id)
    return jsonify({"message": "Category deleted successfully"}), 200
