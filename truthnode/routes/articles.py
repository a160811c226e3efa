from flask import Blueprint, g, jsonify, request
from truthnode.errors import TruthNodeError
from truthnode.routes.auth import error_response, require_user
from truthnode.services.article_service import ArticleService
from truthnode.services.reward_calculator import evidence_impact

articles_bp = Blueprint('articles', __name__)
article_service = ArticleService()


def _parse_bool(value):
    if value is None:
        return None
    return value.lower() in ('true', '1', 'yes')


@articles_bp.route('/articles')
def list_articles():
    """List articles, newest first, filterable by status and whistleblower flag."""
    try:
        articles = article_service.list_articles(
            limit=request.args.get('limit', type=int),
            offset=request.args.get('offset', 0, type=int),
            status=request.args.get('status'),
            is_whistleblower=_parse_bool(request.args.get('whistleblower')),
        )
    except TruthNodeError as e:
        return error_response(e)
    return jsonify([article_service.with_author(a) for a in articles])


@articles_bp.route('/articles/featured')
def featured_articles():
    limit = request.args.get('limit', 3, type=int)
    articles = article_service.featured_articles(limit)
    return jsonify([article_service.with_author(a) for a in articles])


@articles_bp.route('/articles/<int:article_id>')
def get_article(article_id):
    """Article with author, verifications and evidence."""
    try:
        article = article_service.get_article(article_id)
    except TruthNodeError as e:
        return error_response(e)

    payload = article_service.with_author(article)
    payload['verifications'] = [
        v.to_dict() for v in article_service.get_verifications_for_article(article_id)
    ]
    payload['evidence'] = [
        e.to_dict() for e in article_service.get_evidence_for_article(article_id)
    ]
    return jsonify(payload)


@articles_bp.route('/articles', methods=['POST'])
@require_user
def create_article():
    data = request.get_json(silent=True)
    if not data:
        return jsonify({'error': 'JSON body required'}), 400

    try:
        article = article_service.create_article(g.current_user.id, data)
    except TruthNodeError as e:
        return error_response(e)
    return jsonify(article.to_dict()), 201


@articles_bp.route('/articles/<int:article_id>/evidence')
def list_evidence(article_id):
    items = []
    for evidence in article_service.get_evidence_for_article(article_id):
        payload = evidence.to_dict()
        payload['user'] = evidence.user.to_author_dict() if evidence.user else None
        payload['impact'] = evidence_impact(evidence.type, evidence.user.role if evidence.user else None)
        items.append(payload)
    return jsonify(items)


@articles_bp.route('/whistleblower/submit', methods=['POST'])
def whistleblower_submit():
    """Anonymous submission; no authentication."""
    data = request.get_json(silent=True) or {}
    content = data.get('content')
    ipfs_hash = data.get('ipfs_hash')
    if not isinstance(content, dict) or not ipfs_hash:
        return jsonify({'error': 'Content and IPFS hash are required'}), 400

    try:
        article = article_service.submit_whistleblower(content, ipfs_hash)
    except TruthNodeError as e:
        return error_response(e)

    return jsonify({
        'success': True,
        'message': 'Whistleblower submission received',
        'article_id': article.id,
    }), 201
