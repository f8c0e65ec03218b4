import re
from datetime import datetime
from flask import Blueprint, jsonify, request, current_app
from sqlalchemy.exc import IntegrityError
from models import db, Testimonial, Faq, Article, GalleryItem
from utils.reorder import apply_order
from utils.role_required import role_required

cms_bp = Blueprint('cms_bp', __name__)
admin_cms_bp = Blueprint('admin_cms_bp', __name__)


def slugify(value):
    slug = re.sub(r"[^a-z0-9]+", "-", (value or "").lower()).strip("-")
    return slug or "article"


def _reorder(model, label):
    data = request.get_json() or {}
    try:
        updated = apply_order(model, data.get("items"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Error reordering %s", label)
        return jsonify({"error": f"Error reordering {label}"}), 500
    return jsonify({"message": f"{label.capitalize()} reordered", "updated": updated}), 200


# PUBLIC
@cms_bp.route('/testimonials', methods=['GET'])
def get_testimonials():
    items = Testimonial.query.order_by(Testimonial.order.asc(), Testimonial.created_at.desc()).all()
    return jsonify([t.to_dict() for t in items]), 200


@cms_bp.route('/faq', methods=['GET'])
def get_faq():
    query = Faq.query
    category = request.args.get('category')
    if category:
        query = query.filter_by(category=category)
    items = query.order_by(Faq.order.asc(), Faq.id.asc()).all()
    return jsonify([f.to_dict() for f in items]), 200


@cms_bp.route('/articles', methods=['GET'])
def get_articles():
    articles = (
        Article.query.filter_by(is_published=True)
        .order_by(Article.published_at.desc(), Article.id.desc())
        .all()
    )
    return jsonify([a.to_dict(include_content=False) for a in articles]), 200


@cms_bp.route('/articles/<string:slug>', methods=['GET'])
def get_article(slug):
    article = Article.query.filter_by(slug=slug, is_published=True).first()
    if not article:
        return jsonify({"error": "Article not found"}), 404
    return jsonify(article.to_dict()), 200


@cms_bp.route('/gallery', methods=['GET'])
def get_gallery():
    items = GalleryItem.query.order_by(GalleryItem.order.asc(), GalleryItem.created_at.desc()).all()
    return jsonify([g.to_dict() for g in items]), 200


# ADMIN: testimonials
@admin_cms_bp.route('/testimonials', methods=['GET'])
@role_required("admin")
def admin_get_testimonials():
    return get_testimonials()


@admin_cms_bp.route('/testimonials', methods=['POST'])
@role_required("admin")
def create_testimonial():
    data = request.get_json() or {}
    if not data.get("name") or not data.get("content"):
        return jsonify({"error": "Name and content are required"}), 400

    try:
        testimonial = Testimonial(
            name=data["name"],
            role=data.get("role"),
            content=data["content"],
            avatar_url=data.get("avatar_url"),
            rating=int(data.get("rating") or 5),
            order=int(data.get("order") or 0)
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    db.session.add(testimonial)
    db.session.commit()
    return jsonify(testimonial.to_dict()), 201


@admin_cms_bp.route('/testimonials/reorder', methods=['PUT'])
@role_required("admin")
def reorder_testimonials():
    return _reorder(Testimonial, "testimonials")


@admin_cms_bp.route('/testimonials/<int:testimonial_id>', methods=['PUT'])
@role_required("admin")
def update_testimonial(testimonial_id):
    testimonial = db.get_or_404(Testimonial, testimonial_id)
    data = request.get_json() or {}

    try:
        for field in ("name", "role", "content", "avatar_url"):
            if field in data:
                setattr(testimonial, field, data[field])
        if "rating" in data:
            testimonial.rating = int(data["rating"])
        if "order" in data:
            testimonial.order = int(data["order"])
    except ValueError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400

    db.session.commit()
    return jsonify(testimonial.to_dict()), 200


@admin_cms_bp.route('/testimonials/<int:testimonial_id>', methods=['DELETE'])
@role_required("admin")
def delete_testimonial(testimonial_id):
    testimonial = db.get_or_404(Testimonial, testimonial_id)
    db.session.delete(testimonial)
    db.session.commit()
    return jsonify({"message": "Testimonial deleted successfully"}), 200


# ADMIN: FAQ
@admin_cms_bp.route('/faq', methods=['GET'])
@role_required("admin")
def admin_get_faq():
    return get_faq()


@admin_cms_bp.route('/faq', methods=['POST'])
@role_required("admin")
def create_faq():
    data = request.get_json() or {}
    if not data.get("question") or not data.get("answer"):
        return jsonify({"error": "Question and answer are required"}), 400

    faq = Faq(
        question=data["question"],
        answer=data["answer"],
        category=data.get("category"),
        order=int(data.get("order") or 0)
    )
    db.session.add(faq)
    db.session.commit()
    return jsonify(faq.to_dict()), 201


@admin_cms_bp.route('/faq/<int:faq_id>', methods=['PUT'])
@role_required("admin")
def update_faq(faq_id):
    faq = db.get_or_404(Faq, faq_id)
    data = request.get_json() or {}
    for field in ("question", "answer", "category"):
        if field in data:
            setattr(faq, field, data[field])
    if "order" in data:
        faq.order = int(data["order"] or 0)
    db.session.commit()
    return jsonify(faq.to_dict()), 200


@admin_cms_bp.route('/faq/<int:faq_id>', methods=['DELETE'])
@role_required("admin")
def delete_faq(faq_id):
    faq = db.get_or_404(Faq, faq_id)
    db.session.delete(faq)
    db.session.commit()
    return jsonify({"message": "FAQ deleted successfully"}), 200


# ADMIN: articles
@admin_cms_bp.route('/articles', methods=['GET'])
@role_required("admin")
def admin_get_articles():
    articles = Article.query.order_by(Article.created_at.desc(), Article.id.desc()).all()
    return jsonify([a.to_dict(include_content=False) for a in articles]), 200


@admin_cms_bp.route('/articles/<int:article_id>', methods=['GET'])
@role_required("admin")
def admin_get_article(article_id):
    return jsonify(db.get_or_404(Article, article_id).to_dict()), 200


@admin_cms_bp.route('/articles', methods=['POST'])
@role_required("admin")
def create_article():
    data = request.get_json() or {}
    if not data.get("title") or not data.get("content"):
        return jsonify({"error": "Title and content are required"}), 400

    is_published = bool(data.get("is_published", False))
    article = Article(
        title=data["title"],
        slug=slugify(data.get("slug") or data["title"]),
        excerpt=data.get("excerpt"),
        content=data["content"],
        cover_url=data.get("cover_url"),
        is_published=is_published,
        published_at=datetime.utcnow() if is_published else None
    )
    try:
        db.session.add(article)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "An article with this slug already exists"}), 409

    return jsonify(article.to_dict()), 201


@admin_cms_bp.route('/articles/<int:article_id>', methods=['PUT'])
@role_required("admin")
def update_article(article_id):
    article = db.get_or_404(Article, article_id)
    data = request.get_json() or {}

    for field in ("title", "excerpt", "content", "cover_url"):
        if field in data:
            setattr(article, field, data[field])
    if data.get("slug"):
        article.slug = slugify(data["slug"])
    if "is_published" in data:
        published = bool(data["is_published"])
        if published and not article.is_published:
            article.published_at = datetime.utcnow()
        elif not published:
            article.published_at = None
        article.is_published = published

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "An article with this slug already exists"}), 409

    return jsonify(article.to_dict()), 200


@admin_cms_bp.route('/articles/<int:article_id>', methods=['DELETE'])
@role_required("admin")
def delete_article(article_id):
    article = db.get_or_404(Article, article_id)
    db.session.delete(article)
    db.session.commit()
    return jsonify({"message": "Article deleted successfully"}), 200


# ADMIN: gallery
@admin_cms_bp.route('/gallery', methods=['GET'])
@role_required("admin")
def admin_get_gallery():
    return get_gallery()


@admin_cms_bp.route('/gallery', methods=['POST'])
@role_required("admin")
def create_gallery_item():
    data = request.get_json() or {}
    if not data.get("title") or not data.get("image_url"):
        return jsonify({"error": "Title and image_url are required"}), 400

    item = GalleryItem(
        title=data["title"],
        description=data.get("description"),
        image_url=data["image_url"],
        order=int(data.get("order") or 0)
    )
    db.session.add(item)
    db.session.commit()
    return jsonify(item.to_dict()), 201


@admin_cms_bp.route('/gallery/reorder', methods=['PUT'])
@role_required("admin")
def reorder_gallery():
    return _reorder(GalleryItem, "gallery")


@admin_cms_bp.route('/gallery/<int:item_id>', methods=['PUT'])
@role_required("admin")
def update_gallery_item(item_id):
    item = db.get_or_404(GalleryItem, item_id)
    data = request.get_json() or {}
    for field in ("title", "description", "image_url"):
        if field in data:
            setattr(item, field, data[field])
    if "order" in data:
        item.order = int(data["order"] or 0)
    db.session.commit()
    return jsonify(item.to_dict()), 200


@admin_cms_bp.route('/gallery/<int:item_id>', methods=['DELETE'])
@role_required("admin")
def delete_gallery_item(item_id):
    item = db.get_or_404(GalleryItem, item_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({"message": "Gallery item deleted successfully"}), 200
