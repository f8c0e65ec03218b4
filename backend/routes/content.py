from flask import Blueprint, jsonify, request, current_app
from flask_jwt_extended import jwt_required
from models import db, ContentFolder, FolderTypeEnum, Ebook, Video
from services.core_services import PointsService
from utils.constants import ACTION_TYPES
from utils.role_required import role_required, user_required, load_current_user

content_bp = Blueprint('content_bp', __name__)
admin_content_bp = Blueprint('admin_content_bp', __name__)


def _folder_type(value):
    try:
        return FolderTypeEnum(value)
    except ValueError:
        return None


def _check_folder(folder_id, expected_type):
    """Return (folder_id, error) after checking the folder holds this kind of item."""
    if folder_id in (None, ""):
        return None, None
    folder = db.session.get(ContentFolder, int(folder_id))
    if not folder:
        return None, ("Folder not found", 404)
    if folder.type is not expected_type:
        return None, (f"Folder does not hold {expected_type.value}s", 400)
    return folder.id, None


# USER: browse library
@content_bp.route('/folders', methods=['GET'])
@jwt_required()
def get_folders():
    folder_type = _folder_type(request.args.get('type'))
    if not folder_type:
        return jsonify({"error": "Valid type (ebook or video) is required"}), 400

    folders = (
        ContentFolder.query.filter_by(type=folder_type)
        .order_by(ContentFolder.created_at.desc(), ContentFolder.id.desc())
        .all()
    )
    return jsonify([f.to_dict() for f in folders]), 200


@content_bp.route('/ebooks', methods=['GET'])
@jwt_required()
def get_ebooks():
    query = Ebook.query
    folder_id = request.args.get('folder_id', type=int)
    if folder_id:
        query = query.filter_by(folder_id=folder_id)
    ebooks = query.order_by(Ebook.created_at.desc(), Ebook.id.desc()).all()
    return jsonify([e.to_dict() for e in ebooks]), 200


@content_bp.route('/videos', methods=['GET'])
@jwt_required()
def get_videos():
    query = Video.query
    folder_id = request.args.get('folder_id', type=int)
    if folder_id:
        query = query.filter_by(folder_id=folder_id)
    videos = query.order_by(Video.created_at.desc(), Video.id.desc()).all()
    return jsonify([v.to_dict() for v in videos]), 200


def _award_consumption(action_type, item_id):
    user = load_current_user()
    try:
        award = PointsService.award_once(user.id, action_type, item_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to award %s for item %s", action_type, item_id)
        return jsonify({"error": "Error recording progress"}), 500

    return jsonify({
        "message": "Progress recorded",
        "earned_points": award["points"] if award else 0,
        "already_completed": award is None
    }), 200


@content_bp.route('/ebooks/<int:ebook_id>/read', methods=['POST'])
@user_required
def mark_ebook_read(ebook_id):
    db.get_or_404(Ebook, ebook_id)
    return _award_consumption(ACTION_TYPES['ebook_read'], ebook_id)


@content_bp.route('/videos/<int:video_id>/watch', methods=['POST'])
@user_required
def mark_video_watched(video_id):
    db.get_or_404(Video, video_id)
    return _award_consumption(ACTION_TYPES['video_watch'], video_id)


# ADMIN: folders
@admin_content_bp.route('/folders', methods=['GET'])
@role_required("admin")
def admin_get_folders():
    query = ContentFolder.query
    if request.args.get('type'):
        folder_type = _folder_type(request.args.get('type'))
        if not folder_type:
            return jsonify({"error": "Valid type (ebook or video) is required"}), 400
        query = query.filter_by(type=folder_type)
    folders = query.order_by(ContentFolder.created_at.desc(), ContentFolder.id.desc()).all()
    return jsonify([f.to_dict() for f in folders]), 200


@admin_content_bp.route('/folders', methods=['POST'])
@role_required("admin")
def create_folder():
    data = request.get_json() or {}
    name = (data.get("name") or "").strip()
    folder_type = _folder_type(data.get("type"))
    if not name or not folder_type:
        return jsonify({"error": "Name and a valid type (ebook or video) are required"}), 400

    folder = ContentFolder(name=name, type=folder_type)
    db.session.add(folder)
    db.session.commit()
    return jsonify(folder.to_dict()), 201


@admin_content_bp.route('/folders/<int:folder_id>', methods=['PUT'])
@role_required("admin")
def rename_folder(folder_id):
    folder = db.get_or_404(ContentFolder, folder_id)
    data = request.get_json() or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "Folder name is required"}), 400
    folder.name = name
    db.session.commit()
    return jsonify(folder.to_dict()), 200


@admin_content_bp.route('/folders/<int:folder_id>', methods=['DELETE'])
@role_required("admin")
def delete_folder(folder_id):
    folder = db.get_or_404(ContentFolder, folder_id)
    db.session.delete(folder)
    db.session.commit()
    return jsonify({"message": "Folder deleted successfully"}), 200


# ADMIN: e-books
@admin_content_bp.route('/ebooks', methods=['POST'])
@role_required("admin")
def create_ebook():
    data = request.get_json() or {}
    title = (data.get("title") or "").strip()
    file_url = data.get("file_url")
    if not title or not file_url:
        return jsonify({"error": "Title and file_url are required"}), 400

    folder_id, error = _check_folder(data.get("folder_id"), FolderTypeEnum.ebook)
    if error:
        return jsonify({"error": error[0]}), error[1]

    ebook = Ebook(
        title=title,
        description=data.get("description"),
        file_url=file_url,
        cover_url=data.get("cover_url"),
        folder_id=folder_id
    )
    db.session.add(ebook)
    db.session.commit()
    return jsonify(ebook.to_dict()), 201


@admin_content_bp.route('/ebooks/<int:ebook_id>', methods=['PUT'])
@role_required("admin")
def update_ebook(ebook_id):
    ebook = db.get_or_404(Ebook, ebook_id)
    data = request.get_json() or {}

    if "folder_id" in data:
        folder_id, error = _check_folder(data.get("folder_id"), FolderTypeEnum.ebook)
        if error:
            return jsonify({"error": error[0]}), error[1]
        ebook.folder_id = folder_id
    for field in ("title", "description", "file_url", "cover_url"):
        if field in data:
            setattr(ebook, field, data[field])
    if not ebook.title or not ebook.file_url:
        db.session.rollback()
        return jsonify({"error": "Title and file_url are required"}), 400

    db.session.commit()
    return jsonify(ebook.to_dict()), 200


@admin_content_bp.route('/ebooks/<int:ebook_id>', methods=['DELETE'])
@role_required("admin")
def delete_ebook(ebook_id):
    ebook = db.get_or_404(Ebook, ebook_id)
    db.session.delete(ebook)
    db.session.commit()
    return jsonify({"message": "E-book deleted successfully"}), 200


# ADMIN: videos
@admin_content_bp.route('/videos', methods=['POST'])
@role_required("admin")
def create_video():
    data = request.get_json() or {}
    title = (data.get("title") or "").strip()
    url = data.get("url")
    if not title or not url:
        return jsonify({"error": "Title and url are required"}), 400

    folder_id, error = _check_folder(data.get("folder_id"), FolderTypeEnum.video)
    if error:
        return jsonify({"error": error[0]}), error[1]

    video = Video(
        title=title,
        description=data.get("description"),
        url=url,
        duration=int(data.get("duration") or 0),
        cover_url=data.get("cover_url"),
        folder_id=folder_id
    )
    db.session.add(video)
    db.session.commit()
    return jsonify(video.to_dict()), 201


@admin_content_bp.route('/videos/<int:video_id>', methods=['PUT'])
@role_required("admin")
def update_video(video_id):
    video = db.get_or_404(Video, video_id)
    data = request.get_json() or {}

    if "folder_id" in data:
        folder_id, error = _check_folder(data.get("folder_id"), FolderTypeEnum.video)
        if error:
            return jsonify({"error": error[0]}), error[1]
        video.folder_id = folder_id
    for field in ("title", "description", "url", "cover_url"):
        if field in data:
            setattr(video, field, data[field])
    if "duration" in data:
        video.duration = int(data.get("duration") or 0)
    if not video.title or not video.url:
        db.session.rollback()
        return jsonify({"error": "Title and url are required"}), 400

    db.session.commit()
    return jsonify(video.to_dict()), 200


@admin_content_bp.route('/videos/<int:video_id>', methods=['DELETE'])
@role_required("admin")
def delete_video(video_id):
    video = db.get_or_404(Video, video_id)
    db.session.delete(video)
    db.session.commit()
    return jsonify({"message": "Video deleted successfully"}), 200
